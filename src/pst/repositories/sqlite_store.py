from __future__ import annotations

import shutil
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from pst.domain.errors import StoreError, ValidationError
from pst.repositories.contracts import TABLE_COLUMNS


def _now_iso() -> str:
    return datetime.now().replace(microsecond=0).isoformat(sep=" ")


class SqliteStore:
    """Local TableStore backed by one SQLite file."""

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_ledger),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS phones_stock (
            id TEXT PRIMARY KEY,
            phone_name TEXT NOT NULL,
            quantity INTEGER NOT NULL DEFAULT 0 CHECK(quantity >= 0),
            buying_price REAL NOT NULL CHECK(buying_price >= 0),
            selling_price REAL NOT NULL DEFAULT 0 CHECK(selling_price >= 0),
            vendor TEXT,
            purchase_date TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
        )

        # stock_id is a weak reference: no foreign key, so deleting a
        # sold-out stock row never nulls it out.
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS sales (
            id TEXT PRIMARY KEY,
            stock_id TEXT,
            phone_name TEXT NOT NULL,
            quantity INTEGER NOT NULL CHECK(quantity >= 1),
            buying_price REAL NOT NULL CHECK(buying_price >= 0),
            selling_price REAL NOT NULL CHECK(selling_price >= 0),
            expenses REAL NOT NULL DEFAULT 0 CHECK(expenses >= 0),
            profit REAL NOT NULL,
            customer_name TEXT,
            vendor TEXT,
            sale_date TEXT NOT NULL,
            payment_status TEXT NOT NULL DEFAULT 'paid' CHECK(payment_status IN ('paid','pending','partial')),
            notes TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_sales_stock_id ON sales(stock_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_sales_sale_date ON sales(sale_date)")

    def _migration_v2_ledger(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS account_balances (
                id TEXT PRIMARY KEY,
                account_name TEXT NOT NULL,
                balance REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS balances_to_receive (
                id TEXT PRIMARY KEY,
                customer_name TEXT NOT NULL,
                amount REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                expense_name TEXT NOT NULL,
                amount REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

    # ---------- helpers ----------
    @staticmethod
    def _columns(table: str) -> tuple[str, ...]:
        cols = TABLE_COLUMNS.get(table)
        if cols is None:
            raise ValidationError(f"Unknown collection: {table}")
        return cols

    def _check_columns(self, table: str, names) -> None:
        cols = self._columns(table)
        unknown = [n for n in names if n not in cols]
        if unknown:
            raise ValidationError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")

    @staticmethod
    def _where(filters: Mapping[str, object]) -> tuple[str, list]:
        clauses = []
        params: list = []
        for col, value in filters.items():
            if value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = ?")
                params.append(value)
        return " AND ".join(clauses), params

    # ---------- TableStore ----------
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> list[dict]:
        filters = dict(filters or {})
        self._check_columns(table, list(filters) + ([order_by] if order_by else []))

        sql = f"SELECT * FROM {table}"
        where, params = self._where(filters)
        if where:
            sql += f" WHERE {where}"
        if order_by:
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY {order_by} {direction}, rowid {direction}"

        conn = self._conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"select on {table} failed: {e}") from e
        finally:
            conn.close()
        return [dict(r) for r in rows]

    def get(self, table: str, row_id: str) -> Optional[dict]:
        rows = self.select(table, {"id": row_id})
        return rows[0] if rows else None

    def insert(self, table: str, row: Mapping[str, object]) -> dict:
        data = dict(row)
        self._check_columns(table, data)
        now = _now_iso()
        data.setdefault("id", uuid.uuid4().hex)
        data.setdefault("created_at", now)
        data["updated_at"] = now

        cols = list(data)
        placeholders = ", ".join("?" for _ in cols)
        conn = self._conn()
        try:
            conn.execute(
                f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders})",
                [data[c] for c in cols],
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"insert into {table} failed: {e}") from e
        finally:
            conn.close()
        return self.get(table, str(data["id"])) or data

    def update(
        self,
        table: str,
        row_id: str,
        values: Mapping[str, object],
        expected: Optional[Mapping[str, object]] = None,
    ) -> Optional[dict]:
        data = {k: v for k, v in dict(values).items() if k not in ("id", "created_at")}
        expected = dict(expected or {})
        self._check_columns(table, list(data) + list(expected))
        data["updated_at"] = _now_iso()

        assignments = ", ".join(f"{c} = ?" for c in data)
        where, where_params = self._where({"id": row_id, **expected})
        conn = self._conn()
        try:
            cur = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE {where}",
                [*data.values(), *where_params],
            )
            changed = cur.rowcount > 0
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"update of {table} {row_id} failed: {e}") from e
        finally:
            conn.close()
        if not changed:
            return None
        return self.get(table, row_id)

    def delete(self, table: str, row_id: str, expected: Optional[Mapping[str, object]] = None) -> bool:
        expected = dict(expected or {})
        self._check_columns(table, expected)
        where, params = self._where({"id": row_id, **expected})
        conn = self._conn()
        try:
            cur = conn.execute(f"DELETE FROM {table} WHERE {where}", params)
            changed = cur.rowcount > 0
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"delete from {table} {row_id} failed: {e}") from e
        finally:
            conn.close()
        return bool(changed)

