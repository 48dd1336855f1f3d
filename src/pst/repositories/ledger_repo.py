from __future__ import annotations

from typing import Optional

from pst.domain.errors import ValidationError
from pst.domain.models import ACCOUNT, EXPENSE, RECEIVABLE, LedgerEntry
from pst.repositories.contracts import ACCOUNTS_TABLE, EXPENSES_TABLE, RECEIVABLES_TABLE, TableStore
from pst.repositories.events import ChangeFeed

# kind -> (table, label column, amount column)
LEDGER_TABLES = {
    ACCOUNT: (ACCOUNTS_TABLE, "account_name", "balance"),
    RECEIVABLE: (RECEIVABLES_TABLE, "customer_name", "amount"),
    EXPENSE: (EXPENSES_TABLE, "expense_name", "amount"),
}


class LedgerRepository:
    def __init__(self, store: TableStore, kind: str, feed: ChangeFeed | None = None):
        if kind not in LEDGER_TABLES:
            raise ValidationError(f"Unknown ledger kind: {kind}")
        self.store = store
        self.kind = kind
        self.table, self.label_col, self.amount_col = LEDGER_TABLES[kind]
        self.feed = feed or ChangeFeed()

    def _to_entry(self, r: dict) -> LedgerEntry:
        return LedgerEntry(
            id=str(r["id"]),
            kind=self.kind,
            label=str(r[self.label_col]),
            amount=float(r[self.amount_col] or 0),
            created_at=r.get("created_at"),
            updated_at=r.get("updated_at"),
        )

    def _to_row(self, label: Optional[str], amount: Optional[float]) -> dict:
        row = {}
        if label is not None:
            row[self.label_col] = label
        if amount is not None:
            row[self.amount_col] = amount
        return row

    def list_entries(self) -> list[LedgerEntry]:
        return [self._to_entry(r) for r in self.store.select(self.table, order_by="created_at")]

    def get(self, entry_id: str) -> Optional[LedgerEntry]:
        r = self.store.get(self.table, str(entry_id))
        return self._to_entry(r) if r else None

    def add(self, label: str, amount: float) -> LedgerEntry:
        entry = self._to_entry(self.store.insert(self.table, self._to_row(label, amount)))
        self.feed.publish(self.table)
        return entry

    def update(self, entry_id: str, label: Optional[str] = None, amount: Optional[float] = None) -> Optional[LedgerEntry]:
        r = self.store.update(self.table, str(entry_id), self._to_row(label, amount))
        if r is None:
            return None
        self.feed.publish(self.table)
        return self._to_entry(r)

    def delete(self, entry_id: str) -> bool:
        removed = self.store.delete(self.table, str(entry_id))
        if removed:
            self.feed.publish(self.table)
        return removed
