from __future__ import annotations

from typing import Mapping, Optional, Protocol


STOCK_TABLE = "phones_stock"
SALES_TABLE = "sales"
ACCOUNTS_TABLE = "account_balances"
RECEIVABLES_TABLE = "balances_to_receive"
EXPENSES_TABLE = "expenses"

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    STOCK_TABLE: (
        "id", "phone_name", "quantity", "buying_price", "selling_price",
        "vendor", "purchase_date", "created_at", "updated_at",
    ),
    SALES_TABLE: (
        "id", "stock_id", "phone_name", "quantity", "buying_price", "selling_price",
        "expenses", "profit", "customer_name", "vendor", "sale_date",
        "payment_status", "notes", "created_at", "updated_at",
    ),
    ACCOUNTS_TABLE: ("id", "account_name", "balance", "created_at", "updated_at"),
    RECEIVABLES_TABLE: ("id", "customer_name", "amount", "created_at", "updated_at"),
    EXPENSES_TABLE: ("id", "expense_name", "amount", "created_at", "updated_at"),
}


class TableStore(Protocol):
    """Row-level access to the named collections.

    `expected` turns update/delete into a compare-and-swap: the write only
    applies when every listed column still holds the given value.
    """

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> list[dict]: ...

    def get(self, table: str, row_id: str) -> Optional[dict]: ...

    def insert(self, table: str, row: Mapping[str, object]) -> dict: ...

    def update(
        self,
        table: str,
        row_id: str,
        values: Mapping[str, object],
        expected: Optional[Mapping[str, object]] = None,
    ) -> Optional[dict]: ...

    def delete(self, table: str, row_id: str, expected: Optional[Mapping[str, object]] = None) -> bool: ...
