from __future__ import annotations

from typing import Optional

from pst.domain.models import StockItem
from pst.repositories.contracts import STOCK_TABLE, TableStore
from pst.repositories.events import ChangeFeed


def _to_item(r: dict) -> StockItem:
    return StockItem(
        id=str(r["id"]),
        name=str(r["phone_name"]),
        quantity=int(r["quantity"]),
        cost_price=float(r["buying_price"]),
        sale_price=float(r.get("selling_price") or 0),
        vendor=r.get("vendor"),
        purchase_date=r.get("purchase_date"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


_FIELD_COLUMNS = {
    "id": "id",
    "name": "phone_name",
    "quantity": "quantity",
    "cost_price": "buying_price",
    "sale_price": "selling_price",
    "vendor": "vendor",
    "purchase_date": "purchase_date",
}


def _to_row(fields: dict) -> dict:
    return {_FIELD_COLUMNS[k]: v for k, v in fields.items() if k in _FIELD_COLUMNS}


class StockRepository:
    table = STOCK_TABLE

    def __init__(self, store: TableStore, feed: ChangeFeed | None = None):
        self.store = store
        self.feed = feed or ChangeFeed()

    def list_items(self) -> list[StockItem]:
        return [_to_item(r) for r in self.store.select(self.table, order_by="created_at")]

    def get(self, item_id: str) -> Optional[StockItem]:
        r = self.store.get(self.table, str(item_id))
        return _to_item(r) if r else None

    def add(self, **fields) -> StockItem:
        item = _to_item(self.store.insert(self.table, _to_row(fields)))
        self.feed.publish(self.table)
        return item

    def update(self, item_id: str, **fields) -> Optional[StockItem]:
        r = self.store.update(self.table, str(item_id), _to_row(fields))
        if r is None:
            return None
        self.feed.publish(self.table)
        return _to_item(r)

    def set_quantity(self, item_id: str, quantity: int, expected: int) -> Optional[StockItem]:
        """Compare-and-swap the quantity; None when it no longer equals `expected`."""
        r = self.store.update(
            self.table, str(item_id), {"quantity": int(quantity)}, expected={"quantity": int(expected)}
        )
        if r is None:
            return None
        self.feed.publish(self.table)
        return _to_item(r)

    def delete(self, item_id: str, expected_quantity: int | None = None) -> bool:
        expected = None if expected_quantity is None else {"quantity": int(expected_quantity)}
        removed = self.store.delete(self.table, str(item_id), expected=expected)
        if removed:
            self.feed.publish(self.table)
        return removed
