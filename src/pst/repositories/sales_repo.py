from __future__ import annotations

from typing import Optional

from pst.domain.models import Sale
from pst.repositories.contracts import SALES_TABLE, TableStore
from pst.repositories.events import ChangeFeed


_FIELD_COLUMNS = {
    "id": "id",
    "stock_item_id": "stock_id",
    "item_name": "phone_name",
    "quantity": "quantity",
    "unit_cost": "buying_price",
    "unit_price": "selling_price",
    "extra_expenses": "expenses",
    "profit": "profit",
    "customer_name": "customer_name",
    "vendor": "vendor",
    "sale_date": "sale_date",
    "payment_status": "payment_status",
    "notes": "notes",
}


def _to_sale(r: dict) -> Sale:
    stock_id = r.get("stock_id")
    return Sale(
        id=str(r["id"]),
        stock_item_id=str(stock_id) if stock_id is not None else None,
        item_name=str(r["phone_name"]),
        quantity=int(r["quantity"]),
        unit_cost=float(r["buying_price"]),
        unit_price=float(r["selling_price"]),
        extra_expenses=float(r.get("expenses") or 0),
        profit=float(r["profit"]),
        sale_date=str(r["sale_date"]),
        payment_status=str(r.get("payment_status") or "paid"),
        customer_name=r.get("customer_name"),
        vendor=r.get("vendor"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_row(fields: dict) -> dict:
    return {_FIELD_COLUMNS[k]: v for k, v in fields.items() if k in _FIELD_COLUMNS}


class SalesRepository:
    table = SALES_TABLE

    def __init__(self, store: TableStore, feed: ChangeFeed | None = None):
        self.store = store
        self.feed = feed or ChangeFeed()

    def list_sales(self) -> list[Sale]:
        return [_to_sale(r) for r in self.store.select(self.table, order_by="sale_date")]

    def get(self, sale_id: str) -> Optional[Sale]:
        r = self.store.get(self.table, str(sale_id))
        return _to_sale(r) if r else None

    def add(self, **fields) -> Sale:
        sale = _to_sale(self.store.insert(self.table, _to_row(fields)))
        self.feed.publish(self.table)
        return sale

    def update(self, sale_id: str, **fields) -> Optional[Sale]:
        r = self.store.update(self.table, str(sale_id), _to_row(fields))
        if r is None:
            return None
        self.feed.publish(self.table)
        return _to_sale(r)

    def delete(self, sale_id: str) -> bool:
        removed = self.store.delete(self.table, str(sale_id))
        if removed:
            self.feed.publish(self.table)
        return removed
