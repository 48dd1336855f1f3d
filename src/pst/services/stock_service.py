from __future__ import annotations

import logging
from typing import Mapping, Optional

from pst.domain import validation as v
from pst.domain.errors import NotFoundError, ValidationError
from pst.domain.models import StockItem
from pst.repositories.stock_repo import StockRepository
from pst.services import reporting_service

log = logging.getLogger("pst.stock")


class StockService:
    def __init__(self, repo: StockRepository):
        self.repo = repo

    def list_stock(self) -> list[StockItem]:
        return self.repo.list_items()

    def available_stock(self) -> list[StockItem]:
        """Items that can still be sold."""
        return [s for s in self.repo.list_items() if s.quantity > 0]

    def vendor_totals(self) -> dict[str, reporting_service.VendorTotal]:
        return reporting_service.vendor_totals(self.repo.list_items())

    def total_items(self) -> int:
        return reporting_service.total_items(self.repo.list_items())

    def get_stock(self, item_id: str) -> StockItem:
        item = self.repo.get(item_id)
        if not item:
            raise NotFoundError(f"Stock item not found: {item_id}")
        return item

    def add_stock(
        self,
        name: str,
        quantity: int,
        cost_price: float,
        sale_price: float = 0.0,
        vendor: Optional[str] = None,
        purchase_date: Optional[str] = None,
    ) -> StockItem:
        item = self.repo.add(
            name=v.required_text(name, "Phone name"),
            quantity=v.whole_number(quantity, "Quantity"),
            cost_price=v.money(cost_price, "Cost price"),
            sale_price=v.money(sale_price, "Sale price"),
            vendor=v.vendor(vendor),
            purchase_date=v.iso_date(purchase_date, "Purchase date"),
        )
        log.info("stock_added stock_id=%s name=%s qty=%s", item.id, item.name, item.quantity)
        return item

    def update_stock(self, item_id: str, changes: Mapping[str, object]) -> StockItem:
        fields = {}
        if "name" in changes:
            fields["name"] = v.required_text(changes["name"], "Phone name")
        if "quantity" in changes:
            fields["quantity"] = v.whole_number(changes["quantity"], "Quantity")
        if "cost_price" in changes:
            fields["cost_price"] = v.money(changes["cost_price"], "Cost price")
        if "sale_price" in changes:
            fields["sale_price"] = v.money(changes["sale_price"], "Sale price")
        if "vendor" in changes:
            fields["vendor"] = v.vendor(changes["vendor"])
        if "purchase_date" in changes:
            fields["purchase_date"] = v.iso_date(changes["purchase_date"], "Purchase date")
        if not fields:
            raise ValidationError("Nothing to update.")

        item = self.repo.update(item_id, **fields)
        if not item:
            raise NotFoundError(f"Stock item not found: {item_id}")
        log.info("stock_updated stock_id=%s fields=%s", item_id, ",".join(sorted(fields)))
        return item

    def delete_stock(self, item_id: str) -> None:
        if not self.repo.delete(item_id):
            raise NotFoundError(f"Stock item not found: {item_id}")
        log.info("stock_deleted stock_id=%s", item_id)
