from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Optional

from pst.domain import validation as v
from pst.domain.errors import (
    AppError,
    CompensationFailure,
    InsufficientStockError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from pst.domain.models import Sale, SaleOutcome, StockItem, compute_profit
from pst.repositories.sales_repo import SalesRepository
from pst.repositories.stock_repo import StockRepository
from pst.services.reporting_service import filter_sales

log = logging.getLogger("pst.sales")

# Accepted but never written: identity, timestamps and the derived profit.
_IGNORED_FIELDS = frozenset({"id", "profit", "created_at", "updated_at"})
_PROFIT_FIELDS = ("unit_price", "unit_cost", "quantity", "extra_expenses")
_LABELS = {
    "item_name": "Phone name",
    "quantity": "Quantity",
    "unit_cost": "Buying price",
    "unit_price": "Selling price",
    "extra_expenses": "Expenses",
}


class SalesService:
    """Records sales and keeps the linked stock rows in step with them.

    The sale row is the source of truth. Stock is adjusted after the sale
    write; if that adjustment fails the sale stays and the failure comes back
    as a CompensationFailure in `SaleOutcome.warnings` (or is raised when
    `strict_stock` is set).
    """

    def __init__(
        self,
        sales_repo: SalesRepository,
        stock_repo: StockRepository,
        strict_stock: bool = False,
        max_stock_attempts: int = 3,
    ):
        self.sales = sales_repo
        self.stock = stock_repo
        self.strict_stock = strict_stock
        self.max_stock_attempts = max(1, int(max_stock_attempts))

    # ---------- reads ----------
    def list_sales(self) -> list[Sale]:
        return self.sales.list_sales()

    def get_sale(self, sale_id: str) -> Sale:
        sale = self.sales.get(sale_id)
        if not sale:
            raise NotFoundError(f"Sale not found: {sale_id}")
        return sale

    def filter_sales(
        self,
        payment_status: Optional[str] = None,
        vendor: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[Sale]:
        return filter_sales(
            self.sales.list_sales(),
            payment_status=payment_status,
            vendor=vendor,
            date_from=date_from,
            date_to=date_to,
        )

    # ---------- writes ----------
    def create_sale(self, data: Mapping[str, object]) -> SaleOutcome:
        """
        data: {stock_item_id?, quantity, unit_price, unit_cost?, extra_expenses?,
               item_name?, customer_name?, vendor?, sale_date?, payment_status?, notes?}

        item_name, unit_cost and vendor are copied from the stock row when a
        linked sale leaves them out.
        """
        stock_id = v.optional_text(data.get("stock_item_id"))
        fields = self._clean(data)

        required = ["quantity", "unit_price"]
        if not stock_id:
            required += ["item_name", "unit_cost"]
        for key in required:
            if key not in fields:
                raise ValidationError(f"{_LABELS[key]} is required.")

        stock: StockItem | None = None
        if stock_id:
            stock = self.stock.get(stock_id)
            if not stock:
                raise NotFoundError(f"Stock item not found: {stock_id}")
            if stock.quantity < fields["quantity"]:
                raise InsufficientStockError(stock.quantity, fields["quantity"], stock.name)
            fields.setdefault("item_name", stock.name)
            fields.setdefault("unit_cost", stock.cost_price)
            if fields.get("vendor") is None:
                fields["vendor"] = stock.vendor

        fields.setdefault("extra_expenses", 0.0)
        fields.setdefault("payment_status", "paid")
        fields.setdefault("sale_date", date.today().isoformat())
        fields["profit"] = compute_profit(
            fields["unit_price"], fields["unit_cost"], fields["quantity"], fields["extra_expenses"]
        )

        sale = self.sales.add(stock_item_id=stock_id, **fields)
        log.info(
            "sale_created sale_id=%s stock_id=%s qty=%s profit=%.2f",
            sale.id, stock_id, sale.quantity, sale.profit,
        )
        warnings = self._compensate(sale, sale.quantity) if stock_id else ()
        return SaleOutcome(sale=sale, warnings=warnings)

    def update_sale(self, sale_id: str, changes: Mapping[str, object]) -> SaleOutcome:
        fields = self._clean(changes)
        relink = "stock_item_id" in changes
        requested = v.optional_text(changes["stock_item_id"]) if relink else None
        if not fields and not relink:
            raise ValidationError("Nothing to update.")

        # the link comparison needs the stored row; it still runs before any write
        existing = self.get_sale(sale_id)
        if relink and requested != existing.stock_item_id:
            raise ValidationError("The stock item of a sale cannot be changed. Delete and re-create the sale.")
        if not fields:
            raise ValidationError("Nothing to update.")

        if any(k in fields for k in _PROFIT_FIELDS):
            merged = {k: fields.get(k, getattr(existing, k)) for k in _PROFIT_FIELDS}
            fields["profit"] = compute_profit(
                merged["unit_price"], merged["unit_cost"], merged["quantity"], merged["extra_expenses"]
            )

        delta = fields.get("quantity", existing.quantity) - existing.quantity
        if delta > 0 and existing.stock_item_id:
            # checked before anything is written so a failure leaves the sale untouched
            item = self.stock.get(existing.stock_item_id)
            available = item.quantity if item else 0
            if delta > available:
                raise InsufficientStockError(available, delta, existing.item_name)

        sale = self.sales.update(existing.id, **fields)
        if not sale:
            raise NotFoundError(f"Sale not found: {sale_id}")
        log.info("sale_updated sale_id=%s fields=%s qty_delta=%s", sale.id, ",".join(sorted(fields)), delta)

        warnings = self._compensate(sale, delta) if delta and sale.stock_item_id else ()
        return SaleOutcome(sale=sale, warnings=warnings)

    def delete_sale(self, sale_id: str) -> SaleOutcome:
        sale = self.get_sale(sale_id)
        if not self.sales.delete(sale.id):
            raise NotFoundError(f"Sale not found: {sale_id}")
        log.info("sale_deleted sale_id=%s stock_id=%s qty=%s", sale.id, sale.stock_item_id, sale.quantity)

        if not sale.stock_item_id:
            log.warning("stock_restore_skipped sale_id=%s reason=no_stock_link", sale.id)
            return SaleOutcome(sale=sale)
        return SaleOutcome(sale=sale, warnings=self._compensate(sale, -sale.quantity))

    # ---------- stock reconciliation ----------
    def _compensate(self, sale: Sale, taken: int) -> tuple:
        try:
            self._adjust_stock(sale, taken)
        except AppError as e:
            failure = CompensationFailure(sale, e)
            log.error(
                "stock_compensation_failed sale_id=%s stock_id=%s qty_delta=%s error=%s",
                sale.id, sale.stock_item_id, taken, e,
            )
            if self.strict_stock:
                raise failure from e
            return (failure,)
        return ()

    def _adjust_stock(self, sale: Sale, taken: int) -> None:
        """Remove `taken` units from the linked stock row (negative puts units back).

        Every write is conditional on the quantity just read, so a concurrent
        change makes it re-read instead of overwriting.
        """
        stock_id = sale.stock_item_id
        last_error: StoreError | None = None
        for attempt in range(1, self.max_stock_attempts + 1):
            item = self.stock.get(stock_id)

            if item is None:
                if taken > 0:
                    raise InsufficientStockError(0, taken, sale.item_name)
                try:
                    restored = self.stock.add(
                        id=stock_id,
                        name=sale.item_name,
                        quantity=-taken,
                        cost_price=sale.unit_cost,
                        sale_price=0.0,
                        vendor=sale.vendor,
                        purchase_date=None,
                    )
                except StoreError as e:
                    # another writer may have recreated the row; the next pass re-reads it
                    last_error = e
                    log.warning("stock_write_conflict stock_id=%s attempt=%s error=%s", stock_id, attempt, e)
                    continue
                log.info("stock_recreated stock_id=%s qty=%s", restored.id, restored.quantity)
                return

            remaining = item.quantity - taken
            if remaining < 0:
                raise InsufficientStockError(item.quantity, taken, item.name)
            if remaining == 0:
                if self.stock.delete(item.id, expected_quantity=item.quantity):
                    log.info("stock_sold_out stock_id=%s sale_id=%s", item.id, sale.id)
                    return
            elif self.stock.set_quantity(item.id, remaining, expected=item.quantity):
                log.info("stock_adjusted stock_id=%s qty=%s->%s", item.id, item.quantity, remaining)
                return

            log.warning("stock_write_conflict stock_id=%s attempt=%s", item.id, attempt)

        raise StoreError(f"Stock {stock_id} kept changing; gave up after {self.max_stock_attempts} attempts") from last_error

    # ---------- validation ----------
    @staticmethod
    def _clean(data: Mapping[str, object]) -> dict:
        fields: dict = {}
        unknown = []
        for key, value in data.items():
            if key in _IGNORED_FIELDS or key == "stock_item_id":
                continue
            if key == "item_name":
                fields[key] = v.required_text(value, _LABELS[key])
            elif key == "quantity":
                fields[key] = v.whole_number(value, _LABELS[key], minimum=1)
            elif key in ("unit_cost", "unit_price", "extra_expenses"):
                fields[key] = v.money(value, _LABELS[key])
            elif key in ("customer_name", "notes"):
                fields[key] = v.optional_text(value)
            elif key == "vendor":
                fields[key] = v.vendor(value)
            elif key == "payment_status":
                fields[key] = v.payment_status(value)
            elif key == "sale_date":
                sale_date = v.iso_date(value, "Sale date")
                if sale_date is not None:
                    fields[key] = sale_date
            else:
                unknown.append(key)
        if unknown:
            raise ValidationError(f"Unknown sale field(s): {', '.join(sorted(unknown))}")
        return fields
