from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


VENDORS = ("Sandeep", "Abubakar", "Website", "Anees")
PAYMENT_STATUSES = ("paid", "pending", "partial")

ACCOUNT = "account"
RECEIVABLE = "receivable"
EXPENSE = "expense"


@dataclass(frozen=True)
class StockItem:
    id: str
    name: str
    quantity: int
    cost_price: float
    sale_price: float
    vendor: Optional[str] = None
    purchase_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def value_at_cost(self) -> float:
        return self.quantity * self.cost_price


@dataclass(frozen=True)
class Sale:
    id: str
    stock_item_id: Optional[str]
    item_name: str
    quantity: int
    unit_cost: float
    unit_price: float
    extra_expenses: float
    profit: float
    sale_date: str
    payment_status: str = "paid"
    customer_name: Optional[str] = None
    vendor: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def revenue(self) -> float:
        return self.unit_price * self.quantity

    @property
    def cost(self) -> float:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class LedgerEntry:
    id: str
    kind: str
    label: str
    amount: float
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class SaleOutcome:
    sale: Sale
    warnings: tuple = field(default_factory=tuple)

    @property
    def stock_in_sync(self) -> bool:
        return not self.warnings


def compute_profit(unit_price: float, unit_cost: float, quantity: int, extra_expenses: float) -> float:
    return round((float(unit_price) - float(unit_cost)) * int(quantity) - float(extra_expenses), 2)
