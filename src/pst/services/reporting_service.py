from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from pst.domain import validation as v
from pst.domain.models import LedgerEntry, Sale, StockItem


# Stock is valued at cost (quantity * buying price). Sale prices on stock rows
# are often 0 until re-entered, so they are not a usable valuation basis.
def total_stock_value(stock: Iterable[StockItem]) -> float:
    return round(sum(s.quantity * s.cost_price for s in stock), 2)


def total_items(stock: Iterable[StockItem]) -> int:
    return sum(s.quantity for s in stock)


@dataclass(frozen=True)
class VendorTotal:
    units: int
    value: float


def vendor_totals(stock: Iterable[StockItem]) -> dict[str, VendorTotal]:
    """Units and value at cost per vendor; rows without a vendor are left out."""
    acc: dict[str, tuple[int, float]] = {}
    for s in stock:
        if not s.vendor:
            continue
        units, value = acc.get(s.vendor, (0, 0.0))
        acc[s.vendor] = (units + s.quantity, value + s.quantity * s.cost_price)
    return {k: VendorTotal(units=u, value=round(val, 2)) for k, (u, val) in acc.items()}


def _sum_amounts(entries: Iterable[LedgerEntry]) -> float:
    return round(sum(e.amount for e in entries), 2)


def total_account_balance(accounts: Iterable[LedgerEntry]) -> float:
    return _sum_amounts(accounts)


def total_receivables(receivables: Iterable[LedgerEntry]) -> float:
    return _sum_amounts(receivables)


def total_expenses(expenses: Iterable[LedgerEntry]) -> float:
    return _sum_amounts(expenses)


def total_sales_revenue(sales: Iterable[Sale]) -> float:
    return round(sum(s.revenue for s in sales), 2)


def total_cost(sales: Iterable[Sale]) -> float:
    return round(sum(s.cost for s in sales), 2)


def total_sale_expenses(sales: Iterable[Sale]) -> float:
    return round(sum(s.extra_expenses for s in sales), 2)


def total_profit(sales: Iterable[Sale]) -> float:
    return round(sum(s.profit for s in sales), 2)


def profit_margin(sales: Iterable[Sale]) -> float:
    """Profit as a percentage of revenue, 0 when nothing was sold."""
    sales = list(sales)
    revenue = total_sales_revenue(sales)
    if revenue <= 0:
        return 0.0
    return round(total_profit(sales) / revenue * 100, 1)


def cash_position(accounts: float, receivables: float, expenses: float) -> float:
    return round(accounts + receivables - expenses, 2)


def filter_sales(
    sales: Iterable[Sale],
    payment_status: Optional[str] = None,
    vendor: Optional[str] = None,
    date_from: Optional[str | date] = None,
    date_to: Optional[str | date] = None,
) -> list[Sale]:
    """Inclusive date bounds; every given filter must match."""
    payment_status = v.payment_status(payment_status) if payment_status else None
    vendor = v.vendor(vendor) if vendor else None
    start = v.iso_date(date_from, "Date from")
    end = v.iso_date(date_to, "Date to")
    out = []
    for s in sales:
        if payment_status and s.payment_status != payment_status:
            continue
        if vendor and s.vendor != vendor:
            continue
        day = s.sale_date[:10]
        if start and day < start:
            continue
        if end and day > end:
            continue
        out.append(s)
    return out


@dataclass(frozen=True)
class DashboardSummary:
    total_stock_value: float
    total_items: int
    total_account_balance: float
    total_receivables: float
    total_expenses: float
    cash_position: float
    total_sales_revenue: float
    total_cost: float
    total_sale_expenses: float
    total_profit: float
    profit_margin: float
    sales_count: int


class ReportingService:
    def __init__(self, stock_repo, sales_repo, accounts_repo, receivables_repo, expenses_repo):
        self.stock = stock_repo
        self.sales = sales_repo
        self.accounts = accounts_repo
        self.receivables = receivables_repo
        self.expenses = expenses_repo

    def dashboard(self) -> DashboardSummary:
        stock = self.stock.list_items()
        sales = self.sales.list_sales()
        accounts = total_account_balance(self.accounts.list_entries())
        receivables = total_receivables(self.receivables.list_entries())
        expenses = total_expenses(self.expenses.list_entries())
        return DashboardSummary(
            total_stock_value=total_stock_value(stock),
            total_items=total_items(stock),
            total_account_balance=accounts,
            total_receivables=receivables,
            total_expenses=expenses,
            cash_position=cash_position(accounts, receivables, expenses),
            total_sales_revenue=total_sales_revenue(sales),
            total_cost=total_cost(sales),
            total_sale_expenses=total_sale_expenses(sales),
            total_profit=total_profit(sales),
            profit_margin=profit_margin(sales),
            sales_count=len(sales),
        )

    def export_excel(
        self,
        path: str,
        payment_status: Optional[str] = None,
        vendor: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def pct(cell):
            cell.number_format = '0.0"%"'

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        summary = self.dashboard()
        sales_rows = filter_sales(
            self.sales.list_sales(),
            payment_status=payment_status,
            vendor=vendor,
            date_from=date_from,
            date_to=date_to,
        )
        stock_rows = self.stock.list_items()

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Sales filter"
        ws["B3"] = (
            f"status={payment_status or 'all'} vendor={vendor or 'all'} "
            f"from={date_from or '-'} to={date_to or '-'}"
        )

        rows = [
            ("Total Stock Value (cost)", summary.total_stock_value, "money"),
            ("Items in Stock", summary.total_items, "int"),
            ("Account Balances", summary.total_account_balance, "money"),
            ("Receivables", summary.total_receivables, "money"),
            ("Expenses", summary.total_expenses, "money"),
            ("Cash Position", summary.cash_position, "money"),
            ("Sales (filtered)", len(sales_rows), "int"),
            ("Revenue (filtered)", total_sales_revenue(sales_rows), "money"),
            ("Cost (filtered)", total_cost(sales_rows), "money"),
            ("Net Profit (filtered)", total_profit(sales_rows), "money"),
            ("Profit Margin % (filtered)", profit_margin(sales_rows), "pct"),
        ]

        start_row = 5
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
            elif kind == "pct":
                pct(ws[f"B{r}"])

        set_widths(ws, {"A": 28, "B": 40})

        # -------- 2) Sales --------
        ws2 = wb.create_sheet("Sales")
        ws2.append([
            "Sale ID", "Sale Date", "Phone", "Qty",
            "Buying Price", "Selling Price", "Expenses", "Profit",
            "Customer", "Vendor", "Payment", "Notes",
        ])
        bold_row(ws2, 1)

        for out_row, s in enumerate(sales_rows, start=2):
            ws2.append([
                s.id, s.sale_date, s.item_name, int(s.quantity),
                float(s.unit_cost), float(s.unit_price), float(s.extra_expenses), float(s.profit),
                s.customer_name or "", s.vendor or "", s.payment_status, s.notes or "",
            ])
            for col in "EFGH":
                money(ws2[f"{col}{out_row}"])

        ws2.freeze_panes = "A2"
        set_widths(ws2, {
            "A": 34, "B": 12, "C": 28, "D": 6,
            "E": 14, "F": 14, "G": 12, "H": 14,
            "I": 22, "J": 12, "K": 10, "L": 30,
        })
        if ws2.max_row >= 2:
            add_table(ws2, "SalesDetail", 1, 1, ws2.max_row, 12)

        # -------- 3) Stock --------
        ws3 = wb.create_sheet("Stock")
        ws3.append(["Stock ID", "Phone", "Qty", "Buying Price", "Selling Price", "Value", "Vendor", "Purchase Date"])
        bold_row(ws3, 1)

        for out_row, s in enumerate(stock_rows, start=2):
            ws3.append([
                s.id, s.name, int(s.quantity), float(s.cost_price), float(s.sale_price),
                round(s.value_at_cost, 2), s.vendor or "", s.purchase_date or "",
            ])
            for col in "DEF":
                money(ws3[f"{col}{out_row}"])

        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 34, "B": 28, "C": 6, "D": 14, "E": 14, "F": 14, "G": 12, "H": 14})
        if ws3.max_row >= 2:
            add_table(ws3, "StockDetail", 1, 1, ws3.max_row, 8)

        wb.save(path)
