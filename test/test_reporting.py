from pathlib import Path

import pytest
from openpyxl import load_workbook

from conftest import make_app
from pst.domain.errors import ValidationError
from pst.domain.models import Sale
from pst.services import reporting_service as rs


def _sale(profit, price=10.0, cost=5.0, qty=1, expenses=0.0, **kw):
    base = dict(
        id="s", stock_item_id=None, item_name="Phone", quantity=qty, unit_cost=cost,
        unit_price=price, extra_expenses=expenses, profit=profit, sale_date="2024-01-01",
    )
    base.update(kw)
    return Sale(**base)


def test_total_profit_is_sum_of_sale_profits():
    sales = [_sale(0.1), _sale(0.2), _sale(33.33), _sale(-5.0)]

    assert rs.total_profit(sales) == round(0.1 + 0.2 + 33.33 - 5.0, 2)
    assert rs.total_profit([]) == 0


def test_sales_totals_and_margin():
    sales = [
        _sale(95.0, price=150.0, cost=100.0, qty=2, expenses=5.0),
        _sale(20.0, price=70.0, cost=50.0, qty=1),
    ]

    assert rs.total_sales_revenue(sales) == 370.0
    assert rs.total_cost(sales) == 250.0
    assert rs.total_sale_expenses(sales) == 5.0
    assert rs.profit_margin(sales) == round(115.0 / 370.0 * 100, 1)
    assert rs.profit_margin([]) == 0.0


def test_cash_position():
    assert rs.cash_position(1000.0, 300.0, 250.0) == 1050.0


def test_dashboard_reads_current_collections(tmp_path: Path):
    app = make_app(tmp_path)
    item = app.stock.add_stock("Pixel 8", 5, 100.0, 150.0)
    app.stock.add_stock("Pixel 7", 2, 80.0)
    app.accounts.add_entry("Bank", 1000.0)
    app.receivables.add_entry("Ravi", 300.0)
    app.expenses.add_entry("Rent", 250.0)

    before = app.reporting.dashboard()
    assert before.total_stock_value == 660.0
    assert before.total_items == 7
    assert before.cash_position == 1050.0
    assert before.sales_count == 0

    app.sales.create_sale({"stock_item_id": item.id, "quantity": 5, "unit_price": 150.0})

    after = app.reporting.dashboard()
    assert after.total_stock_value == 160.0
    assert after.total_items == 2
    assert after.total_sales_revenue == 750.0
    assert after.total_cost == 500.0
    assert after.total_profit == 250.0
    assert after.sales_count == 1


def test_export_excel_writes_summary_sales_and_stock(tmp_path: Path):
    app = make_app(tmp_path)
    item = app.stock.add_stock("Pixel 8", 5, 100.0, 150.0)
    app.sales.create_sale({"stock_item_id": item.id, "quantity": 1, "unit_price": 150.0, "sale_date": "2024-01-05"})
    app.sales.create_sale(
        {"stock_item_id": item.id, "quantity": 1, "unit_price": 160.0, "sale_date": "2024-02-05", "payment_status": "pending"}
    )

    path = tmp_path / "report.xlsx"
    app.reporting.export_excel(str(path), payment_status="pending")

    wb = load_workbook(path)
    assert wb.sheetnames == ["Summary", "Sales", "Stock"]
    sales_ws = wb["Sales"]
    assert sales_ws.max_row == 2
    assert sales_ws["K2"].value == "pending"
    assert wb["Summary"]["A15"].value == "Profit Margin % (filtered)"
    assert wb["Summary"]["B15"].number_format == '0.0"%"'
    assert wb["Stock"]["C2"].value == 3


def test_filter_sales_normalizes_and_validates_filters():
    sales = [
        _sale(1.0, id="a", payment_status="paid", vendor="Website"),
        _sale(1.0, id="b", payment_status="pending", vendor="Anees"),
    ]

    assert [s.id for s in rs.filter_sales(sales, payment_status=" Paid ")] == ["a"]
    assert [s.id for s in rs.filter_sales(sales, vendor=" Anees ")] == ["b"]
    with pytest.raises(ValidationError):
        rs.filter_sales(sales, payment_status="refunded")
    with pytest.raises(ValidationError):
        rs.filter_sales(sales, vendor="Nobody")
