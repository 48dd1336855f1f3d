from pathlib import Path

import pytest

from conftest import make_app
from pst.domain.errors import NotFoundError, ValidationError


def test_stock_crud_and_validation(tmp_path: Path):
    app = make_app(tmp_path)

    item = app.stock.add_stock("Pixel 8", 4, 100.0, vendor="Website", purchase_date="2024-05-01")
    assert item.sale_price == 0.0
    assert item.purchase_date == "2024-05-01"

    updated = app.stock.update_stock(item.id, {"sale_price": 140.0, "quantity": 6})
    assert updated.sale_price == 140.0
    assert updated.quantity == 6

    with pytest.raises(ValidationError, match="Quantity must be >= 0"):
        app.stock.add_stock("Bad", -1, 10.0)
    with pytest.raises(ValidationError, match="Unknown vendor"):
        app.stock.update_stock(item.id, {"vendor": "Someone"})
    with pytest.raises(ValidationError, match="Phone name is required"):
        app.stock.add_stock("  ", 1, 10.0)

    app.stock.delete_stock(item.id)
    with pytest.raises(NotFoundError):
        app.stock.delete_stock(item.id)
    with pytest.raises(NotFoundError):
        app.stock.update_stock(item.id, {"quantity": 1})


def test_deleting_stock_does_not_touch_sale_history(tmp_path: Path):
    app = make_app(tmp_path)
    item = app.stock.add_stock("Pixel 8", 4, 100.0, 150.0)
    sale = app.sales.create_sale({"stock_item_id": item.id, "quantity": 1, "unit_price": 150.0}).sale

    app.stock.delete_stock(item.id)

    stored = app.sales.get_sale(sale.id)
    assert stored.stock_item_id == item.id
    assert stored.item_name == "Pixel 8"


def test_available_stock_and_vendor_totals(tmp_path: Path):
    app = make_app(tmp_path)
    app.stock.add_stock("Pixel 8", 2, 100.0, vendor="Website")
    app.stock.add_stock("Pixel 7", 3, 50.0, vendor="Website")
    app.stock.add_stock("Nokia", 0, 10.0, vendor="Anees")
    app.stock.add_stock("No vendor", 1, 10.0)

    assert {s.name for s in app.stock.available_stock()} == {"Pixel 8", "Pixel 7", "No vendor"}
    totals = app.stock.vendor_totals()
    assert totals["Website"].units == 5
    assert totals["Website"].value == 350.0
    assert totals["Anees"].units == 0
    assert "None" not in totals
    assert app.stock.total_items() == 6


def test_ledger_kinds_are_separate_collections(tmp_path: Path):
    app = make_app(tmp_path)

    acc = app.accounts.add_entry("Bank", 1000.0)
    app.accounts.add_entry("Overdraft", -200.0)
    app.receivables.add_entry("Ravi", 300.0)
    app.expenses.add_entry("Rent", 250.0)

    assert app.accounts.total() == 800.0
    assert app.receivables.total() == 300.0
    assert app.expenses.total() == 250.0
    assert [e.label for e in app.receivables.list_entries()] == ["Ravi"]

    updated = app.accounts.update_entry(acc.id, amount=1200.0)
    assert updated.label == "Bank"
    assert app.accounts.total() == 1000.0

    app.accounts.delete_entry(acc.id)
    with pytest.raises(NotFoundError):
        app.accounts.delete_entry(acc.id)


def test_receivables_and_expenses_reject_negative_amounts(tmp_path: Path):
    app = make_app(tmp_path)

    with pytest.raises(ValidationError, match="Amount must be >= 0"):
        app.receivables.add_entry("Ravi", -1)
    with pytest.raises(ValidationError, match="Expense name is required"):
        app.expenses.add_entry("", 5)
    with pytest.raises(ValidationError, match="Nothing to update"):
        app.expenses.update_entry("x")


def test_writes_publish_change_events(tmp_path: Path):
    app = make_app(tmp_path)
    seen = []
    app.feed.subscribe("phones_stock", seen.append)
    unsubscribe = app.feed.subscribe("sales", seen.append)

    item = app.stock.add_stock("Pixel 8", 1, 100.0)
    app.sales.create_sale({"stock_item_id": item.id, "quantity": 1, "unit_price": 150.0})
    unsubscribe()
    app.stock.add_stock("Pixel 7", 1, 100.0)

    assert seen == ["phones_stock", "sales", "phones_stock", "phones_stock"]


def test_failing_listener_does_not_break_writes(tmp_path: Path):
    app = make_app(tmp_path)

    def broken(_table):
        raise RuntimeError("view crashed")

    app.feed.subscribe("phones_stock", broken)
    item = app.stock.add_stock("Pixel 8", 1, 100.0)

    assert app.stock.get_stock(item.id).quantity == 1
