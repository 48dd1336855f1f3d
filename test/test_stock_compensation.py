from pathlib import Path

import pytest

from conftest import make_app
from pst.domain.errors import CompensationFailure, StoreError
from pst.repositories.sqlite_store import SqliteStore


class FailingStockStore(SqliteStore):
    """Sale writes go through; every stock write after the sale fails."""

    fail_stock_writes = False

    def update(self, table, row_id, values, expected=None):
        if table == "phones_stock" and self.fail_stock_writes:
            raise StoreError("boom")
        return super().update(table, row_id, values, expected)

    def delete(self, table, row_id, expected=None):
        if table == "phones_stock" and self.fail_stock_writes:
            raise StoreError("boom")
        return super().delete(table, row_id, expected)

    def insert(self, table, row):
        if table == "phones_stock" and self.fail_stock_writes:
            raise StoreError("boom")
        return super().insert(table, row)


class RacingStore(SqliteStore):
    """Another writer takes `stolen` units right after the n-th stock read."""

    steal_on_read = 0
    stolen = 0
    reads = 0

    def get(self, table, row_id):
        row = super().get(table, row_id)
        if table == "phones_stock" and row:
            self.reads += 1
            if self.reads == self.steal_on_read:
                super().update(table, row_id, {"quantity": row["quantity"] - self.stolen})
        return row


def test_stock_failure_keeps_sale_and_returns_warning(tmp_path: Path):
    store = FailingStockStore(tmp_path / "t.db")
    app = make_app(tmp_path, store=store)
    item = app.stock.add_stock("Pixel 8", 5, 100.0, 150.0)

    store.fail_stock_writes = True
    outcome = app.sales.create_sale({"stock_item_id": item.id, "quantity": 2, "unit_price": 150.0})

    assert not outcome.stock_in_sync
    assert isinstance(outcome.warnings[0], CompensationFailure)
    assert outcome.warnings[0].sale.id == outcome.sale.id
    assert app.sales.get_sale(outcome.sale.id).quantity == 2
    assert app.stock.get_stock(item.id).quantity == 5


def test_strict_mode_raises_but_sale_persists(tmp_path: Path):
    store = FailingStockStore(tmp_path / "t.db")
    app = make_app(tmp_path, store=store, strict_stock=True)
    item = app.stock.add_stock("Pixel 8", 5, 100.0, 150.0)

    store.fail_stock_writes = True
    with pytest.raises(CompensationFailure) as exc:
        app.sales.create_sale({"stock_item_id": item.id, "quantity": 2, "unit_price": 150.0})

    assert app.sales.get_sale(exc.value.sale.id).stock_item_id == item.id


def test_delete_restore_failure_still_deletes_sale(tmp_path: Path):
    store = FailingStockStore(tmp_path / "t.db")
    app = make_app(tmp_path, store=store)
    item = app.stock.add_stock("Pixel 8", 2, 100.0, 150.0)
    sale = app.sales.create_sale({"stock_item_id": item.id, "quantity": 2, "unit_price": 150.0}).sale

    store.fail_stock_writes = True
    outcome = app.sales.delete_sale(sale.id)

    assert len(outcome.warnings) == 1
    assert app.sales.list_sales() == []
    assert app.stock.list_stock() == []


def test_concurrent_decrement_is_not_overwritten(tmp_path: Path):
    store = RacingStore(tmp_path / "t.db")
    app = make_app(tmp_path, store=store)
    item = app.stock.add_stock("Pixel 8", 5, 100.0, 150.0)

    # the precheck and the first stock read see 5; someone takes 1 before the write lands
    store.reads, store.steal_on_read, store.stolen = 0, 2, 1
    outcome = app.sales.create_sale({"stock_item_id": item.id, "quantity": 2, "unit_price": 150.0})

    assert outcome.stock_in_sync
    assert app.stock.get_stock(item.id).quantity == 2


def test_concurrent_sell_out_surfaces_as_warning(tmp_path: Path):
    store = RacingStore(tmp_path / "t.db")
    app = make_app(tmp_path, store=store)
    item = app.stock.add_stock("Pixel 8", 3, 100.0, 150.0)

    store.reads, store.steal_on_read, store.stolen = 0, 2, 2
    outcome = app.sales.create_sale({"stock_item_id": item.id, "quantity": 3, "unit_price": 150.0})

    assert len(outcome.warnings) == 1
    assert outcome.warnings[0].cause.available == 1
    assert app.stock.get_stock(item.id).quantity == 1


class RestockingStore(SqliteStore):
    """Another writer re-adds a sold-out row just before our insert lands."""

    restock = 0

    def insert(self, table, row):
        if table == "phones_stock" and self.restock:
            competing = dict(row, quantity=self.restock)
            self.restock = 0
            super().insert(table, competing)
        return super().insert(table, row)


def test_concurrent_restock_during_restore_is_merged(tmp_path: Path):
    store = RestockingStore(tmp_path / "t.db")
    app = make_app(tmp_path, store=store)
    item = app.stock.add_stock("Pixel 8", 3, 100.0, 150.0)
    sale = app.sales.create_sale({"stock_item_id": item.id, "quantity": 3, "unit_price": 150.0}).sale
    assert app.stock.list_stock() == []

    store.restock = 2
    outcome = app.sales.delete_sale(sale.id)

    assert outcome.stock_in_sync
    assert app.stock.get_stock(item.id).quantity == 5
