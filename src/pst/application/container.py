from __future__ import annotations

from dataclasses import dataclass

from pst.config import Settings, get_app_paths
from pst.domain.models import ACCOUNT, EXPENSE, RECEIVABLE
from pst.repositories.contracts import TableStore
from pst.repositories.events import ChangeFeed
from pst.repositories.ledger_repo import LedgerRepository
from pst.repositories.rest_store import RestStore
from pst.repositories.sales_repo import SalesRepository
from pst.repositories.sqlite_store import SqliteStore
from pst.repositories.stock_repo import StockRepository
from pst.services.excel_service import ExcelService
from pst.services.ledger_service import LedgerService
from pst.services.reporting_service import ReportingService
from pst.services.sales_service import SalesService
from pst.services.stock_service import StockService


@dataclass(frozen=True)
class AppContainer:
    store: TableStore
    feed: ChangeFeed
    stock: StockService
    sales: SalesService
    accounts: LedgerService
    receivables: LedgerService
    expenses: LedgerService
    reporting: ReportingService
    excel: ExcelService


def build_store(settings: Settings) -> TableStore:
    if settings.backend == "rest":
        return RestStore(settings.rest_url or "", settings.rest_key or "", timeout=settings.rest_timeout)
    store = SqliteStore(settings.db_path or get_app_paths().db_path)
    store.init_db()
    return store


def build_container(settings: Settings, store: TableStore | None = None) -> AppContainer:
    store = store or build_store(settings)
    feed = ChangeFeed()

    stock_repo = StockRepository(store, feed)
    sales_repo = SalesRepository(store, feed)
    accounts_repo = LedgerRepository(store, ACCOUNT, feed)
    receivables_repo = LedgerRepository(store, RECEIVABLE, feed)
    expenses_repo = LedgerRepository(store, EXPENSE, feed)

    stock = StockService(stock_repo)

    return AppContainer(
        store=store,
        feed=feed,
        stock=stock,
        sales=SalesService(sales_repo, stock_repo, strict_stock=settings.strict_stock),
        accounts=LedgerService(accounts_repo),
        receivables=LedgerService(receivables_repo),
        expenses=LedgerService(expenses_repo),
        reporting=ReportingService(stock_repo, sales_repo, accounts_repo, receivables_repo, expenses_repo),
        excel=ExcelService(stock),
    )
