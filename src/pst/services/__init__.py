from .stock_service import StockService
from .ledger_service import LedgerService
from .sales_service import SalesService
from .reporting_service import ReportingService
from .excel_service import ExcelService

__all__ = [
    "StockService",
    "LedgerService",
    "SalesService",
    "ReportingService",
    "ExcelService",
]
