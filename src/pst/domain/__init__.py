from .models import LedgerEntry, Sale, SaleOutcome, StockItem, compute_profit
from .errors import (
    AppError,
    CompensationFailure,
    InsufficientStockError,
    NotFoundError,
    StoreError,
    ValidationError,
)

__all__ = [
    "StockItem",
    "Sale",
    "SaleOutcome",
    "LedgerEntry",
    "compute_profit",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "InsufficientStockError",
    "CompensationFailure",
]
