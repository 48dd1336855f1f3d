class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class StoreError(AppError):
    """The data store rejected a call or could not be reached."""


class InsufficientStockError(AppError):
    def __init__(self, available: int, required: int, item_name: str | None = None):
        self.available = int(available)
        self.required = int(required)
        self.item_name = item_name
        label = f" for {item_name}" if item_name else ""
        super().__init__(f"Insufficient stock{label}. Available: {self.available}, Required: {self.required}")


class CompensationFailure(AppError):
    """The sale was written but the matching stock adjustment was not."""

    def __init__(self, sale, cause: Exception | str):
        self.sale = sale
        self.cause = cause
        super().__init__(
            f"Sale {sale.id} saved but stock {sale.stock_item_id} may be out of sync: {cause}"
        )
