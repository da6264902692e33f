from typing import Optional


class ShopError(Exception):
    """Base class for errors that map to a JSON error envelope."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(ShopError):
    status_code = 400


class AuthenticationError(ShopError):
    status_code = 401


class PermissionDeniedError(ShopError):
    status_code = 403


class NotFoundError(ShopError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class InsufficientStockError(ShopError):
    status_code = 400

    def __init__(self, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, requested: {requested}"
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class ConflictError(ShopError):
    status_code = 409


class TransactionError(ShopError):
    status_code = 500
