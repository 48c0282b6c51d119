# storefront/domain/errors.py
"""
Bledy biznesowe. Serwisy rzucaja je bez wiedzy o HTTP,
handler w storefront.api zamienia je na odpowiedz {"detail": message}.
"""


class StorefrontError(Exception):
    """Base exception for all business logic errors."""

    status_code = 400

    def __init__(self, message: str = "Blad operacji"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(StorefrontError, LookupError):
    status_code = 404


class ValidationError(StorefrontError, ValueError):
    status_code = 400


class InsufficientInventoryError(ValidationError):
    """Raised when a product does not have enough available stock."""

    def __init__(self, product: str = "", requested: int | None = None, available: int | None = None):
        msg = "Insufficient inventory"
        if product:
            msg = f"{msg} for {product}"
        if requested is not None and available is not None:
            msg = f"{msg}: requested {requested}, available {available}"
        self.requested = requested
        self.available = available
        super().__init__(msg)


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("Cart is empty")


class AuthRequiredError(StorefrontError, PermissionError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(StorefrontError, PermissionError):
    status_code = 403


class ConflictError(StorefrontError):
    status_code = 409


class OrderNumberConflictError(ConflictError):
    """Two orders got the same scanned number, the unique constraint rejected one."""

    def __init__(self):
        super().__init__("Order number conflict, please retry")
