"""Custom exceptions for offkulture."""


class OffKultureError(Exception):
    """Base exception for all offkulture errors."""

    pass


class ProductNotFoundError(OffKultureError):
    """Raised when a product ID doesn't exist in the catalog."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class ProductDiscontinuedError(OffKultureError):
    """Raised when a discontinued product is added to a cart or comparison."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product is discontinued: {product_id}")


class CartLineNotFoundError(OffKultureError):
    """Raised when no cart line matches (product, size, color)."""

    def __init__(self, product_id: str, size: str | None = None, color: str | None = None):
        self.product_id = product_id
        self.size = size
        self.color = color
        variant = ", ".join(v for v in (size, color) if v)
        msg = f"Cart line not found: {product_id}"
        if variant:
            msg = f"{msg} ({variant})"
        super().__init__(msg)


class InsufficientStockError(OffKultureError):
    """Raised when a reservation asks for more units than the catalog holds."""

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_id}: requested {requested}, available {available}"
        )


class InvalidQuantityError(OffKultureError):
    """Raised when a quantity is zero, negative or otherwise unusable."""

    def __init__(self, quantity: int, reason: str | None = None):
        self.quantity = quantity
        msg = f"Invalid quantity: {quantity}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class EmptyCartError(OffKultureError):
    """Raised when checking out an empty cart."""

    def __init__(self):
        super().__init__("Cart is empty. Add some items to proceed to checkout.")


class OrderNotFoundError(OffKultureError):
    """Raised when an order ID or tracking number doesn't exist."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Order not found: {reference}")


class InvalidStatusTransitionError(OffKultureError):
    """Raised when an order status would move sideways or backwards."""

    def __init__(self, order_id: str, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move order {order_id} from {current} to {requested}"
        )


class AccountNotFoundError(OffKultureError):
    """Raised when no account is registered under an email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Account not found: {email}")


class AccountExistsError(OffKultureError):
    """Raised when signing up with an email that is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account with this email already exists: {email}")


class AuthenticationError(OffKultureError):
    """Raised when login credentials don't match."""

    def __init__(self):
        super().__init__("Invalid email or password.")


class NotAuthenticatedError(OffKultureError):
    """Raised when an operation needs a logged-in account."""

    def __init__(self, action: str | None = None):
        msg = "Not logged in. Run 'offkulture login' first."
        if action:
            msg = f"Please login to {action}."
        super().__init__(msg)


class PermissionDeniedError(OffKultureError):
    """Raised when a customer session calls an admin operation."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Admin role required to {action}")


class PaymentMethodNotFoundError(OffKultureError):
    """Raised when a payment method ID isn't on the account."""

    def __init__(self, method_id: str):
        self.method_id = method_id
        super().__init__(f"Payment method not found: {method_id}")


class ValidationError(OffKultureError):
    """Raised when user-supplied fields fail validation."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class StoreWriteError(OffKultureError):
    """Raised when a key can't be written to the persistent store."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to persist '{key}': {reason}")


class CorruptStoreError(OffKultureError):
    """Raised when a stored value can't be decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored value for '{key}' is unreadable: {reason}")


class InvalidSchemaVersionError(OffKultureError):
    """Raised when the store has an unsupported schema version."""

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported schema version {found}. This tool supports version {supported}."
        )
