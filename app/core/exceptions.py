class AuthenticationFailed(Exception):
    """
    Raised when a request carries an invalid/expired JWT
    or references a user that no longer exists.
    
    Expected Result: 401 Unauthorized
    """
    pass

class NotAuthorized(Exception):
    """
    Raised when a user is authenticated but their role does not allow
    the requested operation (e.g., a customer cancelling an order).
    
    Expected Result: 403 Forbidden
    """
    pass


# --- ORDER ENGINE ---

class OrderError(Exception):
    """
    Base class for every expected failure of the order engine.

    `kind` tells the caller how to classify the failure:
    - "validation": bad input, nothing was written
    - "not_found": a referenced entity does not exist
    - "conflict": a business rule blocked the operation
    """
    kind = "conflict"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyCartError(OrderError):
    kind = "validation"

    def __init__(self):
        super().__init__("Cart is empty.")


class InvalidRequestError(OrderError):
    """Raised when the input is inconsistent; nothing was written."""
    kind = "validation"


class InvalidCartError(InvalidRequestError):
    """Raised when cart lines or the declared total are inconsistent."""
    pass


class ProductNotFoundError(OrderError):
    kind = "not_found"

    def __init__(self, product_ids):
        self.product_ids = sorted(product_ids)
        missing = ", ".join(str(pid) for pid in self.product_ids)
        super().__init__(f"Products not found: {missing}")


class InsufficientStockError(OrderError):
    """
    Raised when an atomic reservation affects no row, i.e. the
    product does not hold enough stock for the required quantity.
    """
    kind = "conflict"

    def __init__(self, product_name: str, available: int, required: int):
        self.product_name = product_name
        self.available = available
        self.required = required
        super().__init__(
            f'Product "{product_name}" has only {available} left in stock '
            f"(requested {required})."
        )


class OrderNotFoundError(OrderError):
    kind = "not_found"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order #{order_id} not found.")


class OrderAlreadyCancelledError(OrderError):
    kind = "conflict"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order #{order_id} has already been cancelled.")


class InvalidStatusTransitionError(OrderError):
    kind = "conflict"

    def __init__(self, order_id: int, current, target):
        self.order_id = order_id
        super().__init__(
            f"Order #{order_id} cannot move from {current.value} to {target.value}."
        )


class ConcurrentUpdateError(OrderError):
    """Raised when the database aborts a transaction with a serialization failure or deadlock."""
    kind = "conflict"

    def __init__(self):
        super().__init__("The data was modified concurrently, please retry.")


class NotFoundError(Exception):
    """Generic lookup miss for read endpoints (logs, purchase orders)."""
    pass


class PurchaseOrderError(Exception):
    """Raised when a purchase order could not be issued; the transaction was rolled back."""
    pass
