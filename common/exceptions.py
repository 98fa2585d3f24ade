"""
QuickBite - Custom Exceptions
==============================
Business-level exceptions raised by the cart/order core and the service layer.
Each carries a stable `code` and an HTTP status so main.py can convert it
to a JSON error response in one place.
"""


class QuickBiteError(Exception):
    """Base exception for all business logic errors."""
    code = "error"
    status_code = 400

    def __init__(self, message: str = "Something went wrong."):
        self.message = message
        super().__init__(self.message)


# ==========================================
# Generic
# ==========================================

class AuthenticationError(QuickBiteError):
    """Raised when the request carries no valid credentials."""
    code = "authentication_required"
    status_code = 401

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message)


class AuthorizationError(QuickBiteError):
    """Raised when user lacks permission."""
    code = "forbidden"
    status_code = 403

    def __init__(self, message: str = "You are not allowed to do that."):
        super().__init__(message)


class NotFoundError(QuickBiteError):
    """Raised when a requested resource doesn't exist."""
    code = "not_found"
    status_code = 404


class DuplicateError(QuickBiteError):
    """Raised for unique constraint violations at the business level."""
    code = "duplicate"
    status_code = 409


# ==========================================
# Cart
# ==========================================

class InvalidQuantityError(QuickBiteError):
    code = "invalid_quantity"

    def __init__(self, quantity=None):
        msg = f"Quantity must be at least 1 (got {quantity})." if quantity is not None else "Quantity must be at least 1."
        super().__init__(msg)


class ItemNotFoundError(QuickBiteError):
    """Raised when a line item reference does not exist in the cart."""
    code = "item_not_found"
    status_code = 404

    def __init__(self, line_item_id: str = ""):
        msg = f"Item {line_item_id} is not in your cart." if line_item_id else "Item is not in your cart."
        super().__init__(msg)


class CrossRestaurantError(QuickBiteError):
    code = "cross_restaurant"
    status_code = 409

    def __init__(self):
        super().__init__("You can only order from one restaurant at a time. Please clear your cart first.")


class MenuItemUnavailableError(QuickBiteError):
    code = "menu_item_unavailable"

    def __init__(self, name: str = ""):
        msg = f"{name} is not available right now." if name else "Menu item is not available."
        super().__init__(msg)


class InvalidCouponError(QuickBiteError):
    code = "invalid_coupon"

    def __init__(self, message: str = "Invalid coupon code."):
        super().__init__(message)


class EmptyCartError(QuickBiteError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty.")


# ==========================================
# Order
# ==========================================

class MinimumOrderError(QuickBiteError):
    code = "minimum_order"

    def __init__(self, minimum, current):
        self.minimum = minimum
        self.current = current
        super().__init__(f"Minimum order amount is ${minimum} (current total ${current}).")


class InvalidTransitionError(QuickBiteError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Order cannot move from '{current}' to '{target}'.")


class ForbiddenTransitionError(QuickBiteError):
    code = "forbidden_transition"
    status_code = 403

    def __init__(self, role: str, target: str):
        super().__init__(f"Role '{role}' may not move an order to '{target}'.")


class NotCancellableError(QuickBiteError):
    code = "not_cancellable"

    def __init__(self, status: str):
        super().__init__(f"Order cannot be cancelled at this stage ({status}).")


class NotRatableError(QuickBiteError):
    code = "not_ratable"

    def __init__(self):
        super().__init__("Order must be delivered before rating.")


class InvalidRatingError(QuickBiteError):
    code = "invalid_rating"

    def __init__(self, stars=None):
        super().__init__(f"Rating must be a whole number between 1 and 5 (got {stars}).")


class AlreadyRatedError(QuickBiteError):
    code = "already_rated"
    status_code = 409

    def __init__(self):
        super().__init__("Order has already been rated.")
