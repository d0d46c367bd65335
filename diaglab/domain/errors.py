"""Domain exceptions. Each one knows the HTTP status and error code it maps to."""


class DiagLabError(Exception):
    """Base exception for all booking-service errors."""

    status_code = 500
    code: str | None = None

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class Unauthorized(DiagLabError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ValidationFailed(DiagLabError):
    """A single request field failed validation."""

    status_code = 400

    def __init__(self, code: str, message: str):
        super().__init__(message, code)


class NotFound(DiagLabError):
    status_code = 404


class Conflict(DiagLabError):
    status_code = 409


class UserIdNotAllowed(ValidationFailed):
    def __init__(self):
        super().__init__("USER_ID_NOT_ALLOWED", "User ID cannot be provided in request body")


class InvalidId(ValidationFailed):
    def __init__(self):
        super().__init__("INVALID_ID", "Valid ID is required")


class EmptyCart(ValidationFailed):
    def __init__(self):
        super().__init__("EMPTY_CART", "Cart is empty. Cannot create order.")


class InvalidStatusTransition(ValidationFailed):
    def __init__(self, current: str, new: str):
        self.current = current
        self.new = new
        super().__init__(
            "INVALID_STATUS_TRANSITION",
            f"Invalid status transition from '{current}' to '{new}'",
        )


class TimeSlotConflict(Conflict):
    def __init__(self):
        super().__init__("You already have an appointment scheduled at this time", "TIME_SLOT_CONFLICT")


class CartBusy(Conflict):
    def __init__(self):
        super().__init__("Cart is being modified by another request, try again", "CART_BUSY")


class OrderNumberConflict(Conflict):
    def __init__(self):
        super().__init__("Could not allocate a unique order number, try again", "ORDER_NUMBER_CONFLICT")
