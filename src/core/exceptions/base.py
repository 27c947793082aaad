from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class InactiveReservationError(NotFoundError):
    """No active reservation with this id.

    Callers see a plain 404; `reason` tells apart a reservation that never
    existed ("missing") from one that is already cancelled ("already_cancelled").
    """

    MISSING = "missing"
    ALREADY_CANCELLED = "already_cancelled"

    def __init__(self, reservation_id: int, reason: str = MISSING):
        super().__init__("Active reservation", reservation_id)
        self.reason = reason
        self.details = {"reason": reason}


class ValidationError(AppException):
    """Malformed input."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=400, details=details)


class InvalidDateRangeError(ValidationError):
    """Reservation window is inverted, empty or in the past."""


class AuthenticationError(AppException):
    """Caller identity is missing or unknown."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class ConflictError(AppException):
    """Reservation window overlaps an approved or paid reservation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=409, details=details)


class ItemUnavailableError(AppException):
    """Item is switched off for booking in the catalog."""

    def __init__(self, item_id: int):
        super().__init__(
            message=f"Item {item_id} is not available for booking",
            status_code=409,
            details={"item_id": item_id},
        )


class InvalidStateError(AppException):
    """Operation is not allowed for the reservation's current status."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=400, details=details)


class ServiceUnavailableError(AppException):
    """Transient storage or locking failure, safe to retry."""

    def __init__(self, message: str = "Service temporarily unavailable, retry later"):
        super().__init__(message=message, status_code=503)


class ConcurrentUpdateError(ServiceUnavailableError):
    """Reservation was modified by another request since it was read."""

    def __init__(self, reservation_id: int):
        super().__init__(f"Reservation {reservation_id} was modified concurrently, retry the operation")
        self.details = {"reservation_id": reservation_id}


class RequestCancelledError(AppException):
    """Caller cancelled the request or its deadline passed before the transition started."""

    def __init__(self, message: str = "Request was cancelled"):
        super().__init__(message=message, status_code=408)


class PaymentDeclinedError(AppException):
    """Payment provider refused the charge."""

    def __init__(self, message: str = "Payment was declined"):
        super().__init__(message=message, status_code=402)
