from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    InactiveReservationError,
    ValidationError,
    InvalidDateRangeError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ItemUnavailableError,
    InvalidStateError,
    ServiceUnavailableError,
    ConcurrentUpdateError,
    RequestCancelledError,
    PaymentDeclinedError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "InactiveReservationError",
    "ValidationError",
    "InvalidDateRangeError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ItemUnavailableError",
    "InvalidStateError",
    "ServiceUnavailableError",
    "ConcurrentUpdateError",
    "RequestCancelledError",
    "PaymentDeclinedError",
]
