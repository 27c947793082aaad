from src.shared.schemas.base import (
    ApiResponse,
    BaseSchema,
    ListResponse,
    SuccessResponse,
    ErrorResponse,
    ErrorDetail,
)

__all__ = [
    "ApiResponse",
    "BaseSchema",
    "ListResponse",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
