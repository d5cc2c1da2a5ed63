from feedesk.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    InvalidAmountError,
    ExceedsBalanceError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InternalError,
    SnapshotError,
    PdfGenerationUnavailableError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "InvalidAmountError",
    "ExceedsBalanceError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "InternalError",
    "SnapshotError",
    "PdfGenerationUnavailableError",
]
