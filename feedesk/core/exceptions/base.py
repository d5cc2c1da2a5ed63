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


class ValidationError(AppException):
    """Input is well-formed but breaks a business rule."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if field:
            merged["field"] = field
        super().__init__(message=message, status_code=400, details=merged)


class InvalidAmountError(ValidationError):
    """Payment amount is not a positive integer at or above the configured minimum."""

    def __init__(self, amount: Any, minimum: int):
        super().__init__(
            message=f"Amount must be at least {minimum}",
            field="amount",
            details={"amount": amount, "minimum": minimum},
        )


class ExceedsBalanceError(ValidationError):
    """Payment amount is larger than the student's pending balance."""

    def __init__(self, amount: int, pending_amount: int):
        super().__init__(
            message="Amount exceeds pending balance",
            field="amount",
            details={"amount": amount, "pending_amount": pending_amount},
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class ConflictError(AppException):
    """Unique constraint would be violated."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class InternalError(AppException):
    """Storage unavailable or another unexpected failure."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, status_code=500)


class SnapshotError(InternalError):
    """Backup snapshot could not be read or applied."""

    def __init__(self, message: str):
        super().__init__(message=f"Invalid snapshot: {message}")


class PdfGenerationUnavailableError(AppException):
    """WeasyPrint/system libraries not available (e.g. pango on macOS)."""

    def __init__(self, message: str | None = None):
        msg = message or (
            "PDF generation is not available on this system. "
            "On macOS install: brew install pango glib."
        )
        super().__init__(message=msg, status_code=503)
