"""Custom exception classes for the booking API."""


class BookingError(Exception):
    """Base exception for the booking service."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(BookingError):
    """Request validation failure."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=422)


class BusinessRuleError(BookingError):
    """Booking rejected by a business rule.

    Rendered as the legacy ``{"status": "fail", "message", "field_name"}``
    payload with HTTP 200 so booking clients keep branching on ``status``.
    """

    def __init__(self, message: str, field_name: str | None = None):
        self.field_name = field_name
        super().__init__("BUSINESS_RULE", message, status_code=200)

    def as_payload(self) -> dict:
        payload = {"status": "fail", "message": self.message}
        if self.field_name:
            payload["field_name"] = self.field_name
        return payload


class NotFoundError(BookingError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(BookingError):
    """Authentication required or token invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class AuthorizationError(BookingError):
    """Insufficient permissions."""

    def __init__(self, message: str = "Insufficient role"):
        super().__init__("AUTHORIZATION_ERROR", message, status_code=403)


class ConflictError(BookingError):
    """Resource state conflict."""

    def __init__(self, message: str):
        super().__init__("CONFLICT", message, status_code=409)


class DownstreamError(BookingError):
    """Push, SMS or mail gateway failure."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__("DOWNSTREAM_ERROR", f"{service}: {message}", status_code=502)
