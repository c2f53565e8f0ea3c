"""
Domain errors raised by the booking services.

Each error carries the HTTP status the API layer answers with; the services
themselves never touch HTTP. A failed operation leaves booking state unchanged.
"""


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__

    def to_dict(self) -> dict:
        return {"message": self.message, "error": self.code}


class BookingValidationError(BookingError):
    """Malformed booking input."""
    status_code = 422

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, code="ValidationError")
        self.field = field

    def to_dict(self) -> dict:
        out = super().to_dict()
        if self.field:
            out["field"] = self.field
        return out


class CatalogNotFound(BookingError):
    status_code = 400


class QuotaExceeded(BookingError):
    status_code = 400


class NotFound(BookingError):
    status_code = 404


class InvalidState(BookingError):
    status_code = 400


class InvalidTransition(InvalidState):
    def __init__(self, current: str, target: str, message: str | None = None):
        super().__init__(message or f"Invalid booking status transition: {current} -> {target}")
        self.current = current
        self.target = target


class Forbidden(BookingError):
    status_code = 403
