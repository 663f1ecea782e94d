from typing import Any, Mapping, Optional


class CaloError(Exception):
    """Base class for domain errors raised by the service layer.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, limits)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(CaloError):
    """Raised when input data is invalid or a precondition for a service call is not met."""

    http_status = 400
    default_message = "Invalid input"


class NotFoundError(CaloError):
    """Raised when a requested resource was not found."""

    http_status = 404
    default_message = "Not found"


class ConflictError(CaloError):
    """Raised when a resource conflict occurs (e.g., duplicate entry)."""

    http_status = 409
    default_message = "Conflict"


class LimitExceededError(CaloError):
    """Raised when a business limit is hit (menus per user, mandatory meals per day)."""

    http_status = 400
    default_message = "Limit exceeded"
