from typing import Optional


class AcademyError(Exception):
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AcademyError):
    """A field constraint was violated. Raised before any external call."""

    def __init__(self, message: str, field: str = None, details: Optional[dict] = None):
        details = dict(details or {})
        if field and field not in details:
            details[field] = message
        self.field = field
        super().__init__(message, details)


class NotFoundError(AcademyError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class UpstreamError(AcademyError):
    """The record store or blob store failed for reasons unrelated to input."""

    def __init__(self, service: str, message: str, cause: Exception = None):
        self.service = service
        self.cause = cause
        super().__init__(f"{service}: {message}")
