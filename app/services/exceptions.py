class InspectionDomainError(Exception):
    """Base class for all inspection domain errors."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(InspectionDomainError):
    """Raised when a required field is missing or malformed (e.g. blank driver name)."""


class NotFoundError(InspectionDomainError):
    """Raised when operating on a driver, vehicle, inspection or checklist item that does not exist."""


class StorageError(InspectionDomainError):
    """Raised when the backend is unreachable or rejects a write."""


class ExportError(InspectionDomainError):
    """Raised when document generation fails outside the signature fallback."""
