from __future__ import annotations


class AssetServiceError(Exception):
    """Base class for failures the HTTP layer knows how to map."""


class ValidationFailure(AssetServiceError):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ForbiddenFieldMutation(ValidationFailure):
    """An update tried to change a field that is fixed after creation."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} cannot be changed", field)


class NotFound(AssetServiceError):
    pass


class Conflict(AssetServiceError):
    pass


class PersistenceError(AssetServiceError):
    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConnectionFailure(PersistenceError):
    """The database could not be reached or the pool could not be established."""


class ConstraintViolation(PersistenceError):
    """A row-level constraint rejected the write (duplicate key, check constraint)."""


class StorageFailure(PersistenceError):
    """Any other backend error."""
