from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PreconditionFailedError(DomainError):
    """Raised when an action is attempted before its precondition holds."""

    def __init__(self, message: str, *, precondition: str):
        super().__init__(message)
        self.precondition = precondition


class StorageUnavailableError(DomainError):
    """Raised when the persistence layer cannot be reached."""


class DuplicateRecordError(DomainError):
    """Raised by a store when a unique key would be violated."""


class AuthenticationError(DomainError):
    """Raised when a request carries no user identity."""
