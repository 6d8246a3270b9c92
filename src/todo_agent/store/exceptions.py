"""Custom exceptions for todo storage operations."""


class StoreError(Exception):
    """Base exception for todo store errors."""

    pass


class DatabaseError(StoreError):
    """Exception raised when a database operation fails."""

    pass


class InvalidArgumentError(StoreError):
    """Exception raised when a store operation receives unusable arguments."""

    pass
