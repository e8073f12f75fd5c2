"""Structured error types for rawstore."""

from __future__ import annotations

from typing import Iterable

VALIDATION_REASONS = ("missing-file", "oversized", "bad-extension", "bad-content")

_REASON_MESSAGES = {
    "missing-file": "No file selected",
    "oversized": "File size exceeds the upload limit",
    "bad-extension": "Invalid file extension (expected .csv)",
    "bad-content": "Invalid file format (expected comma-separated values)",
}


class RawStoreError(Exception):
    """Base error for all rawstore errors."""


class ValidationError(RawStoreError):
    """Raised when an uploaded file is rejected before anything is written."""

    def __init__(self, reason: str, detail: str | None = None) -> None:
        if reason not in VALIDATION_REASONS:
            raise ValueError(f"Unknown validation reason '{reason}'")
        self.reason = reason
        self.detail = detail
        message = _REASON_MESSAGES[reason]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StorageUnavailableError(RawStoreError):
    """Raised when the backing database cannot be opened or migrated."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage unavailable during {operation}: {detail}")


class StoreNotFoundError(StorageUnavailableError):
    """Raised when an object store is opened without creation and does not exist."""

    def __init__(self, store_name: str) -> None:
        self.store_name = store_name
        super().__init__("open_store", f"object store '{store_name}' does not exist")


class TransactionError(RawStoreError):
    """Raised when a store operation runs outside a transaction of the required mode."""

    def __init__(self, operation: str, required: str, active: str | None) -> None:
        self.operation = operation
        self.required = required
        self.active = active
        super().__init__(
            f"{operation} requires a {required} transaction (active: {active or 'none'})"
        )


class DuplicateNameError(RawStoreError):
    """Raised when a write violates the unique name index and retries are exhausted."""

    def __init__(self, name: str, attempts: int = 1) -> None:
        self.name = name
        self.attempts = attempts
        super().__init__(f"A record named '{name}' already exists ({attempts} attempt(s))")


class UnknownSortFieldError(RawStoreError):
    """Raised when a query asks to sort on a field that has no accessor."""

    def __init__(self, field: str, valid: Iterable[str]) -> None:
        self.field = field
        self.valid = sorted(valid)
        super().__init__(
            f"Unknown sort field '{field}'. Valid fields: {', '.join(self.valid)}"
        )


class MigrationError(RawStoreError):
    """Raised when the schema migration table is inconsistent with a request."""
