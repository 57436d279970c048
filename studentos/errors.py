"""Typed application errors.

Each error carries an ``ErrorKind``; the HTTP layer maps kinds to status
codes and never inspects message text.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced to clients."""
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation_error"
    INVALID_STATE = "invalid_state"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence_error"


class AppError(Exception):
    """Base class for all errors the API knows how to render."""
    kind: ErrorKind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthorized(AppError):
    """Missing, malformed, rejected or expired bearer credential."""
    kind = ErrorKind.UNAUTHORIZED


class ValidationError(AppError):
    """Input failed validation; ``details`` holds field-level errors."""
    kind = ErrorKind.VALIDATION


class InvalidState(AppError):
    """Operation not permitted in the entity's current state."""
    kind = ErrorKind.INVALID_STATE


class NotFound(AppError):
    """No row matched the id within the caller's ownership scope."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(AppError):
    """The relational store failed; wraps the driver error with context."""
    kind = ErrorKind.PERSISTENCE

    def __init__(self, operation: str, entity_id: str | None = None, *, cause: Exception | None = None) -> None:
        message = f"Failed to {operation.replace('_', ' ')}"
        super().__init__(message)
        self.operation = operation
        self.entity_id = entity_id
        self.cause = cause
