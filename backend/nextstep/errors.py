from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class EngineError(Exception):
    """Base error for engagement-engine operations.

    Raised synchronously to the caller and rendered by the FastAPI exception
    handler into a problem-details response. Never retried by the engine.
    """

    message: str
    code: str | None = None
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class ValidationError(EngineError):
    """Malformed or incomplete input; raised before any write."""


@dataclass(slots=True)
class DuplicateApplicationError(ValidationError):
    """The student already holds a live application for the same target."""


@dataclass(slots=True)
class StateError(EngineError):
    """Operation is not legal from the record's current lifecycle state."""


@dataclass(slots=True)
class NotFoundError(EngineError):
    pass


@dataclass(slots=True)
class ForbiddenError(EngineError):
    """Caller lacks the scope or ownership required for the operation."""


@dataclass(slots=True)
class DependencyError(EngineError):
    """Identity provider, document store, or email dispatch failed."""

    retryable: bool = False
    cause: Exception | None = None
