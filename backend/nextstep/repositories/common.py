from __future__ import annotations

import functools
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from ..db.dynamodb.errors import DdbConflict, DdbError
from ..errors import DependencyError, ValidationError

_INTERNAL_KEYS = ("pk", "sk", "gsi1pk", "gsi1sk", "gsi2pk", "gsi2sk", "entityType")

F = TypeVar("F", bound=Callable[..., Any])


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def require_id(value: Any, *, name: str) -> str:
    s = str(value or "").strip()
    if not s:
        raise ValidationError(message=f"{name} is required", code=f"{name}_required")
    return s


def strip_internal(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    return {k: v for k, v in item.items() if k not in _INTERNAL_KEYS}


def drop_nulls(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if v is not None}


def build_set_expression(
    updates: dict[str, Any],
    *,
    prefix: str = "u",
) -> tuple[str, dict[str, str], dict[str, Any]]:
    """
    Build `SET #u0 = :u0, #u1 = :u1` for a dict of attribute updates.

    Attribute names are always aliased so reserved words (status, name, ...)
    are safe.
    """
    parts: list[str] = []
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    for i, (k, v) in enumerate(updates.items()):
        nk = f"#{prefix}{i}"
        vk = f":{prefix}{i}"
        names[nk] = str(k)
        values[vk] = v
        parts.append(f"{nk} = {vk}")
    return "SET " + ", ".join(parts), names, values


def store_call(fn: F) -> F:
    """
    Surface storage failures as DependencyError.

    DdbConflict passes through untouched: callers read it as a lost
    conditional write.
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except DdbConflict:
            raise
        except DdbError as e:
            raise DependencyError(
                message="Storage is temporarily unavailable",
                code="storage_unavailable",
                details={"operation": e.operation} if e.operation else None,
                retryable=bool(e.retryable),
                cause=e,
            ) from e

    return wrapper  # type: ignore[return-value]
