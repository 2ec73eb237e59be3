from __future__ import annotations

from typing import Any

from ...errors import ForbiddenError
from ...settings import settings
from ...shared.text import normalize_email

ROLE_ADMIN = "Admin"
ROLE_BUSINESS = "Business"
ROLE_STUDENT = "Student"


def is_admin_email(email: Any) -> bool:
    em = normalize_email(email)
    return bool(em) and em in settings.admin_email_list


def require_admin(actor_email: Any) -> str:
    """Admin scope is an allowlist of emails; returns the normalized email."""
    em = normalize_email(actor_email)
    if not em or em not in settings.admin_email_list:
        raise ForbiddenError(message="Admin access required", code="admin_required")
    return em


def require_same_party(*, actor_id: str | None, owner_id: str | None, what: str) -> None:
    """Raise unless the acting principal owns the record (no-op when actor_id is None)."""
    if actor_id is None:
        return
    if str(actor_id or "").strip() != str(owner_id or "").strip():
        raise ForbiddenError(message=f"Not allowed to act on this {what}", code="not_owner")
