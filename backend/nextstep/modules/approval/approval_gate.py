from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...errors import NotFoundError, StateError
from ...observability.logging import get_logger
from ...repositories import business_profiles_repo
from ..identity.roles import require_admin
from ..notifications.notifier import notify_business_approved, notify_business_rejected

log = get_logger("approval_gate")

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"


def approval_status(business_id: str) -> str:
    """Read-only; this is what a pending business session polls."""
    priv = business_profiles_repo.get_private(business_id)
    if not priv:
        raise NotFoundError(message="Business not found", code="business_not_found")
    return str(priv.get("approvalStatus") or PENDING)


def _decide(business_id: str, to_status: str, *, actor_email: Any) -> dict[str, Any]:
    admin = require_admin(actor_email)
    business = business_profiles_repo.get_business(business_id)
    if not business or not business.get("private"):
        raise NotFoundError(message="Business not found", code="business_not_found")

    current = str(business["private"].get("approvalStatus") or PENDING)
    if current == to_status:
        return business
    if current != PENDING:
        raise StateError(
            message=f"Business is already {current}",
            code="approval_already_decided",
            details={"currentStatus": current},
        )

    try:
        business_profiles_repo.set_approval_status(business_id=business_id, from_status=PENDING, to_status=to_status)
    except DdbConflict as e:
        latest = approval_status(business_id)
        if latest == to_status:
            return business_profiles_repo.get_business(business_id) or business
        raise StateError(
            message=f"Business is already {latest}",
            code="approval_already_decided",
            details={"currentStatus": latest},
        ) from e

    log.info(
        "business_approval_changed",
        business_id=business_id,
        from_status=PENDING,
        to_status=to_status,
        admin=admin,
    )
    updated = business_profiles_repo.get_business(business_id) or business

    # Best-effort: the decision stands whether or not the email goes out.
    if to_status == APPROVED:
        notify_business_approved(updated)
    else:
        notify_business_rejected(updated)
    return updated


def approve(business_id: str, *, actor_email: Any) -> dict[str, Any]:
    return _decide(business_id, APPROVED, actor_email=actor_email)


def reject(business_id: str, *, actor_email: Any) -> dict[str, Any]:
    return _decide(business_id, REJECTED, actor_email=actor_email)


def _with_public(private_items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for priv in private_items:
        bid = str(priv.get("userId") or "")
        if not bid:
            continue
        merged = business_profiles_repo.merge_facets(business_profiles_repo.get_public(bid), priv)
        if merged:
            out.append(merged)
    return out


def list_pending_businesses(*, actor_email: Any) -> list[dict[str, Any]]:
    require_admin(actor_email)
    return _with_public(business_profiles_repo.list_by_approval_status(PENDING))


def list_approved_businesses(*, actor_email: Any) -> list[dict[str, Any]]:
    require_admin(actor_email)
    return _with_public(business_profiles_repo.list_by_approval_status(APPROVED))
