from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...errors import NotFoundError, StateError, ValidationError
from ...observability.logging import get_logger
from ...repositories import opportunities_repo
from ..identity.roles import require_same_party
from ..profiles.profile_service import approval_status_of, get_business, is_business_approved
from ..ratings.badges import badge_for
from .fields import CATEGORIES, clean_categories, clean_custom_questions, validate_description, validate_title

log = get_logger("catalog_service")

STATUS_DRAFT = "draft"
STATUS_ACTIVE = "active"
STATUS_CLOSED = "closed"
EDITABLE_STATUSES = (STATUS_DRAFT, STATUS_ACTIVE)


def _clean_status(value: Any) -> str:
    s = str(value or STATUS_ACTIVE).strip().lower()
    if s == STATUS_CLOSED:
        raise ValidationError(message="Use close to close an opportunity", code="close_via_close")
    if s not in EDITABLE_STATUSES:
        raise ValidationError(message="status must be draft or active", code="invalid_status")
    return s


def _require_approved_business(business_id: str) -> dict[str, Any]:
    business = get_business(business_id)
    if approval_status_of(business) != "approved":
        raise StateError(
            message="Your business account is awaiting approval",
            code="business_not_approved",
            details={"approvalStatus": approval_status_of(business)},
        )
    return business


def create_opportunity(*, business_id: str, data: dict[str, Any]) -> dict[str, Any]:
    business = _require_approved_business(business_id)
    data = data or {}
    title = validate_title(data.get("title"))
    description = validate_description(data.get("description"))
    categories = clean_categories(data.get("categories"), required=True)
    questions = clean_custom_questions(data.get("customQuestions"))
    status = _clean_status(data.get("status"))

    opp = opportunities_repo.create_opportunity(
        business_id=business_id,
        business_name=str(business.get("companyName") or ""),
        title=title,
        description=description,
        categories=categories,
        custom_questions=questions,
        status=status,
    )
    log.info("opportunity_created", opportunity_id=opp.get("id"), business_id=business_id, status=status)
    return opp


def _load(opportunity_id: str) -> dict[str, Any]:
    opp = opportunities_repo.get_opportunity(opportunity_id)
    if not opp:
        raise NotFoundError(message="Opportunity not found", code="opportunity_not_found")
    return opp


def get_opportunity(opportunity_id: str, *, viewer_id: str | None = None) -> dict[str, Any]:
    """
    Read one opportunity as `viewer_id` sees it.

    The owning business sees every status. Everyone else sees only active
    postings of approved businesses; anything else reads as not found.
    """
    opp = _load(opportunity_id)
    business_id = str(opp.get("businessId") or "")
    if viewer_id and viewer_id == business_id:
        return opp
    if opp.get("status") != STATUS_ACTIVE or not is_business_approved(business_id):
        raise NotFoundError(message="Opportunity not found", code="opportunity_not_found")
    return opp


def update_opportunity(
    opportunity_id: str,
    updates: dict[str, Any],
    *,
    actor_business_id: str | None = None,
) -> dict[str, Any]:
    """Partial edit. Closed opportunities are frozen."""
    opp = _load(opportunity_id)
    require_same_party(actor_id=actor_business_id, owner_id=opp.get("businessId"), what="opportunity")
    if opp.get("status") == STATUS_CLOSED:
        raise StateError(message="Closed opportunities cannot be edited", code="opportunity_closed")

    updates = updates or {}
    clean: dict[str, Any] = {}
    if "title" in updates:
        clean["title"] = validate_title(updates.get("title"))
    if "description" in updates:
        clean["description"] = validate_description(updates.get("description"))
    if "categories" in updates:
        clean["categories"] = clean_categories(updates.get("categories"), required=True)
    if "customQuestions" in updates:
        clean["customQuestions"] = clean_custom_questions(updates.get("customQuestions"))
    if "status" in updates:
        clean["status"] = _clean_status(updates.get("status"))
    if not clean:
        return opp

    try:
        updated = opportunities_repo.update_opportunity(opportunity_id, clean)
    except DdbConflict as e:
        raise StateError(message="Closed opportunities cannot be edited", code="opportunity_closed") from e
    log.info("opportunity_updated", opportunity_id=opportunity_id, fields=sorted(list(clean.keys())))
    return updated or _load(opportunity_id)


def close_opportunity(opportunity_id: str, *, actor_business_id: str | None = None) -> dict[str, Any]:
    """Idempotent: closing a closed opportunity returns it unchanged."""
    opp = _load(opportunity_id)
    require_same_party(actor_id=actor_business_id, owner_id=opp.get("businessId"), what="opportunity")
    if opp.get("status") == STATUS_CLOSED:
        return opp
    updated, changed = opportunities_repo.close_opportunity(opportunity_id)
    if changed:
        log.info("opportunity_closed", opportunity_id=opportunity_id, business_id=opp.get("businessId"))
    return updated or _load(opportunity_id)


def list_for_business(business_id: str) -> list[dict[str, Any]]:
    return opportunities_repo.list_by_business(business_id)


def list_for_students(*, category: str | None = None) -> list[dict[str, Any]]:
    """
    Active opportunities from approved businesses, each carrying the posting
    business's badge. Optional single-category filter.
    """
    if category and category not in CATEGORIES:
        raise ValidationError(
            message=f"Unknown category: {category}",
            code="invalid_category",
            details={"allowed": list(CATEGORIES)},
        )

    approved: dict[str, bool] = {}
    badges: dict[str, dict[str, Any]] = {}
    out: list[dict[str, Any]] = []
    for opp in opportunities_repo.list_by_status(STATUS_ACTIVE):
        if category and category not in (opp.get("categories") or []):
            continue
        bid = str(opp.get("businessId") or "")
        if bid not in approved:
            approved[bid] = is_business_approved(bid)
        if not approved[bid]:
            continue
        if bid not in badges:
            badges[bid] = badge_for(bid).to_dict()
        out.append({**opp, "businessBadge": badges[bid]})
    return out
