from __future__ import annotations

import re
from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...errors import NotFoundError, ValidationError
from ...observability.logging import get_logger
from ...repositories import business_profiles_repo, student_profiles_repo
from ...shared.text import clean_string, clean_string_list, normalize_email
from ..notifications.notifier import notify_admin_business_registered
from ..opportunities.fields import clean_categories, clean_custom_questions

log = get_logger("profile_service")

BIO_MAX_LEN = 500
CONTACT_METHODS = ("Email", "Phone")

_REQUIRED_BUSINESS_FIELDS = (
    "companyName",
    "location",
    "industry",
    "contactPersonName",
    "email",
    "phone",
    "potentialProblems",
)

_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


# --- businesses ---


def _clean_business_fields(data: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    if "approvalStatus" in data:
        raise ValidationError(
            message="approvalStatus can only be changed by an admin",
            code="approval_status_readonly",
        )

    out: dict[str, Any] = {}
    for k in ("companyName", "location", "industry", "contactPersonName", "phone"):
        if k in data or not partial:
            out[k] = clean_string(data.get(k), max_len=200)
    if "potentialProblems" in data or not partial:
        out["potentialProblems"] = clean_string(data.get("potentialProblems"), max_len=2000)
    if "email" in data or not partial:
        em = normalize_email(data.get("email"))
        if data.get("email") and not em:
            raise ValidationError(message="Contact email is invalid", code="invalid_email")
        out["email"] = em or ""
    if "preferredContactMethod" in data or not partial:
        method = str(data.get("preferredContactMethod") or "Email").strip().capitalize()
        if method not in CONTACT_METHODS:
            raise ValidationError(message="preferredContactMethod must be Email or Phone", code="invalid_contact_method")
        out["preferredContactMethod"] = method
    if "categories" in data or not partial:
        out["categories"] = clean_categories(data.get("categories"), required=False)
    if "customQuestions" in data:
        out["customQuestions"] = clean_custom_questions(data.get("customQuestions"))

    missing = [k for k in _REQUIRED_BUSINESS_FIELDS if k in out and not out[k]]
    if missing:
        raise ValidationError(
            message="Please fill in all required fields",
            code="required_fields_missing",
            details={"missing": missing},
        )
    return out


def register_business(*, business_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """
    Create a business profile in `pending` approval state.

    Admins are notified best-effort; a failed email does not undo signup.
    """
    fields = _clean_business_fields(data or {}, partial=False)
    phone = fields.pop("phone")
    try:
        business = business_profiles_repo.create_business(business_id=business_id, public=fields, phone=phone)
    except DdbConflict as e:
        raise ValidationError(message="Business profile already exists", code="already_registered") from e

    log.info("business_registered", business_id=business_id, approval_status="pending")
    notify_admin_business_registered(business)
    return business


def get_business(business_id: str) -> dict[str, Any]:
    """Owner/admin view with both facets."""
    b = business_profiles_repo.get_business(business_id)
    if not b or not b.get("private"):
        raise NotFoundError(message="Business not found", code="business_not_found")
    return b


def approval_status_of(business: dict[str, Any] | None) -> str | None:
    priv = (business or {}).get("private")
    if not isinstance(priv, dict):
        return None
    return str(priv.get("approvalStatus") or "pending")


def is_business_approved(business_id: str) -> bool:
    priv = business_profiles_repo.get_private(business_id)
    return bool(priv) and str((priv or {}).get("approvalStatus") or "") == "approved"


def get_public_business(business_id: str) -> dict[str, Any]:
    """
    Public facet for other parties. Unapproved businesses are reported as
    not found so their existence does not leak.
    """
    if not is_business_approved(business_id):
        raise NotFoundError(message="Business not found", code="business_not_found")
    pub = business_profiles_repo.get_public(business_id)
    if not pub:
        raise NotFoundError(message="Business not found", code="business_not_found")
    return pub


def list_public_businesses() -> list[dict[str, Any]]:
    """Public facets of approved businesses, by company name."""
    out: list[dict[str, Any]] = []
    for priv in business_profiles_repo.list_by_approval_status("approved"):
        bid = str(priv.get("userId") or "")
        pub = business_profiles_repo.get_public(bid) if bid else None
        if pub:
            out.append(pub)
    out.sort(key=lambda b: str(b.get("companyName") or "").lower())
    return out


def update_business(business_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    get_business(business_id)
    fields = _clean_business_fields(updates or {}, partial=True)
    phone = fields.pop("phone", None)
    if fields:
        business_profiles_repo.update_public(business_id, fields)
    business_profiles_repo.touch_private(business_id, phone=phone)
    log.info("business_updated", business_id=business_id, fields=sorted(list(fields.keys())))
    return get_business(business_id)


# --- students ---


def _clean_url(value: Any, *, field: str) -> str | None:
    s = clean_string(value, max_len=2048)
    if not s:
        return None
    if not _URL_RE.match(s):
        raise ValidationError(message=f"{field} must be an http(s) URL", code="invalid_url")
    return s


def _clean_student_fields(data: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "name" in data or not partial:
        out["name"] = clean_string(data.get("name"), max_len=200)
    if "email" in data:
        out["email"] = normalize_email(data.get("email")) or ""
    if "skills" in data or not partial:
        out["skills"] = clean_string_list(data.get("skills"), max_items=50, max_len=100)
    if "desiredRoles" in data or not partial:
        out["desiredRoles"] = clean_string_list(data.get("desiredRoles"), max_items=20, max_len=100)
    if "bio" in data:
        bio = str(data.get("bio") or "").strip()
        if len(bio) > BIO_MAX_LEN:
            raise ValidationError(message=f"Bio must be {BIO_MAX_LEN} characters or less", code="bio_too_long")
        out["bio"] = bio
    for k in ("resumeUrl", "portfolioUrl", "linkedinUrl"):
        if k in data:
            out[k] = _clean_url(data.get(k), field=k)

    if ("name" in out and not out["name"]) or ("skills" in out and not out["skills"]) or (
        "desiredRoles" in out and not out["desiredRoles"]
    ):
        raise ValidationError(
            message="Please fill in name, at least one skill, and at least one desired role",
            code="required_fields_missing",
        )
    return out


def register_student(*, student_id: str, data: dict[str, Any]) -> dict[str, Any]:
    fields = _clean_student_fields(data or {}, partial=False)
    try:
        student = student_profiles_repo.create_student(student_id=student_id, profile=fields)
    except DdbConflict as e:
        raise ValidationError(message="Student profile already exists", code="already_registered") from e
    log.info("student_registered", student_id=student_id)
    return student


def get_student(student_id: str) -> dict[str, Any]:
    s = student_profiles_repo.get_student(student_id)
    if not s:
        raise NotFoundError(message="Student not found", code="student_not_found")
    return s


def update_student(student_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    get_student(student_id)
    # openToMatching has its own operation.
    fields = _clean_student_fields({k: v for k, v in (updates or {}).items() if k != "openToMatching"}, partial=True)
    if not fields:
        return get_student(student_id)
    updated = student_profiles_repo.update_student(student_id, fields)
    log.info("student_updated", student_id=student_id, fields=sorted(list(fields.keys())))
    return updated or get_student(student_id)


def set_open_to_matching(student_id: str, open_to_matching: bool) -> dict[str, Any]:
    get_student(student_id)
    updated = student_profiles_repo.set_open_to_matching(student_id, bool(open_to_matching))
    log.info("student_matching_opt_in_changed", student_id=student_id, open_to_matching=bool(open_to_matching))
    return updated or get_student(student_id)


def list_open_students() -> list[dict[str, Any]]:
    return student_profiles_repo.list_open_to_matching()


def student_display_name(student: dict[str, Any] | None) -> str | None:
    name = str((student or {}).get("name") or "").strip()
    return name or None


def party_type(principal_id: str) -> str | None:
    """Which kind of party a principal registered as, if any."""
    if business_profiles_repo.get_private(principal_id):
        return "business"
    if student_profiles_repo.get_student(principal_id):
        return "student"
    return None
