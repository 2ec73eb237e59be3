from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...errors import DuplicateApplicationError, ForbiddenError, NotFoundError, StateError, ValidationError
from ...observability.logging import get_logger
from ...repositories import applications_repo, opportunities_repo, student_profiles_repo
from ...repositories.common import now_iso
from ...shared.text import clean_string
from ..identity.roles import require_same_party
from ..profiles.profile_service import get_public_business, is_business_approved, student_display_name
from .states import EDGES, PENDING, is_live
from .targets import ApplicationTarget, LegacyTarget, OpportunityTarget, target_key

log = get_logger("application_lifecycle")

ANSWER_MAX_LEN = 5000
# Upper bound on re-application attempts probed per (student, target).
MAX_ATTEMPTS = 50


def _resolve_target(target: ApplicationTarget) -> dict[str, Any]:
    """Business, questions and denormalized names for the target."""
    if isinstance(target, OpportunityTarget):
        opp = opportunities_repo.get_opportunity(target.opportunity_id)
        if not opp or not is_business_approved(str(opp.get("businessId") or "")):
            raise NotFoundError(message="Opportunity not found", code="opportunity_not_found")
        if str(opp.get("status") or "") != "active":
            raise StateError(
                message="This opportunity is not accepting applications",
                code="opportunity_not_active",
                details={"status": opp.get("status")},
            )
        return {
            "businessId": opp.get("businessId"),
            "businessName": opp.get("businessName"),
            "opportunityId": opp.get("id"),
            "opportunityTitle": opp.get("title"),
            "questions": opp.get("customQuestions") or [],
        }

    business = get_public_business(target.business_id)
    return {
        "businessId": target.business_id,
        "businessName": business.get("companyName"),
        "opportunityId": None,
        "opportunityTitle": None,
        "questions": business.get("customQuestions") or [],
    }


def _clean_answers(questions: list[dict[str, Any]], answers: Any) -> dict[str, str]:
    if answers is None:
        answers = {}
    if not isinstance(answers, dict):
        raise ValidationError(message="answers must be an object", code="invalid_answers")

    out: dict[str, str] = {}
    for q, a in answers.items():
        key = clean_string(q, max_len=500)
        val = clean_string(a, max_len=ANSWER_MAX_LEN)
        if key and val:
            out[key] = val

    missing = [
        str(q.get("question"))
        for q in questions
        if isinstance(q, dict) and q.get("required") and not out.get(str(q.get("question") or ""))
    ]
    if missing:
        raise ValidationError(
            message="Please answer all required questions",
            code="required_answers_missing",
            details={"missing": missing},
        )
    return out


def _next_attempt(*, student_id: str, key: str) -> int:
    """
    Attempt number for a new application, or DuplicateApplicationError when
    the latest attempt is still live.
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        aid = applications_repo.application_id_for(student_id=student_id, target_key=key, attempt=attempt)
        existing = applications_repo.get_application(aid)
        if existing is None:
            return attempt
        if is_live(existing.get("status")):
            raise DuplicateApplicationError(
                message="You have already applied to this opportunity",
                code="duplicate_application",
                details={"applicationId": aid, "status": existing.get("status")},
            )
    raise ValidationError(message="Too many applications for this opportunity", code="too_many_attempts")


def submit(*, student_id: str, target: ApplicationTarget, answers: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a `pending` application for (student, target).

    At most one live application exists per pair: the record id is derived
    from (student, target, attempt) and written with a conditional put, so
    concurrent submissions collapse to one success and one
    DuplicateApplicationError. Rejected applications free the pair.
    """
    student = student_profiles_repo.get_student(student_id)
    name = student_display_name(student)
    if not name:
        raise ValidationError(
            message="Please complete your student profile before applying",
            code="profile_incomplete",
        )

    resolved = _resolve_target(target)
    clean_answers = _clean_answers(resolved["questions"], answers)

    key = target_key(target)
    attempt = _next_attempt(student_id=student_id, key=key)
    aid = applications_repo.application_id_for(student_id=student_id, target_key=key, attempt=attempt)

    record: dict[str, Any] = {
        "id": aid,
        "studentId": student_id,
        "studentName": name,
        "studentEmail": (student or {}).get("email"),
        "businessId": resolved["businessId"],
        "businessName": resolved["businessName"],
        "opportunityId": resolved["opportunityId"],
        "opportunityTitle": resolved["opportunityTitle"],
        "answers": clean_answers,
        "status": PENDING,
        "attempt": attempt,
        "appliedAt": now_iso(),
    }
    try:
        created = applications_repo.put_application(record)
    except DdbConflict as e:
        raise DuplicateApplicationError(
            message="You have already applied to this opportunity",
            code="duplicate_application",
            details={"applicationId": aid},
        ) from e

    if isinstance(target, OpportunityTarget):
        opportunities_repo.increment_applicant_count(target.opportunity_id)

    log.info(
        "application_submitted",
        application_id=aid,
        student_id=student_id,
        business_id=resolved["businessId"],
        opportunity_id=resolved["opportunityId"],
        legacy=isinstance(target, LegacyTarget),
        attempt=attempt,
    )
    return created


def _load(application_id: str) -> dict[str, Any]:
    app = applications_repo.get_application(application_id)
    if not app:
        raise NotFoundError(message="Application not found", code="application_not_found")
    return app


def _apply_edge(
    application_id: str,
    action: str,
    *,
    actor_business_id: str | None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    app = _load(application_id)
    require_same_party(actor_id=actor_business_id, owner_id=app.get("businessId"), what="application")

    from_status, to_status = EDGES[action]
    current = str(app.get("status") or "")
    if current == to_status:
        # Repeating a transition is a no-op; timestamps are left as first written.
        return app
    if current != from_status:
        raise StateError(
            message=f"Cannot {action} an application that is {current}",
            code="invalid_transition",
            details={"currentStatus": current, "action": action},
        )

    try:
        updated = applications_repo.transition_status(
            application_id=application_id,
            from_status=from_status,
            to_status=to_status,
            extra=extra,
        )
    except DdbConflict as e:
        latest = _load(application_id)
        if latest.get("status") == to_status:
            return latest
        raise StateError(
            message=f"Cannot {action} an application that is {latest.get('status')}",
            code="invalid_transition",
            details={"currentStatus": latest.get("status"), "action": action},
        ) from e

    log.info(
        "application_transition",
        application_id=application_id,
        business_id=app.get("businessId"),
        from_status=from_status,
        to_status=to_status,
    )
    return updated or _load(application_id)


def accept(application_id: str, *, actor_business_id: str | None = None) -> dict[str, Any]:
    return _apply_edge(application_id, "accept", actor_business_id=actor_business_id, extra={"acceptedAt": now_iso()})


def reject(application_id: str, *, actor_business_id: str | None = None) -> dict[str, Any]:
    return _apply_edge(application_id, "reject", actor_business_id=actor_business_id, extra={"rejectedAt": now_iso()})


def mark_completed(application_id: str, *, actor_business_id: str | None = None) -> dict[str, Any]:
    return _apply_edge(
        application_id, "complete", actor_business_id=actor_business_id, extra={"completedAt": now_iso()}
    )


def record_rated(application_id: str) -> dict[str, Any]:
    """completed -> rated. Only the rating service drives this edge."""
    return _apply_edge(application_id, "rate", actor_business_id=None, extra={"ratedAt": now_iso()})


# --- reads ---


def get_application(application_id: str, *, actor_id: str | None = None) -> dict[str, Any]:
    app = _load(application_id)
    if actor_id is not None and actor_id not in (app.get("studentId"), app.get("businessId")):
        raise ForbiddenError(message="Not allowed to view this application", code="not_owner")
    return app


def list_for_student(student_id: str) -> list[dict[str, Any]]:
    return applications_repo.list_by_student(student_id)


def list_for_business(
    business_id: str,
    *,
    opportunity_id: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    apps = applications_repo.list_by_business(business_id)
    if opportunity_id:
        apps = [a for a in apps if a.get("opportunityId") == opportunity_id]
    if status:
        apps = [a for a in apps if a.get("status") == status]
    return apps


def has_applied(*, student_id: str, target: ApplicationTarget) -> bool:
    """True when the student holds a live application for the target."""
    key = target_key(target)
    for attempt in range(1, MAX_ATTEMPTS + 1):
        aid = applications_repo.application_id_for(student_id=student_id, target_key=key, attempt=attempt)
        existing = applications_repo.get_application(aid)
        if existing is None:
            return False
        if is_live(existing.get("status")):
            return True
    return False
