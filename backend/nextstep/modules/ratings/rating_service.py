from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...errors import NotFoundError, StateError, ValidationError
from ...observability.logging import get_logger
from ...repositories import applications_repo, ratings_repo
from ...shared.text import clean_string
from ..applications.lifecycle import record_rated
from ..applications.states import COMPLETED, RATED
from ..identity.roles import require_same_party

log = get_logger("rating_service")

SCORE_FIELDS = ("overallRating", "communicationRating", "professionalismRating", "skillQualityRating")
MIN_SCORE = 1
MAX_SCORE = 5
FEEDBACK_MAX_LEN = 2000


def validate_scores(scores: Any) -> dict[str, int]:
    if not isinstance(scores, dict):
        raise ValidationError(message="Rating scores are required", code="scores_required")
    out: dict[str, int] = {}
    bad: list[str] = []
    for f in SCORE_FIELDS:
        v = scores.get(f)
        # bool is an int subclass; True is not a star rating.
        if isinstance(v, bool) or not isinstance(v, int) or not (MIN_SCORE <= v <= MAX_SCORE):
            bad.append(f)
            continue
        out[f] = v
    if bad:
        raise ValidationError(
            message=f"Ratings must be whole numbers from {MIN_SCORE} to {MAX_SCORE}",
            code="invalid_scores",
            details={"fields": bad},
        )
    return out


def submit_rating(
    application_id: str,
    *,
    scores: dict[str, Any],
    feedback: str | None = None,
    actor_business_id: str | None = None,
) -> dict[str, Any]:
    """
    Rate the student on a completed application and move it to `rated`.

    The rating record is written first with a conditional put. If a previous
    attempt already wrote it but never flipped the application, the stored
    rating is reused and the transition is finished here.
    """
    app = applications_repo.get_application(application_id)
    if not app:
        raise NotFoundError(message="Application not found", code="application_not_found")
    require_same_party(actor_id=actor_business_id, owner_id=app.get("businessId"), what="application")

    status = str(app.get("status") or "")
    if status != COMPLETED:
        msg = "This application has already been rated" if status == RATED else "Only completed applications can be rated"
        raise StateError(message=msg, code="not_ratable", details={"currentStatus": status})

    clean_scores = validate_scores(scores)
    clean_feedback = clean_string(feedback, max_len=FEEDBACK_MAX_LEN) or None

    try:
        rating = ratings_repo.create_rating(
            application_id=application_id,
            student_id=str(app.get("studentId") or ""),
            business_id=str(app.get("businessId") or ""),
            scores=clean_scores,
            feedback=clean_feedback,
        )
        recovered = False
    except DdbConflict:
        existing = ratings_repo.get_rating_for_application(application_id)
        if not existing:
            raise
        rating = existing
        recovered = True

    record_rated(application_id)
    log.info(
        "rating_submitted",
        application_id=application_id,
        student_id=app.get("studentId"),
        business_id=app.get("businessId"),
        overall=rating.get("overallRating"),
        recovered=recovered,
    )
    return rating


def ratings_for_student(student_id: str) -> list[dict[str, Any]]:
    return ratings_repo.list_for_student(student_id)


def ratings_for_business(business_id: str) -> list[dict[str, Any]]:
    return ratings_repo.list_for_business(business_id)


def average_overall_rating(student_id: str) -> float | None:
    """Mean overall score, or None when the student has no ratings yet."""
    ratings = ratings_for_student(student_id)
    if not ratings:
        return None
    return round(sum(int(r.get("overallRating") or 0) for r in ratings) / len(ratings), 2)


def rating_summary_for_student(student_id: str) -> dict[str, Any]:
    ratings = ratings_for_student(student_id)
    averages: dict[str, float | None] = {}
    for f in SCORE_FIELDS:
        averages[f] = round(sum(int(r.get(f) or 0) for r in ratings) / len(ratings), 2) if ratings else None
    return {
        "studentId": student_id,
        "count": len(ratings),
        "averages": averages,
        "ratings": ratings,
    }
