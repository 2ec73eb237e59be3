from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..modules.ratings import rating_service
from ._principal import principal_id

router = APIRouter(tags=["ratings"])


class RatingBody(BaseModel):
    applicationId: str = Field(..., min_length=1)
    # Range checks happen in the rating service so they surface as 400s.
    overallRating: int
    communicationRating: int
    professionalismRating: int
    skillQualityRating: int
    feedback: str | None = None


@router.post("", status_code=201)
def submit(body: RatingBody, request: Request):
    scores = body.model_dump(include=set(rating_service.SCORE_FIELDS))
    return rating_service.submit_rating(
        body.applicationId,
        scores=scores,
        feedback=body.feedback,
        actor_business_id=principal_id(request),
    )


@router.get("/students/{student_id}")
def for_student(student_id: str):
    return {
        "data": rating_service.ratings_for_student(student_id),
        "averageOverall": rating_service.average_overall_rating(student_id),
    }
