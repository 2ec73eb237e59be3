from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..modules.applications import lifecycle
from ..modules.applications.targets import parse_target
from ._principal import principal_id

router = APIRouter(tags=["applications"])


class SubmitApplicationBody(BaseModel):
    opportunityId: str | None = None
    # Legacy path: apply to a business directly.
    businessId: str | None = None
    answers: dict[str, str] = Field(default_factory=dict)


@router.post("", status_code=201)
def submit(body: SubmitApplicationBody, request: Request):
    target = parse_target({"opportunityId": body.opportunityId, "businessId": body.businessId})
    return lifecycle.submit(student_id=principal_id(request), target=target, answers=body.answers)


@router.get("/mine")
def list_mine(request: Request):
    return {"data": lifecycle.list_for_student(principal_id(request))}


@router.get("/received")
def list_received(request: Request, opportunityId: str | None = None, status: str | None = None):
    return {
        "data": lifecycle.list_for_business(
            principal_id(request), opportunity_id=opportunityId, status=status
        )
    }


@router.get("/has-applied")
def has_applied(request: Request, opportunityId: str | None = None, businessId: str | None = None):
    target = parse_target({"opportunityId": opportunityId, "businessId": businessId})
    return {"applied": lifecycle.has_applied(student_id=principal_id(request), target=target)}


@router.get("/{application_id}")
def get_one(application_id: str, request: Request):
    return lifecycle.get_application(application_id, actor_id=principal_id(request))


@router.post("/{application_id}/accept")
def accept(application_id: str, request: Request):
    return lifecycle.accept(application_id, actor_business_id=principal_id(request))


@router.post("/{application_id}/reject")
def reject(application_id: str, request: Request):
    return lifecycle.reject(application_id, actor_business_id=principal_id(request))


@router.post("/{application_id}/complete")
def complete(application_id: str, request: Request):
    return lifecycle.mark_completed(application_id, actor_business_id=principal_id(request))
