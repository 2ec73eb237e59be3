from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..modules.approval.approval_gate import approval_status
from ..modules.assignments.assignment_view import list_assigned_students
from ..modules.profiles import profile_service
from ..modules.ratings.badges import badge_for
from ..modules.ratings.rating_service import ratings_for_business
from ._principal import principal_email, principal_id

router = APIRouter(tags=["businesses"])


class CustomQuestion(BaseModel):
    question: str
    required: bool = False


class BusinessProfileBody(BaseModel):
    companyName: str | None = None
    location: str | None = None
    industry: str | None = None
    contactPersonName: str | None = None
    email: str | None = None
    phone: str | None = None
    preferredContactMethod: str | None = None
    potentialProblems: str | None = None
    categories: list[str] | None = None
    customQuestions: list[CustomQuestion] | None = None


def _payload(body: BusinessProfileBody) -> dict[str, Any]:
    return body.model_dump(exclude_unset=True)


@router.post("", status_code=201)
def register(body: BusinessProfileBody, request: Request):
    data = _payload(body)
    # Contact email defaults to the signed-in account email.
    data.setdefault("email", principal_email(request))
    return profile_service.register_business(business_id=principal_id(request), data=data)


@router.get("")
def list_approved():
    return {"data": profile_service.list_public_businesses()}


@router.get("/me")
def get_me(request: Request):
    return profile_service.get_business(principal_id(request))


@router.put("/me")
def update_me(body: BusinessProfileBody, request: Request):
    return profile_service.update_business(principal_id(request), _payload(body))


@router.get("/me/approval-status")
def get_my_approval_status(request: Request):
    return {"approvalStatus": approval_status(principal_id(request))}


@router.get("/me/assigned-students")
def my_assigned_students(request: Request):
    return {"data": list_assigned_students(principal_id(request))}


@router.get("/me/ratings")
def my_ratings(request: Request):
    return {"data": ratings_for_business(principal_id(request))}


@router.get("/{business_id}/badge")
def get_badge(business_id: str):
    profile_service.get_public_business(business_id)
    return badge_for(business_id).to_dict()


@router.get("/{business_id}")
def get_public(business_id: str):
    return profile_service.get_public_business(business_id)
