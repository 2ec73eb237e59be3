from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..modules.assignments.assignment_view import list_assigned_businesses
from ..modules.profiles import profile_service
from ..modules.ratings.rating_service import rating_summary_for_student
from ._principal import principal_email, principal_id

router = APIRouter(tags=["students"])


class StudentProfileBody(BaseModel):
    name: str | None = None
    email: str | None = None
    skills: list[str] | None = None
    desiredRoles: list[str] | None = None
    bio: str | None = None
    resumeUrl: str | None = None
    portfolioUrl: str | None = None
    linkedinUrl: str | None = None


class MatchingBody(BaseModel):
    openToMatching: bool


def _payload(body: StudentProfileBody) -> dict[str, Any]:
    return body.model_dump(exclude_unset=True)


@router.post("", status_code=201)
def register(body: StudentProfileBody, request: Request):
    data = _payload(body)
    data.setdefault("email", principal_email(request))
    return profile_service.register_student(student_id=principal_id(request), data=data)


@router.get("/me")
def get_me(request: Request):
    return profile_service.get_student(principal_id(request))


@router.put("/me")
def update_me(body: StudentProfileBody, request: Request):
    return profile_service.update_student(principal_id(request), _payload(body))


@router.put("/me/matching")
def set_matching(body: MatchingBody, request: Request):
    return profile_service.set_open_to_matching(principal_id(request), body.openToMatching)


@router.get("/me/assigned-businesses")
def my_assigned_businesses(request: Request):
    return {"data": list_assigned_businesses(principal_id(request))}


@router.get("/open")
def open_to_matching():
    return {"data": profile_service.list_open_students()}


@router.get("/{student_id}/ratings")
def student_ratings(student_id: str):
    profile_service.get_student(student_id)
    return rating_summary_for_student(student_id)


@router.get("/{student_id}")
def get_student(student_id: str):
    return profile_service.get_student(student_id)
