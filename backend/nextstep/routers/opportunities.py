from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..modules.opportunities import catalog_service
from ..modules.opportunities.fields import CATEGORIES
from ._principal import principal_id

router = APIRouter(tags=["opportunities"])


class CustomQuestion(BaseModel):
    question: str
    required: bool = False


class OpportunityBody(BaseModel):
    title: str | None = None
    description: str | None = None
    categories: list[str] | None = None
    customQuestions: list[CustomQuestion] | None = None
    status: str | None = None


def _payload(body: OpportunityBody) -> dict[str, Any]:
    return body.model_dump(exclude_unset=True)


@router.get("/categories")
def list_categories():
    return {"data": list(CATEGORIES)}


@router.get("")
def list_for_students(category: str | None = None):
    return {"data": catalog_service.list_for_students(category=category)}


@router.post("", status_code=201)
def create(body: OpportunityBody, request: Request):
    return catalog_service.create_opportunity(business_id=principal_id(request), data=_payload(body))


@router.get("/mine")
def list_mine(request: Request):
    return {"data": catalog_service.list_for_business(principal_id(request))}


@router.get("/{opportunity_id}")
def get_one(opportunity_id: str, request: Request):
    return catalog_service.get_opportunity(opportunity_id, viewer_id=principal_id(request))


@router.put("/{opportunity_id}")
def update(opportunity_id: str, body: OpportunityBody, request: Request):
    return catalog_service.update_opportunity(
        opportunity_id, _payload(body), actor_business_id=principal_id(request)
    )


@router.post("/{opportunity_id}/close")
def close(opportunity_id: str, request: Request):
    return catalog_service.close_opportunity(opportunity_id, actor_business_id=principal_id(request))
