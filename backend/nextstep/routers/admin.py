from __future__ import annotations

from fastapi import APIRouter, Request

from ..modules.approval import approval_gate
from ._principal import principal_email

router = APIRouter(tags=["admin"])


@router.get("/businesses/pending")
def pending(request: Request):
    return {"data": approval_gate.list_pending_businesses(actor_email=principal_email(request))}


@router.get("/businesses/approved")
def approved(request: Request):
    return {"data": approval_gate.list_approved_businesses(actor_email=principal_email(request))}


@router.post("/businesses/{business_id}/approve")
def approve(business_id: str, request: Request):
    return approval_gate.approve(business_id, actor_email=principal_email(request))


@router.post("/businesses/{business_id}/reject")
def reject(business_id: str, request: Request):
    return approval_gate.reject(business_id, actor_email=principal_email(request))
