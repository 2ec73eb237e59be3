from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, EmailStr, Field

from ..infrastructure import cognito_idp
from ..modules.approval.approval_gate import approval_status
from ..modules.identity.roles import ROLE_ADMIN, ROLE_BUSINESS, ROLE_STUDENT, is_admin_email
from ..modules.profiles.profile_service import party_type
from ..observability.logging import get_logger
from ._principal import current_user

router = APIRouter(tags=["auth"])
log = get_logger("auth")

_ROLES = {"business": ROLE_BUSINESS, "student": ROLE_STUDENT}


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    accessToken: str = Field(..., min_length=1)


@router.post("/signup", status_code=201)
def signup(body: SignupRequest):
    # The party type is fixed by the profile registered afterwards; see `/me`.
    email = str(body.email).strip().lower()
    res = cognito_idp.sign_up(email=email, password=body.password)
    log.info("user_signed_up", confirmed=res.get("confirmed"))
    return {"userSub": res.get("userSub"), "confirmed": res.get("confirmed")}


@router.post("/login")
def login(body: LoginRequest):
    return cognito_idp.sign_in(email=str(body.email).strip().lower(), password=body.password)


@router.post("/logout", status_code=204)
def logout(body: LogoutRequest):
    cognito_idp.sign_out(access_token=body.accessToken)


@router.get("/me")
def me(request: Request):
    user = current_user(request)
    kind = party_type(user.sub)
    role = _ROLES.get(kind or "")
    if is_admin_email(user.email):
        role = ROLE_ADMIN
    out = {"sub": user.sub, "email": user.email, "role": role, "registered": kind is not None}
    if kind == "business":
        out["approvalStatus"] = approval_status(user.sub)
    return out
