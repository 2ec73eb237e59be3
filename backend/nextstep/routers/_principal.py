from __future__ import annotations

from fastapi import HTTPException, Request

from ..auth.cognito import VerifiedUser


def current_user(request: Request) -> VerifiedUser:
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def principal_id(request: Request) -> str:
    return current_user(request).sub


def principal_email(request: Request) -> str | None:
    return current_user(request).email
