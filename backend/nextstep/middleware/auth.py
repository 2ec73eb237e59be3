from __future__ import annotations

import httpx
from fastapi import HTTPException, Request
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from ..auth.cognito import CognitoAuthError, verify_bearer_token
from ..observability.logging import get_logger
from ..problem_details import problem_response

_PUBLIC_PATHS = frozenset(
    {
        "/",
        "/api/auth/signup",
        "/api/auth/login",
        "/api/opportunities/categories",
    }
)


def is_public_path(path: str) -> bool:
    return path in _PUBLIC_PATHS


async def require_auth(request: Request) -> None:
    path = request.url.path

    # CORS preflight carries no credentials.
    if request.method.upper() == "OPTIONS":
        return
    if not path.startswith("/api/") or is_public_path(path):
        return

    auth = request.headers.get("authorization")
    if not auth:
        raise HTTPException(status_code=401, detail="Unauthorized")
    parts = str(auth).split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        user = verify_bearer_token(parts[1].strip())
    except CognitoAuthError as e:
        raise HTTPException(status_code=int(getattr(e, "status_code", 401)), detail=str(e)) from e
    except JWTError as e:
        raise HTTPException(status_code=401, detail="Unauthorized") from e
    except httpx.HTTPError as e:
        raise HTTPException(status_code=503, detail="Identity provider unavailable") from e

    request.state.user = user


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Bearer-token enforcement for /api/*.

    Added before CORSMiddleware so CORS wraps auth failures too.
    """

    async def dispatch(self, request: Request, call_next):
        log = get_logger("auth_middleware")
        try:
            await require_auth(request)
        except HTTPException as exc:
            log.info("auth_middleware_denied", status_code=exc.status_code, path=request.url.path)
            return problem_response(
                request=request,
                status_code=exc.status_code,
                title="Unauthorized" if exc.status_code == 401 else None,
                detail=str(exc.detail) if isinstance(exc.detail, str) else None,
            )
        return await call_next(request)
