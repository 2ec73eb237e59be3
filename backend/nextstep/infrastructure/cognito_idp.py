from __future__ import annotations

from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import DependencyError, ValidationError
from ..settings import settings

# Cognito answers these with a 4xx that the caller can fix (bad password,
# taken email, wrong credentials); everything else is a provider failure.
_CALLER_FAULT_CODES = {
    "UsernameExistsException",
    "InvalidPasswordException",
    "InvalidParameterException",
    "NotAuthorizedException",
    "UserNotFoundException",
    "UserNotConfirmedException",
}


@lru_cache(maxsize=1)
def client():
    return boto3.client("cognito-idp", region_name=settings.cognito_region or settings.aws_region)


def _call(operation: str, fn):
    try:
        return fn()
    except ClientError as e:
        code = str(((e.response or {}).get("Error") or {}).get("Code") or "")
        msg = str(((e.response or {}).get("Error") or {}).get("Message") or code or "identity error")
        if code in _CALLER_FAULT_CODES:
            raise ValidationError(message=msg, code=code) from e
        raise DependencyError(message=f"Identity provider {operation} failed", code=code or None, cause=e) from e
    except BotoCoreError as e:
        raise DependencyError(
            message=f"Identity provider {operation} failed", retryable=True, cause=e
        ) from e


def sign_up(*, email: str, password: str) -> dict[str, Any]:
    """Create an account; returns the new principal id (`UserSub`)."""
    resp = _call(
        "sign_up",
        lambda: client().sign_up(
            ClientId=settings.cognito_client_id,
            Username=email,
            Password=password,
            UserAttributes=[{"Name": "email", "Value": email}],
        ),
    )
    return {"userSub": resp.get("UserSub"), "confirmed": bool(resp.get("UserConfirmed"))}


def sign_in(*, email: str, password: str) -> dict[str, Any]:
    resp = _call(
        "sign_in",
        lambda: client().initiate_auth(
            AuthFlow="USER_PASSWORD_AUTH",
            ClientId=settings.cognito_client_id,
            AuthParameters={"USERNAME": email, "PASSWORD": password},
        ),
    )
    result = resp.get("AuthenticationResult") or {}
    return {
        "idToken": result.get("IdToken"),
        "accessToken": result.get("AccessToken"),
        "refreshToken": result.get("RefreshToken"),
        "expiresIn": result.get("ExpiresIn"),
    }


def sign_out(*, access_token: str) -> None:
    _call("sign_out", lambda: client().global_sign_out(AccessToken=access_token))
