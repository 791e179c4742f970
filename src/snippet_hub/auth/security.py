"""
Identity Token Verification

This module is responsible for:

1. Locating the caller's identity token, either in the `Authorization:
   Bearer` header or in the session cookie.
2. Verifying the token's signature, issuer, audience and expiry.
3. Producing a validated `UserContext` for downstream routes.

Security Model
--------------
- Tokens are signed by the auth provider with a shared secret.
- The session cookie carries the same token so that server-rendered requests
  resolve the same identity as API calls.
- Ownership of a snippet is enforced by the repository, not here.
"""

from __future__ import annotations

import jwt
import logging
from typing import Annotated, Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..core.errors import UnauthenticatedError
from .models import UserContext

logger = logging.getLogger("snippets.auth")


# ---------------------------------------------------------------------
# Security Scheme
# ---------------------------------------------------------------------

security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class JWTVerificationError(RuntimeError):
    """Raised internally when verification cannot run because of configuration."""


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _validate_jwt_config() -> None:
    """
    Validate that token verification configuration is present.
    """
    if not settings.auth_jwt_secret.get_secret_value():
        raise JWTVerificationError("Missing auth_jwt_secret in configuration.")
    if not settings.auth_jwt_algo:
        raise JWTVerificationError("Missing auth_jwt_algo in configuration.")


def _decode_identity_token(token: str) -> dict:
    """
    Decode and validate an identity token.

    Raises
    ------
    Various JWT-related exceptions, which the public wrapper handles.
    """
    _validate_jwt_config()

    return jwt.decode(
        token,
        settings.auth_jwt_secret.get_secret_value(),
        algorithms=[settings.auth_jwt_algo],
        audience=settings.auth_jwt_audience,
        issuer=settings.auth_jwt_issuer,
        options={
            "require": ["iss", "aud", "iat", "exp", "sub"],
        },
    )


def _extract_token(
    creds: Optional[HTTPAuthorizationCredentials],
    session_token: Optional[str],
) -> Optional[str]:
    """Prefer the bearer header; fall back to the session cookie."""
    if creds is not None and creds.credentials:
        return creds.credentials
    return session_token or None


# ---------------------------------------------------------------------
# Public verification
# ---------------------------------------------------------------------

def verify_identity_token(token: str) -> UserContext:
    """
    Verify an identity token and construct a UserContext.

    Expected claims:
      - iss / aud: configured issuer and audience
      - sub: user id
      - name, email: optional profile fields

    Raises
    ------
    UnauthenticatedError for invalid or expired tokens.
    HTTPException(500) when verification is not configured.
    """
    try:
        payload = _decode_identity_token(token)
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Session has expired. Please sign in again.")
    except jwt.InvalidAudienceError:
        raise UnauthenticatedError("Invalid token audience.")
    except jwt.InvalidIssuerError:
        raise UnauthenticatedError("Invalid token issuer.")
    except jwt.InvalidTokenError:
        raise UnauthenticatedError("Invalid or malformed token.")
    except JWTVerificationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Identity verification configuration error.",
        )

    uid = payload.get("sub")
    if not uid or not isinstance(uid, str):
        raise UnauthenticatedError("Token missing 'sub' claim.")

    return UserContext(
        uid=uid,
        display_name=payload.get("name"),
        email=payload.get("email"),
    )


# ---------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------

def get_current_user(
    creds: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    session_token: Annotated[Optional[str], Cookie(alias=settings.session_cookie_name)] = None,
) -> UserContext:
    """
    Resolve the signed-in user or fail with Unauthenticated.

    Example:
        @router.post("/snippets")
        async def create(user: Annotated[UserContext, Depends(get_current_user)]):
            ...
    """
    token = _extract_token(creds, session_token)
    if not token:
        raise UnauthenticatedError()
    return verify_identity_token(token)


def get_optional_user(
    creds: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    session_token: Annotated[Optional[str], Cookie(alias=settings.session_cookie_name)] = None,
) -> Optional[UserContext]:
    """
    Resolve the signed-in user, or None for anonymous callers.

    An invalid or expired credential is treated as anonymous.
    """
    token = _extract_token(creds, session_token)
    if not token:
        return None
    try:
        return verify_identity_token(token)
    except UnauthenticatedError as exc:
        logger.info("Ignoring unusable credential: %s", exc.message)
        return None
