"""
Identity Token Utilities

Helpers for minting the identity tokens the service accepts. Production
tokens come from the auth provider; these helpers exist for development
tooling and tests, and sign with the same shared secret the verifier uses.
"""

from __future__ import annotations

import jwt
import time
from typing import Dict, Any, Optional

from ..config import settings


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class JWTConfigurationError(RuntimeError):
    """Raised when token generation cannot proceed due to configuration issues."""


# ---------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------

def _get_current_timestamp() -> int:
    """Return current UNIX timestamp in UTC as integer seconds."""
    return int(time.time())


def _validate_jwt_config() -> None:
    """
    Ensures required JWT configuration is present.
    Raises a structured exception instead of failing deep inside jwt.encode().
    """
    if not settings.auth_jwt_secret.get_secret_value():
        raise JWTConfigurationError(
            "auth_jwt_secret is not configured. Cannot generate identity token."
        )

    if settings.auth_token_ttl <= 0:
        raise JWTConfigurationError(
            f"auth_token_ttl must be a positive integer; got {settings.auth_token_ttl}"
        )


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def create_identity_token(
    uid: str,
    display_name: Optional[str] = None,
    email: Optional[str] = None,
) -> str:
    """
    Generate an identity token for `uid`.

    Parameters
    ----------
    uid : str
        User identifier, stored as the `sub` claim.

    display_name : Optional[str]
        Optional `name` claim.

    email : Optional[str]
        Optional `email` claim.

    Returns
    -------
    str
        Encoded JWT suitable for `Authorization: Bearer <token>` or the
        session cookie.

    Raises
    ------
    JWTConfigurationError
        If configuration is missing or invalid.
    """
    _validate_jwt_config()

    now = _get_current_timestamp()

    payload: Dict[str, Any] = {
        "iss": settings.auth_jwt_issuer,
        "aud": settings.auth_jwt_audience,
        "iat": now,
        "exp": now + settings.auth_token_ttl,
        "sub": uid,
    }
    if display_name:
        payload["name"] = display_name
    if email:
        payload["email"] = email

    secret = settings.auth_jwt_secret.get_secret_value()
    algo = settings.auth_jwt_algo

    try:
        token = jwt.encode(payload, secret, algorithm=algo)
    except Exception as exc:
        raise JWTConfigurationError(
            f"Failed to generate identity token: {type(exc).__name__}: {str(exc)}"
        ) from exc

    return token
