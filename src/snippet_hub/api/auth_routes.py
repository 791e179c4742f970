"""
Auth Session Routes

Bridges the auth provider's identity token into an HttpOnly session cookie so
that server-rendered requests resolve the same identity as API calls made
with a bearer token.
"""

from fastapi import APIRouter, Depends, Response, status
from typing import Annotated

from .models import SessionRequest, SessionResponse
from ..auth.models import UserContext
from ..auth.security import get_current_user, verify_identity_token
from ..config import settings

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(user: UserContext) -> SessionResponse:
    return SessionResponse(uid=user.uid, display_name=user.display_name, email=user.email)


@router.post(
    "/session",
    response_model=SessionResponse,
    summary="Store a verified identity token in the session cookie",
)
def create_session(req: SessionRequest, response: Response) -> SessionResponse:
    user = verify_identity_token(req.id_token)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=req.id_token,
        max_age=settings.session_cookie_max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return _session_response(user)


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Identity of the current session",
)
def read_session(
    user: Annotated[UserContext, Depends(get_current_user)],
) -> SessionResponse:
    return _session_response(user)


@router.delete(
    "/session",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear the session cookie",
)
def delete_session(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
