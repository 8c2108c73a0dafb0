"""Authentication routes: register, login, logout, profile and password change."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from menu_api.auth.identity import IdentityProvider
from menu_api.auth.pipeline import current_user, get_identity, optional_user
from menu_api.errors import Unauthenticated
from menu_api.models.user_models import (
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _token_response(
    identity: IdentityProvider, user: User, response: Response
) -> dict[str, Any]:
    """Issue a token, set it as the session cookie and build the body."""
    token = identity.issue_token(user)
    response.set_cookie(value=token, **identity.cookie_settings())
    return {"success": True, "token": token, "data": user.public_view()}


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    identity: IdentityProvider = Depends(get_identity),
) -> dict[str, Any]:
    user = await identity.register(body)
    return _token_response(identity, user, response)


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    identity: IdentityProvider = Depends(get_identity),
) -> dict[str, Any]:
    """Exchange email and password for a session token cookie."""
    user = await identity.authenticate(body.email, body.password)
    if user is None:
        logger.info("Login rejected: invalid credentials")
        raise Unauthenticated("Incorrect email or password")
    return _token_response(identity, user, response)


@router.get("/logout")
async def logout(
    response: Response,
    identity: IdentityProvider = Depends(get_identity),
) -> dict[str, Any]:
    cookie = identity.cookie_settings()
    response.delete_cookie(
        key=cookie["key"],
        httponly=cookie["httponly"],
        secure=cookie["secure"],
        samesite=cookie["samesite"],
    )
    return {"success": True, "data": {}}


@router.get("/me")
async def me(user: User = Depends(current_user)) -> dict[str, Any]:
    return {"success": True, "data": user.public_view()}


@router.get("/session")
async def session(user: User | None = Depends(optional_user)) -> dict[str, Any]:
    """Report the caller's identity without requiring one."""
    return {
        "success": True,
        "authenticated": user is not None,
        "data": user.public_view() if user is not None else None,
    }


@router.put("/password")
async def change_password(
    body: PasswordChangeRequest,
    request: Request,
    response: Response,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    """Rotate the password and reissue the session cookie.

    Tokens issued before the change stop working.
    """
    identity = get_identity(request)
    updated = await identity.change_password(user, body.current_password, body.new_password)
    return _token_response(identity, updated, response)
