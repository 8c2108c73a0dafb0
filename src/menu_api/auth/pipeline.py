"""Request authentication pipeline.

Stages run in strict order and each may stop the request:

1. token extraction (Bearer header, then cookie)  -> Unauthenticated
2. token verification                              -> InvalidToken
3. subject resolution                              -> StaleSubject
4. freshness against the last password change      -> StaleToken
5. the resolved user is attached to ``request.state.user``

No store lookup happens before a token has been found and verified.
"""

import logging

from fastapi import Request

from menu_api.auth.identity import IdentityProvider
from menu_api.errors import APIError, StaleSubject, StaleToken, Unauthenticated
from menu_api.models.user_models import User
from menu_api.observability.metrics import record_auth_failure

logger = logging.getLogger(__name__)


def get_identity(request: Request) -> IdentityProvider:
    identity: IdentityProvider = request.app.state.identity
    return identity


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Find the session token of a request.

    Args:
        request: Incoming request
        cookie_name: Name of the token cookie

    Returns:
        The token from ``Authorization: Bearer``, else from the cookie, else None
    """
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer"):
        parts = authorization.split(" ", 1)
        token = parts[1].strip() if len(parts) > 1 else ""
        if token:
            return token

    return request.cookies.get(cookie_name) or None


async def authenticate_request(request: Request) -> User:
    """Run stages 1-4 and return the resolved user.

    Raises:
        Unauthenticated: No token in the request
        InvalidToken: Token failed verification
        StaleSubject: Token subject no longer exists
        StaleToken: Token predates the user's last password change
    """
    identity = get_identity(request)

    token = extract_token(request, identity.settings.jwt_cookie_name)
    if token is None:
        raise Unauthenticated("Not authorized to access this route. No token provided.")

    claims = identity.decode_token(token)

    user = await identity.get_user(claims.sub)
    if user is None:
        raise StaleSubject("The user belonging to this token no longer exists.")

    if user.password_changed_after(claims.iat):
        raise StaleToken("User recently changed password. Please log in again.")

    return user


async def current_user(request: Request) -> User:
    """FastAPI dependency resolving the authenticated user.

    Attaches the user to ``request.state.user`` for downstream stages.
    """
    try:
        user = await authenticate_request(request)
    except APIError as e:
        record_auth_failure(type(e).__name__)
        logger.info(f"Authentication rejected ({type(e).__name__}) for {request.url.path}")
        raise

    request.state.user = user
    return user


async def optional_user(request: Request) -> User | None:
    """FastAPI dependency for endpoints that personalize when logged in.

    Runs the same stages as ``current_user`` but never fails.
    """
    try:
        user = await authenticate_request(request)
    except APIError as e:
        logger.debug(f"Optional authentication skipped: {type(e).__name__}")
        request.state.user = None
        return None

    request.state.user = user
    return user
