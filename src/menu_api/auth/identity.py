"""Identity provider: credentials, token issuance and token verification.

Tokens are HS256 JWTs carrying the user id (``sub``) and issue time
(``iat``). They travel in the ``Authorization: Bearer`` header or an
httpOnly cookie.
"""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from menu_api.config import Settings
from menu_api.errors import InvalidToken, Unauthenticated, ValidationFailed
from menu_api.models.user_models import RegisterRequest, TokenClaims, User, UserRole
from menu_api.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# Rotation timestamps are backdated so a token issued in the same second
# as the password change is still fresh
PASSWORD_CHANGE_SKEW = timedelta(seconds=1)


class IdentityProvider:
    """Verifies credentials and issues/validates signed session tokens."""

    def __init__(self, user_repository: UserRepository, settings: Settings) -> None:
        """Initialize the identity provider.

        Args:
            user_repository: Repository for user records
            settings: Application settings (token secret, TTL, cookie options)
        """
        self.user_repository = user_repository
        self.settings = settings
        self.pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return self.pwd_context.verify(password, password_hash)
        except ValueError:
            logger.warning("Stored password hash is not recognized")
            return False

    def issue_token(self, user: User, issued_at: datetime | None = None) -> str:
        """Create a signed token for a user.

        Args:
            user: Subject of the token
            issued_at: Issue time, defaults to now

        Returns:
            str: Encoded JWT
        """
        now = issued_at or datetime.now(UTC)
        payload = {
            "sub": user.id,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(days=self.settings.jwt_expires_days)).timestamp()),
        }
        return jwt.encode(payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def decode_token(self, token: str) -> TokenClaims:
        """Verify a token's signature and expiry.

        Raises:
            InvalidToken: If the token is malformed, expired or badly signed
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
            return TokenClaims(sub=payload["sub"], iat=payload["iat"], exp=payload["exp"])
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("Not authorized to access this route. Token expired.") from e
        except (jwt.InvalidTokenError, ValidationError) as e:
            raise InvalidToken("Not authorized to access this route. Invalid token.") from e

    async def get_user(self, user_id: str) -> User | None:
        return self.user_repository.get_user(user_id)

    async def authenticate(self, email: str, password: str) -> User | None:
        """Check an email/password pair.

        Returns:
            The matching User, or None if the credentials are wrong
        """
        user = self.user_repository.get_user_by_email(email.strip().lower())
        if user is None or not self.verify_password(password, user.password_hash):
            return None
        return user

    async def register(self, request: RegisterRequest) -> User:
        """Create a user with the ``user`` role.

        Raises:
            ValidationFailed: If the email is already registered
        """
        user = User(
            id=uuid.uuid4().hex,
            email=request.email,
            name=request.name,
            password_hash=self.hash_password(request.password),
            role=UserRole.USER,
            created_at=datetime.now(UTC),
        )
        if not self.user_repository.create_user(user):
            raise ValidationFailed("Duplicate field value entered: email")
        logger.info(f"User {user.id} registered")
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> User:
        """Rotate a user's password, invalidating previously issued tokens.

        Raises:
            Unauthenticated: If ``current_password`` is wrong
        """
        if not self.verify_password(current_password, user.password_hash):
            raise Unauthenticated("Your current password is wrong")

        updated = user.model_copy(
            update={
                "password_hash": self.hash_password(new_password),
                "password_changed_at": datetime.now(UTC) - PASSWORD_CHANGE_SKEW,
            }
        )
        self.user_repository.save_user(updated)
        logger.info(f"Password changed for user {user.id}")
        return updated

    def cookie_settings(self) -> dict[str, Any]:
        """Keyword arguments for ``Response.set_cookie`` of the token cookie."""
        production = self.settings.is_production
        return {
            "key": self.settings.jwt_cookie_name,
            "max_age": self.settings.jwt_expires_days * 24 * 60 * 60,
            "httponly": True,
            "secure": production,
            "samesite": "none" if production else "lax",
        }
