"""User and token models.

Users are stored in DynamoDB with ``id`` as partition key and an
``email-index`` global secondary index for login lookups.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    """Enumeration of user roles."""

    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """Registered user."""

    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="Login email, stored lowercase")
    name: str = Field(..., description="Display name")
    password_hash: str = Field(..., description="Hashed password")
    role: UserRole = Field(default=UserRole.USER, description="Authorization role")
    password_changed_at: datetime | None = Field(
        None, description="Timestamp of the last password change"
    )
    created_at: datetime = Field(..., description="Registration timestamp")

    def password_changed_after(self, issued_at: int) -> bool:
        """Check whether the password changed after a token was issued.

        Args:
            issued_at: Token ``iat`` claim in seconds since the epoch

        Returns:
            bool: True if the token predates the last password change
        """
        if self.password_changed_at is None:
            return False
        return int(self.password_changed_at.timestamp()) > issued_at

    def public_view(self) -> dict[str, Any]:
        """Serialize the user without secrets."""
        return self.model_dump(mode="json", exclude={"password_hash"})

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "created_at": self.created_at.isoformat(),
        }

        if self.password_changed_at is not None:
            item["password_changed_at"] = self.password_changed_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "User":
        """Create User from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            User: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "email": item["email"],
            "name": item.get("name", ""),
            "password_hash": item["password_hash"],
            "role": UserRole(item.get("role", UserRole.USER.value)),
            "created_at": datetime.fromisoformat(item["created_at"]),
        }

        if "password_changed_at" in item:
            data["password_changed_at"] = datetime.fromisoformat(item["password_changed_at"])

        return cls(**data)


class TokenClaims(BaseModel):
    """Verified claims of a session token."""

    sub: str
    iat: int
    exp: int


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
