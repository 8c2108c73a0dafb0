"""Application configuration.

Settings are read from environment variables once at startup and passed
explicitly to the app factory and the identity provider.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the menu API."""

    jwt_secret: str
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    aws_region: str = "us-east-1"
    dynamodb_endpoint: str | None = None
    menu_items_table: str = "menu-items"
    categories_table: str = "menu-categories"
    reviews_table: str = "menu-reviews"
    users_table: str = "menu-users"
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 30
    jwt_cookie_name: str = "jwt"
    frontend_url: str | None = None
    enable_otel: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Returns:
            Settings populated from the process environment

        Raises:
            ValueError: If JWT_SECRET is not set
        """
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise ValueError("JWT_SECRET must be set in environment")

        return cls(
            jwt_secret=jwt_secret,
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            dynamodb_endpoint=os.getenv("DYNAMODB_ENDPOINT") or None,
            menu_items_table=os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "menu-items"),
            categories_table=os.getenv("DYNAMODB_CATEGORIES_TABLE", "menu-categories"),
            reviews_table=os.getenv("DYNAMODB_REVIEWS_TABLE", "menu-reviews"),
            users_table=os.getenv("DYNAMODB_USERS_TABLE", "menu-users"),
            jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", "30")),
            jwt_cookie_name=os.getenv("JWT_COOKIE_NAME", "jwt"),
            frontend_url=os.getenv("FRONTEND_URL") or None,
            enable_otel=os.getenv("ENABLE_OTEL", "false").lower() == "true",
        )
