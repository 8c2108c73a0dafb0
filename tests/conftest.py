"""Shared pytest fixtures and configuration for all tests."""

import os
from datetime import UTC, datetime
from decimal import Decimal

import pytest

# main.py only wires the real application outside the test environment
os.environ.setdefault("ENVIRONMENT", "test")

from menu_api.config import Settings  # noqa: E402
from menu_api.models.menu_models import MenuCategory, MenuItem  # noqa: E402
from menu_api.models.user_models import User, UserRole  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    """Fixture providing test settings with a fixed token secret."""
    return Settings(jwt_secret="test-secret", environment="test")


@pytest.fixture
def regular_user() -> User:
    """Fixture providing a user with the ``user`` role."""
    return User(
        id="user_1",
        email="jane@example.com",
        name="Jane",
        password_hash="",
        role=UserRole.USER,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def admin_user() -> User:
    """Fixture providing a user with the ``admin`` role."""
    return User(
        id="admin_1",
        email="admin@example.com",
        name="Admin",
        password_hash="",
        role=UserRole.ADMIN,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def menu_item() -> MenuItem:
    """Fixture providing a stored menu item."""
    return MenuItem(
        id="item_1",
        name="Caesar Salad",
        slug="caesar-salad",
        description="Fresh romaine with caesar dressing",
        price=9.99,
        category=MenuCategory.APPETIZER,
        ingredients=["romaine", "parmesan", "croutons"],
        user_id="admin_1",
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
    )


@pytest.fixture
def menu_item_record() -> dict:
    """Fixture providing a raw DynamoDB menu item."""
    return {
        "id": "item_1",
        "name": "Caesar Salad",
        "slug": "caesar-salad",
        "description": "Fresh romaine with caesar dressing",
        "price": Decimal("9.99"),
        "category": "appetizer",
        "ingredients": ["romaine", "parmesan", "croutons"],
        "dietary_tags": ["vegetarian"],
        "image": "no-photo.jpg",
        "featured": False,
        "available": True,
        "calories": Decimal("350"),
        "user_id": "admin_1",
        "created_at": "2024-01-15T10:30:00+00:00",
    }
