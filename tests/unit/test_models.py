"""Unit tests for menu and user models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from menu_api.models.menu_models import (
    DietaryTag,
    MenuCategory,
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    ReviewCreate,
)
from menu_api.models.user_models import RegisterRequest, User


@pytest.mark.unit
class TestMenuItemModels:
    """Test suite for menu item models."""

    def test_create_defaults(self) -> None:
        item = MenuItemCreate(
            name="Soup",
            description="Hot",
            price=4,
            category="main",
            ingredients=["water"],
        )

        assert item.image == "no-photo.jpg"
        assert item.featured is False
        assert item.available is True
        assert item.dietary_tags == []

    def test_name_is_trimmed_before_length_check(self) -> None:
        item = MenuItemCreate(
            name="  " + "x" * 50 + "  ",
            description="d",
            price=1,
            category="main",
            ingredients=["x"],
        )

        assert item.name == "x" * 50

    @pytest.mark.parametrize(
        "override",
        [
            {"name": "x" * 51},
            {"price": -0.01},
            {"category": "brunch"},
            {"ingredients": []},
            {"dietary_tags": ["paleo"]},
            {"description": "d" * 501},
        ],
    )
    def test_create_rejects_invalid_fields(self, override: dict) -> None:
        data = {
            "name": "Soup",
            "description": "Hot",
            "price": 4,
            "category": "main",
            "ingredients": ["water"],
            **override,
        }

        with pytest.raises(ValidationError):
            MenuItemCreate(**data)

    def test_update_tracks_supplied_fields(self) -> None:
        update = MenuItemUpdate(price=5, dietary_tags=["gluten-free"])

        assert update.model_dump(exclude_unset=True) == {
            "price": 5.0,
            "dietary_tags": [DietaryTag.GLUTEN_FREE],
        }

    def test_dynamodb_round_trip(self, menu_item: MenuItem) -> None:
        item = menu_item.model_copy(update={"dietary_tags": [DietaryTag.VEGAN], "calories": 200})

        restored = MenuItem.from_dynamodb_item(item.to_dynamodb_item())

        assert restored == item
        assert restored.category is MenuCategory.APPETIZER

    def test_review_rating_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ReviewCreate(title="t", text="x", rating=0)
        with pytest.raises(ValidationError):
            ReviewCreate(title="t", text="x", rating=11)


@pytest.mark.unit
class TestUserModels:
    """Test suite for user models."""

    def test_password_changed_after(self, regular_user: User) -> None:
        changed = datetime(2024, 3, 1, tzinfo=UTC)
        user = regular_user.model_copy(update={"password_changed_at": changed})
        stamp = int(changed.timestamp())

        assert user.password_changed_after(stamp - 1) is True
        assert user.password_changed_after(stamp) is False
        assert regular_user.password_changed_after(0) is False

    def test_public_view_hides_password_hash(self, regular_user: User) -> None:
        view = regular_user.public_view()

        assert "password_hash" not in view
        assert view["role"] == "user"
        assert view["created_at"] == "2024-01-01T00:00:00Z"

    def test_register_request_normalizes_email(self) -> None:
        request = RegisterRequest(name="Jane", email=" Jane@Example.COM ", password="longenough")

        assert request.email == "jane@example.com"

    @pytest.mark.parametrize("email", ["no-at-sign", "two@@example.com", "missing@tld"])
    def test_register_request_rejects_bad_email(self, email: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(name="Jane", email=email, password="longenough")
