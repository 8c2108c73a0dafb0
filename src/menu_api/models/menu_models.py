"""Menu data models.

Menu items, their categories and reviews, together with the request bodies
accepted by the write endpoints. Prices are floats on the model and
``Decimal`` in DynamoDB, which rejects binary floats.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
DEFAULT_IMAGE = "no-photo.jpg"


class MenuCategory(str, Enum):
    """Enumeration of menu categories."""

    APPETIZER = "appetizer"
    MAIN = "main"
    DESSERT = "dessert"
    BEVERAGE = "beverage"
    SPECIAL = "special"
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class DietaryTag(str, Enum):
    """Enumeration of dietary tags."""

    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    GLUTEN_FREE = "gluten-free"
    DAIRY_FREE = "dairy-free"
    NUT_FREE = "nut-free"
    SPICY = "spicy"


class MenuItemCreate(BaseModel):
    """Body of a menu item creation request."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    price: float = Field(..., ge=0)
    category: MenuCategory
    ingredients: list[str] = Field(..., min_length=1)
    dietary_tags: list[DietaryTag] = Field(default_factory=list)
    image: str = DEFAULT_IMAGE
    featured: bool = False
    available: bool = True
    preparation_time: int | None = Field(None, ge=0)
    calories: int | None = Field(None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        """Trim surrounding whitespace from the name."""
        return v.strip() if isinstance(v, str) else v


class MenuItemUpdate(BaseModel):
    """Body of a menu item update request. Only supplied fields change."""

    name: str | None = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    price: float | None = Field(None, ge=0)
    category: MenuCategory | None = None
    ingredients: list[str] | None = Field(None, min_length=1)
    dietary_tags: list[DietaryTag] | None = None
    image: str | None = None
    featured: bool | None = None
    available: bool | None = None
    preparation_time: int | None = Field(None, ge=0)
    calories: int | None = Field(None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        """Trim surrounding whitespace from the name."""
        return v.strip() if isinstance(v, str) else v


class MenuItem(BaseModel):
    """Stored menu item."""

    id: str = Field(..., description="Unique identifier for the menu item")
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    slug: str = Field(..., description="URL-safe form of the name")
    description: str = Field(..., max_length=DESCRIPTION_MAX_LENGTH)
    price: float = Field(..., ge=0)
    category: MenuCategory
    ingredients: list[str] = Field(..., min_length=1)
    dietary_tags: list[DietaryTag] = Field(default_factory=list)
    image: str = DEFAULT_IMAGE
    featured: bool = False
    available: bool = True
    preparation_time: int | None = Field(None, ge=0)
    calories: int | None = Field(None, ge=0)
    user_id: str = Field(..., description="User that created the item")
    created_at: datetime

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "price": Decimal(str(self.price)),
            "category": self.category.value,
            "ingredients": list(self.ingredients),
            "dietary_tags": [tag.value for tag in self.dietary_tags],
            "image": self.image,
            "featured": self.featured,
            "available": self.available,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
        }

        if self.preparation_time is not None:
            item["preparation_time"] = self.preparation_time

        if self.calories is not None:
            item["calories"] = self.calories

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "name": item["name"],
            "slug": item.get("slug", ""),
            "description": item["description"],
            "price": float(item["price"]),
            "category": MenuCategory(item["category"]),
            "ingredients": list(item.get("ingredients", [])),
            "dietary_tags": [DietaryTag(tag) for tag in item.get("dietary_tags", [])],
            "image": item.get("image", DEFAULT_IMAGE),
            "featured": item.get("featured", False),
            "available": item.get("available", True),
            "user_id": item["user_id"],
            "created_at": datetime.fromisoformat(item["created_at"]),
        }

        if item.get("preparation_time") is not None:
            data["preparation_time"] = int(item["preparation_time"])

        if item.get("calories") is not None:
            data["calories"] = int(item["calories"])

        return cls(**data)


class Category(BaseModel):
    """Menu category record holding the derived average price."""

    name: MenuCategory
    average_price: int = Field(default=0, ge=0)

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Category":
        return cls(
            name=MenuCategory(item["name"]),
            average_price=int(item.get("average_price", 0)),
        )


class ReviewCreate(BaseModel):
    """Body of a review creation request."""

    title: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1, max_length=500)
    rating: int = Field(..., ge=1, le=10)


class Review(BaseModel):
    """Review of a menu item written by a user."""

    id: str
    menu_item_id: str
    user_id: str
    title: str = Field(..., max_length=100)
    text: str = Field(..., max_length=500)
    rating: int = Field(..., ge=1, le=10)
    created_at: datetime

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "menu_item_id": self.menu_item_id,
            "user_id": self.user_id,
            "title": self.title,
            "text": self.text,
            "rating": self.rating,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Review":
        return cls(
            id=item["id"],
            menu_item_id=item["menu_item_id"],
            user_id=item["user_id"],
            title=item["title"],
            text=item["text"],
            rating=int(item["rating"]),
            created_at=datetime.fromisoformat(item["created_at"]),
        )
