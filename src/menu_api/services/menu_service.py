"""Menu service: menu item CRUD and derived-field maintenance."""

import logging
import math
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from menu_api.errors import NotFound, ValidationFailed, validation_message
from menu_api.models.menu_models import MenuItem, MenuItemCreate, MenuItemUpdate
from menu_api.models.user_models import User
from menu_api.observability import traced
from menu_api.observability.metrics import record_derived_refresh_failure, record_menu_item_write
from menu_api.repositories.menu_repositories import (
    CategoryRepository,
    MenuItemRepository,
    ReviewRepository,
)
from menu_api.services.query_builder import (
    build_condition,
    build_envelope,
    build_pagination,
    parse_list_query,
    project_item,
    sort_items,
)
from menu_api.services.slugs import slugify

logger = logging.getLogger(__name__)

# Attributes stored as lists; equality filters on them mean "contains"
LIST_FIELDS = frozenset({"ingredients", "dietary_tags"})

DUPLICATE_NAME = "Duplicate field value entered: name"


class MenuService:
    """Service for menu item operations.

    Besides CRUD, this service keeps derived data consistent: the slug is
    recomputed from the name on every write, and after each create, update or
    delete the average price of the affected categories is refreshed.
    Deleting an item also deletes its reviews. Both refreshes are
    best-effort: failures are logged and never reach the caller.
    """

    def __init__(
        self,
        menu_repository: MenuItemRepository,
        category_repository: CategoryRepository,
        review_repository: ReviewRepository,
    ) -> None:
        """Initialize the MenuService.

        Args:
            menu_repository: Repository for menu items
            category_repository: Repository for category records
            review_repository: Repository for reviews
        """
        self.menu_repository = menu_repository
        self.category_repository = category_repository
        self.review_repository = review_repository

    @traced("menu.list_items")
    async def list_menu_items(self, params: dict[str, Any]) -> dict[str, Any]:
        """List menu items matching a query string.

        Args:
            params: Raw query parameters (filters plus select/sort/page/limit)

        Returns:
            Pagination envelope with success flag, count, pagination and data
        """
        query = parse_list_query(params)
        condition = build_condition(query.filters, LIST_FIELDS)

        matches = [
            MenuItem.from_dynamodb_item(item).model_dump()
            for item in self.menu_repository.find(condition)
        ]
        total = len(matches)

        ordered = sort_items(matches, query.sort)
        window = ordered[query.skip : query.skip + query.limit]
        data = [project_item(item, query.fields) for item in window]

        logger.debug(f"Menu listing matched {total} items, returning {len(data)}")
        return build_envelope(data, build_pagination(query.page, query.limit, total))

    async def find_menu_item(self, item_id: str) -> MenuItem | None:
        return self.menu_repository.get_item(item_id)

    async def get_menu_item(self, item_id: str) -> MenuItem:
        """Get a menu item by ID.

        Raises:
            NotFound: If no item has this ID
        """
        item = self.menu_repository.get_item(item_id)
        if item is None:
            raise NotFound(f"Menu item not found with id of {item_id}")
        return item

    @traced("menu.create_item")
    async def create_menu_item(self, data: MenuItemCreate, owner: User) -> MenuItem:
        """Create a menu item owned by ``owner``.

        Args:
            data: Validated creation body
            owner: Authenticated user creating the item

        Returns:
            The stored MenuItem

        Raises:
            ValidationFailed: If another item already uses the name
        """
        item = MenuItem(
            id=uuid.uuid4().hex,
            slug=slugify(data.name),
            user_id=owner.id,
            created_at=datetime.now(UTC),
            **data.model_dump(),
        )
        if not self.menu_repository.create_item(item):
            raise ValidationFailed(DUPLICATE_NAME)
        record_menu_item_write("create")
        logger.info(f"Menu item {item.id} created by user {owner.id}")

        await self.refresh_category_average(item.category.value)
        return item

    @traced("menu.update_item")
    async def update_menu_item(self, item_id: str, data: MenuItemUpdate) -> MenuItem:
        """Apply a partial update to a menu item.

        Raises:
            NotFound: If no item has this ID
            ValidationFailed: If the merged item violates a constraint
        """
        existing = await self.get_menu_item(item_id)
        changes = data.model_dump(exclude_unset=True)

        merged = {**existing.model_dump(), **changes}
        try:
            updated = MenuItem(**merged)
        except ValidationError as e:
            raise ValidationFailed(validation_message(e.errors())) from e
        updated.slug = slugify(updated.name)

        if not self.menu_repository.replace_item(updated, previous_name=existing.name):
            raise ValidationFailed(DUPLICATE_NAME)
        record_menu_item_write("update")
        logger.info(f"Menu item {item_id} updated: {sorted(changes)}")

        await self.refresh_category_average(updated.category.value)
        if updated.category != existing.category:
            await self.refresh_category_average(existing.category.value)
        return updated

    @traced("menu.delete_item")
    async def delete_menu_item(self, item_id: str) -> None:
        """Delete a menu item, its reviews and refresh the category average.

        Raises:
            NotFound: If no item has this ID
        """
        item = await self.get_menu_item(item_id)
        self.menu_repository.delete_item(item)
        record_menu_item_write("delete")
        logger.info(f"Menu item {item_id} deleted")

        await self.delete_reviews_for(item_id)
        await self.refresh_category_average(item.category.value)

    async def delete_reviews_for(self, item_id: str) -> None:
        """Cascade-delete reviews of a menu item. Failures are logged only."""
        try:
            deleted = self.review_repository.delete_for_menu_item(item_id)
            logger.info(f"Deleted {deleted} reviews of menu item {item_id}")
        except Exception as e:
            logger.exception(f"Failed to delete reviews of menu item {item_id}: {e}")
            record_derived_refresh_failure("review_cascade")

    async def refresh_category_average(self, category: str) -> None:
        """Recompute and store the average price of a category.

        The average is the arithmetic mean of current prices rounded up to
        the next integer, or 0 when the category is empty. Failures are
        logged only.
        """
        try:
            prices = self.menu_repository.list_prices_for_category(category)
            average = math.ceil(sum(prices) / len(prices)) if prices else 0
            self.category_repository.update_average_price(category, average)
            logger.debug(f"Average price of {category} is {average}")
        except Exception as e:
            logger.exception(f"Failed to refresh average price of {category}: {e}")
            record_derived_refresh_failure("category_average")
