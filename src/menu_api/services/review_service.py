"""Review service for menu item reviews."""

import logging
import uuid
from datetime import UTC, datetime

from menu_api.errors import NotFound
from menu_api.models.menu_models import Review, ReviewCreate
from menu_api.models.user_models import User
from menu_api.repositories.menu_repositories import MenuItemRepository, ReviewRepository

logger = logging.getLogger(__name__)


class ReviewService:
    """Service for creating, listing and deleting reviews of menu items."""

    def __init__(
        self, review_repository: ReviewRepository, menu_repository: MenuItemRepository
    ) -> None:
        """Initialize the ReviewService.

        Args:
            review_repository: Repository for reviews
            menu_repository: Repository used to check the reviewed item exists
        """
        self.review_repository = review_repository
        self.menu_repository = menu_repository

    async def list_reviews(self, menu_item_id: str) -> list[Review]:
        """List reviews of a menu item, newest first.

        Raises:
            NotFound: If the menu item does not exist
        """
        self._require_menu_item(menu_item_id)
        reviews = self.review_repository.list_for_menu_item(menu_item_id)
        return sorted(reviews, key=lambda review: review.created_at, reverse=True)

    async def create_review(self, menu_item_id: str, data: ReviewCreate, author: User) -> Review:
        """Create a review of a menu item.

        Raises:
            NotFound: If the menu item does not exist
        """
        self._require_menu_item(menu_item_id)

        review = Review(
            id=uuid.uuid4().hex,
            menu_item_id=menu_item_id,
            user_id=author.id,
            created_at=datetime.now(UTC),
            **data.model_dump(),
        )
        self.review_repository.save_review(review)
        logger.info(f"Review {review.id} of menu item {menu_item_id} created by {author.id}")
        return review

    async def find_review(self, review_id: str) -> Review | None:
        return self.review_repository.get_review(review_id)

    async def delete_review(self, review_id: str) -> None:
        if self.review_repository.get_review(review_id) is None:
            raise NotFound(f"Review not found with id of {review_id}")
        self.review_repository.delete_review(review_id)
        logger.info(f"Review {review_id} deleted")

    def _require_menu_item(self, menu_item_id: str) -> None:
        if self.menu_repository.get_item(menu_item_id) is None:
            raise NotFound(f"Menu item not found with id of {menu_item_id}")
