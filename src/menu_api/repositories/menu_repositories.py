"""DynamoDB repository classes for menu items, categories and reviews.

Lookups return None for missing records. Unexpected DynamoDB failures are
logged and raised as InternalFailure so the API translator can render them.
"""

import logging
from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import ConditionBase, Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from menu_api.errors import InternalFailure
from menu_api.models.menu_models import Category, MenuItem, Review
from menu_api.repositories.unique_claims import (
    delete_claim,
    delete_key,
    exclude_claims,
    is_claim_key,
    is_conflict,
    put_claim,
    put_record,
)

logger = logging.getLogger(__name__)

NAME_FIELD = "name"


def _query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Run a query following LastEvaluatedKey until exhausted."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


class MenuItemRepository:
    """Repository for menu item CRUD operations.

    Manages menu item records keyed by ``id`` with a ``category-index``
    global secondary index. Item names are kept unique with claim records
    in the same table (see ``unique_claims``).
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_item(self, item_id: str) -> MenuItem | None:
        """Retrieve a menu item by ID.

        Args:
            item_id: Menu item identifier

        Returns:
            MenuItem if found, None otherwise
        """
        if is_claim_key(item_id):
            return None

        try:
            response = self.table.get_item(Key={"id": item_id})
        except ClientError as e:
            logger.error(f"Failed to get menu item {item_id}: {e}")
            raise InternalFailure("Failed to load menu item") from e

        if "Item" not in response:
            return None

        return MenuItem.from_dynamodb_item(response["Item"])

    def create_item(self, item: MenuItem) -> bool:
        """Store a new menu item and claim its name in one transaction.

        Args:
            item: MenuItem to create

        Returns:
            bool: True if created, False if another item holds the name
        """
        return self._transact(
            [
                put_record(self.table_name, item.to_dynamodb_item(), new=True),
                put_claim(self.table_name, NAME_FIELD, item.name, item.id),
            ],
            f"Failed to create menu item {item.id}",
            "Failed to save menu item",
        )

    def replace_item(self, item: MenuItem, previous_name: str) -> bool:
        """Replace a stored menu item, moving its name claim on rename.

        Args:
            item: Updated MenuItem
            previous_name: Name stored before the update

        Returns:
            bool: True if saved, False if the new name is held by another item
        """
        if item.name == previous_name:
            try:
                self.table.put_item(Item=item.to_dynamodb_item())
            except ClientError as e:
                logger.error(f"Failed to save menu item {item.id}: {e}")
                raise InternalFailure("Failed to save menu item") from e
            return True

        return self._transact(
            [
                put_record(self.table_name, item.to_dynamodb_item(), new=False),
                put_claim(self.table_name, NAME_FIELD, item.name, item.id),
                delete_claim(self.table_name, NAME_FIELD, previous_name),
            ],
            f"Failed to rename menu item {item.id}",
            "Failed to save menu item",
        )

    def delete_item(self, item: MenuItem) -> None:
        """Delete a menu item and release its name."""
        self._transact(
            [
                delete_key(self.table_name, item.id),
                delete_claim(self.table_name, NAME_FIELD, item.name),
            ],
            f"Failed to delete menu item {item.id}",
            "Failed to delete menu item",
        )

    def _transact(self, actions: list[dict[str, Any]], log_message: str, error: str) -> bool:
        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=actions)
        except ClientError as e:
            if is_conflict(e):
                return False
            logger.error(f"{log_message}: {e}")
            raise InternalFailure(error) from e
        return True

    def find(self, condition: ConditionBase | None = None) -> list[dict[str, Any]]:
        """Scan the table for items matching a condition.

        Follows ``LastEvaluatedKey`` so that every matching item is returned.
        Name claim records are never returned.

        Args:
            condition: Filter expression, or None for all items

        Returns:
            list: Raw DynamoDB items
        """
        scan_kwargs: dict[str, Any] = {"FilterExpression": exclude_claims(condition)}

        items: list[dict[str, Any]] = []
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error(f"Failed to scan menu items: {e}")
            raise InternalFailure("Failed to list menu items") from e

        return items

    def list_prices_for_category(self, category: str) -> list[Decimal]:
        """List current prices of every item in a category."""
        try:
            items = _query_all(
                self.table,
                IndexName="category-index",
                KeyConditionExpression=Key("category").eq(category),
                ProjectionExpression="price",
            )
        except ClientError as e:
            logger.error(f"Failed to list prices for category {category}: {e}")
            raise InternalFailure("Failed to list category prices") from e

        return [Decimal(item["price"]) for item in items if "price" in item]


class CategoryRepository:
    """Repository for category records keyed by ``name``."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_category(self, name: str) -> Category | None:
        try:
            response = self.table.get_item(Key={"name": name})
        except ClientError as e:
            logger.error(f"Failed to get category {name}: {e}")
            raise InternalFailure("Failed to load category") from e

        if "Item" not in response:
            return None

        return Category.from_dynamodb_item(response["Item"])

    def update_average_price(self, name: str, average_price: int) -> bool:
        """Store the average price on an existing category record.

        Args:
            name: Category name
            average_price: Rounded average price

        Returns:
            bool: True if updated, False if no record exists for the category
        """
        try:
            self.table.update_item(
                Key={"name": name},
                UpdateExpression="SET average_price = :avg",
                ConditionExpression="attribute_exists(#name)",
                ExpressionAttributeNames={"#name": "name"},
                ExpressionAttributeValues={":avg": average_price},
            )
            return True

        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.info(f"No category record for {name}, average price not stored")
                return False
            logger.error(f"Failed to update average price for {name}: {e}")
            raise InternalFailure("Failed to update category") from e


class ReviewRepository:
    """Repository for reviews keyed by ``id`` with a ``menu_item_id-index``."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_review(self, review_id: str) -> Review | None:
        try:
            response = self.table.get_item(Key={"id": review_id})
        except ClientError as e:
            logger.error(f"Failed to get review {review_id}: {e}")
            raise InternalFailure("Failed to load review") from e

        if "Item" not in response:
            return None

        return Review.from_dynamodb_item(response["Item"])

    def save_review(self, review: Review) -> None:
        try:
            self.table.put_item(Item=review.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to save review {review.id}: {e}")
            raise InternalFailure("Failed to save review") from e

    def delete_review(self, review_id: str) -> None:
        try:
            self.table.delete_item(Key={"id": review_id})
        except ClientError as e:
            logger.error(f"Failed to delete review {review_id}: {e}")
            raise InternalFailure("Failed to delete review") from e

    def list_for_menu_item(self, menu_item_id: str) -> list[Review]:
        """List all reviews referencing a menu item."""
        try:
            items = _query_all(
                self.table,
                IndexName="menu_item_id-index",
                KeyConditionExpression=Key("menu_item_id").eq(menu_item_id),
            )
        except ClientError as e:
            logger.error(f"Failed to list reviews for {menu_item_id}: {e}")
            raise InternalFailure("Failed to list reviews") from e

        return [Review.from_dynamodb_item(item) for item in items]

    def delete_for_menu_item(self, menu_item_id: str) -> int:
        """Delete every review referencing a menu item.

        Args:
            menu_item_id: Menu item identifier

        Returns:
            int: Number of reviews deleted
        """
        reviews = self.list_for_menu_item(menu_item_id)
        if not reviews:
            return 0

        try:
            with self.table.batch_writer() as batch:
                for review in reviews:
                    batch.delete_item(Key={"id": review.id})
        except ClientError as e:
            logger.error(f"Failed to delete reviews for {menu_item_id}: {e}")
            raise InternalFailure("Failed to delete reviews") from e

        return len(reviews)
