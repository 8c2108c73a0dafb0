"""DynamoDB repository for user records."""

import logging

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from menu_api.errors import InternalFailure
from menu_api.models.user_models import User
from menu_api.repositories.unique_claims import is_conflict, put_claim, put_record

logger = logging.getLogger(__name__)

EMAIL_FIELD = "email"


class UserRepository:
    """Repository for user CRUD operations.

    Manages user records keyed by ``id`` with an ``email-index`` global
    secondary index. Emails are kept unique with claim records in the same
    table (see ``unique_claims``); the index serves login lookups only.
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

    def get_user(self, user_id: str) -> User | None:
        """Retrieve a user by ID.

        Args:
            user_id: User identifier

        Returns:
            User if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": user_id})
        except ClientError as e:
            logger.error(f"Failed to get user {user_id}: {e}")
            raise InternalFailure("Failed to load user") from e

        if "Item" not in response:
            return None

        return User.from_dynamodb_item(response["Item"])

    def get_user_by_email(self, email: str) -> User | None:
        """Retrieve a user by login email."""
        try:
            response = self.table.query(
                IndexName="email-index",
                KeyConditionExpression=Key("email").eq(email.lower()),
                Limit=1,
            )
        except ClientError as e:
            logger.error(f"Failed to look up user by email: {e}")
            raise InternalFailure("Failed to load user") from e

        items = response.get("Items", [])
        return User.from_dynamodb_item(items[0]) if items else None

    def save_user(self, user: User) -> None:
        """Replace an existing user record. The email must not change."""
        try:
            self.table.put_item(Item=user.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to save user {user.id}: {e}")
            raise InternalFailure("Failed to save user") from e

    def create_user(self, user: User) -> bool:
        """Store a new user and claim its email in one transaction.

        Returns:
            bool: True if created, False if the email is already registered
        """
        actions = [
            put_record(self.table_name, user.to_dynamodb_item(), new=True),
            put_claim(self.table_name, EMAIL_FIELD, user.email, user.id),
        ]
        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=actions)
        except ClientError as e:
            if is_conflict(e):
                return False
            logger.error(f"Failed to create user {user.id}: {e}")
            raise InternalFailure("Failed to save user") from e
        return True
