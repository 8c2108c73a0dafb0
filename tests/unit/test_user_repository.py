"""Unit tests for UserRepository."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from menu_api.errors import InternalFailure
from menu_api.models.user_models import User, UserRole
from menu_api.repositories.user_repository import UserRepository


@pytest.mark.unit
class TestUserRepository:
    """Test suite for UserRepository."""

    @pytest.fixture
    def mock_dynamodb(self) -> MagicMock:
        """Create a mock DynamoDB resource."""
        return MagicMock()

    @pytest.fixture
    def repository(self, mock_dynamodb: MagicMock) -> UserRepository:
        return UserRepository(dynamodb_resource=mock_dynamodb, table_name="test-users")

    @pytest.fixture
    def user_record(self) -> dict:
        return {
            "id": "user_1",
            "email": "jane@example.com",
            "name": "Jane",
            "password_hash": "hash",
            "role": "admin",
            "created_at": "2024-01-01T00:00:00+00:00",
            "password_changed_at": "2024-03-01T00:00:00+00:00",
        }

    def test_get_user_success(
        self, repository: UserRepository, mock_dynamodb: MagicMock, user_record: dict
    ) -> None:
        mock_dynamodb.Table.return_value.get_item.return_value = {"Item": user_record}

        user = repository.get_user("user_1")

        assert user is not None
        assert user.role == UserRole.ADMIN
        assert user.password_changed_at == datetime(2024, 3, 1, tzinfo=UTC)

    def test_get_user_not_found(self, repository: UserRepository, mock_dynamodb: MagicMock) -> None:
        mock_dynamodb.Table.return_value.get_item.return_value = {}

        assert repository.get_user("missing") is None

    def test_get_user_dynamodb_error(
        self, repository: UserRepository, mock_dynamodb: MagicMock
    ) -> None:
        mock_dynamodb.Table.return_value.get_item.side_effect = ClientError(
            {"Error": {"Code": "InternalServerError", "Message": "Server error"}}, "GetItem"
        )

        with pytest.raises(InternalFailure):
            repository.get_user("user_1")

    def test_get_user_by_email_lowercases(
        self, repository: UserRepository, mock_dynamodb: MagicMock, user_record: dict
    ) -> None:
        """Test that email lookups go through the email index in lowercase."""
        mock_dynamodb.Table.return_value.query.return_value = {"Items": [user_record]}

        user = repository.get_user_by_email("Jane@Example.com")

        assert user is not None
        assert user.id == "user_1"
        call_kwargs = mock_dynamodb.Table.return_value.query.call_args.kwargs
        assert call_kwargs["IndexName"] == "email-index"

    def test_get_user_by_email_not_found(
        self, repository: UserRepository, mock_dynamodb: MagicMock
    ) -> None:
        mock_dynamodb.Table.return_value.query.return_value = {"Items": []}

        assert repository.get_user_by_email("nobody@example.com") is None

    def test_save_user_omits_missing_password_change(
        self, repository: UserRepository, mock_dynamodb: MagicMock
    ) -> None:
        user = User(
            id="user_1",
            email="jane@example.com",
            name="Jane",
            password_hash="hash",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

        repository.save_user(user)

        saved = mock_dynamodb.Table.return_value.put_item.call_args.kwargs["Item"]
        assert saved["role"] == "user"
        assert "password_changed_at" not in saved

    def test_create_user_claims_email(
        self, repository: UserRepository, mock_dynamodb: MagicMock
    ) -> None:
        """Test that the user and its email claim are written in one transaction."""
        user = User(
            id="user_1",
            email="jane@example.com",
            name="Jane",
            password_hash="hash",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

        assert repository.create_user(user) is True

        actions = mock_dynamodb.meta.client.transact_write_items.call_args.kwargs[
            "TransactItems"
        ]
        assert actions[0]["Put"]["Item"]["id"] == "user_1"
        assert actions[1]["Put"]["Item"] == {"id": "email#jane@example.com", "owner_id": "user_1"}
        assert all(
            action["Put"]["ConditionExpression"] == "attribute_not_exists(#id)"
            for action in actions
        )

    def test_create_user_with_registered_email(
        self, repository: UserRepository, mock_dynamodb: MagicMock
    ) -> None:
        mock_dynamodb.meta.client.transact_write_items.side_effect = ClientError(
            {
                "Error": {"Code": "TransactionCanceledException", "Message": "cancelled"},
                "CancellationReasons": [{"Code": "None"}, {"Code": "ConditionalCheckFailed"}],
            },
            "TransactWriteItems",
        )
        user = User(
            id="user_2",
            email="jane@example.com",
            name="Jane",
            password_hash="hash",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

        assert repository.create_user(user) is False
