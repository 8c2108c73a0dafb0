"""Unit tests for the request authentication pipeline."""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from menu_api.auth.identity import IdentityProvider
from menu_api.auth.pipeline import current_user, extract_token, optional_user
from menu_api.config import Settings
from menu_api.handlers.api_handler import register_exception_handlers
from menu_api.models.user_models import User
from menu_api.repositories.user_repository import UserRepository


@pytest.mark.unit
class TestExtractToken:
    """Test suite for token extraction."""

    def _request(self, headers: dict[str, str]) -> Request:
        raw_headers = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
        return Request({"type": "http", "headers": raw_headers})

    def test_bearer_header(self) -> None:
        request = self._request({"Authorization": "Bearer abc"})

        assert extract_token(request, "jwt") == "abc"

    def test_bearer_wins_over_cookie(self) -> None:
        request = self._request({"Authorization": "Bearer header-token", "Cookie": "jwt=cookie"})

        assert extract_token(request, "jwt") == "header-token"

    def test_cookie_fallback(self) -> None:
        request = self._request({"Cookie": "jwt=cookie-token"})

        assert extract_token(request, "jwt") == "cookie-token"

    def test_empty_bearer_falls_back_to_cookie(self) -> None:
        request = self._request({"Authorization": "Bearer ", "Cookie": "jwt=cookie-token"})

        assert extract_token(request, "jwt") == "cookie-token"

    def test_no_token(self) -> None:
        assert extract_token(self._request({"Authorization": "Basic xyz"}), "jwt") is None


@pytest.mark.unit
class TestAuthenticationPipeline:
    """Test suite for the current_user and optional_user dependencies."""

    @pytest.fixture
    def mock_user_repo(self) -> MagicMock:
        return MagicMock(spec=UserRepository)

    @pytest.fixture
    def identity(self, mock_user_repo: MagicMock, settings: Settings) -> IdentityProvider:
        return IdentityProvider(user_repository=mock_user_repo, settings=settings)

    @pytest.fixture
    def client(self, identity: IdentityProvider) -> TestClient:
        """Create a minimal app exposing both pipeline dependencies."""
        app = FastAPI()
        app.state.identity = identity
        register_exception_handlers(app)

        @app.get("/private")
        async def private(request: Request, user: User = Depends(current_user)) -> dict[str, Any]:
            return {"id": user.id, "state_id": request.state.user.id}

        @app.get("/public")
        async def public(user: User | None = Depends(optional_user)) -> dict[str, Any]:
            return {"id": user.id if user else None}

        return TestClient(app)

    def test_missing_token_skips_store_lookup(
        self, client: TestClient, mock_user_repo: MagicMock
    ) -> None:
        """Test that no user lookup happens when no token is presented."""
        response = client.get("/private")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Not authorized to access this route. No token provided.",
        }
        mock_user_repo.get_user.assert_not_called()

    def test_invalid_token_skips_store_lookup(
        self, client: TestClient, mock_user_repo: MagicMock
    ) -> None:
        response = client.get("/private", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert "Invalid token" in response.json()["message"]
        mock_user_repo.get_user.assert_not_called()

    def test_valid_bearer_token(
        self,
        client: TestClient,
        identity: IdentityProvider,
        mock_user_repo: MagicMock,
        regular_user: User,
    ) -> None:
        mock_user_repo.get_user.return_value = regular_user
        token = identity.issue_token(regular_user)

        response = client.get("/private", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"id": "user_1", "state_id": "user_1"}
        mock_user_repo.get_user.assert_called_once_with("user_1")

    def test_valid_cookie_token(
        self,
        client: TestClient,
        identity: IdentityProvider,
        mock_user_repo: MagicMock,
        regular_user: User,
    ) -> None:
        mock_user_repo.get_user.return_value = regular_user
        client.cookies.set("jwt", identity.issue_token(regular_user))

        response = client.get("/private")

        assert response.status_code == 200

    def test_deleted_user(
        self,
        client: TestClient,
        identity: IdentityProvider,
        mock_user_repo: MagicMock,
        regular_user: User,
    ) -> None:
        mock_user_repo.get_user.return_value = None
        token = identity.issue_token(regular_user)

        response = client.get("/private", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "The user belonging to this token no longer exists."

    def test_token_older_than_password_change(
        self,
        client: TestClient,
        identity: IdentityProvider,
        mock_user_repo: MagicMock,
        regular_user: User,
    ) -> None:
        """Test that a token issued before a password change is rejected."""
        now = datetime.now(UTC)
        mock_user_repo.get_user.return_value = regular_user.model_copy(
            update={"password_changed_at": now - timedelta(minutes=5)}
        )
        token = identity.issue_token(regular_user, issued_at=now - timedelta(hours=1))

        response = client.get("/private", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == (
            "User recently changed password. Please log in again."
        )

    def test_optional_user_without_token(
        self, client: TestClient, mock_user_repo: MagicMock
    ) -> None:
        response = client.get("/public")

        assert response.status_code == 200
        assert response.json() == {"id": None}
        mock_user_repo.get_user.assert_not_called()

    def test_optional_user_with_bad_token(self, client: TestClient) -> None:
        response = client.get("/public", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200
        assert response.json() == {"id": None}

    def test_optional_user_with_valid_token(
        self,
        client: TestClient,
        identity: IdentityProvider,
        mock_user_repo: MagicMock,
        regular_user: User,
    ) -> None:
        mock_user_repo.get_user.return_value = regular_user
        token = identity.issue_token(regular_user)

        response = client.get("/public", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"id": "user_1"}
