"""Unit tests for authorization policies."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from menu_api.auth.identity import IdentityProvider
from menu_api.auth.policies import (
    ADMIN_ONLY,
    AnyOf,
    Authenticated,
    OwnerOrAdmin,
    require,
)
from menu_api.config import Settings
from menu_api.handlers.api_handler import register_exception_handlers
from menu_api.models.menu_models import Review
from menu_api.models.user_models import User, UserRole
from menu_api.repositories.user_repository import UserRepository


@pytest.mark.unit
class TestPolicies:
    """Test suite for require() and the policy evaluator."""

    @pytest.fixture
    def users(self, regular_user: User, admin_user: User) -> dict[str, User]:
        other = regular_user.model_copy(update={"id": "user_2", "email": "other@example.com"})
        return {u.id: u for u in (regular_user, admin_user, other)}

    @pytest.fixture
    def review_loader(self) -> AsyncMock:
        review = Review(
            id="rev_1",
            menu_item_id="item_1",
            user_id="user_1",
            title="Tasty",
            text="Good",
            rating=7,
            created_at=datetime(2024, 2, 1, tzinfo=UTC),
        )
        return AsyncMock(side_effect=lambda review_id: review if review_id == "rev_1" else None)

    @pytest.fixture
    def identity(self, settings: Settings, users: dict[str, User]) -> IdentityProvider:
        repo = MagicMock(spec=UserRepository)
        repo.get_user.side_effect = users.get
        return IdentityProvider(user_repository=repo, settings=settings)

    @pytest.fixture
    def client(self, identity: IdentityProvider, review_loader: AsyncMock) -> TestClient:
        app = FastAPI()
        app.state.identity = identity
        app.state.resource_loaders = {"review": review_loader}
        register_exception_handlers(app)

        @app.get("/any")
        async def any_user(user: User = Depends(require(Authenticated()))) -> dict[str, Any]:
            return {"id": user.id}

        @app.get("/admin")
        async def admin(user: User = Depends(require(ADMIN_ONLY))) -> dict[str, Any]:
            return {"id": user.id}

        @app.get("/reviewers")
        async def reviewers(
            user: User = Depends(require(AnyOf((UserRole.USER, UserRole.ADMIN)))),
        ) -> dict[str, Any]:
            return {"id": user.id}

        @app.get("/guests")
        async def guests(
            user: User = Depends(require(AnyOf((UserRole.USER,)))),
        ) -> dict[str, Any]:
            return {"id": user.id}

        @app.delete("/reviews/{review_id}")
        async def delete_review(
            review_id: str,
            user: User = Depends(require(OwnerOrAdmin("review", id_param="review_id"))),
        ) -> dict[str, Any]:
            return {"deleted": review_id}

        return TestClient(app)

    def _auth(self, identity: IdentityProvider, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {identity.issue_token(user)}"}

    def test_authenticated_policy(
        self, client: TestClient, identity: IdentityProvider, regular_user: User
    ) -> None:
        response = client.get("/any", headers=self._auth(identity, regular_user))

        assert response.status_code == 200

    def test_role_policy_rejects_user(
        self, client: TestClient, identity: IdentityProvider, regular_user: User
    ) -> None:
        response = client.get("/admin", headers=self._auth(identity, regular_user))

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "Administrator privileges required to access this route",
        }

    def test_role_policy_default_message_lists_roles(
        self, client: TestClient, identity: IdentityProvider, admin_user: User
    ) -> None:
        response = client.get("/guests", headers=self._auth(identity, admin_user))

        assert response.status_code == 403
        assert response.json()["message"] == (
            "You need one of these roles: user to access this route"
        )

    def test_role_policy_accepts_admin(
        self, client: TestClient, identity: IdentityProvider, admin_user: User
    ) -> None:
        response = client.get("/admin", headers=self._auth(identity, admin_user))

        assert response.status_code == 200
        assert response.json() == {"id": "admin_1"}

    def test_role_policy_with_several_roles(
        self, client: TestClient, identity: IdentityProvider, regular_user: User
    ) -> None:
        response = client.get("/reviewers", headers=self._auth(identity, regular_user))

        assert response.status_code == 200

    def test_authentication_runs_before_authorization(
        self, client: TestClient, review_loader: AsyncMock
    ) -> None:
        """Test that an anonymous request is rejected with 401 before any lookup."""
        response = client.delete("/reviews/rev_1")

        assert response.status_code == 401
        review_loader.assert_not_called()

    def test_owner_may_delete(
        self, client: TestClient, identity: IdentityProvider, regular_user: User
    ) -> None:
        response = client.delete("/reviews/rev_1", headers=self._auth(identity, regular_user))

        assert response.status_code == 200
        assert response.json() == {"deleted": "rev_1"}

    def test_non_owner_is_forbidden(
        self, client: TestClient, identity: IdentityProvider, users: dict[str, User]
    ) -> None:
        response = client.delete("/reviews/rev_1", headers=self._auth(identity, users["user_2"]))

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to access this resource"

    def test_admin_skips_ownership_lookup(
        self,
        client: TestClient,
        identity: IdentityProvider,
        admin_user: User,
        review_loader: AsyncMock,
    ) -> None:
        response = client.delete("/reviews/rev_1", headers=self._auth(identity, admin_user))

        assert response.status_code == 200
        review_loader.assert_not_called()

    def test_missing_resource(
        self, client: TestClient, identity: IdentityProvider, regular_user: User
    ) -> None:
        response = client.delete("/reviews/rev_9", headers=self._auth(identity, regular_user))

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Resource not found"}
