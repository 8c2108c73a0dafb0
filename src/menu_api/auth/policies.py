"""Authorization policies for routes.

A route declares a policy value and ``require`` turns it into a FastAPI
dependency. One evaluator interprets the closed set of policy variants:

    Authenticated()                       any logged-in user
    AnyOf((UserRole.ADMIN,))              role allow-list
    OwnerOrAdmin("review", "review_id")   admins, or the owner of the resource

Usage:
    @router.delete("/{review_id}")
    async def delete_review(
        review_id: str,
        user: User = Depends(require(OwnerOrAdmin("review", id_param="review_id"))),
    ): ...

Ownership checks load the target through ``app.state.resource_loaders``,
a mapping from resource name to an async ``loader(id) -> resource | None``.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union

from fastapi import Depends, Request

from menu_api.auth.pipeline import current_user
from menu_api.errors import Forbidden, NotFound
from menu_api.models.user_models import User, UserRole
from menu_api.observability.metrics import record_auth_failure

logger = logging.getLogger(__name__)

ResourceLoader = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True)
class Authenticated:
    """Any authenticated user passes."""


@dataclass(frozen=True)
class AnyOf:
    """The user's role must be in ``roles``.

    ``message`` replaces the default denial text when set.
    """

    roles: tuple[UserRole, ...]
    message: str | None = None


@dataclass(frozen=True)
class OwnerOrAdmin:
    """Admins pass; other users must own the target resource.

    Attributes:
        resource: Key of the loader in ``app.state.resource_loaders``
        id_param: Path parameter holding the resource id
        owner_field: Attribute of the resource holding the owning user id
    """

    resource: str
    id_param: str = "id"
    owner_field: str = "user_id"


Policy = Union[Authenticated, AnyOf, OwnerOrAdmin]

ADMIN_ONLY = AnyOf(
    (UserRole.ADMIN,), message="Administrator privileges required to access this route"
)


def _deny(user: User, request: Request, reason: str, message: str) -> Forbidden:
    logger.warning(
        f"Access denied ({reason}): user_id={user.id} role={user.role.value} "
        f"endpoint={request.method} {request.url.path}"
    )
    record_auth_failure("Forbidden")
    return Forbidden(message)


async def evaluate_policy(policy: Policy, user: User, request: Request) -> None:
    """Check an authenticated user against a policy.

    Args:
        policy: Policy to enforce
        user: User attached by the authentication pipeline
        request: Current request (path parameters, app state)

    Raises:
        Forbidden: The user does not satisfy the policy
        NotFound: The resource of an ownership check does not exist
    """
    if isinstance(policy, Authenticated):
        return

    if isinstance(policy, AnyOf):
        if user.role not in policy.roles:
            roles = ", ".join(role.value for role in policy.roles)
            message = policy.message or f"You need one of these roles: {roles} to access this route"
            raise _deny(user, request, "role", message)
        return

    if isinstance(policy, OwnerOrAdmin):
        if user.role == UserRole.ADMIN:
            return

        loaders: dict[str, ResourceLoader] = request.app.state.resource_loaders
        resource = await loaders[policy.resource](request.path_params[policy.id_param])
        if resource is None:
            raise NotFound("Resource not found")

        if getattr(resource, policy.owner_field, None) != user.id:
            raise _deny(user, request, "ownership", "Not authorized to access this resource")
        return

    raise TypeError(f"Unsupported policy: {policy!r}")


def require(policy: Policy) -> Callable[..., Awaitable[User]]:
    """Build a FastAPI dependency enforcing a policy.

    The dependency authenticates the request first, so authentication
    failures always win over authorization and resource lookups.

    Returns:
        Dependency resolving to the authorized User
    """

    async def dependency(request: Request, user: User = Depends(current_user)) -> User:
        await evaluate_policy(policy, user, request)
        return user

    return dependency
