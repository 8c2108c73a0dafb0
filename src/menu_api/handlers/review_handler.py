"""Review routes."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from menu_api.auth.policies import AnyOf, OwnerOrAdmin, require
from menu_api.models.menu_models import ReviewCreate
from menu_api.models.user_models import User, UserRole
from menu_api.services.review_service import ReviewService

router = APIRouter(tags=["Reviews"])

REVIEWERS = AnyOf((UserRole.USER, UserRole.ADMIN))


def get_review_service(request: Request) -> ReviewService:
    service: ReviewService = request.app.state.review_service
    return service


@router.get("/api/menu/{item_id}/reviews")
async def get_reviews(
    item_id: str,
    review_service: ReviewService = Depends(get_review_service),
) -> dict[str, Any]:
    reviews = await review_service.list_reviews(item_id)
    return {
        "success": True,
        "count": len(reviews),
        "data": [review.model_dump(mode="json") for review in reviews],
    }


@router.post("/api/menu/{item_id}/reviews", status_code=201)
async def create_review(
    item_id: str,
    body: ReviewCreate,
    user: User = Depends(require(REVIEWERS)),
    review_service: ReviewService = Depends(get_review_service),
) -> dict[str, Any]:
    review = await review_service.create_review(item_id, body, author=user)
    return {"success": True, "data": review.model_dump(mode="json")}


@router.delete("/api/reviews/{review_id}")
async def delete_review(
    review_id: str,
    _user: User = Depends(require(OwnerOrAdmin("review", id_param="review_id"))),
    review_service: ReviewService = Depends(get_review_service),
) -> dict[str, Any]:
    """Delete a review. Only its author or an admin may do so."""
    await review_service.delete_review(review_id)
    return {"success": True, "data": {}}
