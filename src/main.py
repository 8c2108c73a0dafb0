"""Main application entry point for the menu API.

This module wires settings, DynamoDB repositories, services and the
identity provider into the FastAPI application.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from menu_api.auth.identity import IdentityProvider
from menu_api.config import Settings
from menu_api.handlers.api_handler import create_app
from menu_api.observability import configure_logging, setup_observability
from menu_api.repositories.menu_repositories import (
    CategoryRepository,
    MenuItemRepository,
    ReviewRepository,
)
from menu_api.repositories.user_repository import UserRepository
from menu_api.services.menu_service import MenuService
from menu_api.services.review_service import ReviewService

logger = logging.getLogger(__name__)


def get_dynamodb_resource(settings: Settings) -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Args:
        settings: Application settings

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    if settings.dynamodb_endpoint:
        # Local DynamoDB accepts any credentials
        logger.info(f"Using local DynamoDB at {settings.dynamodb_endpoint}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=settings.dynamodb_endpoint,
            region_name=settings.aws_region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
        )

    logger.info(f"Using AWS DynamoDB in region {settings.aws_region}")
    return boto3.resource("dynamodb", region_name=settings.aws_region)


def create_application(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    Args:
        settings: Application settings, read from the environment when omitted

    Returns:
        Configured FastAPI application instance

    Raises:
        ValueError: If required configuration is missing
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    logger.info(f"Initializing menu API ({settings.environment})...")

    dynamodb_resource = get_dynamodb_resource(settings)

    menu_repository = MenuItemRepository(
        dynamodb_resource=dynamodb_resource, table_name=settings.menu_items_table
    )
    category_repository = CategoryRepository(
        dynamodb_resource=dynamodb_resource, table_name=settings.categories_table
    )
    review_repository = ReviewRepository(
        dynamodb_resource=dynamodb_resource, table_name=settings.reviews_table
    )
    user_repository = UserRepository(
        dynamodb_resource=dynamodb_resource, table_name=settings.users_table
    )

    logger.info(
        f"Repositories configured - items: {settings.menu_items_table}, "
        f"categories: {settings.categories_table}, reviews: {settings.reviews_table}, "
        f"users: {settings.users_table}"
    )

    menu_service = MenuService(
        menu_repository=menu_repository,
        category_repository=category_repository,
        review_repository=review_repository,
    )
    review_service = ReviewService(
        review_repository=review_repository, menu_repository=menu_repository
    )
    identity = IdentityProvider(user_repository=user_repository, settings=settings)

    app = create_app(
        menu_service=menu_service,
        review_service=review_service,
        identity=identity,
        settings=settings,
    )

    if settings.enable_otel:
        setup_observability(app, environment=settings.environment)

    logger.info("Menu API initialized successfully")
    return app


# Skip wiring during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()

    logger.info(f"Starting development server on {settings.host}:{settings.port}")

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )
