"""FastAPI application factory for the menu API."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from menu_api.auth.identity import IdentityProvider
from menu_api.config import Settings
from menu_api.errors import APIError, ValidationFailed, validation_message
from menu_api.handlers import auth_handler, menu_handler, review_handler
from menu_api.services.menu_service import MenuService
from menu_api.services.review_service import ReviewService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the single translator from exceptions to error responses."""

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown routes and methods
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = ValidationFailed(validation_message(list(exc.errors())))
        logger.info(f"Validation failed on {request.url.path}: {error.message}")
        return _error_response(error.status_code, error.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(500, "Server Error")


def create_app(
    menu_service: MenuService,
    review_service: ReviewService,
    identity: IdentityProvider,
    settings: Settings,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        menu_service: Service for menu items
        review_service: Service for reviews
        identity: Identity provider used by the authentication pipeline
        settings: Application settings

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Menu API",
        description="Restaurant menu items with cookie/JWT authentication",
        version="1.0.0",
    )

    # Collaborators are reached through app.state in dependencies
    app.state.settings = settings
    app.state.menu_service = menu_service
    app.state.review_service = review_service
    app.state.identity = identity
    app.state.resource_loaders = {
        "menu_item": menu_service.find_menu_item,
        "review": review_service.find_review,
    }

    if settings.frontend_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_url],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    app.include_router(auth_handler.router)
    app.include_router(menu_handler.router)
    app.include_router(review_handler.router)

    return app
