"""Error taxonomy for the menu API.

Every guard, service and repository raises one of these exceptions. The app
factory registers a single translator that renders them as
``{"success": false, "message": ...}`` with the carried status code.
"""


class APIError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human readable message returned to the client
            status_code: Optional override of the class status code
        """
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthenticated(APIError):
    """No credentials were supplied, or they were wrong."""

    status_code = 401


class InvalidToken(APIError):
    """Token is malformed, expired or carries a bad signature."""

    status_code = 401


class StaleSubject(APIError):
    """Token references a user that no longer exists."""

    status_code = 401


class StaleToken(APIError):
    """Token was issued before the user's last password change."""

    status_code = 401


class Forbidden(APIError):
    status_code = 403


class NotFound(APIError):
    status_code = 404


class ValidationFailed(APIError):
    """Schema constraint or uniqueness violation."""

    status_code = 400


class InternalFailure(APIError):
    """Unexpected store or infrastructure failure."""

    status_code = 500


def validation_message(errors: list[dict]) -> str:
    """Join pydantic error entries into one client-facing message.

    Args:
        errors: Entries from ``ValidationError.errors()`` or
            ``RequestValidationError.errors()``

    Returns:
        str: ``"field: message"`` entries separated by commas
    """
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return ", ".join(parts)
