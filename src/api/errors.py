"""Error taxonomy shared by every router.

Handlers raise these at the point of detection; the exception handlers
registered in ``main.py`` turn them into the response envelope.
"""


class ApiError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    """Malformed identifier or missing/empty required field."""
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class AuthorizationError(ApiError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class ConflictError(ApiError):
    """Duplicate name, duplicate membership or a lost insert race."""
    status_code = 400
    default_message = "Resource already exists"


class UpstreamError(ApiError):
    """Media host upload or delete failure."""
    status_code = 500
    default_message = "Media service failure"
