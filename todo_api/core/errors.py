from fastapi import status


class TodoApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(TodoApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request body"


class Unauthorized(TodoApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class NotFound(TodoApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Todo not found"


class Conflict(TodoApiError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Username already exists"


class Timeout(TodoApiError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_detail = "Request timed out"


class Internal(TodoApiError):
    pass
