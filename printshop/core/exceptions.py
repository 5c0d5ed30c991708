from fastapi import HTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR,
)


class AppError(HTTPException):
    """HTTPException that can carry extra top-level fields for the JSON body."""

    def __init__(self, detail: str, status_code: int, extra: dict = None, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.extra = extra or {}


class ValidationError(AppError):
    def __init__(self, detail: str = "Invalid request", **kwargs):
        super().__init__(detail, HTTP_400_BAD_REQUEST, **kwargs)


class AuthenticationError(AppError):
    def __init__(self, detail: str = "Authentication required", **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(detail, HTTP_401_UNAUTHORIZED, **kwargs)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden", **kwargs):
        super().__init__(detail, HTTP_403_FORBIDDEN, **kwargs)


class NotFoundError(AppError):
    def __init__(self, detail: str = "Not found", **kwargs):
        super().__init__(detail, HTTP_404_NOT_FOUND, **kwargs)


class ServiceError(AppError):
    def __init__(self, detail: str = "Internal server error", **kwargs):
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR, **kwargs)
