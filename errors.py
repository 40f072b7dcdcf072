"""
API errors

Every handler-level failure is one of these. They are HTTPExceptions so
FastAPI renders them as {"detail": message} with the matching status code.
"""

from fastapi import HTTPException


class ApiError(HTTPException):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(ApiError):
    status_code = 400


class Unauthenticated(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    # Invalid state transition, e.g. paying an order twice
    status_code = 400


class ConfigError(ApiError):
    status_code = 500


class UpstreamError(ApiError):
    status_code = 500
