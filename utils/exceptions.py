"""
Error taxonomy shared by the auth core, the flattener and the blueprints.

Every error carries an HTTP status, a machine-readable code and a human message;
api/errors.py turns them into the uniform error envelope.
"""
from __future__ import annotations


class ApiError(Exception):
    status = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, details: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if code:
            self.code = code
        self.details = details


class BadRequest(ApiError):
    status = 400
    code = "INVALID_INPUT"
    message = "Invalid request"


class Unauthorized(ApiError):
    status = 401
    code = "UNAUTHORIZED"
    message = "Unauthorized"


class InvalidCredentials(Unauthorized):
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class InvalidToken(Unauthorized):
    code = "INVALID_TOKEN"
    message = "Invalid token"


class MalformedToken(InvalidToken):
    """Garbage, bad signature, or claims missing / of the wrong type."""


class TokenExpired(InvalidToken):
    code = "TOKEN_EXPIRED"
    message = "Token has expired"


class WrongTokenKind(InvalidToken):
    message = "Wrong token type"


class Forbidden(ApiError):
    status = 403
    code = "PERMISSION_DENIED"
    message = "Permission denied"


class NotFound(ApiError):
    status = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class Conflict(ApiError):
    status = 409
    code = "ALREADY_EXISTS"
    message = "Resource already exists"


class TransientStoreError(ApiError):
    """Persistence unavailable. The auth path maps this to a denial."""

    status = 503
    code = "SERVICE_ERROR"
    message = "Service error"
