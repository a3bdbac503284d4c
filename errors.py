"""Error taxonomy for the table API.

Every failure the API reports is an ``ApiError`` subclass. The exception
handler registered in ``main.py`` renders them as ``{"error", "details"?}``.
"""

from typing import Dict, Optional


class ApiError(Exception):
    status_code: int = 400
    default_message: str = "Bad request"

    def __init__(
        self,
        error: Optional[str] = None,
        details: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error = error or self.default_message
        self.details = details
        self.headers = headers or {}
        super().__init__(self.error)

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidIdentifier(ApiError):
    default_message = "Invalid identifier"


class InvalidPath(ApiError):
    default_message = "Invalid path. Expected format: /rest/{tableName}/{id?}"


class InvalidPayload(ApiError):
    default_message = "Invalid data format: Expected object"


class ForbiddenFieldUpdate(ApiError):
    default_message = "Cannot update ID field"


class MissingId(ApiError):
    default_message = "ID is required"


class MethodNotAllowed(ApiError):
    status_code = 405
    default_message = "Method not allowed"


class NotFound(ApiError):
    status_code = 404
    default_message = "Record not found"


class MultiStatementRejected(ApiError):
    default_message = "Multiple SQL statements are not allowed"


class DangerousOperation(ApiError):
    status_code = 403
    default_message = "Query contains potentially dangerous operations"


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Unauthorized: Invalid authentication token"

    def __init__(self, error: Optional[str] = None):
        super().__init__(error, headers={"WWW-Authenticate": 'Bearer realm="API"'})


class RateLimited(ApiError):
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int):
        super().__init__(headers={"Retry-After": str(retry_after)})


class QueryExecutionError(ApiError):
    default_message = "Failed to execute query"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"
