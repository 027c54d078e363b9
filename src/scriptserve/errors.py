"""
HTTP error taxonomy.

Components raise these at the point where a failure is detected; the
request pipeline turns them into responses.
"""

from typing import Dict, Optional


class HttpError(Exception):
    status: int = 500
    reason: str = "Internal Server Error"

    def __init__(self, detail: str = "", headers: Optional[Dict[str, str]] = None):
        super().__init__(detail or self.reason)
        self.detail = detail
        self.headers = headers or {}


class BadRequest(HttpError):
    status = 400
    reason = "Bad Request"


class Unauthorized(HttpError):
    status = 401
    reason = "Unauthorized"


class Forbidden(HttpError):
    status = 403
    reason = "Forbidden"


class NotFound(HttpError):
    status = 404
    reason = "Not Found"


class InternalError(HttpError):
    status = 500
    reason = "Internal Server Error"


class MethodNotImplemented(HttpError):
    status = 501
    reason = "Not Implemented"
