"""
errors.py — AppError base class and error code registry.

Every error returned by the API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - UNAUTHORIZED is about the acting principal's role/state (inactive user,
    non-admin calling an admin operation). FORBIDDEN is about ownership of a
    specific resource (deleting someone else's post).
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    ALREADY_MEMBER             = "ALREADY_MEMBER"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    GROUP_NOT_FOUND            = "GROUP_NOT_FOUND"
    NOT_A_MEMBER               = "NOT_A_MEMBER"
    POST_NOT_FOUND             = "POST_NOT_FOUND"
    MESSAGE_NOT_FOUND          = "MESSAGE_NOT_FOUND"

    # ── Business Rule Violations (422) ────────────────────────────────────
    CANNOT_DELETE_ADMIN        = "CANNOT_DELETE_ADMIN"

    # ── Authorization Errors (403) ────────────────────────────────────────
    UNAUTHORIZED               = "UNAUTHORIZED"
    FORBIDDEN                  = "FORBIDDEN"

    # ── Framework Errors (raised by Flask/werkzeug, not services) ──────────
    BAD_REQUEST                = "BAD_REQUEST"          # 400, e.g. unparseable JSON
    ROUTE_NOT_FOUND            = "ROUTE_NOT_FOUND"      # 404
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"   # 405

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"
