"""
errors.py — AppError base class and error code registry.

Every error returned by the API uses a code defined here. Service and route
code never raises strings or generic exceptions for expected failures.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - 401 means "no identity", 403 means "identity present but not allowed".
    Session resolution never raises; require_auth is the only 401 source for
    protected routes.
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
    INVALID_TAGS               = "INVALID_TAGS"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    ALREADY_ATTENDING          = "ALREADY_ATTENDING"
    NOT_ATTENDING              = "NOT_ATTENDING"
    ALREADY_FOLLOWING          = "ALREADY_FOLLOWING"
    NOT_FOLLOWING              = "NOT_FOLLOWING"
    ALREADY_FAVORITED          = "ALREADY_FAVORITED"
    ALREADY_LIKED              = "ALREADY_LIKED"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    NOT_FOUND                  = "NOT_FOUND"
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    EXPERIENCE_NOT_FOUND       = "EXPERIENCE_NOT_FOUND"
    COMMENT_NOT_FOUND          = "COMMENT_NOT_FOUND"
    TAG_NOT_FOUND              = "TAG_NOT_FOUND"
    NOTIFICATION_NOT_FOUND     = "NOTIFICATION_NOT_FOUND"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed
    UNAUTHENTICATED            = "UNAUTHENTICATED"        # 401
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    INVALID_PASSWORD           = "INVALID_PASSWORD"       # 403
    FORBIDDEN                  = "FORBIDDEN"              # 403
    SELF_FOLLOW                = "SELF_FOLLOW"            # 403
    CANNOT_KICK_OWNER          = "CANNOT_KICK_OWNER"      # 403

    # ── System Errors ──────────────────────────────────────────────────────
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"     # 405
    HTTP_ERROR                 = "HTTP_ERROR"             # other werkzeug errors
    INTERNAL_ERROR             = "INTERNAL_ERROR"         # 500
