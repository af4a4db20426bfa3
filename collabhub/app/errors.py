"""
errors.py - Domain exceptions and the error code catalogue.

Services and middleware raise AppError; the handlers registered in
app/__init__.py turn it into the JSON envelope

    {"error": {"code": ..., "message": ..., "field": ..., "details": [...]}}

with `field` and `details` present only when set. Clients branch on `code`;
`message` is for humans and may be reworded freely.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
            details: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field    # which request field caused the error
        self.details     = details  # per-field issues for validation failures

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.details:
            payload["details"] = self.details
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}, {self.http_status}, {self.message!r})"


class RefreshTokenError(AppError):
    """
    A refresh attempt that must end the browser session.

    `reason` is internal only (logged, never serialised):
      missing   - no refresh token was presented
      not_found - no record matches the presented token
      reused    - the record was already revoked; every active token of the
                  owning user has been revoked as a consequence
      expired   - the record's expiry has passed; it is now revoked

    `user_id` is the owner of the matched record, when there is one.
    """

    def __init__(
            self,
            code: str,
            message: str,
            reason: str,
            user_id: int | None = None,
    ) -> None:
        super().__init__(code, message, 401)
        self.reason  = reason
        self.user_id = user_id


# ── Error codes ─────────────────────────────────────────────────────────────
#
# Grouped by the HTTP status they travel with. Values are part of the public
# API; add new ones rather than renaming.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Bad input (400) ─────────────────────────────────────────────────────
    VALIDATION_FAILED          = "VALIDATION_FAILED"
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_INFLUENCER         = "INVALID_INFLUENCER"
    BAD_REQUEST                = "BAD_REQUEST"

    # ── State conflicts (409) ───────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    DUPLICATE_MATCH            = "DUPLICATE_MATCH"
    DUPLICATE_APPLICATION      = "DUPLICATE_APPLICATION"
    CAMPAIGN_CLOSED            = "CAMPAIGN_CLOSED"
    INVALID_TRANSITION         = "INVALID_TRANSITION"
    PROPOSAL_NOT_ACCEPTED      = "PROPOSAL_NOT_ACCEPTED"
    PROPOSAL_MISMATCH          = "PROPOSAL_MISMATCH"

    # ── Missing rows (404) ──────────────────────────────────────────────────
    NOT_FOUND                  = "NOT_FOUND"
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    CAMPAIGN_NOT_FOUND         = "CAMPAIGN_NOT_FOUND"
    MATCH_NOT_FOUND            = "MATCH_NOT_FOUND"
    APPLICATION_NOT_FOUND      = "APPLICATION_NOT_FOUND"
    PROPOSAL_NOT_FOUND         = "PROPOSAL_NOT_FOUND"
    TRANSACTION_NOT_FOUND      = "TRANSACTION_NOT_FOUND"

    # ── Authentication and access ───────────────────────────────────────────
    # 401: the caller could not be identified. 403: identified, not allowed.
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    REFRESH_TOKEN_MISSING      = "REFRESH_TOKEN_MISSING"  # 401
    REFRESH_TOKEN_INVALID      = "REFRESH_TOKEN_INVALID"  # 401
    REFRESH_TOKEN_REUSED       = "REFRESH_TOKEN_REUSED"   # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403
    CSRF_FAILED                = "CSRF_FAILED"            # 403

    # ── Everything else ─────────────────────────────────────────────────────
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"     # 405
    INTERNAL_ERROR             = "INTERNAL_ERROR"         # 500
