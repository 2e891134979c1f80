"""
errors.py — AppError base class and error code registry.

Every error returned by the billsplit API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Malformed dates and negative prices are deliberately NOT reported.
    Callers supply well-formed bills; a bad date crashes inside int() and
    surfaces as INTERNAL_ERROR (500).
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
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD                     = "MISSING_FIELD"
    INVALID_FIELD                     = "INVALID_FIELD"
    PERSON_NOT_ALLOWED_ON_SHARED_ITEM = "PERSON_NOT_ALLOWED_ON_SHARED_ITEM"
    TOO_MANY_ITEMS                    = "TOO_MANY_ITEMS"

    # ── Business Rule Violations (422) ────────────────────────────────────
    # Shared items cannot be split evenly across zero people.
    NO_PERSONS_FOR_SHARED_ITEM        = "NO_PERSONS_FOR_SHARED_ITEM"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR                    = "INTERNAL_ERROR"
