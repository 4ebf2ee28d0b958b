"""Failure kinds reported to callers.

Every failure aborts the whole operation before any store mutation.
"""
from __future__ import annotations

ERRORS = {
  "E_UNAUTHORIZED": "Missing authority of owner",
  "E_NOT_FOUND": "Node does not exist",
  "E_IMMUTABLE_SCOPE": "Immutable scope",
  "E_INVALID_ACTION": "Malformed action",
}


class GppsError(Exception):
    code = ""

    def __init__(self, detail: str | None = None, **context):
        self.detail = detail
        self.context = context
        msg = ERRORS[self.code]
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)

    @property
    def message(self) -> str:
        return ERRORS[self.code]

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": self.message}
        if self.detail:
            out["detail"] = self.detail
        out.update(self.context)
        return out


class Unauthorized(GppsError):
    """Invoking identity is not the owner of the target scope."""
    code = "E_UNAUTHORIZED"


class NotFound(GppsError):
    code = "E_NOT_FOUND"


class ImmutableScope(GppsError):
    """Existing node in a scope whose node 0 holds the lock sentinel."""
    code = "E_IMMUTABLE_SCOPE"


class InvalidAction(GppsError):
    """Raised at the boundary only; the core never sees malformed input."""
    code = "E_INVALID_ACTION"
