from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from app.repositories.base import ErrorCode, SchemaResult


class FailureReason(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION = "validation"
    REMOTE = "remote"
    UNEXPECTED = "unexpected"


_REASON_BY_CODE = {
    ErrorCode.NOT_FOUND: FailureReason.NOT_FOUND,
    ErrorCode.CONFLICT: FailureReason.INVALID_STATE,
    ErrorCode.VALIDATION: FailureReason.VALIDATION,
    ErrorCode.REMOTE: FailureReason.REMOTE,
}


class ActionResult(BaseModel):
    """Outcome of a store action. Failures carry a user-facing message."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    reason: Optional[FailureReason] = None
    from_cache: bool = False

    @classmethod
    def ok(cls, data: Any = None, from_cache: bool = False) -> "ActionResult":
        return cls(success=True, data=data, from_cache=from_cache)

    @classmethod
    def fail(cls, reason: FailureReason, error: str) -> "ActionResult":
        return cls(success=False, reason=reason, error=error)

    @classmethod
    def from_schema(cls, result: SchemaResult, error: str) -> "ActionResult":
        """Failure for a repository result, with ``error`` shown to the user."""
        reason = _REASON_BY_CODE.get(result.code, FailureReason.REMOTE)
        return cls.fail(reason, error)
