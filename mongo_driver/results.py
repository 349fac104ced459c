# mongo_driver/results.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ResultStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONNECTION_UNAVAILABLE = "connection_unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a CRUD call on the wrapper.

    Truthy only on SUCCESS, so callers that just need "did it work" can keep
    writing ``if mongo.remove_one(...):`` while the status still tells a failed
    ping apart from a failed write.
    """

    status: ResultStatus
    value: Any = None
    error: Optional[BaseException] = None

    # ---------- Constructors ----------
    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ResultStatus.SUCCESS, value=value)

    @classmethod
    def not_found(cls) -> "OperationResult":
        return cls(ResultStatus.NOT_FOUND)

    @classmethod
    def connection_unavailable(cls, error: BaseException) -> "OperationResult":
        return cls(ResultStatus.CONNECTION_UNAVAILABLE, error=error)

    @classmethod
    def failed(cls, error: BaseException) -> "OperationResult":
        return cls(ResultStatus.FAILED, error=error)

    # ---------- Accessors ----------
    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> Any:
        """Return the value, or raise the stored error.

        NOT_FOUND unwraps to None.
        """
        if self.error is not None:
            raise self.error
        return self.value
