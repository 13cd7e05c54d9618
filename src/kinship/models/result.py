"""Outcome of a mutation on the person graph."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    INVARIANT_VIOLATION = "invariant_violation"
    STORE_FAILURE = "store_failure"


@dataclass
class ActionResult:
    """Result of an integrity-manager operation.

    ``message`` is meant to be shown verbatim to an administrator.
    ``failed_step`` names the cascade step that failed, when one did.
    """

    success: bool
    message: str = ""
    person_id: str | None = None
    kind: FailureKind | None = None
    failed_step: str | None = None

    @classmethod
    def ok(cls, message: str, person_id: str | None = None) -> "ActionResult":
        return cls(success=True, message=message, person_id=person_id)

    @classmethod
    def not_found(cls, message: str) -> "ActionResult":
        return cls(success=False, message=message, kind=FailureKind.NOT_FOUND)

    @classmethod
    def violation(cls, message: str) -> "ActionResult":
        return cls(success=False, message=message, kind=FailureKind.INVARIANT_VIOLATION)

    @classmethod
    def store_failure(
        cls, message: str, step: str | None = None, person_id: str | None = None
    ) -> "ActionResult":
        return cls(
            success=False,
            message=message,
            person_id=person_id,
            kind=FailureKind.STORE_FAILURE,
            failed_step=step,
        )

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "person_id": self.person_id,
            "kind": self.kind.value if self.kind else None,
            "failed_step": self.failed_step,
        }
