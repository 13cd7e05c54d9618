"""Pydantic data models."""

from .person import Gender, MaritalStatus, Month, Person, PersonDraft, Role
from .result import ActionResult, FailureKind
from .snapshot import Snapshot

__all__ = [
    "ActionResult",
    "FailureKind",
    "Gender",
    "MaritalStatus",
    "Month",
    "Person",
    "PersonDraft",
    "Role",
    "Snapshot",
]
