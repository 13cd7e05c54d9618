"""Exception types.

Missing relatives are never exceptions; these are reserved for backend
failures and programming errors.
"""
from __future__ import annotations

from dataclasses import dataclass


class KinshipError(Exception):
    """Base class for kinship errors."""


@dataclass
class StoreFailure(KinshipError):
    """Raised when the person store rejects a read or write.

    ``reason`` carries the backend message through unchanged.
    """

    reason: str
    operation: str | None = None

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.reason}"
        return self.reason


@dataclass
class DuplicatePersonIdError(KinshipError):
    """A snapshot was built from records sharing an id."""

    person_id: str

    def __str__(self) -> str:
        return f"Duplicate person id in snapshot: {self.person_id}"


class IdGenerationError(KinshipError):
    """No unused person id could be generated."""
