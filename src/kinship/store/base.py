"""Person store contract.

The store is the external record backend. Relationship shortcut queries
(``find_by_parent``, ``find_siblings_by_parents``) must return the same
persons the resolver would compute from ``get_all()``.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kinship.models.person import MaritalStatus, Person


class ListOrder(str, Enum):
    """Listing order: public directory by name, admin table newest first."""
    NAME = "name"
    NEWEST = "newest"


@dataclass
class Page:
    persons: list[Person] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)


# Writes applied to both sides of a spouse edge
SPOUSE_LINKED: dict[str, Any] = {"spouse_name": None, "marital_status": MaritalStatus.MARRIED}
SPOUSE_UNLINKED: dict[str, Any] = {
    "spouse_id": None,
    "spouse_name": None,
    "marital_status": MaritalStatus.SINGLE,
}

UPDATABLE_FIELDS = frozenset(Person.model_fields) - {"id", "created_at"}


def check_changes(changes: dict[str, Any]) -> None:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {sorted(unknown)}")


class PersonStore(ABC):
    """Record store for persons."""

    @abstractmethod
    def list_page(
        self, page: int = 1, page_size: int = 50, order: ListOrder = ListOrder.NAME
    ) -> Page:
        """Return one 1-based page of persons and the total count."""

    @abstractmethod
    def get_all(self) -> list[Person]:
        ...

    @abstractmethod
    def get(self, person_id: str) -> Person | None:
        ...

    def exists(self, person_id: str) -> bool:
        return self.get(person_id) is not None

    @abstractmethod
    def insert(self, person: Person) -> None:
        ...

    @abstractmethod
    def update(self, person_id: str, changes: dict[str, Any]) -> None:
        """Apply a partial update; unknown ids are a StoreFailure."""

    @abstractmethod
    def update_many(self, person_ids: Iterable[str], changes: dict[str, Any]) -> int:
        """Apply the same partial update to every listed person; returns rows touched."""

    @abstractmethod
    def delete(self, person_id: str) -> None:
        ...

    @abstractmethod
    def delete_many(self, person_ids: Iterable[str]) -> int:
        ...

    @abstractmethod
    def find_by_parent(self, parent_id: str) -> list[Person]:
        ...

    @abstractmethod
    def find_siblings_by_parents(
        self, father_id: str | None, mother_id: str | None, exclude_id: str
    ) -> list[Person]:
        ...

    @abstractmethod
    def link_spouses(self, person_id_1: str, person_id_2: str) -> None:
        """Point both records at each other in one write."""

    @abstractmethod
    def unlink_spouses(self, person_id: str, spouse_id: str) -> None:
        """Clear ``person_id``'s link and ``spouse_id``'s link back to it, in one write."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes so a failure undoes the whole group.

        Stores without transactional support apply writes immediately.
        """
        yield
