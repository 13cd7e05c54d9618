"""In-process person store, used for tests and small embedded trees."""
from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError

from kinship.errors import StoreFailure
from kinship.models.person import Person
from kinship.store.base import (
    SPOUSE_LINKED,
    SPOUSE_UNLINKED,
    ListOrder,
    Page,
    PersonStore,
    check_changes,
)


class InMemoryPersonStore(PersonStore):
    """Dict-backed store. Records are copied in and out, never shared."""

    def __init__(self, persons: Iterable[Person] = ()) -> None:
        self._persons: dict[str, Person] = {}
        for person in persons:
            self.insert(person)

    def _copy(self, person: Person) -> Person:
        return person.model_copy(deep=True)

    def _require(self, person_id: str, operation: str) -> Person:
        person = self._persons.get(person_id)
        if person is None:
            raise StoreFailure(f"No person with id {person_id}", operation=operation)
        return person

    def _apply(self, person: Person, changes: dict[str, Any]) -> Person:
        data = person.model_dump()
        data.update(changes)
        try:
            return Person.model_validate(data)
        except ValidationError as exc:
            raise StoreFailure(str(exc), operation="update") from exc

    def list_page(
        self, page: int = 1, page_size: int = 50, order: ListOrder = ListOrder.NAME
    ) -> Page:
        if order == ListOrder.NEWEST:
            ordered = sorted(self._persons.values(), key=lambda p: p.created_at, reverse=True)
        else:
            ordered = sorted(self._persons.values(), key=lambda p: (p.name, p.surname, p.id))
        start = (page - 1) * page_size
        return Page(
            persons=[self._copy(p) for p in ordered[start:start + page_size]],
            total=len(ordered),
            page=page,
            page_size=page_size,
        )

    def get_all(self) -> list[Person]:
        return [self._copy(p) for p in self._persons.values()]

    def get(self, person_id: str) -> Person | None:
        person = self._persons.get(person_id)
        return self._copy(person) if person else None

    def insert(self, person: Person) -> None:
        if person.id in self._persons:
            raise StoreFailure(f"Duplicate person id {person.id}", operation="insert")
        self._persons[person.id] = self._copy(person)

    def update(self, person_id: str, changes: dict[str, Any]) -> None:
        check_changes(changes)
        self._persons[person_id] = self._apply(self._require(person_id, "update"), changes)

    def update_many(self, person_ids: Iterable[str], changes: dict[str, Any]) -> int:
        check_changes(changes)
        touched = 0
        for person_id in set(person_ids):
            person = self._persons.get(person_id)
            if person is not None:
                self._persons[person_id] = self._apply(person, changes)
                touched += 1
        return touched

    def delete(self, person_id: str) -> None:
        self._persons.pop(person_id, None)

    def delete_many(self, person_ids: Iterable[str]) -> int:
        removed = 0
        for person_id in set(person_ids):
            if self._persons.pop(person_id, None) is not None:
                removed += 1
        return removed

    def find_by_parent(self, parent_id: str) -> list[Person]:
        return [
            self._copy(p) for p in self._persons.values()
            if p.father_id == parent_id or p.mother_id == parent_id
        ]

    def find_siblings_by_parents(
        self, father_id: str | None, mother_id: str | None, exclude_id: str
    ) -> list[Person]:
        if not father_id and not mother_id:
            return []
        return [
            self._copy(p) for p in self._persons.values()
            if p.id != exclude_id
            and ((father_id and p.father_id == father_id) or (mother_id and p.mother_id == mother_id))
        ]

    def link_spouses(self, person_id_1: str, person_id_2: str) -> None:
        first = self._require(person_id_1, "link_spouses")
        second = self._require(person_id_2, "link_spouses")
        self._persons[person_id_1] = self._apply(first, {**SPOUSE_LINKED, "spouse_id": person_id_2})
        self._persons[person_id_2] = self._apply(second, {**SPOUSE_LINKED, "spouse_id": person_id_1})

    def unlink_spouses(self, person_id: str, spouse_id: str) -> None:
        person = self._persons.get(person_id)
        if person is not None:
            self._persons[person_id] = self._apply(person, SPOUSE_UNLINKED)
        spouse = self._persons.get(spouse_id)
        if spouse is not None and spouse.spouse_id == person_id:
            self._persons[spouse_id] = self._apply(spouse, SPOUSE_UNLINKED)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        saved = copy.copy(self._persons)
        try:
            yield
        except BaseException:
            self._persons = saved
            raise
