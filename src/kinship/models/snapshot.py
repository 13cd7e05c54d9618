"""Immutable point-in-time view over the person set."""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from kinship.errors import DuplicatePersonIdError
from kinship.models.person import Person


class Snapshot(Mapping[str, Person]):
    """Id-keyed, read-only collection of person records.

    Resolver functions take a snapshot instead of re-reading the store, so
    one request works against one consistent set of records. Iteration
    follows the order the records were supplied in.
    """

    __slots__ = ("_persons",)

    def __init__(self, persons: Iterable[Person] = ()) -> None:
        index: dict[str, Person] = {}
        for person in persons:
            if person.id in index:
                raise DuplicatePersonIdError(person.id)
            index[person.id] = person
        self._persons = MappingProxyType(index)

    def __getitem__(self, person_id: str) -> Person:
        return self._persons[person_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._persons)

    def __len__(self) -> int:
        return len(self._persons)

    def __repr__(self) -> str:
        return f"Snapshot({len(self)} persons)"

    def persons(self) -> list[Person]:
        return list(self._persons.values())
