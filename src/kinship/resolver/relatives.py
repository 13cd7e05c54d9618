"""Snapshot-based relationship lookups.

Every function here is pure: it reads the snapshot, never writes to it,
and reports an absent relative as ``None`` or an empty list.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from kinship.models.person import Gender, Person
from kinship.models.snapshot import Snapshot
from kinship.resolver.seniority import sort_by_seniority


@dataclass(frozen=True)
class Parents:
    father: Person | None = None
    mother: Person | None = None


@dataclass(frozen=True)
class Grandparents:
    paternal_grandfather: Person | None = None
    paternal_grandmother: Person | None = None
    maternal_grandfather: Person | None = None
    maternal_grandmother: Person | None = None


@dataclass(frozen=True)
class AuntsUncles:
    uncles: list[Person] = field(default_factory=list)
    aunts: list[Person] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.uncles or self.aunts)


@dataclass(frozen=True)
class InLaws:
    father_in_law: Person | None = None
    mother_in_law: Person | None = None
    brothers: list[Person] = field(default_factory=list)
    sisters: list[Person] = field(default_factory=list)


def find_by_id(person_id: str | None, snapshot: Snapshot) -> Person | None:
    if not person_id:
        return None
    return snapshot.get(person_id)


def find_parents(person: Person | None, snapshot: Snapshot) -> Parents:
    if person is None:
        return Parents()
    return Parents(
        father=find_by_id(person.father_id, snapshot),
        mother=find_by_id(person.mother_id, snapshot),
    )


def find_grandparents(person: Person | None, snapshot: Snapshot) -> Grandparents:
    parents = find_parents(person, snapshot)
    paternal = find_parents(parents.father, snapshot)
    maternal = find_parents(parents.mother, snapshot)
    return Grandparents(
        paternal_grandfather=paternal.father,
        paternal_grandmother=paternal.mother,
        maternal_grandfather=maternal.father,
        maternal_grandmother=maternal.mother,
    )


def find_children(parent_id: str | None, snapshot: Snapshot) -> list[Person]:
    """Persons naming ``parent_id`` as father or mother, in snapshot order."""
    if not parent_id:
        return []
    return [
        p for p in snapshot.values()
        if p.father_id == parent_id or p.mother_id == parent_id
    ]


def find_siblings(person: Person | None, snapshot: Snapshot) -> list[Person]:
    """Persons sharing the father or the mother; half-siblings included."""
    if person is None or not (person.father_id or person.mother_id):
        return []
    return [
        p for p in snapshot.values()
        if p.id != person.id
        and (
            (person.father_id and p.father_id == person.father_id)
            or (person.mother_id and p.mother_id == person.mother_id)
        )
    ]


def find_spouse(person: Person | None, snapshot: Snapshot) -> Person | None:
    if person is None:
        return None
    return find_by_id(person.spouse_id, snapshot)


def split_by_gender(persons: list[Person]) -> tuple[list[Person], list[Person]]:
    males = [p for p in persons if p.gender == Gender.MALE]
    females = [p for p in persons if p.gender == Gender.FEMALE]
    return males, females


def derive_aunts_uncles(
    grandparent_id: str | None,
    exclude_parent_id: str | None,
    snapshot: Snapshot,
) -> AuntsUncles:
    """Children of a grandparent other than the known parent, eldest first."""
    children = [
        c for c in find_children(grandparent_id, snapshot) if c.id != exclude_parent_id
    ]
    uncles, aunts = split_by_gender(sort_by_seniority(children))
    return AuntsUncles(uncles=uncles, aunts=aunts)


def derive_in_laws(spouse: Person | None, snapshot: Snapshot) -> InLaws:
    """The spouse's parents and siblings, siblings eldest first."""
    if spouse is None:
        return InLaws()
    parents = find_parents(spouse, snapshot)
    brothers, sisters = split_by_gender(sort_by_seniority(find_siblings(spouse, snapshot)))
    return InLaws(
        father_in_law=parents.father,
        mother_in_law=parents.mother,
        brothers=brothers,
        sisters=sisters,
    )
