"""Complete derived family view for one focal person."""
from __future__ import annotations

from dataclasses import dataclass, field

from kinship.models.person import Gender, Person
from kinship.models.snapshot import Snapshot
from kinship.resolver.relatives import (
    AuntsUncles,
    Grandparents,
    InLaws,
    derive_aunts_uncles,
    derive_in_laws,
    find_by_id,
    find_children,
    find_grandparents,
    find_parents,
    find_siblings,
    find_spouse,
)
from kinship.resolver.seniority import sort_by_seniority


@dataclass(frozen=True)
class FamilyView:
    """Every relationship shown on a person's profile."""

    person: Person
    father: Person | None = None
    mother: Person | None = None
    spouse: Person | None = None
    grandparents: Grandparents = field(default_factory=Grandparents)
    children: list[Person] = field(default_factory=list)
    siblings: list[Person] = field(default_factory=list)
    paternal: AuntsUncles = field(default_factory=AuntsUncles)
    maternal: AuntsUncles = field(default_factory=AuntsUncles)
    in_laws: InLaws = field(default_factory=InLaws)
    # Spouses of the listed relatives, keyed by the relative's id
    relative_spouses: dict[str, Person] = field(default_factory=dict)

    @property
    def father_in_law(self) -> Person | None:
        return self.in_laws.father_in_law

    @property
    def mother_in_law(self) -> Person | None:
        return self.in_laws.mother_in_law

    # Spouse's siblings, named from the focal person's side of the marriage
    @property
    def husband_brothers(self) -> list[Person]:
        return self.in_laws.brothers if self._is(Gender.FEMALE) else []

    @property
    def husband_sisters(self) -> list[Person]:
        return self.in_laws.sisters if self._is(Gender.FEMALE) else []

    @property
    def wife_brothers(self) -> list[Person]:
        return self.in_laws.brothers if self._is(Gender.MALE) else []

    @property
    def wife_sisters(self) -> list[Person]:
        return self.in_laws.sisters if self._is(Gender.MALE) else []

    def spouse_of(self, relative: Person) -> Person | None:
        return self.relative_spouses.get(relative.id)

    def _is(self, gender: Gender) -> bool:
        return self.spouse is not None and self.person.gender == gender


def _grandparent_line(grandfather: Person | None, grandmother: Person | None) -> str | None:
    if grandfather is not None:
        return grandfather.id
    return grandmother.id if grandmother is not None else None


def build_family_view(person_id: str | None, snapshot: Snapshot) -> FamilyView | None:
    """Derive the full family view for ``person_id``; ``None`` if unknown.

    Uncles and aunts are the children of the paternal (or maternal)
    grandfather, or of the grandmother when no grandfather record exists.
    """
    person = find_by_id(person_id, snapshot)
    if person is None:
        return None

    parents = find_parents(person, snapshot)
    spouse = find_spouse(person, snapshot)
    grandparents = find_grandparents(person, snapshot)

    paternal = derive_aunts_uncles(
        _grandparent_line(grandparents.paternal_grandfather, grandparents.paternal_grandmother),
        parents.father.id if parents.father else person.father_id,
        snapshot,
    )
    maternal = derive_aunts_uncles(
        _grandparent_line(grandparents.maternal_grandfather, grandparents.maternal_grandmother),
        parents.mother.id if parents.mother else person.mother_id,
        snapshot,
    )

    children = sort_by_seniority(find_children(person.id, snapshot))
    siblings = sort_by_seniority(find_siblings(person, snapshot))
    in_laws = derive_in_laws(spouse, snapshot)

    relative_spouses: dict[str, Person] = {}
    for relative in (
        *children, *siblings,
        *paternal.uncles, *paternal.aunts, *maternal.uncles, *maternal.aunts,
        *in_laws.brothers, *in_laws.sisters,
    ):
        if (relative_spouse := find_spouse(relative, snapshot)) is not None:
            relative_spouses[relative.id] = relative_spouse

    return FamilyView(
        person=person,
        father=parents.father,
        mother=parents.mother,
        spouse=spouse,
        grandparents=grandparents,
        children=children,
        siblings=siblings,
        paternal=paternal,
        maternal=maternal,
        in_laws=in_laws,
        relative_spouses=relative_spouses,
    )
