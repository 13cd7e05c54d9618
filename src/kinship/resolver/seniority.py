"""Relative seniority (birth order) between two persons.

The comparison is three-valued: ``True`` (first is older), ``False``
(second is older) or ``None`` when the birth data cannot decide. ``None``
is not a tie; honorific selection treats it as "unknown".
"""
from __future__ import annotations

from collections.abc import Iterable
from functools import cmp_to_key

from kinship.models.person import Person


def _compare(a: int | None, b: int | None) -> bool | None:
    if a is None or b is None or a == b:
        return None
    return a < b


def is_person1_older(person1: Person | None, person2: Person | None) -> bool | None:
    """Return whether ``person1`` was born before ``person2``.

    Birth years are compared first; when they are equal or either is
    missing, birth months decide. Anything else is indeterminate.
    """
    if person1 is None or person2 is None:
        return None

    by_year = _compare(person1.birth_year, person2.birth_year)
    if by_year is not None:
        return by_year

    return _compare(person1.birth_month_number, person2.birth_month_number)


def compare_seniority(a: Person, b: Person) -> int:
    """Comparator ordering elder persons first; indeterminate pairs compare equal."""
    older = is_person1_older(a, b)
    if older is True:
        return -1
    if older is False:
        return 1
    return 0


def sort_by_seniority(persons: Iterable[Person]) -> list[Person]:
    """Eldest first. Stable: pairs of unknown order keep their input order."""
    return sorted(persons, key=cmp_to_key(compare_seniority))
