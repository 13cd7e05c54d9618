"""Pure relationship derivation over a person snapshot."""
from __future__ import annotations

from kinship.resolver.family_view import FamilyView, build_family_view
from kinship.resolver.relatives import (
    AuntsUncles,
    Grandparents,
    InLaws,
    Parents,
    derive_aunts_uncles,
    derive_in_laws,
    find_by_id,
    find_children,
    find_grandparents,
    find_parents,
    find_siblings,
    find_spouse,
)
from kinship.resolver.seniority import compare_seniority, is_person1_older, sort_by_seniority

__all__ = [
    "AuntsUncles",
    "FamilyView",
    "Grandparents",
    "InLaws",
    "Parents",
    "build_family_view",
    "compare_seniority",
    "derive_aunts_uncles",
    "derive_in_laws",
    "find_by_id",
    "find_children",
    "find_grandparents",
    "find_parents",
    "find_siblings",
    "find_spouse",
    "is_person1_older",
    "sort_by_seniority",
]
