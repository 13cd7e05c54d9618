"""Gujarati kinship terms for relatives of a focal person.

Several terms depend on who is older. They take the three-valued result
of ``is_person1_older``; an unknown order yields the combined "a/b" term
rather than guessing one side.
"""
from __future__ import annotations

from kinship.models.person import Gender, Person
from kinship.resolver.seniority import is_person1_older

FATHER = "Pappa"
MOTHER = "Mummy"
PATERNAL_GRANDFATHER = "Dada"
PATERNAL_GRANDMOTHER = "Dadi"
MATERNAL_GRANDFATHER = "Nana"
MATERNAL_GRANDMOTHER = "Nani"
FATHER_IN_LAW = "Sasra"
MOTHER_IN_LAW = "Sasu"


def _by_seniority(older: bool | None, if_older: str, if_younger: str) -> str:
    if older is True:
        return if_older
    if older is False:
        return if_younger
    return f"{if_older}/{if_younger}"


def spouse_label(spouse: Person) -> str:
    return "Husband" if spouse.gender == Gender.MALE else "Wife"


def sibling_label(sibling: Person) -> str:
    return "Bhai" if sibling.gender == Gender.MALE else "Ben"


def sibling_spouse_label(person: Person, sibling: Person) -> str:
    """Term for a sibling's spouse.

    A sister's husband is Banevi. A brother's wife is Bhabhi, except that
    a man calls his younger brother's wife Putravadhu.
    """
    if sibling.gender != Gender.MALE:
        return "Banevi"
    if person.gender != Gender.MALE:
        return "Bhabhi"
    return _by_seniority(is_person1_older(person, sibling), "Putravadhu", "Bhabhi")


def child_label(child: Person) -> str:
    return "Dikro" if child.gender == Gender.MALE else "Dikri"


def child_spouse_label(child: Person) -> str:
    return "Putra Vadhu" if child.gender == Gender.MALE else "Jamai"


def paternal_uncle_labels(father: Person | None, uncle: Person) -> tuple[str, str]:
    """(uncle, uncle's wife): Mota Kaka/Kaki only when the uncle is known to be older."""
    older = is_person1_older(father, uncle) if father is not None else None
    if older is False:
        return "Mota Kaka", "Mota Kaki"
    return "Kaka", "Kaki"


def paternal_aunt_labels() -> tuple[str, str]:
    return "Foi", "Fua"


def maternal_uncle_labels() -> tuple[str, str]:
    return "Mama", "Mami"


def maternal_aunt_labels() -> tuple[str, str]:
    return "Masi", "Masa"


def husband_brother_labels(husband: Person, brother_in_law: Person) -> tuple[str, str]:
    """(husband's brother, his wife): De-ar/Derani if younger than the husband, Jeth/Jethani if older."""
    older = is_person1_older(husband, brother_in_law)
    return (
        _by_seniority(older, "De-ar", "Jeth"),
        _by_seniority(older, "Derani", "Jethani"),
    )


def husband_sister_labels() -> tuple[str, str]:
    return "Nanand", "Nandoi"


def wife_sibling_label(sibling_in_law: Person) -> str:
    return "Salo" if sibling_in_law.gender == Gender.MALE else "Sali"
