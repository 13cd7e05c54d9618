"""Person record model.

A person refers to relatives only by id (weak references into the same
record set); a free-text relative name is a fallback for relatives who
have no record of their own.
"""
from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from kinship.config import CONFIG


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"


class Month(IntEnum):
    """Birth month names, valued in calendar order."""
    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12


class Role(str, Enum):
    """Parent role a person can be cleared from."""
    FATHER = "father"
    MOTHER = "mother"

    @property
    def id_field(self) -> str:
        return f"{self.value}_id"

    @property
    def name_field(self) -> str:
        return f"{self.value}_name"


# (id field, paired free-text name field)
RELATIVE_FIELDS: tuple[tuple[str, str], ...] = (
    ("father_id", "father_name"),
    ("mother_id", "mother_name"),
    ("spouse_id", "spouse_name"),
)

_PERSON_ID_RE = re.compile(r"^[A-Z0-9]+$")


def _upper(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().upper()


class PersonDraft(BaseModel):
    """A person record before an id has been assigned."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    surname: str = ""
    maiden_name: str = Field(default="", alias="maidenName")
    family: str | None = None
    gender: Gender
    marital_status: MaritalStatus = Field(default=MaritalStatus.SINGLE, alias="maritalStatus")

    father_id: str | None = Field(default=None, alias="fatherId")
    mother_id: str | None = Field(default=None, alias="motherId")
    spouse_id: str | None = Field(default=None, alias="spouseId")
    father_name: str | None = Field(default=None, alias="fatherName")
    mother_name: str | None = Field(default=None, alias="motherName")
    spouse_name: str | None = Field(default=None, alias="spouseName")

    birth_month: str | None = Field(default=None, alias="birthMonth")
    birth_year: int | None = Field(default=None, alias="birthYear")
    profile_picture_url: str = Field(
        default=CONFIG.placeholder_picture_url, alias="profilePictureUrl"
    )
    description: str | None = None
    is_deceased: bool = Field(default=False, alias="isDeceased")
    death_date: str | None = Field(default=None, alias="deathDate")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip().upper()
        if not v or not all(part.isalpha() for part in v.split()):
            raise ValueError("name must contain letters only")
        return " ".join(v.split())

    @field_validator("surname", "maiden_name", mode="before")
    @classmethod
    def normalize_surnames(cls, v: str | None) -> str:
        return _upper(v) or ""

    @field_validator("family", mode="before")
    @classmethod
    def normalize_family(cls, v: str | None) -> str | None:
        return _upper(v) or None

    @field_validator("father_id", "mother_id", "spouse_id", mode="before")
    @classmethod
    def normalize_relative_id(cls, v: str | None) -> str | None:
        # Empty strings from forms mean "no link"
        v = _upper(v)
        if not v:
            return None
        if not _PERSON_ID_RE.match(v):
            raise ValueError(f"invalid person id: {v!r}")
        return v

    @field_validator("birth_month", mode="before")
    @classmethod
    def validate_birth_month(cls, v: str | None) -> str | None:
        v = _upper(v)
        if not v:
            return None
        if v not in Month.__members__:
            raise ValueError(f"unknown month: {v!r}")
        return v

    @field_validator("birth_year", mode="before")
    @classmethod
    def empty_year_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def clear_stale_relative_names(self) -> "PersonDraft":
        """A linked relative's live record wins over free text."""
        for id_field, name_field in RELATIVE_FIELDS:
            if getattr(self, id_field):
                setattr(self, name_field, None)
        if self.father_id and self.father_id == self.mother_id:
            raise ValueError("father and mother cannot be the same person")
        return self

    @property
    def birth_month_number(self) -> int | None:
        return Month[self.birth_month].value if self.birth_month else None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.name, self.surname) if p)


class Person(PersonDraft):
    """A stored person record."""

    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if not _PERSON_ID_RE.match(v):
            raise ValueError(f"invalid person id: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_not_own_relative(self) -> "Person":
        for id_field, _ in RELATIVE_FIELDS:
            if getattr(self, id_field) == self.id:
                raise ValueError("A person cannot be their own relative")
        return self

    def relative_ids(self) -> set[str]:
        return {
            rid for rid in (self.father_id, self.mother_id, self.spouse_id) if rid
        }


ALIAS_TO_FIELD: dict[str, str] = {
    info.alias: name for name, info in Person.model_fields.items() if info.alias
}


def to_field_names(data: dict[str, Any]) -> dict[str, Any]:
    """Rename camelCase column keys (``fatherId``) to field names (``father_id``)."""
    return {ALIAS_TO_FIELD.get(key, key): value for key, value in data.items()}
