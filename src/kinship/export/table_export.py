"""Flat table export of person records (one row per person)."""
from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from kinship.models.person import Person

HEADERS: list[str] = [
    "ID", "Name", "Maiden Surname", "Current Surname", "Family",
    "Gender", "Marital Status", "Birth Month", "Birth Year",
    "Father Name", "Mother Name", "Spouse Name", "Father ID",
    "Mother ID", "Spouse ID", "Description", "Is Deceased", "Death Date",
]


def default_export_name(today: datetime | None = None) -> str:
    today = today or datetime.now(UTC)
    return f"kinship_export_{today.date().isoformat()}.csv"


def person_row(person: Person) -> list[str]:
    values = [
        person.id, person.name, person.maiden_name, person.surname, person.family,
        person.gender.value, person.marital_status.value, person.birth_month, person.birth_year,
        person.father_name, person.mother_name, person.spouse_name, person.father_id,
        person.mother_id, person.spouse_id, person.description, person.is_deceased,
        person.death_date,
    ]
    return ["" if v is None else str(v) for v in values]


def export_table(persons: Iterable[Person], path: str | Path) -> Path:
    """Write persons to CSV with a header row.

    If ``path`` is a directory, a dated file name is generated inside it.
    """
    path = Path(path)
    if path.is_dir():
        path = path / default_export_name()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(HEADERS)
        for person in persons:
            writer.writerow(person_row(person))
    return path
