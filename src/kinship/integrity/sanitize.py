"""Strip markup from user-entered text before it is stored."""
from __future__ import annotations

from typing import Any

from bs4 import BeautifulSoup

TEXT_FIELDS: tuple[str, ...] = (
    "name",
    "surname",
    "maiden_name",
    "family",
    "description",
    "father_name",
    "mother_name",
    "spouse_name",
)


def strip_markup(text: str | None) -> str | None:
    if not text:
        return text
    return BeautifulSoup(text, "html.parser").get_text().strip()


def sanitize_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with every free-text field reduced to plain text."""
    clean = dict(data)
    for key in TEXT_FIELDS:
        if isinstance(clean.get(key), str):
            clean[key] = strip_markup(clean[key])
    return clean
