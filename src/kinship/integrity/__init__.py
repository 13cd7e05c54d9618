"""Mutation-time enforcement of parent and spouse link invariants."""
from __future__ import annotations

from kinship.integrity.ids import generate_person_id, new_person_id
from kinship.integrity.manager import LinkIntegrityManager
from kinship.integrity.sanitize import sanitize_fields, strip_markup

__all__ = [
    "LinkIntegrityManager",
    "generate_person_id",
    "new_person_id",
    "sanitize_fields",
    "strip_markup",
]
