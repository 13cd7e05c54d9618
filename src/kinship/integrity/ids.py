"""Person id generation."""
from __future__ import annotations

import secrets
import string
from collections.abc import Callable

import structlog

from kinship.config import CONFIG
from kinship.errors import IdGenerationError

logger = structlog.get_logger(__name__)

ID_ALPHABET = string.ascii_uppercase + string.digits


def new_person_id(length: int = CONFIG.id_length) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_person_id(
    exists: Callable[[str], bool],
    *,
    length: int = CONFIG.id_length,
    max_attempts: int = CONFIG.id_max_attempts,
) -> str:
    """Draw ids until one is not already taken according to ``exists``."""
    for attempt in range(1, max_attempts + 1):
        candidate = new_person_id(length)
        if not exists(candidate):
            return candidate
        logger.info("person_id.collision", candidate=candidate, attempt=attempt)
    raise IdGenerationError(f"No unused person id after {max_attempts} attempts")
