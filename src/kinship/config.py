from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass


def _s(env: Mapping[str, str], name: str, default: str) -> str:
    return env.get(name) or default


def _i(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, default))
    except (TypeError, ValueError):
        return default


def _b(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class KinshipConfig:
    db_path: str = "./data/kinship.db"
    page_size: int = 50

    # Person id generation
    id_length: int = 8
    id_max_attempts: int = 1000

    # Wrap multi-step cascades in a store transaction
    transactional_cascades: bool = True

    placeholder_picture_url: str = "https://placehold.co/150x150.png"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "KinshipConfig":
        """Read ``KINSHIP_*`` settings; unset or malformed values keep the defaults."""
        env = os.environ if env is None else env
        return cls(
            db_path=_s(env, "KINSHIP_DB_PATH", cls.db_path),
            page_size=_i(env, "KINSHIP_PAGE_SIZE", cls.page_size),
            id_length=_i(env, "KINSHIP_ID_LENGTH", cls.id_length),
            id_max_attempts=_i(env, "KINSHIP_ID_MAX_ATTEMPTS", cls.id_max_attempts),
            transactional_cascades=_b(env, "KINSHIP_TRANSACTIONAL_CASCADES", cls.transactional_cascades),
            placeholder_picture_url=_s(env, "KINSHIP_PLACEHOLDER_PICTURE", cls.placeholder_picture_url),
            log_level=_s(env, "KINSHIP_LOG_LEVEL", cls.log_level).upper(),
        )


CONFIG = KinshipConfig.from_env()
