from __future__ import annotations

import os
from enum import StrEnum


class Env(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


_ALIASES: dict[str, Env] = {
    "development": Env.DEV,
    "staging": Env.TEST,
    "testing": Env.TEST,
    "production": Env.PROD,
}


def get_env() -> Env:
    """``ADMIN_ENV`` wins over ``APP_ENV``; unset or unknown values mean LOCAL."""
    raw = (os.getenv("ADMIN_ENV") or os.getenv("APP_ENV") or "").strip().lower()
    try:
        return Env(raw)
    except ValueError:
        return _ALIASES.get(raw, Env.LOCAL)


def is_prod() -> bool:
    return get_env() is Env.PROD
