from .env import Env, get_env, is_prod
from .logging import JsonFormatter, setup_logging
from .settings import ResourceSettings, get_resource_settings

__all__ = [
    "Env",
    "get_env",
    "is_prod",
    "JsonFormatter",
    "setup_logging",
    "ResourceSettings",
    "get_resource_settings",
]
