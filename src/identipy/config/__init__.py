"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, positive_int_env_var
from .errors import ConfigurationError
from .logging import configure_logging, get_log_level
from .server import IdentityConfig, ServerConfig, get_identity_config, get_server_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "IdentityConfig",
    "ServerConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_identity_config",
    "get_log_level",
    "get_server_config",
    "get_storage_config",
    "optional_env_var",
    "positive_int_env_var",
]
