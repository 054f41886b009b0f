"""HTTP server and reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, positive_int_env_var

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_CONFLICT_ATTEMPTS = 2


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass(frozen=True, slots=True)
class IdentityConfig:
    # first run plus retries after a ConflictError
    conflict_attempts: int = DEFAULT_CONFLICT_ATTEMPTS


def get_server_config() -> ServerConfig:
    return ServerConfig(
        host=optional_env_var("IDENTIPY_HOST") or DEFAULT_HOST,
        port=positive_int_env_var("IDENTIPY_PORT", DEFAULT_PORT),
    )


def get_identity_config() -> IdentityConfig:
    return IdentityConfig(
        conflict_attempts=positive_int_env_var(
            "IDENTIPY_CONFLICT_ATTEMPTS", DEFAULT_CONFLICT_ATTEMPTS
        ),
    )
