"""Alembic migrations for the contact store.

In a source checkout the ``[tool.alembic]`` table of ``pyproject.toml`` is
honoured; an installed package falls back to the scripts next to this file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from identipy.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent
PROJECT_ROOT: Final[Path] = MIGRATIONS_PATH.parents[4]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"


def _alembic_settings() -> dict[str, str]:
    if not PYPROJECT_PATH.is_file():
        return {}
    with PYPROJECT_PATH.open("rb") as handle:
        table = tomllib.load(handle).get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in table.items()}


def _from_project_root(value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else (PROJECT_ROOT / path).resolve()


def alembic_config(*, database_uri: str | None = None) -> Config:
    """Build an in-memory Alembic ``Config`` for the contact store."""

    settings = _alembic_settings()
    settings.setdefault("path_separator", "os")
    config = Config()

    script_location = settings.pop("script_location", None)
    config.set_main_option(
        "script_location",
        str(_from_project_root(script_location) if script_location else MIGRATIONS_PATH),
    )
    prepend_sys_path = settings.pop("prepend_sys_path", None)
    if prepend_sys_path is not None:
        config.set_main_option("prepend_sys_path", str(_from_project_root(prepend_sys_path)))
    for key, value in settings.items():
        config.set_main_option(key, value)

    if database_uri is not None:
        # ConfigParser interpolation: a literal % must be doubled
        config.set_main_option("sqlalchemy.url", database_uri.replace("%", "%%"))
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Migrate the schema to the newest revision.

    With ``engine`` the upgrade runs on one of its connections in a single
    transaction; otherwise it connects to ``database_uri`` or the configured
    database.
    """

    if engine is None:
        uri = database_uri or get_database_config().uri
        command.upgrade(alembic_config(database_uri=uri), "head")
        return

    config = alembic_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
