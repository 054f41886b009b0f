"""Contact store lifecycle and the SQLAlchemy unit of work.

``startup()`` must run once per process before any unit of work is created;
it builds the engine, maps the model and migrates the schema to head.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker

from identipy.adapters.sqlalchemy.errors import translate_store_error
from identipy.adapters.sqlalchemy.mappings import start_mappers
from identipy.adapters.sqlalchemy.migrations import upgrade_head
from identipy.adapters.sqlalchemy.repositories import SqlAlchemyContactRepository
from identipy.config import get_database_config
from identipy.domain.ports.unit_of_work import ContactRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """The contact store was used before ``startup()`` or started twice."""


@dataclass(slots=True)
class _StoreState:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_STATE = _StoreState()


def use_immediate_transactions(engine: Engine) -> None:
    """Make every SQLite transaction take the write lock when it begins.

    pysqlite defers ``BEGIN`` until the first write, so the resolver's reads
    would run outside the transaction that later writes. Driver-level
    transaction handling is switched off and ``BEGIN IMMEDIATE`` is emitted
    instead. Other dialects are left untouched; calling twice is harmless.
    """

    if engine.dialect.name != "sqlite" or event.contains(engine, "begin", _begin_immediate):
        return
    event.listen(engine, "connect", _disable_driver_transactions)
    event.listen(engine, "begin", _begin_immediate)


def _disable_driver_transactions(dbapi_connection: Any, _connection_record: Any) -> None:
    dbapi_connection.isolation_level = None


def _begin_immediate(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN IMMEDIATE")


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Open the contact store.

    ``engine`` wins over ``database_uri``, which wins over ``DATABASE_URI``.
    A second call raises ``StartupError`` unless ``force`` is set; the previous
    engine is left to its owner in that case.
    """

    if _STATE.engine is not None and not force:
        raise StartupError("Contact store already started. Pass force=True to reconfigure.")

    if engine is None:
        engine = create_engine(database_uri or get_database_config().uri, pool_pre_ping=True)
    use_immediate_transactions(engine)
    start_mappers()
    upgrade_head(engine=engine)

    _STATE.engine = engine
    _STATE.session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    log.info("Contact store ready at %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the engine; a no-op when the store is not started."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.session_factory = None


class SqlAlchemyContactUnitOfWork:
    """One session and one transaction around the contact repository.

    Leaving the ``with`` block without ``commit()`` rolls back, whether or not
    an exception is propagating.
    """

    def __init__(self) -> None:
        if _STATE.session_factory is None:
            raise StartupError(
                "Contact store not started. Call "
                "identipy.adapters.sqlalchemy.startup() before requesting a unit of work."
            )
        self._session_factory = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: ContactRepositories | None = None

    def __enter__(self) -> SqlAlchemyContactUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already active")
        self._session = self._session_factory()
        self._repositories = self._build_repositories(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except DBAPIError as exc:
            raise translate_store_error(exc) from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> ContactRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not active")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not active")
        return self._session

    def _build_repositories(self, session: Session) -> ContactRepositories:
        return ContactRepositories(contacts=SqlAlchemyContactRepository(session))


if TYPE_CHECKING:
    from identipy.domain.ports.unit_of_work import ContactUnitOfWork

    _uow_check: ContactUnitOfWork = SqlAlchemyContactUnitOfWork()
