"""
Module: pos_kernel.db.engine
Responsibility: Owns the process-wide SQLAlchemy engine and session factory
    used by the stock-take repositories.  Connection settings arrive from the
    ``database`` configuration section via ``init_engine_from_url``.
Architecture position: Kernel > DB.  May import from db/base.py and kernel
    logging only.  Module tables are registered by
    ``pos_modules._orm_registry.create_all_tables()``.

Backends:
    - PostgreSQL (production): QueuePool with pre-ping, READ COMMITTED.  The
      finalize path takes ``SELECT ... FOR UPDATE`` row locks on the session
      and the product rows it rewrites.
    - SQLite (tests, local development): one shared connection (StaticPool)
      so every session sees the same in-memory database.  Foreign keys are
      switched on per connection; row locks are ignored.

Failure modes:
    - RuntimeError from every accessor before ``init_engine_from_url()``.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from pos_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database not initialized. Call init_engine_from_url() first."


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create(url: URL, echo: bool, pool_options: dict[str, Any]) -> Engine:
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        isolation_level="READ COMMITTED",
        **pool_options,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory, replacing any previous ones.

    Pool arguments apply to PostgreSQL only.  Sessions are created with
    ``expire_on_commit=False`` so DTOs built after a commit do not trigger
    lazy reloads.

    Args:
        database_url: e.g. ``postgresql://pos@host/pos`` or ``sqlite://``.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    url = make_url(database_url)
    _engine = _create(url, echo, {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
    })
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={
        "dialect": _engine.dialect.name,
        "database": url.database,
        "row_locks": supports_row_locks(),
        "echo": echo,
    })
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A new session bound to the current engine."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on clean exit, roll back and re-raise on error, always close.

    For callers that do not own a transaction themselves; the stock-take
    service manages its own commits.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table currently registered on ``Base.metadata``."""
    from pos_kernel.db.base import Base

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every registered table.  Destroys stock data; tests and demos only."""
    from pos_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


def supports_row_locks() -> bool:
    """True when ``with_for_update()`` takes real row locks (PostgreSQL)."""
    return _engine is not None and _engine.dialect.name == "postgresql"


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
