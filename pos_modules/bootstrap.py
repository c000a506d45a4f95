"""
Application bootstrap (``pos_modules.bootstrap``).

Wires a parsed ``AppConfig`` into the runtime: structured logging at the
configured level, the SQLAlchemy engine, and the module schema.  Entrypoints
call ``bootstrap()`` once before constructing services.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine

from pos_config import AppConfig, get_active_config
from pos_kernel.db.engine import init_engine_from_url
from pos_kernel.logging_config import configure_logging, get_logger
from pos_modules._orm_registry import create_all_tables

logger = get_logger("modules.bootstrap")


def bootstrap(
    config: AppConfig | None = None,
    *,
    config_path: Path | str | None = None,
    create_schema: bool = True,
) -> Engine:
    """
    Initialize logging, the engine and (optionally) the schema.

    Args:
        config: An already-loaded configuration.  Loaded through
            ``get_active_config(config_path)`` when omitted.
        config_path: Override path passed to ``get_active_config``.
        create_schema: Create every module table after connecting.

    Returns:
        The initialized engine.
    """
    if config is None:
        config = get_active_config(config_path)

    configure_logging(level=config.logging.level)

    db = config.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    if create_schema:
        create_all_tables()

    logger.info("application_bootstrapped", extra={
        "config_name": config.name,
        "config_version": config.version,
        "dialect": engine.dialect.name,
        "schema_created": create_schema,
    })
    return engine
