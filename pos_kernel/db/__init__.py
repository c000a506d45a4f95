"""Database layer - engine, declarative base and column types."""

from pos_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString
from pos_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
    supports_row_locks,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
    "supports_row_locks",
]
