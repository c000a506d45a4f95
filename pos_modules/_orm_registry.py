"""
Module ORM Registry (``pos_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.  ``create_tables()`` in the kernel only creates what is already
registered, so ``create_all_tables()`` is the way to get a complete schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``pos_modules``
packages and from ``pos_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``pos_kernel`` or ``pos_engines``.

Usage
-----
Entrypoints and ``tests/conftest.py`` call ``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import every ``pos_modules.*.orm`` module to register ORM models.

    This function is idempotent -- repeated calls are harmless.
    """
    import pos_modules.stock_take.orm  # noqa: F401


def create_all_tables() -> None:
    """Create every module table.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from pos_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
