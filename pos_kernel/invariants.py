"""
Stock-Take Invariants Contract.

These invariants are structural law for inventory reconciliation.  No
configuration flag may override them.

This module exists solely to declare them explicitly.  Enforcement is
distributed across the count buffer, the variance calculator, the
stock-take service and the ORM schema.
"""

from enum import Enum, unique


@unique
class StockTakeInvariant(str, Enum):
    """Non-configurable guarantees of the stock-take workflow."""

    SNAPSHOT_FIXED = "snapshot_fixed"
    """A line's expected quantity is captured when the session starts and is
    never re-read or rewritten afterwards."""

    UNCOUNTED_IS_NOT_ZERO = "uncounted_is_not_zero"
    """A line without an entered count has no variance.  It is excluded from
    review and finalize, never treated as a count of zero."""

    ZERO_VARIANCE_EXCLUDED = "zero_variance_excluded"
    """Lines whose count matches the snapshot are confirmed, not applied."""

    ATOMIC_FINALIZE = "atomic_finalize"
    """Every stock write of a finalize lands in one transaction, together
    with the status change, or none of them do."""

    TERMINAL_IS_FINAL = "terminal_is_final"
    """Completed and cancelled sessions reject every mutation."""

    LOCATION_FIXED = "location_fixed"
    """A session's location is set at creation and never changes."""

    CANCEL_NEVER_MUTATES_STOCK = "cancel_never_mutates_stock"
    """Cancelling discards counts without touching inventory."""


# All invariants as a frozenset for programmatic checks.
ALL_STOCK_TAKE_INVARIANTS: frozenset[StockTakeInvariant] = frozenset(StockTakeInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_import_boundaries.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "pos_engines",
    "pos_config",
    "pos_modules",
)
