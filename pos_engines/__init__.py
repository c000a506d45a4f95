"""
Module: pos_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``pos_modules``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pos_kernel logging (and sibling engine modules).
    MUST NOT import pos_modules, pos_config or pos_kernel.db.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or read the
      environment.  Timestamps are the caller's concern.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine``, emitting
    POS_ENGINE_TRACE log records with an input fingerprint.
"""

from pos_engines.reconciliation import (
    ReconciliationPlan,
    ReconciliationPlanner,
    StockAdjustment,
    movement_note,
)
from pos_engines.variance import (
    CountObservation,
    CountVarianceCalculator,
    LineVariance,
    VarianceDirection,
    VarianceReview,
    VarianceSummary,
)

__all__ = [
    "CountObservation",
    "CountVarianceCalculator",
    "LineVariance",
    "VarianceDirection",
    "VarianceReview",
    "VarianceSummary",
    "ReconciliationPlan",
    "ReconciliationPlanner",
    "StockAdjustment",
    "movement_note",
]
