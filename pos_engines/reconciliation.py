"""
pos_engines.reconciliation -- Stock-take reconciliation planning.

Responsibility:
    Turn a variance review into the exact list of inventory writes a
    finalize must perform, before any of them is attempted.  Applying the
    plan is the service's job; the plan itself is a pure value.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pos_kernel logging and sibling engine modules.

Invariants enforced:
    - Location quantity is an absolute set: the counted value is ground
      truth for the counted location.
    - Aggregate stock moves by the variance (a delta), so stock held at
      other locations is left alone.
    - One adjustment per review line; no adjustment for zero variances.

Failure modes:
    - ValueError from ``ReconciliationPlanner.plan`` if ``location`` is
      blank.

Usage:
    planner = ReconciliationPlanner()
    plan = planner.plan(location="Main Store", review=review)
    for adj in plan.adjustments:
        store.write_location_stock(adj.product_id, plan.location, adj.new_quantity)
        store.adjust_aggregate_stock(adj.product_id, adj.aggregate_delta)
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from pos_kernel.logging_config import get_logger
from pos_engines.tracer import traced_engine
from pos_engines.variance import VarianceReview

logger = get_logger("engines.reconciliation")


def movement_note(variance: int) -> str:
    """Human-readable note for the stock movement behind an adjustment."""
    verb = "found" if variance > 0 else "missing"
    return f"Stock take adjustment: {verb} {abs(variance)} units"


@dataclass(frozen=True)
class StockAdjustment:
    """One product's inventory writes for a finalize."""

    product_id: UUID
    previous_quantity: int
    new_quantity: int
    aggregate_delta: int
    note: str


@dataclass(frozen=True)
class ReconciliationPlan:
    """Every inventory write for one stock take, in application order."""

    location: str
    adjustments: tuple[StockAdjustment, ...]

    @property
    def is_empty(self) -> bool:
        return not self.adjustments

    @property
    def adjustment_count(self) -> int:
        return len(self.adjustments)

    @property
    def net_delta(self) -> int:
        return sum(a.aggregate_delta for a in self.adjustments)


class ReconciliationPlanner:
    """
    Builds reconciliation plans from variance reviews.

    Contract:
        No I/O; the same review always yields the same plan.
    Non-goals:
        Does not check session status or refuse empty plans -- the service
        owns those rules.
    """

    @traced_engine("reconciliation_plan", "1.0", fingerprint_fields=("location", "review"))
    def plan(self, location: str, review: VarianceReview) -> ReconciliationPlan:
        """
        Derive the stock writes for every variance line in ``review``.

        Postconditions:
            For each adjustment: new_quantity == counted,
            previous_quantity == expected,
            aggregate_delta == counted - expected.
        """
        if not location or not location.strip():
            raise ValueError("location is required to plan a reconciliation")

        adjustments = tuple(
            StockAdjustment(
                product_id=line.product_id,
                previous_quantity=line.expected,
                new_quantity=line.counted,
                aggregate_delta=line.variance,
                note=movement_note(line.variance),
            )
            for line in review.lines
        )

        logger.info("reconciliation_plan_built", extra={
            "location": location,
            "adjustment_count": len(adjustments),
            "net_delta": sum(a.aggregate_delta for a in adjustments),
        })

        return ReconciliationPlan(location=location, adjustments=adjustments)
