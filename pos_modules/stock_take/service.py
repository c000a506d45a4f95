"""
Stock-Take Module Service (``pos_modules.stock_take.service``).

Responsibility
--------------
Orchestrates a stock take end to end: capture the location snapshot, buffer
the user's counts, present the variance review, and reconcile authoritative
stock on finalize.  Business calculations live in the pure engines
(``CountVarianceCalculator``, ``ReconciliationPlanner``); this service wires
them to persistence.

Architecture
------------
Layer: **Modules** -- stateful orchestration wrapper.

1. ``InventorySnapshotProvider`` reads expected quantities at session start.
2. ``CountEntryBuffer`` validates and records counts.
3. ``CountVarianceCalculator`` builds the review set.
4. ``ReconciliationPlanner`` derives the stock writes; this service applies
   them through ``InventoryStore``.

Invariants
----------
- Each public method owns its transaction boundary: ``session.commit()`` on
  success and ``session.rollback()`` on failure.
- Finalize applies every location write, aggregate adjustment, movement,
  notification and the status change in ONE transaction.
- Cancel never touches ``InventoryStore``.
- Terminal sessions reject every mutation with ``SessionClosedError``.

Failure Modes
-------------
- Typed ``PosKernelError`` subclasses propagate unchanged after rollback.
- Any other failure while applying a finalize is rolled back and raised as
  ``PersistenceFailureError`` chained to the original exception; the session
  stays ``in_progress``.

Usage::

    service = StockTakeService(session, clock=clock)
    take = service.start_session("Main Store", actor_id=user_id)
    service.set_count(take.id, product_id, "48")
    review = service.get_variance_review(take.id)
    service.finalize(take.id, actor_id=user_id)
"""

from __future__ import annotations

import time
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from pos_engines.reconciliation import ReconciliationPlan, ReconciliationPlanner
from pos_engines.variance import CountVarianceCalculator, VarianceReview
from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.exceptions import (
    CancellationNotConfirmedError,
    ConcurrentStockTakeError,
    NothingToFinalizeError,
    PersistenceFailureError,
    PosKernelError,
    StockTakeNotFoundError,
)
from pos_kernel.logging_config import LogContext, get_logger
from pos_modules.stock_take.buffer import CountEntryBuffer
from pos_modules.stock_take.config import StockTakeConfig
from pos_modules.stock_take.models import (
    CountedLine,
    MovementType,
    NotificationType,
    StockMovement,
    StockTakePage,
    StockTakeSession,
    StockTakeStatus,
    StockTakeSummary,
)
from pos_modules.stock_take.snapshot import InventorySnapshotProvider
from pos_modules.stock_take.store import (
    InventoryStore,
    SqlInventoryStore,
    SqlStockTakeRepository,
    StockTakeRepository,
)
from pos_modules.stock_take.workflows import (
    CANCEL,
    FINALIZE,
    RECORD_COUNT,
    require_transition,
)

logger = get_logger("modules.stock_take.service")

MOVEMENT_REFERENCE_TYPE = "stock_take"
COMPLETION_TITLE = "Stock Take Completed"


def completion_message(location: str, adjustment_count: int) -> str:
    return (
        f"Stock take for {location} has been completed with "
        f"{adjustment_count} adjustments."
    )


def completion_link(stock_take_id: UUID) -> str:
    return f"/stock/takes/{stock_take_id}"


def summarize(stock_take: StockTakeSession) -> StockTakeSummary:
    """History row for a session, computed from its lines."""
    variances = [
        line.variance for line in stock_take.lines
        if line.variance is not None and line.variance != 0
    ]
    return StockTakeSummary(
        id=stock_take.id,
        location=stock_take.location,
        status=stock_take.status,
        created_by_id=stock_take.created_by_id,
        created_at=stock_take.created_at,
        completed_at=stock_take.completed_at,
        item_count=len(stock_take.lines),
        counted_count=len(stock_take.counted_lines),
        variance_count=len(variances),
        net_variance=sum(variances),
        notes=stock_take.notes,
    )


class StockTakeService:
    """
    Orchestrates stock takes through engines and persistence.

    Contract
    --------
    Every mutating method loads the session, checks the workflow transition,
    applies the change, and commits.  On any failure the SQLAlchemy session
    is rolled back before the exception propagates.

    Guarantees
    ----------
    - Atomicity: finalize writes share a single database transaction.
    - Snapshot isolation: expected quantities are never re-read after
      ``start_session``.

    Non-goals
    ---------
    - This class does NOT calculate variances -- ``CountVarianceCalculator``
      does.
    - This class does NOT authorize users; ``actor_id`` is recorded only.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: StockTakeConfig | None = None,
        inventory_store: InventoryStore | None = None,
        repository: StockTakeRepository | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or StockTakeConfig()
        self._store = inventory_store or SqlInventoryStore(session)
        self._repository = repository or SqlStockTakeRepository(session)
        self._snapshots = InventorySnapshotProvider(
            self._store, config=self._config, clock=self._clock,
        )
        self._calculator = CountVarianceCalculator()
        self._planner = ReconciliationPlanner()

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def start_session(
        self,
        location: str,
        actor_id: UUID,
        notes: str | None = None,
        vendor_id: UUID | None = None,
    ) -> StockTakeSession:
        """
        Open a stock take for ``location`` with a fresh snapshot.

        Raises:
            ValueError: ``location`` is blank.
            ConcurrentStockTakeError: The location already has an open
                session and concurrent sessions are not allowed.
        """
        if not location or not location.strip():
            raise ValueError("location is required to start a stock take")
        location = location.strip()

        try:
            if not self._config.allow_concurrent_sessions_per_location:
                open_id = self._repository.find_open(location)
                if open_id is not None:
                    logger.warning("stock_take_already_open", extra={
                        "location": location,
                        "open_stock_take_id": str(open_id),
                    })
                    raise ConcurrentStockTakeError(location, str(open_id))

            snapshot = self._snapshots.capture(location)
            stock_take = StockTakeSession.start(
                id=uuid4(),
                snapshot=snapshot,
                created_at=self._clock.now(),
                created_by_id=actor_id,
                notes=notes,
                vendor_id=vendor_id,
            )
            self._repository.add(stock_take, actor_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info("stock_take_started", extra={
            "stock_take_id": str(stock_take.id),
            "location": location,
            "actor_id": str(actor_id),
            "line_count": len(stock_take.lines),
        })
        return stock_take

    def get_session(self, stock_take_id: UUID) -> StockTakeSession:
        """
        Raises:
            StockTakeNotFoundError: No session with this id.
        """
        return self._require(stock_take_id)

    def _require(self, stock_take_id: UUID, for_update: bool = False) -> StockTakeSession:
        stock_take = self._repository.get(stock_take_id, for_update=for_update)
        if stock_take is None:
            raise StockTakeNotFoundError(str(stock_take_id))
        return stock_take

    # =========================================================================
    # Counting
    # =========================================================================

    def set_count(
        self,
        stock_take_id: UUID,
        product_id: UUID,
        value: object,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> CountedLine:
        """
        Record a physical count for one product.

        ``value`` may be an int, a numeric string, or ``UNSET``/``None``/``""``
        to mark the product uncounted again.  The edit is attributed to
        ``actor_id``, or to the session creator when none is given.

        Raises:
            StockTakeNotFoundError, SessionClosedError,
            ProductNotInSessionError, InvalidCountError.
        """
        try:
            stock_take = self._require(stock_take_id)
            require_transition(str(stock_take.id), stock_take.status.value, RECORD_COUNT)

            buffer = CountEntryBuffer.from_session(stock_take)
            buffer.set_count(product_id, value, notes=notes)
            updated = stock_take.with_lines(buffer.lines())
            self._repository.save(updated, actor_id or stock_take.created_by_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        line = updated.line_for(product_id)
        logger.info("stock_take_count_recorded", extra={
            "stock_take_id": str(stock_take_id),
            "product_id": str(product_id),
            "counted": line.counted_quantity,
            "variance": line.variance,
        })
        return line

    def clear_count(
        self,
        stock_take_id: UUID,
        product_id: UUID,
        actor_id: UUID | None = None,
    ) -> CountedLine:
        """Return one product to "not yet counted"."""
        try:
            stock_take = self._require(stock_take_id)
            require_transition(str(stock_take.id), stock_take.status.value, RECORD_COUNT)

            buffer = CountEntryBuffer.from_session(stock_take)
            buffer.clear_count(product_id)
            updated = stock_take.with_lines(buffer.lines())
            self._repository.save(updated, actor_id or stock_take.created_by_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info("stock_take_count_cleared", extra={
            "stock_take_id": str(stock_take_id),
            "product_id": str(product_id),
        })
        return updated.line_for(product_id)

    def get_count(self, stock_take_id: UUID, product_id: UUID) -> int | None:
        """The entered count, or None while the product is uncounted."""
        stock_take = self._require(stock_take_id)
        return CountEntryBuffer.from_session(stock_take).get_count(product_id)

    def search_lines(self, stock_take_id: UUID, term: str | None) -> tuple[CountedLine, ...]:
        """Lines whose product name or SKU contains ``term`` (case-insensitive)."""
        stock_take = self._require(stock_take_id)
        needle = (term or "").strip().casefold()
        if not needle:
            return stock_take.lines
        return tuple(
            line for line in stock_take.lines
            if needle in line.product_name.casefold() or needle in line.sku.casefold()
        )

    # =========================================================================
    # Review & finalize
    # =========================================================================

    def get_variance_review(self, stock_take_id: UUID) -> VarianceReview:
        """Variance review for the session's current counts. No side effects."""
        stock_take = self._require(stock_take_id)
        return self._calculator.review(observations=stock_take.observations())

    def finalize(self, stock_take_id: UUID, actor_id: UUID) -> StockTakeSession:
        """
        Commit counted quantities to authoritative stock.

        Preconditions:
            Session is ``in_progress`` and has at least one nonzero variance.

        Postconditions:
            For each variance line, location stock == counted and the
            aggregate moved by exactly the variance; session ``completed``.

        Raises:
            StockTakeNotFoundError, SessionClosedError,
            NothingToFinalizeError, PersistenceFailureError.
        """
        with LogContext.bind(stock_take_id=str(stock_take_id), actor_id=str(actor_id)):
            t0 = time.monotonic()
            try:
                stock_take = self._require(stock_take_id, for_update=True)
                require_transition(str(stock_take.id), stock_take.status.value, FINALIZE)

                review = self._calculator.review(observations=stock_take.observations())
                if not review.has_variance:
                    logger.warning("stock_take_nothing_to_finalize", extra={
                        "counted_lines": review.summary.counted_lines,
                    })
                    raise NothingToFinalizeError(
                        str(stock_take.id), review.summary.counted_lines,
                    )

                plan = self._planner.plan(location=stock_take.location, review=review)
                completed = self._apply(stock_take, plan, actor_id)
                self._session.commit()

            except PosKernelError:
                self._session.rollback()
                raise

            except Exception as exc:
                self._session.rollback()
                logger.error("stock_take_finalize_failed", extra={
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                }, exc_info=True)
                raise PersistenceFailureError(
                    str(stock_take_id), "finalize", str(exc),
                ) from exc

            logger.info("stock_take_finalized", extra={
                "location": completed.location,
                "adjustment_count": plan.adjustment_count,
                "net_delta": plan.net_delta,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            })
            return completed

    def _apply(
        self,
        stock_take: StockTakeSession,
        plan: ReconciliationPlan,
        actor_id: UUID,
    ) -> StockTakeSession:
        for adjustment in plan.adjustments:
            self._store.write_location_stock(
                adjustment.product_id, plan.location, adjustment.new_quantity,
                actor_id=actor_id,
            )
            self._store.adjust_aggregate_stock(
                adjustment.product_id, adjustment.aggregate_delta,
                actor_id=actor_id,
            )
            if self._config.record_stock_movements:
                self._store.record_movement(
                    StockMovement(
                        product_id=adjustment.product_id,
                        movement_type=MovementType.ADJUSTMENT,
                        quantity=adjustment.aggregate_delta,
                        reference_type=MOVEMENT_REFERENCE_TYPE,
                        reference_id=stock_take.id,
                        location_to=plan.location,
                        notes=adjustment.note,
                        vendor_id=stock_take.vendor_id,
                    ),
                    actor_id,
                )

        completed = stock_take.complete(self._clock.now())
        self._repository.save(completed, actor_id)

        if self._config.record_completion_notification:
            self._repository.record_notification(
                notification_type=NotificationType.STOCK_TAKE_COMPLETE,
                title=COMPLETION_TITLE,
                message=completion_message(stock_take.location, plan.adjustment_count),
                link=completion_link(stock_take.id),
                reference_id=stock_take.id,
                actor_id=actor_id,
                vendor_id=stock_take.vendor_id,
            )
        return completed

    # =========================================================================
    # Cancel
    # =========================================================================

    def cancel(
        self,
        stock_take_id: UUID,
        actor_id: UUID,
        confirmed: bool = False,
    ) -> StockTakeSession:
        """
        Abandon a stock take, discarding its counts.  Stock is untouched.

        Raises:
            StockTakeNotFoundError, SessionClosedError,
            CancellationNotConfirmedError.
        """
        with LogContext.bind(stock_take_id=str(stock_take_id), actor_id=str(actor_id)):
            try:
                stock_take = self._require(stock_take_id, for_update=True)
                require_transition(str(stock_take.id), stock_take.status.value, CANCEL)

                if self._config.require_cancel_confirmation and not confirmed:
                    raise CancellationNotConfirmedError(
                        str(stock_take.id), len(stock_take.counted_lines),
                    )

                cancelled = stock_take.cancel(self._clock.now())
                self._repository.save(cancelled, actor_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info("stock_take_cancelled", extra={
                "location": cancelled.location,
                "discarded_counts": len(stock_take.counted_lines),
            })
            return cancelled

    # =========================================================================
    # History
    # =========================================================================

    def list_sessions(
        self,
        location: str | None = None,
        status: StockTakeStatus | str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> StockTakePage:
        """
        Stock-take history, newest first.

        Raises:
            ValueError: ``page`` is below 1 or ``status`` is unknown.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        resolved_status = StockTakeStatus(status) if status is not None else None
        resolved_limit = self._config.page_limit(limit)

        sessions, total = self._repository.list_sessions(
            location=location,
            status=resolved_status,
            offset=(page - 1) * resolved_limit,
            limit=resolved_limit,
        )
        return StockTakePage(
            items=tuple(summarize(s) for s in sessions),
            page=page,
            limit=resolved_limit,
            total=total,
        )
