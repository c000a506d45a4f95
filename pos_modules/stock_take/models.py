"""
Stock-Take Domain Models (``pos_modules.stock_take.models``).

Responsibility
--------------
Frozen value objects for the nouns of a stock take: the session, its
counted lines, the inventory snapshot it starts from, and the read models
used for history listings.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  All dataclasses are
``frozen=True``; lifecycle changes produce new instances via
``dataclasses.replace``.  These models carry NO database identity and NO
I/O; they are the DTOs between the service layer and callers.

Invariants
----------
- ``CountedLine.expected_quantity`` is fixed when the line is built from a
  snapshot; ``with_count`` never touches it.
- ``CountedLine.variance`` is ``None`` while uncounted -- never zero.
- ``StockTakeSession.location`` is non-blank and cannot be replaced by the
  lifecycle helpers.
- A completed session has ``completed_at``; a cancelled one has
  ``cancelled_at``.

Failure Modes
-------------
- Constructing a line with a negative counted quantity raises
  ``ValueError``.
- Constructing a session with inconsistent status timestamps raises
  ``ValueError``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from uuid import UUID

from pos_engines.variance import CountObservation
from pos_kernel.logging_config import get_logger

logger = get_logger("modules.stock_take.models")


class StockTakeStatus(str, Enum):
    """Persisted lifecycle states of a stock take."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MovementType(str, Enum):
    """Stock movement categories."""
    ADJUSTMENT = "ADJUSTMENT"


class NotificationType(str, Enum):
    STOCK_TAKE_COMPLETE = "STOCK_TAKE_COMPLETE"


@dataclass(frozen=True)
class ProductInfo:
    """Display attributes of a product."""
    product_id: UUID
    name: str
    sku: str


@dataclass(frozen=True)
class SnapshotEntry:
    """Quantity on hand for one product at the snapshot location."""
    product_id: UUID
    product_name: str
    sku: str
    quantity: int


@dataclass(frozen=True)
class StockSnapshot:
    """
    Quantities on hand at one location at the instant of capture.

    An unknown location yields an empty snapshot, not an error.
    """
    location: str
    entries: tuple[SnapshotEntry, ...] = ()
    captured_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def product_ids(self) -> tuple[UUID, ...]:
        return tuple(e.product_id for e in self.entries)

    def quantities(self) -> dict[UUID, int]:
        return {e.product_id: e.quantity for e in self.entries}


@dataclass(frozen=True)
class CountedLine:
    """
    One product's count within a stock take.

    Contract: ``expected_quantity`` is the snapshot value and may be negative
    for an oversold product; ``counted_quantity`` is ``None`` until entered
    and never negative.
    """
    product_id: UUID
    product_name: str
    sku: str
    expected_quantity: int
    counted_quantity: int | None = None
    notes: str | None = None

    def __post_init__(self):
        if self.counted_quantity is not None and self.counted_quantity < 0:
            raise ValueError(
                f"counted_quantity cannot be negative (got {self.counted_quantity})"
            )

    @classmethod
    def from_snapshot(cls, entry: SnapshotEntry) -> CountedLine:
        return cls(
            product_id=entry.product_id,
            product_name=entry.product_name,
            sku=entry.sku,
            expected_quantity=entry.quantity,
        )

    @property
    def is_counted(self) -> bool:
        return self.counted_quantity is not None

    @property
    def variance(self) -> int | None:
        if self.counted_quantity is None:
            return None
        return self.counted_quantity - self.expected_quantity

    def with_count(self, counted: int | None, notes: str | None = None) -> CountedLine:
        """Copy of this line with a new count; notes are kept unless given."""
        return replace(
            self,
            counted_quantity=counted,
            notes=self.notes if notes is None else notes,
        )

    def to_observation(self) -> CountObservation:
        return CountObservation(
            product_id=self.product_id,
            product_name=self.product_name,
            sku=self.sku,
            expected=self.expected_quantity,
            counted=self.counted_quantity,
        )


@dataclass(frozen=True)
class StockTakeSession:
    """
    A counting session for one location.

    Contract: immutable; ``start``/``complete``/``cancel``/``with_lines``
    return new instances and never change ``id`` or ``location``.
    """
    id: UUID
    location: str
    status: StockTakeStatus
    created_at: datetime
    created_by_id: UUID
    lines: tuple[CountedLine, ...] = ()
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    notes: str | None = None
    vendor_id: UUID | None = None

    def __post_init__(self):
        if not self.location or not self.location.strip():
            raise ValueError("location is required")
        if self.status == StockTakeStatus.COMPLETED and self.completed_at is None:
            raise ValueError("a completed stock take needs completed_at")
        if self.status == StockTakeStatus.CANCELLED and self.cancelled_at is None:
            raise ValueError("a cancelled stock take needs cancelled_at")
        product_ids = [line.product_id for line in self.lines]
        if len(product_ids) != len(set(product_ids)):
            logger.warning("stock_take_duplicate_lines", extra={
                "stock_take_id": str(self.id),
                "line_count": len(product_ids),
            })
            raise ValueError("a product may appear only once per stock take")

    @classmethod
    def start(
        cls,
        id: UUID,
        snapshot: StockSnapshot,
        created_at: datetime,
        created_by_id: UUID,
        notes: str | None = None,
        vendor_id: UUID | None = None,
    ) -> StockTakeSession:
        """Open a new session whose lines are the snapshot."""
        return cls(
            id=id,
            location=snapshot.location,
            status=StockTakeStatus.IN_PROGRESS,
            created_at=created_at,
            created_by_id=created_by_id,
            lines=tuple(CountedLine.from_snapshot(e) for e in snapshot.entries),
            notes=notes,
            vendor_id=vendor_id,
        )

    @property
    def is_open(self) -> bool:
        return self.status == StockTakeStatus.IN_PROGRESS

    @property
    def counted_lines(self) -> tuple[CountedLine, ...]:
        return tuple(line for line in self.lines if line.is_counted)

    def line_for(self, product_id: UUID) -> CountedLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def observations(self) -> tuple[CountObservation, ...]:
        return tuple(line.to_observation() for line in self.lines)

    def with_lines(self, lines: tuple[CountedLine, ...]) -> StockTakeSession:
        return replace(self, lines=tuple(lines))

    def complete(self, completed_at: datetime) -> StockTakeSession:
        return replace(
            self, status=StockTakeStatus.COMPLETED, completed_at=completed_at,
        )

    def cancel(self, cancelled_at: datetime) -> StockTakeSession:
        """Terminal copy with every entered count discarded."""
        return replace(
            self,
            status=StockTakeStatus.CANCELLED,
            cancelled_at=cancelled_at,
            lines=tuple(line.with_count(None) for line in self.lines),
        )


@dataclass(frozen=True)
class StockTakeSummary:
    """One row of the stock-take history listing."""
    id: UUID
    location: str
    status: StockTakeStatus
    created_by_id: UUID
    created_at: datetime
    completed_at: datetime | None
    item_count: int
    counted_count: int
    variance_count: int
    net_variance: int
    notes: str | None = None


@dataclass(frozen=True)
class StockTakePage:
    """A page of stock-take summaries, newest first."""
    items: tuple[StockTakeSummary, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)


@dataclass(frozen=True)
class StockMovement:
    """An inventory movement recorded alongside a stock write."""
    product_id: UUID
    movement_type: MovementType
    quantity: int
    reference_type: str
    reference_id: UUID | None
    location_from: str | None = None
    location_to: str | None = None
    notes: str | None = None
    vendor_id: UUID | None = None
