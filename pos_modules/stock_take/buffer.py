"""
Count Entry Buffer (``pos_modules.stock_take.buffer``).

Responsibility
--------------
Hold the physical counts a user has typed for an in-progress stock take and
validate each entry as it arrives.  The buffer works on the session's lines
only; nothing here reads or writes authoritative stock.

Architecture
------------
Layer: **Modules** -- in-memory state for one session.  The service loads a
buffer from a persisted ``StockTakeSession``, applies one edit, and writes
the resulting lines back through the repository.

Invariants
----------
- A rejected entry leaves the previous value of that line untouched.
- Clearing a count returns the line to "uncounted", never to zero.
- Only products present in the session snapshot can be counted.

Failure Modes
-------------
- ``InvalidCountError`` for booleans, negative numbers, fractional numbers,
  counts above ``MAX_COUNT`` and non-numeric strings.
- ``ProductNotInSessionError`` for a product outside the snapshot.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from uuid import UUID

from pos_engines.variance import CountObservation
from pos_kernel.exceptions import InvalidCountError, ProductNotInSessionError
from pos_kernel.logging_config import get_logger
from pos_modules.stock_take.models import CountedLine, StockTakeSession

logger = get_logger("modules.stock_take.buffer")

# Largest count a BIGINT stock column holds.
MAX_COUNT = 2**63 - 1


class _Unset:
    """Marker for a line that has not been counted."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


def parse_count(product_id: UUID, value: object) -> int | None:
    """
    Normalize a raw count entry.

    Returns the count as an ``int``, or ``None`` for the unset marker
    (``UNSET``, ``None`` or a blank string).

    Raises:
        InvalidCountError: The value is not a non-negative whole number.
    """
    if value is UNSET or value is None:
        return None
    if isinstance(value, bool):
        raise InvalidCountError(str(product_id), value, "must be a number, not a boolean")

    if isinstance(value, int):
        number: int | float | Decimal = value
    elif isinstance(value, (float, Decimal)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise InvalidCountError(str(product_id), value, "not a number") from None
    else:
        raise InvalidCountError(
            str(product_id), value, f"unsupported type {type(value).__name__}",
        )

    if isinstance(number, float) and (number != number or number in (float("inf"), float("-inf"))):
        raise InvalidCountError(str(product_id), value, "not a finite number")
    if isinstance(number, Decimal) and not number.is_finite():
        raise InvalidCountError(str(product_id), value, "not a finite number")
    if number < 0:
        raise InvalidCountError(str(product_id), value, "cannot be negative")
    if number > MAX_COUNT:
        raise InvalidCountError(str(product_id), value, "too large")
    if number != int(number):
        raise InvalidCountError(str(product_id), value, "must be a whole number")
    return int(number)


class CountEntryBuffer:
    """
    Mutable count entries for one open stock take.

    Contract:
        ``set_count`` / ``clear_count`` change only the buffer; the caller
        persists ``lines()`` afterwards.
    """

    def __init__(self, stock_take_id: UUID, lines: tuple[CountedLine, ...] | list[CountedLine]):
        self._stock_take_id = stock_take_id
        self._order = [line.product_id for line in lines]
        self._lines: dict[UUID, CountedLine] = {line.product_id: line for line in lines}

    @classmethod
    def from_session(cls, session: StockTakeSession) -> CountEntryBuffer:
        return cls(session.id, session.lines)

    def _line(self, product_id: UUID) -> CountedLine:
        line = self._lines.get(product_id)
        if line is None:
            logger.warning("stock_take_count_unknown_product", extra={
                "stock_take_id": str(self._stock_take_id),
                "product_id": str(product_id),
            })
            raise ProductNotInSessionError(str(self._stock_take_id), str(product_id))
        return line

    def set_count(self, product_id: UUID, value: object, notes: str | None = None) -> int | None:
        """
        Record a count for ``product_id``.

        Returns the normalized count (``None`` when the entry unset the line).
        """
        line = self._line(product_id)
        try:
            counted = parse_count(product_id, value)
        except InvalidCountError as exc:
            logger.warning("stock_take_count_rejected", extra={
                "stock_take_id": str(self._stock_take_id),
                "product_id": str(product_id),
                "reason": exc.reason,
            })
            raise

        self._lines[product_id] = line.with_count(counted, notes=notes)
        logger.debug("stock_take_count_buffered", extra={
            "stock_take_id": str(self._stock_take_id),
            "product_id": str(product_id),
            "counted": counted,
        })
        return counted

    def get_count(self, product_id: UUID) -> int | None:
        return self._line(product_id).counted_quantity

    def clear_count(self, product_id: UUID) -> None:
        line = self._line(product_id)
        self._lines[product_id] = line.with_count(None)

    def clear_all(self) -> None:
        for product_id, line in self._lines.items():
            self._lines[product_id] = line.with_count(None)

    def counted_product_ids(self) -> tuple[UUID, ...]:
        return tuple(
            pid for pid in self._order if self._lines[pid].is_counted
        )

    def lines(self) -> tuple[CountedLine, ...]:
        return tuple(self._lines[pid] for pid in self._order)

    def observations(self) -> tuple[CountObservation, ...]:
        return tuple(line.to_observation() for line in self.lines())

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    def __len__(self) -> int:
        return len(self._order)
