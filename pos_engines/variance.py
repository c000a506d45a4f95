"""
pos_engines.variance -- Stock-count variance calculation.

Responsibility:
    Compare physically counted quantities against the quantities expected
    when the count started, and produce the review set: the lines whose
    count differs from the snapshot, with a summary of the whole count.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pos_kernel logging.
    Consumed by the stock-take service and the reconciliation planner.

Invariants enforced:
    - variance = counted - expected, defined only when counted is set.
      An uncounted line has variance ``None`` and is excluded from review,
      never treated as a count of zero.
    - A variance of exactly 0 is "confirmed correct" and never appears in
      the review set.
    - Ordering of the review set is by product name, then product id --
      independent of the order counts were entered.
    - Purity: no clock access, no I/O; identical inputs give identical
      outputs.

Failure modes:
    - ValueError from ``CountObservation`` when a quantity is not an int
      or ``counted`` is negative.  ``expected`` may be negative: an
      oversold product has negative stock on hand.

Usage:
    from pos_engines.variance import CountObservation, CountVarianceCalculator

    calculator = CountVarianceCalculator()
    review = calculator.review(observations=(
        CountObservation(product_id=p1, product_name="Cola", sku="SKU-1",
                         expected=50, counted=48),
    ))
    review.lines[0].variance  # -2 (shortage)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from pos_kernel.logging_config import get_logger
from pos_engines.tracer import traced_engine

logger = get_logger("engines.variance")


class VarianceDirection(str, Enum):
    """Sign of a count variance."""

    SURPLUS = "surplus"  # more physical stock than expected
    SHORTAGE = "shortage"  # less physical stock than expected
    MATCHED = "matched"  # count confirms the snapshot


def _check_quantity(name: str, value: object, allow_negative: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {value!r}")
    if value < 0 and not allow_negative:
        raise ValueError(f"{name} cannot be negative (got {value})")


@dataclass(frozen=True)
class CountObservation:
    """
    One product's expected and counted quantity.

    ``counted`` is ``None`` until the product has been counted.  ``expected``
    may be negative (oversold stock); ``counted`` never is.
    """

    product_id: UUID
    product_name: str
    sku: str
    expected: int
    counted: int | None = None

    def __post_init__(self) -> None:
        _check_quantity("expected", self.expected, allow_negative=True)
        if self.counted is not None:
            _check_quantity("counted", self.counted)

    @property
    def is_counted(self) -> bool:
        return self.counted is not None

    @property
    def variance(self) -> int | None:
        """counted - expected, or None while uncounted."""
        if self.counted is None:
            return None
        return self.counted - self.expected


@dataclass(frozen=True)
class LineVariance:
    """A counted line whose count differs from its snapshot."""

    product_id: UUID
    product_name: str
    sku: str
    expected: int
    counted: int
    variance: int

    @property
    def direction(self) -> VarianceDirection:
        if self.variance > 0:
            return VarianceDirection.SURPLUS
        if self.variance < 0:
            return VarianceDirection.SHORTAGE
        return VarianceDirection.MATCHED

    @property
    def absolute_variance(self) -> int:
        return abs(self.variance)


@dataclass(frozen=True)
class VarianceSummary:
    """Aggregate figures over every line of a count."""

    total_lines: int
    counted_lines: int
    confirmed_lines: int
    surplus_lines: int
    shortage_lines: int
    net_variance: int
    absolute_variance: int

    @property
    def uncounted_lines(self) -> int:
        return self.total_lines - self.counted_lines

    @property
    def variance_lines(self) -> int:
        return self.surplus_lines + self.shortage_lines


@dataclass(frozen=True)
class VarianceReview:
    """
    The review set for a count.

    ``lines`` holds only nonzero variances, ordered by product name then
    product id.
    """

    lines: tuple[LineVariance, ...]
    summary: VarianceSummary

    @property
    def has_variance(self) -> bool:
        return bool(self.lines)

    def for_product(self, product_id: UUID) -> LineVariance | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None


def _review_order(obs: CountObservation) -> tuple[str, str]:
    return (obs.product_name.casefold(), str(obs.product_id))


class CountVarianceCalculator:
    """
    Pure function calculator for stock-count variances.

    Contract:
        No I/O, no database access, fully deterministic.
    Guarantees:
        - ``review`` returns only lines with a nonzero variance.
        - Calling ``review`` twice with the same observations returns equal
          results.
    Non-goals:
        - Does not decide whether a review may be finalized; callers check
          ``VarianceReview.has_variance``.
        - Does not value variances in money.
    """

    @staticmethod
    def line_variance(expected: int, counted: int | None) -> int | None:
        """counted - expected; None when the line has not been counted."""
        if counted is None:
            return None
        return counted - expected

    @traced_engine("count_variance", "1.0", fingerprint_fields=("observations",))
    def review(
        self,
        observations: tuple[CountObservation, ...] | list[CountObservation],
    ) -> VarianceReview:
        """
        Build the variance review for a set of count observations.

        Preconditions:
            Each product appears at most once in ``observations``.

        Postconditions:
            - Every returned line satisfies variance == counted - expected
              and variance != 0.
            - Uncounted observations contribute only to
              ``summary.total_lines``.

        Args:
            observations: Every line of the count, counted or not.

        Returns:
            VarianceReview with ordered variance lines and a summary.
        """
        ordered = sorted(observations, key=_review_order)
        logger.debug("count_variance_review_started", extra={
            "observation_count": len(ordered),
        })

        lines: list[LineVariance] = []
        counted = confirmed = surplus = shortage = 0
        net = absolute = 0

        for obs in ordered:
            variance = obs.variance
            if variance is None:
                continue
            counted += 1
            if variance == 0:
                confirmed += 1
                continue
            if variance > 0:
                surplus += 1
            else:
                shortage += 1
            net += variance
            absolute += abs(variance)
            lines.append(LineVariance(
                product_id=obs.product_id,
                product_name=obs.product_name,
                sku=obs.sku,
                expected=obs.expected,
                counted=obs.counted,
                variance=variance,
            ))

        summary = VarianceSummary(
            total_lines=len(ordered),
            counted_lines=counted,
            confirmed_lines=confirmed,
            surplus_lines=surplus,
            shortage_lines=shortage,
            net_variance=net,
            absolute_variance=absolute,
        )

        logger.info("count_variance_review_calculated", extra={
            "total_lines": summary.total_lines,
            "counted_lines": summary.counted_lines,
            "variance_lines": summary.variance_lines,
            "net_variance": summary.net_variance,
        })

        return VarianceReview(lines=tuple(lines), summary=summary)
