"""
Tests for the count variance engine.

Covers:
- Variance arithmetic and direction
- Uncounted lines versus zero counts
- Review-set filtering and ordering
- Summary figures
- Observation validation
"""

from uuid import UUID, uuid4

import pytest

from pos_engines.variance import (
    CountObservation,
    CountVarianceCalculator,
    VarianceDirection,
)


def _obs(name: str, expected: int, counted: int | None, product_id: UUID | None = None) -> CountObservation:
    return CountObservation(
        product_id=product_id or uuid4(),
        product_name=name,
        sku=f"SKU-{name.upper()}",
        expected=expected,
        counted=counted,
    )


class TestLineVariance:
    """Tests for the per-line variance rule."""

    def test_shortage_is_negative(self):
        assert CountVarianceCalculator.line_variance(expected=50, counted=48) == -2

    def test_surplus_is_positive(self):
        assert CountVarianceCalculator.line_variance(expected=20, counted=25) == 5

    def test_uncounted_has_no_variance(self):
        assert CountVarianceCalculator.line_variance(expected=20, counted=None) is None

    def test_zero_count_is_a_real_count(self):
        """Counting zero means the shelf is empty, not that it was skipped."""
        assert CountVarianceCalculator.line_variance(expected=7, counted=0) == -7


class TestReview:
    """Tests for building the review set."""

    def setup_method(self):
        self.calculator = CountVarianceCalculator()

    def test_mixed_counts(self):
        """Cola short by 2, Chips confirmed, Water uncounted."""
        cola = _obs("Cola", 50, 48)
        chips = _obs("Chips", 20, 20)
        water = _obs("Water", 10, None)

        review = self.calculator.review(observations=(cola, chips, water))

        assert len(review.lines) == 1
        line = review.lines[0]
        assert line.product_id == cola.product_id
        assert line.expected == 50
        assert line.counted == 48
        assert line.variance == -2
        assert line.direction == VarianceDirection.SHORTAGE
        assert review.has_variance is True

    def test_zero_variance_lines_excluded(self):
        review = self.calculator.review(observations=(
            _obs("Cola", 50, 50),
            _obs("Chips", 20, 20),
        ))

        assert review.lines == ()
        assert review.has_variance is False
        assert review.summary.confirmed_lines == 2

    def test_uncounted_lines_never_reviewed(self):
        review = self.calculator.review(observations=(
            _obs("Cola", 50, None),
            _obs("Chips", 0, None),
        ))

        assert review.lines == ()
        assert review.summary.counted_lines == 0
        assert review.summary.uncounted_lines == 2

    def test_ordering_by_name_then_id(self):
        """Order is independent of the input order."""
        low = UUID("00000000-0000-0000-0000-000000000001")
        high = UUID("00000000-0000-0000-0000-000000000002")
        observations = [
            _obs("water", 10, 12),
            _obs("Apple", 5, 1),
            _obs("Cola", 9, 8, product_id=high),
            _obs("cola", 9, 7, product_id=low),
        ]

        forward = self.calculator.review(observations=observations)
        backward = self.calculator.review(observations=list(reversed(observations)))

        names = [(line.product_name, line.product_id) for line in forward.lines]
        assert names[0][0] == "Apple"
        assert names[1] == ("cola", low)
        assert names[2] == ("Cola", high)
        assert names[3][0] == "water"
        assert forward == backward

    def test_summary_totals(self):
        review = self.calculator.review(observations=(
            _obs("A", 10, 13),
            _obs("B", 10, 6),
            _obs("C", 10, 10),
            _obs("D", 10, None),
        ))

        summary = review.summary
        assert summary.total_lines == 4
        assert summary.counted_lines == 3
        assert summary.confirmed_lines == 1
        assert summary.surplus_lines == 1
        assert summary.shortage_lines == 1
        assert summary.variance_lines == 2
        assert summary.net_variance == -1
        assert summary.absolute_variance == 7

    def test_for_product(self):
        cola = _obs("Cola", 50, 48)
        review = self.calculator.review(observations=(cola,))

        assert review.for_product(cola.product_id).variance == -2
        assert review.for_product(uuid4()) is None

    def test_empty_input(self):
        review = self.calculator.review(observations=())

        assert review.lines == ()
        assert review.summary.total_lines == 0

    def test_review_is_deterministic(self):
        observations = (_obs("Cola", 50, 48), _obs("Chips", 20, 25))

        assert self.calculator.review(observations=observations) == \
            self.calculator.review(observations=observations)


class TestCountObservation:
    """Validation of engine input."""

    def test_negative_expected_allowed(self):
        oversold = _obs("Cola", -3, 2)

        [line] = CountVarianceCalculator().review(observations=(oversold,)).lines

        assert oversold.variance == 5
        assert line.direction == VarianceDirection.SURPLUS

    def test_negative_counted_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            _obs("Cola", 1, -3)

    def test_bool_rejected(self):
        with pytest.raises(ValueError, match="int"):
            _obs("Cola", 1, True)

    def test_variance_property(self):
        assert _obs("Cola", 5, 9).variance == 4
        assert _obs("Cola", 5, None).variance is None
        assert _obs("Cola", 5, None).is_counted is False
