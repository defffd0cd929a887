"""Tests for the correlation engine: coefficient, significance and interval."""

import math

import pytest

from fitness_analytics.correlation import (
    ConfidenceInterval,
    CorrelationResult,
    CorrelationStrength,
    LabeledCorrelation,
    classify_strength,
    confidence_interval,
    correlate,
    linear_slope,
    pearson,
    significance,
)
from fitness_analytics.series import MetricSeries


SLEEP = [8.0, 7.5, 8.2, 7.8, 8.5, 7.0, 8.1]
INTENSITY = [3, 4, 2, 3, 4, 2, 3]


class TestPearson:
    """Tests for the raw coefficient."""

    def test_perfect_positive(self):
        """Test a perfectly linear increasing relationship."""
        assert pearson([1, 2, 3, 4, 5], [2, 4, 6, 8, 10]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        """Test a perfectly linear decreasing relationship."""
        assert pearson([1, 2, 3, 4, 5], [10, 8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_zero_variance_is_zero(self):
        """Test that a constant series yields 0.0 instead of dividing by zero."""
        assert pearson([3, 3, 3, 3], [1, 2, 3, 4]) == 0.0
        assert pearson([1, 2, 3, 4], [5, 5, 5, 5]) == 0.0

    def test_mismatched_lengths(self):
        """Test that mismatched inputs yield 0.0."""
        assert pearson([1, 2, 3], [1, 2]) == 0.0

    def test_large_magnitudes_do_not_overflow(self):
        """Test values near the float limit give the same r as small ones."""
        assert pearson([1e200, 2e200, 3e200, 4e200], [4, 1, 3, 2]) == pytest.approx(-0.4)
        assert pearson([1e308, -1e308, 5e307], [1, -1, 0.5]) == pytest.approx(1.0)

    def test_stays_in_bounds(self):
        """Test the coefficient never leaves [-1, 1]."""
        x = [0.1 * i for i in range(50)]
        y = [3.0 * v + 1e-12 for v in x]
        assert -1.0 <= pearson(x, y) <= 1.0


class TestSignificance:
    """Tests for the two-tailed p-value."""

    def test_known_value(self):
        """Test r=0.5 with n=10 against the Student's t table."""
        assert significance(0.5, 10) == pytest.approx(0.141, abs=0.005)

    def test_perfect_correlation_is_zero(self):
        """Test that |r| = 1 gives p = 0."""
        assert significance(1.0, 10) == 0.0
        assert significance(-1.0, 10) == 0.0

    def test_two_samples_is_one(self):
        """Test that n = 2 carries no evidence."""
        assert significance(1.0, 2) == 1.0
        assert significance(0.3, 2) == 1.0

    def test_zero_correlation_is_one(self):
        """Test that r = 0 gives p = 1."""
        assert significance(0.0, 30) == pytest.approx(1.0)

    def test_decreases_with_sample_size(self):
        """Test the same r is more significant with more samples."""
        assert significance(0.4, 50) < significance(0.4, 10)


class TestConfidenceInterval:
    """Tests for the 95% interval."""

    def test_known_value(self):
        """Test r=0.5 with n=28."""
        interval = confidence_interval(0.5, 28)
        margin = 1.96 * math.sqrt(0.75 / 25)
        assert interval.lower == pytest.approx(0.5 - margin)
        assert interval.upper == pytest.approx(0.5 + margin)
        assert interval.level == 0.95

    def test_small_sample_is_full_range(self):
        """Test that n < 4 gives [-1, 1]."""
        interval = confidence_interval(0.9, 3)
        assert (interval.lower, interval.upper) == (-1.0, 1.0)

    def test_clamped(self):
        """Test the interval is clamped to [-1, 1]."""
        interval = confidence_interval(0.95, 5)
        assert interval.upper == 1.0
        assert interval.lower >= -1.0


class TestCorrelate:
    """Tests for the full correlation result."""

    def test_empty_input(self):
        """Test that empty input resolves to the neutral result."""
        result = correlate([], [])
        assert result.coefficient == 0.0
        assert result.p_value == 1.0
        assert (result.confidence_interval.lower, result.confidence_interval.upper) == (-1.0, 1.0)
        assert result.sample_size == 0

    def test_single_sample(self):
        """Test that one pair resolves to the neutral result."""
        result = correlate([1], [2])
        assert result.coefficient == 0.0
        assert result.p_value == 1.0

    def test_two_samples(self):
        """Test that two pairs correlate perfectly but without significance."""
        result = correlate([1, 2], [3, 5])
        assert result.coefficient == pytest.approx(1.0)
        assert result.p_value == 1.0
        assert (result.confidence_interval.lower, result.confidence_interval.upper) == (-1.0, 1.0)
        assert result.sample_size == 2

    def test_mismatched_lengths_never_raise(self):
        """Test that mismatched lengths resolve to the neutral result."""
        result = correlate([1, 2, 3], [1, 2])
        assert result.coefficient == 0.0
        assert result.p_value == 1.0

    def test_zero_variance(self):
        """Test that a constant series resolves to no correlation."""
        result = correlate([5, 5, 5, 5, 5], [1, 2, 3, 4, 5])
        assert result.coefficient == 0.0
        assert result.p_value == pytest.approx(1.0)

    def test_perfect_positive(self):
        """Test perfect correlation has p = 0 and a degenerate interval."""
        result = correlate([1, 2, 3, 4, 5], [2, 4, 6, 8, 10])
        assert result.coefficient == pytest.approx(1.0)
        assert result.p_value == pytest.approx(0.0, abs=1e-9)
        assert result.confidence_interval.upper == 1.0

    def test_perfect_negative(self):
        """Test perfect negative correlation."""
        result = correlate([1, 2, 3, 4, 5], [10, 8, 6, 4, 2])
        assert result.coefficient == pytest.approx(-1.0)
        assert result.confidence_interval.lower == -1.0

    def test_non_finite_pairs_dropped(self):
        """Test NaN and infinite values are removed pairwise before computing."""
        result = correlate([1, 2, float("nan"), 4, 5], [2, 4, 6, float("inf"), 10])
        assert result.sample_size == 3
        assert result.coefficient == pytest.approx(1.0)

    def test_large_magnitudes(self):
        """Test huge finite values keep a sensible result instead of a false perfect fit."""
        result = correlate([1e200, 2e200, 3e200, 4e200], [4, 1, 3, 2])
        assert result.coefficient == pytest.approx(-0.4)
        assert result.p_value > 0.05
        assert result.confidence_interval.lower < result.confidence_interval.upper

    def test_none_values_dropped(self):
        """Test None values count as missing."""
        result = correlate([1, None, 3, 4], [1, 2, 3, 4])
        assert result.sample_size == 3

    def test_symmetric(self):
        """Test swapping the arguments gives the same result."""
        forward = correlate(SLEEP, INTENSITY)
        backward = correlate(INTENSITY, SLEEP)
        assert forward.coefficient == pytest.approx(backward.coefficient)
        assert forward.p_value == pytest.approx(backward.p_value)

    def test_deterministic(self):
        """Test repeated calls agree exactly."""
        assert correlate(SLEEP, INTENSITY) == correlate(SLEEP, INTENSITY)

    def test_sleep_intensity_scenario(self):
        """Test the seven-sample sleep vs intensity case."""
        result = correlate(SLEEP, INTENSITY)

        mean_x = sum(SLEEP) / len(SLEEP)
        mean_y = sum(INTENSITY) / len(INTENSITY)
        covariance = sum((x - mean_x) * (y - mean_y) for x, y in zip(SLEEP, INTENSITY))

        assert result.sample_size == 7
        assert math.copysign(1, result.coefficient) == math.copysign(1, covariance)
        interval = result.confidence_interval
        assert -1.0 <= interval.lower <= result.coefficient <= interval.upper <= 1.0
        assert 0.0 <= result.p_value <= 1.0

    def test_accepts_metric_series(self):
        """Test MetricSeries inputs are accepted."""
        from datetime import datetime, timedelta

        start = datetime(2024, 1, 1)
        x = MetricSeries.from_points("x", [(start + timedelta(days=i), float(i)) for i in range(6)])
        y = MetricSeries.from_points("y", [(start + timedelta(days=i), 2.0 * i) for i in range(6)])
        assert correlate(x, y).coefficient == pytest.approx(1.0)

    @pytest.mark.parametrize("x, y", [
        ([1, 2, 3, 4, 5, 6], [6, 1, 4, 2, 5, 3]),
        ([0.5, 0.1, 0.9, 0.3, 0.7], [10, 30, 20, 50, 40]),
        ([1, 1, 2, 2, 3, 3, 4, 4], [4, 3, 3, 2, 2, 1, 1, 0]),
    ])
    def test_bounds(self, x, y):
        """Test the coefficient, p-value and interval bounds."""
        result = correlate(x, y)
        assert -1.0 <= result.coefficient <= 1.0
        assert 0.0 <= result.p_value <= 1.0
        assert result.confidence_interval.contains(result.coefficient)
        assert -1.0 <= result.confidence_interval.lower <= result.confidence_interval.upper <= 1.0


class TestClassifyStrength:
    """Tests for strength bands."""

    @pytest.mark.parametrize("r, expected", [
        (0.7, CorrelationStrength.STRONG),
        (-0.85, CorrelationStrength.STRONG),
        (0.69, CorrelationStrength.MODERATE),
        (-0.4, CorrelationStrength.MODERATE),
        (0.39, CorrelationStrength.WEAK),
        (0.0, CorrelationStrength.WEAK),
    ])
    def test_bands(self, r, expected):
        assert classify_strength(r) is expected


class TestLinearSlope:
    """Tests for the least-squares slope."""

    def test_index_slope(self):
        assert linear_slope([1, 3, 5, 7]) == pytest.approx(2.0)

    def test_explicit_x(self):
        assert linear_slope([1, 3, 5, 7], [0, 4, 8, 12]) == pytest.approx(0.5)

    def test_short_series(self):
        assert linear_slope([4.0]) == 0.0
        assert linear_slope([]) == 0.0

    def test_constant_x(self):
        assert linear_slope([1, 2, 3], [5, 5, 5]) == 0.0


class TestResultSerialization:
    """Tests for to_dict output."""

    def test_labeled_to_dict(self):
        """Test LabeledCorrelation flattens the result."""
        item = LabeledCorrelation(
            factor_a="sleep_hours",
            factor_b="intensity",
            result=CorrelationResult(
                coefficient=0.8,
                p_value=0.01,
                confidence_interval=ConfidenceInterval(0.5, 0.95),
                sample_size=12,
            ),
        )
        d = item.to_dict()
        assert d["factor_a"] == "sleep_hours"
        assert d["strength"] == "strong"
        assert d["direction"] == "positive"
        assert d["is_significant"] is True
        assert d["confidence_interval"]["level"] == 0.95
