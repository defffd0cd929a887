"""
Pearson correlation with significance and confidence interval.

Degenerate input never raises: mismatched lengths, fewer than two usable
pairs and zero variance all resolve to a coefficient of 0.0, a p-value of
1.0 and the widest interval.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

from scipy.stats import t as t_dist

from fitness_analytics.series import SeriesLike, as_values


# Two-sided 95% normal quantile
Z_95 = 1.96
CONFIDENCE_LEVEL = 0.95

# Strength bands on |r|
STRONG_THRESHOLD = 0.7
MODERATE_THRESHOLD = 0.4

DEFAULT_SIGNIFICANCE_LEVEL = 0.05


class CorrelationStrength(str, Enum):
    """Qualitative band for |r|."""
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class CorrelationDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


def _clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


@dataclass(frozen=True)
class ConfidenceInterval:
    """Interval around a coefficient, bounds within [-1, 1]."""
    lower: float = -1.0
    upper: float = 1.0
    level: float = CONFIDENCE_LEVEL

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def to_dict(self) -> dict:
        return {
            "lower": round(self.lower, 4),
            "upper": round(self.upper, 4),
            "level": self.level,
        }


@dataclass(frozen=True)
class CorrelationResult:
    """Outcome of correlating two aligned series."""
    coefficient: float = 0.0
    p_value: float = 1.0
    confidence_interval: ConfidenceInterval = field(default_factory=ConfidenceInterval)
    sample_size: int = 0

    @property
    def strength(self) -> CorrelationStrength:
        return classify_strength(self.coefficient)

    @property
    def direction(self) -> CorrelationDirection:
        if self.coefficient > 0:
            return CorrelationDirection.POSITIVE
        if self.coefficient < 0:
            return CorrelationDirection.NEGATIVE
        return CorrelationDirection.NONE

    def is_significant(self, alpha: float = DEFAULT_SIGNIFICANCE_LEVEL) -> bool:
        return self.p_value < alpha

    def to_dict(self) -> dict:
        return {
            "coefficient": round(self.coefficient, 4),
            "p_value": round(self.p_value, 6),
            "confidence_interval": self.confidence_interval.to_dict(),
            "sample_size": self.sample_size,
            "strength": self.strength.value,
            "direction": self.direction.value,
            "is_significant": self.is_significant(),
        }


@dataclass(frozen=True)
class LabeledCorrelation:
    """A correlation tagged with the two metrics it relates."""
    factor_a: str
    factor_b: str
    result: CorrelationResult

    def to_dict(self) -> dict:
        return {
            "factor_a": self.factor_a,
            "factor_b": self.factor_b,
            **self.result.to_dict(),
        }


def _finite_pairs(x: Sequence[float], y: Sequence[float]) -> Tuple[list, list]:
    kept_x = []
    kept_y = []
    for a, b in zip(x, y):
        if math.isfinite(a) and math.isfinite(b):
            kept_x.append(a)
            kept_y.append(b)
    return kept_x, kept_y


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson product-moment coefficient of two equal-length sequences.

    Returns 0.0 for mismatched or short input and when either side has no
    variance. Each side is scaled by its largest magnitude and centred on
    its mean first, so very large values cannot overflow. The result is
    clamped to [-1, 1] against rounding.
    """
    n = len(x)
    if n != len(y) or n < 2:
        return 0.0

    scale_x = max(abs(a) for a in x)
    scale_y = max(abs(b) for b in y)
    if scale_x == 0 or scale_y == 0:
        return 0.0
    xs = [a / scale_x for a in x]
    ys = [b / scale_y for b in y]

    mean_x = math.fsum(xs) / n
    mean_y = math.fsum(ys) / n
    dx = [a - mean_x for a in xs]
    dy = [b - mean_y for b in ys]

    numerator = math.fsum(a * b for a, b in zip(dx, dy))
    variance_x = math.fsum(a * a for a in dx)
    variance_y = math.fsum(b * b for b in dy)
    if variance_x <= 0 or variance_y <= 0:
        return 0.0

    r = numerator / math.sqrt(variance_x * variance_y)
    if not math.isfinite(r):
        return 0.0
    return _clamp_unit(r)


def significance(r: float, n: int) -> float:
    """Two-tailed p-value of ``r`` under Student's t with ``n - 2`` df."""
    if n <= 2:
        return 1.0
    if abs(r) >= 1.0:
        return 0.0
    t_stat = r * math.sqrt(n - 2) / math.sqrt(1.0 - r * r)
    p_value = 2.0 * t_dist.sf(abs(t_stat), n - 2)
    return max(0.0, min(1.0, float(p_value)))


def confidence_interval(r: float, n: int) -> ConfidenceInterval:
    """95% interval ``r ± 1.96·sqrt((1 - r²)/(n - 3))``; full range below n = 4."""
    if n < 4:
        return ConfidenceInterval()
    margin = Z_95 * math.sqrt(max(0.0, 1.0 - r * r) / (n - 3))
    return ConfidenceInterval(
        lower=_clamp_unit(r - margin),
        upper=_clamp_unit(r + margin),
    )


def correlate(x: SeriesLike, y: SeriesLike) -> CorrelationResult:
    """
    Correlate two aligned series.

    Args:
        x: First series (``MetricSeries`` or plain numbers)
        y: Second series, same length and order as ``x``

    Returns:
        CorrelationResult with coefficient, p-value, interval and the
        number of finite pairs used
    """
    x_values = as_values(x)
    y_values = as_values(y)
    if len(x_values) != len(y_values) or len(x_values) < 2:
        return CorrelationResult()

    x_values, y_values = _finite_pairs(x_values, y_values)
    n = len(x_values)
    if n < 2:
        return CorrelationResult(sample_size=n)

    r = pearson(x_values, y_values)
    return CorrelationResult(
        coefficient=r,
        p_value=significance(r, n),
        confidence_interval=confidence_interval(r, n),
        sample_size=n,
    )


def classify_strength(r: float) -> CorrelationStrength:
    magnitude = abs(r)
    if magnitude >= STRONG_THRESHOLD:
        return CorrelationStrength.STRONG
    if magnitude >= MODERATE_THRESHOLD:
        return CorrelationStrength.MODERATE
    return CorrelationStrength.WEAK


def linear_slope(y: SeriesLike, x: Optional[Sequence[float]] = None) -> float:
    """Least-squares slope of ``y`` against ``x`` (sample index by default)."""
    y_values = as_values(y)
    if x is None:
        x_values = [float(i) for i in range(len(y_values))]
    else:
        x_values = [float(v) for v in x]
    if len(x_values) != len(y_values):
        return 0.0

    x_values, y_values = _finite_pairs(x_values, y_values)
    n = len(x_values)
    if n < 2:
        return 0.0

    sum_x = math.fsum(x_values)
    sum_y = math.fsum(y_values)
    sum_xy = math.fsum(a * b for a, b in zip(x_values, y_values))
    sum_x2 = math.fsum(a * a for a in x_values)

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator
