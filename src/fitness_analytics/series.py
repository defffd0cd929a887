"""Named numeric time series."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Sequence, Tuple, Union


@dataclass(frozen=True)
class MetricSeries:
    """Ordered ``(timestamp, value)`` points for one metric.

    Non-finite values never enter a series; ``from_points`` drops them.
    """
    name: str
    points: Tuple[Tuple[datetime, float], ...] = field(default_factory=tuple)

    @classmethod
    def from_points(cls, name: str, points: Iterable[Tuple[datetime, float]]) -> "MetricSeries":
        kept = tuple(
            (timestamp, float(value))
            for timestamp, value in points
            if value is not None and math.isfinite(value)
        )
        return cls(name=name, points=kept)

    @property
    def values(self) -> List[float]:
        return [value for _, value in self.points]

    @property
    def timestamps(self) -> List[datetime]:
        return [timestamp for timestamp, _ in self.points]

    def __len__(self) -> int:
        return len(self.points)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "points": [
                {"timestamp": timestamp.isoformat(), "value": value}
                for timestamp, value in self.points
            ],
        }


SeriesLike = Union[MetricSeries, Sequence[float]]


def as_values(series: SeriesLike) -> List[float]:
    """Plain float list from a series or a sequence; ``None`` becomes NaN."""
    if isinstance(series, MetricSeries):
        return series.values
    return [math.nan if value is None else float(value) for value in series]
