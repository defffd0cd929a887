"""
Analytics periods and record filtering.

Windows are calendar aligned to the moment of evaluation: the current ISO
week (Monday start), month, quarter or year. Both ends are inclusive.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, List, Optional, TypeVar, Union


T = TypeVar("T")

# Baseline workout cadence per period, used for consistency scoring
EXPECTED_SAMPLE_COUNTS = {
    "week": 3,
    "month": 12,
    "quarter": 36,
    "year": 144,
}


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive ``[start, end]`` window for one period."""
    start: datetime
    end: datetime

    def contains(self, moment: Union[date, datetime]) -> bool:
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, datetime.min.time())
        if moment.tzinfo is not None:
            moment = moment.replace(tzinfo=None)
        return self.start <= moment <= self.end

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


class AnalyticsPeriod(str, Enum):
    """Supported analytics windows."""
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def expected_sample_count(self) -> int:
        return EXPECTED_SAMPLE_COUNTS[self.value]

    def window(self, now: Optional[datetime] = None) -> PeriodWindow:
        """Return the calendar window containing ``now``."""
        now = to_naive(now or datetime.now())
        today = now.date()

        if self is AnalyticsPeriod.WEEK:
            start = today - timedelta(days=today.weekday())
            next_start = start + timedelta(days=7)
        elif self is AnalyticsPeriod.MONTH:
            start = today.replace(day=1)
            next_start = _add_months(start, 1)
        elif self is AnalyticsPeriod.QUARTER:
            first_month = ((today.month - 1) // 3) * 3 + 1
            start = today.replace(month=first_month, day=1)
            next_start = _add_months(start, 3)
        else:
            start = today.replace(month=1, day=1)
            next_start = start.replace(year=start.year + 1)

        return PeriodWindow(
            start=datetime.combine(start, datetime.min.time()),
            end=datetime.combine(next_start, datetime.min.time()) - timedelta(microseconds=1),
        )


def to_naive(moment: datetime) -> datetime:
    """Drop tzinfo, keeping the wall-clock time, so aware and naive values compare."""
    return moment.replace(tzinfo=None) if moment.tzinfo is not None else moment


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    return start.replace(year=start.year + month_index // 12, month=month_index % 12 + 1, day=1)


def expected_sample_count(period: AnalyticsPeriod) -> int:
    """Expected number of workouts in a period."""
    return period.expected_sample_count


def filter_by_period(
    records: Iterable[T],
    period: AnalyticsPeriod,
    now: Optional[datetime] = None,
    date_of: Callable[[T], Union[date, datetime]] = lambda record: record.date,
) -> List[T]:
    """Keep the records whose date falls inside the period window.

    Args:
        records: Any records; dates are read with ``date_of``
        period: Window to apply
        now: Evaluation time (defaults to the current time)
        date_of: Accessor for a record's date

    Returns:
        The matching records in their original order
    """
    window = period.window(now)
    return [record for record in records if window.contains(date_of(record))]


def consistency_ratio(actual_count: int, period: AnalyticsPeriod) -> float:
    """Actual vs expected workout count, clamped to [0, 1]."""
    expected = period.expected_sample_count
    if expected <= 0:
        return 0.0
    return max(0.0, min(1.0, actual_count / expected))
