from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from .models import HourlySample

MONTHS_PER_YEAR = 12

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def aggregate_consumption(
    samples: Iterable[HourlySample],
    period: str = "month",
) -> Dict[int, float]:
    """Aggregate consumption by month (0-11), weekday (0 = Sunday), or hour of day."""

    totals: Dict[int, float] = defaultdict(float)
    for sample in samples:
        key = _period_key(sample, period)
        totals[key] += sample.consumption_kwh
    return dict(totals)


def monthly_totals(samples: Iterable[HourlySample]) -> List[float]:
    """Consumption per calendar month, January first; empty months are 0."""

    totals = aggregate_consumption(samples, period="month")
    return [totals.get(month, 0.0) for month in range(MONTHS_PER_YEAR)]


def group_by_month(samples: Iterable[HourlySample]) -> Dict[int, List[HourlySample]]:
    grouped: Dict[int, List[HourlySample]] = defaultdict(list)
    for sample in samples:
        grouped[sample.month_index].append(sample)
    return dict(grouped)


def _period_key(sample: HourlySample, period: str) -> int:
    if period == "month":
        return sample.month_index
    if period == "weekday":
        return sample.day_of_week
    if period == "hour":
        return sample.timestamp.hour
    raise ValueError("period must be 'month', 'weekday', or 'hour'")
