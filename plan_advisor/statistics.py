from __future__ import annotations

from typing import Dict, Sequence

from .aggregates import MONTH_NAMES, MONTHS_PER_YEAR
from .models import HourlySample, MonthlyUsage, PeakHour, UsageStatistics

DAYS_PER_YEAR = 365


class EmptyInputError(ValueError):
    """Raised when statistics are requested for an empty usage history."""


def build_statistics(samples: Sequence[HourlySample]) -> UsageStatistics:
    """Summarize one year of hourly usage.

    Peak hour ties keep the first sample seen. The daily average always divides
    by 365, whatever the number of samples.
    """

    if not samples:
        raise EmptyInputError("Cannot calculate statistics from empty usage data.")

    total = 0.0
    peak = samples[0]
    by_month: Dict[int, float] = {month: 0.0 for month in range(MONTHS_PER_YEAR)}
    for sample in samples:
        total += sample.consumption_kwh
        if sample.consumption_kwh > peak.consumption_kwh:
            peak = sample
        by_month[sample.month_index] += sample.consumption_kwh

    monthly = tuple(
        MonthlyUsage(month=month, month_name=MONTH_NAMES[month], total_kwh=by_month[month])
        for month in range(MONTHS_PER_YEAR)
    )
    monthly_values = [item.total_kwh for item in monthly]

    return UsageStatistics(
        total_annual_kwh=total,
        average_daily_kwh=total / DAYS_PER_YEAR,
        peak_usage_hour=PeakHour(
            timestamp=peak.timestamp,
            consumption_kwh=peak.consumption_kwh,
        ),
        min_monthly_kwh=min(monthly_values),
        max_monthly_kwh=max(monthly_values),
        monthly_breakdown=monthly,
    )
