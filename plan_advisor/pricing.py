"""Pricing rule algorithms shared by the annual and monthly cost paths."""

from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, Iterable, Sequence

from .models import (
    ChargeCategory,
    HourlySample,
    Seasonal,
    Tier,
    TimeOfUsePeriod,
    day_of_week,
)

TDU_FIXED_USD_PER_MONTH = 4.50
TDU_USD_PER_KWH = 0.035

# Only energy cost moves with the season; fixed, credit and pass-through
# charges are billed as-is.
SEASONAL_CATEGORIES: FrozenSet[ChargeCategory] = frozenset({ChargeCategory.ENERGY})


def is_seasonal(category: ChargeCategory) -> bool:
    return category in SEASONAL_CATEGORIES


def apply_seasonal(amount: float, category: ChargeCategory, modifier: float) -> float:
    if is_seasonal(category):
        return amount * modifier
    return amount


def tiered_cost(consumption_kwh: float, tiers: Sequence[Tier]) -> float:
    """Cost of one month of usage under cumulative tiers.

    Each tier covers ``(previous max, max_kwh]``. An unbounded tier takes
    whatever is left.
    """

    if consumption_kwh <= 0:
        return 0.0

    cost = 0.0
    remaining = consumption_kwh
    previous_max = 0.0
    for tier in tiers:
        if remaining <= 0:
            break
        if tier.max_kwh is None:
            cost += remaining * tier.rate_usd_per_kwh
            break
        used = min(remaining, tier.max_kwh - previous_max)
        cost += used * tier.rate_usd_per_kwh
        remaining -= used
        previous_max = tier.max_kwh
    return cost


def bill_credit(
    consumption_kwh: float,
    amount_usd: float,
    min_kwh: float,
    max_kwh: float | None = None,
) -> float:
    """Credit earned by one month of usage; both bounds are inclusive."""

    if consumption_kwh < min_kwh:
        return 0.0
    if max_kwh is not None and consumption_kwh > max_kwh:
        return 0.0
    return amount_usd


def time_of_use_rate(schedule: Sequence[TimeOfUsePeriod], timestamp: datetime) -> float:
    """Rate of the first schedule period covering ``timestamp``.

    Hours no period covers are charged nothing.
    """

    day = day_of_week(timestamp)
    for period in schedule:
        if period.matches(timestamp.hour, day):
            return period.rate_usd_per_kwh
    return 0.0


def time_of_use_cost(
    samples: Iterable[HourlySample],
    schedule: Sequence[TimeOfUsePeriod],
) -> float:
    return sum(
        sample.consumption_kwh * time_of_use_rate(schedule, sample.timestamp)
        for sample in samples
    )


def seasonal_modifier(month_number: int, rules: Iterable[Seasonal]) -> float:
    """Combined modifier for calendar month 1-12; overlapping rules compound."""

    modifier = 1.0
    for rule in rules:
        if rule.applies_to(month_number):
            modifier *= rule.rate_modifier
    return modifier


def seasonal_cost(monthly_costs: Sequence[float], rules: Sequence[Seasonal]) -> float:
    """Sum January-first monthly energy costs after seasonal adjustment."""

    return sum(
        cost * seasonal_modifier(index + 1, rules)
        for index, cost in enumerate(monthly_costs)
    )


def tdu_charges(consumption_kwh: float, months: int = 1) -> float:
    return TDU_FIXED_USD_PER_MONTH * months + TDU_USD_PER_KWH * consumption_kwh
