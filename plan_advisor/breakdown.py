from __future__ import annotations

import logging
from typing import List, Sequence

from .aggregates import MONTH_NAMES, MONTHS_PER_YEAR, group_by_month
from .costs import (
    costing_requirement,
    month_charges,
    monthly_base_charges,
    time_of_use_month_energy,
)
from .models import DataRequirement, EnergyPlan, HourlySample, MonthlyCost, UsageStatistics
from .pricing import tdu_charges

logger = logging.getLogger(__name__)

TOTALS_TOLERANCE_KWH = 1e-6


def monthly_breakdown(
    plan: EnergyPlan,
    hourly_samples: Sequence[HourlySample],
    statistics: UsageStatistics | None = None,
) -> List[MonthlyCost]:
    """Cost and consumption of ``plan`` for each calendar month, January first.

    Every month carries one month of base and TDU charges, including months
    without usage. An empty history yields twelve zero-cost months.
    """

    if not hourly_samples:
        return [
            MonthlyCost(month=month, month_name=MONTH_NAMES[month], total_kwh=0.0, cost_usd=0.0)
            for month in range(MONTHS_PER_YEAR)
        ]

    grouped = group_by_month(hourly_samples)
    totals = [
        sum(sample.consumption_kwh for sample in grouped.get(month, ()))
        for month in range(MONTHS_PER_YEAR)
    ]
    if statistics is not None:
        _check_totals(plan, totals, statistics)

    hourly = costing_requirement(plan) is DataRequirement.HOURLY
    breakdown: List[MonthlyCost] = []
    for month, consumption in enumerate(totals):
        if hourly:
            cost = (
                time_of_use_month_energy(plan, month + 1, grouped.get(month, ()))
                + monthly_base_charges(plan)
                + tdu_charges(consumption)
            )
        else:
            cost = month_charges(plan, month + 1, consumption).total_cost_usd
        breakdown.append(
            MonthlyCost(
                month=month,
                month_name=MONTH_NAMES[month],
                total_kwh=consumption,
                cost_usd=cost,
            )
        )
    return breakdown


def _check_totals(
    plan: EnergyPlan,
    totals: Sequence[float],
    statistics: UsageStatistics,
) -> None:
    for month, (bucketed, reported) in enumerate(zip(totals, statistics.monthly_kwh)):
        if abs(bucketed - reported) > TOTALS_TOLERANCE_KWH:
            logger.warning(
                "Monthly usage for %s differs from statistics while costing %s: %.3f != %.3f kWh",
                MONTH_NAMES[month],
                plan.id,
                bucketed,
                reported,
            )
