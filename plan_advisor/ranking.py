from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from .costs import calculate_cost
from .models import EnergyPlan, HourlySample, Objective, PlanWithCost, UsageStatistics

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_COUNT = 3
FLEXIBILITY_WEIGHT = 0.7
COST_WEIGHT = 0.3


class Flexibility(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_FLEXIBILITY_SCORES: Dict[Flexibility, int] = {
    Flexibility.HIGH: 3,
    Flexibility.MEDIUM: 2,
    Flexibility.LOW: 1,
}


def flexibility_rating(contract_length_months: int) -> Flexibility:
    if contract_length_months <= 6:
        return Flexibility.HIGH
    if contract_length_months <= 12:
        return Flexibility.MEDIUM
    return Flexibility.LOW


def flexibility_score(rating: Flexibility) -> int:
    return _FLEXIBILITY_SCORES[rating]


def rank_plans(
    plans: Sequence[EnergyPlan],
    total_kwh: float,
    statistics: UsageStatistics | None = None,
    objective: Objective = Objective.COST,
    hourly_samples: Sequence[HourlySample] | None = None,
) -> List[PlanWithCost]:
    """Cost every plan and order them for ``objective``.

    Savings are measured against the most expensive plan in ``plans``, so the
    same plan can show different savings in different candidate sets.
    """

    if not plans:
        raise ValueError("At least one plan is required for ranking.")

    monthly_kwh = statistics.monthly_kwh if statistics is not None else None
    costed = [
        PlanWithCost(
            plan=plan,
            cost=calculate_cost(plan, total_kwh, monthly_kwh, hourly_samples),
        )
        for plan in plans
    ]

    ranked = sorted(costed, key=_sort_key(objective, costed))
    most_expensive = max(item.cost.annual_cost_usd for item in costed)
    logger.debug(
        "Ranked %d plans by %s; most expensive costs %.2f",
        len(ranked),
        objective.value,
        most_expensive,
    )
    return [
        replace(item, savings_usd=most_expensive - item.cost.annual_cost_usd)
        for item in ranked
    ]


def top_recommendations(
    plans: Sequence[EnergyPlan],
    total_kwh: float,
    statistics: UsageStatistics | None = None,
    objective: Objective = Objective.COST,
    hourly_samples: Sequence[HourlySample] | None = None,
    *,
    count: int = DEFAULT_RECOMMENDATION_COUNT,
) -> List[PlanWithCost]:
    ranked = rank_plans(plans, total_kwh, statistics, objective, hourly_samples)
    return ranked[:count]


def flexibility_scores(costed: Sequence[PlanWithCost]) -> Dict[str, float]:
    """Weighted flexibility score per plan id, relative to this candidate set."""

    costs = [item.cost.annual_cost_usd for item in costed]
    lowest = min(costs)
    spread = max(costs) - lowest
    scores: Dict[str, float] = {}
    for item in costed:
        normalized = (item.cost.annual_cost_usd - lowest) / spread if spread else 0.0
        rating = flexibility_rating(item.plan.contract_length_months)
        scores[item.plan.id] = (
            FLEXIBILITY_WEIGHT * flexibility_score(rating) + COST_WEIGHT * (1 - normalized)
        )
    return scores


def _sort_key(
    objective: Objective,
    costed: Sequence[PlanWithCost],
) -> Callable[[PlanWithCost], Tuple[object, ...]]:
    if objective is Objective.COST:
        return lambda item: (item.cost.annual_cost_usd, item.plan.id)
    if objective is Objective.RENEWABLE:
        return lambda item: (
            -item.plan.renewable_percent,
            item.cost.annual_cost_usd,
            item.plan.id,
        )
    if objective is Objective.FLEXIBILITY:
        scores = flexibility_scores(costed)
        return lambda item: (-scores[item.plan.id], item.cost.annual_cost_usd, item.plan.id)
    raise ValueError(f"Unsupported ranking objective: {objective!r}")
