"""Attach free-text advice from an external provider to ranked plans.

Advice is annotation only: it never changes costs, savings or order.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .models import Objective, PlanWithCost, UsageStatistics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanAdvice:
    explanation: str
    pros: Tuple[str, ...] = ()
    cons: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AdvisedPlan:
    ranked: PlanWithCost
    advice: PlanAdvice | None = None


class AdvisoryProvider(ABC):
    """Source of recommendation text, typically backed by a language model."""

    @abstractmethod
    def advise(
        self,
        statistics: UsageStatistics,
        plans: Sequence[PlanWithCost],
        objective: Objective,
    ) -> Dict[str, PlanAdvice]:
        """Return advice keyed by plan id; plans may be left out."""


@dataclass
class StaticAdvisoryProvider(AdvisoryProvider):
    """Provider that returns fixed advice, for offline use and tests."""

    advice: Dict[str, PlanAdvice] = field(default_factory=dict)

    def advise(
        self,
        statistics: UsageStatistics,
        plans: Sequence[PlanWithCost],
        objective: Objective,
    ) -> Dict[str, PlanAdvice]:
        ids = {item.plan.id for item in plans}
        return {plan_id: text for plan_id, text in self.advice.items() if plan_id in ids}


def attach_advice(
    ranked: Sequence[PlanWithCost],
    provider: AdvisoryProvider | None,
    statistics: UsageStatistics,
    objective: Objective,
) -> List[AdvisedPlan]:
    """Pair each ranked plan with its advice, keeping the ranking as-is.

    A failing provider leaves every plan without advice.
    """

    advice: Dict[str, PlanAdvice] = {}
    if provider is not None and ranked:
        try:
            advice = provider.advise(statistics, ranked, objective)
        except Exception:
            logger.exception("Advisory provider failed; returning ranking without advice")
            advice = {}
    return [AdvisedPlan(ranked=item, advice=advice.get(item.plan.id)) for item in ranked]
