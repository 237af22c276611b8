"""Tests for attaching advisory text to ranked plans."""

import logging

from plan_advisor.advisory import (
    AdvisoryProvider,
    PlanAdvice,
    StaticAdvisoryProvider,
    attach_advice,
)
from plan_advisor.models import FlatRate, Objective
from plan_advisor.ranking import rank_plans
from plan_advisor.statistics import build_statistics


class FailingProvider(AdvisoryProvider):
    def advise(self, statistics, plans, objective):
        raise RuntimeError("model unavailable")


def _ranked(make_plan):
    plans = [
        make_plan("pricey", FlatRate(price_usd_per_kwh=0.2)),
        make_plan("cheap", FlatRate(price_usd_per_kwh=0.1)),
    ]
    return rank_plans(plans, 1000)


def test_advice_is_attached_without_changing_ranking(make_plan, make_samples) -> None:
    ranked = _ranked(make_plan)
    statistics = build_statistics(make_samples(hours=24))
    provider = StaticAdvisoryProvider(
        advice={
            "cheap": PlanAdvice(explanation="Lowest cost.", pros=("cheap",), tags=("value",)),
            "unknown": PlanAdvice(explanation="Not in this ranking."),
        }
    )

    advised = attach_advice(ranked, provider, statistics, Objective.COST)

    assert [item.ranked for item in advised] == ranked
    assert advised[0].advice.explanation == "Lowest cost."
    assert advised[1].advice is None


def test_failing_provider_leaves_plans_without_advice(make_plan, make_samples, caplog) -> None:
    ranked = _ranked(make_plan)
    statistics = build_statistics(make_samples(hours=24))

    with caplog.at_level(logging.ERROR, logger="plan_advisor.advisory"):
        advised = attach_advice(ranked, FailingProvider(), statistics, Objective.COST)

    assert [item.advice for item in advised] == [None, None]
    assert [item.ranked for item in advised] == ranked
    assert "Advisory provider failed" in caplog.text


def test_no_provider(make_plan, make_samples) -> None:
    ranked = _ranked(make_plan)
    statistics = build_statistics(make_samples(hours=24))

    advised = attach_advice(ranked, None, statistics, Objective.FLEXIBILITY)

    assert all(item.advice is None for item in advised)
