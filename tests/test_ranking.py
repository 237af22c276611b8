"""Tests for plan ranking and recommendations."""

from itertools import permutations

import pytest

from plan_advisor.costs import MissingAuxiliaryDataWarning
from plan_advisor.models import FlatRate, Objective
from plan_advisor.ranking import (
    Flexibility,
    flexibility_rating,
    flexibility_score,
    flexibility_scores,
    rank_plans,
    top_recommendations,
)
from plan_advisor.statistics import build_statistics


@pytest.fixture
def catalog(make_plan):
    return [
        make_plan("cheap-long", FlatRate(price_usd_per_kwh=0.09), contract_length_months=24, renewable_percent=0),
        make_plan("mid-year", FlatRate(price_usd_per_kwh=0.11), contract_length_months=12, renewable_percent=50),
        make_plan("green-short", FlatRate(price_usd_per_kwh=0.14), contract_length_months=6, renewable_percent=100),
        make_plan("green-year", FlatRate(price_usd_per_kwh=0.12), contract_length_months=12, renewable_percent=100),
    ]


def _ids(ranked):
    return [item.plan.id for item in ranked]


def test_cost_ranking_is_ascending_for_any_order(catalog) -> None:
    for ordering in permutations(catalog):
        ranked = rank_plans(list(ordering), 1000)
        costs = [item.cost.annual_cost_usd for item in ranked]
        assert costs == sorted(costs)
        assert _ids(ranked) == ["cheap-long", "mid-year", "green-year", "green-short"]


def test_savings_are_measured_against_most_expensive(catalog) -> None:
    ranked = rank_plans(catalog, 1000)

    assert ranked[-1].plan.id == "green-short"
    assert ranked[-1].savings_usd == 0.0
    assert ranked[0].savings_usd == pytest.approx((0.14 - 0.09) * 1000)
    assert all(item.savings_usd >= 0 for item in ranked)


def test_savings_ignore_sort_order(catalog) -> None:
    ranked = rank_plans(catalog, 1000, objective=Objective.RENEWABLE)

    most_expensive = max(item.cost.annual_cost_usd for item in ranked)
    for item in ranked:
        assert item.savings_usd == pytest.approx(most_expensive - item.cost.annual_cost_usd)


def test_renewable_ranking_breaks_ties_by_cost(catalog) -> None:
    ranked = rank_plans(catalog, 1000, objective=Objective.RENEWABLE)

    assert _ids(ranked) == ["green-year", "green-short", "mid-year", "cheap-long"]


def test_flexibility_ranking_weights_contract_length(catalog) -> None:
    ranked = rank_plans(catalog, 1000, objective=Objective.FLEXIBILITY)

    assert _ids(ranked) == ["green-short", "mid-year", "green-year", "cheap-long"]


def test_flexibility_ranking_ignores_input_order(catalog) -> None:
    expected = _ids(rank_plans(catalog, 1000, objective=Objective.FLEXIBILITY))
    for ordering in permutations(catalog):
        assert _ids(rank_plans(list(ordering), 1000, objective=Objective.FLEXIBILITY)) == expected


def test_flexibility_scores_depend_on_candidate_set(catalog) -> None:
    full = rank_plans(catalog, 1000)
    subset = rank_plans(catalog[1:], 1000)

    full_scores = flexibility_scores(full)
    subset_scores = flexibility_scores(subset)

    # cheap-long no longer anchors the low end of the cost range.
    assert subset_scores["mid-year"] == pytest.approx(0.7 * 2 + 0.3 * 1.0)
    assert full_scores["mid-year"] == pytest.approx(0.7 * 2 + 0.3 * (1 - 0.4))


def test_flexibility_scores_with_equal_costs(make_plan) -> None:
    plans = [
        make_plan("a", FlatRate(price_usd_per_kwh=0.1), contract_length_months=3),
        make_plan("b", FlatRate(price_usd_per_kwh=0.1), contract_length_months=36),
    ]

    scores = flexibility_scores(rank_plans(plans, 1000))

    assert scores == {"a": pytest.approx(0.7 * 3 + 0.3), "b": pytest.approx(0.7 * 1 + 0.3)}


@pytest.mark.parametrize(
    ("months", "rating"),
    [
        (1, Flexibility.HIGH),
        (6, Flexibility.HIGH),
        (7, Flexibility.MEDIUM),
        (12, Flexibility.MEDIUM),
        (13, Flexibility.LOW),
        (36, Flexibility.LOW),
    ],
)
def test_flexibility_rating(months: int, rating: Flexibility) -> None:
    assert flexibility_rating(months) is rating


def test_flexibility_score() -> None:
    assert [flexibility_score(rating) for rating in Flexibility] == [3, 2, 1]


def test_top_recommendations_returns_first_three(catalog) -> None:
    ranked = rank_plans(catalog, 1000, objective=Objective.RENEWABLE)
    top = top_recommendations(catalog, 1000, objective=Objective.RENEWABLE)

    assert len(top) == 3
    assert _ids(top) == _ids(ranked)[:3]


def test_top_recommendations_with_small_catalog(catalog) -> None:
    assert len(top_recommendations(catalog[:2], 1000)) == 2


def test_empty_catalog_is_rejected() -> None:
    with pytest.raises(ValueError):
        rank_plans([], 1000)


def test_statistics_supply_monthly_usage(tiered_plan, flat_plan, year_samples) -> None:
    statistics = build_statistics(year_samples)

    ranked = rank_plans([tiered_plan, flat_plan], statistics.total_annual_kwh, statistics)

    assert not any(item.cost.approximated for item in ranked)


def test_missing_statistics_flag_approximation(tiered_plan, flat_plan) -> None:
    with pytest.warns(MissingAuxiliaryDataWarning):
        ranked = rank_plans([tiered_plan, flat_plan], 8760)

    flags = {item.plan.id: item.cost.approximated for item in ranked}
    assert flags == {"tiered": True, "flat": False}


def test_hourly_samples_price_time_of_use_plans(free_nights_plan, flat_plan, year_samples) -> None:
    statistics = build_statistics(year_samples)

    ranked = rank_plans(
        [free_nights_plan, flat_plan],
        statistics.total_annual_kwh,
        statistics,
        hourly_samples=year_samples,
    )

    by_id = {item.plan.id: item for item in ranked}
    assert not by_id["free-nights"].cost.approximated
    assert by_id["free-nights"].cost.breakdown.energy_cost_usd == pytest.approx(365 * 16 * 0.15)
