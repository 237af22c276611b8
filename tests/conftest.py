"""Fixtures for plan advisor tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, List

import pytest

from plan_advisor.models import (
    BaseCharge,
    BillCredit,
    EnergyPlan,
    FlatRate,
    HourlySample,
    PricingRule,
    Seasonal,
    Tier,
    Tiered,
    TimeOfUse,
    TimeOfUsePeriod,
)

# 2023 is not a leap year and starts on a Sunday.
YEAR_START = datetime(2023, 1, 1)
HOURS_PER_YEAR = 8760

FREE_NIGHT_HOURS = frozenset({22, 23, 0, 1, 2, 3, 4, 5})
ALL_DAYS = frozenset(range(7))

SampleFactory = Callable[..., List[HourlySample]]


def _make_samples(
    kwh: Callable[[datetime], float] = lambda _: 1.0,
    *,
    start: datetime = YEAR_START,
    hours: int = HOURS_PER_YEAR,
) -> List[HourlySample]:
    samples = []
    for offset in range(hours):
        timestamp = start + timedelta(hours=offset)
        samples.append(HourlySample(timestamp=timestamp, consumption_kwh=kwh(timestamp)))
    return samples


def _make_plan(
    plan_id: str,
    *rules: PricingRule,
    renewable_percent: float = 0.0,
    contract_length_months: int = 12,
    base_charge_usd_per_month: float | None = None,
    **kwargs,
) -> EnergyPlan:
    return EnergyPlan(
        id=plan_id,
        name=plan_id.replace("-", " ").title(),
        provider="Test Energy",
        pricing=tuple(rules),
        renewable_percent=renewable_percent,
        contract_length_months=contract_length_months,
        base_charge_usd_per_month=base_charge_usd_per_month,
        **kwargs,
    )


@pytest.fixture
def make_samples() -> SampleFactory:
    """Return a factory for hourly samples, a full 2023 year of 1 kWh by default."""
    return _make_samples


@pytest.fixture
def make_plan() -> Callable[..., EnergyPlan]:
    return _make_plan


@pytest.fixture
def year_samples() -> List[HourlySample]:
    return _make_samples()


@pytest.fixture
def flat_plan() -> EnergyPlan:
    return _make_plan("flat", FlatRate(price_usd_per_kwh=0.12))


@pytest.fixture
def three_tiers() -> tuple[Tier, ...]:
    return (
        Tier(max_kwh=500, rate_usd_per_kwh=0.09),
        Tier(max_kwh=1000, rate_usd_per_kwh=0.11),
        Tier(max_kwh=None, rate_usd_per_kwh=0.13),
    )


@pytest.fixture
def tiered_plan(three_tiers) -> EnergyPlan:
    return _make_plan("tiered", Tiered(tiers=three_tiers))


@pytest.fixture
def credit_plan() -> EnergyPlan:
    return _make_plan(
        "credit",
        FlatRate(price_usd_per_kwh=0.10),
        BillCredit(amount_usd=100.0, min_kwh=1000, max_kwh=2000),
    )


@pytest.fixture
def free_nights_schedule() -> tuple[TimeOfUsePeriod, ...]:
    return (
        TimeOfUsePeriod(hours=FREE_NIGHT_HOURS, days=ALL_DAYS, rate_usd_per_kwh=0.0),
        TimeOfUsePeriod(
            hours=frozenset(range(24)) - FREE_NIGHT_HOURS,
            days=ALL_DAYS,
            rate_usd_per_kwh=0.15,
        ),
    )


@pytest.fixture
def free_nights_plan(free_nights_schedule) -> EnergyPlan:
    return _make_plan(
        "free-nights",
        TimeOfUse(schedule=free_nights_schedule),
        BaseCharge(amount_usd_per_month=9.95),
    )


@pytest.fixture
def summer_plan() -> EnergyPlan:
    return _make_plan(
        "summer",
        FlatRate(price_usd_per_kwh=0.10),
        Seasonal(months=frozenset({7, 8, 9}), rate_modifier=1.5),
    )
