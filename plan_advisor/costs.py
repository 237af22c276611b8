from __future__ import annotations

import logging
import warnings
from typing import List, Sequence

from .aggregates import MONTHS_PER_YEAR, group_by_month
from .models import (
    BaseCharge,
    BillCredit,
    ChargeCategory,
    CostBreakdown,
    DataRequirement,
    EnergyPlan,
    FlatRate,
    HourlySample,
    PlanCostResult,
    Seasonal,
    Tiered,
    TimeOfUse,
    TimeOfUsePeriod,
)
from .pricing import (
    apply_seasonal,
    bill_credit,
    seasonal_modifier,
    tdu_charges,
    tiered_cost,
    time_of_use_cost,
)

logger = logging.getLogger(__name__)


class MissingAuxiliaryDataWarning(UserWarning):
    """A plan was costed from coarser usage data than its rules need."""


class MissingAuxiliaryDataError(ValueError):
    """Raised in strict mode instead of falling back to an approximation."""

    def __init__(self, plan_id: str, requirement: DataRequirement) -> None:
        super().__init__(
            f"Plan {plan_id} needs {requirement.value} usage data to be costed exactly."
        )
        self.plan_id = plan_id
        self.requirement = requirement


def costing_requirement(plan: EnergyPlan) -> DataRequirement:
    """Finest usage granularity the plan's rules depend on."""

    if plan.has_rule(TimeOfUse):
        return DataRequirement.HOURLY
    if plan.has_rule(Tiered, BillCredit, Seasonal):
        return DataRequirement.MONTHLY
    return DataRequirement.ANNUAL


def calculate_cost(
    plan: EnergyPlan,
    total_kwh: float,
    monthly_kwh: Sequence[float] | None = None,
    hourly_samples: Sequence[HourlySample] | None = None,
    *,
    strict: bool = False,
) -> PlanCostResult:
    """Annual cost of ``plan`` for the given usage.

    Time-of-use plans are priced hour by hour when samples are supplied.
    Tiered, bill credit and seasonal plans are priced month by month. When
    that data is missing the result is approximated and flagged through
    ``missing_data``, or ``MissingAuxiliaryDataError`` is raised if ``strict``.
    The approximation prices flat rates against ``total_kwh`` only: tiers and
    bill credits are left out, and seasonal modifiers see an even monthly split.
    """

    if monthly_kwh is not None and len(monthly_kwh) != MONTHS_PER_YEAR:
        raise ValueError(
            f"monthly_kwh must hold {MONTHS_PER_YEAR} values, got {len(monthly_kwh)}."
        )

    requirement = costing_requirement(plan)
    missing = _missing_data(requirement, monthly_kwh, hourly_samples)
    if missing is not None:
        if strict:
            raise MissingAuxiliaryDataError(plan.id, missing)
        _report_missing(plan, missing)

    bill_credits = 0.0
    if requirement is DataRequirement.HOURLY and hourly_samples:
        energy_cost = _time_of_use_energy(plan, hourly_samples)
    elif requirement is DataRequirement.ANNUAL or monthly_kwh is None:
        energy_cost = flat_rate_energy(plan, total_kwh)
    else:
        energy_cost = 0.0
        for index, consumption in enumerate(monthly_kwh):
            charges = month_charges(plan, index + 1, consumption)
            energy_cost += charges.energy_cost_usd
            bill_credits += charges.bill_credits_usd

    base_charges = monthly_base_charges(plan) * MONTHS_PER_YEAR
    tdu = tdu_charges(total_kwh, months=MONTHS_PER_YEAR)
    annual_cost = energy_cost + base_charges + tdu - bill_credits

    return PlanCostResult(
        annual_cost_usd=annual_cost,
        monthly_cost_usd=annual_cost / MONTHS_PER_YEAR,
        breakdown=CostBreakdown(
            energy_cost_usd=energy_cost,
            base_charges_usd=base_charges,
            tdu_charges_usd=tdu,
            bill_credits_usd=bill_credits,
        ),
        missing_data=missing,
    )


def month_charges(plan: EnergyPlan, month_number: int, consumption_kwh: float) -> CostBreakdown:
    """Charges for one calendar month (1-12) on the month-by-month path.

    Time-of-use rules contribute nothing here; they need hourly samples.
    """

    energy = 0.0
    fixed = 0.0
    credits = 0.0
    for rule in plan.pricing:
        match rule:
            case FlatRate(price_usd_per_kwh=price):
                energy += price * consumption_kwh
            case Tiered(tiers=tiers):
                energy += tiered_cost(consumption_kwh, tiers)
            case BillCredit(amount_usd=amount, min_kwh=min_kwh, max_kwh=max_kwh):
                credits += bill_credit(consumption_kwh, amount, min_kwh, max_kwh)
            case BaseCharge(amount_usd_per_month=amount):
                fixed += amount
            case TimeOfUse() | Seasonal():
                pass
            case _:
                raise TypeError(f"Unsupported pricing rule: {rule!r}")

    if plan.base_charge_usd_per_month:
        fixed += plan.base_charge_usd_per_month

    modifier = seasonal_modifier(month_number, plan.rules_of(Seasonal))
    return CostBreakdown(
        energy_cost_usd=apply_seasonal(energy, ChargeCategory.ENERGY, modifier),
        base_charges_usd=apply_seasonal(fixed, ChargeCategory.FIXED, modifier),
        tdu_charges_usd=apply_seasonal(
            tdu_charges(consumption_kwh), ChargeCategory.PASSTHROUGH, modifier
        ),
        bill_credits_usd=apply_seasonal(credits, ChargeCategory.CREDIT, modifier),
    )


def flat_rate_energy(plan: EnergyPlan, total_kwh: float) -> float:
    """Flat-rate energy cost of an annual total.

    Seasonal modifiers are applied to an even twelve-month split of the total.
    """

    price = sum(rule.price_usd_per_kwh for rule in plan.rules_of(FlatRate))
    seasonal_rules = plan.rules_of(Seasonal)
    if not seasonal_rules:
        return price * total_kwh
    return sum(
        apply_seasonal(
            price * consumption,
            ChargeCategory.ENERGY,
            seasonal_modifier(month_index + 1, seasonal_rules),
        )
        for month_index, consumption in enumerate(_even_split(total_kwh))
    )


def monthly_base_charges(plan: EnergyPlan) -> float:
    total = sum(rule.amount_usd_per_month for rule in plan.rules_of(BaseCharge))
    if plan.base_charge_usd_per_month:
        total += plan.base_charge_usd_per_month
    return total


def time_of_use_schedule(plan: EnergyPlan) -> List[TimeOfUsePeriod]:
    """Schedule periods of every time-of-use rule, in catalog order."""

    schedule: List[TimeOfUsePeriod] = []
    for rule in plan.rules_of(TimeOfUse):
        schedule.extend(rule.schedule)
    return schedule


def time_of_use_month_energy(
    plan: EnergyPlan,
    month_number: int,
    samples: Sequence[HourlySample],
) -> float:
    """Seasonally adjusted time-of-use energy cost of one month's samples."""

    subtotal = time_of_use_cost(samples, time_of_use_schedule(plan))
    modifier = seasonal_modifier(month_number, plan.rules_of(Seasonal))
    return apply_seasonal(subtotal, ChargeCategory.ENERGY, modifier)


def _time_of_use_energy(plan: EnergyPlan, samples: Sequence[HourlySample]) -> float:
    return sum(
        time_of_use_month_energy(plan, month_index + 1, month_samples)
        for month_index, month_samples in group_by_month(samples).items()
    )


def _even_split(total_kwh: float) -> List[float]:
    return [total_kwh / MONTHS_PER_YEAR] * MONTHS_PER_YEAR


def _missing_data(
    requirement: DataRequirement,
    monthly_kwh: Sequence[float] | None,
    hourly_samples: Sequence[HourlySample] | None,
) -> DataRequirement | None:
    if requirement is DataRequirement.HOURLY and not hourly_samples:
        return DataRequirement.HOURLY
    if requirement is DataRequirement.MONTHLY and monthly_kwh is None:
        return DataRequirement.MONTHLY
    return None


def _report_missing(plan: EnergyPlan, missing: DataRequirement) -> None:
    message = (
        f"Plan {plan.id} needs {missing.value} usage data; "
        "cost is approximated from coarser data."
    )
    logger.warning(message)
    warnings.warn(message, MissingAuxiliaryDataWarning, stacklevel=3)
