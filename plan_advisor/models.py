from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Tuple, Type, TypeVar, Union


class Complexity(str, Enum):
    """How hard a plan's pricing is to reason about."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class Objective(str, Enum):
    """What a ranking optimizes for."""

    COST = "cost"
    FLEXIBILITY = "flexibility"
    RENEWABLE = "renewable"


class DataRequirement(str, Enum):
    """Usage granularity a plan needs to be costed exactly."""

    ANNUAL = "annual"
    MONTHLY = "monthly"
    HOURLY = "hourly"


class ChargeCategory(Enum):
    """Kind of charge, used to decide which amounts seasonal modifiers scale."""

    ENERGY = "energy"
    FIXED = "fixed"
    CREDIT = "credit"
    PASSTHROUGH = "passthrough"


def day_of_week(timestamp: datetime) -> int:
    # Catalog schedules count days from Sunday = 0.
    return (timestamp.weekday() + 1) % 7


@dataclass(frozen=True)
class HourlySample:
    """Consumption for one clock hour, in local wall-clock time."""

    timestamp: datetime
    consumption_kwh: float

    @property
    def month_index(self) -> int:
        return self.timestamp.month - 1

    @property
    def day_of_week(self) -> int:
        return day_of_week(self.timestamp)


@dataclass(frozen=True)
class FlatRate:
    price_usd_per_kwh: float


@dataclass(frozen=True)
class BaseCharge:
    amount_usd_per_month: float


@dataclass(frozen=True)
class Tier:
    """Band of cumulative monthly usage; ``max_kwh`` of None is unbounded."""

    max_kwh: float | None
    rate_usd_per_kwh: float


@dataclass(frozen=True)
class Tiered:
    tiers: Tuple[Tier, ...]


@dataclass(frozen=True)
class BillCredit:
    """Credit granted when monthly usage falls within [min_kwh, max_kwh]."""

    amount_usd: float
    min_kwh: float
    max_kwh: float | None = None


@dataclass(frozen=True)
class TimeOfUsePeriod:
    hours: FrozenSet[int]
    days: FrozenSet[int]
    rate_usd_per_kwh: float

    def matches(self, hour: int, day_of_week: int) -> bool:
        return hour in self.hours and day_of_week in self.days


@dataclass(frozen=True)
class TimeOfUse:
    schedule: Tuple[TimeOfUsePeriod, ...]


@dataclass(frozen=True)
class Seasonal:
    """Multiplier on energy cost for calendar months 1-12."""

    months: FrozenSet[int]
    rate_modifier: float

    def applies_to(self, month_number: int) -> bool:
        return month_number in self.months


PricingRule = Union[FlatRate, BaseCharge, Tiered, BillCredit, TimeOfUse, Seasonal]

RuleT = TypeVar("RuleT", FlatRate, BaseCharge, Tiered, BillCredit, TimeOfUse, Seasonal)


@dataclass(frozen=True)
class EnergyPlan:
    """Retail plan from the catalog."""

    id: str
    name: str
    provider: str
    pricing: Tuple[PricingRule, ...]
    renewable_percent: float
    contract_length_months: int
    base_charge_usd_per_month: float | None = None
    description: str = ""
    complexity: Complexity | None = None

    def rules_of(self, kind: Type[RuleT]) -> Tuple[RuleT, ...]:
        return tuple(rule for rule in self.pricing if isinstance(rule, kind))

    def has_rule(self, *kinds: type) -> bool:
        return any(isinstance(rule, kinds) for rule in self.pricing)


@dataclass(frozen=True)
class CostBreakdown:
    energy_cost_usd: float
    base_charges_usd: float
    tdu_charges_usd: float
    bill_credits_usd: float = 0.0

    @property
    def total_cost_usd(self) -> float:
        return (
            self.energy_cost_usd
            + self.base_charges_usd
            + self.tdu_charges_usd
            - self.bill_credits_usd
        )


@dataclass(frozen=True)
class PlanCostResult:
    """Cost of one plan against one usage history.

    ``missing_data`` is set when the plan needed finer-grained usage than was
    supplied and the figures are an approximation.
    """

    annual_cost_usd: float
    monthly_cost_usd: float
    breakdown: CostBreakdown
    missing_data: DataRequirement | None = None

    @property
    def approximated(self) -> bool:
        return self.missing_data is not None


@dataclass(frozen=True)
class MonthlyUsage:
    month: int
    month_name: str
    total_kwh: float


@dataclass(frozen=True)
class PeakHour:
    timestamp: datetime
    consumption_kwh: float


@dataclass(frozen=True)
class UsageStatistics:
    total_annual_kwh: float
    average_daily_kwh: float
    peak_usage_hour: PeakHour
    min_monthly_kwh: float
    max_monthly_kwh: float
    monthly_breakdown: Tuple[MonthlyUsage, ...]

    @property
    def monthly_kwh(self) -> Tuple[float, ...]:
        return tuple(item.total_kwh for item in self.monthly_breakdown)


@dataclass(frozen=True)
class MonthlyCost:
    month: int
    month_name: str
    total_kwh: float
    cost_usd: float


@dataclass(frozen=True)
class PlanWithCost:
    plan: EnergyPlan
    cost: PlanCostResult
    savings_usd: float | None = None
