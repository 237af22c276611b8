"""Energy plan advisor modules for usage statistics, plan costing, ranking, and catalog loading."""

from .advisory import AdvisedPlan, AdvisoryProvider, PlanAdvice, attach_advice
from .aggregates import aggregate_consumption, monthly_totals
from .breakdown import monthly_breakdown
from .catalog import PlanCatalogError, read_plans_from_json, read_plans_from_rows
from .classification import classify, complexity_label
from .costs import (
    MissingAuxiliaryDataError,
    MissingAuxiliaryDataWarning,
    calculate_cost,
    costing_requirement,
)
from .models import (
    BaseCharge,
    BillCredit,
    Complexity,
    DataRequirement,
    EnergyPlan,
    FlatRate,
    HourlySample,
    MonthlyCost,
    Objective,
    PlanCostResult,
    PlanWithCost,
    Seasonal,
    Tier,
    Tiered,
    TimeOfUse,
    TimeOfUsePeriod,
    UsageStatistics,
)
from .pricing import bill_credit, tiered_cost
from .ranking import rank_plans, top_recommendations
from .statistics import EmptyInputError, build_statistics

__all__ = [
    "aggregate_consumption",
    "AdvisedPlan",
    "AdvisoryProvider",
    "attach_advice",
    "BaseCharge",
    "bill_credit",
    "BillCredit",
    "build_statistics",
    "calculate_cost",
    "classify",
    "Complexity",
    "complexity_label",
    "costing_requirement",
    "DataRequirement",
    "EmptyInputError",
    "EnergyPlan",
    "FlatRate",
    "HourlySample",
    "MissingAuxiliaryDataError",
    "MissingAuxiliaryDataWarning",
    "monthly_breakdown",
    "monthly_totals",
    "MonthlyCost",
    "Objective",
    "PlanAdvice",
    "PlanCatalogError",
    "PlanCostResult",
    "PlanWithCost",
    "rank_plans",
    "read_plans_from_json",
    "read_plans_from_rows",
    "Seasonal",
    "Tier",
    "Tiered",
    "tiered_cost",
    "TimeOfUse",
    "TimeOfUsePeriod",
    "top_recommendations",
    "UsageStatistics",
]
