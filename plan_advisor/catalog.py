from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping

from .models import (
    BaseCharge,
    BillCredit,
    Complexity,
    EnergyPlan,
    FlatRate,
    PricingRule,
    Seasonal,
    Tier,
    Tiered,
    TimeOfUse,
    TimeOfUsePeriod,
)

logger = logging.getLogger(__name__)

Fail = Callable[[str, str], None]


@dataclass(frozen=True)
class CatalogIssue:
    code: str
    message: str
    plan_id: str | None = None


class PlanCatalogError(Exception):
    def __init__(self, issues: list[CatalogIssue]) -> None:
        super().__init__(f"Plan catalog validation failed with {len(issues)} issue(s)")
        self.issues = issues

    def user_messages(self) -> list[dict[str, str]]:
        return [
            {
                "code": issue.code,
                "message": issue.message,
                "plan_id": issue.plan_id or "",
            }
            for issue in self.issues
        ]


def read_plans_from_json(path: str | Path) -> List[EnergyPlan]:
    """Read and validate a plan catalog stored as a JSON array."""

    with Path(path).open(encoding="utf-8") as handle:
        try:
            rows = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PlanCatalogError(
                [
                    CatalogIssue(
                        code="invalid_json",
                        message=f"Catalog is not valid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}.",
                    )
                ]
            ) from exc

    if not isinstance(rows, list):
        raise PlanCatalogError(
            [CatalogIssue(code="invalid_catalog", message="Catalog must be a JSON array of plans.")]
        )
    plans = read_plans_from_rows(rows)
    logger.info("Loaded %d plans from %s", len(plans), path)
    return plans


def read_plans_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[EnergyPlan]:
    """Validate catalog records and convert them to plans.

    Every problem in the catalog is collected before failing.
    """

    issues: list[CatalogIssue] = []
    plans: List[EnergyPlan] = []
    seen_ids: set[str] = set()
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            issues.append(CatalogIssue(code="invalid_plan", message=f"Plan {index}: must be an object."))
            continue
        plan_id = row.get("id")
        if not isinstance(plan_id, str) or not plan_id:
            issues.append(CatalogIssue(code="missing_id", message=f"Plan {index}: missing or invalid id."))
            continue
        if plan_id in seen_ids:
            issues.append(
                CatalogIssue(code="duplicate_id", message=f"Duplicate plan id: {plan_id}.", plan_id=plan_id)
            )
            continue
        seen_ids.add(plan_id)

        plan_issues: list[CatalogIssue] = []
        plan = _parse_plan(plan_id, row, plan_issues)
        if plan_issues:
            issues.extend(plan_issues)
        elif plan is not None:
            plans.append(plan)

    if issues:
        raise PlanCatalogError(issues)
    return plans


def _parse_plan(
    plan_id: str,
    row: Mapping[str, Any],
    issues: list[CatalogIssue],
) -> EnergyPlan | None:
    def fail(code: str, message: str) -> None:
        issues.append(CatalogIssue(code=code, message=f"Plan {plan_id}: {message}", plan_id=plan_id))

    for key in ("name", "provider"):
        if not isinstance(row.get(key), str) or not row.get(key):
            fail(f"missing_{key}", f"missing or invalid {key}.")

    renewable = row.get("renewablePercent")
    if not _is_number(renewable) or not 0 <= renewable <= 100:
        fail("invalid_renewable_percent", "renewablePercent must be between 0 and 100.")

    contract_length = row.get("contractLength")
    if not _is_int(contract_length) or contract_length <= 0:
        fail("invalid_contract_length", "contractLength must be a whole number of months greater than 0.")

    base_charge = row.get("baseCharge")
    if base_charge is not None and (not _is_number(base_charge) or base_charge < 0):
        fail("invalid_base_charge", "baseCharge must be a non-negative number.")

    complexity = row.get("complexity")
    if complexity is not None and complexity not in {item.value for item in Complexity}:
        fail("invalid_complexity", f"unknown complexity {complexity!r}.")

    raw_pricing = row.get("pricing")
    if not isinstance(raw_pricing, list) or not raw_pricing:
        fail("missing_pricing", "missing or empty pricing array.")
        raw_pricing = []

    pricing: list[PricingRule] = []
    for rule_index, raw_rule in enumerate(raw_pricing):
        rule = _parse_rule(raw_rule, lambda code, message: fail(code, f"rule {rule_index}: {message}"))
        if rule is not None:
            pricing.append(rule)

    if issues:
        return None
    return EnergyPlan(
        id=plan_id,
        name=row["name"],
        provider=row["provider"],
        pricing=tuple(pricing),
        renewable_percent=float(renewable),
        contract_length_months=int(contract_length),
        base_charge_usd_per_month=float(base_charge) if base_charge is not None else None,
        description=str(row.get("description") or ""),
        complexity=Complexity(complexity) if complexity is not None else None,
    )


def _parse_rule(raw: Any, fail: Fail) -> PricingRule | None:
    if not isinstance(raw, Mapping):
        fail("invalid_rule", "rule must be an object.")
        return None

    rule_type = raw.get("type")
    if rule_type == "FLAT_RATE":
        price = raw.get("pricePerKWh")
        if not _is_number(price) or price < 0:
            fail("invalid_rate", "FLAT_RATE pricePerKWh must be a non-negative number.")
            return None
        return FlatRate(price_usd_per_kwh=float(price))

    if rule_type == "BASE_CHARGE":
        amount = raw.get("amountPerMonth")
        if not _is_number(amount) or amount < 0:
            fail("invalid_amount", "BASE_CHARGE amountPerMonth must be a non-negative number.")
            return None
        return BaseCharge(amount_usd_per_month=float(amount))

    if rule_type == "TIERED":
        return _parse_tiered(raw, fail)

    if rule_type == "BILL_CREDIT":
        amount = raw.get("amount")
        min_kwh = raw.get("minKwh")
        max_kwh = raw.get("maxKwh")
        if not _is_number(amount):
            fail("invalid_amount", "BILL_CREDIT amount must be a number.")
            return None
        if not _is_number(min_kwh) or min_kwh < 0:
            fail("invalid_bound", "BILL_CREDIT minKwh must be a non-negative number.")
            return None
        if max_kwh is not None and (not _is_number(max_kwh) or max_kwh < min_kwh):
            fail("invalid_bound", "BILL_CREDIT maxKwh must be null or at least minKwh.")
            return None
        return BillCredit(
            amount_usd=float(amount),
            min_kwh=float(min_kwh),
            max_kwh=float(max_kwh) if max_kwh is not None else None,
        )

    if rule_type == "TIME_OF_USE":
        return _parse_time_of_use(raw, fail)

    if rule_type == "SEASONAL":
        months = raw.get("months")
        modifier = raw.get("rateModifier")
        if not _int_list(months, 1, 12):
            fail("invalid_months", "SEASONAL months must be a non-empty list of 1-12.")
            return None
        if not _is_number(modifier) or modifier <= 0:
            fail("invalid_modifier", "SEASONAL rateModifier must be greater than 0.")
            return None
        return Seasonal(months=frozenset(months), rate_modifier=float(modifier))

    fail("unknown_rule_type", f"unknown rule type {rule_type!r}.")
    return None


def _parse_tiered(raw: Mapping[str, Any], fail: Fail) -> Tiered | None:
    raw_tiers = raw.get("tiers")
    if not isinstance(raw_tiers, list) or not raw_tiers:
        fail("invalid_tiers", "TIERED tiers must be a non-empty list.")
        return None

    tiers: list[Tier] = []
    previous_max = 0.0
    for tier_index, raw_tier in enumerate(raw_tiers):
        rate = raw_tier.get("ratePerKwh") if isinstance(raw_tier, Mapping) else None
        max_kwh = raw_tier.get("maxKwh") if isinstance(raw_tier, Mapping) else None
        last = tier_index == len(raw_tiers) - 1
        if not _is_number(rate) or rate < 0:
            fail("invalid_rate", f"TIERED tier {tier_index} ratePerKwh must be a non-negative number.")
            return None
        if max_kwh is None:
            if not last:
                fail("invalid_tiers", f"TIERED tier {tier_index} is unbounded but not last.")
                return None
        elif not _is_number(max_kwh) or max_kwh <= previous_max:
            fail("invalid_tiers", f"TIERED tier {tier_index} maxKwh must be ascending.")
            return None
        elif last:
            fail("invalid_tiers", "TIERED last tier must be unbounded (maxKwh null).")
            return None
        else:
            previous_max = float(max_kwh)
        tiers.append(
            Tier(
                max_kwh=float(max_kwh) if max_kwh is not None else None,
                rate_usd_per_kwh=float(rate),
            )
        )
    return Tiered(tiers=tuple(tiers))


def _parse_time_of_use(raw: Mapping[str, Any], fail: Fail) -> TimeOfUse | None:
    raw_schedule = raw.get("schedule")
    if not isinstance(raw_schedule, list) or not raw_schedule:
        fail("invalid_schedule", "TIME_OF_USE schedule must be a non-empty list.")
        return None

    periods: list[TimeOfUsePeriod] = []
    for period_index, entry in enumerate(raw_schedule):
        if not isinstance(entry, Mapping):
            fail("invalid_schedule", f"TIME_OF_USE schedule {period_index} must be an object.")
            return None
        hours = entry.get("hours")
        days = entry.get("days")
        rate = entry.get("ratePerKwh")
        if not _int_list(hours, 0, 23):
            fail("invalid_hours", f"TIME_OF_USE schedule {period_index} hours must be 0-23.")
            return None
        if not _int_list(days, 0, 6):
            fail("invalid_days", f"TIME_OF_USE schedule {period_index} days must be 0-6.")
            return None
        if not _is_number(rate) or rate < 0:
            fail("invalid_rate", f"TIME_OF_USE schedule {period_index} ratePerKwh must be non-negative.")
            return None
        periods.append(
            TimeOfUsePeriod(
                hours=frozenset(hours),
                days=frozenset(days),
                rate_usd_per_kwh=float(rate),
            )
        )
    return TimeOfUse(schedule=tuple(periods))


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _int_list(value: object, minimum: int, maximum: int) -> bool:
    if not isinstance(value, list) or not value:
        return False
    return all(_is_int(item) and minimum <= item <= maximum for item in value)
