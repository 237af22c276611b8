from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from plan_advisor.advisory import AdvisedPlan, attach_advice
from plan_advisor.aggregates import aggregate_consumption
from plan_advisor.breakdown import monthly_breakdown
from plan_advisor.catalog import PlanCatalogError, read_plans_from_json
from plan_advisor.classification import classify, complexity_label
from plan_advisor.models import (
    EnergyPlan,
    HourlySample,
    MonthlyCost,
    Objective,
    PlanWithCost,
    UsageStatistics,
)
from plan_advisor.ranking import (
    DEFAULT_RECOMMENDATION_COUNT,
    flexibility_rating,
    rank_plans,
)
from plan_advisor.statistics import EmptyInputError, build_statistics

APP_ROOT = Path(__file__).resolve().parent
MAX_UPLOAD_MB = 10
DEFAULT_TIMEZONE = "America/Chicago"

logger = logging.getLogger(__name__)

app = Flask(__name__, static_folder=None)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024
app.config["PLAN_CATALOG_PATH"] = str(APP_ROOT / "data" / "plans.json")
app.config["TIMEZONE"] = DEFAULT_TIMEZONE
app.config["ADVISORY_PROVIDER"] = None
app.config.from_prefixed_env()


@app.get("/api/plans")
def list_plans() -> object:
    plans = _catalog()
    return jsonify({"plans": [_format_plan(plan) for plan in plans]})


@app.post("/api/analyze")
def analyze() -> object:
    try:
        payload = _json_payload()
        timezone_name = _parse_timezone(payload.get("timezone"))
        samples = _parse_samples(payload.get("samples"), timezone_name)
        statistics = build_statistics(samples)
    except EmptyInputError as exc:
        return jsonify({"error": str(exc)}), 422
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(
        {
            "statistics": _format_statistics(statistics),
            "profile": {
                "by_hour": _format_profile(aggregate_consumption(samples, period="hour"), 24),
                "by_weekday": _format_profile(aggregate_consumption(samples, period="weekday"), 7),
            },
        }
    )


@app.post("/api/recommendations")
def recommendations() -> object:
    try:
        payload = _json_payload()
        timezone_name = _parse_timezone(payload.get("timezone"))
        objective = _parse_objective(payload.get("preference"))
        count = _parse_int_field(
            payload, "count", default=DEFAULT_RECOMMENDATION_COUNT, minimum=1, maximum=10
        )
        samples = _parse_samples(payload.get("samples"), timezone_name)
        statistics = build_statistics(samples)
    except EmptyInputError as exc:
        return jsonify({"error": str(exc)}), 422
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    plans = _select_plans(_catalog(), payload.get("plan_ids"))
    if not plans:
        return jsonify({"error": "No plans match the requested plan ids."}), 400

    ranked = rank_plans(
        plans,
        statistics.total_annual_kwh,
        statistics,
        objective,
        hourly_samples=samples,
    )
    advised = attach_advice(
        ranked[:count],
        app.config.get("ADVISORY_PROVIDER"),
        statistics,
        objective,
    )

    return jsonify(
        {
            "preference": objective.value,
            "statistics": _format_statistics(statistics),
            "ranked": [_format_ranked(item) for item in ranked],
            "top": [
                _format_recommendation(item, monthly_breakdown(item.ranked.plan, samples, statistics))
                for item in advised
            ],
        }
    )


@app.errorhandler(RequestEntityTooLarge)
def handle_file_too_large(_: RequestEntityTooLarge) -> object:
    return (
        jsonify({"error": f"Request is too large. At most {MAX_UPLOAD_MB} MB is accepted."}),
        413,
    )


@app.errorhandler(PlanCatalogError)
def handle_catalog_error(exc: PlanCatalogError) -> object:
    logger.error("Plan catalog is invalid: %s", exc)
    return jsonify({"error": "Plan catalog is invalid.", "details": exc.user_messages()}), 500


def _catalog() -> list[EnergyPlan]:
    return _load_catalog(str(app.config["PLAN_CATALOG_PATH"]))


@lru_cache(maxsize=4)
def _load_catalog(path: str) -> list[EnergyPlan]:
    return read_plans_from_json(path)


def _select_plans(plans: list[EnergyPlan], plan_ids: object) -> list[EnergyPlan]:
    if plan_ids is None:
        return plans
    if not isinstance(plan_ids, list):
        return []
    wanted = {str(plan_id) for plan_id in plan_ids}
    return [plan for plan in plans if plan.id in wanted]


def _json_payload() -> Mapping[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object.")
    return payload


def _parse_samples(raw: object, timezone_name: str) -> list[HourlySample]:
    if not isinstance(raw, list):
        raise ValueError("Field samples must be a list of {timestamp, kwh} records.")
    tzinfo = ZoneInfo(timezone_name)
    samples = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Sample {index} must be an object.")
        timestamp = _parse_timestamp(item.get("timestamp"), tzinfo, index)
        kwh = item.get("kwh")
        if not isinstance(kwh, (int, float)) or isinstance(kwh, bool) or kwh < 0:
            raise ValueError(f"Sample {index} has an invalid kwh value: {kwh!r}.")
        samples.append(HourlySample(timestamp=timestamp, consumption_kwh=float(kwh)))
    return samples


def _parse_timestamp(raw: object, tzinfo: ZoneInfo, index: int) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"Sample {index} is missing a timestamp.")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"Sample {index} has an invalid timestamp: {raw}.") from exc
    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone(tzinfo)


def _parse_objective(value: object) -> Objective:
    if value is None or value == "":
        return Objective.COST
    try:
        return Objective(str(value))
    except ValueError as exc:
        choices = ", ".join(item.value for item in Objective)
        raise ValueError(f"Unknown preference {value!r}; expected one of {choices}.") from exc


def _parse_int_field(
    payload: Mapping[str, Any],
    name: str,
    *,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    raw = payload.get(name)
    if raw is None:
        return default
    if not isinstance(raw, int) or isinstance(raw, bool):
        raise ValueError(f"Value for {name.replace('_', ' ')} is invalid.")
    _validate_range(name, raw, minimum, maximum)
    return raw


def _validate_range(
    name: str, value: float, minimum: float | None, maximum: float | None
) -> None:
    if minimum is not None and value < minimum:
        raise ValueError(f"Value for {name.replace('_', ' ')} must be at least {minimum}.")
    if maximum is not None and value > maximum:
        raise ValueError(f"Value for {name.replace('_', ' ')} must be at most {maximum}.")


def _parse_timezone(value: object) -> str:
    timezone_name = (str(value) if value else "").strip() or app.config["TIMEZONE"]
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError("Unknown timezone given.") from exc
    return timezone_name


def _format_plan(plan: EnergyPlan) -> dict[str, object]:
    complexity = classify(plan)
    return {
        "id": plan.id,
        "name": plan.name,
        "provider": plan.provider,
        "description": plan.description,
        "renewable_percent": plan.renewable_percent,
        "contract_length_months": plan.contract_length_months,
        "flexibility": flexibility_rating(plan.contract_length_months).value,
        "complexity": complexity.value,
        "complexity_label": complexity_label(complexity),
    }


def _format_statistics(statistics: UsageStatistics) -> dict[str, object]:
    return {
        "total_annual_kwh": round(statistics.total_annual_kwh, 2),
        "average_daily_kwh": round(statistics.average_daily_kwh, 2),
        "peak_usage_hour": {
            "timestamp": statistics.peak_usage_hour.timestamp.isoformat(),
            "kwh": round(statistics.peak_usage_hour.consumption_kwh, 3),
        },
        "min_monthly_kwh": round(statistics.min_monthly_kwh, 2),
        "max_monthly_kwh": round(statistics.max_monthly_kwh, 2),
        "monthly": [
            {"month": item.month, "month_name": item.month_name, "kwh": round(item.total_kwh, 2)}
            for item in statistics.monthly_breakdown
        ],
    }


def _format_profile(totals: dict[int, float], size: int) -> list[float]:
    return [round(totals.get(key, 0.0), 3) for key in range(size)]


def _format_ranked(item: PlanWithCost) -> dict[str, object]:
    breakdown = item.cost.breakdown
    return {
        "plan": _format_plan(item.plan),
        "annual_cost_usd": round(item.cost.annual_cost_usd, 2),
        "monthly_cost_usd": round(item.cost.monthly_cost_usd, 2),
        "savings_usd": round(item.savings_usd or 0.0, 2),
        "approximated": item.cost.approximated,
        "breakdown": {
            "energy_cost_usd": round(breakdown.energy_cost_usd, 2),
            "base_charges_usd": round(breakdown.base_charges_usd, 2),
            "tdu_charges_usd": round(breakdown.tdu_charges_usd, 2),
            "bill_credits_usd": round(breakdown.bill_credits_usd, 2),
        },
    }


def _format_recommendation(item: AdvisedPlan, monthly: list[MonthlyCost]) -> dict[str, object]:
    formatted = _format_ranked(item.ranked)
    formatted["monthly"] = [
        {
            "month": month.month,
            "month_name": month.month_name,
            "kwh": round(month.total_kwh, 2),
            "cost_usd": round(month.cost_usd, 2),
        }
        for month in monthly
    ]
    formatted["advice"] = (
        {
            "explanation": item.advice.explanation,
            "pros": list(item.advice.pros),
            "cons": list(item.advice.cons),
            "tags": list(item.advice.tags),
        }
        if item.advice is not None
        else None
    )
    return formatted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host="0.0.0.0", port=5000, debug=True)
