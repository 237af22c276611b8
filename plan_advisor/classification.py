from __future__ import annotations

from .models import BillCredit, Complexity, EnergyPlan, Seasonal, Tiered, TimeOfUse

_LABELS = {
    Complexity.SIMPLE: "Simple",
    Complexity.MEDIUM: "Medium",
    Complexity.COMPLEX: "Complex",
}


def classify(plan: EnergyPlan) -> Complexity:
    """Coarse complexity tag; an explicit catalog value always wins."""

    if plan.complexity is not None:
        return plan.complexity
    if plan.has_rule(TimeOfUse, Seasonal):
        return Complexity.COMPLEX
    if plan.has_rule(Tiered, BillCredit):
        return Complexity.MEDIUM
    return Complexity.SIMPLE


def complexity_label(complexity: Complexity) -> str:
    return _LABELS[complexity]
