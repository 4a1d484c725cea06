"""Heuristic reorder planner with budget and unit constraints."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from invplan.domain.planning.types import InventoryLevelRecommendation

DEFAULT_UNIT_COST = 10.0

REASON_NO_BUDGET = "No reorder due to budget constraints."


def priority_key(rec: InventoryLevelRecommendation) -> tuple[int, float]:
    """Highest risk first, then soonest to stock out."""
    return (rec.risk_level.priority, rec.days_of_coverage_at_current_level)


def affordable_quantity(
    remaining_budget: float, remaining_units: float, unit_cost: float, requested: int
) -> int:
    """Largest quantity that fits the remaining budget and unit allowance."""
    qty = requested
    if unit_cost > 0 and math.isfinite(remaining_budget):
        qty = math.floor(remaining_budget / unit_cost)
        # floor of a float quotient can overshoot by one unit
        while qty > 0 and qty * unit_cost > remaining_budget:
            qty -= 1
    return int(max(0, min(qty, remaining_units, requested)))


def optimize_for_budget(
    recommendations: Sequence[InventoryLevelRecommendation],
    unit_costs: Mapping[str, float],
    max_budget: float,
    max_units: float = math.inf,
    default_unit_cost: float = DEFAULT_UNIT_COST,
) -> list[InventoryLevelRecommendation]:
    """Greedy budget-constrained reorder planner.

    Algorithm:
    1. Sort by risk (high → medium → low), then by current coverage ascending
    2. Walk the list once, keeping remaining budget and units
    3. Take a reorder in full when it fits both limits
    4. Otherwise take what still fits and annotate the reason

    Single pass, so a large early order can starve cheaper later ones. This is
    an approximation, not an optimal knapsack allocation.

    Args:
        recommendations: Per-SKU recommendations (left untouched)
        unit_costs: Cost per unit by SKU
        max_budget: Total spend allowed across the plan
        max_units: Total units allowed across the plan
        default_unit_cost: Cost used for SKUs missing from ``unit_costs``

    Returns:
        New recommendations in priority order with quantities possibly reduced

    """
    remaining_budget = max_budget
    remaining_units = max_units

    plan: list[InventoryLevelRecommendation] = []

    for rec in sorted(recommendations, key=priority_key):
        unit_cost = unit_costs.get(rec.sku)
        if unit_cost is None:
            unit_cost = default_unit_cost

        requested = rec.reorder_quantity
        cost = requested * unit_cost

        if cost <= remaining_budget and requested <= remaining_units:
            remaining_budget -= cost
            remaining_units -= requested
            plan.append(rec)
            continue

        qty = affordable_quantity(remaining_budget, remaining_units, unit_cost, requested)

        if qty > 0:
            remaining_budget -= qty * unit_cost
            remaining_units -= qty
            reason = (
                f"Reduced order quantity from {requested} to {qty} due to budget constraints."
            )
        else:
            reason = REASON_NO_BUDGET

        plan.append(
            rec.model_copy(update={"reorder_quantity": qty, "recommendation_reason": reason})
        )

    return plan
