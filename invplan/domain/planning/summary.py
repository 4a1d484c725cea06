"""Totals for a reorder plan."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from invplan.domain.planning.types import (
    InventoryLevelRecommendation,
    ReorderPlanSummary,
    RiskLevel,
)


def summarize_plan(
    plan: Sequence[InventoryLevelRecommendation],
    unit_costs: Mapping[str, float],
    *,
    max_budget: float = math.inf,
    max_units: float = math.inf,
    default_unit_cost: float = 10.0,
) -> ReorderPlanSummary:
    """Totals for a reorder plan.

    A SKU counts as reduced when the planner rewrote its reason because of
    the budget.
    """
    total_units = 0
    total_cost = 0.0
    risk_counts = {risk: 0 for risk in RiskLevel}
    reorder_count = 0
    reduced = 0

    for rec in plan:
        if "budget constraints" in rec.recommendation_reason:
            reduced += 1
        if rec.reorder_quantity <= 0:
            continue

        unit_cost = unit_costs.get(rec.sku)
        if unit_cost is None:
            unit_cost = default_unit_cost

        reorder_count += 1
        total_units += rec.reorder_quantity
        total_cost += rec.reorder_quantity * unit_cost
        risk_counts[rec.risk_level] += 1

    return ReorderPlanSummary(
        total_units=total_units,
        total_cost=total_cost,
        skus_to_reorder=reorder_count,
        reduced_skus=reduced,
        risk_counts=risk_counts,
        remaining_budget=max_budget - total_cost,
        remaining_units=max_units - total_units,
    )
