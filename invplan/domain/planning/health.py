"""Inventory health classification and carrying-cost figures."""

from __future__ import annotations

import math

from invplan.domain.planning.types import (
    HealthStatus,
    InventoryHealthAssessment,
    InventoryItem,
    SalesVelocityMetrics,
)

OVERAGED_AGE_DAYS = 365
LONG_TERM_FEE_RISK_AGE_DAYS = 270
LOW_COVERAGE_DAYS = 15
EXCESS_COVERAGE_DAYS = 120
TARGET_COVERAGE_DAYS = 90

DEFAULT_STORAGE_RATE_PER_UNIT = 0.75
DEFAULT_UNIT_COST = 10.0

RECOMMENDED_ACTIONS: dict[HealthStatus, tuple[str, ...]] = {
    HealthStatus.EXCESS: (
        "Consider running a promotion to reduce excess inventory.",
        "Evaluate pricing strategy to increase sales velocity.",
    ),
    HealthStatus.LOW: (
        "Restock soon to avoid stockouts.",
        "Consider expedited shipping for next inventory order.",
    ),
    HealthStatus.OUT_OF_STOCK: (
        "Restock immediately to minimize lost sales.",
        "Review purchasing process to prevent future stockouts.",
    ),
    HealthStatus.SLOW_MOVING: (
        "Consider marketing efforts to increase demand.",
        "Evaluate pricing strategy or consider liquidation.",
    ),
    HealthStatus.OVERAGED: (
        "Consider removing inventory to avoid long-term storage fees.",
        "Run promotions to clear aging inventory.",
    ),
    HealthStatus.HEALTHY: (),
}


def classify_health(quantity: int, average_daily_sales: float, age_days: int) -> HealthStatus:
    """Classify an inventory position; the first matching rule wins.

    Order: out of stock, slow moving (no sales), overaged (> 365 days),
    low (< 15 days of cover), excess (> 120 days of cover), healthy.
    """
    if quantity == 0:
        return HealthStatus.OUT_OF_STOCK
    if average_daily_sales == 0:
        return HealthStatus.SLOW_MOVING
    if age_days > OVERAGED_AGE_DAYS:
        return HealthStatus.OVERAGED
    if average_daily_sales * LOW_COVERAGE_DAYS > quantity:
        return HealthStatus.LOW
    if average_daily_sales * EXCESS_COVERAGE_DAYS < quantity:
        return HealthStatus.EXCESS
    return HealthStatus.HEALTHY


def assess_health(
    item: InventoryItem,
    metrics: SalesVelocityMetrics,
    storage_rate_per_unit: float = DEFAULT_STORAGE_RATE_PER_UNIT,
    default_unit_cost: float = DEFAULT_UNIT_COST,
) -> InventoryHealthAssessment:
    """Assess inventory health for one item.

    Args:
        item: Inventory item (quantity, age, cost)
        metrics: Velocity metrics computed for the same item
        storage_rate_per_unit: Monthly storage cost per unit
        default_unit_cost: Cost used when the item has none

    Returns:
        InventoryHealthAssessment snapshot. Excess percent and cost are
        omitted (None) when there is no excess.

    """
    quantity = item.quantity
    age_days = item.inventory_age
    daily = metrics.average_daily_sales

    sell_through = metrics.units_sold_30_days / quantity if quantity > 0 else 0.0

    status = classify_health(quantity, daily, age_days)

    target_inventory = math.ceil(daily * TARGET_COVERAGE_DAYS)
    excess_units = max(0, quantity - target_inventory)
    excess_percent = excess_units / quantity * 100 if quantity > 0 else 0.0
    unit_cost = item.cost if item.cost is not None else default_unit_cost
    excess_cost = excess_units * unit_cost

    return InventoryHealthAssessment(
        sku=item.sku,
        asin=item.asin,
        health_status=status,
        inventory_age_days=age_days,
        at_risk_of_long_term_storage_fee=age_days > LONG_TERM_FEE_RISK_AGE_DAYS,
        excess_inventory_percent=excess_percent if excess_percent > 0 else None,
        excess_inventory_cost=excess_cost if excess_cost > 0 else None,
        monthly_storage_cost=storage_rate_per_unit * quantity,
        recommended_actions=list(RECOMMENDED_ACTIONS[status]),
        sell_through_rate=sell_through,
    )
