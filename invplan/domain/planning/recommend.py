"""Per-SKU stocking recommendations.

Business logic for calculating:
- Adjusted daily demand and days of coverage
- Recommended stock level and reorder quantity
- Stockout risk, lost sales and a confidence score

NO DATA ACCESS - pure functions only. Data access happens in services layer.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from invplan.domain.planning.types import (
    InventoryItem,
    InventoryLevelRecommendation,
    PlanningParams,
    RiskLevel,
)

NO_SALES_COVERAGE_DAYS = 365.0
EXCESS_MULTIPLIER = 1.5

BASE_CONFIDENCE = 0.3
CONFIDENCE_WEIGHT = 0.7
FULL_CONFIDENCE_HISTORY_DAYS = 60

REASON_IMMINENT_STOCKOUT = "Imminent stockout risk based on sales velocity."
REASON_BELOW_SAFETY_STOCK = "Inventory below safety stock level."
REASON_RESTOCK = "Restock to maintain optimal inventory level."
REASON_EXCESS = "Excess inventory based on current sales velocity."
REASON_OPTIMAL = "Inventory levels within optimal range."


def average_daily_sales(history: Sequence[float]) -> float:
    """Mean of the whole history (0.0 for an empty history)."""
    if not history:
        return 0.0
    return sum(history) / len(history)


def days_of_coverage(quantity: int, daily_sales: float) -> float:
    """Days the stock lasts at ``daily_sales``.

    Stock with no demand counts as a year of runway; no stock and no demand
    is zero coverage.

    Examples:
        >>> days_of_coverage(1000, 10.0)
        100.0
        >>> days_of_coverage(5, 0.0)
        365.0
        >>> days_of_coverage(0, 0.0)
        0.0
    """
    if daily_sales > 0:
        return quantity / daily_sales
    return NO_SALES_COVERAGE_DAYS if quantity > 0 else 0.0


def classify_risk(coverage_days: float, lead_time_days: float, safety_stock_days: float) -> RiskLevel:
    """High when stock runs out within lead time, medium within lead time + safety stock."""
    if coverage_days <= lead_time_days:
        return RiskLevel.HIGH
    if coverage_days <= lead_time_days + safety_stock_days:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def clamp_reorder_quantity(quantity: int, minimum: int, maximum: int) -> int:
    """Raise a positive reorder to ``minimum`` then cap it at ``maximum``.

    A zero reorder stays zero.
    """
    if quantity <= 0:
        return 0
    return max(0, min(max(quantity, minimum), maximum))


def confidence_score(history: Sequence[float]) -> float:
    """Confidence in [0.3, 1.0] from history length and demand stability.

    More data and a lower coefficient of variation both raise confidence;
    60 days of perfectly flat sales scores 1.0.
    """
    if not history:
        return BASE_CONFIDENCE

    data_factor = min(1.0, len(history) / FULL_CONFIDENCE_HISTORY_DAYS)

    mean = sum(history) / len(history)
    variance = sum((x - mean) ** 2 for x in history) / len(history)
    cv = math.sqrt(variance) / mean if mean > 0 else 1.0
    variance_factor = max(0.0, 1.0 - min(1.0, cv))

    return BASE_CONFIDENCE + CONFIDENCE_WEIGHT * data_factor * variance_factor


def estimate_stockout_date(now: datetime, coverage_days: float) -> datetime | None:
    """Date the stock runs out, or None when it lies beyond the datetime range."""
    try:
        return now + timedelta(days=coverage_days)
    except OverflowError:
        return None


def _reason(reorder_quantity: int, risk: RiskLevel, quantity: int, recommended_level: int) -> str:
    if reorder_quantity > 0:
        if risk is RiskLevel.HIGH:
            return REASON_IMMINENT_STOCKOUT
        if risk is RiskLevel.MEDIUM:
            return REASON_BELOW_SAFETY_STOCK
        return REASON_RESTOCK
    if quantity > recommended_level * EXCESS_MULTIPLIER:
        return REASON_EXCESS
    return REASON_OPTIMAL


def recommend_inventory_level(
    item: InventoryItem,
    params: PlanningParams,
    now: datetime | None = None,
) -> InventoryLevelRecommendation:
    """Calculate the stocking recommendation for one item.

    Recommended level = adjusted daily sales × (target coverage + lead time + safety stock)
    Reorder quantity = recommended level - (on hand - reserved - inbound), clamped

    Args:
        item: Inventory item with quantity and sales history
        params: Fully merged planning parameters
        now: Reference time for the stockout date (default: current UTC time)

    Returns:
        InventoryLevelRecommendation snapshot

    """
    history = item.daily_sales_history
    quantity = item.quantity

    adjusted_daily = (
        average_daily_sales(history) * params.sales_growth_factor * params.seasonality_factor
    )

    coverage_now = days_of_coverage(quantity, adjusted_daily)

    horizon = params.target_days_of_coverage + params.lead_time_days + params.safety_stock_days
    recommended_level = math.ceil(adjusted_daily * horizon)

    committed = item.reserved_quantity + item.inbound_quantity
    available = max(0, quantity - committed)

    reorder_quantity = clamp_reorder_quantity(
        max(0, recommended_level - available),
        params.minimum_reorder_quantity,
        params.maximum_reorder_quantity,
    )

    coverage_recommended = (
        recommended_level / adjusted_daily if adjusted_daily > 0 else NO_SALES_COVERAGE_DAYS
    )

    risk = classify_risk(coverage_now, params.lead_time_days, params.safety_stock_days)

    stockout_date = None
    if adjusted_daily > 0 and quantity > 0:
        stockout_date = estimate_stockout_date(now or datetime.now(timezone.utc), coverage_now)

    lost_sales = (
        max(0.0, adjusted_daily * params.target_days_of_coverage - quantity)
        if adjusted_daily > 0
        else 0.0
    )

    return InventoryLevelRecommendation(
        sku=item.sku,
        asin=item.asin,
        current_level=quantity,
        recommended_level=recommended_level,
        reorder_quantity=reorder_quantity,
        confidence=confidence_score(history),
        days_of_coverage_at_current_level=coverage_now,
        days_of_coverage_at_recommended_level=coverage_recommended,
        risk_level=risk,
        estimated_stockout_date=stockout_date,
        estimated_lost_sales=lost_sales,
        recommendation_reason=_reason(reorder_quantity, risk, quantity, recommended_level),
    )
