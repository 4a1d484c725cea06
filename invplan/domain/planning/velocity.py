"""Sales velocity, trend, seasonality and forecast calculations.

Histories are ordered most-recent-first: index 0 is yesterday's sales.

NO DATA ACCESS - pure functions only. Data access happens in services layer.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from invplan.domain.planning.types import InventoryItem, SalesTrend, SalesVelocityMetrics

DEFAULT_DAY_RANGE = 90
VELOCITY_WINDOWS = (7, 30, 60, 90)
FORECAST_HORIZONS = (30, 60, 90)
WEEKS_PER_MONTH = 4.29

TREND_WINDOW = 15
TREND_UP_RATIO = 1.2
TREND_DOWN_RATIO = 0.8

SEASONALITY_MIN_HISTORY = 30
SEASONALITY_BOUNDS = (0.5, 2.0)
GROWTH_MIN_HISTORY = 60
GROWTH_WINDOW = 30
GROWTH_BOUNDS = (0.7, 1.5)


def pad_history(history: Sequence[float], day_range: int = DEFAULT_DAY_RANGE) -> list[float]:
    """Truncate or zero-pad a history to exactly ``day_range`` entries.

    Missing days are assumed to be the oldest ones, so zeros go on the tail.

    Examples:
        >>> pad_history([5, 4], 4)
        [5.0, 4.0, 0.0, 0.0]
        >>> pad_history([5, 4, 3, 2, 1], 3)
        [5.0, 4.0, 3.0]
    """
    padded = [float(x) for x in history[:day_range]]
    padded.extend([0.0] * (day_range - len(padded)))
    return padded


def sum_first_days(history: Sequence[float], days: int) -> float:
    """Sum the ``days`` most recent entries."""
    return float(sum(history[:days]))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def detect_sales_trend(history: Sequence[float]) -> SalesTrend:
    """Compare the last 15 days against the 15 days before them."""
    recent = sum_first_days(history, TREND_WINDOW)
    previous = sum_first_days(history[TREND_WINDOW:], TREND_WINDOW)

    ratio = recent / previous if previous > 0 else 1.0

    if ratio > TREND_UP_RATIO:
        return SalesTrend.INCREASING
    if ratio < TREND_DOWN_RATIO:
        return SalesTrend.DECREASING
    return SalesTrend.STABLE


def seasonality_factor(padded: Sequence[float], history_length: int) -> float:
    """Ratio of the recent 15-day daily average to the full-period daily average.

    Args:
        padded: History already padded to the analysis range
        history_length: Number of real (unpadded) observations

    Returns:
        Factor in [0.5, 2.0]; 1.0 when there are fewer than 30 observations
        or the full period has no sales.

    """
    if history_length < SEASONALITY_MIN_HISTORY or not padded:
        return 1.0

    recent_daily = sum_first_days(padded, TREND_WINDOW) / TREND_WINDOW
    full_daily = sum(padded) / len(padded)

    if full_daily <= 0:
        return 1.0
    return _clamp(recent_daily / full_daily, SEASONALITY_BOUNDS)


def growth_factor(padded: Sequence[float], history_length: int) -> float:
    """Month-over-month growth: last 30 days against the 30 days before.

    Returns 1.0 with fewer than 60 observations or no prior-month sales,
    otherwise a factor clamped to [0.7, 1.5].
    """
    if history_length < GROWTH_MIN_HISTORY:
        return 1.0

    recent = sum_first_days(padded, GROWTH_WINDOW)
    previous = sum_first_days(padded[GROWTH_WINDOW:], GROWTH_WINDOW)

    if previous <= 0:
        return 1.0
    return _clamp(recent / previous, GROWTH_BOUNDS)


def analyze_velocity(
    item: InventoryItem, day_range: int = DEFAULT_DAY_RANGE
) -> SalesVelocityMetrics:
    """Build velocity metrics and short-horizon forecasts for one item.

    Args:
        item: Inventory item with its daily sales history
        day_range: Number of days analysed (history is padded/truncated to it)

    Returns:
        SalesVelocityMetrics snapshot

    """
    history = item.daily_sales_history
    padded = pad_history(history, day_range)

    sold = {days: sum_first_days(padded, days) for days in VELOCITY_WINDOWS}

    average_daily = sold[30] / 30
    average_weekly = sold[30] / WEEKS_PER_MONTH

    seasonality = seasonality_factor(padded, len(history))
    growth = growth_factor(padded, len(history))
    forecast_daily = average_daily * growth * seasonality

    forecasts = {h: round_half_up(forecast_daily * h) for h in FORECAST_HORIZONS}

    return SalesVelocityMetrics(
        sku=item.sku,
        asin=item.asin,
        units_sold_7_days=sold[7],
        units_sold_30_days=sold[30],
        units_sold_60_days=sold[60],
        units_sold_90_days=sold[90],
        average_daily_sales=average_daily,
        average_weekly_sales=average_weekly,
        sales_trend=detect_sales_trend(padded),
        sales_forecast_30_days=forecasts[30],
        sales_forecast_60_days=forecasts[60],
        sales_forecast_90_days=forecasts[90],
        seasonality_factor=seasonality,
        growth_factor=growth,
    )
