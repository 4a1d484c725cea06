"""Coarse per-unit FBA carrying-cost model.

Flat fee constants stand in for a live fee API; the only item-specific inputs
are inventory age and how long current stock takes to sell through.
"""

from __future__ import annotations

from dataclasses import dataclass

from invplan.domain.planning.recommend import average_daily_sales
from invplan.domain.planning.types import FbaFeeEstimate, InventoryItem
from invplan.domain.planning.velocity import round_half_up

MAX_STORAGE_DAYS = 365
LONG_TERM_STORAGE_AGE_DAYS = 365
DAYS_PER_STORAGE_MONTH = 30


@dataclass(frozen=True)
class FeeSchedule:
    """Flat fee rates applied to every unit."""

    fulfillment_fee_per_unit: float = 3.5
    monthly_storage_fee_per_unit: float = 0.75
    long_term_storage_fee_per_unit: float = 1.5
    referral_fee_percent: float = 0.15
    currency_code: str = "USD"


def estimate_storage_days(quantity: int, daily_sales: float) -> int:
    """Days until current stock sells through, capped at a year.

    No demand means the stock sits for the full year.
    """
    if daily_sales <= 0:
        return MAX_STORAGE_DAYS
    return min(MAX_STORAGE_DAYS, round_half_up(quantity / daily_sales))


def estimate_fba_fees(item: InventoryItem, schedule: FeeSchedule | None = None) -> FbaFeeEstimate:
    """Estimate per-unit fulfillment and storage fees for one item.

    total = fulfillment + monthly storage × (storage days / 30) + long-term fee
    """
    schedule = schedule or FeeSchedule()

    storage_days = estimate_storage_days(
        item.quantity, average_daily_sales(item.daily_sales_history)
    )

    long_term_fee = (
        schedule.long_term_storage_fee_per_unit
        if item.inventory_age > LONG_TERM_STORAGE_AGE_DAYS
        else None
    )

    total = (
        schedule.fulfillment_fee_per_unit
        + schedule.monthly_storage_fee_per_unit * (storage_days / DAYS_PER_STORAGE_MONTH)
        + (long_term_fee or 0.0)
    )

    return FbaFeeEstimate(
        sku=item.sku,
        asin=item.asin,
        fulfillment_fee_per_unit=schedule.fulfillment_fee_per_unit,
        monthly_storage_fee_per_unit=schedule.monthly_storage_fee_per_unit,
        long_term_storage_fee_per_unit=long_term_fee,
        estimated_storage_days=storage_days,
        total_fba_fees_per_unit=total,
        referral_fee_percent=schedule.referral_fee_percent,
        currency_code=schedule.currency_code,
    )
