"""Inventory planning data model.

Inputs (InventoryItem, PlanningParams) are validated on construction.
Derived records are frozen snapshots: they carry no identity beyond ``sku`` and
are recomputed on every call, never mutated in place.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class RiskLevel(str, Enum):
    """Stockout risk, ordered from most to least severe by ``priority``."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def priority(self) -> int:
        return _RISK_PRIORITY[self]


_RISK_PRIORITY = {RiskLevel.HIGH: 0, RiskLevel.MEDIUM: 1, RiskLevel.LOW: 2}


class SalesTrend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    EXCESS = "excess"
    LOW = "low"
    OUT_OF_STOCK = "outOfStock"
    OVERAGED = "overaged"
    SLOW_MOVING = "slowMoving"


class _Model(BaseModel):
    """Base model: accepts snake_case or camelCase keys, dumps either."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Record(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# === Inputs ===


class InventoryItem(_Model):
    """Raw inventory position for one SKU as returned by a provider."""

    sku: str = Field(..., min_length=1)
    asin: str | None = None
    product_name: str | None = None
    quantity: int = Field(0, ge=0)
    daily_sales_history: list[Annotated[float, Field(ge=0)]] = Field(default_factory=list)
    reserved_quantity: int = Field(0, ge=0)
    inbound_quantity: int = Field(0, ge=0)
    price: float | None = None
    cost: float | None = None
    inventory_age: int = Field(0, ge=0)

    @field_validator("daily_sales_history", mode="before")
    @classmethod
    def _history_default(cls, v):
        return [] if v is None else v

    @field_validator(
        "quantity", "reserved_quantity", "inbound_quantity", "inventory_age", mode="before"
    )
    @classmethod
    def _count_default(cls, v):
        return 0 if v is None else v


class PlanningParams(_Record):
    """Planning parameters. Not range-checked; callers supply sane values."""

    target_days_of_coverage: float = 60
    safety_stock_days: float = 14
    minimum_reorder_quantity: int = 1
    maximum_reorder_quantity: int = 10000
    lead_time_days: float = 30
    seasonality_factor: float = 1.0
    sales_growth_factor: float = 1.0
    apply_budget_constraints: bool = False
    max_budget: float = math.inf
    max_units: float = math.inf


def merge_params(
    base: PlanningParams, overrides: PlanningParams | Mapping | None = None
) -> PlanningParams:
    """Overlay the fields a caller explicitly set onto a default parameter set."""
    if overrides is None:
        return base
    if isinstance(overrides, Mapping):
        overrides = PlanningParams.model_validate(overrides)
    return base.model_copy(update=overrides.model_dump(exclude_unset=True))


# === Derived records ===


class SalesVelocityMetrics(_Record):
    sku: str
    asin: str | None = None
    units_sold_7_days: float
    units_sold_30_days: float
    units_sold_60_days: float
    units_sold_90_days: float
    average_daily_sales: float
    average_weekly_sales: float
    sales_trend: SalesTrend
    sales_forecast_30_days: int
    sales_forecast_60_days: int
    sales_forecast_90_days: int
    seasonality_factor: float
    growth_factor: float


class InventoryLevelRecommendation(_Record):
    sku: str
    asin: str | None = None
    current_level: int
    recommended_level: int
    reorder_quantity: int
    confidence: float
    days_of_coverage_at_current_level: float
    days_of_coverage_at_recommended_level: float
    risk_level: RiskLevel
    estimated_stockout_date: datetime | None = None
    estimated_lost_sales: float = 0.0
    recommendation_reason: str


class InventoryHealthAssessment(_Record):
    sku: str
    asin: str | None = None
    health_status: HealthStatus
    inventory_age_days: int
    at_risk_of_long_term_storage_fee: bool
    excess_inventory_percent: float | None = None
    excess_inventory_cost: float | None = None
    monthly_storage_cost: float
    recommended_actions: list[str] = Field(default_factory=list)
    sell_through_rate: float = 0.0


class FbaFeeEstimate(_Record):
    sku: str
    asin: str | None = None
    fulfillment_fee_per_unit: float
    monthly_storage_fee_per_unit: float
    long_term_storage_fee_per_unit: float | None = None
    estimated_storage_days: int
    total_fba_fees_per_unit: float
    referral_fee_percent: float
    currency_code: str = "USD"


class ReorderPlanSummary(_Record):
    total_units: int
    total_cost: float
    skus_to_reorder: int
    reduced_skus: int
    risk_counts: dict[RiskLevel, int]
    remaining_budget: float
    remaining_units: float


# === Batch envelope ===


class ItemError(_Record):
    """Marker for one SKU whose data or computation failed."""

    sku: str
    operation: str
    error: str


@dataclass
class BatchResult(Generic[T]):
    """Per-SKU results of one facade call plus the SKUs that failed.

    Iterating, indexing and ``len`` go over the successful items only.
    """

    items: list[T] = field(default_factory=list)
    errors: list[ItemError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]


__all__ = [
    "RiskLevel",
    "SalesTrend",
    "HealthStatus",
    "InventoryItem",
    "PlanningParams",
    "merge_params",
    "SalesVelocityMetrics",
    "InventoryLevelRecommendation",
    "InventoryHealthAssessment",
    "FbaFeeEstimate",
    "ReorderPlanSummary",
    "ItemError",
    "BatchResult",
]
