"""Configuration management with pydantic-settings.

Provides type-safe configuration with environment variable validation.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from invplan.domain.planning.types import PlanningParams


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Planning defaults ===
    planner_target_days_of_coverage: int = Field(60, description="Target days of coverage")
    planner_safety_stock_days: int = Field(14, description="Safety stock buffer in days")
    planner_minimum_reorder_quantity: int = Field(1, description="Minimum positive reorder")
    planner_maximum_reorder_quantity: int = Field(10000, description="Reorder quantity cap")
    planner_lead_time_days: int = Field(30, description="Supplier lead time in days")
    planner_seasonality_factor: float = Field(1.0, description="Seasonality override multiplier")
    planner_sales_growth_factor: float = Field(1.0, description="Growth override multiplier")

    # === Velocity & reports ===
    velocity_day_range: int = Field(90, description="Days of history used for velocity metrics")
    low_inventory_days_threshold: float = Field(
        14, description="Coverage (days) below which an SKU is reported as low"
    )

    # === Cost model ===
    default_unit_cost: float = Field(10.0, description="Unit cost when an item has none")
    storage_rate_per_unit: float = Field(0.75, description="Monthly storage cost per unit")
    fba_fulfillment_fee_per_unit: float = Field(3.5, description="Flat fulfillment fee")
    fba_monthly_storage_fee_per_unit: float = Field(0.75, description="Monthly storage fee")
    fba_long_term_storage_fee_per_unit: float = Field(
        1.5, description="Long-term storage fee for inventory older than a year"
    )
    fba_referral_fee_percent: float = Field(0.15, description="Referral fee share of price")
    currency_code: str = Field("USD", description="Currency label attached to fee estimates")

    # === Diagnostics ===
    enable_debug: bool = Field(False, description="Log merged planning params per call")
    log_level: str = Field("INFO", description="Root log level")
    log_file_path: str | None = Field(None, description="JSON log file (None = stdout only)")

    def default_planning_params(self) -> PlanningParams:
        """Build the default planning parameter set from settings."""
        return PlanningParams(
            target_days_of_coverage=self.planner_target_days_of_coverage,
            safety_stock_days=self.planner_safety_stock_days,
            minimum_reorder_quantity=self.planner_minimum_reorder_quantity,
            maximum_reorder_quantity=self.planner_maximum_reorder_quantity,
            lead_time_days=self.planner_lead_time_days,
            seasonality_factor=self.planner_seasonality_factor,
            sales_growth_factor=self.planner_sales_growth_factor,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        RuntimeError: If an environment variable holds an invalid value.

    """
    try:
        return Settings()
    except ValidationError as e:
        bad_fields = [str(error["loc"][0]).upper() for error in e.errors() if error["loc"]]

        error_msg = (
            f"Configuration error: invalid environment variables: "
            f"{', '.join(bad_fields)}\n"
            f"Please fix them in .env file or the process environment."
        )
        raise RuntimeError(error_msg) from e


__all__ = ["Settings", "get_settings"]
