"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from invplan.core.config import Settings, get_settings
from invplan.domain.planning.types import InventoryItem, InventoryLevelRecommendation, RiskLevel

FIXED_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    """Drop cached settings so env changes in one test never leak into another."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with all defaults, independent of any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


def make_item(sku: str = "SKU-1", **kwargs) -> InventoryItem:
    """Build an InventoryItem with sensible defaults."""
    kwargs.setdefault("quantity", 0)
    return InventoryItem(sku=sku, **kwargs)


def make_recommendation(
    sku: str,
    reorder_quantity: int,
    risk_level: RiskLevel = RiskLevel.LOW,
    coverage: float = 50.0,
    reason: str = "Restock to maintain optimal inventory level.",
) -> InventoryLevelRecommendation:
    """Build a recommendation directly, bypassing the recommendation engine."""
    return InventoryLevelRecommendation(
        sku=sku,
        current_level=0,
        recommended_level=reorder_quantity,
        reorder_quantity=reorder_quantity,
        confidence=0.5,
        days_of_coverage_at_current_level=coverage,
        days_of_coverage_at_recommended_level=coverage,
        risk_level=risk_level,
        recommendation_reason=reason,
    )
