"""Tests for the async planning service facade."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from invplan.core.config import Settings
from invplan.core.logging import get_run_id, set_run_id
from invplan.domain.planning.optimizer import REASON_NO_BUDGET
from invplan.domain.planning.types import HealthStatus, PlanningParams, RiskLevel
from invplan.services import (
    CallableInventoryProvider,
    InMemoryInventoryProvider,
    InventoryServiceUnavailable,
    assess_inventory_health,
    get_excess_inventory_report,
    get_fba_fee_estimates,
    get_inventory_recommendations,
    get_low_inventory_report,
    get_optimal_reorder_plan,
    get_reorder_plan_summary,
    get_sales_velocity_metrics,
)
from tests.conftest import make_item


class FailingProvider:
    """Provider whose upstream is down."""

    def __init__(self):
        self.calls = 0

    async def fetch_items(self, skus):
        self.calls += 1
        raise ConnectionError("upstream timeout")

    async def fetch_all(self):
        self.calls += 1
        raise ConnectionError("upstream timeout")


class RecordingProvider(InMemoryInventoryProvider):
    """In-memory provider that records which fetch method was used."""

    def __init__(self, items=()):
        super().__init__(items)
        self.calls = []

    async def fetch_items(self, skus):
        self.calls.append(("fetch_items", list(skus)))
        return await super().fetch_items(skus)

    async def fetch_all(self):
        self.calls.append(("fetch_all",))
        return await super().fetch_all()


@pytest.fixture
def catalog():
    return [
        make_item("FAST", quantity=1000, cost=5.0, daily_sales_history=[10] * 90),
        make_item("EMPTY", quantity=0, daily_sales_history=[2] * 30),
        make_item("GLUT", quantity=200, cost=4.0, daily_sales_history=[1] * 30),
        make_item("FINE", quantity=60, daily_sales_history=[1] * 30),
    ]


@pytest.mark.asyncio
async def test_recommendations_for_requested_skus(catalog, settings, now):
    provider = RecordingProvider(catalog)

    result = await get_inventory_recommendations(
        provider, ["FAST", "EMPTY"], now=now, settings=settings
    )

    assert result.ok
    assert [r.sku for r in result] == ["FAST", "EMPTY"]
    assert result[0].reorder_quantity == 40
    assert result[0].estimated_stockout_date == now + timedelta(days=100)
    assert result[1].risk_level is RiskLevel.HIGH
    assert provider.calls == [("fetch_items", ["FAST", "EMPTY"])]


@pytest.mark.asyncio
async def test_recommendations_accept_camel_case_overrides(catalog, settings, now):
    provider = InMemoryInventoryProvider(catalog)

    result = await get_inventory_recommendations(
        provider, ["FAST"], {"targetDaysOfCoverage": 90}, now=now, settings=settings
    )

    # 10/day × (90 + 30 + 14)
    assert result[0].recommended_level == 1340


@pytest.mark.asyncio
async def test_settings_supply_default_params(catalog, now):
    settings = Settings(_env_file=None, planner_lead_time_days=0, planner_safety_stock_days=0)

    result = await get_inventory_recommendations(
        InMemoryInventoryProvider(catalog), ["FAST"], now=now, settings=settings
    )

    assert result[0].recommended_level == 600


@pytest.mark.asyncio
async def test_provider_failure_aborts_operation(settings):
    provider = FailingProvider()

    with pytest.raises(InventoryServiceUnavailable) as exc_info:
        await get_inventory_recommendations(provider, ["A"], settings=settings)

    err = exc_info.value
    assert err.operation == "get_inventory_recommendations"
    assert "upstream timeout" in str(err)
    assert str(err).startswith("Failed to get inventory recommendations")
    assert isinstance(err.__cause__, ConnectionError)
    assert provider.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda p, s: get_sales_velocity_metrics(p, ["A"], settings=s),
        lambda p, s: get_fba_fee_estimates(p, ["A"], settings=s),
        lambda p, s: assess_inventory_health(p, ["A"], settings=s),
        lambda p, s: get_excess_inventory_report(p, settings=s),
        lambda p, s: get_low_inventory_report(p, settings=s),
        lambda p, s: get_optimal_reorder_plan(p, settings=s),
        lambda p, s: get_reorder_plan_summary(p, settings=s),
    ],
)
async def test_every_operation_wraps_provider_failures(call, settings):
    with pytest.raises(InventoryServiceUnavailable):
        await call(FailingProvider(), settings)


@pytest.mark.asyncio
async def test_bad_item_is_isolated(settings, now):
    provider = InMemoryInventoryProvider(
        [
            make_item("GOOD", quantity=10, daily_sales_history=[1] * 30),
            {"sku": "BAD", "quantity": -5},
        ]
    )

    result = await get_inventory_recommendations(provider, ["GOOD", "BAD"], now=now, settings=settings)

    assert [r.sku for r in result] == ["GOOD"]
    assert not result.ok
    assert len(result.errors) == 1
    assert result.errors[0].sku == "BAD"
    assert result.errors[0].operation == "get_inventory_recommendations"


@pytest.mark.asyncio
async def test_sales_velocity_metrics_day_range(settings):
    provider = InMemoryInventoryProvider([make_item("A", daily_sales_history=[5] * 20)])

    default = await get_sales_velocity_metrics(provider, ["A"], settings=settings)
    short = await get_sales_velocity_metrics(provider, ["A"], 30, settings=settings)

    assert default[0].units_sold_30_days == 100
    assert short[0].units_sold_7_days == 35
    assert short[0].units_sold_90_days == 100


@pytest.mark.asyncio
async def test_fee_estimates_use_settings():
    settings = Settings(_env_file=None, currency_code="EUR", fba_fulfillment_fee_per_unit=4.0)
    provider = InMemoryInventoryProvider([make_item("A", quantity=100, daily_sales_history=[10] * 30)])

    result = await get_fba_fee_estimates(provider, ["A"], settings=settings)

    assert result[0].currency_code == "EUR"
    assert result[0].total_fba_fees_per_unit == pytest.approx(4.25)


@pytest.mark.asyncio
async def test_assess_inventory_health(catalog, settings):
    result = await assess_inventory_health(
        InMemoryInventoryProvider(catalog), ["EMPTY", "GLUT", "FINE"], settings=settings
    )

    statuses = {a.sku: a.health_status for a in result}
    assert statuses == {
        "EMPTY": HealthStatus.OUT_OF_STOCK,
        "GLUT": HealthStatus.EXCESS,
        "FINE": HealthStatus.HEALTHY,
    }


@pytest.mark.asyncio
async def test_excess_report_scans_whole_catalog(catalog, settings):
    provider = RecordingProvider(catalog)

    result = await get_excess_inventory_report(provider, settings=settings)

    assert [a.sku for a in result] == ["GLUT"]
    assert result[0].excess_inventory_cost == pytest.approx(440.0)
    assert provider.calls == [("fetch_all",)]


@pytest.mark.asyncio
async def test_low_inventory_report_default_threshold(catalog, settings, now):
    provider = RecordingProvider(catalog)

    result = await get_low_inventory_report(provider, now=now, settings=settings)

    assert [r.sku for r in result] == ["EMPTY"]
    assert provider.calls == [("fetch_all",)]


@pytest.mark.asyncio
async def test_low_inventory_report_custom_threshold(catalog, settings, now):
    result = await get_low_inventory_report(
        InMemoryInventoryProvider(catalog), 200, now=now, settings=settings
    )

    assert sorted(r.sku for r in result) == ["EMPTY", "FAST", "FINE"]


@pytest.mark.asyncio
async def test_optimal_plan_unconstrained(catalog, settings, now):
    plan = await get_optimal_reorder_plan(InMemoryInventoryProvider(catalog), now=now, settings=settings)

    assert [r.sku for r in plan] == ["FAST", "EMPTY", "GLUT", "FINE"]
    assert {r.sku: r.reorder_quantity for r in plan}["EMPTY"] == 208


@pytest.mark.asyncio
async def test_budget_flag_without_limits_is_ignored(catalog, settings, now):
    plan = await get_optimal_reorder_plan(
        InMemoryInventoryProvider(catalog),
        PlanningParams(apply_budget_constraints=True),
        now=now,
        settings=settings,
    )

    assert [r.sku for r in plan] == ["FAST", "EMPTY", "GLUT", "FINE"]


@pytest.mark.asyncio
async def test_optimal_plan_with_budget(settings, now):
    """Out-of-stock SKU funded first; the low-risk top-up gets what is left."""
    provider = InMemoryInventoryProvider(
        [
            make_item("TOPUP", quantity=1000, cost=10.0, daily_sales_history=[10] * 90),
            make_item("EMPTY", quantity=0, cost=10.0, daily_sales_history=[2] * 30),
        ]
    )
    params = {"applyBudgetConstraints": True, "maxBudget": 2100}

    plan = await get_optimal_reorder_plan(provider, params, now=now, settings=settings)

    assert [r.sku for r in plan] == ["EMPTY", "TOPUP"]
    assert plan[0].reorder_quantity == 208
    assert plan[1].reorder_quantity == 2
    assert "due to budget constraints" in plan[1].recommendation_reason


@pytest.mark.asyncio
async def test_reorder_plan_summary(settings, now):
    provider = InMemoryInventoryProvider(
        [
            make_item("TOPUP", quantity=1000, cost=10.0, daily_sales_history=[10] * 90),
            make_item("EMPTY", quantity=0, daily_sales_history=[2] * 30),
        ]
    )
    params = PlanningParams(apply_budget_constraints=True, max_budget=2080)

    plan, summary = await get_reorder_plan_summary(provider, params, now=now, settings=settings)

    assert plan[1].recommendation_reason == REASON_NO_BUDGET
    assert summary.total_units == 208
    assert summary.total_cost == pytest.approx(2080.0)
    assert summary.skus_to_reorder == 1
    assert summary.reduced_skus == 1
    assert summary.remaining_budget == pytest.approx(0.0)
    assert summary.risk_counts[RiskLevel.HIGH] == 1


@pytest.mark.asyncio
async def test_legacy_callable_provider(settings, now):
    async def legacy_fetch(skus):
        catalog = {"A": {"sku": "A", "quantity": 0, "dailySalesHistory": [2] * 30}}
        return list(catalog.values()) if not skus else [catalog[s] for s in skus if s in catalog]

    provider = CallableInventoryProvider(legacy_fetch)

    by_sku = await get_inventory_recommendations(provider, ["A"], now=now, settings=settings)
    report = await get_low_inventory_report(provider, now=now, settings=settings)

    assert by_sku[0].reorder_quantity == 208
    assert [r.sku for r in report] == ["A"]


@pytest.mark.asyncio
async def test_debug_logs_resolved_params(catalog, caplog, now):
    settings = Settings(_env_file=None, enable_debug=True)
    caplog.set_level(logging.INFO, logger="invplan.planning")

    await get_inventory_recommendations(
        InMemoryInventoryProvider(catalog), ["FAST"], {"leadTimeDays": 7}, now=now, settings=settings
    )

    records = [r for r in caplog.records if r.getMessage() == "planning_params"]
    assert len(records) == 1
    assert records[0].params["lead_time_days"] == 7


@pytest.mark.asyncio
async def test_operation_logged_with_status(caplog, settings):
    caplog.set_level(logging.INFO, logger="invplan.planning")

    with pytest.raises(InventoryServiceUnavailable):
        await get_fba_fee_estimates(FailingProvider(), ["A"], settings=settings)

    finished = [r for r in caplog.records if r.getMessage() == "planning_operation_finished"]
    assert finished[-1].status == "failed"
    assert finished[-1].operation == "get_fba_fee_estimates"


@pytest.mark.asyncio
async def test_dead_stock_stays_in_plan(settings, now):
    """Coverage beyond the datetime range yields no stockout date, not an item error."""
    provider = InMemoryInventoryProvider(
        [
            make_item("DEAD", quantity=10000, daily_sales_history=[1] + [0] * 1094),
            make_item("EMPTY", quantity=0, daily_sales_history=[2] * 30),
        ]
    )

    plan = await get_optimal_reorder_plan(provider, now=now, settings=settings)
    recs = await get_inventory_recommendations(provider, ["DEAD"], now=now, settings=settings)

    assert plan.ok
    assert [r.sku for r in plan] == ["DEAD", "EMPTY"]
    assert plan[0].estimated_stockout_date is None
    assert recs.ok
    assert recs[0].reorder_quantity == 0


@pytest.mark.asyncio
async def test_explicit_zero_day_range_is_kept(settings):
    provider = InMemoryInventoryProvider([make_item("A", daily_sales_history=[5] * 20)])

    result = await get_sales_velocity_metrics(provider, ["A"], 0, settings=settings)

    assert result[0].units_sold_7_days == 0
    assert result[0].units_sold_90_days == 0
    assert result[0].sales_forecast_30_days == 0


@pytest.mark.asyncio
async def test_run_id_scoped_to_call(catalog, caplog, settings, now):
    seen = []

    class TracingProvider(InMemoryInventoryProvider):
        async def fetch_items(self, skus):
            seen.append(get_run_id())
            return await super().fetch_items(skus)

    caplog.set_level(logging.INFO, logger="invplan.planning")
    set_run_id("outer")

    await get_inventory_recommendations(TracingProvider(catalog), ["FAST"], now=now, settings=settings)

    assert seen[0] and seen[0] != "outer"
    assert get_run_id() == "outer"
    finished = [r for r in caplog.records if r.getMessage() == "planning_operation_finished"]
    assert not hasattr(finished[-1], "run")
