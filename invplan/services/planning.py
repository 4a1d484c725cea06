"""Inventory planning service facade.

Stateless async operations over an explicitly passed ``InventoryDataProvider``.
Each operation makes exactly one provider call, then computes every SKU
independently.

Error handling:
- A provider failure aborts the whole operation with
  ``InventoryServiceUnavailable``.
- A malformed item, or a failure while computing one SKU, is reported as an
  ``ItemError`` in ``BatchResult.errors`` and the remaining SKUs are still
  returned. One bad SKU no longer fails a whole batch.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import TypeVar

from invplan.core.config import Settings, get_settings
from invplan.core.logging import get_logger, run_context
from invplan.core.metrics import (
    planning_item_errors_total,
    planning_items_processed_total,
    planning_operation_duration_seconds,
    planning_operations_total,
    provider_failures_total,
    reorder_plan_cost,
    reorder_plan_units,
)
from invplan.domain.planning.summary import summarize_plan
from invplan.domain.planning.fees import FeeSchedule, estimate_fba_fees
from invplan.domain.planning.health import assess_health
from invplan.domain.planning.optimizer import optimize_for_budget
from invplan.domain.planning.recommend import recommend_inventory_level
from invplan.domain.planning.types import (
    BatchResult,
    FbaFeeEstimate,
    HealthStatus,
    InventoryHealthAssessment,
    InventoryItem,
    InventoryLevelRecommendation,
    ItemError,
    PlanningParams,
    ReorderPlanSummary,
    SalesVelocityMetrics,
    merge_params,
)
from invplan.domain.planning.velocity import analyze_velocity
from invplan.services.errors import InventoryServiceUnavailable
from invplan.services.providers import InventoryDataProvider, RawItem

log = get_logger("invplan.planning")

R = TypeVar("R")

# Per-item failures that degrade to an ItemError instead of aborting the batch
ITEM_ERRORS = (ValueError, TypeError, KeyError, ArithmeticError)


@contextmanager
def _track(operation: str) -> Iterator[None]:
    """Correlate logs and record metrics for one facade call."""
    t0 = time.perf_counter()
    status = "failed"
    with run_context():
        try:
            yield
            status = "success"
        finally:
            elapsed = time.perf_counter() - t0
            planning_operations_total.labels(operation=operation, status=status).inc()
            planning_operation_duration_seconds.labels(operation=operation).observe(elapsed)
            log.info(
                "planning_operation_finished",
                extra={
                    "operation": operation,
                    "status": status,
                    "elapsed_ms": int(elapsed * 1000),
                },
            )


async def _fetch(
    provider: InventoryDataProvider, operation: str, skus: Sequence[str] | None = None
) -> Sequence[RawItem]:
    """Single provider call; ``skus=None`` fetches the whole catalog."""
    try:
        if skus is None:
            return await provider.fetch_all()
        return await provider.fetch_items(list(skus))
    except Exception as e:
        provider_failures_total.labels(operation=operation).inc()
        log.error(
            "provider_fetch_failed",
            extra={"operation": operation, "sku_count": len(skus or ()), "error": str(e)},
        )
        raise InventoryServiceUnavailable(operation, str(e)) from e


def _raw_sku(raw: RawItem) -> str:
    if isinstance(raw, InventoryItem):
        return raw.sku
    if isinstance(raw, Mapping):
        return str(raw.get("sku", "<unknown>"))
    return "<unknown>"


def _item_error(operation: str, sku: str, error: Exception) -> ItemError:
    planning_item_errors_total.labels(operation=operation).inc()
    log.warning(
        "planning_item_failed",
        extra={"operation": operation, "sku": sku, "error": f"{type(error).__name__}: {error}"},
    )
    return ItemError(sku=sku, operation=operation, error=str(error))


def _validate_items(
    raw_items: Sequence[RawItem], operation: str
) -> tuple[list[InventoryItem], list[ItemError]]:
    """Validate provider items one by one."""
    items: list[InventoryItem] = []
    errors: list[ItemError] = []

    for raw in raw_items:
        try:
            items.append(
                raw if isinstance(raw, InventoryItem) else InventoryItem.model_validate(raw)
            )
        except ITEM_ERRORS as e:
            errors.append(_item_error(operation, _raw_sku(raw), e))

    return items, errors


def _compute(
    items: Sequence[InventoryItem],
    errors: list[ItemError],
    operation: str,
    fn: Callable[[InventoryItem], R],
) -> BatchResult[R]:
    """Apply ``fn`` to every item, isolating per-item failures."""
    result: BatchResult[R] = BatchResult(errors=errors)

    for item in items:
        try:
            result.items.append(fn(item))
        except ITEM_ERRORS as e:
            result.errors.append(_item_error(operation, item.sku, e))

    planning_items_processed_total.labels(operation=operation).inc(len(result.items))
    return result


def _resolve_params(
    params: PlanningParams | Mapping | None, settings: Settings, operation: str
) -> PlanningParams:
    merged = merge_params(settings.default_planning_params(), params)
    if settings.enable_debug:
        log.info(
            "planning_params",
            extra={"operation": operation, "params": merged.model_dump()},
        )
    return merged


def _recommend(
    items: Sequence[InventoryItem],
    errors: list[ItemError],
    params: PlanningParams,
    operation: str,
    now: datetime | None,
) -> BatchResult[InventoryLevelRecommendation]:
    return _compute(items, errors, operation, lambda i: recommend_inventory_level(i, params, now))


def _health(
    items: Sequence[InventoryItem], errors: list[ItemError], settings: Settings, operation: str
) -> BatchResult[InventoryHealthAssessment]:
    def assess(item: InventoryItem) -> InventoryHealthAssessment:
        metrics = analyze_velocity(item, settings.velocity_day_range)
        return assess_health(
            item,
            metrics,
            storage_rate_per_unit=settings.storage_rate_per_unit,
            default_unit_cost=settings.default_unit_cost,
        )

    return _compute(items, errors, operation, assess)


async def get_inventory_recommendations(
    provider: InventoryDataProvider,
    skus: Sequence[str],
    params: PlanningParams | Mapping | None = None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> BatchResult[InventoryLevelRecommendation]:
    """Stocking recommendations for the given SKUs.

    Args:
        provider: Inventory data provider
        skus: SKUs to plan for
        params: Overrides merged onto the default parameter set
        now: Reference time for stockout dates
        settings: Settings override (default: cached settings)

    Returns:
        BatchResult of InventoryLevelRecommendation

    Raises:
        InventoryServiceUnavailable: If the provider call fails

    """
    operation = "get_inventory_recommendations"
    settings = settings or get_settings()

    with _track(operation):
        raw_items = await _fetch(provider, operation, skus)
        merged = _resolve_params(params, settings, operation)
        items, errors = _validate_items(raw_items, operation)
        return _recommend(items, errors, merged, operation, now)


async def get_sales_velocity_metrics(
    provider: InventoryDataProvider,
    skus: Sequence[str],
    day_range: int | None = None,
    *,
    settings: Settings | None = None,
) -> BatchResult[SalesVelocityMetrics]:
    """Velocity metrics and forecasts for the given SKUs over ``day_range`` days."""
    operation = "get_sales_velocity_metrics"
    settings = settings or get_settings()
    if day_range is None:
        day_range = settings.velocity_day_range

    with _track(operation):
        raw_items = await _fetch(provider, operation, skus)
        items, errors = _validate_items(raw_items, operation)
        return _compute(items, errors, operation, lambda i: analyze_velocity(i, day_range))


async def get_fba_fee_estimates(
    provider: InventoryDataProvider,
    skus: Sequence[str],
    *,
    settings: Settings | None = None,
) -> BatchResult[FbaFeeEstimate]:
    """Per-unit fee estimates for the given SKUs."""
    operation = "get_fba_fee_estimates"
    settings = settings or get_settings()
    schedule = FeeSchedule(
        fulfillment_fee_per_unit=settings.fba_fulfillment_fee_per_unit,
        monthly_storage_fee_per_unit=settings.fba_monthly_storage_fee_per_unit,
        long_term_storage_fee_per_unit=settings.fba_long_term_storage_fee_per_unit,
        referral_fee_percent=settings.fba_referral_fee_percent,
        currency_code=settings.currency_code,
    )

    with _track(operation):
        raw_items = await _fetch(provider, operation, skus)
        items, errors = _validate_items(raw_items, operation)
        return _compute(items, errors, operation, lambda i: estimate_fba_fees(i, schedule))


async def assess_inventory_health(
    provider: InventoryDataProvider,
    skus: Sequence[str],
    *,
    settings: Settings | None = None,
) -> BatchResult[InventoryHealthAssessment]:
    """Health classification for the given SKUs."""
    operation = "assess_inventory_health"
    settings = settings or get_settings()

    with _track(operation):
        raw_items = await _fetch(provider, operation, skus)
        items, errors = _validate_items(raw_items, operation)
        return _health(items, errors, settings, operation)


async def get_excess_inventory_report(
    provider: InventoryDataProvider,
    *,
    settings: Settings | None = None,
) -> BatchResult[InventoryHealthAssessment]:
    """Health assessments of every SKU classified as excess."""
    operation = "get_excess_inventory_report"
    settings = settings or get_settings()

    with _track(operation):
        raw_items = await _fetch(provider, operation)
        items, errors = _validate_items(raw_items, operation)
        health = _health(items, errors, settings, operation)
        return BatchResult(
            items=[a for a in health if a.health_status is HealthStatus.EXCESS],
            errors=health.errors,
        )


async def get_low_inventory_report(
    provider: InventoryDataProvider,
    days_threshold: float | None = None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> BatchResult[InventoryLevelRecommendation]:
    """Recommendations for every SKU whose current coverage is below the threshold.

    Args:
        provider: Inventory data provider
        days_threshold: Coverage cutoff in days (default: settings, 14)
        now: Reference time for stockout dates
        settings: Settings override

    Returns:
        BatchResult of InventoryLevelRecommendation with coverage < threshold

    """
    operation = "get_low_inventory_report"
    settings = settings or get_settings()
    if days_threshold is None:
        days_threshold = settings.low_inventory_days_threshold

    with _track(operation):
        raw_items = await _fetch(provider, operation)
        merged = _resolve_params(None, settings, operation)
        items, errors = _validate_items(raw_items, operation)
        recs = _recommend(items, errors, merged, operation, now)
        return BatchResult(
            items=[r for r in recs if r.days_of_coverage_at_current_level < days_threshold],
            errors=recs.errors,
        )


def _budget_applies(params: PlanningParams) -> bool:
    return params.apply_budget_constraints and (
        math.isfinite(params.max_budget) or math.isfinite(params.max_units)
    )


async def _optimal_plan(
    provider: InventoryDataProvider,
    params: PlanningParams | Mapping | None,
    settings: Settings,
    operation: str,
    now: datetime | None,
) -> tuple[BatchResult[InventoryLevelRecommendation], PlanningParams, dict[str, float]]:
    raw_items = await _fetch(provider, operation)
    merged = _resolve_params(params, settings, operation)
    items, errors = _validate_items(raw_items, operation)
    recs = _recommend(items, errors, merged, operation, now)

    unit_costs = {item.sku: item.cost for item in items if item.cost is not None}

    if _budget_applies(merged):
        planned = optimize_for_budget(
            recs.items,
            unit_costs,
            merged.max_budget,
            merged.max_units,
            default_unit_cost=settings.default_unit_cost,
        )
        recs = BatchResult(items=planned, errors=recs.errors)

    return recs, merged, unit_costs


async def get_optimal_reorder_plan(
    provider: InventoryDataProvider,
    params: PlanningParams | Mapping | None = None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> BatchResult[InventoryLevelRecommendation]:
    """Reorder plan across the whole catalog.

    With ``apply_budget_constraints`` and a finite ``max_budget`` or
    ``max_units``, recommendations go through the greedy budget planner and
    come back in priority order; otherwise they are returned unconstrained.

    Raises:
        InventoryServiceUnavailable: If the provider call fails

    """
    operation = "get_optimal_reorder_plan"
    settings = settings or get_settings()

    with _track(operation):
        plan, _, _ = await _optimal_plan(provider, params, settings, operation, now)
        return plan


async def get_reorder_plan_summary(
    provider: InventoryDataProvider,
    params: PlanningParams | Mapping | None = None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> tuple[BatchResult[InventoryLevelRecommendation], ReorderPlanSummary]:
    """Optimal reorder plan together with its totals."""
    operation = "get_reorder_plan_summary"
    settings = settings or get_settings()

    with _track(operation):
        plan, merged, unit_costs = await _optimal_plan(provider, params, settings, operation, now)
        summary = summarize_plan(
            plan.items,
            unit_costs,
            max_budget=merged.max_budget,
            max_units=merged.max_units,
            default_unit_cost=settings.default_unit_cost,
        )

        reorder_plan_units.set(summary.total_units)
        reorder_plan_cost.set(summary.total_cost)

        log.info(
            "reorder_plan_summarized",
            extra={
                "skus_to_reorder": summary.skus_to_reorder,
                "reduced_skus": summary.reduced_skus,
                "total_units": summary.total_units,
                "total_cost": round(summary.total_cost, 2),
            },
        )
        return plan, summary


__all__ = [
    "get_inventory_recommendations",
    "get_sales_velocity_metrics",
    "get_fba_fee_estimates",
    "assess_inventory_health",
    "get_excess_inventory_report",
    "get_low_inventory_report",
    "get_optimal_reorder_plan",
    "get_reorder_plan_summary",
]
