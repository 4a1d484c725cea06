"""Planning services over an external inventory data provider."""

from invplan.services.errors import InventoryServiceUnavailable
from invplan.services.planning import (
    assess_inventory_health,
    get_excess_inventory_report,
    get_fba_fee_estimates,
    get_inventory_recommendations,
    get_low_inventory_report,
    get_optimal_reorder_plan,
    get_reorder_plan_summary,
    get_sales_velocity_metrics,
)
from invplan.services.providers import (
    CallableInventoryProvider,
    InMemoryInventoryProvider,
    InventoryDataProvider,
)

__all__ = [
    "InventoryServiceUnavailable",
    "InventoryDataProvider",
    "InMemoryInventoryProvider",
    "CallableInventoryProvider",
    "get_inventory_recommendations",
    "get_sales_velocity_metrics",
    "get_fba_fee_estimates",
    "assess_inventory_health",
    "get_excess_inventory_report",
    "get_low_inventory_report",
    "get_optimal_reorder_plan",
    "get_reorder_plan_summary",
]
