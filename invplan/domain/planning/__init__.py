"""Inventory planning domain logic: velocity, recommendations, health, fees, reorder plans."""

from invplan.domain.planning.fees import FeeSchedule, estimate_fba_fees
from invplan.domain.planning.health import assess_health
from invplan.domain.planning.optimizer import optimize_for_budget
from invplan.domain.planning.recommend import recommend_inventory_level
from invplan.domain.planning.summary import summarize_plan
from invplan.domain.planning.velocity import analyze_velocity

__all__ = [
    "analyze_velocity",
    "recommend_inventory_level",
    "assess_health",
    "FeeSchedule",
    "estimate_fba_fees",
    "optimize_for_budget",
    "summarize_plan",
]
