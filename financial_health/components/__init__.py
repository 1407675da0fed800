"""Expose component submodules for convenience."""

from .charts import (
    deviation_chart,
    factor_bar_chart,
    factor_table,
    projection_area_chart,
    purchasing_power_chart,
    score_gauge,
)
from .insights import generate_insights, rebalancing_summary

__all__ = [
    "deviation_chart",
    "factor_bar_chart",
    "factor_table",
    "generate_insights",
    "projection_area_chart",
    "purchasing_power_chart",
    "rebalancing_summary",
    "score_gauge",
]
