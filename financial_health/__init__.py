"""Financial health scoring and retirement projection engine."""

from .config import ConfigError, EngineConfig, default_config, load_config
from .engine import (
    adjust_for_inflation,
    analyze_rebalancing_needs,
    calculate_financial_health_score,
    calculate_time_based_returns,
    national_insurance,
)
from .models import HealthReport, HealthScoreOptions

__all__ = [
    "ConfigError",
    "EngineConfig",
    "HealthReport",
    "HealthScoreOptions",
    "adjust_for_inflation",
    "analyze_rebalancing_needs",
    "calculate_financial_health_score",
    "calculate_time_based_returns",
    "default_config",
    "load_config",
    "national_insurance",
]
