# Application Stats Package
from .metrics_calculator import MetricsCalculator
from .service import Achievement, DetailedStats, Progress, ProgressService, StatisticsSummary

__all__ = [
    "MetricsCalculator",
    "ProgressService",
    "Progress",
    "StatisticsSummary",
    "DetailedStats",
    "Achievement",
]
