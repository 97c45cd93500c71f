from app.managers.cache_manager import CacheManager, cache_manager
from app.managers.metrics import MetricsManager, get_system_metrics, metrics_manager
from app.managers.rate_limiter import limiter, rate_limit_exceeded_handler

__all__ = [
    "CacheManager",
    "MetricsManager",
    "cache_manager",
    "get_system_metrics",
    "limiter",
    "metrics_manager",
    "rate_limit_exceeded_handler",
]
