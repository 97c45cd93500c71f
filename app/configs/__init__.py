from app.configs.settings import (
    CacheConfig,
    LimiterConfig,
    file_logger,
    pool_kwargs,
    settings,
)

__all__ = [
    "CacheConfig",
    "LimiterConfig",
    "file_logger",
    "pool_kwargs",
    "settings",
]
