"""
Freshness policy package for the Updater service.
"""

from .engine import DEFAULT_CACHE_TIMEOUT_MS, FreshnessEngine, UpdaterEnv

__all__ = [
    "DEFAULT_CACHE_TIMEOUT_MS",
    "FreshnessEngine",
    "UpdaterEnv",
]
