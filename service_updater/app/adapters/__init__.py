"""
Adapters package for the Updater service.

Contains the HTTP client wrapper for the upstream origin. Adapters
translate transport responses into models and shared errors, and hold
no state of their own.
"""

from .origin_client import OriginClient

__all__ = [
    "OriginClient",
]
