"""
Gateway caching package.

Provides the process-local content cache and request coalescing used by
the content gateway to avoid repeated generation provider calls.
"""

from .single_flight import SingleFlight
from .ttl_cache import CacheEntry, TTLCache

__all__ = ["CacheEntry", "SingleFlight", "TTLCache"]
