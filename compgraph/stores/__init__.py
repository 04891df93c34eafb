"""Persistent stores used by compgraph."""

from .result_cache import CachedAnalysis, CacheStats, ResultCache, cache_key

__all__ = ["CacheStats", "CachedAnalysis", "ResultCache", "cache_key"]
