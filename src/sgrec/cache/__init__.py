"""
Cache module for SoundGraph recommendations.

This module provides the time-bounded cache of generated recommendation lists,
so repeated requests within the TTL skip regeneration.
"""

from .recommendation_cache import (
    SEEDED_RADIO,
    WEEKLY_DISCOVERY,
    CacheEntry,
    RecommendationCache,
)

__all__ = ["CacheEntry", "RecommendationCache", "SEEDED_RADIO", "WEEKLY_DISCOVERY"]
