"""
Structures module for SoundGraph recommendations.

Provides the hash index used for identifier lookups across the core.
"""

from .hash_index import HashIndex

__all__ = ["HashIndex"]
