"""
Engine module for SoundGraph recommendations.

This module blends collaborative, content-based and popularity candidates into
weekly discovery lists and seeded radios.
"""

from .recommendation_engine import RecommendationEngine

__all__ = ["RecommendationEngine"]
