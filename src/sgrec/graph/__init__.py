"""
Graph module for SoundGraph recommendations.

This module provides the listener similarity graph and its propagation search.
"""

from .similarity_graph import GraphState, SimilarityGraph, jaccard

__all__ = ["GraphState", "SimilarityGraph", "jaccard"]
