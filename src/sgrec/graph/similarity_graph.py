"""
Listener similarity graph.

Undirected weighted graph over listener ids. Edges come from pairwise taste
similarity (Jaccard over favorite tracks, genres and artists) and are rebuilt
from scratch on every scoring pass; they are never persisted or patched.

On top of the edges the graph answers:
- who is most similar to a listener (max-min propagation search)
- what a listener should hear next (favorites of similar listeners)
"""

from __future__ import annotations
import heapq
import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

import networkx as nx
from loguru import logger

from sgrec.config import SimilarityConfig
from sgrec.errors import check_limit
from sgrec.models import Listener, SimilarityEdge, SimilarListener, Track
from sgrec.structures import HashIndex


class GraphState(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"
    SCORED = "scored"


def jaccard(a: Iterable[Any], b: Iterable[Any]) -> float:
    """|A ∩ B| / |A ∪ B|, defined as 0 when both sets are empty."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


class SimilarityGraph:
    """
    Weighted listener-to-listener graph.

    Listeners and tracks are registered first, then ``compute_similarities``
    scores every unordered pair. The engine treats a scored graph as a
    read-only snapshot and builds a fresh instance instead of rescoring one
    that may be in use.
    """

    def __init__(self, config: Optional[SimilarityConfig] = None):
        """
        Initialize an empty graph.

        Args:
            config: Similarity weights and thresholds (defaults when omitted)
        """
        self.config = config or SimilarityConfig()
        self.config.validate()
        self._adjacency: HashIndex[str, List[SimilarityEdge]] = HashIndex()
        self._listeners: HashIndex[str, Listener] = HashIndex()
        self._tracks: HashIndex[str, Track] = HashIndex()
        self._edge_count = 0
        self.state = GraphState.EMPTY

    # === Population ===

    def add_listener(self, listener: Optional[Listener]):
        """Register a listener node; no-op if it is already present."""
        if listener is None or listener.listener_id in self._listeners:
            return
        self._listeners.put(listener.listener_id, listener)
        self._adjacency.put(listener.listener_id, [])
        self.state = GraphState.POPULATED

    def add_track(self, track: Optional[Track]):
        """Register a track for artist resolution and recommendations."""
        if track is None or track.track_id in self._tracks:
            return
        self._tracks.put(track.track_id, track)

    def get_listener(self, listener_id: str) -> Optional[Listener]:
        return self._listeners.get(listener_id)

    def get_track(self, track_id: str) -> Optional[Track]:
        return self._tracks.get(track_id)

    @property
    def listener_count(self) -> int:
        return self._listeners.size()

    @property
    def track_count(self) -> int:
        return self._tracks.size()

    @property
    def edge_count(self) -> int:
        """Number of undirected edges."""
        return self._edge_count

    # === Scoring ===

    def _artist_set(self, track_ids: Iterable[str]) -> Set[str]:
        artists: Set[str] = set()
        for track_id in track_ids:
            track = self._tracks.get(track_id)
            if track is None:
                continue
            artists |= track.all_artists()
        return artists

    def compute_similarity(self, a: Listener, b: Listener) -> float:
        """
        Composite taste similarity between two listeners, in [0, 1].

        Weighted sum of the Jaccard indexes over favorite tracks, favorite
        genres and the artists behind the favorite tracks.
        """
        if a is None or b is None:
            return 0.0
        cfg = self.config
        score = (
            cfg.track_weight * jaccard(a.favorite_tracks, b.favorite_tracks)
            + cfg.genre_weight * jaccard(a.favorite_genres, b.favorite_genres)
            + cfg.artist_weight * jaccard(
                self._artist_set(a.favorite_tracks), self._artist_set(b.favorite_tracks)
            )
        )
        return min(1.0, score)

    def _clear_edges(self):
        for listener_id in self._adjacency.keys():
            self._adjacency.put(listener_id, [])
        self._edge_count = 0

    def _add_edge(self, a: str, b: str, weight: float):
        edges_a = self._adjacency.get(a)
        edges_b = self._adjacency.get(b)
        if edges_a is None or edges_b is None:
            return
        edges_a.append(SimilarityEdge(b, weight))
        edges_b.append(SimilarityEdge(a, weight))
        self._edge_count += 1

    def compute_similarities(self) -> Dict[str, Any]:
        """
        Clear all edges and score every unordered listener pair.

        Quadratic in the number of listeners. When a rebuild budget is
        configured, pair enumeration stops once it is spent.

        Returns:
            Statistics about the scoring pass
        """
        self._clear_edges()
        ids = self._listeners.keys()
        threshold = self.config.threshold
        budget = self.config.rebuild_budget_seconds
        started = time.monotonic()
        pairs_scored = 0
        truncated = False

        logger.info(f"Scoring similarities for {len(ids)} listeners")

        for i, id_a in enumerate(ids):
            if budget is not None and time.monotonic() - started > budget:
                truncated = True
                logger.warning(
                    f"Similarity rebuild exceeded {budget}s budget after {pairs_scored} pairs, "
                    "keeping partial graph"
                )
                break
            listener_a = self._listeners.get(id_a)
            for id_b in ids[i + 1:]:
                score = self.compute_similarity(listener_a, self._listeners.get(id_b))
                pairs_scored += 1
                if score > threshold:
                    self._add_edge(id_a, id_b, score)

        if ids:
            self.state = GraphState.SCORED

        stats = {
            "listeners": len(ids),
            "pairs_scored": pairs_scored,
            "edges": self._edge_count,
            "truncated": truncated,
            "elapsed_seconds": time.monotonic() - started,
        }
        logger.success(f"Similarity graph scored: {stats['listeners']} listeners, {stats['edges']} edges")
        return stats

    def neighbors(self, listener_id: str) -> List[SimilarityEdge]:
        """Direct edges of a listener, strongest first."""
        edges = self._adjacency.get(listener_id) or []
        return sorted(edges, key=lambda e: (-e.weight, e.neighbor_id))

    def edge_weight(self, a: str, b: str) -> Optional[float]:
        for edge in self._adjacency.get(a) or []:
            if edge.neighbor_id == b:
                return edge.weight
        return None

    # === Queries ===

    def _propagate(self, origin: str) -> Dict[str, float]:
        confidence = {listener_id: 0.0 for listener_id in self._adjacency.keys()}
        confidence[origin] = 1.0
        visited: Set[str] = set()
        frontier = [(-1.0, origin)]

        while frontier:
            negative, current = heapq.heappop(frontier)
            if current in visited:
                continue
            visited.add(current)
            current_confidence = -negative

            for edge in self._adjacency.get(current) or []:
                candidate = min(current_confidence, edge.weight)
                if candidate > confidence.get(edge.neighbor_id, 0.0):
                    confidence[edge.neighbor_id] = candidate
                    heapq.heappush(frontier, (-candidate, edge.neighbor_id))

        return confidence

    def find_similar_listeners(self, listener_id: str, limit: int) -> List[SimilarListener]:
        """
        Rank listeners by transitive similarity to ``listener_id``.

        Best-path search that maximizes the weakest edge along the path, so
        similarity flows through chains of listeners but never grows.

        Args:
            listener_id: Origin listener
            limit: Maximum listeners to return

        Returns:
            Similar listeners sorted by confidence descending, then by id;
            empty for an unknown listener
        """
        check_limit(limit)
        if limit == 0 or listener_id not in self._adjacency:
            return []

        confidence = self._propagate(listener_id)
        results = []
        for other_id, value in confidence.items():
            if other_id == listener_id or value <= self.config.threshold:
                continue
            listener = self._listeners.get(other_id)
            if listener is not None:
                results.append(SimilarListener(listener, value))

        results.sort(key=lambda s: (-s.confidence, s.listener_id))
        return results[:limit]

    def recommend_tracks(self, listener_id: str, limit: int) -> List[Track]:
        """
        Collaborative recommendations from the most similar listeners.

        Each neighbor adds its confidence to every favorite track the origin
        has not favorited yet; several weak endorsements can outrank one
        strong one.

        Args:
            listener_id: Listener to recommend for
            limit: Maximum tracks to return

        Returns:
            Tracks sorted by accumulated score (popularity, then track id, breaks ties)
        """
        check_limit(limit)
        listener = self._listeners.get(listener_id)
        if listener is None or limit == 0:
            return []

        own = set(listener.favorite_tracks)
        scores: Dict[str, float] = {}
        for similar in self.find_similar_listeners(listener_id, self.config.neighbor_limit):
            for track_id in similar.listener.favorite_tracks:
                if track_id in own:
                    continue
                scores[track_id] = scores.get(track_id, 0.0) + similar.confidence

        ranked = []
        for track_id, score in scores.items():
            track = self._tracks.get(track_id)
            if track is None:
                continue
            ranked.append((score, track.popularity_score, track))

        ranked.sort(key=lambda r: (-r[0], -r[1], r[2].track_id))
        return [track for _, _, track in ranked[:limit]]

    # === Diagnostics ===

    def to_networkx(self) -> nx.Graph:
        """Export the listener graph as an undirected NetworkX graph."""
        graph = nx.Graph()
        for listener_id in self._adjacency.keys():
            graph.add_node(listener_id, node_type="listener")
        for listener_id, edges in self._adjacency.items():
            for edge in edges:
                graph.add_edge(listener_id, edge.neighbor_id, weight=edge.weight)
        return graph

    def get_statistics(self) -> Dict[str, Any]:
        """Get statistics about the graph."""
        if self.listener_count == 0:
            return {
                "state": self.state.value,
                "listeners": 0,
                "edges": 0,
                "tracks": self.track_count,
                "density": 0.0,
                "avg_degree": 0.0,
                "max_degree": 0,
                "connected_components": 0,
            }

        graph = self.to_networkx()
        degrees = [d for _, d in graph.degree()]
        return {
            "state": self.state.value,
            "listeners": self.listener_count,
            "edges": self._edge_count,
            "tracks": self.track_count,
            "density": nx.density(graph),
            "avg_degree": sum(degrees) / len(degrees),
            "max_degree": max(degrees),
            "connected_components": nx.number_connected_components(graph),
        }
