"""
Recommendation engine.

Blends three independently scored candidate pools into one ranked list per
request:
- collaborative: favorites of similar listeners (similarity graph)
- content-based: tracks matching the listener's genre/artist history
- popularity: globally popular tracks

Results are deduplicated (first seen wins), shuffled for variety and cached
per listener for a fixed TTL.
"""

from __future__ import annotations
import math
import random
import threading
from collections import Counter
from typing import Callable, Iterable, List, Optional, Set, Union

from loguru import logger

from sgrec.cache import SEEDED_RADIO, WEEKLY_DISCOVERY, RecommendationCache
from sgrec.config import EngineConfig
from sgrec.errors import check_limit
from sgrec.graph import SimilarityGraph
from sgrec.models import Listener, SimilarListener, Track
from sgrec.store import CatalogStore

SeedTrack = Union[Track, str, None]


class RecommendationEngine:
    """
    Generates weekly discovery lists, seeded radios and similar-listener
    lookups from a catalog store.

    All collaborators are injected: the catalog store, the configuration, the
    shuffle randomness and the cache clock. The similarity graph is built from
    the store at construction and replaced wholesale by ``refresh_system``.
    """

    # Content-based scoring weights
    GENRE_MATCH_WEIGHT = 2.0
    ARTIST_MATCH_WEIGHT = 3.0
    PLAYS_WEIGHT = 0.1
    FAVORITES_WEIGHT = 0.2
    RATING_WEIGHT = 0.5

    def __init__(
        self,
        store: CatalogStore,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
        graph_factory: Optional[Callable[..., SimilarityGraph]] = None,
    ):
        """
        Initialize the engine and build the first similarity graph.

        Args:
            store: Catalog store providing listeners and tracks
            config: Engine configuration (defaults when omitted)
            rng: Randomness source for shuffling; seeded from config when omitted
            clock: Time source for cache expiry, in seconds
            graph_factory: Callable building an empty graph from a SimilarityConfig
        """
        self.store = store
        self.config = (config or EngineConfig()).validate()
        self.rng = rng or random.Random(self.config.shuffle_seed)
        self.cache = RecommendationCache(self.config.cache_ttl_seconds, clock=clock)
        self._graph_factory = graph_factory or SimilarityGraph
        self._lock = threading.Lock()

        logger.info("Initializing recommendation engine...")
        self._graph = self._build_graph()
        logger.info("Recommendation engine initialized")

    @property
    def graph(self) -> SimilarityGraph:
        """Current similarity graph snapshot."""
        return self._graph

    def _build_graph(self) -> SimilarityGraph:
        graph = self._graph_factory(self.config.similarity)
        listeners = self.store.get_all_listeners()
        for listener in listeners:
            graph.add_listener(listener)
        for track in self.store.get_all_tracks():
            graph.add_track(track)
        if listeners:
            graph.compute_similarities()
        return graph

    # === Public surface ===

    def generate_weekly_discovery(self, listener_id: str, limit: Optional[int] = None) -> List[Track]:
        """
        Build a personalized discovery list.

        Args:
            listener_id: Listener to generate for
            limit: Number of tracks (engine default when omitted)

        Returns:
            Up to ``limit`` shuffled tracks; empty for an unknown listener
        """
        limit = check_limit(self.config.default_limit if limit is None else limit)
        listener = self.store.get_listener_by_id(listener_id)
        if listener is None or limit == 0:
            return []

        cached = self.cache.get(listener_id, WEEKLY_DISCOVERY, limit)
        if cached is not None:
            logger.debug(f"Weekly discovery cache hit for {listener_id}")
            return self._resolve_tracks(cached)

        logger.info(f"Generating weekly discovery for {listener_id}")
        graph = self._graph
        tracks = self.store.get_all_tracks()
        mix = self.config.weekly_mix

        pool: List[Track] = []
        seen: Set[str] = set()
        collaborative = graph.recommend_tracks(listener_id, int(limit * mix.collaborative))
        self._extend_unique(pool, seen, collaborative)
        content = self._content_based(listener, tracks, int(limit * mix.content))
        self._extend_unique(pool, seen, content)
        popular = self._popular_for(listener, tracks, int(limit * mix.popularity))
        self._extend_unique(pool, seen, popular)

        if len(pool) < limit:
            extra = self._genre_fill(listener, tracks, limit - len(pool), exclude=seen)
            self._extend_unique(pool, seen, extra)

        logger.debug(
            f"Weekly pool for {listener_id}: {len(collaborative)} collaborative, "
            f"{len(content)} content, {len(popular)} popular, {len(pool)} total"
        )

        self.rng.shuffle(pool)
        pool = pool[:limit]
        self.cache.put(listener_id, WEEKLY_DISCOVERY, [t.track_id for t in pool])

        logger.info(f"Weekly discovery generated for {listener_id}: {len(pool)} tracks")
        return pool

    def generate_seeded_radio(self, listener_id: str, seed_track: SeedTrack,
                              limit: Optional[int] = None) -> List[Track]:
        """
        Build a radio stream around one seed track.

        Args:
            listener_id: Listener to generate for
            seed_track: Seed Track or track id; a missing or malformed seed
                falls back to weekly discovery
            limit: Number of tracks (engine default when omitted)

        Returns:
            Up to ``limit`` shuffled tracks, never including the seed
        """
        limit = check_limit(self.config.default_limit if limit is None else limit)
        seed = self._resolve_seed(seed_track)
        if seed is None:
            logger.debug(f"No usable seed for {listener_id}, falling back to weekly discovery")
            return self.generate_weekly_discovery(listener_id, limit)

        listener = self.store.get_listener_by_id(listener_id)
        if listener is None or limit == 0:
            return []

        kind = f"{SEEDED_RADIO}:{seed.track_id}"
        cached = self.cache.get(listener_id, kind, limit)
        if cached is not None:
            logger.debug(f"Radio cache hit for {listener_id} seeded by {seed.track_id}")
            return self._resolve_tracks(cached)

        logger.info(f"Generating radio for {listener_id} seeded by '{seed.title}'")
        graph = self._graph
        tracks = self.store.get_all_tracks()
        mix = self.config.radio_mix

        playlist: List[Track] = []
        used: Set[str] = {seed.track_id}
        stages = [
            self._same_artist(seed, tracks, int(limit * mix.same_artist)),
            self._same_genre(seed, listener, tracks, int(limit * mix.same_genre)),
            graph.recommend_tracks(listener_id, int(limit * mix.collaborative)),
        ]
        for stage in stages:
            self._extend_unique(playlist, used, stage, cap=limit)

        if len(playlist) < limit:
            fill = self._rank_by_popularity(t for t in tracks if t.track_id not in used)
            self._extend_unique(playlist, used, fill[: limit - len(playlist)], cap=limit)

        self.rng.shuffle(playlist)
        self.cache.put(listener_id, kind, [t.track_id for t in playlist])

        logger.info(f"Radio generated for {listener_id}: {len(playlist)} tracks")
        return playlist

    def find_similar_listeners(self, listener_id: str, limit: Optional[int] = None) -> List[SimilarListener]:
        """Listeners with the strongest transitive similarity to ``listener_id``."""
        limit = check_limit(self.config.similar_listener_limit if limit is None else limit)
        return self._graph.find_similar_listeners(listener_id, limit)

    def refresh_system(self):
        """Rebuild the similarity graph from the store and discard the cache."""
        logger.info("Refreshing recommendation system...")
        graph = self._build_graph()
        with self._lock:
            self._graph = graph
            self.cache.clear()
        logger.info("Recommendation system refreshed")

    def prune_expired_cache(self) -> int:
        """Remove expired cache entries only; returns how many were dropped."""
        return self.cache.prune_expired()

    def get_statistics(self) -> str:
        """Human-readable summary of the graph and cache."""
        stats = self._graph.get_statistics()
        return "\n".join([
            "=== Recommendation Engine ===",
            f"Listeners: {stats['listeners']}",
            f"Similarity edges: {stats['edges']}",
            f"Density: {stats['density']:.3f}",
            f"Connected components: {stats['connected_components']}",
            f"Tracks indexed: {stats['tracks']}",
            f"Cache entries: {self.cache.size()}",
            "Strategies: collaborative, content-based, popularity",
        ])

    # === Scoring strategies ===

    @classmethod
    def content_score(cls, track: Track, genre_freq: Counter, artist_freq: Counter) -> float:
        """Score a candidate against the listener's genre/artist history."""
        return (
            cls.GENRE_MATCH_WEIGHT * genre_freq.get(track.genre, 0)
            + cls.ARTIST_MATCH_WEIGHT * artist_freq.get(track.artist, 0)
            + cls.PLAYS_WEIGHT * math.log1p(max(track.play_count, 0))
            + cls.FAVORITES_WEIGHT * math.log1p(max(track.favorite_count, 0))
            + cls.RATING_WEIGHT * track.average_rating
        )

    def _content_based(self, listener: Listener, tracks: List[Track], limit: int) -> List[Track]:
        if limit <= 0:
            return []

        genre_freq: Counter = Counter()
        artist_freq: Counter = Counter()
        for track_id in listener.favorite_tracks:
            track = self._lookup_track(track_id)
            if track is None:
                continue
            if track.genre:
                genre_freq[track.genre] += 1
            if track.artist:
                artist_freq[track.artist] += 1

        scored = []
        for track in tracks:
            if track.track_id in listener.favorite_tracks:
                continue
            score = self.content_score(track, genre_freq, artist_freq)
            if score > 0:
                scored.append((score, track.popularity_score, track))

        scored.sort(key=lambda s: (-s[0], -s[1], s[2].track_id))
        return [track for _, _, track in scored[:limit]]

    def _popular_for(self, listener: Listener, tracks: List[Track], limit: int) -> List[Track]:
        if limit <= 0:
            return []
        candidates = (t for t in tracks if t.track_id not in listener.favorite_tracks)
        return self._rank_by_popularity(candidates)[:limit]

    def _genre_fill(self, listener: Listener, tracks: List[Track], remaining: int,
                    exclude: Set[str]) -> List[Track]:
        """Popular tracks from the listener's declared genres, split evenly across them."""
        genres = sorted(listener.favorite_genres)
        if remaining <= 0 or not genres:
            return []

        per_genre = -(-remaining // len(genres))
        ranked = self._rank_by_popularity(
            t for t in tracks
            if t.track_id not in listener.favorite_tracks and t.track_id not in exclude
        )
        picked: List[Track] = []
        for genre in genres:
            wanted = genre.lower()
            picked.extend([t for t in ranked if t.genre.lower() == wanted][:per_genre])
            if len(picked) >= remaining:
                break
        return picked[:remaining]

    def _same_artist(self, seed: Track, tracks: List[Track], limit: int) -> List[Track]:
        if limit <= 0 or not seed.artist:
            return []
        # candidate credits the seed's primary artist, as lead or collaborator
        artist = seed.artist.lower()
        matches = (
            t for t in tracks
            if t.track_id != seed.track_id and artist in {a.lower() for a in t.all_artists()}
        )
        return self._rank_by_popularity(matches)[:limit]

    def _same_genre(self, seed: Track, listener: Listener, tracks: List[Track], limit: int) -> List[Track]:
        if limit <= 0 or not seed.genre:
            return []
        genre = seed.genre.lower()
        matches = (
            t for t in tracks
            if t.track_id != seed.track_id
            and t.track_id not in listener.favorite_tracks
            and t.genre.lower() == genre
        )
        return self._rank_by_popularity(matches)[:limit]

    # === Helpers ===

    @staticmethod
    def _rank_by_popularity(tracks: Iterable[Track]) -> List[Track]:
        return sorted(tracks, key=lambda t: (-t.popularity_score, t.track_id))

    @staticmethod
    def _extend_unique(target: List[Track], seen: Set[str], source: Iterable[Track],
                       cap: Optional[int] = None):
        for track in source:
            if cap is not None and len(target) >= cap:
                return
            if track.track_id in seen:
                continue
            target.append(track)
            seen.add(track.track_id)

    def _lookup_track(self, track_id: str) -> Optional[Track]:
        try:
            return self.store.get_track_by_id(track_id)
        except (LookupError, ValueError) as e:
            logger.debug(f"Skipping unresolvable track {track_id}: {e}")
            return None

    def _resolve_tracks(self, track_ids: Iterable[str]) -> List[Track]:
        resolved = []
        for track_id in track_ids:
            track = self._lookup_track(track_id)
            if track is not None:
                resolved.append(track)
        return resolved

    def _resolve_seed(self, seed_track: SeedTrack) -> Optional[Track]:
        if isinstance(seed_track, Track):
            return seed_track if seed_track.track_id else None
        if isinstance(seed_track, str) and seed_track:
            return self._lookup_track(seed_track)
        return None
