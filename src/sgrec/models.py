"""
Catalog records consumed by the recommendation core.

Listeners and tracks are owned by the catalog store; the core only reads them
during a computation pass.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Set

PLAY_WEIGHT = 1.0
FAVORITE_WEIGHT = 2.0
RATING_WEIGHT = 100.0


@dataclass
class Track:
    """A catalog track with its engagement counters."""

    track_id: str
    title: str = "Untitled"
    artist: str = ""
    collaborators: Set[str] = field(default_factory=set)
    genre: str = ""
    play_count: int = 0
    favorite_count: int = 0
    average_rating: float = 0.0

    @property
    def popularity_score(self) -> float:
        """Plays, favorites and rating folded into one monotonic score."""
        return (
            self.play_count * PLAY_WEIGHT
            + self.favorite_count * FAVORITE_WEIGHT
            + self.average_rating * RATING_WEIGHT
        )

    def all_artists(self) -> Set[str]:
        """Primary artist plus collaborators."""
        artists = set(self.collaborators)
        if self.artist:
            artists.add(self.artist)
        return artists

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        track_id = data.get("track_id") or data.get("id")
        if not track_id:
            raise ValueError("Track data must contain 'track_id' field")
        return cls(
            track_id=str(track_id),
            title=data.get("title") or "Untitled",
            artist=data.get("artist") or "",
            collaborators=set(data.get("collaborators") or []),
            genre=data.get("genre") or "",
            play_count=int(data.get("play_count", 0) or 0),
            favorite_count=int(data.get("favorite_count", 0) or 0),
            average_rating=float(data.get("average_rating", 0.0) or 0.0),
        )


@dataclass
class Listener:
    """A listener and the taste signals the core reads from them."""

    listener_id: str
    favorite_tracks: Set[str] = field(default_factory=set)
    favorite_genres: Set[str] = field(default_factory=set)
    followed_listeners: Set[str] = field(default_factory=set)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Listener":
        listener_id = data.get("listener_id") or data.get("id")
        if not listener_id:
            raise ValueError("Listener data must contain 'listener_id' field")
        return cls(
            listener_id=str(listener_id),
            favorite_tracks={str(t) for t in data.get("favorite_tracks") or []},
            favorite_genres=set(data.get("favorite_genres") or []),
            followed_listeners={str(u) for u in data.get("followed_listeners") or []},
        )


@dataclass(frozen=True)
class SimilarityEdge:
    """One direction of a symmetric similarity edge."""

    neighbor_id: str
    weight: float


@dataclass(frozen=True)
class SimilarListener:
    """A listener reached by the propagation search."""

    listener: Listener
    confidence: float

    @property
    def listener_id(self) -> str:
        return self.listener.listener_id
