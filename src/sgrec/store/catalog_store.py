"""
Catalog store interface consumed by the recommendation engine.

The engine only needs snapshot reads of listeners and tracks plus lookup by
id. Any object with these four methods can be injected.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from sgrec.models import Listener, Track
from sgrec.structures import HashIndex


@runtime_checkable
class CatalogStore(Protocol):
    def get_all_listeners(self) -> List[Listener]: ...

    def get_all_tracks(self) -> List[Track]: ...

    def get_listener_by_id(self, listener_id: str) -> Optional[Listener]: ...

    def get_track_by_id(self, track_id: str) -> Optional[Track]: ...


class InMemoryCatalogStore:
    """Catalog held entirely in memory, keyed by id."""

    def __init__(self, listeners: Iterable[Listener] = (), tracks: Iterable[Track] = ()):
        self._listeners: HashIndex[str, Listener] = HashIndex()
        self._tracks: HashIndex[str, Track] = HashIndex()
        for track in tracks:
            self.add_track(track)
        for listener in listeners:
            self.add_listener(listener)

    def add_listener(self, listener: Listener):
        self._listeners.put(listener.listener_id, listener)

    def add_track(self, track: Track):
        self._tracks.put(track.track_id, track)

    def get_all_listeners(self) -> List[Listener]:
        return sorted(self._listeners.values(), key=lambda l: l.listener_id)

    def get_all_tracks(self) -> List[Track]:
        return sorted(self._tracks.values(), key=lambda t: t.track_id)

    def get_listener_by_id(self, listener_id: str) -> Optional[Listener]:
        return self._listeners.get(listener_id)

    def get_track_by_id(self, track_id: str) -> Optional[Track]:
        return self._tracks.get(track_id)
