"""
Tests for the SQLite catalog store.
"""

import random
import shutil
import tempfile
from pathlib import Path

import pytest

from sgrec.engine import RecommendationEngine
from sgrec.models import Listener, Track
from sgrec.store import CatalogStore, SQLiteCatalogStore


class TestSQLiteCatalogStore:
    """Persistence of tracks and listeners."""

    def setup_method(self):
        """Setup test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / "catalog" / "test.db"
        self.store = SQLiteCatalogStore(self.db_path)

    def teardown_method(self):
        """Cleanup test fixtures."""
        self.store.close()
        shutil.rmtree(self.temp_dir)

    def test_schema_creation(self):
        """Test that the database and its parent directory are created."""
        assert self.db_path.exists()
        stats = self.store.get_store_stats()
        assert stats == {
            "tracks": 0,
            "collaborations": 0,
            "listeners": 0,
            "favorites": 0,
            "favorite_genres": 0,
            "follows": 0,
        }

    def test_satisfies_catalog_protocol(self):
        assert isinstance(self.store, CatalogStore)

    def test_track_roundtrip(self):
        track = Track(
            "t1",
            title="Night Drive",
            artist="Band A",
            collaborators={"Guest B", "Guest C"},
            genre="synthwave",
            play_count=1200,
            favorite_count=80,
            average_rating=4.5,
        )
        assert self.store.cache_track(track) == "t1"

        loaded = self.store.get_track_by_id("t1")
        assert loaded == track
        assert self.store.get_store_stats()["collaborations"] == 2

    def test_track_replace(self):
        self.store.cache_track(Track("t1", title="Old", collaborators={"X"}))
        self.store.cache_track(Track("t1", title="New"))

        loaded = self.store.get_track_by_id("t1")
        assert loaded.title == "New"
        assert loaded.collaborators == set()
        assert self.store.get_store_stats()["tracks"] == 1

    def test_track_without_artist_roundtrip(self):
        self.store.cache_track(Track("t9", title="Field Recording"))

        loaded = self.store.get_track_by_id("t9")
        assert loaded.artist == ""
        assert loaded.all_artists() == set()

    def test_listener_roundtrip(self):
        listener = Listener(
            "u1",
            favorite_tracks={"t1", "t2", "ghost"},
            favorite_genres={"rock"},
            followed_listeners={"u2"},
        )
        assert self.store.cache_listener(listener) == "u1"

        assert self.store.get_listener_by_id("u1") == listener
        stats = self.store.get_store_stats()
        assert stats["favorites"] == 3
        assert stats["favorite_genres"] == 1
        assert stats["follows"] == 1

    def test_listener_replace_drops_old_favorites(self):
        self.store.cache_listener(Listener("u1", {"t1", "t2"}, {"rock"}))
        self.store.cache_listener(Listener("u1", {"t3"}))

        loaded = self.store.get_listener_by_id("u1")
        assert loaded.favorite_tracks == {"t3"}
        assert loaded.favorite_genres == set()

    def test_missing_records(self):
        assert self.store.get_track_by_id("nope") is None
        assert self.store.get_listener_by_id("nope") is None

    def test_requires_ids(self):
        with pytest.raises(ValueError):
            self.store.cache_track(Track(""))
        with pytest.raises(ValueError):
            self.store.cache_listener(Listener(""))

    def test_batches_skip_missing_ids(self):
        stored = self.store.cache_tracks_batch([Track("b"), Track(""), Track("a")])
        assert stored == ["b", "a"]
        assert [t.track_id for t in self.store.get_all_tracks()] == ["a", "b"]

        stored = self.store.cache_listeners_batch([Listener("u2"), Listener(""), Listener("u1")])
        assert stored == ["u2", "u1"]
        assert [l.listener_id for l in self.store.get_all_listeners()] == ["u1", "u2"]

    def test_persists_across_connections(self):
        self.store.cache_track(Track("t1", artist="A"))
        self.store.close()

        with SQLiteCatalogStore(self.db_path) as reopened:
            assert reopened.get_track_by_id("t1").artist == "A"

        self.store = SQLiteCatalogStore(self.db_path)

    def test_engine_over_sqlite(self):
        """The engine runs unchanged on top of the SQLite snapshot."""
        self.store.cache_tracks_batch([
            Track("t1", artist="A", genre="rock", play_count=10),
            Track("t2", artist="A", genre="rock", play_count=20),
            Track("t3", artist="B", genre="rock", play_count=30),
            Track("t4", artist="C", genre="jazz", play_count=40),
        ])
        self.store.cache_listeners_batch([
            Listener("u1", {"t1", "t2"}, {"rock"}),
            Listener("u2", {"t1", "t2", "t3"}, {"rock"}),
            Listener("u3", {"t4"}, {"jazz"}),
        ])

        engine = RecommendationEngine(self.store, rng=random.Random(0))
        similar = engine.find_similar_listeners("u1")
        assert [s.listener_id for s in similar] == ["u2"]

        weekly = [t.track_id for t in engine.generate_weekly_discovery("u1", 5)]
        assert "t3" in weekly
        assert set(weekly).isdisjoint({"t1", "t2"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
