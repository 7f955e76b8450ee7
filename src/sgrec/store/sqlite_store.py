"""
SQLite-backed catalog snapshot.

Stores tracks and listeners locally so the recommendation engine can be run
offline against a catalog export.
"""

from __future__ import annotations
import contextlib
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from sgrec.models import Listener, Track


class SQLiteCatalogStore:
    """
    SQLite-based catalog store.

    Stores:
    - Tracks (title, artist, genre, engagement counters)
    - Track collaborators
    - Listeners with favorite tracks, favorite genres and follows
    """

    def __init__(self, db_path: str | Path = "data/cache/catalog.db"):
        """
        Initialize the catalog store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self._create_schema()

    def _create_schema(self):
        """Create the catalog database schema."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tracks (
                track_id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                artist TEXT,
                genre TEXT,
                play_count INTEGER DEFAULT 0,
                favorite_count INTEGER DEFAULT 0,
                average_rating REAL DEFAULT 0.0,
                cached_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS track_collaborators (
                track_id TEXT NOT NULL,
                artist TEXT NOT NULL,
                PRIMARY KEY (track_id, artist),
                FOREIGN KEY (track_id) REFERENCES tracks(track_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS listeners (
                listener_id TEXT PRIMARY KEY,
                cached_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS listener_favorites (
                listener_id TEXT NOT NULL,
                track_id TEXT NOT NULL,  -- may reference a track not in the snapshot
                PRIMARY KEY (listener_id, track_id),
                FOREIGN KEY (listener_id) REFERENCES listeners(listener_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS listener_genres (
                listener_id TEXT NOT NULL,
                genre TEXT NOT NULL,
                PRIMARY KEY (listener_id, genre),
                FOREIGN KEY (listener_id) REFERENCES listeners(listener_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS listener_follows (
                follower_id TEXT NOT NULL,
                followee_id TEXT NOT NULL,
                PRIMARY KEY (follower_id, followee_id),
                FOREIGN KEY (follower_id) REFERENCES listeners(listener_id)
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_tracks_artist ON tracks(artist)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_tracks_genre ON tracks(genre)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_favorites_track ON listener_favorites(track_id)")

        self.conn.commit()

    @contextlib.contextmanager
    def _transaction(self):
        """Context manager for database transactions."""
        cursor = self.conn.cursor()
        try:
            yield cursor
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    # === Writes ===

    def _write_track(self, cursor: sqlite3.Cursor, track: Track):
        cursor.execute("""
            INSERT OR REPLACE INTO tracks (
                track_id, title, artist, genre, play_count, favorite_count, average_rating
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            track.track_id,
            track.title,
            track.artist,
            track.genre,
            track.play_count,
            track.favorite_count,
            track.average_rating,
        ))
        cursor.execute("DELETE FROM track_collaborators WHERE track_id = ?", (track.track_id,))
        cursor.executemany(
            "INSERT INTO track_collaborators (track_id, artist) VALUES (?, ?)",
            [(track.track_id, artist) for artist in sorted(track.collaborators)],
        )

    def _write_listener(self, cursor: sqlite3.Cursor, listener: Listener):
        listener_id = listener.listener_id
        cursor.execute("INSERT OR REPLACE INTO listeners (listener_id) VALUES (?)", (listener_id,))
        for table in ("listener_favorites", "listener_genres"):
            cursor.execute(f"DELETE FROM {table} WHERE listener_id = ?", (listener_id,))
        cursor.execute("DELETE FROM listener_follows WHERE follower_id = ?", (listener_id,))

        cursor.executemany(
            "INSERT INTO listener_favorites (listener_id, track_id) VALUES (?, ?)",
            [(listener_id, t) for t in sorted(listener.favorite_tracks)],
        )
        cursor.executemany(
            "INSERT INTO listener_genres (listener_id, genre) VALUES (?, ?)",
            [(listener_id, g) for g in sorted(listener.favorite_genres)],
        )
        cursor.executemany(
            "INSERT INTO listener_follows (follower_id, followee_id) VALUES (?, ?)",
            [(listener_id, f) for f in sorted(listener.followed_listeners)],
        )

    def cache_track(self, track: Track) -> str:
        """
        Store a track (replacing any previous version).

        Returns:
            track_id: The ID of the stored track
        """
        if not track.track_id:
            raise ValueError("Track must have a track_id")
        with self._transaction() as cursor:
            self._write_track(cursor, track)
        logger.debug(f"Cached track {track.track_id}: {track.title}")
        return track.track_id

    def cache_tracks_batch(self, tracks: Iterable[Track]) -> List[str]:
        """
        Store multiple tracks in a single transaction.

        Args:
            tracks: Tracks to store; tracks without an id are skipped

        Returns:
            List of stored track IDs
        """
        track_ids = []
        with self._transaction() as cursor:
            for track in tracks:
                if not track.track_id:
                    continue
                self._write_track(cursor, track)
                track_ids.append(track.track_id)
        logger.debug(f"Cached {len(track_ids)} tracks in batch")
        return track_ids

    def cache_listener(self, listener: Listener) -> str:
        """Store a listener with their favorites, genres and follows."""
        if not listener.listener_id:
            raise ValueError("Listener must have a listener_id")
        with self._transaction() as cursor:
            self._write_listener(cursor, listener)
        return listener.listener_id

    def cache_listeners_batch(self, listeners: Iterable[Listener]) -> List[str]:
        listener_ids = []
        with self._transaction() as cursor:
            for listener in listeners:
                if not listener.listener_id:
                    continue
                self._write_listener(cursor, listener)
                listener_ids.append(listener.listener_id)
        logger.debug(f"Cached {len(listener_ids)} listeners in batch")
        return listener_ids

    # === Reads (CatalogStore) ===

    def _collaborators(self, track_id: str) -> set:
        cursor = self.conn.cursor()
        cursor.execute("SELECT artist FROM track_collaborators WHERE track_id = ?", (track_id,))
        return {row["artist"] for row in cursor.fetchall()}

    def _row_to_track(self, row: sqlite3.Row) -> Track:
        data: Dict[str, Any] = dict(row)
        data["collaborators"] = self._collaborators(data["track_id"])
        return Track.from_dict(data)

    def _column_set(self, sql: str, listener_id: str) -> set:
        cursor = self.conn.cursor()
        cursor.execute(sql, (listener_id,))
        return {row[0] for row in cursor.fetchall()}

    def _load_listener(self, listener_id: str) -> Listener:
        return Listener(
            listener_id=listener_id,
            favorite_tracks=self._column_set(
                "SELECT track_id FROM listener_favorites WHERE listener_id = ?", listener_id),
            favorite_genres=self._column_set(
                "SELECT genre FROM listener_genres WHERE listener_id = ?", listener_id),
            followed_listeners=self._column_set(
                "SELECT followee_id FROM listener_follows WHERE follower_id = ?", listener_id),
        )

    def get_track_by_id(self, track_id: str) -> Optional[Track]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM tracks WHERE track_id = ?", (track_id,))
        row = cursor.fetchone()
        return self._row_to_track(row) if row else None

    def get_all_tracks(self) -> List[Track]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM tracks ORDER BY track_id")
        return [self._row_to_track(row) for row in cursor.fetchall()]

    def get_listener_by_id(self, listener_id: str) -> Optional[Listener]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT 1 FROM listeners WHERE listener_id = ?", (listener_id,))
        if cursor.fetchone() is None:
            return None
        return self._load_listener(listener_id)

    def get_all_listeners(self) -> List[Listener]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT listener_id FROM listeners ORDER BY listener_id")
        return [self._load_listener(row["listener_id"]) for row in cursor.fetchall()]

    def get_store_stats(self) -> Dict[str, int]:
        """Get row counts for the catalog tables."""
        cursor = self.conn.cursor()
        stats = {}
        for key, table in (
            ("tracks", "tracks"),
            ("collaborations", "track_collaborators"),
            ("listeners", "listeners"),
            ("favorites", "listener_favorites"),
            ("favorite_genres", "listener_genres"),
            ("follows", "listener_follows"),
        ):
            cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
            stats[key] = cursor.fetchone()["count"]
        return stats

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
