from __future__ import annotations
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .interface import CacheInterface
from ..models import Catalog, LibraryEntry, SyncMetadata

logger = logging.getLogger(__name__)

SYNC_META_KEY = "last_sync"

SCHEMA = [
    "PRAGMA journal_mode=WAL;",
    # position keeps API order so a snapshot reads back exactly as written
    "CREATE TABLE IF NOT EXISTS liked_songs (position INTEGER PRIMARY KEY, track_id TEXT NOT NULL, track_name TEXT, artist_ids TEXT NOT NULL, artist_names TEXT NOT NULL, album_name TEXT, added_at REAL, synced_at REAL NOT NULL);",
    "CREATE INDEX IF NOT EXISTS idx_liked_songs_track ON liked_songs(track_id);",
    "CREATE INDEX IF NOT EXISTS idx_liked_songs_synced ON liked_songs(synced_at);",
    "CREATE TABLE IF NOT EXISTS festival_data (festival_id TEXT PRIMARY KEY, catalog TEXT NOT NULL, loaded_at REAL NOT NULL);",
    "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT);",
]


class Cache(CacheInterface):
    """SQLite-backed store for library and catalog snapshots."""

    def __init__(self, path: Path):
        self.path = Path(path)
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, timeout=30)
        self.conn.row_factory = sqlite3.Row
        self._closed = False
        self._init_schema()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        cur.execute("INSERT OR REPLACE INTO meta(key,value) VALUES('schema_version','1')")
        self.conn.commit()

    def _execute_with_lock_handling(self, sql: str, params: Any = None):
        """Execute SQL with better diagnostics on database lock (but let SQLite retry)."""
        try:
            if params is not None:
                return self.conn.execute(sql, params)
            return self.conn.execute(sql)
        except sqlite3.OperationalError as e:
            if "database is locked" in str(e).lower():
                logger.warning("Cache database lock detected - another lineuplens process may be writing")
            raise

    # --- Library snapshot ---
    def get_library_snapshot(self) -> List[LibraryEntry]:
        cur = self.conn.execute(
            "SELECT track_id, track_name, artist_ids, artist_names, album_name, added_at, synced_at FROM liked_songs ORDER BY position"
        )
        return [
            LibraryEntry(
                track_id=row['track_id'],
                track_name=row['track_name'] or '',
                artist_ids=json.loads(row['artist_ids']),
                artist_names=json.loads(row['artist_names']),
                album_name=row['album_name'] or '',
                added_at=row['added_at'],
                synced_at=row['synced_at'],
            )
            for row in cur.fetchall()
        ]

    def save_library_snapshot(self, entries: Sequence[LibraryEntry]) -> None:
        with self.conn:
            self._execute_with_lock_handling("DELETE FROM liked_songs")
            self.conn.executemany(
                "INSERT INTO liked_songs(position, track_id, track_name, artist_ids, artist_names, album_name, added_at, synced_at) VALUES(?,?,?,?,?,?,?,?)",
                [
                    (pos, e.track_id, e.track_name, json.dumps(e.artist_ids), json.dumps(e.artist_names),
                     e.album_name, e.added_at, e.synced_at)
                    for pos, e in enumerate(entries)
                ],
            )
        logger.debug(f"Cached library snapshot ({len(entries)} songs)")

    def get_sync_metadata(self) -> Optional[SyncMetadata]:
        raw = self.get_meta(SYNC_META_KEY)
        if not raw:
            return None
        try:
            return SyncMetadata.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring corrupt sync metadata: {e}")
            return None

    def save_sync_metadata(self, metadata: SyncMetadata) -> None:
        with self.conn:
            self.set_meta(SYNC_META_KEY, json.dumps(metadata.to_dict()))

    # --- Catalog snapshots ---
    def get_catalog_snapshot(self, catalog_id: str) -> Optional[Catalog]:
        cur = self.conn.execute("SELECT catalog FROM festival_data WHERE festival_id=?", (catalog_id,))
        row = cur.fetchone()
        if not row:
            return None
        return Catalog.from_dict(json.loads(row['catalog']))

    def save_catalog_snapshot(self, catalog_id: str, catalog: Catalog) -> None:
        with self.conn:
            self._execute_with_lock_handling(
                "INSERT INTO festival_data(festival_id, catalog, loaded_at) VALUES(?,?,?) ON CONFLICT(festival_id) DO UPDATE SET catalog=excluded.catalog, loaded_at=excluded.loaded_at",
                (catalog_id, json.dumps(catalog.to_dict()), time.time()),
            )

    def catalog_loaded_at(self, catalog_id: str) -> Optional[float]:
        cur = self.conn.execute("SELECT loaded_at FROM festival_data WHERE festival_id=?", (catalog_id,))
        row = cur.fetchone()
        return row[0] if row else None

    # --- Meta ---
    def set_meta(self, key: str, value: str):
        self.conn.execute("INSERT INTO meta(key,value) VALUES(?,?) ON CONFLICT(key) DO UPDATE SET value=excluded.value", (key, value))

    def get_meta(self, key: str) -> Optional[str]:
        cur = self.conn.execute("SELECT value FROM meta WHERE key=?", (key,))
        row = cur.fetchone()
        return row[0] if row else None

    # --- Maintenance ---
    def clear_all(self) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM liked_songs")
            self.conn.execute("DELETE FROM festival_data")
            self.conn.execute("DELETE FROM meta WHERE key=?", (SYNC_META_KEY,))

    def close(self):
        if not self._closed:
            try:
                self.conn.commit()
                self.conn.close()
            finally:
                self._closed = True

__all__ = ["Cache"]
