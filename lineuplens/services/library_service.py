"""Library sync service: cache-or-fetch the user's saved tracks.

A cached snapshot is reused when it is non-empty and younger than
``max_age_seconds`` (one hour by default). Otherwise every page is fetched
again and the snapshot is replaced wholesale.
"""

from __future__ import annotations
import logging
import time
from typing import Callable, List, Optional

from ..db import CacheInterface
from ..models import LibraryEntry, SyncMetadata
from ..spotify.client import SpotifyAPIClient
from ..spotify.ingestion import build_library
from ..utils.progress import ProgressEvents

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 60 * 60


class LibrarySyncResult:
    """Results from a library sync."""

    def __init__(self):
        self.entries: List[LibraryEntry] = []
        self.from_cache = False
        self.cache_age_seconds: float | None = None
        self.pages_fetched = 0
        self.duration_seconds = 0.0


def is_snapshot_fresh(metadata: Optional[SyncMetadata], now: float, max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS) -> bool:
    if metadata is None or not metadata.last_sync_time:
        return False
    return now - metadata.last_sync_time < max_age_seconds


def sync_library(
    cache: CacheInterface,
    client: SpotifyAPIClient,
    progress: ProgressEvents | None = None,
    force: bool = False,
    max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
    clock: Callable[[], float] = time.time,
) -> LibrarySyncResult:
    """Return the library, from cache when fresh, otherwise from the API.

    Args:
        cache: Cache instance
        client: Authenticated API client
        progress: Optional event bus for per-page progress
        force: Ignore the cached snapshot
        max_age_seconds: Freshness window for the cached snapshot
        clock: Time source

    Raises:
        ApiError: any request failure; the previous snapshot stays in the cache
    """
    result = LibrarySyncResult()
    start = clock()
    progress = progress or ProgressEvents()

    if not force:
        metadata = cache.get_sync_metadata()
        if is_snapshot_fresh(metadata, start, max_age_seconds):
            cached = cache.get_library_snapshot()
            if cached:
                result.entries = cached
                result.from_cache = True
                result.cache_age_seconds = start - metadata.last_sync_time  # type: ignore[union-attr]
                minutes = round(result.cache_age_seconds / 60)
                logger.info(f"Using cached songs ({len(cached)} songs, {minutes} minutes old)")
                progress.status("library", f"Using cached songs ({len(cached)} total)")
                return result

    progress.status("library", "Fetching your liked songs...")

    def on_page(fetched: int, total: int) -> None:
        result.pages_fetched += 1
        progress.items("library", "Loading liked songs", fetched, total)

    items = client.fetch_all_library_pages(on_progress=on_page)
    now = clock()
    entries = build_library(items, synced_at=now)
    cache.save_library_snapshot(entries)
    cache.save_sync_metadata(SyncMetadata(
        last_sync_time=now,
        total_songs=len(entries),
        last_fetched_page=result.pages_fetched or None,
    ))
    result.entries = entries
    result.duration_seconds = now - start
    logger.debug(f"Library synced: {len(entries)} songs in {result.pages_fetched} pages ({result.duration_seconds:.2f}s)")
    return result


__all__ = ["sync_library", "is_snapshot_fresh", "LibrarySyncResult", "DEFAULT_MAX_AGE_SECONDS"]
