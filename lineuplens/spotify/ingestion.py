"""Convert raw saved-track items into library entries.

Spotify returns each saved track as ``{'added_at': ISO-8601, 'track': {...}}``.
Local files and unavailable tracks come back without a track id and are
dropped here.
"""

from __future__ import annotations
import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..models import LibraryEntry

logger = logging.getLogger(__name__)


def parse_added_at(value: str | None) -> Optional[float]:
    """Parse Spotify's ``added_at`` timestamp into epoch seconds.

    Args:
        value: e.g. '2024-05-01T12:00:00Z'

    Returns:
        Epoch seconds, or None if missing/unparseable
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).timestamp()
    except ValueError:
        return None


def to_library_entry(item: Dict[str, Any], synced_at: float) -> Optional[LibraryEntry]:
    track = item.get('track') or {}
    track_id = track.get('id')
    if not track_id:
        return None
    artists = [a for a in (track.get('artists') or []) if a]
    return LibraryEntry(
        track_id=track_id,
        track_name=track.get('name') or '',
        artist_ids=[a['id'] for a in artists if a.get('id')],
        artist_names=[a.get('name') or '' for a in artists if a.get('id')],
        album_name=(track.get('album') or {}).get('name') or '',
        added_at=parse_added_at(item.get('added_at')),
        synced_at=synced_at,
    )


def build_library(items: Iterable[Dict[str, Any]], synced_at: float | None = None) -> List[LibraryEntry]:
    """Normalize raw API items into a library snapshot.

    All entries of one snapshot share the same ``synced_at``.
    """
    synced_at = time.time() if synced_at is None else synced_at
    entries: List[LibraryEntry] = []
    skipped = 0
    for item in items:
        entry = to_library_entry(item, synced_at)
        if entry is None:
            skipped += 1
            continue
        entries.append(entry)
    if skipped:
        logger.debug(f"Skipped {skipped} saved item(s) without a track id")
    return entries


__all__ = ["parse_added_at", "to_library_entry", "build_library"]
