"""Artist matching between a library snapshot and a lineup catalog.

The join key is the Spotify artist ID: every saved track contributes one
count to each of its artists that appears in the catalog. A track with two
lineup artists therefore counts once for each of them.
"""

from __future__ import annotations
import logging
from collections import Counter
from typing import Dict, Iterable, List

from ..models import Catalog, LibraryEntry, MatchResult, UNKNOWN_ARTIST
from ..utils.normalization import collation_key

logger = logging.getLogger(__name__)


def count_artist_songs(library: Iterable[LibraryEntry], artist_ids: Iterable[str]) -> Dict[str, int]:
    """Count liked songs per catalog artist.

    Only artists with at least one song appear in the result.
    """
    members = set(artist_ids)
    counts: Counter[str] = Counter()
    for entry in library:
        for artist_id in entry.artist_ids:
            if artist_id in members:
                counts[artist_id] += 1
    return dict(counts)


def match_artists(library: Iterable[LibraryEntry], catalog: Catalog) -> List[MatchResult]:
    """Produce one unsorted MatchResult per catalog artist found in the library."""
    if not catalog.artist_ids:
        return []
    counts = count_artist_songs(library, catalog.artist_ids)
    results: List[MatchResult] = []
    for artist_id, count in counts.items():
        details = catalog.details.get(artist_id)
        if details is None:
            logger.warning(f"No catalog details for matched artist {artist_id}")
            original = matched = UNKNOWN_ARTIST
        else:
            original = details.original_name or details.matched_name or UNKNOWN_ARTIST
            matched = details.matched_name or details.original_name or UNKNOWN_ARTIST
        results.append(MatchResult(
            artist_id=artist_id,
            original_name=original,
            matched_name=matched,
            liked_song_count=count,
        ))
    return results


def rank_artists(results: Iterable[MatchResult]) -> List[MatchResult]:
    """Most liked songs first; equal counts in alphabetical order of original name, then by artist ID."""
    return sorted(results, key=lambda r: (-r.liked_song_count, collation_key(r.original_name), r.artist_id))


def match_and_rank(library: Iterable[LibraryEntry], catalog: Catalog) -> List[MatchResult]:
    ranked = rank_artists(match_artists(library, catalog))
    logger.debug(f"Matched {len(ranked)} of {len(catalog)} lineup artists")
    return ranked


__all__ = ["count_artist_songs", "match_artists", "rank_artists", "match_and_rank"]
