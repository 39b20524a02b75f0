"""Domain model types.

These dataclasses are the data contracts passed between the API client,
catalog loader, match engine and cache. ``to_dict``/``from_dict`` convert at
the JSON and sqlite boundaries.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

UNKNOWN_ARTIST = "Unknown Artist"
VALID_MATCH_TYPES = ("exact", "yes", "c", "add")


@dataclass
class Credential:
    """OAuth token set for the authenticated user."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None  # epoch seconds
    token_type: str = "Bearer"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Credential:
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token'),
            expires_at=data.get('expires_at'),
            token_type=data.get('token_type') or "Bearer",
        )

    @classmethod
    def from_token_response(cls, data: Dict[str, Any], now: float, previous_refresh: str | None = None) -> Credential:
        """Build from a token endpoint JSON response.

        Spotify may omit ``refresh_token`` on refresh; the previous one is kept.
        """
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token') or previous_refresh,
            expires_at=now + int(data.get('expires_in', 3600)),
            token_type=data.get('token_type') or "Bearer",
        )


@dataclass(frozen=True)
class LibraryEntry:
    """One saved track from the user's library."""
    track_id: str
    track_name: str
    artist_ids: List[str]
    artist_names: List[str]
    album_name: str
    added_at: Optional[float]
    synced_at: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LibraryEntry:
        return cls(
            track_id=data['track_id'],
            track_name=data.get('track_name') or '',
            artist_ids=list(data.get('artist_ids') or []),
            artist_names=list(data.get('artist_names') or []),
            album_name=data.get('album_name') or '',
            added_at=data.get('added_at'),
            synced_at=data.get('synced_at') or 0.0,
        )


@dataclass
class CatalogEntry:
    """Display details for one lineup artist."""
    original_name: str
    matched_name: str
    match_type: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CatalogEntry:
        return cls(
            original_name=data.get('original_name') or UNKNOWN_ARTIST,
            matched_name=data.get('matched_name') or UNKNOWN_ARTIST,
            match_type=data.get('match_type') or "unknown",
        )


@dataclass
class Catalog:
    """Normalized lineup: artist IDs in first-seen order plus per-ID details."""
    artist_ids: List[str] = field(default_factory=list)
    details: Dict[str, CatalogEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.artist_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'artist_ids': list(self.artist_ids),
            'details': {aid: entry.to_dict() for aid, entry in self.details.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Catalog:
        return cls(
            artist_ids=list(data.get('artist_ids') or []),
            details={aid: CatalogEntry.from_dict(d) for aid, d in (data.get('details') or {}).items()},
        )


@dataclass
class MatchResult:
    """A lineup artist found in the library with its liked-song count."""
    artist_id: str
    original_name: str
    matched_name: str
    liked_song_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SyncMetadata:
    """Freshness record for the cached library snapshot."""
    last_sync_time: float
    total_songs: int = 0
    last_fetched_page: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SyncMetadata:
        return cls(
            last_sync_time=float(data.get('last_sync_time') or 0.0),
            total_songs=int(data.get('total_songs') or 0),
            last_fetched_page=data.get('last_fetched_page'),
        )


__all__ = [
    "UNKNOWN_ARTIST",
    "VALID_MATCH_TYPES",
    "Credential",
    "LibraryEntry",
    "CatalogEntry",
    "Catalog",
    "MatchResult",
    "SyncMetadata",
]
