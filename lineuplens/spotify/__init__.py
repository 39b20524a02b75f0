"""Spotify Web API package.

- client.py: API client (auth header, rate limits, pagination)
- ingestion.py: raw saved-track items -> LibraryEntry
"""

from .client import SpotifyAPIClient
from .ingestion import build_library, parse_added_at

__all__ = [
    "SpotifyAPIClient",
    "build_library",
    "parse_added_at",
]
