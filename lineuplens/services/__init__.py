"""Service layer for lineup-lens.

Business logic decoupled from CLI presentation:
- library_service: cache-or-fetch saved tracks
- lineup_service: login guard, catalog loading, match generation
"""

from .library_service import sync_library, is_snapshot_fresh, LibrarySyncResult
from .lineup_service import LineupService, MatchRunResult

__all__ = [
    "sync_library",
    "is_snapshot_fresh",
    "LibrarySyncResult",
    "LineupService",
    "MatchRunResult",
]
