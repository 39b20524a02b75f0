"""Lineup service: orchestrate auth, library sync, catalog load and matching.

All steps run sequentially on the caller's thread. Authentication failures
(HTTP 401 or a failed refresh) force a logout before being re-raised; any
other failure propagates unchanged and leaves the session's previous
matches in place.

The cache may be omitted for auth-only use (login, whoami); library and
catalog steps need it.
"""

from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, List

from ..auth import AuthFlow
from ..catalog import CatalogLoader, FestivalRegistry
from ..db import CacheInterface
from ..errors import RefreshFailed, Unauthenticated
from ..match import match_and_rank
from ..models import Catalog, MatchResult
from ..session import Session
from ..spotify import SpotifyAPIClient
from .library_service import DEFAULT_MAX_AGE_SECONDS, LibrarySyncResult, sync_library

logger = logging.getLogger(__name__)


class MatchRunResult:
    """Results from one match generation."""

    def __init__(self, festival_id: str):
        self.festival_id = festival_id
        self.matches: List[MatchResult] = []
        self.lineup_size = 0
        self.library_size = 0
        self.library_from_cache = False
        self.duration_seconds = 0.0


class LineupService:
    def __init__(
        self,
        auth: AuthFlow,
        client: SpotifyAPIClient,
        cache: CacheInterface | None,
        loader: CatalogLoader,
        registry: FestivalRegistry,
        session: Session | None = None,
        library_max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
    ):
        self.auth = auth
        self.client = client
        self.cache = cache
        self.loader = loader
        self.registry = registry
        self.session = session or Session()
        self.library_max_age_seconds = library_max_age_seconds
        self.auth.on_logout(self.session.reset)

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @contextmanager
    def _auth_guard(self):
        try:
            yield
        except (Unauthenticated, RefreshFailed):
            logger.warning("Authentication expired; logging out")
            self.auth.logout()
            raise

    # ---------------- Steps -----------------
    def fetch_profile(self) -> Dict[str, Any]:
        with self._auth_guard():
            user = self.client.current_user_profile()
        self.session.user = user
        return user

    def sync_library(self, force: bool = False) -> LibrarySyncResult:
        with self._auth_guard():
            return sync_library(
                self.cache,
                self.client,
                progress=self.session.progress,
                force=force,
                max_age_seconds=self.library_max_age_seconds,
            )

    def load_catalog(self, festival_id: str, use_cached: bool = False) -> Catalog:
        """Load a festival's lineup.

        The CSV is re-read bypassing HTTP caches on every call, because lineup
        files change between sessions. ``use_cached`` returns the stored
        snapshot instead when one exists.
        """
        festival = self.registry.get(festival_id)
        if use_cached:
            cached = self.cache.get_catalog_snapshot(festival_id)
            if cached is not None:
                logger.debug(f"Using cached lineup for {festival_id}")
                return cached
        self.session.progress.status("catalog", f"Loading {festival.name} lineup...")
        catalog = self.loader.load_catalog(self.registry.source_for(festival_id), bypass_cache=True)
        self.cache.save_catalog_snapshot(festival_id, catalog)
        return catalog

    def generate_matches(self, festival_id: str, force_sync: bool = False, use_cached_catalog: bool = False) -> MatchRunResult:
        """Load lineup, sync library, match and rank.

        Raises:
            CatalogError: lineup missing or unusable
            ApiError / AuthError: library fetch failed
        """
        start = time.time()
        result = MatchRunResult(festival_id)
        catalog = self.load_catalog(festival_id, use_cached=use_cached_catalog)
        library = self.sync_library(force=force_sync)
        self.session.progress.status("match", "Finding your matches...")
        result.matches = match_and_rank(library.entries, catalog)
        result.lineup_size = len(catalog)
        result.library_size = len(library.entries)
        result.library_from_cache = library.from_cache
        result.duration_seconds = time.time() - start
        self.session.record_matches(festival_id, result.matches, result.library_size, result.lineup_size)
        return result

    def logout(self, clear_cache: bool = False) -> None:
        """End the session, optionally dropping cached library and lineups."""
        self.auth.logout()
        if clear_cache and self.cache is not None:
            self.cache.clear_all()


__all__ = ["LineupService", "MatchRunResult"]
