from __future__ import annotations
"""Cache interface abstraction for testability.

This interface defines the contract used by service-layer code. A concrete
SQLite implementation (`Cache`) and an in-memory mock used in unit tests
both implement this for dependency injection.

Snapshots are replaced wholesale, never merged. Freshness decisions belong
to the callers; the cache only stores and returns what it was given.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models import Catalog, LibraryEntry, SyncMetadata


class CacheInterface(ABC):
    # --- Library snapshot ---
    @abstractmethod
    def get_library_snapshot(self) -> List[LibraryEntry]: ...

    @abstractmethod
    def save_library_snapshot(self, entries: Sequence[LibraryEntry]) -> None:
        """Replace the whole library snapshot (no incremental merge)."""

    @abstractmethod
    def get_sync_metadata(self) -> Optional[SyncMetadata]: ...

    @abstractmethod
    def save_sync_metadata(self, metadata: SyncMetadata) -> None: ...

    # --- Catalog snapshots ---
    @abstractmethod
    def get_catalog_snapshot(self, catalog_id: str) -> Optional[Catalog]: ...

    @abstractmethod
    def save_catalog_snapshot(self, catalog_id: str, catalog: Catalog) -> None: ...

    # --- Maintenance ---
    @abstractmethod
    def clear_all(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


__all__ = ["CacheInterface"]
