"""Configured festival lineups."""

from __future__ import annotations
from pathlib import Path
from typing import List, Tuple

from ..config_types import CatalogConfig, FestivalConfig
from ..errors import CatalogError


class FestivalRegistry:
    def __init__(self, config: CatalogConfig):
        self.config = config

    def get(self, festival_id: str) -> FestivalConfig:
        try:
            return self.config.festivals[festival_id]
        except KeyError:
            raise CatalogError(f"Festival not found: {festival_id}") from None

    def list(self) -> List[Tuple[str, FestivalConfig]]:
        """All festivals, alphabetically by display name."""
        return sorted(self.config.festivals.items(), key=lambda kv: kv[1].name.casefold())

    def source_for(self, festival_id: str) -> str:
        """CSV location: URLs and absolute paths as-is, others below the catalogs directory."""
        csv_ref = self.get(festival_id).csv
        if csv_ref.startswith("http://") or csv_ref.startswith("https://"):
            return csv_ref
        path = Path(csv_ref)
        if not path.is_absolute():
            path = Path(self.config.directory) / path
        return str(path)


__all__ = ["FestivalRegistry"]
