"""Typed configuration dataclasses for lineup-lens.

Provides strongly-typed configuration objects that can be used throughout
the application for better type safety and IDE support.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Dict, Any


@dataclass
class SpotifyConfig:
    """Spotify OAuth and API configuration."""
    client_id: str | None = None
    redirect_scheme: str = "http"
    redirect_host: str = "127.0.0.1"
    redirect_port: int = 9876
    redirect_path: str = "/callback"
    scope: str = "user-library-read user-read-email user-read-private"
    token_file: str = "data/tokens.json"
    pending_file: str = "data/pending_auth.json"
    timeout_seconds: int = 300  # how long `login` waits for the browser callback
    request_timeout: int = 30  # per single HTTP request

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CacheConfig:
    """Local sqlite cache for library and catalog snapshots."""
    path: str = "data/lineuplens.db"
    library_max_age_seconds: int = 3600

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FestivalConfig:
    """One configured lineup."""
    csv: str
    name: str
    image: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CatalogConfig:
    """Lineup catalog sources."""
    directory: str = "data/festivals"
    festivals: Dict[str, FestivalConfig] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory,
            "festivals": {fid: f.to_dict() for fid, f in self.festivals.items()},
        }


@dataclass
class MatchingConfig:
    """Result presentation options."""
    show_top: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AppConfig:
    """Root application configuration with all subsections."""
    log_level: str = "INFO"
    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    catalogs: CatalogConfig = field(default_factory=CatalogConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_level": self.log_level,
            "spotify": self.spotify.to_dict(),
            "cache": self.cache.to_dict(),
            "catalogs": self.catalogs.to_dict(),
            "matching": self.matching.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create AppConfig from dictionary (as produced by load_config).

        Unknown keys are ignored so stray environment variables do not break startup.
        """
        def pick(klass, values: Dict[str, Any]):
            names = klass.__dataclass_fields__.keys()
            return klass(**{k: v for k, v in (values or {}).items() if k in names})

        catalogs = data.get("catalogs", {}) or {}
        festivals = {
            fid: pick(FestivalConfig, fcfg)
            for fid, fcfg in (catalogs.get("festivals") or {}).items()
            if isinstance(fcfg, dict) and fcfg.get("csv")
        }
        return cls(
            log_level=data.get("log_level", "INFO"),
            spotify=pick(SpotifyConfig, data.get("spotify", {})),
            cache=pick(CacheConfig, data.get("cache", {})),
            catalogs=CatalogConfig(
                directory=catalogs.get("directory", "data/festivals"),
                festivals=festivals,
            ),
            matching=pick(MatchingConfig, data.get("matching", {})),
        )


__all__ = [
    "SpotifyConfig",
    "CacheConfig",
    "FestivalConfig",
    "CatalogConfig",
    "MatchingConfig",
    "AppConfig",
]
