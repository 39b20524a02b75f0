"""Festival lineup CSV loading and normalization.

A lineup CSV maps names printed on a festival poster to Spotify artists::

    Original Name,Matched Name,Spotify ID,Match Type
    Fred again..,Fred again..,4oLeXFyACqeem2VImYeBFe,exact

``Match Type`` is optional. Rows are validated one at a time; a bad row is
logged and skipped, never fatal to the whole load.
"""

from __future__ import annotations
import csv
import io
import logging
import re
import time
from pathlib import Path
from typing import Dict, Iterable, List

import requests

from ..errors import CatalogError, EmptyCatalog, MalformedIdentifier, MissingColumns
from ..models import Catalog, CatalogEntry, UNKNOWN_ARTIST, VALID_MATCH_TYPES

logger = logging.getLogger(__name__)

COL_ORIGINAL = "Original Name"
COL_MATCHED = "Matched Name"
COL_SPOTIFY_ID = "Spotify ID"
COL_MATCH_TYPE = "Match Type"
REQUIRED_COLUMNS = (COL_ORIGINAL, COL_MATCHED, COL_SPOTIFY_ID)

_artist_id_pattern = re.compile(r"^[A-Za-z0-9]{22}$")

Row = Dict[str, str]


def is_valid_artist_id(value: str | None) -> bool:
    """Spotify IDs are exactly 22 alphanumeric characters."""
    return bool(value) and bool(_artist_id_pattern.match(value.strip()))


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


class CatalogLoader:
    """Fetch, parse and normalize lineup CSVs."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 30):
        self.session = session or requests.Session()
        self.timeout = timeout

    # ---------------- Fetch -----------------
    def _fetch_text(self, source: str, bypass_cache: bool) -> str:
        if not _is_url(source):
            path = Path(source)
            try:
                return path.read_text(encoding='utf-8-sig')
            except (OSError, UnicodeDecodeError) as e:
                raise CatalogError(f"Failed to read CSV {path}: {e}") from e
        params = {}
        headers = {}
        if bypass_cache:
            params['t'] = str(int(time.time() * 1000))
            headers['Cache-Control'] = 'no-cache'
        try:
            resp = self.session.get(source, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise CatalogError(f"Failed to fetch CSV: {e}") from e
        if not resp.ok:
            raise CatalogError(f"Failed to fetch CSV: {resp.status_code} {resp.reason}")
        try:
            return resp.content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise CatalogError(f"CSV from {source} is not valid UTF-8: {e}") from e

    @staticmethod
    def parse(text: str) -> List[Row]:
        """Parse CSV text into rows keyed by trimmed header names.

        Raises:
            MissingColumns: a required header is absent
        """
        reader = csv.DictReader(io.StringIO(text))
        headers = [h.strip() for h in (reader.fieldnames or [])]
        missing = [c for c in REQUIRED_COLUMNS if c not in headers]
        if missing:
            raise MissingColumns(missing)
        reader.fieldnames = headers
        rows: List[Row] = []
        for raw in reader:
            row = {k: (v or '').strip() for k, v in raw.items() if k is not None}
            if not any(row.values()):
                continue
            rows.append(row)
        return rows

    def load(self, source: str, bypass_cache: bool = False) -> List[Row]:
        """Fetch a lineup CSV from a URL or local path and parse it.

        Args:
            source: http(s) URL or filesystem path
            bypass_cache: add a cache-busting parameter and no-cache header (URLs only)

        Raises:
            CatalogError: source unreachable
            MissingColumns: required header absent
        """
        text = self._fetch_text(source, bypass_cache)
        rows = self.parse(text)
        logger.debug(f"Parsed {len(rows)} rows from {source}")
        return rows

    # ---------------- Normalize -----------------
    @staticmethod
    def _validate_row(row: Row) -> str | None:
        """Return the row's artist ID if acceptable, None to skip it.

        Raises:
            MalformedIdentifier: ID present but not 22 alphanumerics
        """
        spotify_id = (row.get(COL_SPOTIFY_ID) or '').strip()
        if not spotify_id or spotify_id == 'null':
            return None
        match_type = (row.get(COL_MATCH_TYPE) or '').strip().lower()
        if match_type and match_type not in VALID_MATCH_TYPES:
            logger.info(f"Skipping row with invalid match type: {row.get(COL_ORIGINAL)} (Match Type: {match_type})")
            return None
        if not is_valid_artist_id(spotify_id):
            raise MalformedIdentifier(spotify_id)
        return spotify_id

    def normalize(self, rows: Iterable[Row]) -> Catalog:
        """Turn parsed rows into a catalog.

        First occurrence of an ID fixes its position; the last occurrence
        wins for display details.

        Raises:
            EmptyCatalog: no row survived validation
        """
        catalog = Catalog()
        seen = set()
        for row in rows:
            try:
                spotify_id = self._validate_row(row)
            except MalformedIdentifier as e:
                logger.warning(f"{e} for artist: {row.get(COL_ORIGINAL)}")
                continue
            if spotify_id is None:
                continue
            if spotify_id not in seen:
                seen.add(spotify_id)
                catalog.artist_ids.append(spotify_id)
            original = (row.get(COL_ORIGINAL) or '').strip()
            matched = (row.get(COL_MATCHED) or '').strip()
            catalog.details[spotify_id] = CatalogEntry(
                original_name=original or matched or UNKNOWN_ARTIST,
                matched_name=matched or original or UNKNOWN_ARTIST,
                match_type=(row.get(COL_MATCH_TYPE) or '').strip().lower() or 'unknown',
            )
        if not catalog.artist_ids:
            raise EmptyCatalog()
        return catalog

    def load_catalog(self, source: str, bypass_cache: bool = False) -> Catalog:
        """Load and normalize in one step."""
        catalog = self.normalize(self.load(source, bypass_cache=bypass_cache))
        logger.info(f"Loaded {len(catalog)} lineup artists from {source}")
        return catalog


__all__ = ["CatalogLoader", "is_valid_artist_id", "REQUIRED_COLUMNS"]
