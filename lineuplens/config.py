from __future__ import annotations
import os
import json
import logging
from typing import Any, Dict
from pathlib import Path
import copy

logger = logging.getLogger(__name__)

ENV_PREFIX = "LINEUPLENS__"
# Identifiers that must never be coerced to numbers
_RAW_STRING_KEYS = {"client_id"}


def _festival(csv_name: str, name: str, image: str) -> Dict[str, Any]:
    return {"csv": csv_name, "name": name, "image": f"data/images/{image}"}


_DEFAULTS: Dict[str, Any] = {
    "log_level": "INFO",
    "spotify": {
        "client_id": None,
        "redirect_scheme": "http",
        "redirect_host": "127.0.0.1",
        "redirect_port": 9876,
        "redirect_path": "/callback",
        "scope": "user-library-read user-read-email user-read-private",
        "token_file": "data/tokens.json",
        "pending_file": "data/pending_auth.json",
        "timeout_seconds": 300,
        "request_timeout": 30,
    },
    "cache": {
        "path": "data/lineuplens.db",
        "library_max_age_seconds": 3600,
    },
    "catalogs": {
        "directory": "data/festivals",
        "festivals": {
            "beyondchi": _festival("beyondchi_spotify_matches.csv", "Beyond Wonderland Chicago 2025", "beyondchi_2025_lineup.jpg"),
            "beyondsocal": _festival("beyondsocal_spotify_matches.csv", "Beyond Wonderland SoCal 2025", "beyondsocal_2025_lineup.jpg"),
            "coachella": _festival("coachella_spotify_matches.csv", "Coachella 2025", "coachella_2025_lineup.jpg"),
            "edclv": _festival("edc_spotify_matches.csv", "EDC Las Vegas 2025", "edclv_2025_lineup.png"),
            "eforest": _festival("eforest_spotify_matches.csv", "Electric Forest 2025", "eforest_2025_lineup.jpg"),
            "glastonbury": _festival("glastonbury_spotify_matches.csv", "Glastonbury 2025", "glastonbury_2025_lineup.jpg"),
            "hard": _festival("hardsummer_spotify_matches.csv", "Hard Summer 2025", "hard_2025_lineup.png"),
            "lolla": _festival("lolla_spotify_matches.csv", "Lollapalooza 2025", "lolla_2025_lineup.png"),
            "northcoast": _festival("ncmf_spotify_matches.csv", "North Coast 2025 (Phase 1)", "northcoast_2025_lineup.png"),
            "sziget": _festival("sziget_spotify_matches.csv", "Sziget 2025", "sziget_2025_lineup.webp"),
            "ultra": _festival("ultra_spotify_matches.csv", "Ultra Miami 2025", "ultra_2025_lineup.png"),
        },
    },
    "matching": {
        "show_top": 0,  # 0 = show every matched artist
    },
}


def deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Merge dict b into a (shallow copies) returning new dict.
    Nested dicts are merged recursively; other values override.
    """
    result = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)  # type: ignore[arg-type]
        else:
            result[k] = v
    return result


def _load_dotenv(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if not path.exists():
        return values
    for line in path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, val = line.split('=', 1)
        key = key.strip()
        val = val.strip()
        # Strip inline comments starting with # unless inside quotes
        if '#' in val:
            in_single = False
            in_double = False
            result_chars = []
            for ch in val:
                if ch == "'" and not in_double:
                    in_single = not in_single
                elif ch == '"' and not in_single:
                    in_double = not in_double
                if ch == '#' and not in_single and not in_double:
                    break
                result_chars.append(ch)
            val = ''.join(result_chars).rstrip()
        if (val.startswith('"') and val.endswith('"')) or (val.startswith("'") and val.endswith("'")):
            if len(val) >= 2:
                val = val[1:-1]
        if key:
            values[key] = val
    return values


def load_config(overrides: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Load configuration merging defaults <- .env <- environment <- overrides.

    During test runs (detected via PYTEST_CURRENT_TEST) .env loading is skipped
    unless LINEUPLENS_ENABLE_DOTENV=1 is set to allow deterministic defaults.

    Args:
        overrides: Dict of values to deep-merge last (primarily for tests).

    Returns:
        dict: Configuration dictionary (for typed access use load_typed_config()).
    """
    dotenv_values: Dict[str, str] = {}
    if os.environ.get('LINEUPLENS_ENABLE_DOTENV') or not os.environ.get('PYTEST_CURRENT_TEST'):
        dotenv_values = _load_dotenv(Path('.env'))
    cfg: Dict[str, Any] = copy.deepcopy(_DEFAULTS)

    # Real environment wins over .env
    combined = {**{k: v for k, v in dotenv_values.items() if k.startswith(ENV_PREFIX)},
                **{k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)}}
    for raw_key, value in combined.items():
        path_parts = raw_key[len(ENV_PREFIX):].split("__")
        cursor: Dict[str, Any] = cfg
        for part in path_parts[:-1]:
            cursor = cursor.setdefault(part.lower(), {})  # type: ignore[assignment]
        leaf = path_parts[-1].lower()
        cursor[leaf] = value.strip() if leaf in _RAW_STRING_KEYS else coerce_scalar(value)
    if overrides:
        cfg = deep_merge(cfg, overrides)

    _configure_logging(cfg.get('log_level', 'INFO'))

    return cfg


def load_typed_config(overrides: Dict[str, Any] | None = None):
    """Load configuration as typed AppConfig object.

    Args:
        overrides: Dictionary of override values

    Returns:
        AppConfig: Typed configuration object with .to_dict() for dict conversion
    """
    from .config_types import AppConfig
    return AppConfig.from_dict(load_config(overrides))


def _configure_logging(level_str: str) -> None:
    """Configure Python logging based on configured level."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL,
    }
    level = level_map.get(str(level_str).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(message)s',
        force=True
    )


def coerce_scalar(value: str) -> Any:
    txt = value.strip()
    # JSON object or array
    if (txt.startswith('[') and txt.endswith(']')) or (txt.startswith('{') and txt.endswith('}')):
        try:
            return json.loads(txt)
        except ValueError:
            pass  # fall through to scalar heuristics
    lower = txt.lower()
    if lower in {"true", "yes"}:
        return True
    if lower in {"false", "no"}:
        return False
    if txt.isdigit() or (txt.startswith("-") and txt[1:].isdigit()):
        return int(txt)
    try:
        return float(txt)
    except ValueError:
        return txt

__all__ = ["load_config", "deep_merge", "load_typed_config", "coerce_scalar", "ENV_PREFIX"]
