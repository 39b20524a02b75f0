from __future__ import annotations
import unicodedata
from functools import lru_cache
from typing import Tuple


@lru_cache(maxsize=8192)
def fold_name(s: str) -> str:
    """Case- and accent-insensitive form of a display name ("Beyoncé" -> "beyonce")."""
    s = unicodedata.normalize("NFKD", s.strip())
    s = "".join(c for c in s if not unicodedata.combining(c))
    return s.casefold()


def collation_key(name: str) -> Tuple[str, str]:
    """Alphabetical sort key: folded name first, raw name breaks remaining ties."""
    return fold_name(name), name

__all__ = ["fold_name", "collation_key"]
