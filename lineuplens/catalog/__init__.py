from .loader import CatalogLoader, is_valid_artist_id, REQUIRED_COLUMNS
from .registry import FestivalRegistry

__all__ = ["CatalogLoader", "FestivalRegistry", "is_valid_artist_id", "REQUIRED_COLUMNS"]
