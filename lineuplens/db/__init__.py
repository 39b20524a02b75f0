from .interface import CacheInterface
from .sqlite_impl import Cache

__all__ = [
    "CacheInterface",
    "Cache",
]
