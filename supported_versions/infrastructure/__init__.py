"""Infrastructure layer exports."""

from .builtin import BuiltinSupportedVersions
from .cache import CacheEntry, CacheStore, FileCacheStore, InMemoryCacheStore, cache_key
from .events import EventBus, InMemoryEventBus
from .releases import ReleasesClient
from .servers import InMemoryServerRegistry, ServerRegistry

__all__ = [
    "BuiltinSupportedVersions",
    "CacheEntry",
    "CacheStore",
    "EventBus",
    "FileCacheStore",
    "InMemoryCacheStore",
    "InMemoryEventBus",
    "InMemoryServerRegistry",
    "ReleasesClient",
    "ServerRegistry",
    "cache_key",
]
