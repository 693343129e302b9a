"""In-process TTL cache for computed metrics, with expiry notifications."""

from repoflow.cache.channel import ChannelClosed, ChannelFull, ExpiryChannel
from repoflow.cache.store import CacheEntry, TTLCacheStore

__all__ = [
    "CacheEntry",
    "ChannelClosed",
    "ChannelFull",
    "ExpiryChannel",
    "TTLCacheStore",
]
