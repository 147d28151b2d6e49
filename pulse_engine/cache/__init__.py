from .ttl_cache import CachedAggregate, TTLCache
from .ttl_config import TTL, PREDICTION_RETENTION_S

__all__ = ["CachedAggregate", "TTLCache", "TTL", "PREDICTION_RETENTION_S"]
