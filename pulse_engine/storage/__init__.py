import logging

from .base import DEFAULT_STRATEGIES, Storage
from .memory import MemoryStorage
from .redis_store import RedisStorage

log = logging.getLogger("cp.storage")


async def connect_storage(url: str) -> Storage:
    """Redis when reachable, otherwise an in-memory store."""
    try:
        store = await RedisStorage.connect(url)
        log.info("Redis connected — predictions are durable")
        return store
    except Exception as e:
        log.warning(f"Redis unavailable ({e}) - using in-memory storage")
        return MemoryStorage()


__all__ = ["DEFAULT_STRATEGIES", "Storage", "MemoryStorage", "RedisStorage", "connect_storage"]
