import asyncio
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import LockError

from core.config import settings
from core.exceptions import LockTimeoutError
from core.logger import logger


class LockManager:
    """
    Per-session mutual exclusion. Keeps one asyncio.Lock per key that is
    currently held or awaited; unrelated sessions never share a lock.
    With a Redis client the lock is held in Redis so several workers serialize too.
    """

    def __init__(self, redis: Optional[Redis] = None, timeout: float = None, ttl: int = None):
        self.redis = redis
        self.timeout = timeout if timeout is not None else settings.LOCK_TIMEOUT_SECONDS
        self.ttl = ttl if ttl is not None else settings.LOCK_TTL_SECONDS
        self._locks: Dict[str, List] = {}  # key -> [lock, waiters]

    @staticmethod
    def _key(session_id: str) -> str:
        return f"quiz:lock:session:{session_id}"

    @asynccontextmanager
    async def hold(self, session_id: str):
        if self.redis is not None:
            async with self._hold_redis(session_id):
                yield
        else:
            async with self._hold_local(session_id):
                yield

    @asynccontextmanager
    async def _hold_local(self, session_id: str):
        entry = self._locks.get(session_id)
        if entry is None:
            entry = [asyncio.Lock(), 0]
            self._locks[session_id] = entry
        entry[1] += 1
        try:
            try:
                await asyncio.wait_for(entry[0].acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning("Session lock timeout", session_id=session_id, timeout=self.timeout)
                raise LockTimeoutError(session_id, self.timeout)
            try:
                yield
            finally:
                entry[0].release()
        finally:
            entry[1] -= 1
            if entry[1] == 0 and self._locks.get(session_id) is entry:
                del self._locks[session_id]

    @asynccontextmanager
    async def _hold_redis(self, session_id: str):
        lock = self.redis.lock(self._key(session_id), timeout=self.ttl, blocking_timeout=self.timeout)
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("Session lock timeout", session_id=session_id, timeout=self.timeout, backend="redis")
            raise LockTimeoutError(session_id, self.timeout)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # TTL expired while held; the transaction itself already committed or rolled back
                logger.warning("Session lock expired before release", session_id=session_id, error=str(e))

    def active_keys(self) -> int:
        return len(self._locks)

    async def close(self):
        if self.redis is not None:
            await self.redis.aclose()


def build_lock_manager() -> LockManager:
    if settings.REDIS_URL:
        return LockManager(Redis.from_url(settings.REDIS_URL, decode_responses=True))
    return LockManager()


lock_manager = build_lock_manager()
