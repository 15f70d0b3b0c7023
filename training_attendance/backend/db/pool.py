import asyncio
import logging
from typing import Optional

import asyncpg

from .schema import SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)


class DatabasePool:
    """
    Process-wide holder of the asyncpg pool.

    The pool is created lazily by the first `init()` call, which also applies
    the schema; later callers share it. Every `init()` must be paired with a
    `close()`, and the pool is only closed when the last holder releases it.
    Callers that only need a ready pool await `ready()`; it waits for an
    `init()` in progress and raises RuntimeError when no pool is coming, either
    because `init()` was never called or because it failed.
    """

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 10):
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None
        self._refcount = 0
        self._lock = asyncio.Lock()
        self._ready = asyncio.Event()

    async def init(self) -> asyncpg.Pool:
        async with self._lock:
            if self._pool is None:
                logger.info("Creating PostgreSQL connection pool...")
                self._ready.clear()
                try:
                    pool = await asyncpg.create_pool(
                        dsn=self._dsn, min_size=self._min_size, max_size=self._max_size
                    )
                except Exception:
                    logger.error("Could not create the PostgreSQL connection pool.", exc_info=True)
                    self._ready.set()
                    raise
                try:
                    async with pool.acquire() as connection:
                        async with connection.transaction():
                            for statement in SCHEMA_STATEMENTS:
                                await connection.execute(statement)
                except Exception:
                    logger.error("Applying the schema failed; closing the new pool.", exc_info=True)
                    await pool.close()
                    # Wake ready() waiters; they see no pool and fail.
                    self._ready.set()
                    raise
                self._pool = pool
                self._ready.set()
                logger.info("PostgreSQL pool ready and schema applied.")
            self._refcount += 1
            return self._pool

    async def ready(self) -> asyncpg.Pool:
        if self._pool is None and not self._lock.locked():
            raise RuntimeError("DatabasePool.init() has not been called or did not succeed.")
        await self._ready.wait()
        if self._pool is None:
            raise RuntimeError("DatabasePool.init() failed; no pool is available.")
        return self._pool

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DatabasePool.init() has not completed.")
        return self._pool

    async def close(self):
        async with self._lock:
            if self._refcount == 0:
                return
            self._refcount -= 1
            if self._refcount == 0 and self._pool is not None:
                await self._pool.close()
                self._pool = None
                self._ready.clear()
                logger.info("PostgreSQL connection pool closed.")
