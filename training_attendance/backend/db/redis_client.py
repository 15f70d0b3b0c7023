import logging
from typing import Optional
import redis.asyncio as redis

from ..models.redis_models import UserSessionRedis

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Redis client holding the server-side login sessions.
    A bearer token is only honoured while its user's session key exists.
    """

    def __init__(self, pool: redis.ConnectionPool):
        self._redis = redis.Redis(connection_pool=pool, decode_responses=True)

    @staticmethod
    def _session_key(user_id: int) -> str:
        return f"users:{user_id}"

    async def save_user_session(self, session: UserSessionRedis, ttl: int):
        """Stores the login session with a TTL; a new login replaces the previous one."""
        await self._redis.set(self._session_key(session.user_data.id), session.model_dump_json(), ex=ttl)

    async def get_user_session(self, user_id: int) -> Optional[UserSessionRedis]:
        session_json = await self._redis.get(self._session_key(user_id))
        return UserSessionRedis.model_validate_json(session_json) if session_json else None

    async def delete_user_session(self, user_id: int) -> int:
        return await self._redis.delete(self._session_key(user_id))
