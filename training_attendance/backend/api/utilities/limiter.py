# training_attendance/backend/api/utilities/limiter.py

from fastapi import Request
import jwt

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config.config import settings

def get_limiter_key(request: Request) -> str:
    """
    Returns the rate limit key: the user id from a readable bearer token,
    otherwise the client's IP address.
    """
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1]
        try:
            # Expiry does not matter here, only the identity inside.
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                options={"verify_exp": False}
            )
            user_id = payload.get("id")
            if user_id is not None:
                return f"user:{user_id}"
        except jwt.PyJWTError:
            # Unreadable token: fall back to the IP based limit.
            pass

    return get_remote_address(request)

# Use a redis:// URI in RATE_LIMITER_STORAGE_URI to share counters between workers.
limiter = Limiter(
    key_func=get_limiter_key,
    storage_uri=settings.RATE_LIMITER_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)
