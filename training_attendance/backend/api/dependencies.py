#training_attendance/backend/api/dependencies.py
from typing import Iterable
from fastapi import Request, Depends, HTTPException, status
import redis.asyncio as redis
import asyncpg

from ..db.redis_client import RedisClient
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import Role
from ..models.redis_models import SessionUser
from ..services.session_service import SessionService
from ..services.attendance_service import AttendanceService
from ..services.user_service import UserService
from ..services.catalog_service import CatalogService
from ..services.report_service import ReportService
from ..services.exceptions import ForbiddenError
from .utilities.errors import to_http_exception


def get_redis_pool(request: Request) -> redis.ConnectionPool:
    """Shared Redis connection pool created at startup."""
    pool = getattr(request.app.state, "redis_pool", None)
    if pool is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Session store is unavailable.")
    return pool

def get_postgres_pool(request: Request) -> asyncpg.Pool:
    """
    Shared PostgreSQL pool created at startup. If startup could not reach the
    database the pool is missing and requests fail with 503.
    """
    pool = getattr(request.app.state, "postgres_pool", None)
    if pool is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database is unavailable.")
    return pool


def get_redis_client(redis_pool: redis.ConnectionPool = Depends(get_redis_pool)) -> RedisClient:
    return RedisClient(pool=redis_pool)

def get_db_client(postgres_pool: asyncpg.Pool = Depends(get_postgres_pool)) -> AsyncPostgresClient:
    return AsyncPostgresClient(pool=postgres_pool)


# Services are cheap wrappers around the clients; a fresh one is built per request.

def get_session_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> SessionService:
    return SessionService(db_client=db_client)

def get_attendance_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> AttendanceService:
    return AttendanceService(db_client=db_client)

def get_user_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> UserService:
    return UserService(db_client=db_client)

def get_catalog_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> CatalogService:
    return CatalogService(db_client=db_client)

def get_report_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> ReportService:
    return ReportService(db_client=db_client)


def verify_role(user: SessionUser, allowed: Iterable[Role]):
    """Raises 403 unless the user's role is one of `allowed`."""
    allowed = frozenset(allowed)
    if user.role not in allowed:
        names = " or ".join(sorted(role.value for role in allowed))
        raise to_http_exception(ForbiddenError(f"This operation is only valid for {names} users."))
