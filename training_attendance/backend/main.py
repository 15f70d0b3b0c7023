# training_attendance/backend/main.py
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import redis.asyncio as redis
import logging

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config.config import settings
from .logging.logging_config import setup_logging
from .api import auth, sessions, attendance, exports, students, catalog
from .db.pool import DatabasePool
from .db.db_client import AsyncPostgresClient
from .services.user_service import UserService
from .api.utilities.limiter import limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Opens the PostgreSQL and Redis pools at startup, seeds the bootstrap data
    and releases everything at shutdown.
    """
    setup_logging()
    app.state.limiter = limiter

    logger.info("Application starting...")

    database = DatabasePool(
        dsn=settings.DATABASE_URL,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE
    )
    app.state.database = None
    app.state.postgres_pool = None
    app.state.redis_pool = None

    try:
        postgres_pool = await database.init()
        app.state.database = database
        app.state.postgres_pool = postgres_pool

        if settings.SEED_DEFAULT_USERS:
            db_client = AsyncPostgresClient(pool=postgres_pool)
            await db_client.seed_reference_data()
            await UserService(db_client=db_client).seed_default_users()
            logger.info("Default accounts and reference data are in place.")

        app.state.redis_pool = redis.ConnectionPool.from_url(
            settings.APPLICATION_REDIS_URL, decode_responses=True
        )
        logger.info("PostgreSQL and Redis connection pools created.")
    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)

    yield

    logger.info("Application shutting down...")
    if app.state.database is not None:
        await app.state.database.close()
    if app.state.redis_pool is not None:
        await app.state.redis_pool.disconnect()
        logger.info("Redis connection pool closed.")


app = FastAPI(
    title="Training Attendance API",
    description="Training session scheduling, attendance check-in and attendance sheet exports.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors: answer 400 rather than FastAPI's 422."""
    logger.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


app.include_router(auth.router, prefix="/api/v1")
app.include_router(sessions.router, prefix="/api/v1")
app.include_router(attendance.router, prefix="/api/v1")
app.include_router(exports.router, prefix="/api/v1")
app.include_router(students.router, prefix="/api/v1")
app.include_router(catalog.router, prefix="/api/v1")

@app.get("/health", tags=["System"])
def health_check():
    """Liveness check."""
    return {"status": "ok", "message": "Training Attendance API is running."}
