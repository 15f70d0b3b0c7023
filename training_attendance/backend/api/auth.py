import logging
from fastapi import APIRouter, Depends, HTTPException, status, Response, Request
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from datetime import datetime, timedelta, timezone
from uuid import uuid4
import jwt
from pydantic import ValidationError as PydanticValidationError

from .schemas.user import Token, TokenData, LoginRequest, UserResponse, LoginResponse, MeResponse
from ..models.db_models import User
from ..models.redis_models import UserSessionRedis, SessionUser
from ..db.redis_client import RedisClient
from ..config.config import settings
from ..services.user_service import UserService
from ..services.exceptions import ServiceError, NotFoundError
from .dependencies import get_redis_client, get_user_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def create_access_token(data: dict, expires_delta: timedelta) -> str:
    """Signs a JWT carrying `data` that expires after `expires_delta`."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    redis_client: RedisClient = Depends(get_redis_client)
) -> SessionUser:
    """
    Decodes the bearer token, validates its claims and requires a live login
    session in Redis. Returns the user data cached with that session.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenData.model_validate(payload)
    except (jwt.PyJWTError, PydanticValidationError) as e:
        logger.warning(f"Token validation error: {e}")
        raise credentials_exception

    if token_data.id is None or token_data.role is None:
        logger.warning(f"Token is valid but missing 'id' or 'role': {payload}")
        raise credentials_exception

    user_session = await redis_client.get_user_session(token_data.id)
    if user_session is None:
        logger.warning(f"User {token_data.id} has a valid token but no active session in Redis. Denying access.")
        raise credentials_exception

    return user_session.user_data


async def _perform_login(identifier: str, password: str, user_service: UserService, redis_client: RedisClient) -> LoginResponse:
    """Shared login logic for the JSON and the OAuth2 form endpoints."""
    logger.info(f"Login attempt for '{identifier}'.")
    try:
        user: User = await user_service.authenticate(identifier, password)
    except ServiceError as e:
        raise to_http_exception(e)

    ttl = settings.SESSION_TTL_SECONDS
    now = datetime.now(timezone.utc)
    session_user = SessionUser(
        id=user.id, identifier=user.identifier, role=user.role,
        full_name=user.full_name, job_title=user.job_title, department=user.department
    )
    redis_session = UserSessionRedis(
        user_data=session_user, session_id=uuid4(),
        session_start_time=now, session_end_time=now + timedelta(seconds=ttl)
    )
    try:
        await redis_client.save_user_session(redis_session, ttl=ttl)
    except Exception:
        logger.error(f"Could not store the login session of user {user.id}.", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected server error occurred during login.")

    access_token = create_access_token(
        data={"id": user.id, "role": user.role.value},
        expires_delta=timedelta(minutes=settings.TOKEN_EXPIRE_MINUTES)
    )
    logger.info(f"User {user.id} ({user.role.value}) logged in successfully.")
    return LoginResponse(token=Token(access_token=access_token), user=UserResponse.model_validate(user))


# --- API endpoints ---

@router.post("/token", response_model=Token)
@limiter.limit("20/minute")
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    user_service: UserService = Depends(get_user_service),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Standard OAuth2 endpoint for Swagger UI."""
    login_response = await _perform_login(form_data.username, form_data.password, user_service, redis_client)
    return login_response.token


@router.post("/login", response_model=LoginResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    login_request: LoginRequest,
    user_service: UserService = Depends(get_user_service),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Login endpoint for web clients."""
    return await _perform_login(login_request.identifier, login_request.password, user_service, redis_client)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def logout(
    request: Request,
    redis_client: RedisClient = Depends(get_redis_client),
    current_user: SessionUser = Depends(get_current_user)
):
    """Deletes the user's login session; every token issued to them stops working."""
    logger.info(f"User {current_user.id} logging out.")
    try:
        await redis_client.delete_user_session(current_user.id)
    except Exception:
        logger.error(f"Error during logout for user {current_user.id}.", exc_info=True)
        raise HTTPException(status_code=500, detail="An error occurred during logout.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=MeResponse)
@limiter.limit("60/minute")
async def read_current_user(
    request: Request,
    current_user: SessionUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """The caller's profile as currently stored."""
    try:
        user = await user_service.get_user(current_user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials", headers={"WWW-Authenticate": "Bearer"})
    except ServiceError as e:
        raise to_http_exception(e)
    return MeResponse(user=UserResponse.model_validate(user))
