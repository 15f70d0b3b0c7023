from fastapi import APIRouter, Depends, status, Request
from typing import List, Optional

from ..services.session_service import SessionService
from ..services.exceptions import ServiceError
from ..models.db_models import STAFF_ROLES
from ..models.redis_models import SessionUser
from .schemas.session import (
    SessionCreateRequest,
    SessionCreateResponse,
    SessionResponse,
    SessionEndResponse,
    MessageResponse
)
from .auth import get_current_user
from .dependencies import get_session_service, verify_role
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/sessions", tags=["Training Sessions"])


@router.get("", response_model=List[SessionResponse], summary="List all training sessions, newest first")
@limiter.limit("60/minute")
async def list_sessions(request: Request, user: SessionUser = Depends(get_current_user), service: SessionService = Depends(get_session_service)):
    try:
        return await service.list_sessions()
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED, summary="Create a training session")
@limiter.limit("10/minute")
async def create_session(request: Request, create_request: SessionCreateRequest, user: SessionUser = Depends(get_current_user), service: SessionService = Depends(get_session_service)):
    verify_role(user, STAFF_ROLES)
    try:
        session = await service.create_session(
            trainer_name=create_request.trainer_name,
            date=create_request.date,
            session_start_time=create_request.session_start_time,
            department=create_request.department,
            location=create_request.location,
            trainer_designation=create_request.trainer_designation,
            training_type=create_request.training_type,
            training_title=create_request.training_title,
            training_content=create_request.training_content,
        )
    except ServiceError as e:
        raise to_http_exception(e)
    return SessionCreateResponse(id=session.id, message="Training session created successfully")


# Declared before /{session_id} so "today" is never parsed as an id.
@router.get("/today", response_model=Optional[SessionResponse], summary="The current session: the latest one created today")
@limiter.limit("120/minute")
async def get_today_session(request: Request, service: SessionService = Depends(get_session_service)):
    try:
        return await service.resolve_current_session()
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{session_id}", response_model=SessionResponse, summary="Get a training session")
@limiter.limit("60/minute")
async def get_session(request: Request, session_id: int, user: SessionUser = Depends(get_current_user), service: SessionService = Depends(get_session_service)):
    try:
        return await service.get_session(session_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/end", response_model=SessionEndResponse, summary="End an active training session")
@limiter.limit("10/minute")
async def end_session(request: Request, session_id: int, user: SessionUser = Depends(get_current_user), service: SessionService = Depends(get_session_service)):
    verify_role(user, STAFF_ROLES)
    try:
        session = await service.end_session(session_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return SessionEndResponse(
        message="Training session ended successfully",
        end_time=session.session_end_time,
        duration=session.duration,
        duration_minutes=session.duration_minutes
    )


@router.delete("/{session_id}", response_model=MessageResponse, summary="Delete a training session and its attendance")
@limiter.limit("10/minute")
async def delete_session(request: Request, session_id: int, user: SessionUser = Depends(get_current_user), service: SessionService = Depends(get_session_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.delete_session(session_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Training session deleted successfully")
