import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from typing import List

from ..services.user_service import UserService
from ..services.exceptions import ServiceError
from ..models.db_models import STAFF_ROLES
from ..db.redis_client import RedisClient
from ..models.redis_models import SessionUser
from .schemas.user import (
    UserResponse,
    StudentCreateRequest,
    StudentCreateResponse,
    StudentUpdateRequest,
    StudentUpdateResponse
)
from .schemas.session import MessageResponse
from .auth import get_current_user
from .dependencies import get_redis_client, get_user_service, verify_role
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=List[UserResponse], summary="List active students")
@limiter.limit("60/minute")
async def list_students(request: Request, user: SessionUser = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    verify_role(user, STAFF_ROLES)
    try:
        return await service.list_students()
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=StudentCreateResponse, status_code=status.HTTP_201_CREATED, summary="Register a student account")
@limiter.limit("30/minute")
async def create_student(request: Request, create_request: StudentCreateRequest, user: SessionUser = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    verify_role(user, STAFF_ROLES)
    try:
        student = await service.create_student(
            email=create_request.email,
            password=create_request.password,
            full_name=create_request.full_name,
            job_title=create_request.job_title,
            phone=create_request.phone,
            department=create_request.department
        )
    except ServiceError as e:
        raise to_http_exception(e)
    return StudentCreateResponse(id=student.id, message="Student created successfully", user=UserResponse.model_validate(student))


@router.put("/{student_id}", response_model=StudentUpdateResponse, summary="Edit a student's profile")
@limiter.limit("30/minute")
async def update_student(request: Request, student_id: int, update_request: StudentUpdateRequest, user: SessionUser = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    verify_role(user, STAFF_ROLES)
    fields = update_request.model_dump(exclude_none=True)
    if "email" in fields:
        fields["identifier"] = fields.pop("email")
    try:
        student = await service.update_student(student_id, fields)
    except ServiceError as e:
        raise to_http_exception(e)
    return StudentUpdateResponse(message="Student updated successfully", user=UserResponse.model_validate(student))


@router.delete("/{student_id}", response_model=MessageResponse, summary="Deactivate a student account")
@limiter.limit("30/minute")
async def deactivate_student(
    request: Request,
    student_id: int,
    user: SessionUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Deactivates the account and ends its login session, so tokens already issued stop working."""
    verify_role(user, STAFF_ROLES)
    try:
        await service.deactivate_student(student_id)
    except ServiceError as e:
        raise to_http_exception(e)
    try:
        await redis_client.delete_user_session(student_id)
    except Exception:
        logger.error(f"Student {student_id} was deactivated but its login session could not be deleted.", exc_info=True)
        raise HTTPException(status_code=500, detail="Student deactivated, but the active login could not be revoked. Please retry.")
    logger.info(f"Login session of deactivated student {student_id} revoked.")
    return MessageResponse(message="Student deactivated successfully")
