from fastapi import APIRouter, Depends, HTTPException, status, Request

from ..services.attendance_service import AttendanceService
from ..services.exceptions import ServiceError
from ..models.db_models import Role
from ..models.redis_models import SessionUser
from .schemas.attendance import (
    CheckInRequest,
    CheckInResponse,
    AttendanceRecordResponse,
    SessionAttendanceResponse
)
from .schemas.session import SessionResponse
from .auth import get_current_user
from .dependencies import get_attendance_service, verify_role
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def _to_response(session, records) -> SessionAttendanceResponse:
    return SessionAttendanceResponse(
        session=SessionResponse.model_validate(session),
        attendance=[AttendanceRecordResponse.model_validate(r) for r in records]
    )


@router.post("/checkin", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED, summary="Check the calling student into a session")
@limiter.limit("10/minute")
async def check_in(request: Request, checkin_request: CheckInRequest, user: SessionUser = Depends(get_current_user), service: AttendanceService = Depends(get_attendance_service)):
    verify_role(user, {Role.STUDENT})
    try:
        record = await service.check_in(
            session_id=checkin_request.session_id,
            student_id=user.id,
            comments=checkin_request.comments
        )
    except ServiceError as e:
        raise to_http_exception(e)
    return CheckInResponse(message="Attendance marked successfully", attendance_id=record.id, check_in_time=record.check_in_time)


@router.get("/today", response_model=SessionAttendanceResponse, summary="Attendance of today's current session")
@limiter.limit("60/minute")
async def get_today_attendance(request: Request, user: SessionUser = Depends(get_current_user), service: AttendanceService = Depends(get_attendance_service)):
    try:
        session, records = await service.get_today_attendance()
    except ServiceError as e:
        raise to_http_exception(e)
    return _to_response(session, records)


@router.get("/sessions/{session_id}", response_model=SessionAttendanceResponse, summary="A session with its check-ins, earliest first")
@limiter.limit("60/minute")
async def get_session_attendance(request: Request, session_id: int, user: SessionUser = Depends(get_current_user), service: AttendanceService = Depends(get_attendance_service)):
    try:
        session, records = await service.get_session_attendance(session_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return _to_response(session, records)


@router.get("/sessions/{session_id}/me", response_model=AttendanceRecordResponse, summary="The calling student's check-in for a session")
@limiter.limit("60/minute")
async def get_my_attendance(request: Request, session_id: int, user: SessionUser = Depends(get_current_user), service: AttendanceService = Depends(get_attendance_service)):
    verify_role(user, {Role.STUDENT})
    try:
        record = await service.find_for_student(session_id, user.id)
    except ServiceError as e:
        raise to_http_exception(e)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No check-in found for this session.")
    return record
