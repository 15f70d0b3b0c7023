from io import BytesIO
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ..services.report_service import ReportService, XLSX_MEDIA_TYPE
from ..services.exceptions import ServiceError
from ..models.db_models import STAFF_ROLES
from ..models.redis_models import SessionUser
from .auth import get_current_user
from .dependencies import get_report_service, verify_role
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/exports", tags=["Exports"])


def _workbook_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        }
    )


@router.get("/sessions/{session_id}", summary="Download a session's attendance sheet as .xlsx")
@limiter.limit("10/minute")
async def export_session(request: Request, session_id: int, user: SessionUser = Depends(get_current_user), service: ReportService = Depends(get_report_service)):
    verify_role(user, STAFF_ROLES)
    try:
        content, filename = await service.export_session(session_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return _workbook_response(content, filename)


@router.get("/dates/{date}", summary="Download the attendance sheet of the latest session held on a date")
@limiter.limit("10/minute")
async def export_date(request: Request, date: str, user: SessionUser = Depends(get_current_user), service: ReportService = Depends(get_report_service)):
    verify_role(user, STAFF_ROLES)
    try:
        content, filename = await service.export_date(date)
    except ServiceError as e:
        raise to_http_exception(e)
    return _workbook_response(content, filename)
