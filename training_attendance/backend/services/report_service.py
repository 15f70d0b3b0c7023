import logging
from typing import Tuple

from ..db.db_client import AsyncPostgresClient
from ..tools.sheet_renderer import render_attendance_sheet
from .attendance_service import AttendanceService
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ReportService:
    """Builds spreadsheet exports from a session and its ledger."""

    def __init__(self, db_client: AsyncPostgresClient):
        self.attendance_service = AttendanceService(db_client)

    async def export_session(self, session_id: int) -> Tuple[bytes, str]:
        """Returns the workbook bytes and a download file name."""
        session, records = await self.attendance_service.get_session_attendance(session_id)
        content = render_attendance_sheet(session, records)
        logger.info(f"Exported session {session.id} with {len(records)} attendance rows.")
        return content, f"training-attendance-{session.date}-session-{session.id}.xlsx"

    async def export_date(self, date: str) -> Tuple[bytes, str]:
        """Exports the latest session held on the given day."""
        session = await self.attendance_service.session_service.get_latest_session_for_date(date)
        if not session:
            raise NotFoundError("No training session found for the specified date.")
        return await self.export_session(session.id)
