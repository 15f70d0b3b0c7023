import logging
from typing import List, Optional, Tuple

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient, DuplicateRecordError, MissingReferenceError
from ..models.db_models import User, Role, TrainingSession, AttendanceRecord
from ..tools.clock import local_now
from .exceptions import NotFoundError, DuplicateCheckInError, StorageError
from .session_service import SessionService

logger = logging.getLogger(__name__)


def make_signature(student: User) -> str:
    """The identity string frozen onto a check-in, per SIGNATURE_STYLE."""
    if settings.SIGNATURE_STYLE == "identifier":
        return student.identifier.upper()
    return student.full_name


class AttendanceService:
    """
    The attendance ledger. A student checks into a session at most once; the
    record copies the student's name, signature and job title at check-in time
    so later profile edits never rewrite an attendance sheet.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client
        self.session_service = SessionService(db_client)

    async def _get_active_student(self, student_id: int) -> User:
        try:
            student = await self.db_client.get_user_by_id(student_id)
        except Exception as e:
            logger.error(f"Database error while fetching student {student_id}.", exc_info=True)
            raise StorageError("A server error occurred while fetching the student.") from e
        if not student or not student.is_active or student.role != Role.STUDENT:
            raise NotFoundError("Student not found.")
        return student

    async def find_for_student(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        try:
            return await self.db_client.get_attendance_record(session_id, student_id)
        except Exception as e:
            logger.error(f"Database error while looking up attendance of student {student_id} in session {session_id}.", exc_info=True)
            raise StorageError("A server error occurred while querying attendance.") from e

    async def check_in(self, session_id: Optional[int], student_id: int, comments: Optional[str] = None) -> AttendanceRecord:
        """
        Records a student's presence. Without a session_id the current session
        (today's latest) is used.
        """
        if session_id is None:
            session = await self.session_service.resolve_current_session()
            if not session:
                raise NotFoundError("No training session found for today.")
        else:
            session = await self.session_service.get_session(session_id)

        student = await self._get_active_student(student_id)

        if await self.find_for_student(session.id, student.id):
            logger.warning(f"Student {student.id} tried to check into session {session.id} twice.")
            raise DuplicateCheckInError("Already checked in for this session.")

        try:
            record = await self.db_client.add_attendance_record(
                session_id=session.id,
                student_id=student.id,
                check_in_time=local_now(),
                student_name=student.full_name,
                signature=make_signature(student),
                job_title=student.job_title,
                comments=comments or "",
            )
        except DuplicateRecordError as e:
            # A concurrent request won between the pre-check and the insert.
            logger.warning(f"Concurrent duplicate check-in of student {student.id} into session {session.id} rejected.")
            raise DuplicateCheckInError("Already checked in for this session.") from e
        except MissingReferenceError as e:
            # The session was deleted between the lookup and the insert.
            logger.warning(f"Session {session.id} disappeared before student {student.id} could check in.")
            raise NotFoundError("Training session not found.") from e
        except Exception as e:
            logger.error(f"Database error while checking student {student.id} into session {session.id}.", exc_info=True)
            raise StorageError("A server error occurred while checking in.") from e

        logger.info(f"Student {student.id} checked into session {session.id} (attendance {record.id}).")
        return record

    async def list_for_session(self, session_id: int) -> List[AttendanceRecord]:
        """Check-ins of a session ordered by check-in time, earliest first."""
        try:
            return await self.db_client.get_attendance_records(session_id)
        except Exception as e:
            logger.error(f"Database error while listing attendance of session {session_id}.", exc_info=True)
            raise StorageError("A server error occurred while listing attendance.") from e

    async def get_session_attendance(self, session_id: int) -> Tuple[TrainingSession, List[AttendanceRecord]]:
        session = await self.session_service.get_session(session_id)
        return session, await self.list_for_session(session.id)

    async def get_today_attendance(self) -> Tuple[TrainingSession, List[AttendanceRecord]]:
        session = await self.session_service.resolve_current_session()
        if not session:
            raise NotFoundError("No training session found for today.")
        return session, await self.list_for_session(session.id)
