import logging
import re
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import TrainingSession
from ..tools.clock import local_now, local_today
from .exceptions import ValidationError, NotFoundError, AlreadyEndedError, StorageError

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def compute_duration(start: datetime, end: datetime) -> tuple:
    """
    Returns (duration_text, duration_minutes) for a start/end pair, e.g.
    ("10:30 - 10:50 (20 min.)", 20). Whole minutes are floored; a negative span
    (clock skew, malformed start) is clamped to zero.
    """
    minutes = int((end - start).total_seconds() // 60)
    if minutes < 0:
        logger.warning(f"Session end ({end}) precedes its start ({start}); clamping duration to 0 minutes.")
        minutes = 0
    text = f"{start.strftime('%H:%M')} - {end.strftime('%H:%M')} ({minutes} min.)"
    return text, minutes


class SessionService:
    """
    Owns the training session lifecycle: a session is created ACTIVE and moves
    to ENDED exactly once. Ended sessions are terminal.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def create_session(self,
                             trainer_name: Optional[str],
                             date: Optional[str] = None,
                             session_start_time: Optional[datetime] = None,
                             department: Optional[str] = None,
                             location: Optional[str] = None,
                             trainer_designation: Optional[str] = None,
                             training_type: Optional[str] = None,
                             training_title: Optional[str] = None,
                             training_content: Optional[str] = None) -> TrainingSession:
        session_date = date.strip() if not _blank(date) else local_today()
        if _blank(trainer_name):
            raise ValidationError("Date and trainer name are required.")
        if not _DATE_PATTERN.match(session_date):
            raise ValidationError("Date must be in YYYY-MM-DD format.")
        try:
            datetime.strptime(session_date, "%Y-%m-%d")
        except ValueError:
            raise ValidationError("Date must be a valid calendar day.")

        start_time = session_start_time or local_now()
        if start_time.tzinfo is not None:
            start_time = start_time.astimezone(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)

        try:
            session = await self.db_client.add_training_session(
                date=session_date,
                trainer_name=trainer_name.strip(),
                session_start_time=start_time,
                department=department if not _blank(department) else settings.DEFAULT_DEPARTMENT,
                location=location if not _blank(location) else settings.DEFAULT_LOCATION,
                trainer_designation=trainer_designation,
                training_type=training_type if not _blank(training_type) else settings.DEFAULT_TRAINING_TYPE,
                training_title=training_title if not _blank(training_title) else settings.DEFAULT_TRAINING_TITLE,
                training_content=training_content,
            )
        except Exception as e:
            logger.error("Database error while creating a training session.", exc_info=True)
            raise StorageError("A server error occurred while creating the training session.") from e

        logger.info(f"Training session {session.id} created for {session.date} (trainer: '{session.trainer_name}').")
        return session

    async def get_session(self, session_id: int) -> TrainingSession:
        try:
            session = await self.db_client.get_training_session(session_id)
        except Exception as e:
            logger.error(f"Database error while fetching training session {session_id}.", exc_info=True)
            raise StorageError("A server error occurred while fetching the training session.") from e
        if not session:
            raise NotFoundError("Training session not found.")
        return session

    async def list_sessions(self) -> List[TrainingSession]:
        try:
            return await self.db_client.get_training_sessions()
        except Exception as e:
            logger.error("Database error while listing training sessions.", exc_info=True)
            raise StorageError("A server error occurred while listing training sessions.") from e

    async def resolve_current_session(self) -> Optional[TrainingSession]:
        """The most recently created session dated today, or None."""
        return await self.get_latest_session_for_date(local_today())

    async def get_latest_session_for_date(self, date: str) -> Optional[TrainingSession]:
        try:
            return await self.db_client.get_latest_session_for_date(date)
        except Exception as e:
            logger.error(f"Database error while resolving the session for {date}.", exc_info=True)
            raise StorageError("A server error occurred while looking up the training session.") from e

    async def end_session(self, session_id: int) -> TrainingSession:
        """
        ACTIVE -> ENDED. The write is a conditional update on `session_end_time IS NULL`,
        so of two concurrent callers exactly one succeeds and the other gets AlreadyEndedError.
        """
        session = await self.get_session(session_id)
        if not session.is_active:
            logger.warning(f"Attempt to end training session {session_id}, which has already ended.")
            raise AlreadyEndedError("Training session has already ended.")

        end_time = local_now()
        duration, duration_minutes = compute_duration(session.session_start_time, end_time)

        try:
            ended = await self.db_client.end_training_session(session_id, end_time, duration, duration_minutes)
        except Exception as e:
            logger.error(f"Database error while ending training session {session_id}.", exc_info=True)
            raise StorageError("A server error occurred while ending the training session.") from e

        if ended is None:
            # Lost the race against another end (or a delete) between the read and the update.
            await self.get_session(session_id)
            logger.warning(f"Training session {session_id} was ended concurrently.")
            raise AlreadyEndedError("Training session has already ended.")

        logger.info(f"Training session {session_id} ended: {duration}.")
        return ended

    async def delete_session(self, session_id: int):
        """Removes the session and, before it, all of its attendance records."""
        try:
            deleted = await self.db_client.delete_training_session(session_id)
        except Exception as e:
            logger.error(f"Database error while deleting training session {session_id}.", exc_info=True)
            raise StorageError("A server error occurred while deleting the training session.") from e
        if not deleted:
            raise NotFoundError("Training session not found.")
        logger.info(f"Training session {session_id} deleted.")
