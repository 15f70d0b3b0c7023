import io
from datetime import date, datetime
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from ..models.db_models import TrainingSession, AttendanceRecord

SHEET_TITLE = "Training Attendance Sheet"
TABLE_HEADERS = ["S. No.", "Employee Name", "Job Title", "Signature", "Comments", "Check-in Time"]
COLUMN_WIDTHS = {"A": 32, "B": 30, "C": 22, "D": 22, "E": 30, "F": 22}

_HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFE0E0E0")


def _format_day(value: str) -> str:
    """'2024-01-10' -> '10/01/2024, Wednesday'. Unparseable values are shown as stored."""
    try:
        parsed = date.fromisoformat(value)
    except (TypeError, ValueError):
        return value or ""
    return f"{parsed.strftime('%d/%m/%Y')}, {parsed.strftime('%A')}"


def _format_time(value: Optional[datetime], pattern: str = "%d/%m/%Y %H:%M") -> str:
    return value.strftime(pattern) if value else "Not set"


def _header_rows(session: TrainingSession) -> List[Sequence]:
    trainer = session.trainer_name
    if session.trainer_designation:
        trainer = f"{trainer}, {session.trainer_designation}"

    rows = [
        ["Training Record"],
        [],
        ["Date of Training:", _format_day(session.date)],
        ["Department:", session.department or ""],
        ["Location:", session.location or ""],
        ["Trainer Details, Designation:", trainer],
        ["Training Type:", session.training_type or ""],
        ["Training Content:", session.training_content or ""],
        ["Session Start Time:", _format_time(session.session_start_time)],
    ]
    if session.session_end_time:
        rows.append(["Session End Time:", _format_time(session.session_end_time)])
    rows.extend([
        ["Duration:", session.duration or "In progress"],
        [],
        ["Training Attendance Sheet:"],
        ["Training Title:", session.training_title or session.training_type or ""],
        [],
    ])
    return rows


def render_attendance_sheet(session: TrainingSession, records: List[AttendanceRecord]) -> bytes:
    """
    Renders one session and its check-ins as an .xlsx workbook.

    The sheet starts with a block of session details, followed by one table row
    per record in the order given. Records are expected in ledger order
    (check-in time ascending). An empty list still produces the header block and
    the table header row.
    """
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = SHEET_TITLE

    for row in _header_rows(session):
        worksheet.append(row)
    worksheet.cell(row=1, column=1).font = Font(bold=True, size=14)

    worksheet.append(TABLE_HEADERS)
    table_header_row = worksheet.max_row
    for cell in worksheet[table_header_row]:
        cell.font = Font(bold=True)
        cell.fill = _HEADER_FILL

    for index, record in enumerate(records, start=1):
        worksheet.append([
            index,
            record.student_name or "N/A",
            record.job_title or "N/A",
            record.signature or "",
            record.comments or "N/A",
            _format_time(record.check_in_time, "%d/%m/%Y %H:%M:%S"),
        ])

    for column, width in COLUMN_WIDTHS.items():
        worksheet.column_dimensions[column].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
