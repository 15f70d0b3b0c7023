from datetime import datetime
from io import BytesIO

from openpyxl import load_workbook

from training_attendance.backend.tools.sheet_renderer import render_attendance_sheet, SHEET_TITLE, TABLE_HEADERS

from conftest import make_session, make_record


def _rows(content: bytes):
    worksheet = load_workbook(BytesIO(content)).active
    return worksheet.title, [list(row) for row in worksheet.iter_rows(values_only=True)]


def _labels(rows) -> dict:
    return {row[0]: row[1] for row in rows if row and row[0] and str(row[0]).endswith(":")}


def _table_header_index(rows) -> int:
    return next(i for i, row in enumerate(rows) if row[:len(TABLE_HEADERS)] == TABLE_HEADERS)


def test_empty_session_renders_header_block_and_empty_table():
    """Scenario: a session without check-ins still exports a valid sheet."""
    title, rows = _rows(render_attendance_sheet(make_session(), []))

    assert title == SHEET_TITLE
    assert rows[0][0] == "Training Record"
    labels = _labels(rows)
    assert labels["Date of Training:"] == "10/01/2024, Wednesday"
    assert labels["Trainer Details, Designation:"] == "Jane Doe, Safety Officer"
    assert labels["Duration:"] == "In progress"
    assert "Session End Time:" not in labels
    assert _table_header_index(rows) == len(rows) - 1


def test_ended_session_shows_end_time_and_duration():
    session = make_session(
        session_end_time=datetime(2024, 1, 10, 10, 50),
        duration="10:30 - 10:50 (20 min.)",
        duration_minutes=20,
    )
    _, rows = _rows(render_attendance_sheet(session, []))

    labels = _labels(rows)
    assert labels["Session Start Time:"] == "10/01/2024 10:30"
    assert labels["Session End Time:"] == "10/01/2024 10:50"
    assert labels["Duration:"] == "10:30 - 10:50 (20 min.)"


def test_records_are_numbered_in_the_order_given():
    records = [
        make_record(id=1, student_id=42, student_name="John Doe", signature="John Doe", comments="none",
                    check_in_time=datetime(2024, 1, 10, 10, 31, 5)),
        make_record(id=2, student_id=43, student_name="Mary Major", signature="Mary Major", job_title=None, comments="",
                    check_in_time=datetime(2024, 1, 10, 10, 33, 0)),
    ]
    _, rows = _rows(render_attendance_sheet(make_session(), records))

    table = rows[_table_header_index(rows) + 1:]
    assert table[0][:6] == [1, "John Doe", "Operator", "John Doe", "none", "10/01/2024 10:31:05"]
    assert table[1][:6] == [2, "Mary Major", "N/A", "Mary Major", "N/A", "10/01/2024 10:33:00"]
