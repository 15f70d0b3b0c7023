# training_attendance/backend/db/schema.py
"""
Table definitions applied once when the database pool is initialised, plus the
reference data seeded on a fresh database.
"""

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        identifier TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('teacher', 'student', 'admin')),
        full_name TEXT NOT NULL,
        job_title TEXT,
        phone TEXT,
        department TEXT,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        last_login TIMESTAMP,
        created_at TIMESTAMP NOT NULL DEFAULT clock_timestamp()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS training_sessions (
        id SERIAL PRIMARY KEY,
        date TEXT NOT NULL,
        department TEXT,
        location TEXT,
        trainer_name TEXT NOT NULL,
        trainer_designation TEXT,
        training_type TEXT,
        training_title TEXT,
        training_content TEXT,
        session_start_time TIMESTAMP NOT NULL,
        session_end_time TIMESTAMP,
        duration TEXT,
        duration_minutes INTEGER CHECK (duration_minutes >= 0),
        created_at TIMESTAMP NOT NULL DEFAULT clock_timestamp(),
        CHECK ((session_end_time IS NULL) = (duration_minutes IS NULL))
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_training_sessions_date ON training_sessions (date, created_at DESC);",
    """
    CREATE TABLE IF NOT EXISTS attendance (
        id SERIAL PRIMARY KEY,
        session_id INTEGER NOT NULL REFERENCES training_sessions (id),
        student_id INTEGER NOT NULL REFERENCES users (id),
        check_in_time TIMESTAMP NOT NULL,
        student_name TEXT,
        signature TEXT,
        job_title TEXT,
        comments TEXT,
        created_at TIMESTAMP NOT NULL DEFAULT clock_timestamp(),
        CONSTRAINT uq_attendance_session_student UNIQUE (session_id, student_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS departments (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        description TEXT,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP NOT NULL DEFAULT clock_timestamp()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS job_titles (
        id SERIAL PRIMARY KEY,
        title TEXT NOT NULL UNIQUE,
        department_id INTEGER REFERENCES departments (id),
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP NOT NULL DEFAULT clock_timestamp()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS training_types (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        description TEXT,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP NOT NULL DEFAULT clock_timestamp()
    );
    """,
]

DEFAULT_DEPARTMENTS = [
    ("Manufacturing", "Production and manufacturing operations"),
    ("Quality Control", "Quality assurance and control"),
    ("Maintenance", "Equipment maintenance and repair"),
    ("Safety", "Safety and compliance"),
    ("Administration", "Administrative functions"),
    ("IT Department", "Information technology"),
    ("Training Department", "Training and development"),
]

# (title, department name)
DEFAULT_JOB_TITLES = [
    ("Trainee", "Manufacturing"),
    ("Operator", "Manufacturing"),
    ("Supervisor", "Manufacturing"),
    ("Quality Inspector", "Quality Control"),
    ("QC Manager", "Quality Control"),
    ("Maintenance Technician", "Maintenance"),
    ("Maintenance Supervisor", "Maintenance"),
    ("Safety Officer", "Safety"),
    ("Safety Manager", "Safety"),
    ("Administrative Assistant", "Administration"),
    ("Office Manager", "Administration"),
    ("IT Support", "IT Department"),
    ("System Administrator", "IT Department"),
    ("Training Coordinator", "Training Department"),
    ("Training Manager", "Training Department"),
]

DEFAULT_TRAINING_TYPES = [
    ("Code of Conduct - Daily Orientation", "Daily orientation and code of conduct training"),
    ("Safety Training", "Workplace safety and hazard awareness"),
    ("Equipment Operation", "Training on specific equipment operation"),
    ("Quality Standards", "Quality control and standards training"),
    ("Emergency Procedures", "Emergency response and evacuation procedures"),
    ("Compliance Training", "Regulatory compliance and legal requirements"),
]
