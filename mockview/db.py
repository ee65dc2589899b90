"""
SQLite database management for Mockview.

Stores interview sessions (resume text and job details), their
transcripts and the final feedback.
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from pydantic import BaseModel

from .llm.models import InterviewFeedback, JobDetails, TranscriptMessage

SESSION_STATUSES = ("pending", "in-progress", "completed")


class SessionRecord(BaseModel):
    """Interview session record model."""

    id: Optional[int] = None
    resume: str
    job: JobDetails
    status: str = "pending"
    feedback: Optional[InterviewFeedback] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


# Schema version for migrations
SCHEMA_VERSION = 1

# SQLite schema
SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at INTEGER DEFAULT (strftime('%s', 'now'))
);

-- Interview sessions
CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY,
    resume TEXT NOT NULL,
    job_title TEXT,
    job_description TEXT,
    yoe_required TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    feedback TEXT,
    created_at INTEGER DEFAULT (strftime('%s', 'now')),
    updated_at INTEGER DEFAULT (strftime('%s', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_sessions_status ON sessions(status);

-- Interview transcript
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY,
    session_id INTEGER NOT NULL REFERENCES sessions(id),
    role TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at INTEGER DEFAULT (strftime('%s', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_messages_session_id ON messages(session_id);
"""


class Database:
    """SQLite database manager for Mockview."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        """Ensure database schema is up to date."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA_SQL)

            cursor = conn.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version < SCHEMA_VERSION:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> SessionRecord:
        data = dict(row)
        feedback = json.loads(data["feedback"]) if data["feedback"] else None
        return SessionRecord(
            id=data["id"],
            resume=data["resume"],
            job=JobDetails(
                title=data["job_title"],
                description=data["job_description"],
                yoe_required=data["yoe_required"],
            ),
            status=data["status"],
            feedback=InterviewFeedback(**feedback) if feedback else None,
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    # Session operations
    def create_session(self, resume: str, job: JobDetails) -> int:
        """Store a new session and return its ID."""
        if not resume or not resume.strip():
            raise ValueError("Resume text is required")

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sessions (resume, job_title, job_description, yoe_required)
                VALUES (?, ?, ?, ?)
                """,
                (resume, job.title, job.description, job.yoe_required)
            )
            return cursor.lastrowid

    def get_session(self, session_id: int) -> Optional[SessionRecord]:
        """Get session record by ID."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
            row = cursor.fetchone()
            if row:
                return self._row_to_session(row)
            return None

    def list_sessions(self, status: Optional[str] = None) -> List[SessionRecord]:
        """List sessions, newest first."""
        query = "SELECT * FROM sessions"
        params: tuple = ()
        if status:
            query += " WHERE status = ?"
            params = (status,)
        query += " ORDER BY id DESC"

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_session(row) for row in cursor.fetchall()]

    def update_status(self, session_id: int, status: str) -> None:
        """Move a session to a new status."""
        if status not in SESSION_STATUSES:
            raise ValueError(f"Unknown session status: {status}")

        with self._get_connection() as conn:
            conn.execute(
                "UPDATE sessions SET status = ?, updated_at = strftime('%s', 'now') WHERE id = ?",
                (status, session_id)
            )

    def record_feedback(self, session_id: int, feedback: InterviewFeedback) -> None:
        """Store final feedback and mark the session completed."""
        with self._get_connection() as conn:
            conn.execute(
                """
                UPDATE sessions
                SET feedback = ?, status = 'completed', updated_at = strftime('%s', 'now')
                WHERE id = ?
                """,
                (json.dumps(feedback.model_dump()), session_id)
            )

    # Transcript operations
    def append_message(self, session_id: int, role: str, content: str) -> int:
        """Append a transcript message. Returns message ID."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO messages (session_id, role, content) VALUES (?, ?, ?)",
                (session_id, role, content)
            )
            return cursor.lastrowid

    def get_transcript(self, session_id: int) -> List[TranscriptMessage]:
        """Get the transcript of a session in order."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT role, content FROM messages WHERE session_id = ? ORDER BY id",
                (session_id,)
            )
            return [TranscriptMessage(**dict(row)) for row in cursor.fetchall()]

    def get_stats(self) -> Dict[str, Any]:
        """Get session counts by status."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT status, COUNT(*) AS n FROM sessions GROUP BY status")
            by_status = {row["status"]: row["n"] for row in cursor.fetchall()}
        return {
            "total_sessions": sum(by_status.values()),
            **{status: by_status.get(status, 0) for status in SESSION_STATUSES},
        }
