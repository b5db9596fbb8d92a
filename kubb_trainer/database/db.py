"""
SQLite database manager for Kubb Trainer.

Persists practice sessions as whole snapshots: the session's scalar
fields as columns, its rounds and throws as JSON text.
Database file: ~/.kubb_trainer/kubb_trainer.db
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from kubb_trainer.models.session import PracticeSession, SessionType
from kubb_trainer.utils.config import Config

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

SESSION_COLUMNS = (
    "id", "session_type", "target", "target_score", "game_phase",
    "total_batons", "total_kubbs", "is_complete", "is_paused",
    "date", "start_time", "end_time", "created_at", "modified_at",
    "rounds_json",
)


class PersistenceError(Exception):
    """A session could not be read from or written to the database."""


class Database:
    """SQLite database wrapper for Kubb Trainer session persistence."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or Config.get_db_path()
        self.conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self):
        """Initialize database connection and create tables."""
        try:
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=WAL")

            schema = SCHEMA_FILE.read_text()
            self.conn.executescript(schema)
            self.conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        logger.info(f"Database initialized at {self.db_path}")

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _write(self, sql: str, params: tuple = ()) -> int:
        """Run one statement in its own transaction. Returns rowcount."""
        try:
            cur = self.conn.execute(sql, params)
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise PersistenceError(str(e)) from e
        return cur.rowcount

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    # =========================================================================
    # Row mapping
    # =========================================================================

    @staticmethod
    def _to_row(session: PracticeSession) -> tuple:
        data = session.to_dict()
        return (
            data["id"], data["sessionType"], data["target"], data["targetScore"],
            data["gamePhase"], data["totalBatons"], data["totalKubbs"],
            int(data["isComplete"]), int(data["isPaused"]),
            data["date"], data["startTime"], data["endTime"],
            data["createdAt"], data["modifiedAt"],
            json.dumps(data["rounds"]),
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> PracticeSession:
        return PracticeSession.from_dict({
            "id": row["id"],
            "sessionType": row["session_type"],
            "target": row["target"],
            "targetScore": row["target_score"],
            "gamePhase": row["game_phase"],
            "rounds": json.loads(row["rounds_json"]),
            "totalBatons": row["total_batons"],
            "totalKubbs": row["total_kubbs"],
            "isComplete": bool(row["is_complete"]),
            "isPaused": bool(row["is_paused"]),
            "date": row["date"],
            "startTime": row["start_time"],
            "endTime": row["end_time"],
            "createdAt": row["created_at"],
            "modifiedAt": row["modified_at"],
        })

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, session: PracticeSession) -> str:
        """Insert a new session and return its ID."""
        placeholders = ", ".join("?" for _ in SESSION_COLUMNS)
        self._write(
            f"INSERT INTO sessions ({', '.join(SESSION_COLUMNS)}) "
            f"VALUES ({placeholders})",
            self._to_row(session),
        )
        logger.info(f"Session created: id={session.id}")
        return session.id

    def update_session(self, session: PracticeSession):
        """Overwrite the stored snapshot of a session."""
        assignments = ", ".join(f"{col} = ?" for col in SESSION_COLUMNS[1:])
        row = self._to_row(session)
        updated = self._write(
            f"UPDATE sessions SET {assignments} WHERE id = ?",
            row[1:] + (row[0],),
        )
        if updated == 0:
            raise PersistenceError(f"Session {session.id} does not exist")
        logger.debug(
            f"Session saved: id={session.id}, batons={session.total_batons}"
        )

    def get_session(self, session_id: str) -> Optional[PracticeSession]:
        rows = self._query("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return self._from_row(rows[0]) if rows else None

    def get_active_session(self) -> Optional[PracticeSession]:
        """The session still in progress (possibly paused), if any."""
        rows = self._query(
            "SELECT * FROM sessions WHERE is_complete = 0 "
            "ORDER BY modified_at DESC LIMIT 1"
        )
        return self._from_row(rows[0]) if rows else None

    def get_all_sessions(self, session_type: Optional[SessionType] = None
                         ) -> list[PracticeSession]:
        """All sessions, newest first, optionally of one type."""
        if session_type is None:
            rows = self._query("SELECT * FROM sessions ORDER BY date DESC")
        else:
            rows = self._query(
                "SELECT * FROM sessions WHERE session_type = ? ORDER BY date DESC",
                (session_type.value,),
            )
        return [self._from_row(r) for r in rows]

    def get_sessions_by_date_range(self, start: datetime, end: datetime
                                   ) -> list[PracticeSession]:
        rows = self._query(
            "SELECT * FROM sessions WHERE date >= ? AND date <= ? "
            "ORDER BY date DESC",
            (start.isoformat(), end.isoformat()),
        )
        return [self._from_row(r) for r in rows]

    def get_session_counts(self) -> dict[str, int]:
        """Number of completed sessions per session type."""
        rows = self._query("""
            SELECT session_type, COUNT(*) AS num_sessions
            FROM sessions
            WHERE is_complete = 1
            GROUP BY session_type
        """)
        return {r["session_type"]: r["num_sessions"] for r in rows}

    def delete_session(self, session_id: str):
        self._write("DELETE FROM sessions WHERE id = ?", (session_id,))
        logger.info(f"Session deleted: id={session_id}")
