"""DuckDB-based persistence for draft sessions and their results."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import duckdb

from draft_room.models.series import SeriesState
from draft_room.models.session import SessionConfig

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS draft_sessions (
        id VARCHAR PRIMARY KEY,
        config VARCHAR NOT NULL,
        series VARCHAR NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS draft_results (
        session_id VARCHAR NOT NULL,
        game_index INTEGER NOT NULL,
        result VARCHAR NOT NULL,
        winner VARCHAR,
        PRIMARY KEY (session_id, game_index)
    )
    """,
]


@dataclass
class StoredSession:
    """A persisted session row."""

    id: str
    config: SessionConfig
    series: SeriesState
    created_at: Optional[datetime] = None


class DraftRepository:
    """Data access layer - DuckDB file holding draft sessions."""

    def __init__(self, database_path: str | Path):
        """Initialize with path to the DuckDB database, creating it if needed.

        Args:
            database_path: Path to the .duckdb file
        """
        self._db_path = Path(database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with duckdb.connect(str(self._db_path)) as conn:
            for statement in SCHEMA:
                conn.execute(statement)
            tables = conn.execute("SHOW TABLES").fetchall()
        logger.info(f"DraftRepository: Using {self._db_path} ({len(tables)} tables)")

    def _execute(self, sql: str, params: Optional[list] = None) -> list[tuple]:
        # Connection per call, DuckDB allows a single writer process
        with duckdb.connect(str(self._db_path)) as conn:
            cursor = conn.execute(sql, params or [])
            if cursor.description is None:
                return []
            return cursor.fetchall()

    def save_session(self, session_id: str, config: SessionConfig, series: SeriesState) -> None:
        """Insert or update a session and its completed games."""
        with duckdb.connect(str(self._db_path)) as conn:
            conn.execute(
                """
                INSERT INTO draft_sessions (id, config, series)
                VALUES (?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    config = excluded.config,
                    series = excluded.series,
                    updated_at = now()
                """,
                [session_id, config.model_dump_json(), series.model_dump_json()],
            )
            for result in series.results:
                conn.execute(
                    """
                    INSERT INTO draft_results (session_id, game_index, result, winner)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (session_id, game_index) DO UPDATE SET
                        result = excluded.result,
                        winner = excluded.winner
                    """,
                    [
                        session_id,
                        result.game_index,
                        result.model_dump_json(),
                        result.winner.value if result.winner else None,
                    ],
                )
        logger.debug(f"Saved session {session_id} ({len(series.results)} results)")

    def load_session(self, session_id: str) -> Optional[StoredSession]:
        rows = self._execute(
            "SELECT id, config, series, created_at FROM draft_sessions WHERE id = ?",
            [session_id],
        )
        if not rows:
            return None
        row_id, config, series, created_at = rows[0]
        return StoredSession(
            id=row_id,
            config=SessionConfig.model_validate(json.loads(config)),
            series=SeriesState.model_validate(json.loads(series)),
            created_at=created_at,
        )

    def list_sessions(self, limit: int = 50) -> list[StoredSession]:
        """Most recently updated sessions, newest first."""
        rows = self._execute(
            """
            SELECT id, config, series, created_at
            FROM draft_sessions
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            [limit],
        )
        return [
            StoredSession(
                id=row_id,
                config=SessionConfig.model_validate(json.loads(config)),
                series=SeriesState.model_validate(json.loads(series)),
                created_at=created_at,
            )
            for row_id, config, series, created_at in rows
        ]

    def delete_session(self, session_id: str) -> bool:
        """Remove a session and its results. Returns whether it existed."""
        existed = bool(self._execute("SELECT 1 FROM draft_sessions WHERE id = ?", [session_id]))
        self._execute("DELETE FROM draft_results WHERE session_id = ?", [session_id])
        self._execute("DELETE FROM draft_sessions WHERE id = ?", [session_id])
        if existed:
            logger.info(f"Deleted session {session_id}")
        return existed
