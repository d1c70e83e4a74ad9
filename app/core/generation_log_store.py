from __future__ import annotations

import os
import sqlite3
import threading

from app.core.config import settings
from app.schemas.resume_generation import GenerationLog, GenerationLogSummary

_conn: sqlite3.Connection | None = None
_conn_lock = threading.Lock()


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.generation_log_db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        _conn.execute(
            """
            CREATE TABLE IF NOT EXISTS resume_generation_logs (
                generation_id TEXT PRIMARY KEY,
                environment TEXT NOT NULL,
                company_name TEXT NOT NULL,
                role_title TEXT NOT NULL,
                score_before REAL NOT NULL,
                score_after REAL NOT NULL,
                application_status TEXT NOT NULL,
                log_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )
        _conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_resume_generation_logs_created_at
            ON resume_generation_logs (created_at);
            """
        )
        return _conn


def save_generation_log(log: GenerationLog) -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute(
            """
            INSERT OR REPLACE INTO resume_generation_logs (
                generation_id, environment, company_name, role_title,
                score_before, score_after, application_status, log_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                log.generation_id,
                log.environment,
                log.company_name,
                log.role_title,
                log.score_before,
                log.score_after,
                log.application_status,
                log.model_dump_json(by_alias=True),
                log.created_at.isoformat(),
            ),
        )
        conn.commit()


def get_generation_log(generation_id: str) -> GenerationLog | None:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(
            "SELECT log_json FROM resume_generation_logs WHERE generation_id = ?",
            (generation_id,),
        )
        row = cur.fetchone()

    if not row:
        return None
    return GenerationLog.model_validate_json(row[0])


def list_generation_logs(limit: int = 50) -> list[GenerationLogSummary]:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(
            """
            SELECT generation_id, created_at, company_name, role_title,
                   score_before, score_after, application_status
            FROM resume_generation_logs
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (max(1, int(limit)),),
        )
        rows = cur.fetchall()

    return [
        GenerationLogSummary(
            generation_id=row[0],
            created_at=row[1],
            company_name=row[2],
            role_title=row[3],
            score_before=row[4],
            score_after=row[5],
            application_status=row[6],
        )
        for row in rows
    ]


def clear_generation_logs() -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute("DELETE FROM resume_generation_logs")
        conn.commit()
