"""
Lightweight SQLite DB for agents and the conversation thread bound to each agent.

Creates data/agents.db (relative to project root, see DATABASE_PATH).
Tables: agents (id, name, instructions, assistant_id, vector_store_id, created_at, updated_at)
and conversations (id, agent_id, thread_id, created_at, updated_at). One conversation per agent.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import DATABASE_PATH

logger = logging.getLogger(__name__)

# Project root
_ROOT = Path(__file__).resolve().parent.parent.parent
_DB_PATH = Path(DATABASE_PATH) if Path(DATABASE_PATH).is_absolute() else _ROOT / DATABASE_PATH

_AGENT_FIELDS = ("name", "instructions", "assistant_id", "vector_store_id")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_conn() -> sqlite3.Connection:
    _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(_DB_PATH))
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create the agents and conversations tables if they do not exist."""
    conn = _get_conn()
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS agents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                instructions TEXT NOT NULL,
                assistant_id TEXT,
                vector_store_id TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS conversations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                agent_id INTEGER NOT NULL UNIQUE,
                thread_id TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        conn.commit()
    finally:
        conn.close()


# --- Agents ---

def create_agent(data: dict[str, Any]) -> int:
    """Insert an agent row and return its id."""
    init_db()
    now = _now()
    conn = _get_conn()
    try:
        cur = conn.execute(
            "INSERT INTO agents (name, instructions, assistant_id, vector_store_id, created_at, updated_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (data["name"], data["instructions"], data.get("assistant_id"), data.get("vector_store_id"), now, now),
        )
        conn.commit()
        logger.info("[db:create_agent] id=%s name=%s", cur.lastrowid, data["name"])
        return int(cur.lastrowid)
    finally:
        conn.close()


def get_all_agents() -> list[dict[str, Any]]:
    """Return all agents, newest first."""
    init_db()
    conn = _get_conn()
    try:
        cur = conn.execute("SELECT * FROM agents ORDER BY id DESC")
        return [dict(row) for row in cur.fetchall()]
    finally:
        conn.close()


def get_agent_by_id(agent_id: int) -> dict[str, Any] | None:
    init_db()
    conn = _get_conn()
    try:
        row = conn.execute("SELECT * FROM agents WHERE id = ?", (agent_id,)).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def update_agent_by_id(agent_id: int, data: dict[str, Any]) -> bool:
    """Update the given agent columns (unknown keys are ignored). Returns False if no row matched."""
    fields = {k: v for k, v in data.items() if k in _AGENT_FIELDS}
    if not fields:
        return get_agent_by_id(agent_id) is not None
    fields["updated_at"] = _now()
    assignments = ", ".join(f"{k} = ?" for k in fields)
    init_db()
    conn = _get_conn()
    try:
        cur = conn.execute(f"UPDATE agents SET {assignments} WHERE id = ?", (*fields.values(), agent_id))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def delete_agent_by_id(agent_id: int) -> bool:
    """Delete the agent and its conversation row. Returns False if the agent did not exist."""
    init_db()
    conn = _get_conn()
    try:
        conn.execute("DELETE FROM conversations WHERE agent_id = ?", (agent_id,))
        cur = conn.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
        conn.commit()
        logger.info("[db:delete_agent_by_id] id=%s deleted=%s", agent_id, cur.rowcount > 0)
        return cur.rowcount > 0
    finally:
        conn.close()


# --- Conversations ---

def create_conversation(agent_id: int, thread_id: str) -> int:
    """
    Insert the conversation row for an agent.

    Raises sqlite3.IntegrityError if the agent already has a conversation.
    """
    init_db()
    now = _now()
    conn = _get_conn()
    try:
        cur = conn.execute(
            "INSERT INTO conversations (agent_id, thread_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (agent_id, thread_id, now, now),
        )
        conn.commit()
        logger.info("[db:create_conversation] agent_id=%s thread_id=%s", agent_id, thread_id)
        return int(cur.lastrowid)
    finally:
        conn.close()


def get_conversation_by_agent_id(agent_id: int) -> dict[str, Any] | None:
    init_db()
    conn = _get_conn()
    try:
        row = conn.execute("SELECT * FROM conversations WHERE agent_id = ?", (agent_id,)).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def get_conversation_by_thread_id(thread_id: str) -> dict[str, Any] | None:
    init_db()
    conn = _get_conn()
    try:
        row = conn.execute("SELECT * FROM conversations WHERE thread_id = ?", (thread_id,)).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def touch_conversation(conversation_id: int) -> None:
    """Set updated_at to now."""
    init_db()
    conn = _get_conn()
    try:
        conn.execute("UPDATE conversations SET updated_at = ? WHERE id = ?", (_now(), conversation_id))
        conn.commit()
    finally:
        conn.close()

