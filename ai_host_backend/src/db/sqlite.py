"""SQLite database helper and simple repositories for users, properties, and kb docs.

PySecure-4-Minimal:
- Use parameterized queries.
- Ensure connections are closed via context managers.
- Avoid logging sensitive data.
- Create DB directory if missing; initialize schema on first connect.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Optional

from src.core.config import get_settings

# Columns an owner may set on a property. Order matters for inserts.
PROPERTY_FIELDS = (
    "name",
    "persona_style",
    "wifi_name",
    "wifi_password",
    "check_in_instructions",
    "trash_day",
    "quiet_hours",
    "checkin_video_url",
    "guidebook_content",
    "guidebook_url",
)


def _ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the tables needed by this backend instance."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS auth_users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE NOT NULL,
            full_name TEXT,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS properties (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            persona_style TEXT,
            wifi_name TEXT,
            wifi_password TEXT,
            check_in_instructions TEXT,
            trash_day TEXT,
            quiet_hours TEXT,
            checkin_video_url TEXT,
            guidebook_content TEXT,
            guidebook_url TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES auth_users(id)
        );
        CREATE INDEX IF NOT EXISTS idx_properties_user ON properties(user_id);

        CREATE TABLE IF NOT EXISTS kb_docs (
            id TEXT PRIMARY KEY,
            property_id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            question TEXT NOT NULL,
            answer TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY(property_id) REFERENCES properties(id)
        );
        CREATE INDEX IF NOT EXISTS idx_kb_docs_property ON kb_docs(property_id);
        """
    )
    conn.commit()


@contextmanager
def get_conn():
    settings = get_settings()
    db_path = Path(settings.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    # Use check_same_thread=False to prevent thread-affinity errors under TestClient or background tasks.
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    try:
        _ensure_schema(conn)
        yield conn
    finally:
        conn.close()


def fetch_all(conn: sqlite3.Connection, query: str, params: Iterable[Any]) -> list[dict[str, Any]]:
    conn.row_factory = sqlite3.Row
    cur = conn.execute(query, list(params))
    rows = cur.fetchall()
    return [dict(r) for r in rows]


def fetch_one(conn: sqlite3.Connection, query: str, params: Iterable[Any]) -> Optional[dict[str, Any]]:
    conn.row_factory = sqlite3.Row
    cur = conn.execute(query, list(params))
    row = cur.fetchone()
    return dict(row) if row else None


def execute(conn: sqlite3.Connection, query: str, params: Iterable[Any]) -> None:
    conn.execute(query, list(params))
    conn.commit()


# --- auth_users ---

def auth_get_user_by_email(conn: sqlite3.Connection, email_norm: str) -> Optional[dict[str, Any]]:
    """Return user record from auth_users by email."""
    return fetch_one(conn, "SELECT * FROM auth_users WHERE email = ?", (email_norm,))


def auth_get_user_by_id(conn: sqlite3.Connection, user_id: str) -> Optional[dict[str, Any]]:
    """Return user record from auth_users by id."""
    return fetch_one(conn, "SELECT * FROM auth_users WHERE id = ?", (user_id,))


def auth_insert_user(conn: sqlite3.Connection, rec: dict[str, Any]) -> None:
    """Insert a new user into auth_users."""
    execute(
        conn,
        "INSERT INTO auth_users (id, email, full_name, password_hash, created_at) VALUES (?, ?, ?, ?, ?)",
        (rec["id"], rec["email"], rec.get("full_name"), rec["password_hash"], rec["created_at"]),
    )


# --- properties ---

def property_insert(conn: sqlite3.Connection, rec: dict[str, Any]) -> None:
    """Insert a property row. Missing optional fields are stored as NULL."""
    columns = ("id", "user_id", *PROPERTY_FIELDS, "status", "created_at", "updated_at")
    placeholders = ", ".join("?" for _ in columns)
    execute(
        conn,
        f"INSERT INTO properties ({', '.join(columns)}) VALUES ({placeholders})",
        tuple(rec.get(c) for c in columns),
    )


def property_exists(conn: sqlite3.Connection, property_id: str) -> bool:
    return fetch_one(conn, "SELECT id FROM properties WHERE id = ?", (property_id,)) is not None


def property_get_active(conn: sqlite3.Connection, property_id: str) -> Optional[dict[str, Any]]:
    """Return the property only when its status is 'active'."""
    return fetch_one(
        conn,
        "SELECT * FROM properties WHERE id = ? AND status = 'active'",
        (property_id,),
    )


def property_get_owned(conn: sqlite3.Connection, property_id: str, user_id: str) -> Optional[dict[str, Any]]:
    """Return the property scoped to its owner; None when absent or owned by someone else."""
    return fetch_one(
        conn,
        "SELECT * FROM properties WHERE id = ? AND user_id = ?",
        (property_id, user_id),
    )


def property_list_owned(conn: sqlite3.Connection, user_id: str) -> list[dict[str, Any]]:
    return fetch_all(
        conn,
        "SELECT * FROM properties WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
    )


def property_update_guidebook(
    conn: sqlite3.Connection,
    property_id: str,
    content: str,
    url: Optional[str],
    updated_at: str,
) -> None:
    execute(
        conn,
        "UPDATE properties SET guidebook_content = ?, guidebook_url = ?, updated_at = ? WHERE id = ?",
        (content, url, updated_at, property_id),
    )


# --- kb_docs ---

def kb_find_by_question(conn: sqlite3.Connection, property_id: str, question: str) -> Optional[dict[str, Any]]:
    return fetch_one(
        conn,
        "SELECT * FROM kb_docs WHERE property_id = ? AND question = ?",
        (property_id, question),
    )


def kb_insert(conn: sqlite3.Connection, rec: dict[str, Any]) -> None:
    execute(
        conn,
        "INSERT INTO kb_docs (id, property_id, user_id, question, answer, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        (rec["id"], rec["property_id"], rec["user_id"], rec["question"], rec["answer"], rec["created_at"]),
    )


def kb_update_answer(conn: sqlite3.Connection, doc_id: str, answer: str, user_id: str) -> None:
    execute(
        conn,
        "UPDATE kb_docs SET answer = ?, user_id = ? WHERE id = ?",
        (answer, user_id, doc_id),
    )


def kb_list_for_property(conn: sqlite3.Connection, property_id: str) -> list[dict[str, Any]]:
    return fetch_all(
        conn,
        "SELECT * FROM kb_docs WHERE property_id = ? ORDER BY created_at",
        (property_id,),
    )
