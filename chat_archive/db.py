from __future__ import annotations

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".chat-archive" / "archive.sqlite"
SCHEMA_VERSION = 1


def connect(
    db_path: Path | str,
    check_same_thread: bool = True,
    timeout_s: float = 5.0,
) -> sqlite3.Connection:
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=check_same_thread, timeout=timeout_s)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.OperationalError:
        conn.execute("PRAGMA journal_mode = DELETE")
    conn.execute("PRAGMA synchronous = NORMAL")
    return conn


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS conversations (
            uuid TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TEXT,
            updated_at TEXT,
            first_message_at TEXT,
            last_message_at TEXT,
            is_starred INTEGER NOT NULL DEFAULT 0,
            message_count INTEGER NOT NULL DEFAULT 0,
            summary TEXT NOT NULL DEFAULT '',
            last_download TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_conversations_name ON conversations(name);
        CREATE INDEX IF NOT EXISTS idx_conversations_created ON conversations(created_at);
        CREATE INDEX IF NOT EXISTS idx_conversations_updated ON conversations(updated_at);
        CREATE INDEX IF NOT EXISTS idx_conversations_starred ON conversations(is_starred);

        CREATE TABLE IF NOT EXISTS message_fragments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            conversation_uuid TEXT NOT NULL,
            message_uuid TEXT,
            sender TEXT NOT NULL,
            timestamp TEXT,
            position_index INTEGER NOT NULL DEFAULT 0,
            content_type TEXT NOT NULL,
            text TEXT NOT NULL,
            attachment_info TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_fragments_conversation ON message_fragments(conversation_uuid, id);
        CREATE INDEX IF NOT EXISTS idx_fragments_sender ON message_fragments(sender);
        CREATE INDEX IF NOT EXISTS idx_fragments_type ON message_fragments(content_type);
        CREATE INDEX IF NOT EXISTS idx_fragments_timestamp ON message_fragments(timestamp);
        """
    )
    _ensure_column(conn, "conversations", "summary", "TEXT NOT NULL DEFAULT ''")
    _ensure_column(conn, "message_fragments", "attachment_info", "TEXT")
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    conn.commit()


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, column_type: str) -> None:
    existing = {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}
    if column in existing:
        return
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")

