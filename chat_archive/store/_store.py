from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from .. import db
from ..errors import StoreError
from . import search as store_search
from . import stats as store_stats
from .types import ConversationSummary, MessageFragment, SearchFilters, Snippet

_CONVERSATION_COLUMNS = (
    "uuid",
    "name",
    "created_at",
    "updated_at",
    "first_message_at",
    "last_message_at",
    "is_starred",
    "message_count",
    "summary",
    "last_download",
)

_FRAGMENT_COLUMNS = (
    "conversation_uuid",
    "message_uuid",
    "sender",
    "timestamp",
    "position_index",
    "content_type",
    "text",
    "attachment_info",
)


class ArchiveStore:
    """SQLite-backed archive of conversation summaries and their message fragments.

    One instance owns one connection. Readers that run alongside a sync pass
    should open their own instance; WAL mode keeps each committed conversation
    unit (summary plus fragments) visible as a whole.
    """

    def __init__(
        self,
        db_path: Path | str = db.DEFAULT_DB_PATH,
        *,
        check_same_thread: bool = True,
        timeout_s: float = 5.0,
    ):
        self.db_path = Path(db_path).expanduser()
        try:
            self.conn = db.connect(
                self.db_path, check_same_thread=check_same_thread, timeout_s=timeout_s
            )
            db.initialize_schema(self.conn)
        except sqlite3.Error as exc:
            raise StoreError(f"failed to open archive at {self.db_path}: {exc}") from exc

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> ArchiveStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _fetchall(self, sql: str, params: Sequence[Any]) -> list[sqlite3.Row]:
        try:
            return self.conn.execute(sql, list(params)).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def _count(self, table: str) -> int:
        rows = self._fetchall(f"SELECT COUNT(*) FROM {table}", [])
        return int(rows[0][0]) if rows else 0

    @staticmethod
    def _conversation_params(summary: ConversationSummary) -> tuple[Any, ...]:
        return (
            summary.uuid,
            summary.name,
            summary.created_at,
            summary.updated_at,
            summary.first_message_at,
            summary.last_message_at,
            1 if summary.is_starred else 0,
            int(summary.message_count),
            summary.summary or "",
            summary.last_download,
        )

    @staticmethod
    def _fragment_params(fragment: MessageFragment) -> tuple[Any, ...]:
        return (
            fragment.conversation_uuid,
            fragment.message_uuid,
            fragment.sender,
            fragment.timestamp,
            int(fragment.position_index),
            fragment.content_type,
            fragment.text,
            fragment.attachment_info,
        )

    def _write_conversation(self, summary: ConversationSummary) -> None:
        columns = ", ".join(_CONVERSATION_COLUMNS)
        placeholders = ", ".join(["?"] * len(_CONVERSATION_COLUMNS))
        self.conn.execute(
            f"INSERT OR REPLACE INTO conversations({columns}) VALUES ({placeholders})",
            self._conversation_params(summary),
        )

    def _write_fragments(self, fragments: Iterable[MessageFragment]) -> int:
        columns = ", ".join(_FRAGMENT_COLUMNS)
        placeholders = ", ".join(["?"] * len(_FRAGMENT_COLUMNS))
        rows = [self._fragment_params(item) for item in fragments if item.text]
        if rows:
            self.conn.executemany(
                f"INSERT INTO message_fragments({columns}) VALUES ({placeholders})",
                rows,
            )
        return len(rows)

    def upsert_conversation(self, summary: ConversationSummary) -> None:
        try:
            with self.conn:
                self._write_conversation(summary)
        except sqlite3.Error as exc:
            raise StoreError(f"failed to store conversation {summary.uuid}: {exc}") from exc

    def upsert_fragments(self, fragments: Iterable[MessageFragment]) -> int:
        try:
            with self.conn:
                return self._write_fragments(fragments)
        except sqlite3.Error as exc:
            raise StoreError(f"failed to store fragments: {exc}") from exc

    def replace_conversation(
        self, summary: ConversationSummary, fragments: Iterable[MessageFragment]
    ) -> int:
        """Replace a conversation and all of its fragments in one transaction."""

        try:
            with self.conn:
                self.conn.execute(
                    "DELETE FROM message_fragments WHERE conversation_uuid = ?",
                    (summary.uuid,),
                )
                self._write_conversation(summary)
                return self._write_fragments(fragments)
        except sqlite3.Error as exc:
            raise StoreError(f"failed to replace conversation {summary.uuid}: {exc}") from exc

    def get_conversation(self, uuid: str) -> ConversationSummary | None:
        rows = self._fetchall("SELECT * FROM conversations WHERE uuid = ?", [uuid])
        if not rows:
            return None
        return ConversationSummary.from_row(rows[0])

    def get_all_conversations(self) -> list[ConversationSummary]:
        rows = self._fetchall("SELECT * FROM conversations ORDER BY uuid", [])
        return [ConversationSummary.from_row(row) for row in rows]

    def get_fragments_by_conversation(self, uuid: str) -> list[MessageFragment]:
        rows = self._fetchall(
            "SELECT * FROM message_fragments WHERE conversation_uuid = ? ORDER BY id",
            [uuid],
        )
        return [MessageFragment.from_row(row) for row in rows]

    def get_all_fragments(self) -> list[MessageFragment]:
        rows = self._fetchall("SELECT * FROM message_fragments ORDER BY id", [])
        return [MessageFragment.from_row(row) for row in rows]

    def count_conversations(self) -> int:
        return self._count("conversations")

    def count_fragments(self) -> int:
        return self._count("message_fragments")

    def clear(self) -> None:
        try:
            with self.conn:
                self.conn.execute("DELETE FROM message_fragments")
                self.conn.execute("DELETE FROM conversations")
        except sqlite3.Error as exc:
            raise StoreError(f"failed to clear archive: {exc}") from exc

    def search(
        self, query: str | None, filters: SearchFilters | dict[str, Any] | None = None
    ) -> list[ConversationSummary]:
        return store_search.search(self, query, filters=filters)

    def get_snippets(
        self,
        conversation_uuid: str | None,
        query: str | None,
        filters: SearchFilters | dict[str, Any] | None = None,
    ) -> list[Snippet]:
        return store_search.get_snippets(self, conversation_uuid, query, filters=filters)

    def stats(self) -> dict[str, Any]:
        return store_stats.stats(self)

    def latest_sync_at(self) -> str:
        return store_stats.latest_sync_at(self)
