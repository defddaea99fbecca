from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, TypedDict

SENDERS = ("human", "assistant", "unknown")
CONTENT_TYPES = ("text", "thinking", "attachment", "unknown")


@dataclass
class ConversationSummary:
    uuid: str
    name: str
    created_at: str | None = None
    updated_at: str | None = None
    first_message_at: str | None = None
    last_message_at: str | None = None
    is_starred: bool = False
    message_count: int = 0
    summary: str = ""
    last_download: str | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> ConversationSummary:
        return cls(
            uuid=row["uuid"],
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            first_message_at=row["first_message_at"],
            last_message_at=row["last_message_at"],
            is_starred=bool(row["is_starred"]),
            message_count=int(row["message_count"] or 0),
            summary=row["summary"] or "",
            last_download=row["last_download"],
        )


@dataclass
class MessageFragment:
    conversation_uuid: str
    message_uuid: str
    sender: str
    timestamp: str | None
    position_index: int
    content_type: str
    text: str
    attachment_info: str | None = None
    id: int | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> MessageFragment:
        return cls(
            id=int(row["id"]),
            conversation_uuid=row["conversation_uuid"],
            message_uuid=row["message_uuid"],
            sender=row["sender"],
            timestamp=row["timestamp"],
            position_index=int(row["position_index"]),
            content_type=row["content_type"],
            text=row["text"],
            attachment_info=row["attachment_info"],
        )


@dataclass
class Snippet:
    snippet: str
    sender: str
    content_type: str
    timestamp: str | None


class SearchFilters(TypedDict, total=False):
    content_types: list[str]
    senders: list[str]


class ManifestEntry(TypedDict):
    uuid: str
    name: str
    created_at: Any
    updated_at: Any
    is_starred: bool
    last_downloaded: str | None
