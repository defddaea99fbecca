"""Turn raw conversation payloads into summary rows and searchable fragments."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .errors import NormalizationError
from .store.types import ConversationSummary, MessageFragment
from .store.utils import parse_iso8601

logger = logging.getLogger(__name__)

UNTITLED_CONVERSATION = "Untitled Conversation"
EXTRACTION_FAILED_TEXT = "Content extraction failed"
ATTACHMENT_POSITION_OFFSET = 100
KNOWN_SENDERS = {"human", "assistant"}


def normalize_sender(value: Any) -> str:
    if isinstance(value, str) and value in KNOWN_SENDERS:
        return value
    return "unknown"


def message_timestamp(message: Mapping[str, Any]) -> str | None:
    value = message.get("created_at") or message.get("updated_at")
    return str(value) if value else None


def attachment_label(attachment: Mapping[str, Any]) -> str:
    file_name = attachment.get("file_name") or "unnamed"
    file_type = attachment.get("file_type") or "unknown type"
    return f"{file_name} ({file_type})"


def _content_item_text(item: Any) -> tuple[str, str] | None:
    if not isinstance(item, Mapping):
        return None
    item_type = item.get("type")
    if item_type == "text":
        value = item.get("text")
        content_type = "text"
    elif item_type == "thinking":
        value = item.get("thinking")
        content_type = "thinking"
    else:
        return None
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise NormalizationError(f"{item_type} payload is {type(value).__name__}, expected string")
    return content_type, value


def _decompose(
    message: Mapping[str, Any],
    conversation_uuid: str,
    sender: str,
    timestamp: str | None,
) -> list[MessageFragment]:
    message_uuid = str(message.get("uuid") or "unknown")
    fragments: list[MessageFragment] = []

    def add(position: int, content_type: str, text: str, info: str | None = None) -> None:
        fragments.append(
            MessageFragment(
                conversation_uuid=conversation_uuid,
                message_uuid=message_uuid,
                sender=sender,
                timestamp=timestamp,
                position_index=position,
                content_type=content_type,
                text=text,
                attachment_info=info,
            )
        )

    content = message.get("content")
    text = message.get("text")
    if isinstance(content, list):
        for index, item in enumerate(content):
            extracted = _content_item_text(item)
            if extracted is not None:
                add(index, extracted[0], extracted[1])
    elif isinstance(text, str) and text:
        add(0, "text", text)

    attachments = message.get("attachments")
    if isinstance(attachments, list):
        for index, attachment in enumerate(attachments):
            if not attachment or not isinstance(attachment, Mapping):
                continue
            extracted_content = attachment.get("extracted_content")
            if not extracted_content:
                continue
            if not isinstance(extracted_content, str):
                raise NormalizationError("attachment extracted_content is not a string")
            add(
                ATTACHMENT_POSITION_OFFSET + index,
                "attachment",
                extracted_content,
                attachment_label(attachment),
            )
    return fragments


def extract_fragments(
    message: Mapping[str, Any],
    conversation_uuid: str,
    *,
    fallback_timestamp: str,
) -> list[MessageFragment]:
    """Split one raw message into fragments.

    Never raises for a malformed message: the message collapses to a single
    ``unknown`` fragment carrying ``EXTRACTION_FAILED_TEXT`` instead.
    """

    sender = "unknown"
    timestamp: str | None = None
    message_uuid = "unknown"
    try:
        if not isinstance(message, Mapping):
            raise NormalizationError(f"message is {type(message).__name__}, expected object")
        sender = normalize_sender(message.get("sender"))
        timestamp = message_timestamp(message)
        message_uuid = str(message.get("uuid") or "unknown")
        return _decompose(message, conversation_uuid, sender, timestamp)
    except Exception as exc:
        logger.warning(
            "content extraction failed for message %s in %s: %s",
            message_uuid,
            conversation_uuid,
            exc,
        )
        return [
            MessageFragment(
                conversation_uuid=conversation_uuid,
                message_uuid=message_uuid,
                sender=sender,
                timestamp=timestamp or fallback_timestamp,
                position_index=0,
                content_type="unknown",
                text=EXTRACTION_FAILED_TEXT,
            )
        ]


def _message_time_bounds(messages: list[Any]) -> tuple[str | None, str | None]:
    earliest: tuple[Any, str] | None = None
    latest: tuple[Any, str] | None = None
    for message in messages:
        if not isinstance(message, Mapping):
            continue
        raw = message_timestamp(message)
        parsed = parse_iso8601(raw)
        if raw is None or parsed is None:
            continue
        if earliest is None or parsed < earliest[0]:
            earliest = (parsed, raw)
        if latest is None or parsed > latest[0]:
            latest = (parsed, raw)
    return (earliest[1] if earliest else None, latest[1] if latest else None)


def normalize_conversation(
    payload: Mapping[str, Any],
    conversation_uuid: str | None = None,
    *,
    downloaded_at: str,
) -> tuple[ConversationSummary, list[MessageFragment]]:
    if not isinstance(payload, Mapping):
        raise NormalizationError(f"conversation payload is {type(payload).__name__}")
    uuid = conversation_uuid or payload.get("uuid")
    if not uuid:
        raise NormalizationError("conversation payload has no uuid")
    uuid = str(uuid)

    raw_messages = payload.get("chat_messages")
    messages = raw_messages if isinstance(raw_messages, list) else []
    first_message_at, last_message_at = _message_time_bounds(messages)

    fragments: list[MessageFragment] = []
    for message in messages:
        fragments.extend(extract_fragments(message, uuid, fallback_timestamp=downloaded_at))

    summary = ConversationSummary(
        uuid=uuid,
        name=payload.get("name") or UNTITLED_CONVERSATION,
        created_at=payload.get("created_at"),
        updated_at=payload.get("updated_at"),
        first_message_at=first_message_at,
        last_message_at=last_message_at,
        is_starred=bool(payload.get("is_starred") or False),
        message_count=len(messages),
        summary=payload.get("summary") or "",
        last_download=downloaded_at,
    )
    return summary, fragments
