from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .types import ConversationSummary, MessageFragment, SearchFilters, Snippet
from .utils import contains_all, split_terms

if TYPE_CHECKING:
    from ._store import ArchiveStore

SNIPPET_CONTEXT_CHARS = 40
ELLIPSIS = "..."


def _filter_values(filters: SearchFilters | dict[str, Any] | None, key: str) -> set[str]:
    if not filters:
        return set()
    values = filters.get(key)
    if not values:
        return set()
    if isinstance(values, str):
        return {values}
    return {str(value) for value in values}


def _fragment_clauses(filters: SearchFilters | dict[str, Any] | None) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    content_types = _filter_values(filters, "content_types")
    if content_types:
        placeholders = ",".join(["?"] * len(content_types))
        clauses.append(f"content_type IN ({placeholders})")
        params.extend(sorted(content_types))
    senders = _filter_values(filters, "senders")
    if senders:
        placeholders = ",".join(["?"] * len(senders))
        clauses.append(f"sender IN ({placeholders})")
        params.extend(sorted(senders))
    return " AND ".join(clauses), params


def _candidate_fragments(
    store: ArchiveStore,
    filters: SearchFilters | dict[str, Any] | None,
    conversation_uuid: str | None = None,
) -> Iterable[MessageFragment]:
    where, params = _fragment_clauses(filters)
    clauses = [where] if where else []
    if conversation_uuid is not None:
        clauses.append("conversation_uuid = ?")
        params.append(conversation_uuid)
    sql = "SELECT * FROM message_fragments"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY id"
    return (MessageFragment.from_row(row) for row in store._fetchall(sql, params))


def title_matches(store: ArchiveStore, query: str) -> list[ConversationSummary]:
    needle = query.lower().strip()
    return [item for item in store.get_all_conversations() if needle in (item.name or "").lower()]


def content_matches(
    store: ArchiveStore,
    terms: list[str],
    filters: SearchFilters | dict[str, Any] | None = None,
) -> list[ConversationSummary]:
    seen: set[str] = set()
    ordered: list[str] = []
    for fragment in _candidate_fragments(store, filters):
        if fragment.conversation_uuid in seen:
            continue
        if not fragment.text or not contains_all(fragment.text, terms):
            continue
        seen.add(fragment.conversation_uuid)
        ordered.append(fragment.conversation_uuid)
    results: list[ConversationSummary] = []
    for uuid in ordered:
        conversation = store.get_conversation(uuid)
        if conversation is not None:
            results.append(conversation)
    return results


def search(
    store: ArchiveStore,
    query: str | None,
    filters: SearchFilters | dict[str, Any] | None = None,
) -> list[ConversationSummary]:
    if not query or not query.strip():
        return store.get_all_conversations()
    by_title = title_matches(store, query)
    by_content = content_matches(store, split_terms(query), filters)
    title_uuids = {item.uuid for item in by_title}
    return by_title + [item for item in by_content if item.uuid not in title_uuids]


def extract_snippet(text: str, term: str, context: int = SNIPPET_CONTEXT_CHARS) -> str:
    index = text.lower().find(term)
    if index < 0:
        index = 0
    start = max(0, index - context)
    end = min(len(text), index + len(term) + context)
    snippet = text[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def get_snippets(
    store: ArchiveStore,
    conversation_uuid: str | None,
    query: str | None,
    filters: SearchFilters | dict[str, Any] | None = None,
) -> list[Snippet]:
    if not query or not conversation_uuid:
        return []
    terms = split_terms(query)
    if not terms:
        return []
    snippets: list[Snippet] = []
    for fragment in _candidate_fragments(store, filters, conversation_uuid):
        if not fragment.text or not contains_all(fragment.text, terms):
            continue
        snippets.append(
            Snippet(
                snippet=extract_snippet(fragment.text, terms[0]),
                sender=fragment.sender,
                content_type=fragment.content_type,
                timestamp=fragment.timestamp,
            )
        )
    return snippets
