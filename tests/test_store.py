from __future__ import annotations

from pathlib import Path

import pytest

from chat_archive.errors import StoreError
from chat_archive.store import ArchiveStore, ConversationSummary, MessageFragment


def _summary(uuid: str, name: str = "Chat", **kwargs) -> ConversationSummary:
    return ConversationSummary(uuid=uuid, name=name, **kwargs)


def _fragment(conversation_uuid: str, text: str, position: int = 0, **kwargs) -> MessageFragment:
    values = {
        "message_uuid": "m1",
        "sender": "human",
        "timestamp": "2024-01-01T10:00:00Z",
        "content_type": "text",
    }
    values.update(kwargs)
    return MessageFragment(
        conversation_uuid=conversation_uuid,
        position_index=position,
        text=text,
        **values,
    )


def test_upsert_conversation_replaces_by_uuid(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.upsert_conversation(_summary("c1", "First", is_starred=True, message_count=2))
        store.upsert_conversation(_summary("c1", "Renamed", message_count=3))

        assert store.count_conversations() == 1
        stored = store.get_conversation("c1")
        assert stored is not None
        assert stored.name == "Renamed"
        assert stored.is_starred is False
        assert stored.message_count == 3


def test_get_all_conversations_in_uuid_order(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        for uuid in ["c3", "c1", "c2"]:
            store.upsert_conversation(_summary(uuid))

        assert [item.uuid for item in store.get_all_conversations()] == ["c1", "c2", "c3"]
        assert store.get_conversation("missing") is None


def test_upsert_fragments_skips_empty_text(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        written = store.upsert_fragments(
            [_fragment("c1", "hello"), _fragment("c1", ""), _fragment("c1", "world", 1)]
        )

        assert written == 2
        fragments = store.get_fragments_by_conversation("c1")
        assert [item.text for item in fragments] == ["hello", "world"]
        assert all(item.id is not None for item in fragments)


def test_fragments_keep_storage_order(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.upsert_fragments([_fragment("c2", "two-a"), _fragment("c1", "one-a")])
        store.upsert_fragments([_fragment("c2", "two-b", 1)])

        assert [item.text for item in store.get_fragments_by_conversation("c2")] == [
            "two-a",
            "two-b",
        ]
        assert [item.text for item in store.get_all_fragments()] == ["two-a", "one-a", "two-b"]


def test_replace_conversation_drops_previous_fragments(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.replace_conversation(
            _summary("c1", "Old"), [_fragment("c1", "old one"), _fragment("c1", "old two", 1)]
        )
        store.replace_conversation(_summary("c1", "New"), [_fragment("c1", "new one")])

        assert store.count_conversations() == 1
        assert store.count_fragments() == 1
        assert store.get_conversation("c1").name == "New"
        assert [item.text for item in store.get_fragments_by_conversation("c1")] == ["new one"]


def test_replace_conversation_rolls_back_on_failure(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.replace_conversation(_summary("c1", "Old"), [_fragment("c1", "kept")])
        store.replace_conversation(_summary("c2", "Other"), [_fragment("c2", "other")])

        broken = _fragment("c1", "broken", sender=None)
        with pytest.raises(StoreError):
            store.replace_conversation(_summary("c1", "New"), [_fragment("c1", "fine"), broken])

        assert store.get_conversation("c1").name == "Old"
        assert [item.text for item in store.get_fragments_by_conversation("c1")] == ["kept"]
        assert [item.text for item in store.get_fragments_by_conversation("c2")] == ["other"]


def test_reads_return_independent_copies(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.upsert_conversation(_summary("c1", "Original"))
        first = store.get_conversation("c1")
        first.name = "Mutated"

        assert store.get_conversation("c1").name == "Original"


def test_second_connection_sees_committed_unit(tmp_path: Path) -> None:
    db_path = tmp_path / "archive.sqlite"
    with ArchiveStore(db_path) as writer, ArchiveStore(db_path) as reader:
        writer.replace_conversation(
            _summary("c1"), [_fragment("c1", "alpha"), _fragment("c1", "beta", 1)]
        )

        assert reader.count_conversations() == 1
        assert reader.count_fragments() == 2


def test_clear_empties_both_collections(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.replace_conversation(_summary("c1"), [_fragment("c1", "alpha")])
        store.clear()

        assert store.count_conversations() == 0
        assert store.count_fragments() == 0


def test_fragment_attachment_info_round_trips(tmp_path: Path) -> None:
    with ArchiveStore(tmp_path / "archive.sqlite") as store:
        store.upsert_fragments(
            [
                _fragment(
                    "c1",
                    "file body",
                    100,
                    content_type="attachment",
                    attachment_info="notes.txt (text/plain)",
                )
            ]
        )

        (fragment,) = store.get_fragments_by_conversation("c1")
        assert fragment.position_index == 100
        assert fragment.content_type == "attachment"
        assert fragment.attachment_info == "notes.txt (text/plain)"
