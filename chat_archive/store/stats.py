from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from .utils import EPOCH_ISO, parse_iso8601

if TYPE_CHECKING:
    from ._store import ArchiveStore


def latest_sync_at(store: ArchiveStore) -> str:
    latest: str = EPOCH_ISO
    latest_parsed = parse_iso8601(EPOCH_ISO)
    rows = store._fetchall(
        "SELECT last_download FROM conversations WHERE last_download IS NOT NULL", []
    )
    for row in rows:
        value = row["last_download"]
        parsed = parse_iso8601(value)
        if parsed is None or latest_parsed is None:
            continue
        if parsed > latest_parsed:
            latest, latest_parsed = value, parsed
    return latest


def stats(store: ArchiveStore) -> dict[str, Any]:
    db_path = Path(store.db_path)
    size_bytes = db_path.stat().st_size if db_path.exists() else 0
    return {
        "conversation_count": store.count_conversations(),
        "fragment_count": store.count_fragments(),
        "latest_sync_at": latest_sync_at(store),
        "database": {
            "path": str(db_path),
            "size_bytes": size_bytes,
        },
    }
