from __future__ import annotations

from ._store import ArchiveStore
from .types import ConversationSummary, ManifestEntry, MessageFragment, SearchFilters, Snippet

__all__ = [
    "ArchiveStore",
    "ConversationSummary",
    "ManifestEntry",
    "MessageFragment",
    "SearchFilters",
    "Snippet",
]
