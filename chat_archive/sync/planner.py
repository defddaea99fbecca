from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..normalize import UNTITLED_CONVERSATION
from ..store.types import ManifestEntry
from ..store.utils import parse_iso8601

logger = logging.getLogger(__name__)


@dataclass
class SyncPlan:
    changed: list[dict[str, Any]] = field(default_factory=list)
    unchanged: list[dict[str, Any]] = field(default_factory=list)
    carried: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.changed) + len(self.unchanged)


def is_unchanged(checkpoint: str | None, updated_at: Any) -> bool:
    """True when the local checkpoint is at or after the remote ``updated_at``."""

    if not checkpoint:
        return False
    local = parse_iso8601(checkpoint)
    remote = parse_iso8601(updated_at if isinstance(updated_at, str) else None)
    if local is None or remote is None:
        return False
    return local >= remote


def plan_sync(
    remote_conversations: Iterable[Mapping[str, Any]],
    checkpoints: Mapping[str, str],
    *,
    force_full: bool = False,
) -> SyncPlan:
    plan = SyncPlan()
    for conversation in remote_conversations:
        uuid = conversation.get("uuid")
        if not uuid:
            continue
        uuid = str(uuid)
        checkpoint = checkpoints.get(uuid)
        if not force_full and is_unchanged(checkpoint, conversation.get("updated_at")):
            logger.debug("skipping unchanged conversation %s", uuid)
            plan.unchanged.append(dict(conversation))
            plan.carried[uuid] = str(checkpoint)
            continue
        logger.debug("conversation %s needs refresh", uuid)
        plan.changed.append(dict(conversation))
    return plan


def build_manifest(
    remote_conversations: Iterable[Mapping[str, Any]],
    checkpoints: Mapping[str, str],
) -> list[ManifestEntry]:
    manifest: list[ManifestEntry] = []
    for conversation in remote_conversations:
        uuid = conversation.get("uuid")
        if not uuid:
            continue
        manifest.append(
            {
                "uuid": str(uuid),
                "name": conversation.get("name") or UNTITLED_CONVERSATION,
                "created_at": conversation.get("created_at"),
                "updated_at": conversation.get("updated_at"),
                "is_starred": bool(conversation.get("is_starred") or False),
                "last_downloaded": checkpoints.get(str(uuid)),
            }
        )
    return manifest
