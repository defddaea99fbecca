from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError, NormalizationError, TransportError
from ..export import ConversationExporter
from ..normalize import normalize_conversation
from ..store import ArchiveStore, ManifestEntry
from ..store.utils import now_iso
from .http_client import RemoteClient
from .planner import build_manifest, plan_sync

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    updated_count: int
    total_count: int
    checkpoints: dict[str, str]
    manifest: list[ManifestEntry]
    failed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class SyncPass:
    """One pass over the remote listing.

    Conversations are handled one at a time. ``written`` records the checkpoint
    of every conversation committed so far, so a caller can keep that progress
    when the pass dies part way through.
    """

    def __init__(
        self,
        store: ArchiveStore,
        client: RemoteClient,
        *,
        checkpoints: Mapping[str, str],
        force_full: bool = False,
        exporter: ConversationExporter | None = None,
        clock: Callable[[], str] = now_iso,
    ):
        self.store = store
        self.client = client
        self.checkpoints = dict(checkpoints)
        self.force_full = force_full
        self.exporter = exporter if exporter is not None and exporter.enabled else None
        self.clock = clock
        self.written: dict[str, str] = {}
        self.failed: list[str] = []
        self.warnings: list[str] = []

    def run(self) -> SyncResult:
        org_id = self.client.find_chat_organization()
        remote = self.client.list_conversations(org_id)
        plan = plan_sync(remote, self.checkpoints, force_full=self.force_full)
        logger.info(
            "sync plan: %d changed, %d unchanged (force_full=%s)",
            len(plan.changed),
            len(plan.unchanged),
            self.force_full,
        )
        for conversation in plan.changed:
            self._refresh(org_id, conversation)

        checkpoints = dict(plan.carried)
        for uuid in self.failed:
            previous = self.checkpoints.get(uuid)
            if previous:
                checkpoints[uuid] = previous
        checkpoints.update(self.written)
        manifest = build_manifest(remote, checkpoints)
        if self.exporter is not None:
            self._export(lambda exporter: exporter.export_index(manifest))
        return SyncResult(
            updated_count=len(plan.changed),
            total_count=plan.total,
            checkpoints=checkpoints,
            manifest=manifest,
            failed=list(self.failed),
            warnings=list(self.warnings),
        )

    def _refresh(self, org_id: str, conversation: Mapping[str, Any]) -> None:
        uuid = str(conversation["uuid"])
        logger.info("updating conversation %s (%s)", conversation.get("name"), uuid)
        try:
            detail = self.client.get_conversation_detail(org_id, uuid)
            downloaded_at = self.clock()
            summary, fragments = normalize_conversation(detail, uuid, downloaded_at=downloaded_at)
        except (TransportError, NormalizationError) as exc:
            logger.warning("skipping conversation %s: %s", uuid, exc, exc_info=exc)
            self.failed.append(uuid)
            return
        stored = self.store.replace_conversation(summary, fragments)
        self.written[uuid] = downloaded_at
        logger.debug("stored conversation %s with %d fragments", uuid, stored)
        if self.exporter is not None:
            name = conversation.get("name")
            self._export(lambda exporter: exporter.export_conversation(detail, name, uuid))

    def _export(self, action: Callable[[ConversationExporter], object]) -> None:
        if self.exporter is None:
            return
        try:
            action(self.exporter)
        except ConfigurationError as exc:
            logger.warning("export disabled for this pass: %s", exc)
            self.warnings.append(str(exc))
            self.exporter = None
