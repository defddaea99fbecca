from __future__ import annotations

import logging
import traceback
from collections.abc import Callable
from typing import Any

from ..config import ArchiveConfig
from ..export import ConversationExporter
from ..store import ArchiveStore, ConversationSummary, SearchFilters, Snippet
from .checkpoints import CheckpointFile
from .http_client import RemoteClient
from .state import SyncPassState, SyncPassTracker
from .sync_pass import SyncPass

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], RemoteClient]


def client_factory_from_config(cfg: ArchiveConfig) -> ClientFactory:
    def factory() -> RemoteClient:
        return RemoteClient(
            cfg.api_base_url,
            session_cookie=cfg.session_cookie,
            page_size=cfg.page_size,
            timeout_s=float(cfg.request_timeout_s),
        )

    return factory


class ArchiveRunner:
    """Entry point for callers: sync passes, status, stats and search.

    The store handle is owned by the runner; a remote client is created per
    pass and closed when the pass ends.
    """

    def __init__(
        self,
        store: ArchiveStore,
        client_factory: ClientFactory,
        checkpoint_file: CheckpointFile,
        *,
        exporter: ConversationExporter | None = None,
        tracker: SyncPassTracker | None = None,
    ):
        self.store = store
        self.client_factory = client_factory
        self.checkpoint_file = checkpoint_file
        self.exporter = exporter
        self.tracker = tracker or SyncPassTracker()

    @classmethod
    def from_config(cls, cfg: ArchiveConfig, *, db_path: str | None = None) -> ArchiveRunner:
        store = ArchiveStore(db_path or cfg.db_path, timeout_s=float(cfg.busy_timeout_s))
        return cls(
            store,
            client_factory_from_config(cfg),
            CheckpointFile(cfg.state_path),
            exporter=ConversationExporter(cfg.export_dir),
        )

    def close(self) -> None:
        self.store.close()

    def run_sync(self, force_full: bool = False) -> dict[str, Any]:
        if not self.tracker.try_begin():
            return {"ok": False, "skipped": True, "error": "sync already in progress"}
        checkpoints: dict[str, str] = {}
        sync_pass: SyncPass | None = None
        try:
            checkpoints = self.checkpoint_file.load_checkpoints()
            with self.client_factory() as client:
                sync_pass = SyncPass(
                    self.store,
                    client,
                    checkpoints=checkpoints,
                    force_full=force_full,
                    exporter=self.exporter,
                )
                result = sync_pass.run()
            self.checkpoint_file.save(result.checkpoints, result.manifest)
        except Exception as exc:
            logger.exception("sync pass failed")
            if sync_pass is not None and sync_pass.written:
                self._keep_partial_progress(checkpoints, sync_pass.written)
            state = self.tracker.finish_error(str(exc).strip() or exc.__class__.__name__)
            return {
                "ok": False,
                "error": state.error,
                "duration_s": state.duration_s,
                "traceback": traceback.format_exc(),
            }

        message = (
            f"Backup complete. Updated {result.updated_count} of "
            f"{result.total_count} conversations."
        )
        logger.info(message)
        state = self.tracker.finish_ok(
            updated_count=result.updated_count,
            total_count=result.total_count,
            failed_count=len(result.failed),
            message=message,
        )
        return {
            "ok": True,
            "updated": result.updated_count,
            "total": result.total_count,
            "failed": result.failed,
            "duration_s": state.duration_s,
            "message": message,
            "warnings": result.warnings,
        }

    def _keep_partial_progress(self, previous: dict[str, str], written: dict[str, str]) -> None:
        merged = dict(previous)
        merged.update(written)
        try:
            self.checkpoint_file.save(merged)
        except OSError:
            logger.exception("failed to persist partial sync progress")

    def get_status(self) -> SyncPassState:
        return self.tracker.snapshot()

    def get_stats(self) -> dict[str, Any]:
        return self.store.stats()

    def get_all_conversations(self) -> list[ConversationSummary]:
        return self.store.get_all_conversations()

    def search(
        self, query: str | None, filters: SearchFilters | dict[str, Any] | None = None
    ) -> list[ConversationSummary]:
        return self.store.search(query, filters)

    def get_snippets(
        self,
        conversation_uuid: str | None,
        query: str | None,
        filters: SearchFilters | dict[str, Any] | None = None,
    ) -> list[Snippet]:
        return self.store.get_snippets(conversation_uuid, query, filters)

    def clear(self) -> None:
        """Empty the archive and forget checkpoints so the next pass is full."""

        self.store.clear()
        self.checkpoint_file.clear()
