from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..store.types import ManifestEntry

logger = logging.getLogger(__name__)


class CheckpointFile:
    """JSON file holding the checkpoint map and the last manifest.

    Lives outside the SQLite archive so it can be shipped or inspected on its
    own.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("cannot read checkpoint file %s: %s", self.path, exc)
            return {}
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("ignoring unreadable checkpoint file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load_checkpoints(self) -> dict[str, str]:
        raw = self.read().get("checkpoints")
        if not isinstance(raw, dict):
            return {}
        return {str(k): str(v) for k, v in raw.items() if k and v}

    def load_manifest(self) -> list[ManifestEntry]:
        raw = self.read().get("manifest")
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]

    def save(
        self,
        checkpoints: dict[str, str],
        manifest: list[ManifestEntry] | None = None,
    ) -> None:
        data: dict[str, Any] = {"checkpoints": dict(checkpoints)}
        if manifest is None:
            data["manifest"] = self.load_manifest()
        else:
            data["manifest"] = list(manifest)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        payload = json.dumps(data, ensure_ascii=False, indent=2) + "\n"
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
