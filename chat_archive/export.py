from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .normalize import UNTITLED_CONVERSATION

INDEX_FILE_STEM = "conversation_index"
_UNSAFE_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def export_file_stem(name: str | None, uuid: str) -> str:
    safe = _UNSAFE_CHARS.sub("_", name or UNTITLED_CONVERSATION).lower()
    return f"{safe}_{uuid}"


class ConversationExporter:
    """Write raw conversation payloads and the manifest as JSON files."""

    def __init__(self, export_dir: Path | str | None):
        self.export_dir = Path(export_dir).expanduser() if export_dir else None

    @property
    def enabled(self) -> bool:
        return self.export_dir is not None

    def _target_dir(self) -> Path:
        if self.export_dir is None:
            raise ConfigurationError("export directory is not configured")
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"export directory {self.export_dir} unusable: {exc}") from exc
        if not self.export_dir.is_dir():
            raise ConfigurationError(f"export path {self.export_dir} is not a directory")
        return self.export_dir

    def _write(self, stem: str, payload: Any) -> Path:
        path = self._target_dir() / f"{stem}.json"
        try:
            path.write_text(json.dumps(payload, ensure_ascii=False, indent=2))
        except OSError as exc:
            raise ConfigurationError(f"failed to write {path}: {exc}") from exc
        return path

    def export_conversation(self, detail: dict[str, Any], name: str | None, uuid: str) -> Path:
        return self._write(export_file_stem(name, uuid), detail)

    def export_index(self, manifest: list[Any]) -> Path:
        return self._write(INDEX_FILE_STEM, manifest)
