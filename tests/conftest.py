from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from chat_archive.config import CONFIG_ENV_OVERRIDES

BASE_URL = "https://chat.test/api"
ORG_ID = "org-1"


@pytest.fixture(autouse=True)
def _isolate_archive_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setenv("CHAT_ARCHIVE_CONFIG", str(tmp_path / "config" / "config.json"))
    monkeypatch.setenv("CHAT_ARCHIVE_DB_PATH", str(tmp_path / "archive.sqlite"))
    monkeypatch.setenv("CHAT_ARCHIVE_STATE_PATH", str(tmp_path / "state.json"))


def make_message(
    uuid: str,
    text: str,
    *,
    sender: str = "human",
    created_at: str = "2024-01-01T10:00:00Z",
    attachments: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    message: dict[str, Any] = {
        "uuid": uuid,
        "sender": sender,
        "created_at": created_at,
        "content": [{"type": "text", "text": text}],
    }
    if attachments is not None:
        message["attachments"] = attachments
    return message


class FakeRemote:
    """In-memory stand-in for the remote conversation API, served via MockTransport."""

    def __init__(self) -> None:
        self.organizations: list[dict[str, Any]] = [
            {"uuid": "org-api", "name": "API only", "capabilities": ["api"]},
            {"uuid": ORG_ID, "name": "Chat", "capabilities": ["chat", "claude_pro"]},
        ]
        self.listing: list[dict[str, Any]] = []
        self.details: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.listing_status = 200
        self.requests: list[httpx.Request] = []

    def add_conversation(
        self,
        uuid: str,
        name: str,
        updated_at: str,
        messages: list[dict[str, Any]] | None = None,
        *,
        is_starred: bool = False,
    ) -> None:
        summary = {
            "uuid": uuid,
            "name": name,
            "created_at": "2024-01-01T09:00:00Z",
            "updated_at": updated_at,
            "is_starred": is_starred,
        }
        self.listing = [item for item in self.listing if item["uuid"] != uuid]
        self.listing.append(summary)
        self.details[uuid] = {**summary, "chat_messages": list(messages or [])}

    def detail_requests(self) -> list[str]:
        prefix = f"/api/organizations/{ORG_ID}/chat_conversations/"
        return [
            request.url.path[len(prefix) :]
            for request in self.requests
            if request.url.path.startswith(prefix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/organizations":
            return httpx.Response(200, json=self.organizations)
        listing_path = f"/api/organizations/{ORG_ID}/chat_conversations"
        if path == listing_path:
            if self.listing_status != 200:
                return httpx.Response(self.listing_status, json={"error": "listing failed"})
            limit = int(request.url.params["limit"])
            offset = int(request.url.params["offset"])
            return httpx.Response(200, json=self.listing[offset : offset + limit])
        if path.startswith(listing_path + "/"):
            uuid = path[len(listing_path) + 1 :]
            if uuid in self.failing or uuid not in self.details:
                return httpx.Response(500, json={"error": "boom"})
            return httpx.Response(200, json=self.details[uuid])
        return httpx.Response(404, json={"error": "not found"})

    def client_factory(self, page_size: int = 2) -> Callable[[], Any]:
        from chat_archive.sync.http_client import RemoteClient

        def factory() -> RemoteClient:
            return RemoteClient(
                BASE_URL,
                session_cookie="sessionKey=test",
                page_size=page_size,
                transport=httpx.MockTransport(self.handler),
            )

        return factory


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()
