from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import TransportError

logger = logging.getLogger(__name__)

CHAT_CAPABILITY = "chat"
DETAIL_PARAMS = {
    "tree": "True",
    "rendering_mode": "messages",
    "render_all_tools": "true",
}


def build_base_url(address: str) -> str:
    trimmed = address.strip().rstrip("/")
    if not trimmed:
        return ""
    if "://" in trimmed:
        return trimmed
    return f"https://{trimmed}"


class RemoteClient:
    """Read-only client for the remote conversation API.

    Only the three listing/detail calls a sync pass needs. Every non-success
    status and every transport failure surfaces as ``TransportError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session_cookie: str | None = None,
        headers: dict[str, str] | None = None,
        page_size: int = 50,
        timeout_s: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = build_base_url(base_url)
        if not self.base_url:
            raise ValueError("missing api base url")
        self.page_size = max(1, int(page_size))
        request_headers = {"Accept": "application/json"}
        if session_cookie:
            request_headers["Cookie"] = session_cookie
        if headers:
            request_headers.update(headers)
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=request_headers,
            timeout=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get_json(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"request to {path} failed: {exc}", url=path) from exc
        if response.status_code >= 400:
            raise TransportError(
                f"GET {path} failed: {response.status_code}",
                status_code=response.status_code,
                url=str(response.request.url),
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"GET {path} returned non-JSON body",
                status_code=response.status_code,
                url=str(response.request.url),
            ) from exc

    def list_organizations(self) -> list[dict[str, Any]]:
        payload = self._get_json("/organizations")
        if not isinstance(payload, list):
            raise TransportError("organizations response is not a list")
        return [org for org in payload if isinstance(org, dict)]

    def find_chat_organization(self) -> str:
        for org in self.list_organizations():
            capabilities = org.get("capabilities") or []
            if CHAT_CAPABILITY in capabilities and org.get("uuid"):
                logger.info("using chat organization %s (%s)", org.get("name"), org["uuid"])
                return str(org["uuid"])
        raise TransportError("no organization with chat capabilities found")

    def list_conversations_page(
        self, org_id: str, *, limit: int, offset: int
    ) -> list[dict[str, Any]]:
        payload = self._get_json(
            f"/organizations/{org_id}/chat_conversations",
            params={"limit": limit, "offset": offset},
        )
        if not isinstance(payload, list):
            raise TransportError("conversation listing is not a list")
        return [item for item in payload if isinstance(item, dict)]

    def list_conversations(self, org_id: str) -> list[dict[str, Any]]:
        conversations: list[dict[str, Any]] = []
        offset = 0
        while True:
            page = self.list_conversations_page(org_id, limit=self.page_size, offset=offset)
            if not page:
                break
            conversations.extend(page)
            logger.info("fetched %d conversations, total %d", len(page), len(conversations))
            offset += self.page_size
        return conversations

    def get_conversation_detail(self, org_id: str, uuid: str) -> dict[str, Any]:
        payload = self._get_json(
            f"/organizations/{org_id}/chat_conversations/{uuid}",
            params=DETAIL_PARAMS,
        )
        if not isinstance(payload, dict):
            raise TransportError(f"conversation {uuid} detail is not an object")
        return payload
