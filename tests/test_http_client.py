from __future__ import annotations

import httpx
import pytest

from chat_archive.errors import TransportError
from chat_archive.sync.http_client import RemoteClient, build_base_url
from conftest import BASE_URL, ORG_ID, FakeRemote


def test_build_base_url() -> None:
    assert build_base_url(" chat.test/api/ ") == "https://chat.test/api"
    assert build_base_url("http://localhost:8080/") == "http://localhost:8080"
    assert build_base_url("  ") == ""


def test_client_requires_base_url() -> None:
    with pytest.raises(ValueError, match="missing api base url"):
        RemoteClient("")


def test_find_chat_organization_picks_chat_capability(fake_remote: FakeRemote) -> None:
    with fake_remote.client_factory()() as client:
        assert client.find_chat_organization() == ORG_ID

    request = fake_remote.requests[0]
    assert request.headers["Cookie"] == "sessionKey=test"
    assert request.headers["Accept"] == "application/json"


def test_find_chat_organization_without_chat_capability(fake_remote: FakeRemote) -> None:
    fake_remote.organizations = [{"uuid": "org-api", "capabilities": ["api"]}]

    with fake_remote.client_factory()() as client:
        with pytest.raises(TransportError, match="no organization"):
            client.find_chat_organization()


def test_list_conversations_pages_until_empty(fake_remote: FakeRemote) -> None:
    for index in range(3):
        fake_remote.add_conversation(f"c{index}", f"Chat {index}", "2024-05-01T00:00:00Z")

    with fake_remote.client_factory(page_size=2)() as client:
        conversations = client.list_conversations(ORG_ID)

    assert [item["uuid"] for item in conversations] == ["c0", "c1", "c2"]
    offsets = [request.url.params["offset"] for request in fake_remote.requests]
    assert offsets == ["0", "2", "4"]
    assert {request.url.params["limit"] for request in fake_remote.requests} == {"2"}


def test_get_conversation_detail_sends_rendering_params(fake_remote: FakeRemote) -> None:
    fake_remote.add_conversation("c1", "Chat", "2024-05-01T00:00:00Z")

    with fake_remote.client_factory()() as client:
        detail = client.get_conversation_detail(ORG_ID, "c1")

    assert detail["uuid"] == "c1"
    params = fake_remote.requests[-1].url.params
    assert params["tree"] == "True"
    assert params["rendering_mode"] == "messages"
    assert params["render_all_tools"] == "true"


def test_error_status_raises_transport_error(fake_remote: FakeRemote) -> None:
    fake_remote.listing_status = 403

    with fake_remote.client_factory()() as client:
        with pytest.raises(TransportError) as excinfo:
            client.list_conversations(ORG_ID)

    assert excinfo.value.status_code == 403


def test_network_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with RemoteClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError, match="connection refused"):
            client.list_organizations()


def test_non_json_body_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    with RemoteClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError, match="non-JSON"):
            client.list_organizations()
