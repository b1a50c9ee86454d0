from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from httpx import ASGITransport, AsyncClient

from adapters.http_api import create_app
from adapters.telethon_connector import TelethonConnector
from core.errors import BotConnectionError
from core.models import IncomingMessage
from core.runtime import BotRuntime


class FakeConnection:
    def __init__(self, bot_id: str, handler) -> None:
        self.bot_id = bot_id
        self.handler = handler
        self.sent: list[tuple[str, str]] = []

    async def reply(self, chat_id: str, text: str) -> None:
        self.sent.append((chat_id, text))

    async def stop(self) -> None:
        pass


class FakeConnector:
    def __init__(self) -> None:
        self.connections: dict[str, FakeConnection] = {}
        self.tokens: list[str] = []

    async def connect(self, bot_id: str, token: str, handler) -> FakeConnection:
        self.tokens.append(token)
        if token == "bad":
            raise BotConnectionError(bot_id, "invalid token")
        connection = FakeConnection(bot_id, handler)
        self.connections[bot_id] = connection
        return connection


def _request(app, method: str, url: str, **kwargs):
    async def call():
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            return await ac.request(method, url, **kwargs)

    return asyncio.run(call())


def _setup(token_resolver=None):
    connector = FakeConnector()
    runtime = BotRuntime(connector)
    return create_app(runtime, token_resolver=token_resolver), runtime, connector


def test_start_and_stop_lifecycle() -> None:
    app, runtime, _ = _setup()

    resp = _request(app, "POST", "/bots/b1/start", json={"token": "T"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "started"}

    resp = _request(app, "POST", "/bots/b1/start", json={"token": "T"})
    assert resp.json() == {"status": "already-running"}

    assert _request(app, "GET", "/bots").json() == {"running": ["b1"]}
    assert _request(app, "GET", "/bots/b1").json() == {"bot_id": "b1", "running": True}

    assert _request(app, "POST", "/bots/b1/stop").json() == {"status": "stopped"}
    assert _request(app, "POST", "/bots/b1/stop").json() == {"status": "not-running"}
    assert not runtime.is_running("b1")


def test_start_uses_token_resolver_when_body_has_none() -> None:
    app, _, connector = _setup(token_resolver=lambda bot_id: f"env-{bot_id}")

    resp = _request(app, "POST", "/bots/b1/start")

    assert resp.status_code == 200
    assert connector.tokens == ["env-b1"]


def test_start_without_token_is_bad_request() -> None:
    app, _, connector = _setup(token_resolver=lambda bot_id: None)

    resp = _request(app, "POST", "/bots/b1/start", json={})

    assert resp.status_code == 400
    assert connector.tokens == []


def test_start_with_rejected_token_is_bad_gateway() -> None:
    app, runtime, _ = _setup()

    resp = _request(app, "POST", "/bots/b1/start", json={"token": "bad"})

    assert resp.status_code == 502
    assert not runtime.is_running("b1")


def test_rule_crud() -> None:
    app, _, _ = _setup()

    resp = _request(app, "POST", "/bots/b1/rules", json={"group_id": "g1", "criterion": "startsWithNumber"})
    assert resp.json() == {"rules": [{"group_id": "g1", "criterion": "startsWithNumber", "value": ""}]}

    _request(app, "POST", "/bots/b1/rules", json={"group_id": "g1", "criterion": "startsWithNumber"})
    _request(app, "POST", "/bots/b1/rules", json={"group_id": "g1", "criterion": "containsCheckmark"})
    assert len(_request(app, "GET", "/bots/b1/rules").json()["rules"]) == 3

    resp = _request(
        app,
        "DELETE",
        "/bots/b1/rules",
        params={"group_id": "g1", "criterion": "startsWithNumber"},
    )
    assert resp.json() == {"rules": [{"group_id": "g1", "criterion": "containsCheckmark", "value": ""}]}


def test_rule_with_empty_group_is_rejected() -> None:
    app, runtime, _ = _setup()

    resp = _request(app, "POST", "/bots/b1/rules", json={"group_id": "", "criterion": "startsWithNumber"})

    assert resp.status_code == 400
    assert runtime.list_rules("b1") == []


def test_logs_and_logging_toggle() -> None:
    app, runtime, connector = _setup()

    assert _request(app, "GET", "/bots/b1/logs").json() == {"logs": [], "logging_enabled": False}

    resp = _request(app, "PATCH", "/bots/b1/logging", json={"logging_enabled": True})
    assert resp.json() == {"status": "logging toggled", "logging_enabled": True}

    _request(app, "POST", "/bots/b1/start", json={"token": "T"})
    connection = connector.connections["b1"]
    message = IncomingMessage(
        chat_id="g1",
        chat_title="Team",
        sender_id=3,
        sender_username="alice",
        sender_first_name=None,
        text="hello",
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    asyncio.run(connection.handler(message, connection))

    data = _request(app, "GET", "/bots/b1/logs").json()
    assert data["logging_enabled"] is True
    assert len(data["logs"]) == 1
    entry = data["logs"][0]
    assert entry["user"] == "alice"
    assert entry["chat_title"] == "Team"
    assert entry["text"] == "hello"


def test_logging_toggle_requires_boolean() -> None:
    app, _, _ = _setup()
    resp = _request(app, "PATCH", "/bots/b1/logging", json={"logging_enabled": "maybe"})
    assert resp.status_code == 422


def test_send_message() -> None:
    app, _, connector = _setup()

    resp = _request(app, "POST", "/bots/b1/messages", json={"chat_id": "42", "text": "hi"})
    assert resp.status_code == 409

    _request(app, "POST", "/bots/b1/start", json={"token": "T"})
    resp = _request(app, "POST", "/bots/b1/messages", json={"chat_id": "42", "text": "hi"})
    assert resp.json() == {"status": "sent"}
    assert connector.connections["b1"].sent == [("42", "hi")]


def test_list_criteria() -> None:
    app, _, _ = _setup()
    assert _request(app, "GET", "/criteria").json() == {"criteria": ["startsWithNumber", "containsCheckmark"]}


class PeerCacheClient:
    """Minimal Telethon client whose session only knows @usernames."""

    def __init__(self) -> None:
        self.sent: list = []

    async def start(self, bot_token: str) -> "PeerCacheClient":
        return self

    def add_event_handler(self, callback, event) -> None:
        pass

    async def send_message(self, entity, text: str) -> None:
        if isinstance(entity, int):
            raise ValueError(f"Could not find the input entity for PeerUser(user_id={entity})")
        self.sent.append((entity, text))

    async def disconnect(self) -> None:
        pass


def _telethon_setup():
    client = PeerCacheClient()
    runtime = BotRuntime(TelethonConnector(lambda: client))
    app = create_app(runtime)
    _request(app, "POST", "/bots/b1/start", json={"token": "T"})
    return app, client


def test_send_message_to_username() -> None:
    app, client = _telethon_setup()

    resp = _request(app, "POST", "/bots/b1/messages", json={"chat_id": "@alice", "text": "hi"})

    assert resp.status_code == 200
    assert client.sent == [("@alice", "hi")]


def test_send_message_delivery_failure_is_bad_gateway() -> None:
    app, client = _telethon_setup()

    resp = _request(app, "POST", "/bots/b1/messages", json={"chat_id": "42", "text": "hi"})

    assert resp.status_code == 502
    assert client.sent == []


def test_send_message_with_empty_text_is_bad_request() -> None:
    app, _ = _telethon_setup()

    resp = _request(app, "POST", "/bots/b1/messages", json={"chat_id": "42", "text": " "})

    assert resp.status_code == 400
