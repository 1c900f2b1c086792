"""Tests for CircuitRestClient against an in-process fake of the REST API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from app.streambot.platform.client import DEFAULT_EVENT_FILTERS, CircuitRestClient
from app.streambot.platform.errors import LogonFailure, PlatformError, SendFailure
from app.streambot.platform.models import Conversation, Identity, PresenceState, TextItem

TOKEN = "tok-123"


class FakeCircuit:
    """Just enough of the REST API to drive the client."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict[str, Any]]] = []
        self.conversations = {"conv-1": {"convId": "conv-1", "rtcSessionId": "rtc-1", "type": "GROUP"}}
        self.direct: dict[str, dict[str, Any]] = {}
        self.fail_messages = False

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/oauth/token", self._token)
        api = "/rest/v2"
        app.router.add_get(f"{api}/users/profile", self._profile)
        app.router.add_put(f"{api}/users/profile", self._record)
        app.router.add_put(f"{api}/users/presence", self._record)
        app.router.add_get(f"{api}/conversations/direct/{{email}}", self._get_direct)
        app.router.add_post(f"{api}/conversations/direct", self._create_direct)
        app.router.add_get(f"{api}/conversations/{{conv_id}}", self._get_conversation)
        app.router.add_post(f"{api}/conversations/{{conv_id}}/messages", self._message)
        app.router.add_post(f"{api}/conversations/{{conv_id}}/messages/{{parent}}", self._message)
        app.router.add_post(f"{api}/webhooks", self._webhook)
        app.router.add_delete(f"{api}/webhooks/{{hook}}", self._delete_webhook)
        return app

    async def _authorized(self, req: web.Request) -> dict[str, Any]:
        if req.headers.get("Authorization") != f"Bearer {TOKEN}":
            raise web.HTTPUnauthorized(text="bad token")
        form = await req.post()
        record = {k: form.getall(k) if len(form.getall(k)) > 1 else form[k] for k in form}
        self.requests.append((req.method, req.path, record))
        return record

    async def _token(self, req: web.Request) -> web.Response:
        form = await req.post()
        if form.get("client_secret") != "secret":
            return web.Response(status=401, text="invalid_client")
        assert form["grant_type"] == "client_credentials"
        return web.json_response({"access_token": TOKEN, "token_type": "Bearer"})

    async def _profile(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        return web.json_response({
            "userId": "bot-id", "firstName": "Stream", "lastName": "Bot", "emailAddress": "bot@example.com",
        })

    async def _record(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        return web.Response(status=204)

    async def _get_conversation(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        conv = self.conversations.get(req.match_info["conv_id"])
        if conv is None:
            raise web.HTTPNotFound()
        return web.json_response(conv)

    async def _get_direct(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        conv = self.direct.get(req.match_info["email"])
        if conv is None:
            raise web.HTTPNotFound()
        return web.json_response(conv)

    async def _create_direct(self, req: web.Request) -> web.Response:
        form = await self._authorized(req)
        conv = {"convId": "direct-1", "type": "DIRECT"}
        self.direct[form["participant"]] = conv
        return web.json_response(conv)

    async def _message(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        if self.fail_messages:
            return web.Response(status=503, text="unavailable")
        return web.json_response({"itemId": "reply-1"})

    async def _webhook(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        return web.json_response({"id": "wh-1"})

    async def _delete_webhook(self, req: web.Request) -> web.Response:
        await self._authorized(req)
        return web.Response(status=204)


@asynccontextmanager
async def _circuit(secret: str = "secret") -> AsyncIterator[tuple[FakeCircuit, CircuitRestClient]]:
    fake = FakeCircuit()
    server = TestServer(fake.app())
    await server.start_server()
    client = CircuitRestClient("unused.example", "client-id", secret, base_url=str(server.make_url("/")))
    try:
        yield fake, client
    finally:
        await client.close()
        await server.close()


class TestLogon:
    @pytest.mark.asyncio
    async def test_logon_returns_identity(self) -> None:
        async with _circuit() as (_, client):
            identity = await client.logon()
        assert identity == Identity("bot-id", "Stream Bot", "bot@example.com")

    @pytest.mark.asyncio
    async def test_rejected_credentials(self) -> None:
        async with _circuit(secret="wrong") as (_, client):
            with pytest.raises(LogonFailure, match="401"):
                await client.logon()

    @pytest.mark.asyncio
    async def test_unreachable_platform(self, unused_tcp_port: int) -> None:
        client = CircuitRestClient("x", "id", "secret", base_url=f"http://127.0.0.1:{unused_tcp_port}")
        try:
            with pytest.raises(LogonFailure):
                await client.logon()
        finally:
            await client.close()


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_user_skips_blank_fields(self) -> None:
        async with _circuit() as (fake, client):
            await client.logon()
            await client.update_user(firstName="Stream", lastName="", jobTitle="Bot")
        assert ("PUT", "/rest/v2/users/profile", {"firstName": "Stream", "jobTitle": "Bot"}) in fake.requests

    @pytest.mark.asyncio
    async def test_set_presence(self) -> None:
        async with _circuit() as (fake, client):
            await client.logon()
            await client.set_presence(PresenceState.AVAILABLE)
        assert ("PUT", "/rest/v2/users/presence", {"state": "AVAILABLE"}) in fake.requests


class TestConversations:
    @pytest.mark.asyncio
    async def test_get_by_id(self) -> None:
        async with _circuit() as (_, client):
            await client.logon()
            conv = await client.get_conversation_by_id("conv-1")
            missing = await client.get_conversation_by_id("nope")
        assert conv == Conversation("conv-1", "rtc-1", "GROUP")
        assert missing is None

    @pytest.mark.asyncio
    async def test_direct_conversation_lookup_and_create(self) -> None:
        async with _circuit() as (_, client):
            await client.logon()
            assert await client.get_direct_conversation_with_user("owner@example.com") is None
            created = await client.create_direct_conversation("owner@example.com")
            found = await client.get_direct_conversation_with_user("owner@example.com")
        assert created == Conversation("direct-1", type="DIRECT")
        assert found == created

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        async with _circuit() as (_, client):
            with pytest.raises(PlatformError) as info:
                await client.get_conversation_by_id("conv-1")  # not logged on
        assert info.value.status == 401


class TestMessages:
    @pytest.mark.asyncio
    async def test_reply_posts_to_parent(self) -> None:
        async with _circuit() as (fake, client):
            await client.logon()
            await client.add_text_item("conv-1", TextItem("Status <b>On</b>", parent_id="item-1"))
        method, path, form = fake.requests[-1]
        assert (method, path) == ("POST", "/rest/v2/conversations/conv-1/messages/item-1")
        assert form == {"content": "Status <b>On</b>", "contentType": "RICH"}

    @pytest.mark.asyncio
    async def test_new_item_with_subject(self) -> None:
        async with _circuit() as (fake, client):
            await client.logon()
            await client.add_text_item("conv-1", TextItem("I am ready", subject="Hi from Streamy"))
        _, path, form = fake.requests[-1]
        assert path == "/rest/v2/conversations/conv-1/messages"
        assert form["subject"] == "Hi from Streamy"

    @pytest.mark.asyncio
    async def test_send_failure(self) -> None:
        async with _circuit() as (fake, client):
            await client.logon()
            fake.fail_messages = True
            with pytest.raises(SendFailure, match="503"):
                await client.add_text_item("conv-1", TextItem("hello"))


class TestWebhooks:
    @pytest.mark.asyncio
    async def test_subscribe_and_unsubscribe(self) -> None:
        async with _circuit() as (fake, client):
            await client.logon()
            webhook_id = await client.subscribe_events("https://bot.example.com/api/events")
            await client.unsubscribe_events()
            await client.unsubscribe_events()
        assert webhook_id == "wh-1"
        _, path, form = next(r for r in fake.requests if r[1] == "/rest/v2/webhooks")
        assert form["url"] == "https://bot.example.com/api/events"
        assert form["filter"] == list(DEFAULT_EVENT_FILTERS)
        assert "RTC.CALL_STATUS" in form["filter"]
        deletes = [r for r in fake.requests if r[0] == "DELETE"]
        assert [r[1] for r in deletes] == ["/rest/v2/webhooks/wh-1"]
