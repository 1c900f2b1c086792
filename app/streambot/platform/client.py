"""Platform client -- the protocol the bot depends on plus its REST implementation."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import aiohttp

from .errors import LogonFailure, PlatformError, SendFailure
from .models import Conversation, Identity, PresenceState, TextItem

logger = logging.getLogger(__name__)

DEFAULT_EVENT_FILTERS: tuple[str, ...] = (
    "CONVERSATION.ADD_ITEM",
    "CONVERSATION.UPDATE_ITEM",
    "USER.USER_UPDATED",
    "RTC.CALL_STATUS",
)


class PlatformClient(Protocol):
    async def logon(self) -> Identity: ...

    async def update_user(self, **profile: str) -> None: ...

    async def set_presence(self, state: PresenceState) -> None: ...

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation | None: ...

    async def get_direct_conversation_with_user(self, email: str) -> Conversation | None: ...

    async def create_direct_conversation(self, email: str) -> Conversation | None: ...

    async def add_text_item(self, conversation_id: str, item: TextItem) -> None: ...


class CircuitRestClient:
    """aiohttp client for the Circuit REST API (OAuth client credentials)."""

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        *,
        scope: str = "ALL",
        base_url: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._root = (base_url or f"https://{domain}").rstrip("/")
        self._api = f"{self._root}/rest/v2"
        self._client_id = client_id
        self._client_secret = client_secret
        self._scope = scope
        self._session = session
        self._token = ""
        self._webhook_ids: list[str] = []

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    # -- auth ---------------------------------------------------------------

    async def logon(self) -> Identity:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "scope": self._scope,
        }
        try:
            async with self.session.post(f"{self._root}/oauth/token", data=form) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise LogonFailure(f"token request rejected ({resp.status}): {body[:200]}")
                token = (await resp.json()).get("access_token", "")
        except aiohttp.ClientError as exc:
            raise LogonFailure(f"token request failed: {exc}") from exc
        if not token:
            raise LogonFailure("token response carried no access_token")
        self._token = token

        try:
            profile = await self._request("GET", "/users/profile")
        except PlatformError as exc:
            raise LogonFailure(f"profile lookup failed: {exc}") from exc
        identity = Identity.from_payload(profile or {})
        logger.info("Logged on as %s (%s)", identity.user_id, identity.display_name)
        return identity

    # -- user ---------------------------------------------------------------

    async def update_user(self, **profile: str) -> None:
        form = {k: v for k, v in profile.items() if v}
        await self._request("PUT", "/users/profile", data=form)

    async def set_presence(self, state: PresenceState) -> None:
        await self._request("PUT", "/users/presence", data={"state": str(state)})

    # -- conversations ------------------------------------------------------

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation | None:
        data = await self._request("GET", f"/conversations/{conversation_id}", allow_missing=True)
        return Conversation.from_payload(data) if data else None

    async def get_direct_conversation_with_user(self, email: str) -> Conversation | None:
        data = await self._request("GET", f"/conversations/direct/{email}", allow_missing=True)
        return Conversation.from_payload(data) if data else None

    async def create_direct_conversation(self, email: str) -> Conversation | None:
        data = await self._request("POST", "/conversations/direct", data={"participant": email})
        return Conversation.from_payload(data) if data else None

    async def add_text_item(self, conversation_id: str, item: TextItem) -> None:
        path = f"/conversations/{conversation_id}/messages"
        if item.parent_id:
            path = f"{path}/{item.parent_id}"
        try:
            await self._request("POST", path, data=item.to_form())
        except (PlatformError, aiohttp.ClientError) as exc:
            raise SendFailure(f"posting to {conversation_id} failed: {exc}") from exc

    # -- webhooks -----------------------------------------------------------

    async def subscribe_events(
        self, url: str, filters: tuple[str, ...] = DEFAULT_EVENT_FILTERS,
    ) -> str:
        form = aiohttp.FormData()
        form.add_field("url", url)
        for f in filters:
            form.add_field("filter", f)
        data = await self._request("POST", "/webhooks", data=form)
        webhook_id = str((data or {}).get("id", ""))
        if webhook_id:
            self._webhook_ids.append(webhook_id)
        logger.info("Subscribed %s to %s (webhook %s)", url, ", ".join(filters), webhook_id or "?")
        return webhook_id

    async def unsubscribe_events(self) -> None:
        while self._webhook_ids:
            webhook_id = self._webhook_ids.pop()
            try:
                await self._request("DELETE", f"/webhooks/{webhook_id}")
            except (PlatformError, aiohttp.ClientError) as exc:
                logger.warning("Failed to remove webhook %s: %s", webhook_id, exc)

    # -- plumbing -----------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: Any = None,
        allow_missing: bool = False,
    ) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"}
        url = f"{self._api}{path}"
        logger.debug("%s %s", method, url)
        async with self.session.request(method, url, data=data, headers=headers) as resp:
            if resp.status == 404 and allow_missing:
                return None
            if resp.status >= 400:
                body = await resp.text()
                raise PlatformError(f"{method} {path} -> {resp.status}: {body[:200]}", resp.status)
            if resp.status == 204 or resp.content_length == 0:
                return None
            return await resp.json(content_type=None)
