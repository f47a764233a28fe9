from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from models.event import PowerEvent
from providers.base import DEFAULT_POLL_INTERVAL, MailboxProvider
from providers.parsing import event_from_headers

_TOKEN_URL = "https://oauth2.googleapis.com/token"
_API_ROOT = "https://gmail.googleapis.com/gmail/v1/users"
_METADATA_HEADERS = ("Subject", "Date", "Message-Id")
# Refresh this many seconds before Google says the token expires.
_TOKEN_SLACK_SECONDS = 60

log = logging.getLogger(__name__)


class MailboxAuthError(Exception):
    """Raised when the OAuth refresh token can't be exchanged for an access token."""


class GmailProvider(MailboxProvider):
    """Provider adapter for a Gmail label holding PDB notification mails.

    Talks to the Gmail REST API with an OAuth refresh token. Message
    metadata is only fetched once per message id; later polls just list
    the label and pick up ids that weren't there before.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        user: str = "me",
        label_name: str = "PDB Notifications",
        after: str | None = None,
        page_size: int = 500,
        delay_seconds: int = 0,
        poll_interval: int = DEFAULT_POLL_INTERVAL,
        fetch_concurrency: int = 10,
    ) -> None:
        super().__init__(client)
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._user = user
        self._label_name = label_name
        self._after = after
        self._page_size = page_size
        self._delay_seconds = delay_seconds
        self._poll_interval = poll_interval
        self._fetch_limit = asyncio.Semaphore(fetch_concurrency)

        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._label_id: str | None = None
        self._fetched_ids: set[str] = set()

    @property
    def name(self) -> str:
        return "Gmail"

    @property
    def poll_interval_seconds(self) -> int:
        return self._poll_interval

    async def fetch_events(self) -> list[PowerEvent]:
        try:
            return await self._fetch_new_events()
        except MailboxAuthError as exc:
            log.error("[%s] Authentication failed: %s", self.name, exc)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 401:
                self._access_token = None
            log.error(
                "[%s] Unexpected status %d from %s",
                self.name,
                exc.response.status_code,
                exc.request.url,
            )
        except httpx.HTTPError as exc:
            log.error("[%s] HTTP error: %s", self.name, exc)
        return []

    async def _fetch_new_events(self) -> list[PowerEvent]:
        label_id = await self._resolve_label_id()
        if label_id is None:
            log.warning("[%s] Label not found: %s", self.name, self._label_name)
            return []

        ids = [i for i in await self._list_message_ids(label_id) if i not in self._fetched_ids]
        if not ids:
            return []
        log.debug("[%s] Fetching metadata for %d message(s)", self.name, len(ids))

        messages = await asyncio.gather(*(self._get_metadata(i) for i in ids))

        events: list[PowerEvent] = []
        for message_id, message in zip(ids, messages):
            self._fetched_ids.add(message_id)
            event = event_from_headers(
                _headers_of(message),
                fallback_id=message.get("id") or message_id,
                delay_seconds=self._delay_seconds,
            )
            if event is not None:
                events.append(event)
        return events

    async def _token(self) -> str:
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        resp = await self._client.post(
            _TOKEN_URL,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": self._refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if resp.status_code != 200:
            raise MailboxAuthError(f"token endpoint returned {resp.status_code}")

        payload = resp.json()
        token = payload.get("access_token")
        if not token:
            raise MailboxAuthError("token endpoint returned no access_token")
        expires_in = int(payload.get("expires_in", 3600))
        self._access_token = token
        self._token_expires_at = time.monotonic() + max(expires_in - _TOKEN_SLACK_SECONDS, 0)
        return token

    async def _get(self, path: str, params: Any = None) -> dict[str, Any]:
        token = await self._token()
        resp = await self._client.get(
            f"{_API_ROOT}/{self._user}/{path}",
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )
        resp.raise_for_status()
        return resp.json()

    async def _resolve_label_id(self) -> str | None:
        if self._label_id is None:
            data = await self._get("labels")
            for label in data.get("labels", []):
                if label.get("name") == self._label_name:
                    self._label_id = label.get("id")
                    break
        return self._label_id

    async def _list_message_ids(self, label_id: str) -> list[str]:
        ids: list[str] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"labelIds": label_id, "maxResults": self._page_size}
            if self._after:
                params["q"] = f"after:{self._after}"
            if page_token:
                params["pageToken"] = page_token

            data = await self._get("messages", params)
            ids.extend(m["id"] for m in data.get("messages", []) if m.get("id"))
            page_token = data.get("nextPageToken")
            if not page_token:
                return ids

    async def _get_metadata(self, message_id: str) -> dict[str, Any]:
        params = [("format", "metadata")]
        params.extend(("metadataHeaders", h) for h in _METADATA_HEADERS)
        async with self._fetch_limit:
            return await self._get(f"messages/{message_id}", params)


def _headers_of(message: dict[str, Any]) -> dict[str, str]:
    """Flatten Gmail's ``payload.headers`` list into a dict."""
    headers = (message.get("payload") or {}).get("headers") or []
    return {h.get("name", ""): h.get("value", "") for h in headers}
