# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Asynchronous client for the Microsoft Graph mail endpoints.

This module wraps the handful of REST calls needed to compose, send and
read messages of a shared mailbox. It only shapes requests: it never
retries, and authentication is delegated to an injected token provider.

Example:
    Creating and sending a draft::

        graph = GraphClient(static_token("eyJ0eXAi..."))
        draft = await graph.create_draft("shared@example.com", {"subject": "Hi"})
        await graph.send_draft("shared@example.com", draft["id"])
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote

import aiohttp

from .config import GRAPH_API_BASE
from .errors import GraphRequestError
from .logger import get_logger

TokenProvider = Callable[[], Awaitable[str]]

FILE_ATTACHMENT_TYPE = "#microsoft.graph.fileAttachment"


def static_token(token: str) -> TokenProvider:
    """Build a token provider that always returns ``token``."""

    async def provider() -> str:
        return token

    return provider


class GraphClient:
    """Thin async wrapper over the Graph mail REST API.

    Safe for concurrent use: it holds no per-request state. When a session
    is injected it is shared by every call and owned by the caller;
    otherwise each call opens and closes its own ``aiohttp.ClientSession``.

    Attributes:
        _token_provider: Async callable returning a bearer token.
        _base_url: API root, without trailing slash.
        _session: Optional caller-owned aiohttp session.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = GRAPH_API_BASE,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._token_provider = token_provider
        self._base_url = base_url.rstrip("/")
        self._session = session
        self.logger = get_logger("graph_mailbox.graph")

    @property
    def base_url(self) -> str:
        """The configured API root."""
        return self._base_url

    @asynccontextmanager
    async def open_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Yield the injected session, or a fresh one closed on exit."""
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession() as session:
            yield session

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    @staticmethod
    def _mailbox_path(mailbox: str, suffix: str = "") -> str:
        return f"/users/{quote(mailbox, safe='@')}/messages{suffix}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Issue an authenticated request and decode the JSON answer.

        Raises:
            GraphRequestError: If the service answers with status >= 400.
            aiohttp.ClientError: On transport failures.
        """
        token = await self._token_provider()
        headers = {"Authorization": f"Bearer {token}"}
        self.logger.debug(f"{method} {path}")

        async with self.open_session() as session:
            async with session.request(
                method,
                self._url(path),
                json=json_body,
                params=params,
                headers=headers,
            ) as response:
                text = await response.text()
                if response.status >= 400:
                    raise GraphRequestError(response.status, method, path, _decode(text))
                decoded = _decode(text)
                return decoded if isinstance(decoded, dict) else {}

    async def create_draft(self, mailbox: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create a draft message and return it (``id``, ``internetMessageId``...)."""
        return await self._request("POST", self._mailbox_path(mailbox), json_body=fields)

    async def add_file_attachment(
        self,
        mailbox: str,
        message_id: str,
        name: str,
        content_bytes: str,
        content_type: str,
    ) -> Dict[str, Any]:
        """Attach a base64-encoded payload to a draft in a single call."""
        return await self._request(
            "POST",
            self._mailbox_path(mailbox, f"/{message_id}/attachments"),
            json_body={
                "@odata.type": FILE_ATTACHMENT_TYPE,
                "name": name,
                "contentBytes": content_bytes,
                "contentType": content_type,
            },
        )

    async def create_upload_session(
        self,
        mailbox: str,
        message_id: str,
        name: str,
        size: int,
        content_type: str,
    ) -> Dict[str, Any]:
        """Open an attachment upload session sized to ``size`` bytes."""
        return await self._request(
            "POST",
            self._mailbox_path(mailbox, f"/{message_id}/attachments/createUploadSession"),
            json_body={
                "AttachmentItem": {
                    "attachmentType": "file",
                    "name": name,
                    "size": size,
                    "contentType": content_type,
                }
            },
        )

    async def send_draft(self, mailbox: str, message_id: str) -> None:
        """Send a previously created draft."""
        await self._request(
            "POST", self._mailbox_path(mailbox, f"/{message_id}/send"), json_body={}
        )

    async def get_message(
        self, mailbox: str, message_id: str, select: str
    ) -> Dict[str, Any]:
        """Fetch one message by its Graph id."""
        return await self._request(
            "GET",
            self._mailbox_path(mailbox, f"/{message_id}"),
            params={"$select": select},
        )

    async def find_messages(
        self, mailbox: str, odata_filter: str, select: str
    ) -> List[Dict[str, Any]]:
        """List the messages matching an OData ``$filter`` expression."""
        data = await self._request(
            "GET",
            self._mailbox_path(mailbox),
            params={"$filter": odata_filter, "$select": select},
        )
        return data.get("value") or []

    async def list_attachments(self, mailbox: str, message_id: str) -> List[Dict[str, Any]]:
        """List the attachments of a message."""
        data = await self._request(
            "GET", self._mailbox_path(mailbox, f"/{message_id}/attachments")
        )
        return data.get("value") or []

    async def put_upload_range(
        self, upload_url: str, body: bytes, headers: Mapping[str, str]
    ) -> int:
        """PUT one byte range to a pre-authenticated upload URL.

        The upload URL carries its own credentials, so no Authorization
        header is sent. Status interpretation is left to the caller.
        """
        async with self.open_session() as session:
            async with session.put(upload_url, data=body, headers=dict(headers)) as response:
                await response.read()
                return response.status


def _decode(text: str) -> Any:
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return text


__all__ = [
    "FILE_ATTACHMENT_TYPE",
    "GraphClient",
    "TokenProvider",
    "static_token",
]
