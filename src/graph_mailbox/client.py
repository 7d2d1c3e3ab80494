# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Send and retrieve mail on behalf of a shared mailbox.

Usage:
    >>> from graph_mailbox import MailClient, MailboxConfig, static_token
    >>> client = MailClient(MailboxConfig("shared@example.com"), static_token("..."))
    >>> sent = await client.send_mail({
    ...     "subject": "Report",
    ...     "to": "a@example.com; b@example.com",
    ...     "text": "See attached.",
    ...     "attachments": [{"path": "/var/reports/q3.pdf"}],
    ... })
    >>> message = await client.get_mail_by_id(sent.id, include_attachments=True)

A send creates a draft, uploads its attachments, then sends the draft.
Failures are reported once through the client's logger and re-raised
unchanged; nothing is retried.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import aiohttp

from .attachments import AttachmentManager
from .config import MailboxConfig
from .errors import MessageNotFound, NoRecipients
from .graph import GraphClient, TokenProvider, static_token
from .logger import get_logger
from .models import IdType, MailOptions, SentMessage
from .recipients import build_recipients

DEFAULT_SELECT_FIELDS = (
    "id",
    "subject",
    "bodyPreview",
    "body",
    "sentDateTime",
    "receivedDateTime",
    "from",
    "toRecipients",
    "ccRecipients",
    "bccRecipients",
    "hasAttachments",
)

_INTERNET_MESSAGE_ID = re.compile(r"^<[^>]+@[^>]+>$")


def looks_like_internet_message_id(value: str) -> bool:
    """True for RFC 822 style identifiers such as ``<abc@host>``."""
    return bool(_INTERNET_MESSAGE_ID.match(value))


class MailClient:
    """Mail operations for one shared mailbox.

    Attributes:
        config: Mailbox configuration with normalized upload options.
        graph: Mail-service client, safe for concurrent sends.
        attachments: Attachment manager bound to the mailbox.
        logger: Receives one ``error`` call per failed send.
    """

    def __init__(
        self,
        config: MailboxConfig,
        token_provider: Optional[TokenProvider] = None,
        graph: Optional[GraphClient] = None,
        logger: Optional[logging.Logger] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        config = replace(config, upload=config.upload.normalized())
        self.config = config
        if graph is None:
            if token_provider is None:
                if not config.access_token:
                    raise ValueError("token_provider or config.access_token is required")
                token_provider = static_token(config.access_token)
            graph = GraphClient(token_provider, base_url=config.base_url, session=http_session)
        self.graph = graph
        self.attachments = AttachmentManager(
            graph, config.shared_mailbox, config.upload, http_session=http_session
        )
        self.logger = logger or get_logger("graph_mailbox.client")

    @property
    def mailbox(self) -> str:
        return self.config.shared_mailbox

    async def send_mail(self, mail: Union[MailOptions, Mapping[str, Any]]) -> SentMessage:
        """Compose, attach and send a message.

        Returns:
            Identifiers of the sent message.

        Raises:
            NoRecipients: If ``to`` holds no address.
            AttachmentTooLarge: If an attachment exceeds 150 MiB.
            ChunkUploadFailed: If an upload session rejects a chunk.
            GraphRequestError: If the mail service rejects a call.
            pydantic.ValidationError: If ``mail`` is malformed.
        """
        try:
            options = mail if isinstance(mail, MailOptions) else MailOptions.model_validate(mail)

            to_recipients = build_recipients(options.to)
            if not to_recipients:
                raise NoRecipients()

            draft_fields: Dict[str, Any] = {
                "subject": options.subject,
                "toRecipients": to_recipients,
            }
            cc_recipients = build_recipients(options.cc)
            if cc_recipients:
                draft_fields["ccRecipients"] = cc_recipients
            bcc_recipients = build_recipients(options.bcc)
            if bcc_recipients:
                draft_fields["bccRecipients"] = bcc_recipients
            body = options.body()
            if body:
                draft_fields["body"] = body

            draft = await self.graph.create_draft(self.mailbox, draft_fields)
            message_id = draft["id"]
            self.logger.debug(f"Draft {message_id} created in {self.mailbox}")

            await self.attachments.upload_all(message_id, options.attachments)
            await self.graph.send_draft(self.mailbox, message_id)
            self.logger.info(f"Message {message_id} sent from {self.mailbox}")

            return SentMessage(
                id=message_id,
                internet_message_id=draft.get("internetMessageId"),
            )
        except Exception as exc:
            self.logger.error("Failed to send mail: %s", exc, exc_info=exc)
            raise

    async def get_mail_by_id(
        self,
        message_id: str,
        select: Optional[Sequence[str]] = None,
        include_attachments: bool = False,
        id_type: Optional[IdType] = None,
    ) -> Dict[str, Any]:
        """Fetch a message by Graph id or Internet Message-ID.

        Args:
            message_id: Graph id, or an Internet Message-ID like ``<x@host>``.
            select: Fields to return; a sensible default set when empty.
            include_attachments: Add an ``attachments`` list to the result.
            id_type: ``"internetMessageId"`` forces the filter lookup. Ids
                shaped like ``<x@host>`` use it whatever the type.

        Raises:
            ValueError: If ``message_id`` is empty.
            MessageNotFound: If no message has that Internet Message-ID.
        """
        if not message_id:
            raise ValueError("id is required")

        select_fields = ",".join(select) if select else ",".join(DEFAULT_SELECT_FIELDS)
        use_internet_id = id_type == "internetMessageId" or looks_like_internet_message_id(
            message_id
        )

        if use_internet_id:
            escaped = message_id.replace("'", "''")
            matches = await self.graph.find_messages(
                self.mailbox, f"internetMessageId eq '{escaped}'", select_fields
            )
            if not matches:
                raise MessageNotFound(message_id)
            message = matches[0]
        else:
            message = await self.graph.get_message(self.mailbox, message_id, select_fields)

        if include_attachments:
            message["attachments"] = await self.list_attachments(message.get("id", message_id))
        return message

    async def list_attachments(self, message_id: str) -> List[Dict[str, Any]]:
        """Return the attachments of a message."""
        return await self.graph.list_attachments(self.mailbox, message_id)


class SharedMailClient:
    """Explicitly passed handle holding one lazily built MailClient.

    The first :meth:`get` builds the client; later calls return the same
    instance whatever configuration they pass, so the authenticated client
    is reused across the application.

    Example:
        shared = SharedMailClient()
        client = shared.get(config, token_provider=provider)
        assert shared.get(other_config) is client
    """

    def __init__(self) -> None:
        self._client: Optional[MailClient] = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def get(self, config: MailboxConfig, **kwargs: Any) -> MailClient:
        """Return the shared client, building it on first call."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = MailClient(config, **kwargs)
        return self._client

    def reset(self) -> None:
        """Drop the shared client so the next :meth:`get` builds a new one."""
        with self._lock:
            self._client = None


__all__ = [
    "DEFAULT_SELECT_FIELDS",
    "MailClient",
    "SharedMailClient",
    "looks_like_internet_message_id",
]
