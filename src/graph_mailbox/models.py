# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for send and retrieve requests.

This module defines the payloads accepted by :class:`MailClient` and the
small result types it returns.

Models:
    - AttachmentSpec: One attachment, from memory, a local path or a URL
    - MailOptions: A message to send on behalf of the shared mailbox
    - SentMessage: Identifiers of a sent message
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Recipients = str | list[str]


class AttachmentSpec(BaseModel):
    """A single attachment as supplied by the caller.

    Exactly one of ``content``, ``path`` or ``href`` is expected to carry
    data; when none does the attachment is skipped. When several are set,
    ``content`` wins over ``path`` which wins over ``href``.

    Attributes:
        filename: Attachment name; derived from path or URL when omitted.
        content: In-memory payload. Text is encoded as UTF-8.
        path: Local filesystem path.
        href: Remote http(s) URL.
    """

    model_config = ConfigDict(extra="forbid")

    filename: Annotated[
        str | None,
        Field(default=None, description="Attachment file name")
    ]
    content: Annotated[
        bytes | str | None,
        Field(default=None, description="In-memory attachment content")
    ]
    path: Annotated[
        str | None,
        Field(default=None, description="Local filesystem path")
    ]
    href: Annotated[
        str | None,
        Field(default=None, description="Remote http(s) URL")
    ]

    @property
    def has_source(self) -> bool:
        """True when at least one data source is present."""
        return self.content is not None or bool(self.path) or bool(self.href)


class MailOptions(BaseModel):
    """A message to send on behalf of the shared mailbox.

    Attributes:
        subject: Message subject.
        to: Primary recipients, a string of ``;``/``,`` separated
            addresses or a list of such strings.
        cc: Carbon-copy recipients.
        bcc: Blind carbon-copy recipients.
        text: Plain-text body (mutually exclusive with ``html``).
        html: HTML body (mutually exclusive with ``text``).
        attachments: Attachments uploaded before the message is sent.
    """

    model_config = ConfigDict(extra="forbid")

    subject: str
    to: Recipients
    cc: Recipients | None = None
    bcc: Recipients | None = None
    text: str | None = None
    html: str | None = None
    attachments: list[AttachmentSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def single_body(self) -> "MailOptions":
        """Reject messages carrying both a text and an HTML body."""
        if self.text is not None and self.html is not None:
            raise ValueError("text and html are mutually exclusive")
        return self

    def body(self) -> dict[str, str] | None:
        """Return the message body in mail-service form, or None."""
        if self.html:
            return {"contentType": "html", "content": self.html}
        if self.text:
            return {"contentType": "text", "content": self.text}
        return None


IdType = Literal["graph", "internetMessageId"]


@dataclass
class SentMessage:
    """Identifiers returned after a successful send."""

    id: str
    internet_message_id: str | None = None


__all__ = [
    "AttachmentSpec",
    "IdType",
    "MailOptions",
    "Recipients",
    "SentMessage",
]
