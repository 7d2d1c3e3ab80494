# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Attachment sources and the transfer target they write to.

A caller's :class:`~graph_mailbox.models.AttachmentSpec` is resolved into
a :class:`ResolvedAttachment` whose ``source`` is one variant of a tagged
union (buffer, local file or remote URL). Each variant is handled by one
reader implementing :class:`AttachmentReaderBase`, and every reader pushes
bytes into the same :class:`AttachmentTarget`, bound to one draft message.
"""

from __future__ import annotations

import base64
import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import TYPE_CHECKING, Literal, Optional, Union
from urllib.parse import urlparse

from .mime import guess_content_type
from .sizing import MAX_ATTACHMENT_SIZE, TransferStrategy, check_ceiling

if TYPE_CHECKING:
    from ..graph import GraphClient
    from ..models import AttachmentSpec
    from .upload_session import UploadSession, UploadSessionDriver

FALLBACK_FILENAME = "attachment"


class SourceKind(str, Enum):
    """Tag of an attachment source variant."""

    BUFFER = "buffer"
    PATH = "path"
    URL = "url"


@dataclass(frozen=True)
class BufferSource:
    """Bytes already in memory."""

    content: bytes
    kind: Literal[SourceKind.BUFFER] = SourceKind.BUFFER


@dataclass(frozen=True)
class FileSource:
    """A file on the local filesystem."""

    path: str
    kind: Literal[SourceKind.PATH] = SourceKind.PATH


@dataclass(frozen=True)
class UrlSource:
    """A document reachable over http(s)."""

    href: str
    kind: Literal[SourceKind.URL] = SourceKind.URL


AttachmentSource = Union[BufferSource, FileSource, UrlSource]


@dataclass(frozen=True)
class ResolvedAttachment:
    """An attachment with its name, MIME type and source settled.

    Attributes:
        filename: Final attachment name.
        content_type: MIME type derived from the filename.
        source: Where the bytes come from.
        total_size: Byte length when known upfront (buffer sources only;
            file and URL readers discover it themselves).
    """

    filename: str
    content_type: str
    source: AttachmentSource
    total_size: Optional[int] = None


def resolve_source(spec: "AttachmentSpec") -> Optional[AttachmentSource]:
    """Pick the source variant of ``spec``: content, then path, then href."""
    if not spec.has_source:
        return None
    if spec.content is not None:
        content = spec.content
        if isinstance(content, str):
            content = content.encode("utf-8")
        return BufferSource(content)
    if spec.path:
        return FileSource(spec.path)
    if spec.href:
        return UrlSource(spec.href)
    return None


def resolve_filename(spec: "AttachmentSpec") -> str:
    """Explicit filename, else path basename, else URL basename, else a fallback."""
    if spec.filename:
        return spec.filename
    if spec.path:
        return PurePath(spec.path).name or FALLBACK_FILENAME
    if spec.href:
        parsed = urlparse(spec.href)
        if parsed.scheme and parsed.netloc:
            return posixpath.basename(parsed.path) or FALLBACK_FILENAME
        return spec.href.rstrip().split("/")[-1] or FALLBACK_FILENAME
    return FALLBACK_FILENAME


def resolve_attachment(spec: "AttachmentSpec") -> Optional[ResolvedAttachment]:
    """Resolve ``spec``, or return None when it carries no data source."""
    source = resolve_source(spec)
    if source is None:
        return None
    filename = resolve_filename(spec)
    total_size = len(source.content) if isinstance(source, BufferSource) else None
    return ResolvedAttachment(
        filename=filename,
        content_type=guess_content_type(filename),
        source=source,
        total_size=total_size,
    )


@dataclass
class AttachmentTarget:
    """Destination of attachment bytes: one draft in one mailbox.

    Attributes:
        graph: Mail-service client.
        mailbox: Shared mailbox owning the draft.
        message_id: Draft receiving the attachments.
        driver: Upload session driver for chunked transfers.
        threshold: Largest size still attached inline.
        ceiling: Absolute maximum attachment size.
    """

    graph: "GraphClient"
    mailbox: str
    message_id: str
    driver: "UploadSessionDriver"
    threshold: int
    ceiling: int = MAX_ATTACHMENT_SIZE

    async def attach_inline(self, name: str, content: bytes, content_type: str) -> None:
        """Attach ``content`` as a single base64 payload."""
        check_ceiling(len(content), self.ceiling)
        await self.graph.add_file_attachment(
            self.mailbox,
            self.message_id,
            name,
            base64.b64encode(content).decode("ascii"),
            content_type,
        )

    async def open_session(self, name: str, size: int, content_type: str) -> "UploadSession":
        """Open an upload session for this draft."""
        return await self.driver.create_session(self.message_id, name, size, content_type)


class AttachmentReaderBase:
    """Interface implemented by the reader of each source variant."""

    kind: SourceKind

    def source_of(self, attachment: ResolvedAttachment) -> AttachmentSource:
        """Return the source of ``attachment``, which must be of this reader's kind.

        Raises:
            TypeError: If the source belongs to another reader.
        """
        source = attachment.source
        if source.kind is not self.kind:
            raise TypeError(
                f"{type(self).__name__} cannot read a {source.kind.value} source"
            )
        return source

    async def transfer(
        self, target: AttachmentTarget, attachment: ResolvedAttachment
    ) -> Optional[TransferStrategy]:
        """Move the attachment's bytes into ``target``.

        Returns:
            The strategy used, or None when the source was unavailable and
            the attachment was skipped.

        Raises:
            AttachmentTooLarge: If the attachment exceeds the ceiling.
            ChunkUploadFailed: If an upload session rejects a range.
            NotImplementedError: If called on the base class directly.
        """
        raise NotImplementedError


__all__ = [
    "AttachmentReaderBase",
    "AttachmentSource",
    "AttachmentTarget",
    "BufferSource",
    "FALLBACK_FILENAME",
    "FileSource",
    "ResolvedAttachment",
    "SourceKind",
    "UrlSource",
    "resolve_attachment",
    "resolve_filename",
    "resolve_source",
]
