# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Attachment transfer for draft messages.

This package moves caller-supplied attachments into a draft message,
choosing per attachment between a single inline payload and a chunked
upload session.

Supported sources:
- content - bytes (or text) held in memory
- path - a regular, non-empty local file
- href - an http(s) URL

Attachments without a usable source are skipped. Anything above 150 MiB
is rejected with :class:`~graph_mailbox.errors.AttachmentTooLarge`.

Example:
    Uploading the attachments of a draft::

        manager = AttachmentManager(graph, "shared@example.com", UploadOptions())
        await manager.upload_all(draft_id, [
            AttachmentSpec(filename="note.txt", content=b"hello"),
            AttachmentSpec(path="/var/reports/q3.pdf"),
            AttachmentSpec(href="https://example.com/logo.png"),
        ])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

import aiohttp

from ..logger import get_logger
from .base import (
    AttachmentReaderBase,
    AttachmentTarget,
    ResolvedAttachment,
    SourceKind,
    resolve_attachment,
)
from .buffer_source import BufferReader
from .filesystem_source import FilesystemReader
from .http_source import HttpReader
from .sizing import MAX_ATTACHMENT_SIZE, TransferStrategy
from .upload_session import UploadSessionDriver

if TYPE_CHECKING:
    from ..config import UploadOptions
    from ..graph import GraphClient
    from ..models import AttachmentSpec


class AttachmentManager:
    """Resolve and transfer the attachments of a draft, one at a time.

    Attributes:
        _graph: Mail-service client.
        _mailbox: Shared mailbox owning the drafts.
        _options: Normalized upload options.
        _driver: Upload session driver shared by all readers.
        _readers: One reader per source kind.
    """

    def __init__(
        self,
        graph: "GraphClient",
        mailbox: str,
        options: "UploadOptions",
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self._graph = graph
        self._mailbox = mailbox
        self._options = options.normalized()
        self._driver = UploadSessionDriver(graph, mailbox, self._options.chunk_size)
        self._readers: Dict[SourceKind, AttachmentReaderBase] = {
            SourceKind.BUFFER: BufferReader(),
            SourceKind.PATH: FilesystemReader(),
            SourceKind.URL: HttpReader(session=http_session),
        }
        self.logger = get_logger("graph_mailbox.attachments")

    @property
    def options(self) -> "UploadOptions":
        return self._options

    @property
    def driver(self) -> UploadSessionDriver:
        return self._driver

    def target_for(self, message_id: str) -> AttachmentTarget:
        """Build the transfer target for one draft."""
        return AttachmentTarget(
            graph=self._graph,
            mailbox=self._mailbox,
            message_id=message_id,
            driver=self._driver,
            threshold=self._options.large_file_threshold,
            ceiling=MAX_ATTACHMENT_SIZE,
        )

    async def upload(
        self, message_id: str, spec: "AttachmentSpec"
    ) -> Optional[TransferStrategy]:
        """Transfer one attachment to the draft.

        Returns:
            The strategy used, or None if the attachment was skipped.
        """
        resolved = resolve_attachment(spec)
        if resolved is None:
            self.logger.debug("Skipping attachment without content, path or href")
            return None
        return await self.transfer(message_id, resolved)

    async def transfer(
        self, message_id: str, attachment: ResolvedAttachment
    ) -> Optional[TransferStrategy]:
        """Hand a resolved attachment to the reader of its source kind."""
        reader = self._readers[attachment.source.kind]
        return await reader.transfer(self.target_for(message_id), attachment)

    async def upload_all(
        self, message_id: str, attachments: Optional[Sequence["AttachmentSpec"]]
    ) -> List[Optional[TransferStrategy]]:
        """Transfer attachments sequentially; the first failure aborts the rest."""
        results: List[Optional[TransferStrategy]] = []
        for spec in attachments or ():
            results.append(await self.upload(message_id, spec))
        return results


__all__ = ["AttachmentManager"]
