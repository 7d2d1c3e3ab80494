# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Chunked attachment transfer through upload sessions.

An upload session is a server-issued URL accepting sequential byte-range
PUTs until the declared total size is covered. The driver opens sessions
and feeds them strictly in ascending offset order, one request at a time.

Example:
    Uploading an in-memory payload::

        driver = UploadSessionDriver(graph, "shared@example.com", chunk_size=327680)
        await driver.upload_bytes(message_id, "big.zip", payload, "application/zip")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterable

from ..errors import AttachmentLengthMismatch, ChunkUploadFailed
from ..logger import get_logger
from .sizing import check_ceiling, normalize_chunk_size, plan_ranges

if TYPE_CHECKING:
    from ..graph import GraphClient

ACCEPTED_STATUSES = frozenset({200, 201, 202})
"""202 for intermediate chunks, 201 when the last one completes the item."""


@dataclass
class UploadSession:
    """State of one open upload session.

    Attributes:
        upload_url: Opaque endpoint receiving the range PUTs.
        message_id: Draft the attachment belongs to.
        name: Attachment name declared at creation.
        size: Total size declared at creation.
        content_type: MIME type declared at creation.
        next_offset: First byte not yet accepted by the service.
    """

    upload_url: str
    message_id: str
    name: str
    size: int
    content_type: str
    next_offset: int = 0

    @property
    def completed(self) -> bool:
        return self.next_offset >= self.size


class UploadSessionDriver:
    """Create upload sessions and drive their byte-range PUTs."""

    def __init__(self, graph: "GraphClient", mailbox: str, chunk_size: int):
        self._graph = graph
        self._mailbox = mailbox
        self._chunk_size = normalize_chunk_size(chunk_size)
        self.logger = get_logger("graph_mailbox.upload")

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def create_session(
        self, message_id: str, name: str, size: int, content_type: str
    ) -> UploadSession:
        """Open a session for an attachment of exactly ``size`` bytes."""
        check_ceiling(size)
        data = await self._graph.create_upload_session(
            self._mailbox, message_id, name, size, content_type
        )
        self.logger.info(f"Upload session opened for {name} ({size} bytes)")
        return UploadSession(
            upload_url=data["uploadUrl"],
            message_id=message_id,
            name=name,
            size=size,
            content_type=content_type,
        )

    async def put_range(self, session: UploadSession, chunk: bytes, start: int) -> int:
        """Send ``chunk`` as the range starting at ``start``.

        Returns:
            The accepted HTTP status.

        Raises:
            ValueError: If ``start`` leaves a gap or overlaps accepted bytes,
                or the chunk runs past the declared size.
            ChunkUploadFailed: If the service rejects the range.
        """
        if start != session.next_offset:
            raise ValueError(
                f"Range must start at offset {session.next_offset}, got {start}"
            )
        end = start + len(chunk) - 1
        if not chunk or end >= session.size:
            raise ValueError(
                f"Range {start}-{end} does not fit declared size {session.size}"
            )
        headers = {
            "Content-Length": str(len(chunk)),
            "Content-Range": f"bytes {start}-{end}/{session.size}",
            "Content-Type": "application/octet-stream",
        }
        status = await self._graph.put_upload_range(session.upload_url, chunk, headers)
        if status not in ACCEPTED_STATUSES:
            raise ChunkUploadFailed(status, start, end)
        session.next_offset = end + 1
        self.logger.debug(f"{session.name}: bytes {start}-{end}/{session.size} -> {status}")
        return status

    async def upload_bytes(
        self, message_id: str, name: str, content: bytes, content_type: str
    ) -> UploadSession:
        """Upload an in-memory payload through a new session."""
        session = await self.create_session(message_id, name, len(content), content_type)
        view = memoryview(content)
        for chunk_range in plan_ranges(len(content), self._chunk_size):
            await self.put_range(
                session, bytes(view[chunk_range.start:chunk_range.end + 1]), chunk_range.start
            )
        return session

    async def upload_stream(
        self, session: UploadSession, chunks: AsyncIterable[bytes]
    ) -> UploadSession:
        """Feed an async stream of chunks into ``session`` in order.

        The stream must deliver exactly ``session.size`` bytes.

        Raises:
            AttachmentLengthMismatch: If the stream ends at another length.
        """
        async for chunk in chunks:
            if not chunk:
                continue
            if session.next_offset + len(chunk) > session.size:
                raise AttachmentLengthMismatch(session.size, session.next_offset + len(chunk))
            await self.put_range(session, chunk, session.next_offset)
        if not session.completed:
            raise AttachmentLengthMismatch(session.size, session.next_offset)
        return session


__all__ = ["ACCEPTED_STATUSES", "UploadSession", "UploadSessionDriver"]
