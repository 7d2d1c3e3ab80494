# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Reader for attachments stored on the local filesystem.

Missing paths, non-regular files and empty files are not errors: the
attachment is skipped with a warning. Small files are read whole; large
ones are streamed into an upload session one chunk at a time, so only a
single chunk is ever held in memory.

Example:
    Checking a path before use::

        reader = FilesystemReader()
        size = await reader.stat("/var/reports/q3.pdf")   # None if unusable
"""

from __future__ import annotations

import asyncio
import os
import stat
from contextlib import aclosing
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

from ..logger import get_logger
from .base import AttachmentReaderBase, AttachmentTarget, ResolvedAttachment, SourceKind
from .sizing import TransferStrategy, classify

logger = get_logger("graph_mailbox.attachments")


async def read_chunks(handle: BinaryIO, chunk_size: int) -> AsyncIterator[bytes]:
    """Yield successive ``chunk_size`` reads from an open binary file."""
    while True:
        chunk = await asyncio.to_thread(handle.read, chunk_size)
        if not chunk:
            return
        yield chunk


class FilesystemReader(AttachmentReaderBase):
    """Transfer attachments read from local paths."""

    kind = SourceKind.PATH

    async def stat(self, path: str) -> Optional[int]:
        """Return the size of a usable regular file, or None.

        A file is unusable when it does not exist, cannot be stat'ed, is
        not a regular file, or is empty.
        """
        try:
            info = await asyncio.to_thread(os.stat, path)
        except OSError as exc:
            logger.debug(f"Cannot stat {path}: {exc}")
            return None
        if not stat.S_ISREG(info.st_mode) or info.st_size == 0:
            return None
        return info.st_size

    async def transfer(
        self, target: AttachmentTarget, attachment: ResolvedAttachment
    ) -> Optional[TransferStrategy]:
        source = self.source_of(attachment)

        size = await self.stat(source.path)
        if size is None:
            logger.warning(f"Skipping attachment {attachment.filename}: unusable path {source.path}")
            return None

        strategy = classify(size, target.threshold, target.ceiling)
        logger.info(f"{attachment.filename}: {size} bytes on disk, {strategy.value} transfer")

        if strategy is TransferStrategy.INLINE:
            content = await asyncio.to_thread(Path(source.path).read_bytes)
            await target.attach_inline(attachment.filename, content, attachment.content_type)
            return strategy

        with open(source.path, "rb") as handle:
            session = await target.open_session(attachment.filename, size, attachment.content_type)
            async with aclosing(read_chunks(handle, target.driver.chunk_size)) as chunks:
                await target.driver.upload_stream(session, chunks)
        return strategy


__all__ = ["FilesystemReader", "read_chunks"]
