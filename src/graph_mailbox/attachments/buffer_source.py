# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Reader for attachments whose bytes are already in memory."""

from __future__ import annotations

from typing import Optional

from ..logger import get_logger
from .base import AttachmentReaderBase, AttachmentTarget, ResolvedAttachment, SourceKind
from .sizing import TransferStrategy, classify

logger = get_logger("graph_mailbox.attachments")


async def transfer_content(
    target: AttachmentTarget, name: str, content: bytes, content_type: str
) -> TransferStrategy:
    """Send in-memory ``content`` inline or through an upload session, by size."""
    strategy = classify(len(content), target.threshold, target.ceiling)
    logger.info(f"{name}: {len(content)} bytes, {strategy.value} transfer")
    if strategy is TransferStrategy.INLINE:
        await target.attach_inline(name, content, content_type)
    else:
        await target.driver.upload_bytes(target.message_id, name, content, content_type)
    return strategy


class BufferReader(AttachmentReaderBase):
    """Transfer attachments supplied as bytes."""

    kind = SourceKind.BUFFER

    async def transfer(
        self, target: AttachmentTarget, attachment: ResolvedAttachment
    ) -> Optional[TransferStrategy]:
        source = self.source_of(attachment)
        return await transfer_content(
            target, attachment.filename, source.content, attachment.content_type
        )


__all__ = ["BufferReader", "transfer_content"]
