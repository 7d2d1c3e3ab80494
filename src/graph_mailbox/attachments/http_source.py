# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Reader for attachments downloaded from http(s) URLs.

The size of a remote document is discovered along the way, so each
transfer runs a small state machine::

    UNKNOWN -> PROBING -> KNOWN_SMALL        -> TERMINAL
                       -> KNOWN_LARGE        -> TERMINAL
                       -> UNKNOWN_BUFFERING  -> TERMINAL
                       -> TERMINAL  (download refused, attachment skipped)

PROBING issues a HEAD request (failures are ignored) and opens the
download, whose own Content-Length may fill in a missing size.

- KNOWN_SMALL: the body is read into memory, guarded by the ceiling,
  then sent like an in-memory attachment.
- KNOWN_LARGE: an upload session is opened immediately and fed with
  chunk-aligned slices peeled off the incoming stream.
- UNKNOWN_BUFFERING: the body is buffered, failing as soon as it crosses
  the ceiling, then classified by its final length.

Example:
    Transferring one URL attachment::

        reader = HttpReader()
        await reader.transfer(target, resolved)
"""

from __future__ import annotations

import asyncio
import re
from contextlib import aclosing
from enum import Enum
from typing import AsyncIterator, Optional

import aiohttp

from ..logger import get_logger
from .base import AttachmentReaderBase, AttachmentTarget, ResolvedAttachment, SourceKind, UrlSource
from .buffer_source import transfer_content
from .sizing import MAX_ATTACHMENT_SIZE, TransferStrategy, check_ceiling, classify

logger = get_logger("graph_mailbox.http")

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)

# Lengths must describe the bytes actually uploaded, never a compressed transfer.
IDENTITY_ENCODING = {"Accept-Encoding": "identity"}


class UrlTransferState(str, Enum):
    """States of a URL attachment transfer."""

    UNKNOWN = "unknown"
    PROBING = "probing"
    KNOWN_SMALL = "known_small"
    KNOWN_LARGE = "known_large"
    UNKNOWN_BUFFERING = "unknown_buffering"
    TERMINAL = "terminal"


TRANSITIONS: dict[UrlTransferState, frozenset[UrlTransferState]] = {
    UrlTransferState.UNKNOWN: frozenset({UrlTransferState.PROBING}),
    UrlTransferState.PROBING: frozenset({
        UrlTransferState.KNOWN_SMALL,
        UrlTransferState.KNOWN_LARGE,
        UrlTransferState.UNKNOWN_BUFFERING,
        UrlTransferState.TERMINAL,
    }),
    UrlTransferState.KNOWN_SMALL: frozenset({UrlTransferState.TERMINAL}),
    UrlTransferState.KNOWN_LARGE: frozenset({UrlTransferState.TERMINAL}),
    UrlTransferState.UNKNOWN_BUFFERING: frozenset({UrlTransferState.TERMINAL}),
    UrlTransferState.TERMINAL: frozenset(),
}

_STATE_FOR_STRATEGY = {
    TransferStrategy.INLINE: UrlTransferState.KNOWN_SMALL,
    TransferStrategy.CHUNKED: UrlTransferState.KNOWN_LARGE,
    TransferStrategy.PENDING: UrlTransferState.UNKNOWN_BUFFERING,
}


def is_http_url(href: str) -> bool:
    """True for http:// and https:// URLs (case-insensitive)."""
    return bool(_HTTP_URL.match(href))


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length header, None when absent or malformed."""
    if not value:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def state_for_length(
    size: Optional[int], threshold: int, ceiling: int = MAX_ATTACHMENT_SIZE
) -> UrlTransferState:
    """Map a (possibly unknown) size to the next transfer state.

    Raises:
        AttachmentTooLarge: If the known size exceeds ``ceiling``.
    """
    return _STATE_FOR_STRATEGY[classify(size, threshold, ceiling)]


class UrlAttachmentTransfer:
    """One URL attachment moving through the transfer state machine.

    Attributes:
        state: Current state, UNKNOWN until :meth:`run` starts.
        size: Total length once discovered, else None.
    """

    def __init__(
        self,
        target: AttachmentTarget,
        attachment: ResolvedAttachment,
        session: aiohttp.ClientSession,
    ):
        source = attachment.source
        if not isinstance(source, UrlSource):
            raise TypeError(f"URL transfer cannot read a {source.kind.value} source")
        self.href = source.href
        self.target = target
        self.attachment = attachment
        self.session = session
        self.state = UrlTransferState.UNKNOWN
        self.size: Optional[int] = None

    def advance(self, new_state: UrlTransferState) -> None:
        """Move to ``new_state``.

        Raises:
            RuntimeError: If the transition is not allowed.
        """
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid URL transfer transition {self.state.value} -> {new_state.value}"
            )
        logger.debug(f"{self.href}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def probe(self) -> Optional[int]:
        """Ask for the document size with a HEAD request; never raises on failure."""
        try:
            async with self.session.head(
                self.href, headers=IDENTITY_ENCODING, allow_redirects=True
            ) as response:
                if response.status >= 300:
                    return None
                return parse_content_length(response.headers.get("Content-Length"))
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug(f"HEAD {self.href} failed: {exc}")
            return None

    async def run(self) -> Optional[TransferStrategy]:
        """Drive the transfer to TERMINAL.

        Returns:
            The strategy used, or None when the download was refused.
        """
        try:
            self.advance(UrlTransferState.PROBING)
            self.size = await self.probe()
            check_ceiling(self.size or 0, self.target.ceiling)

            async with self.session.get(self.href, headers=IDENTITY_ENCODING) as response:
                if response.status >= 300:
                    logger.warning(
                        f"Skipping attachment {self.attachment.filename}: "
                        f"GET {self.href} returned {response.status}"
                    )
                    self.advance(UrlTransferState.TERMINAL)
                    return None

                if self.size is None:
                    self.size = parse_content_length(response.headers.get("Content-Length"))
                self.advance(
                    state_for_length(self.size, self.target.threshold, self.target.ceiling)
                )

                if self.state is UrlTransferState.KNOWN_LARGE:
                    strategy = await self._stream_large(response, self.size)
                else:
                    strategy = await self._buffer_and_send(response)
            self.advance(UrlTransferState.TERMINAL)
            return strategy
        finally:
            self.state = UrlTransferState.TERMINAL

    async def _read_body(self, response: aiohttp.ClientResponse) -> bytes:
        """Read the whole body, failing the instant it crosses the ceiling."""
        buffer = bytearray()
        async for data in response.content.iter_any():
            buffer.extend(data)
            check_ceiling(len(buffer), self.target.ceiling)
        return bytes(buffer)

    async def _buffer_and_send(self, response: aiohttp.ClientResponse) -> TransferStrategy:
        """KNOWN_SMALL and UNKNOWN_BUFFERING: buffer, then send by actual size."""
        content = await self._read_body(response)
        return await transfer_content(
            self.target, self.attachment.filename, content, self.attachment.content_type
        )

    async def _stream_large(self, response: aiohttp.ClientResponse, size: int) -> TransferStrategy:
        """KNOWN_LARGE: forward chunk-aligned slices of a ``size`` byte download."""
        logger.info(f"{self.attachment.filename}: {size} bytes, streaming to upload session")
        upload = await self.target.open_session(
            self.attachment.filename, size, self.attachment.content_type
        )
        async with aclosing(self._aligned_chunks(response)) as chunks:
            await self.target.driver.upload_stream(upload, chunks)
        return TransferStrategy.CHUNKED

    async def _aligned_chunks(self, response: aiohttp.ClientResponse) -> AsyncIterator[bytes]:
        """Re-slice the download into full chunks plus a final remainder."""
        chunk_size = self.target.driver.chunk_size
        pending = bytearray()
        received = 0
        try:
            async for data in response.content.iter_any():
                received += len(data)
                check_ceiling(received, self.target.ceiling)
                pending.extend(data)
                while len(pending) >= chunk_size:
                    chunk = bytes(pending[:chunk_size])
                    del pending[:chunk_size]
                    yield chunk
            if pending:
                yield bytes(pending)
        finally:
            pending.clear()


class HttpReader(AttachmentReaderBase):
    """Transfer attachments referenced by http(s) URLs.

    Attributes:
        _session: Optional caller-owned aiohttp session used for downloads.
    """

    kind = SourceKind.URL

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session

    async def transfer(
        self, target: AttachmentTarget, attachment: ResolvedAttachment
    ) -> Optional[TransferStrategy]:
        source = self.source_of(attachment)
        if not is_http_url(source.href):
            logger.warning(f"Skipping attachment {attachment.filename}: unsupported URL {source.href}")
            return None

        if self._session is not None:
            return await UrlAttachmentTransfer(target, attachment, self._session).run()
        async with aiohttp.ClientSession() as session:
            return await UrlAttachmentTransfer(target, attachment, session).run()


__all__ = [
    "HttpReader",
    "TRANSITIONS",
    "UrlAttachmentTransfer",
    "UrlTransferState",
    "is_http_url",
    "parse_content_length",
    "state_for_length",
]
