# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Size classification and chunk planning for attachment transfers.

Two pure building blocks used by every attachment source:

- :func:`classify` decides between a single inline payload and a chunked
  upload session, and enforces the absolute size ceiling.
- :func:`normalize_chunk_size` and :func:`plan_ranges` shape the byte
  ranges sent against an upload session.

Example:
    Planning a 1 MiB upload with the default chunk size::

        chunk = normalize_chunk_size(500 * 1024)      # -> 327680
        ranges = list(plan_ranges(1024 * 1024, chunk))
        # [ChunkRange(0, 327679), ..., ChunkRange(983040, 1048575)]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from ..errors import AttachmentTooLarge

CHUNK_UNIT = 320 * 1024
"""Upload sessions only accept ranges that are multiples of 320 KiB."""

MAX_ATTACHMENT_SIZE = 150 * 1024 * 1024
"""Absolute ceiling for a single attachment, not configurable."""

DEFAULT_LARGE_FILE_THRESHOLD = 3 * 1024 * 1024
DEFAULT_CHUNK_SIZE = CHUNK_UNIT


class TransferStrategy(str, Enum):
    """How an attachment of a given size travels to the mail service.

    Attributes:
        INLINE: One base64 payload in a single attach call.
        CHUNKED: An upload session fed with sequential byte ranges.
        PENDING: Size not known yet; keep reading and classify again.
    """

    INLINE = "inline"
    CHUNKED = "chunked"
    PENDING = "pending"


@dataclass(frozen=True)
class ChunkRange:
    """Inclusive byte range ``[start, end]`` of one upload chunk."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def check_ceiling(size: int, ceiling: int = MAX_ATTACHMENT_SIZE) -> None:
    """Raise :class:`AttachmentTooLarge` when ``size`` exceeds ``ceiling``."""
    if size > ceiling:
        raise AttachmentTooLarge(size, ceiling)


def classify(
    size: Optional[int],
    threshold: int,
    ceiling: int = MAX_ATTACHMENT_SIZE,
) -> TransferStrategy:
    """Pick the transfer strategy for an attachment.

    Args:
        size: Total byte length, or None when it is not known yet.
        threshold: Largest size still sent inline.
        ceiling: Absolute maximum size.

    Returns:
        INLINE for known sizes up to ``threshold``, CHUNKED above it,
        PENDING when the size is unknown.

    Raises:
        AttachmentTooLarge: If the known size exceeds ``ceiling``.
    """
    if size is None:
        return TransferStrategy.PENDING
    check_ceiling(size, ceiling)
    if size <= threshold:
        return TransferStrategy.INLINE
    return TransferStrategy.CHUNKED


def normalize_chunk_size(requested: int, unit: int = CHUNK_UNIT) -> int:
    """Round ``requested`` down to a multiple of ``unit``, never below one unit."""
    return max(unit, (requested // unit) * unit)


def plan_ranges(total: int, chunk_size: int) -> Iterator[ChunkRange]:
    """Yield contiguous inclusive ranges covering ``[0, total - 1]``.

    The last range may be shorter than ``chunk_size``. A zero total yields
    nothing. The generator holds no state beyond its arguments, so calling
    it again restarts the plan.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    start = 0
    while start < total:
        end = min(start + chunk_size, total) - 1
        yield ChunkRange(start, end)
        start = end + 1


__all__ = [
    "CHUNK_UNIT",
    "ChunkRange",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_LARGE_FILE_THRESHOLD",
    "MAX_ATTACHMENT_SIZE",
    "TransferStrategy",
    "check_ceiling",
    "classify",
    "normalize_chunk_size",
    "plan_ranges",
]
