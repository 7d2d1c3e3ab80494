# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exceptions raised by the shared mailbox client.

Every error derives from :class:`MailboxError` so callers can catch the
whole family at once. None of them is retried internally: a raised error
aborts the send operation it happened in.
"""

from __future__ import annotations

from typing import Any


class MailboxError(Exception):
    """Base class for all graph_mailbox errors."""


class AttachmentTooLarge(MailboxError):
    """An attachment's size exceeds the absolute upload ceiling."""

    def __init__(self, size: int, ceiling: int):
        self.size = size
        self.ceiling = ceiling
        super().__init__(
            f"Attachment size exceeds maximum {ceiling // (1024 * 1024)}MB "
            f"({size} bytes)"
        )


class ChunkUploadFailed(MailboxError):
    """A byte-range PUT against an upload session was rejected."""

    def __init__(self, status: int, start: int, end: int):
        self.status = status
        self.start = start
        self.end = end
        super().__init__(
            f"Upload chunk failed with status {status} (bytes {start}-{end})"
        )


class AttachmentLengthMismatch(MailboxError):
    """A streamed attachment ended at a length other than the declared one."""

    def __init__(self, declared: int, received: int):
        self.declared = declared
        self.received = received
        super().__init__(
            f"Attachment stream delivered {received} bytes, "
            f"upload session declared {declared}"
        )


class NoRecipients(MailboxError):
    """The primary recipient list is empty after parsing."""

    def __init__(self, message: str = 'No recipients provided in "to"'):
        super().__init__(message)


class MessageNotFound(MailboxError):
    """No message matched the requested identifier."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Message not found by internetMessageId: {message_id}")


class GraphRequestError(MailboxError):
    """The mail service answered a request with an error status."""

    def __init__(self, status: int, method: str, path: str, detail: Any = None):
        self.status = status
        self.method = method
        self.path = path
        self.detail = detail
        super().__init__(f"{method} {path} failed with status {status}: {detail}")


__all__ = [
    "AttachmentLengthMismatch",
    "AttachmentTooLarge",
    "ChunkUploadFailed",
    "GraphRequestError",
    "MailboxError",
    "MessageNotFound",
    "NoRecipients",
]
