# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclasses for the shared mailbox client.

Provides a small nested structure:
- config.shared_mailbox
- config.upload.large_file_threshold
- config.upload.chunk_size
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .attachments.sizing import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LARGE_FILE_THRESHOLD,
    normalize_chunk_size,
)

GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"


@dataclass
class UploadOptions:
    """Attachment upload settings."""

    large_file_threshold: int = DEFAULT_LARGE_FILE_THRESHOLD
    """Attachments above this many bytes go through an upload session (default 3 MiB)."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Bytes per upload-session PUT; normalized to a multiple of 320 KiB."""

    def normalized(self) -> "UploadOptions":
        """Return a copy whose chunk size is a valid multiple of the chunk unit."""
        return replace(self, chunk_size=normalize_chunk_size(self.chunk_size))


@dataclass
class MailboxConfig:
    """Main configuration container for MailClient.

    Example:
        config = MailboxConfig(
            shared_mailbox="shared@example.com",
            upload=UploadOptions(large_file_threshold=1024 * 1024),
        )
        client = MailClient(config, token_provider=static_token("..."))
    """

    shared_mailbox: str
    """Mailbox (user id or UPN) on whose behalf mail is sent."""

    base_url: str = GRAPH_API_BASE
    """Root URL of the mail service REST API."""

    access_token: str | None = None
    """Fixed bearer token, used when no token provider is injected."""

    upload: UploadOptions = field(default_factory=UploadOptions)
    """Attachment upload settings."""


__all__ = [
    "GRAPH_API_BASE",
    "MailboxConfig",
    "UploadOptions",
]
