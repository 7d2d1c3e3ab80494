"""Shared mailbox mail client with size-aware attachment uploads.

This package sends and reads mail of a shared mailbox through the
Microsoft Graph REST API. Its main features are:

- Draft, attach and send in one call, with recipient parsing and dedup
- Attachments from memory, local files or http(s) URLs
- Inline upload for small attachments, chunked upload sessions for large
  ones (320 KiB aligned chunks, 150 MiB ceiling)
- Message lookup by Graph id or Internet Message-ID
- INI/environment configuration and a ``graph-mailbox`` CLI

Example:
    Basic usage::

        from graph_mailbox import MailClient, MailboxConfig, static_token

        client = MailClient(
            MailboxConfig(shared_mailbox="shared@example.com"),
            token_provider=static_token(token),
        )
        sent = await client.send_mail({
            "subject": "Hello",
            "to": "someone@example.com",
            "text": "Hi there",
        })
"""

from .client import MailClient, SharedMailClient
from .config import MailboxConfig, UploadOptions
from .errors import (
    AttachmentLengthMismatch,
    AttachmentTooLarge,
    ChunkUploadFailed,
    GraphRequestError,
    MailboxError,
    MessageNotFound,
    NoRecipients,
)
from .graph import GraphClient, static_token
from .models import AttachmentSpec, MailOptions, SentMessage

__version__ = "0.1.0"

__all__ = [
    "AttachmentLengthMismatch",
    "AttachmentSpec",
    "AttachmentTooLarge",
    "ChunkUploadFailed",
    "GraphClient",
    "GraphRequestError",
    "MailClient",
    "MailOptions",
    "MailboxConfig",
    "MailboxError",
    "MessageNotFound",
    "NoRecipients",
    "SentMessage",
    "SharedMailClient",
    "UploadOptions",
    "static_token",
]
