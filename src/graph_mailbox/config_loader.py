# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for the shared mailbox client.

Settings come from an INI-style file and can be overridden through
environment variables, which makes the same file usable across
environments with secrets injected at runtime.

Example:
    Configuration file format (mailbox.ini)::

        [mailbox]
        shared_mailbox = shared@example.com
        base_url = https://graph.microsoft.com/v1.0
        access_token = eyJ0eXAiOi...

        [attachments]
        # Attachments above this size use an upload session
        large_file_threshold = 3145728
        # Rounded down to a multiple of 327680
        chunk_size = 655360

    Environment overrides::

        GRAPH_MAILBOX_SHARED_MAILBOX=other@example.com
        GRAPH_MAILBOX_ACCESS_TOKEN=...
        GRAPH_MAILBOX_CHUNK_SIZE=983040

    Loading::

        config = load_mailbox_config("/etc/graph-mailbox/mailbox.ini")
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Mapping

from .attachments.sizing import DEFAULT_CHUNK_SIZE, DEFAULT_LARGE_FILE_THRESHOLD
from .config import GRAPH_API_BASE, MailboxConfig, UploadOptions
from .logger import get_logger

ENV_PREFIX = "GRAPH_MAILBOX_"

logger = get_logger("graph_mailbox.config")


def _parse_int(key: str, value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(f"Invalid int for {key}, using default {default}")
        return default


def load_mailbox_config(
    config_path: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> MailboxConfig:
    """Load mailbox configuration from an INI file and the environment.

    Args:
        config_path: Path to the INI file. When None only the environment
            is consulted.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        MailboxConfig with the upload chunk size normalized.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist.
        ValueError: If no shared mailbox is configured anywhere.
    """
    env = os.environ if environ is None else environ
    parser = configparser.ConfigParser()

    if config_path is not None:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        parser.read(config_path)

    def get_value(section: str, key: str) -> str | None:
        env_value = env.get(f"{ENV_PREFIX}{key.upper()}")
        if env_value:
            return env_value.strip()
        value = parser.get(section, key, fallback=None)
        return value.strip() if value else None

    shared_mailbox = get_value("mailbox", "shared_mailbox")
    if not shared_mailbox:
        raise ValueError(
            f"shared_mailbox must be set in [mailbox] or {ENV_PREFIX}SHARED_MAILBOX"
        )

    upload = UploadOptions(
        large_file_threshold=_parse_int(
            "large_file_threshold",
            get_value("attachments", "large_file_threshold"),
            DEFAULT_LARGE_FILE_THRESHOLD,
        ),
        chunk_size=_parse_int(
            "chunk_size",
            get_value("attachments", "chunk_size"),
            DEFAULT_CHUNK_SIZE,
        ),
    ).normalized()

    config = MailboxConfig(
        shared_mailbox=shared_mailbox,
        base_url=get_value("mailbox", "base_url") or GRAPH_API_BASE,
        access_token=get_value("mailbox", "access_token"),
        upload=upload,
    )
    logger.debug(
        f"Loaded config for {config.shared_mailbox} "
        f"(threshold={upload.large_file_threshold}, chunk={upload.chunk_size})"
    )
    return config


__all__ = ["ENV_PREFIX", "load_mailbox_config"]
