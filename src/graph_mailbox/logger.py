# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the shared mailbox client.

The library never installs handlers. The actual logging setup (level,
handlers, format) belongs to the application entry point, typically via
``logging.basicConfig()`` as the ``graph-mailbox`` CLI does.

Example:
    Typical usage in a module::

        from graph_mailbox.logger import get_logger

        logger = get_logger("graph_mailbox.upload")
        logger.debug("Chunk accepted")
"""

import logging


def get_logger(name: str = "graph_mailbox") -> logging.Logger:
    """Retrieve a logger instance.

    Args:
        name: The logger name. Defaults to "graph_mailbox".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)
