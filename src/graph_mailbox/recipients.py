# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Recipient string parsing."""

from __future__ import annotations

import re
from typing import Any, Iterable

_SEPARATORS = re.compile(r"[;,]+")


def parse_addresses(value: str | Iterable[str] | None) -> list[str]:
    """Split, trim and deduplicate addresses, keeping first-seen order.

    Each string may hold several addresses separated by ``;`` or ``,``.
    """
    if not value:
        return []
    parts = [value] if isinstance(value, str) else list(value)
    addresses: list[str] = []
    for part in parts:
        for item in _SEPARATORS.split(part):
            address = item.strip()
            if address:
                addresses.append(address)
    return list(dict.fromkeys(addresses))


def build_recipients(
    value: str | Iterable[str] | None,
) -> list[dict[str, Any]] | None:
    """Build the mail-service recipient list, or None when empty."""
    addresses = parse_addresses(value)
    if not addresses:
        return None
    return [{"emailAddress": {"address": address}} for address in addresses]


__all__ = ["build_recipients", "parse_addresses"]
