"""Shared fixtures for graph_mailbox tests."""

from __future__ import annotations

import re
from typing import Any

import pytest

from graph_mailbox.attachments.upload_session import UploadSessionDriver
from graph_mailbox.attachments.base import AttachmentTarget
from graph_mailbox.attachments.sizing import MAX_ATTACHMENT_SIZE

MAILBOX = "shared@example.com"
UPLOAD_URL = "https://upload.example/session"

_CONTENT_RANGE = re.compile(r"^bytes (\d+)-(\d+)/(\d+)$")


class FakeGraph:
    """In-memory stand-in for GraphClient recording every call."""

    def __init__(self, put_statuses: list[int] | None = None):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.puts: list[dict[str, Any]] = []
        self.put_statuses = list(put_statuses or [])
        self.messages: dict[str, dict[str, Any]] = {}
        self.found: list[dict[str, Any]] = []
        self.attachments: dict[str, list[dict[str, Any]]] = {}

    def named(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def put_ranges(self) -> list[tuple[int, int, int]]:
        """Parsed (start, end, total) of every PUT, in call order."""
        result = []
        for put in self.puts:
            match = _CONTENT_RANGE.match(put["headers"]["Content-Range"])
            assert match, put["headers"]["Content-Range"]
            result.append(tuple(int(g) for g in match.groups()))
        return result

    def uploaded_bytes(self) -> bytes:
        return b"".join(put["body"] for put in self.puts)

    async def create_draft(self, mailbox, fields):
        self.calls.append(("create_draft", {"mailbox": mailbox, "fields": fields}))
        return {"id": "MSG-1", "internetMessageId": "<IM-MSG-1@exch.example.com>"}

    async def add_file_attachment(self, mailbox, message_id, name, content_bytes, content_type):
        self.calls.append(("add_file_attachment", {
            "mailbox": mailbox,
            "message_id": message_id,
            "name": name,
            "content_bytes": content_bytes,
            "content_type": content_type,
        }))
        return {}

    async def create_upload_session(self, mailbox, message_id, name, size, content_type):
        self.calls.append(("create_upload_session", {
            "mailbox": mailbox,
            "message_id": message_id,
            "name": name,
            "size": size,
            "content_type": content_type,
        }))
        return {"uploadUrl": UPLOAD_URL}

    async def send_draft(self, mailbox, message_id):
        self.calls.append(("send_draft", {"mailbox": mailbox, "message_id": message_id}))

    async def get_message(self, mailbox, message_id, select):
        self.calls.append(("get_message", {
            "mailbox": mailbox, "message_id": message_id, "select": select,
        }))
        return dict(self.messages.get(message_id, {"id": message_id}))

    async def find_messages(self, mailbox, odata_filter, select):
        self.calls.append(("find_messages", {
            "mailbox": mailbox, "filter": odata_filter, "select": select,
        }))
        return [dict(m) for m in self.found]

    async def list_attachments(self, mailbox, message_id):
        self.calls.append(("list_attachments", {"mailbox": mailbox, "message_id": message_id}))
        return list(self.attachments.get(message_id, []))

    async def put_upload_range(self, upload_url, body, headers):
        self.puts.append({"url": upload_url, "body": bytes(body), "headers": dict(headers)})
        if self.put_statuses:
            return self.put_statuses.pop(0)
        return 202


@pytest.fixture
def fake_graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def make_target(fake_graph):
    """Build an AttachmentTarget over the fake graph."""

    def _make(
        threshold: int = 1024,
        chunk_size: int = 320 * 1024,
        graph=None,
        ceiling: int = MAX_ATTACHMENT_SIZE,
    ) -> AttachmentTarget:
        graph = graph or fake_graph
        return AttachmentTarget(
            graph=graph,
            mailbox=MAILBOX,
            message_id="MSG-1",
            driver=UploadSessionDriver(graph, MAILBOX, chunk_size),
            threshold=threshold,
            ceiling=ceiling,
        )

    return _make
