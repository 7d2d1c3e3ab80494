"""Tests for AttachmentManager with in-memory and filesystem sources."""

import base64

import pytest

import graph_mailbox.attachments as attachments_module
from graph_mailbox.attachments import AttachmentManager
from graph_mailbox.attachments.base import (
    BufferSource,
    FileSource,
    SourceKind,
    UrlSource,
    resolve_attachment,
    resolve_filename,
    resolve_source,
)
from graph_mailbox.attachments.buffer_source import BufferReader
from graph_mailbox.attachments.filesystem_source import FilesystemReader
from graph_mailbox.attachments.sizing import CHUNK_UNIT, MAX_ATTACHMENT_SIZE, TransferStrategy
from graph_mailbox.config import UploadOptions
from graph_mailbox.errors import AttachmentTooLarge, ChunkUploadFailed
from graph_mailbox.models import AttachmentSpec

from .conftest import MAILBOX, FakeGraph


def make_manager(graph, threshold=1024, chunk_size=CHUNK_UNIT):
    return AttachmentManager(
        graph, MAILBOX, UploadOptions(large_file_threshold=threshold, chunk_size=chunk_size)
    )


class TestResolve:
    """Tests for source and filename resolution."""

    def test_content_wins_over_path_and_href(self):
        spec = AttachmentSpec(content=b"x", path="/tmp/a.txt", href="https://e.com/b.txt")
        assert resolve_source(spec) == BufferSource(b"x")

    def test_path_wins_over_href(self):
        spec = AttachmentSpec(path="/tmp/a.txt", href="https://e.com/b.txt")
        assert resolve_source(spec) == FileSource("/tmp/a.txt")

    def test_href(self):
        source = resolve_source(AttachmentSpec(href="https://e.com/b.txt"))
        assert source == UrlSource("https://e.com/b.txt")
        assert source.kind is SourceKind.URL

    def test_text_content_is_utf8(self):
        assert resolve_source(AttachmentSpec(content="héllo")) == BufferSource("héllo".encode())

    def test_no_source(self):
        assert resolve_source(AttachmentSpec(filename="x.txt")) is None
        assert resolve_attachment(AttachmentSpec(path="", href="")) is None
        assert not AttachmentSpec(filename="x.txt").has_source

    def test_empty_content_is_a_source(self):
        spec = AttachmentSpec(filename="empty.txt", content=b"")

        assert spec.has_source
        assert resolve_source(spec) == BufferSource(b"")
        assert resolve_attachment(spec).total_size == 0

    @pytest.mark.parametrize("spec,expected", [
        (AttachmentSpec(filename="given.pdf", path="/tmp/other.txt"), "given.pdf"),
        (AttachmentSpec(path="/var/data/report.csv"), "report.csv"),
        (AttachmentSpec(href="https://e.com/files/logo.png?v=2"), "logo.png"),
        (AttachmentSpec(href="https://e.com/"), "attachment"),
        (AttachmentSpec(href="not a url/file.bin"), "file.bin"),
        (AttachmentSpec(content=b"x"), "attachment"),
    ])
    def test_filename(self, spec, expected):
        assert resolve_filename(spec) == expected

    def test_resolved_attachment(self):
        resolved = resolve_attachment(AttachmentSpec(filename="note.txt", content=b"hello"))
        assert resolved.content_type == "text/plain"
        assert resolved.total_size == 5


class TestBufferAttachments:
    """Tests for in-memory attachments."""

    @pytest.mark.asyncio
    async def test_small_buffer_inline(self, fake_graph):
        manager = make_manager(fake_graph)

        result = await manager.upload("MSG-1", AttachmentSpec(filename="note.txt", content=b"hello"))

        assert result is TransferStrategy.INLINE
        [call] = fake_graph.named("add_file_attachment")
        assert call["name"] == "note.txt"
        assert call["content_type"] == "text/plain"
        assert base64.b64decode(call["content_bytes"]) == b"hello"
        assert fake_graph.named("create_upload_session") == []

    @pytest.mark.asyncio
    async def test_large_buffer_chunked(self, fake_graph):
        manager = make_manager(fake_graph)
        content = b"a" * (CHUNK_UNIT + 1000)

        result = await manager.upload("MSG-1", AttachmentSpec(filename="big.bin", content=content))

        assert result is TransferStrategy.CHUNKED
        [session] = fake_graph.named("create_upload_session")
        assert session["size"] == len(content)
        assert fake_graph.put_ranges() == [
            (0, CHUNK_UNIT - 1, len(content)),
            (CHUNK_UNIT, len(content) - 1, len(content)),
        ]
        assert fake_graph.named("add_file_attachment") == []

    @pytest.mark.asyncio
    async def test_buffer_above_ceiling_fails_before_network(self, fake_graph, monkeypatch):
        monkeypatch.setattr(attachments_module, "MAX_ATTACHMENT_SIZE", 2048)
        manager = make_manager(fake_graph)

        with pytest.raises(AttachmentTooLarge):
            await manager.upload("MSG-1", AttachmentSpec(content=b"x" * 2049))

        assert fake_graph.calls == []
        assert fake_graph.puts == []

    @pytest.mark.asyncio
    async def test_chunk_failure_propagates(self):
        graph = FakeGraph(put_statuses=[413])
        manager = make_manager(graph)

        with pytest.raises(ChunkUploadFailed) as exc_info:
            await manager.upload("MSG-1", AttachmentSpec(content=b"a" * 5000))

        assert exc_info.value.status == 413

    @pytest.mark.asyncio
    async def test_upload_all_is_sequential_and_skips_empty(self, fake_graph):
        manager = make_manager(fake_graph)

        results = await manager.upload_all("MSG-1", [
            AttachmentSpec(filename="a.txt", content=b"a"),
            AttachmentSpec(filename="nothing.txt"),
            AttachmentSpec(filename="b.txt", content=b"b"),
        ])

        assert results == [TransferStrategy.INLINE, None, TransferStrategy.INLINE]
        assert [c["name"] for c in fake_graph.named("add_file_attachment")] == ["a.txt", "b.txt"]

    @pytest.mark.asyncio
    async def test_upload_all_without_attachments(self, fake_graph):
        manager = make_manager(fake_graph)
        assert await manager.upload_all("MSG-1", None) == []
        assert fake_graph.calls == []


    @pytest.mark.asyncio
    async def test_empty_buffer_is_attached_inline(self, fake_graph):
        manager = make_manager(fake_graph)

        result = await manager.upload("MSG-1", AttachmentSpec(filename="empty.txt", content=b""))

        assert result is TransferStrategy.INLINE
        [call] = fake_graph.named("add_file_attachment")
        assert call["name"] == "empty.txt"
        assert call["content_bytes"] == ""

    @pytest.mark.asyncio
    async def test_reader_rejects_other_source_kinds(self, fake_graph):
        manager = make_manager(fake_graph)
        attachment = resolve_attachment(AttachmentSpec(path="/tmp/a.txt"))

        with pytest.raises(TypeError, match="BufferReader cannot read a path source"):
            await BufferReader().transfer(manager.target_for("MSG-1"), attachment)
        assert fake_graph.calls == []


class TestFilesystemAttachments:
    """Tests for local file attachments."""

    @pytest.mark.asyncio
    async def test_missing_file_is_skipped(self, fake_graph, tmp_path):
        manager = make_manager(fake_graph)

        result = await manager.upload("MSG-1", AttachmentSpec(path=str(tmp_path / "nope.txt")))

        assert result is None
        assert fake_graph.calls == []

    @pytest.mark.asyncio
    async def test_directory_is_skipped(self, fake_graph, tmp_path):
        manager = make_manager(fake_graph)
        assert await manager.upload("MSG-1", AttachmentSpec(path=str(tmp_path))) is None
        assert fake_graph.calls == []

    @pytest.mark.asyncio
    async def test_empty_file_is_skipped(self, fake_graph, tmp_path):
        empty = tmp_path / "empty.txt"
        empty.write_bytes(b"")
        manager = make_manager(fake_graph)

        assert await manager.upload("MSG-1", AttachmentSpec(path=str(empty))) is None
        assert fake_graph.calls == []

    @pytest.mark.asyncio
    async def test_small_file_inline(self, fake_graph, tmp_path):
        small = tmp_path / "sample.txt"
        small.write_bytes(b"file")
        manager = make_manager(fake_graph)

        result = await manager.upload("MSG-1", AttachmentSpec(path=str(small)))

        assert result is TransferStrategy.INLINE
        [call] = fake_graph.named("add_file_attachment")
        assert call["name"] == "sample.txt"
        assert call["content_type"] == "text/plain"
        assert base64.b64decode(call["content_bytes"]) == b"file"

    @pytest.mark.asyncio
    async def test_large_file_streamed(self, fake_graph, tmp_path):
        content = bytes(range(256)) * 2600  # 665600 bytes
        large = tmp_path / "large.pdf"
        large.write_bytes(content)
        manager = make_manager(fake_graph)

        result = await manager.upload("MSG-1", AttachmentSpec(filename="doc.pdf", path=str(large)))

        assert result is TransferStrategy.CHUNKED
        [session] = fake_graph.named("create_upload_session")
        assert session["name"] == "doc.pdf"
        assert session["content_type"] == "application/pdf"
        assert session["size"] == len(content)
        ranges = fake_graph.put_ranges()
        assert ranges[0][0] == 0
        assert ranges[-1][1] == len(content) - 1
        for previous, current in zip(ranges, ranges[1:]):
            assert current[0] == previous[1] + 1
        assert fake_graph.uploaded_bytes() == content

    @pytest.mark.asyncio
    async def test_file_above_ceiling_fails_before_network(self, fake_graph, tmp_path):
        huge = tmp_path / "big.bin"
        with open(huge, "wb") as handle:
            handle.truncate(MAX_ATTACHMENT_SIZE + 1)
        manager = make_manager(fake_graph)

        with pytest.raises(AttachmentTooLarge, match="150MB"):
            await manager.upload("MSG-1", AttachmentSpec(path=str(huge)))

        assert fake_graph.calls == []

    @pytest.mark.asyncio
    async def test_stat(self, tmp_path):
        reader = FilesystemReader()
        data = tmp_path / "d.bin"
        data.write_bytes(b"12345")

        assert await reader.stat(str(data)) == 5
        assert await reader.stat(str(tmp_path / "missing")) is None
