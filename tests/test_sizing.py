"""Tests for size classification and chunk planning."""

import math

import pytest

from graph_mailbox.attachments.sizing import (
    CHUNK_UNIT,
    MAX_ATTACHMENT_SIZE,
    ChunkRange,
    TransferStrategy,
    classify,
    normalize_chunk_size,
    plan_ranges,
)
from graph_mailbox.errors import AttachmentTooLarge


class TestNormalizeChunkSize:
    """Tests for chunk size normalization."""

    @pytest.mark.parametrize("requested", [
        -5, 0, 1, 1000, CHUNK_UNIT - 1, CHUNK_UNIT, CHUNK_UNIT + 1,
        2 * CHUNK_UNIT, 500 * 1024, 10 * 1024 * 1024 + 7,
    ])
    def test_always_positive_multiple_of_unit(self, requested):
        result = normalize_chunk_size(requested)
        assert result > 0
        assert result % CHUNK_UNIT == 0

    def test_multiples_are_kept(self):
        assert normalize_chunk_size(3 * CHUNK_UNIT) == 3 * CHUNK_UNIT

    def test_rounds_down(self):
        assert normalize_chunk_size(500 * 1024) == CHUNK_UNIT
        assert normalize_chunk_size(2 * CHUNK_UNIT + 100) == 2 * CHUNK_UNIT

    def test_floor_is_one_unit(self):
        assert normalize_chunk_size(1) == CHUNK_UNIT
        assert normalize_chunk_size(0) == CHUNK_UNIT

    def test_custom_unit(self):
        assert normalize_chunk_size(25, unit=10) == 20


class TestPlanRanges:
    """Tests for byte range planning."""

    @pytest.mark.parametrize("total,chunk", [
        (1, CHUNK_UNIT),
        (CHUNK_UNIT, CHUNK_UNIT),
        (CHUNK_UNIT + 1, CHUNK_UNIT),
        (5 * CHUNK_UNIT - 3, 2 * CHUNK_UNIT),
        (10, 3),
    ])
    def test_ranges_partition_total(self, total, chunk):
        ranges = list(plan_ranges(total, chunk))

        assert len(ranges) == math.ceil(total / chunk)
        assert ranges[0].start == 0
        assert ranges[-1].end == total - 1
        for previous, current in zip(ranges, ranges[1:]):
            assert current.start == previous.end + 1
            assert current.end > previous.end
        assert sum(r.length for r in ranges) == total
        assert all(r.length <= chunk for r in ranges)

    def test_last_range_shorter(self):
        assert list(plan_ranges(10, 4)) == [
            ChunkRange(0, 3), ChunkRange(4, 7), ChunkRange(8, 9),
        ]

    def test_zero_total_yields_nothing(self):
        assert list(plan_ranges(0, CHUNK_UNIT)) == []

    def test_restartable(self):
        assert list(plan_ranges(100, 30)) == list(plan_ranges(100, 30))

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            list(plan_ranges(10, 0))


class TestClassify:
    """Tests for transfer strategy selection."""

    def test_unknown_size_is_pending(self):
        assert classify(None, 1024) is TransferStrategy.PENDING

    def test_at_threshold_is_inline(self):
        assert classify(1024, 1024) is TransferStrategy.INLINE

    def test_above_threshold_is_chunked(self):
        assert classify(1025, 1024) is TransferStrategy.CHUNKED

    def test_at_ceiling_is_allowed(self):
        assert classify(MAX_ATTACHMENT_SIZE, 1024) is TransferStrategy.CHUNKED

    def test_above_ceiling_raises(self):
        with pytest.raises(AttachmentTooLarge, match="150MB") as exc_info:
            classify(MAX_ATTACHMENT_SIZE + 1, 1024)
        assert exc_info.value.size == MAX_ATTACHMENT_SIZE + 1
