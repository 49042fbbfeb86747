"""Tests for the durable voice-log queue."""
from datetime import datetime, timezone

import pytest

from contractoros.core.exceptions import NotFoundError, ValidationError
from contractoros.schemas.voice_log import VoiceLogMetadata
from contractoros.services.offline_queue import VoiceLogQueue, compute_content_hash

RECORDED_AT = datetime(2026, 3, 2, 14, 30, tzinfo=timezone.utc)


def make_metadata(**overrides) -> VoiceLogMetadata:
    values = {
        "org_id": "org-1",
        "user_id": "user-1",
        "recorded_at": RECORDED_AT,
        "duration_seconds": 12.5,
    }
    values.update(overrides)
    return VoiceLogMetadata(**values)


@pytest.fixture
def queue(session_factory) -> VoiceLogQueue:
    return VoiceLogQueue(session_factory)


class TestContentHash:
    def test_is_stable(self):
        assert compute_content_hash(b"abc", "u1", RECORDED_AT) == compute_content_hash(
            b"abc", "u1", RECORDED_AT
        )

    def test_changes_with_each_input(self):
        base = compute_content_hash(b"abc", "u1", RECORDED_AT)
        assert compute_content_hash(b"abd", "u1", RECORDED_AT) != base
        assert compute_content_hash(b"abc", "u2", RECORDED_AT) != base
        assert compute_content_hash(b"abc", "u1", "2026-03-02T14:31:00+00:00") != base

    def test_is_sha256_hex(self):
        assert len(compute_content_hash(b"abc", "u1", RECORDED_AT)) == 64


class TestEnqueue:
    async def test_enqueue_creates_pending_item(self, queue):
        item_id = await queue.enqueue(b"audio-bytes", make_metadata())

        item = await queue.get(item_id)
        assert item.status == "pending"
        assert item.retry_count == 0
        assert item.audio == b"audio-bytes"
        assert item.meta["user_id"] == "user-1"

    async def test_same_recording_is_only_queued_once(self, queue):
        first = await queue.enqueue(b"audio-bytes", make_metadata())
        second = await queue.enqueue(b"audio-bytes", make_metadata())

        assert first is not None
        assert second is None
        assert (await queue.get_stats())["total"] == 1

    async def test_different_recordings_are_both_queued(self, queue):
        await queue.enqueue(b"one", make_metadata())
        await queue.enqueue(b"two", make_metadata())
        assert len(await queue.get_pending()) == 2


class TestStatusTransitions:
    async def test_failed_bumps_retry_count(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())

        await queue.update_status(item_id, "uploading")
        item = await queue.update_status(item_id, "failed", "HTTP 503")

        assert item.status == "failed"
        assert item.retry_count == 1
        assert item.last_error == "HTTP 503"

    async def test_invalid_status_rejected(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())
        with pytest.raises(ValidationError):
            await queue.update_status(item_id, "done")

    async def test_unknown_item(self, queue):
        with pytest.raises(NotFoundError):
            await queue.update_status("missing", "pending")

    async def test_requeue_resets_failed_item(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())
        await queue.update_status(item_id, "failed", "boom")
        await queue.update_status(item_id, "failed", "boom")

        item = await queue.requeue(item_id)

        assert item.status == "pending"
        assert item.retry_count == 0
        assert item.last_error is None

    async def test_requeue_only_applies_to_failed_items(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())
        with pytest.raises(ValidationError):
            await queue.requeue(item_id)

    async def test_terminal_items_are_not_redriven(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())
        await queue.mark_terminal(item_id, "Storage quota exceeded", max_retries=5)

        assert await queue.get_failed(max_retries=5) == []
        item = await queue.get(item_id)
        assert item.status == "failed"
        assert item.retry_count >= 5

    async def test_recover_interrupted_uploads(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())
        await queue.update_status(item_id, "uploading")

        assert await queue.recover_interrupted() == 1
        assert (await queue.get(item_id)).status == "pending"


class TestReads:
    async def test_get_failed_respects_retry_ceiling(self, queue):
        low = await queue.enqueue(b"low", make_metadata())
        high = await queue.enqueue(b"high", make_metadata())
        await queue.update_status(low, "failed", "err")
        for _ in range(3):
            await queue.update_status(high, "failed", "err")

        failed = await queue.get_failed(max_retries=3)
        assert [item.id for item in failed] == [low]

    async def test_pending_is_oldest_first(self, queue):
        ids = [await queue.enqueue(f"rec-{i}".encode(), make_metadata()) for i in range(3)]
        assert [item.id for item in await queue.get_pending()] == ids

    async def test_remove(self, queue):
        item_id = await queue.enqueue(b"x", make_metadata())
        assert await queue.remove(item_id) is True
        assert await queue.remove(item_id) is False
        assert await queue.get(item_id) is None

    async def test_stats(self, queue):
        a = await queue.enqueue(b"a", make_metadata())
        await queue.enqueue(b"b", make_metadata())
        await queue.update_status(a, "failed", "err")

        stats = await queue.get_stats()
        assert stats == {"pending": 1, "uploading": 0, "failed": 1, "total": 2}
