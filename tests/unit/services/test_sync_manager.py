"""Tests for the sequential, backoff-driven sync manager."""
import asyncio
from datetime import datetime, timezone

import pytest

from contractoros.schemas.voice_log import VoiceLogMetadata
from contractoros.services.offline_queue import VoiceLogQueue
from contractoros.services.sync_manager import (
    AuthenticationFailedError,
    DuplicateRecordingError,
    QuotaExceededError,
    RetryableUploadError,
    SyncManager,
    SyncState,
    UploadError,
    is_terminal_error,
)

METADATA = VoiceLogMetadata(
    org_id="org-1", user_id="user-1", recorded_at=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
)


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedUploader:
    """Fails each recording a scripted number of times (or forever) before succeeding."""

    def __init__(self, failures: dict[bytes, list[Exception]] | None = None, always: Exception | None = None):
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.always = always
        self.calls: list[bytes] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, item):
        self.calls.append(item.audio)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.always is not None:
                raise self.always
            pending = self.failures.get(item.audio)
            if pending:
                raise pending.pop(0)
            return {"id": item.id}
        finally:
            self.in_flight -= 1


@pytest.fixture
def queue(session_factory) -> VoiceLogQueue:
    return VoiceLogQueue(session_factory)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


async def enqueue(queue: VoiceLogQueue, *recordings: bytes) -> list[str]:
    return [await queue.enqueue(audio, METADATA) for audio in recordings]


class TestErrorClassification:
    @pytest.mark.parametrize(
        "exc",
        [
            QuotaExceededError("Storage quota exceeded"),
            AuthenticationFailedError("Not authenticated"),
            DuplicateRecordingError("This recording was already submitted"),
            UploadError("nope", status_code=413),
            Exception("permission denied by server"),
        ],
    )
    def test_terminal(self, exc):
        assert is_terminal_error(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            RetryableUploadError("Network error"),
            RetryableUploadError("quota service unavailable", status_code=503),
            UploadError("Service unavailable", status_code=503),
            ConnectionError("reset by peer"),
        ],
    )
    def test_retryable(self, exc):
        assert not is_terminal_error(exc)


def test_compute_backoff_doubles_and_caps():
    manager = SyncManager(VoiceLogQueue(), ScriptedUploader(), base_delay=1, max_delay=30)
    assert [manager.compute_backoff(n) for n in range(1, 8)] == [1, 2, 4, 8, 16, 30, 30]


class TestSync:
    async def test_uploads_and_removes_every_pending_item(self, queue, sleeper):
        await enqueue(queue, b"a", b"b", b"c")
        uploader = ScriptedUploader()
        manager = SyncManager(queue, uploader, sleep=sleeper)

        result = await manager.sync()

        assert result.success == 3
        assert result.failed == 0
        assert uploader.calls == [b"a", b"b", b"c"]
        assert await queue.get_pending() == []
        assert manager.state == SyncState.IDLE
        assert manager.last_successful_sync is not None
        assert sleeper.delays == []

    async def test_uploads_one_at_a_time(self, queue, sleeper):
        await enqueue(queue, b"a", b"b", b"c", b"d")
        uploader = ScriptedUploader()

        await SyncManager(queue, uploader, sleep=sleeper).sync()

        assert uploader.max_in_flight == 1

    async def test_transient_failures_back_off_then_succeed(self, queue, sleeper):
        await enqueue(queue, b"a")
        uploader = ScriptedUploader(
            failures={b"a": [RetryableUploadError("503"), RetryableUploadError("503")]}
        )

        result = await SyncManager(queue, uploader, sleep=sleeper).sync()

        assert result.success == 1
        assert uploader.calls == [b"a", b"a", b"a"]
        assert sleeper.delays == [1, 2]

    async def test_backoff_is_capped_at_thirty_seconds(self, queue, sleeper):
        (item_id,) = await enqueue(queue, b"a")
        uploader = ScriptedUploader(always=RetryableUploadError("Network error"))

        result = await SyncManager(queue, uploader, max_retries=8, sleep=sleeper).sync()

        assert len(uploader.calls) == 8
        assert sleeper.delays == [1, 2, 4, 8, 16, 30, 30]
        assert result.failed == 1
        item = await queue.get(item_id)
        assert item.status == "failed"
        assert item.retry_count == 1
        assert item.last_error == "Network error"

    async def test_terminal_failure_is_not_retried(self, queue, sleeper):
        (item_id,) = await enqueue(queue, b"a")
        uploader = ScriptedUploader(always=QuotaExceededError("Storage quota exceeded"))

        result = await SyncManager(queue, uploader, max_retries=5, sleep=sleeper).sync()

        assert uploader.calls == [b"a"]
        assert sleeper.delays == []
        assert result.errors[item_id] == "Storage quota exceeded"
        assert await queue.get_failed(max_retries=5) == []

    async def test_one_failure_does_not_stop_the_sweep(self, queue, sleeper):
        await enqueue(queue, b"a", b"b")
        uploader = ScriptedUploader(failures={b"a": [DuplicateRecordingError("duplicate")]})

        result = await SyncManager(queue, uploader, sleep=sleeper).sync()

        assert result.success == 1
        assert result.failed == 1
        assert uploader.calls == [b"a", b"b"]

    async def test_failed_items_are_retried_on_later_sweeps_until_the_ceiling(self, queue, sleeper):
        (item_id,) = await enqueue(queue, b"a")
        uploader = ScriptedUploader(always=RetryableUploadError("503"))
        manager = SyncManager(queue, uploader, max_retries=2, sleep=sleeper)

        await manager.sync()
        await manager.sync()
        third = await manager.sync()

        assert (await queue.get(item_id)).retry_count == 2
        assert third.success == 0 and third.failed == 0
        assert len(uploader.calls) == 4

    async def test_going_offline_mid_sweep_leaves_items_pending(self, queue, sleeper):
        await enqueue(queue, b"a", b"b")
        manager: SyncManager

        async def flaky(item):
            await manager.set_online(False)
            raise RetryableUploadError("Network error")

        manager = SyncManager(queue, flaky, sleep=sleeper)
        result = await manager.sync()

        assert result.aborted is True
        assert result.failed == 0
        pending = await queue.get_pending()
        assert len(pending) == 2
        assert all(item.retry_count == 0 for item in pending)
        assert manager.state == SyncState.OFFLINE

    async def test_sync_while_offline_does_nothing(self, queue, sleeper):
        await enqueue(queue, b"a")
        uploader = ScriptedUploader()
        manager = SyncManager(queue, uploader, online=False, sleep=sleeper)

        result = await manager.sync()

        assert result.aborted is True
        assert uploader.calls == []

    async def test_coming_back_online_triggers_a_sweep(self, queue, sleeper):
        await enqueue(queue, b"a")
        uploader = ScriptedUploader()
        manager = SyncManager(queue, uploader, online=False, sleep=sleeper)

        result = await manager.set_online(True)

        assert result is not None and result.success == 1
        assert manager.state == SyncState.IDLE

    async def test_listeners_see_progress(self, queue, sleeper):
        await enqueue(queue, b"a", b"b")
        seen: list[tuple[SyncState, int]] = []
        manager = SyncManager(queue, ScriptedUploader(), sleep=sleeper)
        unsubscribe = manager.subscribe(lambda state, progress: seen.append((state, progress.completed)))

        await manager.sync()
        unsubscribe()
        await manager.sync()

        assert (SyncState.SYNCING, 0) in seen
        assert (SyncState.SYNCING, 2) in seen
        assert seen[-1][0] == SyncState.IDLE
