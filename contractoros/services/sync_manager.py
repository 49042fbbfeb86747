"""Drains the voice-log queue whenever the device is online.

Items are uploaded strictly one at a time. Each upload is retried with
exponential backoff (base 1s, doubling, capped at 30s) up to the retry
ceiling. Terminal failures (quota exceeded, auth failure, duplicate) are not
retried. If the device drops offline mid-sweep, the sweep stops and the
current and remaining items stay pending for the next trigger.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from contractoros.core.config import settings
from contractoros.domain.voice_log import VoiceQueueItem
from contractoros.services.offline_queue import VoiceLogQueue

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class UploadError(Exception):
    """Base class for upload failures raised by an uploader."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RetryableUploadError(UploadError):
    """Transient failure (network, 5xx, throttling)."""


class TerminalUploadError(UploadError):
    """Failure that no amount of retrying will fix."""


class QuotaExceededError(TerminalUploadError):
    pass


class AuthenticationFailedError(TerminalUploadError):
    pass


class DuplicateRecordingError(TerminalUploadError):
    pass


class SyncAbortedError(Exception):
    """The device went offline while an upload was in flight."""


_TERMINAL_STATUS_CODES = {401, 403, 409, 413, 507}
_TERMINAL_MARKERS = (
    "quota",
    "unauthorized",
    "unauthenticated",
    "authentication",
    "not authenticated",
    "permission denied",
    "duplicate",
    "already submitted",
)


def is_terminal_error(exc: BaseException) -> bool:
    """True for quota, auth and duplicate failures; everything else is retryable."""
    if isinstance(exc, TerminalUploadError):
        return True
    if isinstance(exc, RetryableUploadError):
        return False
    status_code = getattr(exc, "status_code", None)
    if status_code in _TERMINAL_STATUS_CODES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _TERMINAL_MARKERS)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class SyncState(str, enum.Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    OFFLINE = "offline"


@dataclass
class SyncProgress:
    total: int = 0
    completed: int = 0
    failed: int = 0
    current_item_id: Optional[str] = None


@dataclass
class SyncResult:
    success: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False
    errors: dict[str, str] = field(default_factory=dict)


Uploader = Callable[[VoiceQueueItem], Awaitable[Any]]
Listener = Callable[[SyncState, SyncProgress], Any]


class SyncManager:
    """Sequential, backoff-driven uploader for a :class:`VoiceLogQueue`."""

    def __init__(
        self,
        queue: VoiceLogQueue,
        uploader: Uploader,
        *,
        max_retries: int | None = None,
        base_delay: float | None = None,
        max_delay: float | None = None,
        online: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._queue = queue
        self._uploader = uploader
        self.max_retries = max_retries if max_retries is not None else settings.sync_max_retries
        self.base_delay = base_delay if base_delay is not None else settings.sync_base_delay_seconds
        self.max_delay = max_delay if max_delay is not None else settings.sync_max_delay_seconds
        self._sleep = sleep

        self._online = online
        self._state = SyncState.IDLE if online else SyncState.OFFLINE
        self._progress = SyncProgress()
        self._listeners: list[Listener] = []
        self._lock = asyncio.Lock()

        self.last_sync_attempt: Optional[datetime] = None
        self.last_successful_sync: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def progress(self) -> SyncProgress:
        return self._progress

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state/progress listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state, self._progress)
            except Exception:
                logger.exception("Sync listener raised; ignoring")

    def _set_state(self, state: SyncState) -> None:
        if state != self._state:
            logger.debug("Sync state %s -> %s", self._state.value, state.value)
            self._state = state
        self._notify()

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    async def set_online(self, online: bool, *, auto_sync: bool = True) -> Optional[SyncResult]:
        """Feed a connectivity change. Coming back online triggers a sweep."""
        was_online = self._online
        self._online = online
        if not online:
            self._set_state(SyncState.OFFLINE)
            return None

        if self._state == SyncState.OFFLINE:
            self._set_state(SyncState.IDLE)
        if auto_sync and not was_online:
            return await self.sync()
        return None

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    async def sync(self) -> SyncResult:
        """Upload every pending item plus failed items under the retry ceiling."""
        if not self._online:
            return SyncResult(aborted=True)
        if self._lock.locked():
            logger.debug("Sync already in progress; ignoring trigger")
            return SyncResult()

        async with self._lock:
            self.last_sync_attempt = datetime.now(timezone.utc)
            result = SyncResult()

            pending = await self._queue.get_pending()
            retryable = await self._queue.get_failed(self.max_retries)
            items = sorted(pending + retryable, key=lambda i: i.queued_at)

            self._progress = SyncProgress(total=len(items))
            self._set_state(SyncState.SYNCING)
            logger.info("Sync started: %d item(s)", len(items))

            try:
                for item in items:
                    if not self._online:
                        result.aborted = True
                        break

                    self._progress.current_item_id = item.id
                    self._notify()
                    outcome = await self._process_item(item, result)
                    if outcome == "aborted":
                        result.aborted = True
                        break
            finally:
                self._progress.current_item_id = None
                self._set_state(SyncState.IDLE if self._online else SyncState.OFFLINE)

            if result.success:
                self.last_successful_sync = datetime.now(timezone.utc)
            logger.info(
                "Sync finished: success=%d failed=%d aborted=%s",
                result.success, result.failed, result.aborted,
            )
            return result

    async def _process_item(self, item: VoiceQueueItem, result: SyncResult) -> str:
        await self._queue.update_status(item.id, "uploading")
        try:
            await self._upload_with_backoff(item)
        except SyncAbortedError:
            await self._queue.update_status(item.id, "pending")
            logger.info("Device went offline; leaving %s pending", item.id)
            return "aborted"
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            result.failed += 1
            result.errors[item.id] = message
            self._progress.failed += 1
            if is_terminal_error(exc):
                logger.warning("Terminal upload failure for %s: %s", item.id, message)
                await self._queue.mark_terminal(item.id, message, self.max_retries)
            else:
                logger.warning("Upload of %s failed after retries: %s", item.id, message)
                await self._queue.update_status(item.id, "failed", message)
            self._notify()
            return "failed"

        await self._queue.remove(item.id)
        result.success += 1
        self._progress.completed += 1
        self._notify()
        return "uploaded"

    async def _upload_with_backoff(self, item: VoiceQueueItem) -> None:
        def _stop_when_offline(retry_state: RetryCallState) -> bool:
            return not self._online

        def _log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.info(
                "Upload of %s failed (attempt %d): %s; retrying in %.1fs",
                item.id, retry_state.attempt_number, exc, delay,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries) | _stop_when_offline,
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception(lambda exc: not is_terminal_error(exc)),
            sleep=self._sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self._uploader(item)
        except Exception as exc:
            if not self._online and not is_terminal_error(exc):
                raise SyncAbortedError(item.id) from exc
            raise

    def compute_backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based): base * 2**(attempt-1), capped."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
