"""Durable staging queue for voice recordings awaiting upload.

Recordings are written here the moment they are captured so they survive
restarts and connectivity loss. Each item is keyed by a generated UUID and
carries a unique content hash (SHA-256 over audio bytes + user id + recording
timestamp), which makes re-enqueueing the same recording a no-op.

Item lifecycle::

    pending -> uploading -> (removed on success | failed)
    failed  -> pending         (requeue / automatic re-drive under the ceiling)

Every public method runs in its own session and transaction, so each
operation is atomic on its own.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from contractoros.core.exceptions import NotFoundError, ValidationError
from contractoros.db.base import async_session_factory
from contractoros.domain.voice_log import QUEUE_STATUSES, VoiceQueueItem
from contractoros.schemas.voice_log import VoiceLogMetadata

logger = logging.getLogger(__name__)


def compute_content_hash(audio: bytes, user_id: str, recorded_at: datetime | str) -> str:
    """SHA-256 hex digest over ``audio + user_id + recorded_at``."""
    timestamp = recorded_at.isoformat() if isinstance(recorded_at, datetime) else str(recorded_at)
    digest = hashlib.sha256()
    digest.update(audio)
    digest.update(user_id.encode("utf-8"))
    digest.update(timestamp.encode("utf-8"))
    return digest.hexdigest()


class VoiceLogQueue:
    """Persistent FIFO of recordings, backed by the ``voice_log_queue`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or async_session_factory

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def enqueue(self, audio: bytes, metadata: VoiceLogMetadata) -> Optional[str]:
        """Stage a recording. Returns the new item id, or None if already queued."""
        content_hash = compute_content_hash(audio, metadata.user_id, metadata.recorded_at)

        async with self._session_factory() as session:
            existing = (
                await session.execute(
                    select(VoiceQueueItem.id).where(VoiceQueueItem.content_hash == content_hash)
                )
            ).scalar_one_or_none()
            if existing is not None:
                logger.info("Recording %s already submitted; skipping enqueue", content_hash[:12])
                return None

            item = VoiceQueueItem(
                content_hash=content_hash,
                audio=audio,
                meta=metadata.model_dump(mode="json"),
                status="pending",
                retry_count=0,
            )
            session.add(item)
            try:
                await session.commit()
            except IntegrityError:
                # A concurrent enqueue of the same recording won the unique index
                await session.rollback()
                logger.info("Recording %s already submitted; skipping enqueue", content_hash[:12])
                return None

            logger.info("Queued recording id=%s size=%d", item.id, len(audio))
            return item.id

    async def update_status(
        self, item_id: str, status: str, error: Optional[str] = None
    ) -> VoiceQueueItem:
        """Move an item to ``status``. Moving to ``failed`` bumps the retry counter."""
        if status not in QUEUE_STATUSES:
            raise ValidationError(f"Invalid queue status: {status}")

        async with self._session_factory() as session:
            item = await session.get(VoiceQueueItem, item_id)
            if item is None:
                raise NotFoundError("Queued recording", item_id)

            item.status = status
            if status == "failed":
                item.retry_count += 1
                item.last_error = error
            elif error is not None:
                item.last_error = error
            await session.commit()
            return item

    async def mark_terminal(self, item_id: str, error: str, max_retries: int) -> VoiceQueueItem:
        """Fail an item so that automatic re-drive never picks it up again."""
        async with self._session_factory() as session:
            item = await session.get(VoiceQueueItem, item_id)
            if item is None:
                raise NotFoundError("Queued recording", item_id)

            item.status = "failed"
            item.retry_count = max(item.retry_count + 1, max_retries)
            item.last_error = error
            await session.commit()
            return item

    async def requeue(self, item_id: str) -> VoiceQueueItem:
        """Manual reset of a failed item: back to ``pending`` with a fresh retry budget."""
        async with self._session_factory() as session:
            item = await session.get(VoiceQueueItem, item_id)
            if item is None:
                raise NotFoundError("Queued recording", item_id)
            if item.status != "failed":
                raise ValidationError("Only failed recordings can be retried")

            item.status = "pending"
            item.retry_count = 0
            item.last_error = None
            await session.commit()
            return item

    async def remove(self, item_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(VoiceQueueItem).where(VoiceQueueItem.id == item_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def recover_interrupted(self) -> int:
        """Return items stranded in ``uploading`` (e.g. after a crash) to ``pending``."""
        async with self._session_factory() as session:
            result = await session.execute(
                update(VoiceQueueItem)
                .where(VoiceQueueItem.status == "uploading")
                .values(status="pending")
            )
            await session.commit()
            if result.rowcount:
                logger.warning("Recovered %d interrupted upload(s)", result.rowcount)
            return result.rowcount

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, item_id: str) -> Optional[VoiceQueueItem]:
        async with self._session_factory() as session:
            return await session.get(VoiceQueueItem, item_id)

    async def get_pending(self) -> list[VoiceQueueItem]:
        """All pending items, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(VoiceQueueItem)
                .where(VoiceQueueItem.status == "pending")
                .order_by(VoiceQueueItem.queued_at.asc())
            )
            return list(result.scalars().all())

    async def get_failed(self, max_retries: int) -> list[VoiceQueueItem]:
        """Failed items still under the retry ceiling, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(VoiceQueueItem)
                .where(VoiceQueueItem.status == "failed")
                .where(VoiceQueueItem.retry_count < max_retries)
                .order_by(VoiceQueueItem.queued_at.asc())
            )
            return list(result.scalars().all())

    async def get_stats(self) -> dict[str, int]:
        async with self._session_factory() as session:
            rows = await session.execute(
                select(VoiceQueueItem.status, func.count()).group_by(VoiceQueueItem.status)
            )
            counts = {status: 0 for status in QUEUE_STATUSES}
            counts.update({status: count for status, count in rows.all()})
            counts["total"] = sum(counts[s] for s in QUEUE_STATUSES)
            return counts
