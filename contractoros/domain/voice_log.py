"""SQLAlchemy ORM models for uploaded Voice Logs and the device-side upload queue."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from contractoros.db.base import Base
from contractoros.domain.mixins import TenantMixin, TimestampMixin, utcnow

VOICE_LOG_STATUSES = (
    "queued",
    "uploading",
    "uploaded",
    "processing",
    "completed",
    "failed",
    "error",
)
QUEUE_STATUSES = ("pending", "uploading", "failed")


class VoiceLog(Base, TenantMixin, TimestampMixin):
    """A recording that reached the server."""

    __tablename__ = "voice_logs"
    __table_args__ = (UniqueConstraint("org_id", "content_hash", name="uq_voice_logs_org_hash"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    project_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)
    project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_seconds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), default="audio/webm", nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    audio: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, deferred=True)

    user_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # {"lat", "lng", "accuracy"}
    location: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="uploaded", nullable=False, index=True)
    transcript: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class VoiceQueueItem(Base):
    """A recording staged on the device until it can be uploaded.

    Lives in the device's local database, so it is not tenant-scoped; the org
    and user travel inside ``meta``.
    """

    __tablename__ = "voice_log_queue"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    audio: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    meta: Mapped[Any] = mapped_column(JSON, nullable=False)
    queued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # pending | uploading | failed
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False, index=True)
