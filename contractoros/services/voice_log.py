"""Voice log service: server side of the recording upload."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.config import settings
from contractoros.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from contractoros.core.roles import is_admin
from contractoros.core.security import CurrentUser
from contractoros.domain.voice_log import VOICE_LOG_STATUSES, VoiceLog
from contractoros.repositories.voice_log import VoiceLogRepository
from contractoros.schemas.voice_log import VoiceLogMetadata
from contractoros.services.offline_queue import compute_content_hash

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "This recording was already submitted"


class VoiceLogService:
    def __init__(self, session: AsyncSession, user: CurrentUser):
        self._user = user
        self._repo = VoiceLogRepository(session, user.org_id)

    async def upload(self, audio: bytes, metadata: VoiceLogMetadata) -> VoiceLog:
        if not audio:
            raise ValidationError("Audio file is empty")
        if len(audio) > settings.max_upload_size_bytes:
            raise PayloadTooLargeError("Storage quota exceeded")
        if metadata.org_id != self._user.org_id:
            raise ForbiddenError("Recording belongs to a different organization")
        if metadata.user_id != self._user.user_id and not is_admin(self._user.role):
            raise ForbiddenError("Cannot upload recordings for another user")

        content_hash = compute_content_hash(audio, metadata.user_id, metadata.recorded_at)
        if await self._repo.get_by_hash(content_hash):
            raise ConflictError(DUPLICATE_MESSAGE)

        log = await self._repo.create(
            user_id=metadata.user_id,
            user_name=metadata.user_name,
            project_id=metadata.project_id,
            project_name=metadata.project_name,
            recorded_at=metadata.recorded_at,
            duration_seconds=metadata.duration_seconds,
            file_size_bytes=len(audio),
            mime_type=metadata.mime_type,
            content_hash=content_hash,
            audio=audio,
            user_summary=metadata.user_summary,
            location=metadata.location,
            status="uploaded",
        )
        logger.info(
            "Stored voice log id=%s org=%s size=%d", log.id, self._user.org_id, len(audio)
        )
        return log

    async def list_logs(
        self, *, user_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[VoiceLog]:
        if status and status not in VOICE_LOG_STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        # Non-admins only see their own recordings
        if not is_admin(self._user.role):
            user_id = self._user.user_id
        return await self._repo.list_all({"user_id": user_id, "status": status})

    async def get_log(self, log_id: str) -> VoiceLog:
        log = await self._repo.get_by_id(log_id)
        if not log or (log.user_id != self._user.user_id and not is_admin(self._user.role)):
            raise NotFoundError("Voice log", log_id)
        return log
