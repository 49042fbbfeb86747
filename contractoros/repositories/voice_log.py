"""Voice log repository."""

from __future__ import annotations

from contractoros.domain.voice_log import VoiceLog
from contractoros.repositories.base import BaseRepository


class VoiceLogRepository(BaseRepository[VoiceLog]):
    model = VoiceLog

    async def get_by_hash(self, content_hash: str) -> VoiceLog | None:
        result = await self._session.execute(
            self._base_query().where(VoiceLog.content_hash == content_hash)
        )
        return result.scalars().first()
