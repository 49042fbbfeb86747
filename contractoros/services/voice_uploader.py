"""HTTP uploader used by the sync manager to push queued recordings."""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

import httpx

from contractoros.core.config import settings
from contractoros.domain.voice_log import VoiceQueueItem
from contractoros.services.sync_manager import (
    AuthenticationFailedError,
    DuplicateRecordingError,
    QuotaExceededError,
    RetryableUploadError,
)

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/voice-logs/upload"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("message") or f"HTTP {response.status_code}"
        if isinstance(error, str):
            return error
    return f"HTTP {response.status_code}"


class VoiceLogUploader:
    """Callable uploader: ``await uploader(item)`` posts one queued recording.

    ``token_provider`` is called on every upload so a refreshed bearer token
    is always used.
    """

    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        *,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self._token_provider = token_provider
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.voice_upload_base_url, timeout=timeout
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __call__(self, item: VoiceQueueItem) -> dict:
        token = self._token_provider()
        if not token:
            raise AuthenticationFailedError("Not authenticated", status_code=401)

        meta = item.meta or {}
        files = {
            "audio": (
                f"{item.id}.webm",
                item.audio,
                meta.get("mime_type") or "application/octet-stream",
            )
        }
        data = {"metadata": json.dumps(meta)}

        try:
            response = await self._client.post(
                UPLOAD_PATH,
                files=files,
                data=data,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TransportError as exc:
            raise RetryableUploadError(f"Network error: {exc}") from exc

        if response.is_success:
            logger.debug("Uploaded %s (HTTP %d)", item.id, response.status_code)
            return response.json()

        message = _error_message(response)
        status = response.status_code
        if status in (401, 403):
            raise AuthenticationFailedError(message, status_code=status)
        if status == 409:
            raise DuplicateRecordingError(message, status_code=status)
        if status in (413, 507):
            raise QuotaExceededError(message, status_code=status)
        raise RetryableUploadError(message, status_code=status)
