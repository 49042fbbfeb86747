"""Voice log Pydantic schemas (shared by the upload route and the device queue)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel


class VoiceLogMetadata(CamelModel):
    """Metadata captured alongside a recording on the device."""

    org_id: str
    user_id: str
    user_name: Optional[str] = None
    recorded_at: datetime
    duration_seconds: Optional[float] = Field(default=None, ge=0)
    mime_type: str = "audio/webm"
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    user_summary: Optional[str] = None
    location: Optional[dict[str, Any]] = None


class VoiceLogOut(CamelModel):
    id: str
    org_id: str
    user_id: str
    user_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    recorded_at: datetime
    duration_seconds: Optional[float] = None
    file_size_bytes: int
    mime_type: str
    content_hash: str
    user_summary: Optional[str] = None
    location: Optional[dict[str, Any]] = None
    status: str
    transcript: Optional[str] = None
    created_at: datetime
