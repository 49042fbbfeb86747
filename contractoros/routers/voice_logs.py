"""Voice log upload and listing."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import ValidationError
from contractoros.core.response import DataResponse
from contractoros.core.security import CurrentUser, get_current_user
from contractoros.db.base import get_db
from contractoros.schemas.voice_log import VoiceLogMetadata, VoiceLogOut
from contractoros.services.voice_log import VoiceLogService

router = APIRouter(prefix="/voice-logs", tags=["Voice Logs"])


@router.post("/upload", response_model=DataResponse[VoiceLogOut], status_code=status.HTTP_201_CREATED)
async def upload_voice_log(
    audio: UploadFile = File(...),
    metadata: str = Form(...),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Multipart upload: ``audio`` file plus a JSON ``metadata`` form field."""
    try:
        meta = VoiceLogMetadata.model_validate_json(metadata)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid metadata: {exc.errors()[0]['msg']}") from exc

    content = await audio.read()
    log = await VoiceLogService(session, user).upload(content, meta)
    return {"data": VoiceLogOut.model_validate(log)}


@router.get("", response_model=DataResponse[list[VoiceLogOut]])
async def list_voice_logs(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    logs = await VoiceLogService(session, user).list_logs(user_id=user_id, status=filter_status)
    return {"data": [VoiceLogOut.model_validate(log) for log in logs]}


@router.get("/{log_id}", response_model=DataResponse[VoiceLogOut])
async def get_voice_log(
    log_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    log = await VoiceLogService(session, user).get_log(log_id)
    return {"data": VoiceLogOut.model_validate(log)}
