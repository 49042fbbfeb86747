"""Daily log endpoints."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import NotFoundError
from contractoros.core.response import DataResponse
from contractoros.core.security import CurrentUser, get_current_user
from contractoros.db.base import get_db
from contractoros.schemas.daily_log import (
    DailyLogCreate,
    DailyLogOut,
    DailyLogUpdate,
    DailySummary,
    LogDateRange,
    LogPhoto,
)
from contractoros.services.daily_log import DailyLogService

router = APIRouter(prefix="/daily-logs", tags=["Daily Logs"])


@router.get("", response_model=DataResponse[list[DailyLogOut]])
async def list_logs(
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    category: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    include_private: bool = Query(default=False, alias="includePrivate"),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    logs = await DailyLogService(session, user).list_logs(
        project_id=project_id,
        user_id=user_id,
        category=category,
        start_date=start_date,
        end_date=end_date,
        include_private=include_private,
    )
    return {"data": [DailyLogOut.model_validate(log) for log in logs]}


@router.post("", response_model=DataResponse[DailyLogOut], status_code=status.HTTP_201_CREATED)
async def create_log(
    body: DailyLogCreate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    log = await DailyLogService(session, user).create_log(body)
    return {"data": DailyLogOut.model_validate(log)}


@router.get("/summary", response_model=DataResponse[DailySummary])
async def daily_summary(
    log_date: date = Query(alias="date"),
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    summary = await DailyLogService(session, user).get_daily_summary(log_date, project_id)
    if summary is None:
        raise NotFoundError("Daily summary", message="No logs for this date")
    return {"data": summary}


@router.get("/date-range", response_model=DataResponse[LogDateRange])
async def date_range(
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return {"data": await DailyLogService(session, user).get_date_range(project_id)}


@router.get("/{log_id}", response_model=DataResponse[DailyLogOut])
async def get_log(
    log_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    log = await DailyLogService(session, user).get_log(log_id)
    return {"data": DailyLogOut.model_validate(log)}


@router.patch("/{log_id}", response_model=DataResponse[DailyLogOut])
async def update_log(
    log_id: str,
    body: DailyLogUpdate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    log = await DailyLogService(session, user).update_log(log_id, body)
    return {"data": DailyLogOut.model_validate(log)}


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(
    log_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    await DailyLogService(session, user).delete_log(log_id)


@router.post("/{log_id}/photos", response_model=DataResponse[DailyLogOut])
async def add_photo(
    log_id: str,
    body: LogPhoto,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    log = await DailyLogService(session, user).add_photo(log_id, body)
    return {"data": DailyLogOut.model_validate(log)}


@router.delete("/{log_id}/photos/{photo_id}", response_model=DataResponse[DailyLogOut])
async def remove_photo(
    log_id: str,
    photo_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    log = await DailyLogService(session, user).remove_photo(log_id, photo_id)
    return {"data": DailyLogOut.model_validate(log)}
