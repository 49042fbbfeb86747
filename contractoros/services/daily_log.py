"""Daily log service.

Visibility rule: managers (OWNER/PM) see every log in the org. Everyone else
sees public logs plus their own private ones.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from contractoros.core.roles import can_modify_resource, is_manager
from contractoros.core.security import CurrentUser
from contractoros.domain.daily_log import DAILY_LOG_CATEGORIES, DailyLog
from contractoros.repositories.daily_log import DailyLogRepository
from contractoros.schemas.daily_log import (
    DailyLogCreate,
    DailyLogUpdate,
    DailySummary,
    LogDateRange,
    LogPhoto,
)

logger = logging.getLogger(__name__)

LOG_NOT_FOUND = "Log not found"


def summarize_logs(
    logs: list[DailyLog], log_date: date, project_id: Optional[str] = None
) -> Optional[DailySummary]:
    """Roll up the logs that fall on ``log_date``. None when there are none."""
    day_logs = [log for log in logs if log.log_date == log_date]
    if not day_logs:
        return None

    categories = {category: 0 for category in DAILY_LOG_CATEGORIES}
    for log in day_logs:
        categories[log.category] = categories.get(log.category, 0) + 1

    weather = next((log.weather for log in day_logs if log.weather), None)
    return DailySummary(
        log_date=log_date,
        project_id=project_id,
        project_name=day_logs[0].project_name if project_id else None,
        total_entries=len(day_logs),
        categories=categories,
        crew_count=max((log.crew_count or 0) for log in day_logs),
        hours_worked=sum((log.hours_worked or 0.0) for log in day_logs),
        issue_count=sum(len(log.issues or []) for log in day_logs),
        photo_count=sum(len(log.photos or []) for log in day_logs),
        weather=weather,
    )


class DailyLogService:
    def __init__(self, session: AsyncSession, user: Optional[CurrentUser]):
        self._user = user
        self._repo = DailyLogRepository(session, user.org_id if user else "")

    def _require_user(self) -> CurrentUser:
        if not self._user or not self._user.org_id or not self._user.user_id:
            raise UnauthorizedError("Not authenticated")
        return self._user

    def _sees_private(self) -> bool:
        return is_manager(self._user.role) if self._user else False

    async def create_log(self, data: DailyLogCreate) -> DailyLog:
        user = self._require_user()
        log = await self._repo.create(
            user_id=user.user_id,
            user_name=user.name,
            **data.model_dump(),
        )
        logger.info("Daily log %s created by %s for project %s", log.id, user.user_id, log.project_id)
        return log

    async def list_logs(
        self,
        *,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_private: bool = False,
    ) -> list[DailyLog]:
        """Newest first, at most 200. ``include_private`` is accepted for API
        compatibility but never widens a non-manager's view."""
        user = self._require_user()
        return await self._repo.list_visible(
            viewer_id=user.user_id,
            see_private=self._sees_private(),
            project_id=project_id,
            user_id=user_id,
            category=category,
            start_date=start_date,
            end_date=end_date,
        )

    async def get_log(self, log_id: str) -> DailyLog:
        user = self._require_user()
        log = await self._repo.get_by_id(log_id)
        if not log:
            raise NotFoundError("Daily log", message=LOG_NOT_FOUND)
        if log.is_private and log.user_id != user.user_id and not is_manager(user.role):
            raise NotFoundError("Daily log", message=LOG_NOT_FOUND)
        return log

    async def _get_modifiable(self, log_id: str) -> DailyLog:
        log = await self.get_log(log_id)
        if not can_modify_resource(self._user, log.org_id, log.user_id):
            raise ForbiddenError("Only the author or an admin can modify this log")
        return log

    async def update_log(self, log_id: str, data: DailyLogUpdate) -> DailyLog:
        await self._get_modifiable(log_id)
        updated = await self._repo.update(log_id, **data.model_dump(exclude_unset=True))
        return updated  # type: ignore[return-value]

    async def delete_log(self, log_id: str) -> None:
        await self._get_modifiable(log_id)
        if not await self._repo.soft_delete(log_id):
            raise NotFoundError("Daily log", message=LOG_NOT_FOUND)

    async def get_daily_summary(
        self, log_date: date, project_id: Optional[str] = None
    ) -> Optional[DailySummary]:
        logs = await self.list_logs(project_id=project_id, start_date=log_date, end_date=log_date)
        return summarize_logs(logs, log_date, project_id)

    async def get_date_range(self, project_id: Optional[str] = None) -> LogDateRange:
        user = self._require_user()
        earliest, latest = await self._repo.date_range(
            viewer_id=user.user_id,
            see_private=self._sees_private(),
            project_id=project_id,
        )
        return LogDateRange(earliest=earliest, latest=latest)

    async def add_photo(self, log_id: str, photo: LogPhoto) -> DailyLog:
        log = await self._get_modifiable(log_id)
        photos = list(log.photos or []) + [photo.model_dump()]
        return await self._repo.update(log_id, photos=photos)  # type: ignore[return-value]

    async def remove_photo(self, log_id: str, photo_id: str) -> DailyLog:
        log = await self._get_modifiable(log_id)
        photos = [p for p in (log.photos or []) if p.get("id") != photo_id]
        return await self._repo.update(log_id, photos=photos)  # type: ignore[return-value]
