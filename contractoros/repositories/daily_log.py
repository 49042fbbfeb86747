"""Daily log repository with the private-log visibility rule applied in SQL."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import false, func, or_, select

from contractoros.domain.daily_log import DailyLog
from contractoros.repositories.base import BaseRepository

MAX_LOGS_PER_QUERY = 200


class DailyLogRepository(BaseRepository[DailyLog]):
    model = DailyLog

    def _visible_query(self, viewer_id: str, see_private: bool):
        q = self._base_query()
        if not see_private:
            # Public logs plus the viewer's own private ones
            q = q.where(or_(DailyLog.is_private == false(), DailyLog.user_id == viewer_id))
        return q

    async def list_visible(
        self,
        *,
        viewer_id: str,
        see_private: bool,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = MAX_LOGS_PER_QUERY,
    ) -> list[DailyLog]:
        q = self._visible_query(viewer_id, see_private)
        if project_id:
            q = q.where(DailyLog.project_id == project_id)
        if user_id:
            q = q.where(DailyLog.user_id == user_id)
        if category:
            q = q.where(DailyLog.category == category)
        if start_date:
            q = q.where(DailyLog.log_date >= start_date)
        if end_date:
            q = q.where(DailyLog.log_date <= end_date)
        q = q.order_by(DailyLog.log_date.desc(), DailyLog.created_at.desc()).limit(limit)
        return list((await self._session.execute(q)).scalars().all())

    async def date_range(
        self, *, viewer_id: str, see_private: bool, project_id: Optional[str] = None
    ) -> tuple[Optional[date], Optional[date]]:
        sub = self._visible_query(viewer_id, see_private)
        if project_id:
            sub = sub.where(DailyLog.project_id == project_id)
        sub = sub.subquery()
        row = (
            await self._session.execute(select(func.min(sub.c.log_date), func.max(sub.c.log_date)))
        ).one()
        return row[0], row[1]
