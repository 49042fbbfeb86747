"""Tests for the daily log service: visibility, ownership and summaries."""
from datetime import date

import pytest
from sqlalchemy import func, select

from contractoros.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from contractoros.domain.daily_log import DailyLog
from contractoros.schemas.daily_log import DailyLogCreate, DailyLogUpdate, LogPhoto
from contractoros.services.daily_log import LOG_NOT_FOUND, DailyLogService, summarize_logs

DAY = date(2026, 4, 14)


def make_log(**overrides) -> DailyLogCreate:
    values = {
        "project_id": "proj-1",
        "project_name": "Maple St Remodel",
        "log_date": DAY,
        "title": "Framing second floor",
    }
    values.update(overrides)
    return DailyLogCreate(**values)


class TestCreate:
    async def test_create_stamps_author(self, session, employee):
        log = await DailyLogService(session, employee).create_log(make_log())

        assert log.user_id == employee.user_id
        assert log.user_name == employee.name
        assert log.org_id == employee.org_id
        assert log.category == "general"

    async def test_unauthenticated_create_writes_nothing(self, session):
        with pytest.raises(UnauthorizedError):
            await DailyLogService(session, None).create_log(make_log())

        count = (await session.execute(select(func.count()).select_from(DailyLog))).scalar_one()
        assert count == 0


class TestVisibility:
    async def test_private_logs_hidden_from_other_employees(self, session, employee, other_employee):
        await DailyLogService(session, employee).create_log(make_log(title="public"))
        await DailyLogService(session, employee).create_log(make_log(title="private", is_private=True))

        titles = {log.title for log in await DailyLogService(session, other_employee).list_logs()}

        assert titles == {"public"}

    async def test_include_private_does_not_widen_view(self, session, employee, other_employee):
        await DailyLogService(session, employee).create_log(make_log(is_private=True))

        logs = await DailyLogService(session, other_employee).list_logs(include_private=True)

        assert logs == []

    async def test_author_sees_own_private_log(self, session, employee):
        await DailyLogService(session, employee).create_log(make_log(is_private=True))
        assert len(await DailyLogService(session, employee).list_logs()) == 1

    async def test_managers_see_everything(self, session, employee, pm):
        await DailyLogService(session, employee).create_log(make_log(is_private=True))
        await DailyLogService(session, employee).create_log(make_log())
        assert len(await DailyLogService(session, pm).list_logs()) == 2

    async def test_get_private_log_of_another_user_is_not_found(self, session, employee, other_employee):
        log = await DailyLogService(session, employee).create_log(make_log(is_private=True))

        with pytest.raises(NotFoundError) as exc_info:
            await DailyLogService(session, other_employee).get_log(log.id)
        assert exc_info.value.message == LOG_NOT_FOUND

    async def test_filters(self, session, employee):
        svc = DailyLogService(session, employee)
        await svc.create_log(make_log(category="safety"))
        await svc.create_log(make_log(category="delivery", log_date=date(2026, 4, 20)))
        await svc.create_log(make_log(project_id="proj-2"))

        assert len(await svc.list_logs(category="safety")) == 1
        assert len(await svc.list_logs(project_id="proj-2")) == 1
        assert len(await svc.list_logs(start_date=date(2026, 4, 15))) == 1
        assert len(await svc.list_logs(end_date=DAY)) == 2

    async def test_newest_first(self, session, employee):
        svc = DailyLogService(session, employee)
        await svc.create_log(make_log(title="older", log_date=date(2026, 4, 1)))
        await svc.create_log(make_log(title="newer", log_date=date(2026, 4, 2)))
        assert [log.title for log in await svc.list_logs()] == ["newer", "older"]


class TestModify:
    async def test_author_can_update(self, session, employee):
        svc = DailyLogService(session, employee)
        log = await svc.create_log(make_log())

        updated = await svc.update_log(log.id, DailyLogUpdate(title="Framing done"))

        assert updated.title == "Framing done"

    async def test_other_employee_cannot_update(self, session, employee, other_employee):
        log = await DailyLogService(session, employee).create_log(make_log())
        with pytest.raises(ForbiddenError):
            await DailyLogService(session, other_employee).update_log(log.id, DailyLogUpdate(title="x"))

    async def test_manager_can_delete(self, session, employee, pm):
        log = await DailyLogService(session, employee).create_log(make_log())

        await DailyLogService(session, pm).delete_log(log.id)

        with pytest.raises(NotFoundError):
            await DailyLogService(session, employee).get_log(log.id)

    async def test_photos(self, session, employee):
        svc = DailyLogService(session, employee)
        log = await svc.create_log(make_log())

        log = await svc.add_photo(log.id, LogPhoto(id="p1", url="https://cdn.test/p1.jpg"))
        log = await svc.add_photo(log.id, LogPhoto(id="p2", url="https://cdn.test/p2.jpg"))
        assert [p["id"] for p in log.photos] == ["p1", "p2"]

        log = await svc.remove_photo(log.id, "p1")
        assert [p["id"] for p in log.photos] == ["p2"]

    async def test_other_employee_cannot_touch_photos_on_public_log(
        self, session, employee, other_employee
    ):
        svc = DailyLogService(session, employee)
        log = await svc.create_log(make_log())
        await svc.add_photo(log.id, LogPhoto(id="p1", url="https://cdn.test/p1.jpg"))

        intruder = DailyLogService(session, other_employee)
        with pytest.raises(ForbiddenError):
            await intruder.add_photo(log.id, LogPhoto(url="https://cdn.test/x.jpg"))
        with pytest.raises(ForbiddenError):
            await intruder.remove_photo(log.id, "p1")

        log = await svc.get_log(log.id)
        assert [p["id"] for p in log.photos] == ["p1"]

    async def test_private_log_photos_are_hidden_from_other_employees(
        self, session, employee, other_employee
    ):
        svc = DailyLogService(session, employee)
        log = await svc.create_log(make_log(is_private=True))
        await svc.add_photo(log.id, LogPhoto(id="p1", url="https://cdn.test/p1.jpg"))

        intruder = DailyLogService(session, other_employee)
        with pytest.raises(NotFoundError) as exc_info:
            await intruder.add_photo(log.id, LogPhoto(url="https://cdn.test/x.jpg"))
        assert exc_info.value.message == LOG_NOT_FOUND
        with pytest.raises(NotFoundError):
            await intruder.remove_photo(log.id, "p1")

        log = await svc.get_log(log.id)
        assert [p["id"] for p in log.photos] == ["p1"]

    async def test_manager_can_add_photos(self, session, employee, pm):
        log = await DailyLogService(session, employee).create_log(make_log(is_private=True))

        log = await DailyLogService(session, pm).add_photo(
            log.id, LogPhoto(id="p9", url="https://cdn.test/p9.jpg")
        )

        assert [p["id"] for p in log.photos] == ["p9"]


class TestSummary:
    async def test_summary_rolls_up_one_day(self, session, employee):
        svc = DailyLogService(session, employee)
        await svc.create_log(
            make_log(
                category="progress",
                crew_count=4,
                hours_worked=32,
                weather={"condition": "Sunny", "temperatureHigh": 72},
                photos=[{"url": "https://cdn.test/a.jpg"}],
            )
        )
        await svc.create_log(
            make_log(
                category="issue",
                crew_count=6,
                hours_worked=8.5,
                issues=[{"description": "Late lumber delivery"}],
            )
        )
        await svc.create_log(make_log(log_date=date(2026, 4, 15), crew_count=20))

        summary = await svc.get_daily_summary(DAY, project_id="proj-1")

        assert summary.total_entries == 2
        assert summary.crew_count == 6
        assert summary.hours_worked == 40.5
        assert summary.issue_count == 1
        assert summary.photo_count == 1
        assert summary.categories["progress"] == 1
        assert summary.categories["issue"] == 1
        assert summary.categories["safety"] == 0
        assert summary.weather["condition"] == "Sunny"
        assert summary.project_name == "Maple St Remodel"

    async def test_no_logs_means_no_summary(self, session, employee):
        assert await DailyLogService(session, employee).get_daily_summary(DAY) is None

    def test_summarize_empty(self):
        assert summarize_logs([], DAY) is None

    async def test_date_range(self, session, employee):
        svc = DailyLogService(session, employee)
        assert (await svc.get_date_range()).earliest is None

        await svc.create_log(make_log(log_date=date(2026, 1, 5)))
        await svc.create_log(make_log(log_date=date(2026, 3, 9)))

        window = await svc.get_date_range()
        assert window.earliest == date(2026, 1, 5)
        assert window.latest == date(2026, 3, 9)
