"""
Tests for weekly availability overrides and the daily attendance ledger.
"""

import pytest
import pytest_asyncio
from datetime import date
from sqlalchemy import func, select

from app.core.exceptions import (
    AccessDeniedError,
    InvalidPayloadError,
    InvalidStatusError,
    InvalidWeekError,
    IterationNotFoundError,
    MemberNotFoundError,
    NotFoundError,
    ValidationError,
)
from app.models.availability import DailyAttendance, WeeklyAvailability, availability_key
from app.services.attendance_service import DailyAttendanceService
from app.services.availability_service import WeeklyAvailabilityService
from app.services.iteration_service import IterationService
from app.services.member_service import MemberService

from .conftest import OUTSIDER_ID, PROJECT_ID, USER_ID


@pytest_asyncio.fixture
async def iteration(db, sprint_dates):
    return await IterationService(db).create_iteration(USER_ID, PROJECT_ID, "Sprint 1", *sprint_dates)


@pytest_asyncio.fixture
async def alice(db, iteration):
    return await MemberService(db).add_member(USER_ID, iteration.id, "Alice", "Developer", "office", 2, 80)


@pytest_asyncio.fixture
async def bob(db, iteration):
    return await MemberService(db).add_member(USER_ID, iteration.id, "Bob", "QA", "remote", 0, 100)


def week_one(*statuses):
    days = [date(2024, 1, d) for d in range(1, 6)]
    return [{"date": day, "status": status} for day, status in zip(days, statuses)]


class TestSaveWeeklyAvailability:
    """Tests for WeeklyAvailabilityService.save_weekly_availability."""

    async def test_derives_days_when_omitted(self, db, iteration, alice):
        service = WeeklyAvailabilityService(db)

        result = await service.save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 1, "availability_percent": 80},
        ])

        assert result.updated_count == 1
        rows = await service.get_weekly_availability(USER_ID, iteration.id)
        assert rows[0].days_total == 5
        assert rows[0].days_present == 4

    async def test_keeps_supplied_days(self, db, iteration, alice):
        service = WeeklyAvailabilityService(db)

        await service.save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 2, "availability_percent": 60,
             "days_present": 2, "days_total": 4, "notes": "  conference  "},
        ])

        row = (await service.get_weekly_availability(USER_ID, iteration.id))[0]
        assert (row.days_present, row.days_total) == (2, 4)
        assert row.notes == "conference"

    async def test_upsert_never_duplicates(self, db, iteration, alice):
        service = WeeklyAvailabilityService(db)

        await service.save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 1, "availability_percent": 80},
        ])
        await service.save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 1, "availability_percent": 40},
        ])

        rows = await service.get_weekly_availability(USER_ID, iteration.id)
        assert len(rows) == 1
        assert rows[0].availability_percent == 40
        assert rows[0].days_present == 2

    async def test_does_not_touch_member_capacity(self, db, iteration, alice):
        await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 1, "availability_percent": 0},
        ])

        member = await MemberService(db).get_member(USER_ID, alice.id)
        assert member.effective_capacity_days == 6.4

    async def test_ordered_by_week(self, db, iteration, alice, bob):
        service = WeeklyAvailabilityService(db)

        await service.save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": bob.id, "week_index": 2, "availability_percent": 100},
            {"member_id": alice.id, "week_index": 1, "availability_percent": 100},
            {"member_id": alice.id, "week_index": 2, "availability_percent": 100},
        ])

        rows = await service.get_weekly_availability(USER_ID, iteration.id)
        assert [r.week_index for r in rows] == [1, 2, 2]

    async def test_batch_is_atomic(self, db, iteration, alice):
        service = WeeklyAvailabilityService(db)
        iteration_id = iteration.id

        with pytest.raises(ValidationError):
            await service.save_weekly_availability(USER_ID, iteration.id, [
                {"member_id": alice.id, "week_index": 1, "availability_percent": 80},
                {"member_id": alice.id, "week_index": 2, "availability_percent": 180},
            ])

        assert await service.get_weekly_availability(USER_ID, iteration_id) == []

    async def test_empty_payload(self, db, iteration):
        with pytest.raises(InvalidPayloadError):
            await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [])

    async def test_entry_missing_fields(self, db, iteration, alice):
        with pytest.raises(InvalidPayloadError):
            await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [
                {"member_id": alice.id, "availability_percent": 80},
            ])

    async def test_week_outside_iteration(self, db, iteration, alice):
        with pytest.raises(ValidationError) as exc_info:
            await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [
                {"member_id": alice.id, "week_index": 3, "availability_percent": 80},
            ])

        assert exc_info.value.code == "INVALID_WEEK"

    async def test_member_from_other_iteration(self, db, iteration, sprint_dates):
        other = await IterationService(db).create_iteration(USER_ID, PROJECT_ID, "Sprint 2", *sprint_dates)
        stranger = await MemberService(db).add_member(USER_ID, other.id, "Carol", "Designer")

        with pytest.raises(ValidationError):
            await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [
                {"member_id": stranger.id, "week_index": 1, "availability_percent": 80},
            ])

    async def test_days_present_above_total(self, db, iteration, alice):
        with pytest.raises(ValidationError):
            await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [
                {"member_id": alice.id, "week_index": 1, "availability_percent": 80,
                 "days_present": 6, "days_total": 5},
            ])

    async def test_iteration_not_found(self, db):
        with pytest.raises(IterationNotFoundError):
            await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, "missing", [
                {"member_id": "m", "week_index": 1, "availability_percent": 80},
            ])

    async def test_access_checked_before_write(self, db, iteration, alice):
        with pytest.raises(AccessDeniedError):
            await WeeklyAvailabilityService(db).save_weekly_availability(OUTSIDER_ID, iteration.id, [
                {"member_id": alice.id, "week_index": 1, "availability_percent": 80},
            ])

        result = await db.execute(select(func.count()).select_from(WeeklyAvailability))
        assert result.scalar_one() == 0


class TestDailyAttendance:
    """Tests for DailyAttendanceService."""

    async def test_save_and_get_ordered_by_date(self, db, alice):
        service = DailyAttendanceService(db)
        records = list(reversed(week_one("P", "P", "A", "P")))

        result = await service.save_daily_attendance(USER_ID, alice.id, 1, records)

        assert result.saved_count == 4
        assert result.availability_id == availability_key(alice.id, 1)
        stored = await service.get_daily_attendance(USER_ID, result.availability_id)
        assert [r.date for r in stored] == [date(2024, 1, d) for d in range(1, 5)]
        assert [r.status for r in stored] == ["P", "P", "A", "P"]
        assert stored[0].day_of_week == "Monday"

    async def test_save_is_full_replace(self, db, alice):
        service = DailyAttendanceService(db)

        await service.save_daily_attendance(USER_ID, alice.id, 1, week_one("P", "P", "P", "P"))
        await service.save_daily_attendance(USER_ID, alice.id, 1, week_one("A", "P", "P"))

        stored = await service.get_daily_attendance(USER_ID, availability_key(alice.id, 1))
        assert len(stored) == 3
        assert date(2024, 1, 4) not in [r.date for r in stored]
        assert stored[0].status == "A"

    async def test_weeks_are_independent(self, db, alice):
        service = DailyAttendanceService(db)

        await service.save_daily_attendance(USER_ID, alice.id, 1, week_one("P", "P"))
        await service.save_daily_attendance(USER_ID, alice.id, 2, [{"date": date(2024, 1, 8), "status": "A"}])
        await service.save_daily_attendance(USER_ID, alice.id, 1, [])

        assert await service.get_daily_attendance(USER_ID, availability_key(alice.id, 1)) == []
        assert len(await service.get_daily_attendance(USER_ID, availability_key(alice.id, 2))) == 1

    @pytest.mark.parametrize("status", ["X", "p", "", None])
    async def test_invalid_status(self, db, alice, status):
        service = DailyAttendanceService(db)
        await service.save_daily_attendance(USER_ID, alice.id, 1, week_one("P"))
        key = availability_key(alice.id, 1)

        with pytest.raises(InvalidStatusError):
            await service.save_daily_attendance(USER_ID, alice.id, 1, [
                {"date": date(2024, 1, 2), "status": "P"},
                {"date": date(2024, 1, 3), "status": status},
            ])

        # Failed replace leaves the previous day-set in place
        stored = await service.get_daily_attendance(USER_ID, key)
        assert [r.date for r in stored] == [date(2024, 1, 1)]

    async def test_date_outside_week(self, db, alice):
        with pytest.raises(ValidationError) as exc_info:
            await DailyAttendanceService(db).save_daily_attendance(USER_ID, alice.id, 1, [
                {"date": date(2024, 1, 9), "status": "P"},
            ])

        assert exc_info.value.code == "INVALID_DATE"

    async def test_duplicate_date(self, db, alice):
        with pytest.raises(ValidationError):
            await DailyAttendanceService(db).save_daily_attendance(USER_ID, alice.id, 1, [
                {"date": date(2024, 1, 2), "status": "P"},
                {"date": date(2024, 1, 2), "status": "A"},
            ])

    async def test_day_of_week_derived_from_date(self, db, alice):
        service = DailyAttendanceService(db)

        await service.save_daily_attendance(USER_ID, alice.id, 1, [
            {"date": date(2024, 1, 2), "day_of_week": "tuesday", "status": "P"},
        ])

        stored = await service.get_daily_attendance(USER_ID, availability_key(alice.id, 1))
        assert stored[0].day_of_week == "Tuesday"

    async def test_day_of_week_must_match_date(self, db, alice):
        with pytest.raises(ValidationError) as exc_info:
            await DailyAttendanceService(db).save_daily_attendance(USER_ID, alice.id, 1, [
                {"date": date(2024, 1, 2), "day_of_week": "Friday", "status": "P"},
            ])

        assert exc_info.value.code == "INVALID_DAY_OF_WEEK"

    async def test_unknown_week(self, db, alice):
        with pytest.raises(InvalidWeekError):
            await DailyAttendanceService(db).save_daily_attendance(USER_ID, alice.id, 5, week_one("P"))

    async def test_unknown_member(self, db):
        with pytest.raises(MemberNotFoundError):
            await DailyAttendanceService(db).save_daily_attendance(USER_ID, "missing", 1, week_one("P"))

    async def test_malformed_availability_id(self, db):
        with pytest.raises(NotFoundError):
            await DailyAttendanceService(db).get_daily_attendance(USER_ID, "not-a-key")

    async def test_access_denied(self, db, alice):
        service = DailyAttendanceService(db)

        with pytest.raises(AccessDeniedError):
            await service.save_daily_attendance(OUTSIDER_ID, alice.id, 1, week_one("P"))

        result = await db.execute(select(func.count()).select_from(DailyAttendance))
        assert result.scalar_one() == 0

    async def test_does_not_feed_other_layers(self, db, iteration, alice):
        await WeeklyAvailabilityService(db).save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 1, "availability_percent": 100},
        ])

        await DailyAttendanceService(db).save_daily_attendance(
            USER_ID, alice.id, 1, week_one("A", "A", "A", "A", "A")
        )

        weekly = await WeeklyAvailabilityService(db).get_weekly_availability(USER_ID, iteration.id)
        assert weekly[0].days_present == 5
        assert (await MemberService(db).get_member(USER_ID, alice.id)).effective_capacity_days == 6.4


class TestReconcileWeek:
    """Tests for the explicit attendance-to-weekly reconciliation."""

    async def test_derives_weekly_row_from_attendance(self, db, iteration, alice):
        attendance = DailyAttendanceService(db)
        await attendance.save_daily_attendance(USER_ID, alice.id, 1, week_one("P", "P", "A", "P", "A"))

        row = await attendance.reconcile_week(USER_ID, alice.id, 1)

        assert row.days_present == 3
        assert row.days_total == 5
        assert row.availability_percent == 60
        assert row.iteration_id == iteration.id

    async def test_overwrites_existing_weekly_row(self, db, iteration, alice):
        weekly = WeeklyAvailabilityService(db)
        await weekly.save_weekly_availability(USER_ID, iteration.id, [
            {"member_id": alice.id, "week_index": 1, "availability_percent": 100},
        ])
        attendance = DailyAttendanceService(db)
        await attendance.save_daily_attendance(USER_ID, alice.id, 1, week_one("P", "A", "A", "A"))

        await attendance.reconcile_week(USER_ID, alice.id, 1)

        rows = await weekly.get_weekly_availability(USER_ID, iteration.id)
        assert len(rows) == 1
        assert (rows[0].days_present, rows[0].days_total, rows[0].availability_percent) == (1, 4, 25)
        assert (await MemberService(db).get_member(USER_ID, alice.id)).effective_capacity_days == 6.4

    async def test_requires_attendance(self, db, alice):
        with pytest.raises(ValidationError) as exc_info:
            await DailyAttendanceService(db).reconcile_week(USER_ID, alice.id, 1)

        assert exc_info.value.code == "NO_ATTENDANCE"
