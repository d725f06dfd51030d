from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import select, delete

from ..core.exceptions import InvalidPayloadError, InvalidStatusError, NotFoundError, ValidationError
from ..models.availability import (
    DailyAttendance,
    WeeklyAvailability,
    availability_key,
    split_availability_key,
)
from .availability_service import WeeklyAvailabilityEntry, WeeklyAvailabilityService
from .base_service import CapacityBaseService
from .calendar import day_name, week_bounds
from .capacity import round_half_up

# Type aliases
MemberId = str
UserId = str

PRESENT = "P"
ABSENT = "A"
STATUSES = (PRESENT, ABSENT)


class AttendanceRecord(BaseModel):
    date: Date
    day_of_week: Optional[str] = None
    status: str


class AttendanceSaveResult(BaseModel):
    availability_id: str
    saved_count: int = Field(ge=0)


class DailyAttendanceService(CapacityBaseService):
    """
    Present/absent ledger per calendar date for one member-week.

    Saving a week replaces its whole day-set. The ledger is independent of
    weekly availability and member capacity; ``reconcile_week`` is the only
    path that carries it into the weekly layer, and only when called.
    """

    async def save_daily_attendance(
        self,
        user_id: UserId,
        member_id: MemberId,
        week_index: int,
        records: List[Any]
    ) -> AttendanceSaveResult:
        """Replace a member-week's attendance with ``records``."""

        if records is None:
            raise InvalidPayloadError("Attendance records are required")

        async with self._transaction("Daily attendance save"):
            member, iteration = await self._get_member_with_iteration(member_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            week = week_bounds(iteration.start_date, iteration.end_date, week_index)
            parsed = self._validate_records(records, week.week_start, week.week_end)
            key = availability_key(member.id, week_index)

            await self.db.execute(
                delete(DailyAttendance).where(DailyAttendance.availability_id == key)
            )
            for record in parsed:
                self.db.add(DailyAttendance(
                    availability_id=key,
                    member_id=member.id,
                    week_index=week_index,
                    date=record.date,
                    day_of_week=day_name(record.date),
                    status=record.status
                ))
            await self.db.flush()

        self._logger.info("Saved %d attendance records for %s", len(parsed), key)
        return AttendanceSaveResult(availability_id=key, saved_count=len(parsed))

    async def get_daily_attendance(self, user_id: UserId, availability_id: str) -> List[DailyAttendance]:
        """Attendance of one member-week ordered by date."""

        parts = split_availability_key(availability_id)
        if parts is None:
            raise NotFoundError(f"Availability {availability_id} not found")

        member, iteration = await self._get_member_with_iteration(parts[0])
        await self._authorize(user_id, iteration.project_id)

        stmt = (
            select(DailyAttendance)
            .where(DailyAttendance.availability_id == availability_id)
            .order_by(DailyAttendance.date)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def reconcile_week(self, user_id: UserId, member_id: MemberId, week_index: int) -> WeeklyAvailability:
        """Derive the weekly availability row from the recorded attendance.

        days_present is the number of P days, days_total the number of
        recorded days. Member capacity is left untouched.
        """

        async with self._transaction("Weekly reconciliation"):
            member, iteration = await self._get_member_with_iteration(member_id, lock=True)
            await self._authorize(user_id, iteration.project_id)
            week = week_bounds(iteration.start_date, iteration.end_date, week_index)

            result = await self.db.execute(
                select(DailyAttendance.status)
                .where(DailyAttendance.availability_id == availability_key(member.id, week_index))
            )
            statuses = list(result.scalars().all())
            if not statuses:
                raise ValidationError(
                    f"No attendance recorded for member {member_id} in week {week_index}",
                    code="NO_ATTENDANCE"
                )

            present = statuses.count(PRESENT)
            entry = WeeklyAvailabilityEntry(
                member_id=member.id,
                week_index=week.week_index,
                availability_percent=int(round_half_up(Decimal(present * 100) / Decimal(len(statuses)))),
                days_present=present,
                days_total=len(statuses)
            )
            weekly = WeeklyAvailabilityService(self.db, self.access_policy)
            row = await weekly.upsert_week(iteration.id, entry)

        await self.db.refresh(row)
        self._logger.info(
            "Reconciled week %d of member %s: %d/%d days present", week_index, member_id, present, len(statuses)
        )
        return row

    # Private methods

    def _validate_records(self, records: List[Any], week_start: Date, week_end: Date) -> List[AttendanceRecord]:
        parsed: List[AttendanceRecord] = []
        seen = set()

        for raw in records:
            record = raw
            if not isinstance(raw, AttendanceRecord):
                if not isinstance(raw, dict):
                    raise InvalidPayloadError(f"Attendance record must be an object, got {raw!r}")
                if raw.get("status") not in STATUSES:
                    raise InvalidStatusError(f"Status must be 'P' or 'A', got {raw.get('status')!r}")
                try:
                    record = AttendanceRecord.model_validate(raw)
                except ValueError as e:
                    raise InvalidPayloadError(f"Invalid attendance record: {e}")

            if record.status not in STATUSES:
                raise InvalidStatusError(f"Status must be 'P' or 'A', got {record.status!r}")
            if not week_start <= record.date <= week_end:
                raise ValidationError(
                    f"Date {record.date} is outside the week {week_start} - {week_end}",
                    code="INVALID_DATE"
                )
            weekday = day_name(record.date)
            if record.day_of_week is not None and record.day_of_week.strip().lower() != weekday.lower():
                raise ValidationError(
                    f"Date {record.date} is a {weekday}, not {record.day_of_week}",
                    code="INVALID_DAY_OF_WEEK"
                )
            if record.date in seen:
                raise ValidationError(f"Date {record.date} appears more than once", code="DUPLICATE_DATE")
            seen.add(record.date)
            parsed.append(record)

        return parsed
