from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from sqlalchemy import select

from ..config import get_settings
from ..core.exceptions import InvalidPayloadError, ValidationError
from ..models.availability import WeeklyAvailability
from ..models.iteration import Iteration
from ..models.member import Member
from .base_service import CapacityBaseService
from .calendar import DAYS_IN_WEEK, week_count
from .capacity import days_present_for, validate_availability

# Type aliases
IterationId = str
UserId = str
WeekKey = Tuple[int, str]

settings = get_settings()


class WeeklyAvailabilityEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    member_id: str
    week_index: StrictInt
    availability_percent: StrictInt
    days_present: Optional[StrictInt] = None
    days_total: Optional[StrictInt] = None
    notes: Optional[str] = None


class SaveResult(BaseModel):
    updated_count: int = Field(ge=0)


class WeeklyAvailabilityService(CapacityBaseService):
    """
    Per-member, per-week availability overrides.

    Rows are unique on (iteration, week, member): saving the same key again
    updates the stored row. They refine, and never rewrite, member capacity.
    """

    async def save_weekly_availability(
        self,
        user_id: UserId,
        iteration_id: IterationId,
        entries: List[Any]
    ) -> SaveResult:
        """Upsert a batch of weekly entries; all of them are written or none."""

        if not entries:
            raise InvalidPayloadError("Availability data is required and must be a non-empty list")

        async with self._transaction("Weekly availability save"):
            iteration = await self._get_iteration(iteration_id, lock=True)
            await self._authorize(user_id, iteration.project_id)

            parsed = [self._parse_entry(entry) for entry in entries]
            await self._validate_entries(iteration, parsed)

            # Later entries for the same key win
            batch: Dict[WeekKey, WeeklyAvailabilityEntry] = {}
            for entry in parsed:
                batch[(entry.week_index, entry.member_id)] = entry

            existing = await self._existing_rows(iteration_id)
            for key, entry in batch.items():
                self._apply(iteration_id, entry, existing.get(key))
            await self.db.flush()

        self._logger.info(
            "Saved %d weekly availability rows for iteration %s", len(batch), iteration_id
        )
        return SaveResult(updated_count=len(batch))

    async def get_weekly_availability(
        self,
        user_id: UserId,
        iteration_id: IterationId
    ) -> List[WeeklyAvailability]:
        """Weekly rows of an iteration ordered by week index."""

        iteration = await self._get_iteration(iteration_id)
        await self._authorize(user_id, iteration.project_id)

        stmt = (
            select(WeeklyAvailability)
            .where(WeeklyAvailability.iteration_id == iteration_id)
            .order_by(WeeklyAvailability.week_index, WeeklyAvailability.member_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def upsert_week(
        self,
        iteration_id: IterationId,
        entry: WeeklyAvailabilityEntry
    ) -> WeeklyAvailability:
        """Upsert one row inside the caller's transaction."""

        stmt = select(WeeklyAvailability).where(
            WeeklyAvailability.iteration_id == iteration_id,
            WeeklyAvailability.week_index == entry.week_index,
            WeeklyAvailability.member_id == entry.member_id
        )
        result = await self.db.execute(stmt)
        row = self._apply(iteration_id, entry, result.scalar_one_or_none())
        await self.db.flush()
        return row

    # Private methods

    def _parse_entry(self, entry: Any) -> WeeklyAvailabilityEntry:
        if isinstance(entry, WeeklyAvailabilityEntry):
            return entry
        if not isinstance(entry, dict):
            raise InvalidPayloadError(f"Availability entry must be an object, got {entry!r}")

        missing = [k for k in ("member_id", "week_index", "availability_percent") if entry.get(k) is None]
        if missing:
            raise InvalidPayloadError(f"Availability entry missing fields: {', '.join(missing)}")
        validate_availability(entry["availability_percent"])
        try:
            return WeeklyAvailabilityEntry.model_validate(entry)
        except ValueError as e:
            raise InvalidPayloadError(f"Invalid availability entry: {e}")

    async def _validate_entries(self, iteration: Iteration, entries: List[WeeklyAvailabilityEntry]) -> None:
        weeks = week_count(iteration.start_date, iteration.end_date)

        result = await self.db.execute(
            select(Member.id).where(Member.iteration_id == iteration.id)
        )
        member_ids = set(result.scalars().all())

        for entry in entries:
            if entry.member_id not in member_ids:
                raise ValidationError(
                    f"Member {entry.member_id} does not belong to iteration {iteration.id}",
                    code="MEMBER_NOT_IN_ITERATION"
                )
            if not 1 <= entry.week_index <= weeks:
                raise ValidationError(
                    f"Week {entry.week_index} is outside the iteration (1-{weeks})",
                    code="INVALID_WEEK"
                )
            validate_availability(entry.availability_percent)

            days_total = entry.days_total if entry.days_total is not None else settings.days_per_week
            if not 0 < days_total <= DAYS_IN_WEEK:
                raise ValidationError(f"days_total must be between 1 and {DAYS_IN_WEEK}, got {days_total}")
            if entry.days_present is not None and not 0 <= entry.days_present <= days_total:
                raise ValidationError(
                    f"days_present must be between 0 and {days_total}, got {entry.days_present}"
                )

    async def _existing_rows(self, iteration_id: IterationId) -> Dict[WeekKey, WeeklyAvailability]:
        result = await self.db.execute(
            select(WeeklyAvailability).where(WeeklyAvailability.iteration_id == iteration_id)
        )
        return {(row.week_index, row.member_id): row for row in result.scalars().all()}

    def _apply(
        self,
        iteration_id: IterationId,
        entry: WeeklyAvailabilityEntry,
        row: Optional[WeeklyAvailability]
    ) -> WeeklyAvailability:
        days_total = entry.days_total if entry.days_total is not None else settings.days_per_week
        days_present = entry.days_present
        if days_present is None:
            days_present = days_present_for(entry.availability_percent, days_total)
        notes = entry.notes.strip() if entry.notes and entry.notes.strip() else None

        if row is None:
            row = WeeklyAvailability(
                iteration_id=iteration_id,
                member_id=entry.member_id,
                week_index=entry.week_index
            )
            self.db.add(row)

        row.availability_percent = entry.availability_percent
        row.days_present = days_present
        row.days_total = days_total
        row.notes = notes
        return row
