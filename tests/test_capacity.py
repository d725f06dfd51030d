"""
Tests for the effective capacity formula.
"""

import pytest

from app.core.exceptions import InvalidAvailabilityError, InvalidLeavesError
from app.services.capacity import (
    days_present_for,
    effective_capacity,
    validate_availability,
    validate_leaves,
)


class TestEffectiveCapacity:
    """Tests for effective_capacity."""

    def test_two_week_iteration(self):
        assert effective_capacity(10, 2, 80) == 6.4

    def test_three_week_iteration(self):
        assert effective_capacity(15, 2, 80) == 10.4

    def test_full_availability_no_leave(self):
        assert effective_capacity(10, 0, 100) == 10.0

    def test_zero_availability(self):
        assert effective_capacity(10, 0, 0) == 0.0

    def test_leaves_above_working_days_clamp_to_zero(self):
        assert effective_capacity(10, 14, 80) == 0.0

    def test_leaves_equal_working_days(self):
        assert effective_capacity(10, 10, 100) == 0.0

    def test_rounds_half_up_to_one_decimal(self):
        # (7 - 0) * 0.35 = 2.45
        assert effective_capacity(7, 0, 35) == 2.5

    def test_idempotent(self):
        assert effective_capacity(13, 3, 65) == effective_capacity(13, 3, 65)

    @pytest.mark.parametrize("working_days", [0, 1, 5, 10, 23])
    @pytest.mark.parametrize("leaves", [0, 1, 5, 30])
    @pytest.mark.parametrize("availability", [0, 33, 50, 100])
    def test_bounded_by_working_days(self, working_days, leaves, availability):
        capacity = effective_capacity(working_days, leaves, availability)

        assert 0 <= capacity <= working_days


class TestValidation:
    """Tests for capacity input validation."""

    @pytest.mark.parametrize("value", [-1, 101, 50.5, "80", None, True])
    def test_invalid_availability(self, value):
        with pytest.raises(InvalidAvailabilityError):
            validate_availability(value)

    @pytest.mark.parametrize("value", [-1, 1.5, "2", None, False])
    def test_invalid_leaves(self, value):
        with pytest.raises(InvalidLeavesError):
            validate_leaves(value)

    def test_bounds_are_inclusive(self):
        assert validate_availability(0) == 0
        assert validate_availability(100) == 100
        assert validate_leaves(0) == 0


@pytest.mark.parametrize("percent, expected", [(100, 5), (80, 4), (50, 3), (0, 0), (30, 2)])
def test_days_present_for_five_day_week(percent, expected):
    assert days_present_for(percent, 5) == expected
