"""
Tests for the proration calculator.

Covers:
- Full-month employment
- Mid-month joining and exit (inclusive day counts)
- Joining and exit in the same period
- Actual calendar month length (February, leap years)
- Zero eligible days
"""

from datetime import date
from decimal import Decimal

from payroll_engines.proration import calculate_proration
from payroll_kernel.domain.types import PayrollPeriod


class TestFullPeriod:
    """Employees employed for the whole month."""

    def test_joined_before_period(self):
        """Joining before the period gives a factor of 1."""
        result = calculate_proration(date(2020, 1, 15), None, PayrollPeriod(4, 2024))

        assert result.factor == Decimal("1")
        assert result.effective_days == 30
        assert result.total_days == 30
        assert result.is_full_period

    def test_joined_on_first_day(self):
        """Joining on the 1st counts the whole month."""
        result = calculate_proration(date(2024, 4, 1), None, PayrollPeriod(4, 2024))

        assert result.factor == Decimal("1")
        assert result.effective_start == date(2024, 4, 1)
        assert result.effective_end == date(2024, 4, 30)

    def test_exit_after_period(self):
        """An exit date after the period does not reduce pay."""
        result = calculate_proration(date(2020, 1, 1), date(2024, 6, 30), PayrollPeriod(4, 2024))

        assert result.factor == Decimal("1")


class TestPartialPeriod:
    """Mid-month joining and exit."""

    def test_mid_month_joining(self):
        """Joining on the 16th of a 30-day month is 15 days, half the month."""
        result = calculate_proration(date(2024, 4, 16), None, PayrollPeriod(4, 2024))

        assert result.effective_days == 15
        assert result.factor == Decimal("0.5")
        assert not result.is_full_period

    def test_mid_month_exit(self):
        """Exit on the 10th counts 10 days inclusive."""
        result = calculate_proration(date(2020, 1, 1), date(2024, 4, 10), PayrollPeriod(4, 2024))

        assert result.effective_days == 10
        assert result.factor == Decimal(10) / Decimal(30)

    def test_join_and_exit_same_period(self):
        """Joining and leaving in the same month gives the inclusive span."""
        result = calculate_proration(date(2024, 4, 5), date(2024, 4, 14), PayrollPeriod(4, 2024))

        assert result.effective_days == 10
        assert result.effective_start == date(2024, 4, 5)
        assert result.effective_end == date(2024, 4, 14)

    def test_single_day(self):
        """Joining and leaving on the same day is one day."""
        result = calculate_proration(date(2024, 4, 30), date(2024, 4, 30), PayrollPeriod(4, 2024))

        assert result.effective_days == 1


class TestCalendarLength:
    """The divisor is the real month length, never 30."""

    def test_thirty_one_day_month(self):
        result = calculate_proration(date(2024, 1, 17), None, PayrollPeriod(1, 2024))

        assert result.total_days == 31
        assert result.effective_days == 15

    def test_leap_february(self):
        result = calculate_proration(date(2024, 2, 15), None, PayrollPeriod(2, 2024))

        assert result.total_days == 29
        assert result.effective_days == 15

    def test_non_leap_february(self):
        result = calculate_proration(date(2023, 2, 15), None, PayrollPeriod(2, 2023))

        assert result.total_days == 28
        assert result.effective_days == 14


class TestNoEligibleDays:
    """Employment window outside the period."""

    def test_joined_after_period(self):
        """Joining after the period gives factor 0."""
        result = calculate_proration(date(2024, 5, 2), None, PayrollPeriod(4, 2024))

        assert result.factor == Decimal("0")
        assert result.effective_days == 0
        assert not result.has_eligible_days
        assert result.effective_start is None

    def test_exited_before_period(self):
        """Leaving before the period gives factor 0."""
        result = calculate_proration(date(2020, 1, 1), date(2024, 3, 31), PayrollPeriod(4, 2024))

        assert result.factor == Decimal("0")
        assert result.total_days == 30
