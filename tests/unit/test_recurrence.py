"""繰り返しルール展開のテスト"""

from datetime import date, datetime, time, timedelta

import pytest
from conftest import MONDAY, make_rule
from keepaneye.domain.errors import InvalidRecurrenceError
from keepaneye.domain.models import Frequency
from keepaneye.domain.recurrence import (
    day_bounds,
    parse_frequency,
    parse_time_of_day,
    should_occur,
    validate_rule,
    validate_weekdays,
    weekday_number,
)


class TestWeekdayNumber:
    """曜日番号（日曜=1 .. 土曜=7）のテスト"""

    def test_sunday_is_one(self):
        assert weekday_number(date(2026, 10, 18)) == 1

    def test_monday_is_two(self):
        assert weekday_number(MONDAY) == 2

    def test_saturday_is_seven(self):
        assert weekday_number(date(2026, 10, 24)) == 7

    def test_full_week_covers_one_to_seven(self):
        """日曜から土曜までの7日間で 1..7 が順に現れる"""
        sunday = date(2026, 10, 18)
        numbers = [weekday_number(sunday + timedelta(days=i)) for i in range(7)]
        assert numbers == [1, 2, 3, 4, 5, 6, 7]


class TestDayBounds:
    def test_bounds_are_midnight_to_next_midnight(self):
        start, end = day_bounds(MONDAY)
        assert start == datetime(2026, 10, 19, 0, 0)
        assert end == datetime(2026, 10, 20, 0, 0)


class TestShouldOccur:
    """should_occur のテスト"""

    def test_daily_always_occurs(self):
        rule = make_rule("R1", Frequency.DAILY)
        for i in range(31):
            assert should_occur(rule, MONDAY + timedelta(days=i)) is True

    def test_weekly_monday_over_14_days(self):
        """weekday=2 のテンプレートは14日間のうち月曜だけ発生する"""
        rule = make_rule("R1", Frequency.WEEKLY, weekday=2)
        start = date(2026, 10, 18)
        for i in range(14):
            day = start + timedelta(days=i)
            assert should_occur(rule, day) is (day.weekday() == 0), day

    def test_weekly_without_weekday_falls_back_to_created_at(self):
        """weekday 未設定なら作成日の曜日で判定する"""
        # 2026-09-01 は火曜日
        rule = make_rule(
            "R1", Frequency.WEEKLY, weekday=None, created_at=datetime(2026, 9, 1, 9, 0)
        )
        assert should_occur(rule, date(2026, 10, 20)) is True
        assert should_occur(rule, MONDAY) is False

    def test_monthly_matches_day_of_month(self):
        rule = make_rule("R1", Frequency.MONTHLY, created_at=datetime(2026, 9, 19, 10, 0))
        assert should_occur(rule, MONDAY) is True
        assert should_occur(rule, date(2026, 10, 20)) is False

    def test_monthly_created_on_31st_skips_short_months(self):
        """31日作成の月次テンプレートは31日の無い月には発生しない（切り詰めない）"""
        rule = make_rule("R1", Frequency.MONTHLY, created_at=datetime(2026, 8, 31, 10, 0))
        november = [date(2026, 11, 1) + timedelta(days=i) for i in range(30)]
        assert not any(should_occur(rule, d) for d in november)
        february = [date(2027, 2, 1) + timedelta(days=i) for i in range(28)]
        assert not any(should_occur(rule, d) for d in february)
        assert should_occur(rule, date(2026, 10, 31)) is True


class TestParseTimeOfDay:
    def test_parses_hh_mm_ss(self):
        assert parse_time_of_day("09:30:15") == time(9, 30, 15)

    def test_parses_hh_mm(self):
        assert parse_time_of_day("19:00") == time(19, 0)

    @pytest.mark.parametrize("value", ["", "9am", "25:00:00", "12:60:00", "12:00:00:00", None])
    def test_invalid_values_raise(self, value):
        with pytest.raises(InvalidRecurrenceError):
            parse_time_of_day(value)


class TestValidation:
    def test_parse_frequency_rejects_unknown(self):
        with pytest.raises(InvalidRecurrenceError):
            parse_frequency("yearly")

    def test_parse_frequency_accepts_known(self):
        assert parse_frequency("weekly") is Frequency.WEEKLY

    @pytest.mark.parametrize("weekday", [0, 8, -1])
    def test_rule_with_out_of_range_weekday_is_rejected(self, weekday):
        rule = make_rule("R1", Frequency.WEEKLY, weekday=weekday)
        with pytest.raises(InvalidRecurrenceError):
            validate_rule(rule)

    def test_monthly_rule_without_created_at_is_rejected(self):
        rule = make_rule("R1", Frequency.MONTHLY, created_at=None)
        with pytest.raises(InvalidRecurrenceError):
            validate_rule(rule)

    def test_weekly_rule_without_weekday_and_created_at_is_rejected(self):
        rule = make_rule("R1", Frequency.WEEKLY, weekday=None, created_at=None)
        with pytest.raises(InvalidRecurrenceError):
            validate_rule(rule)

    def test_daily_rule_without_created_at_is_valid(self):
        validate_rule(make_rule("R1", Frequency.DAILY, created_at=None))

    def test_validate_weekdays_rejects_out_of_range(self):
        with pytest.raises(InvalidRecurrenceError):
            validate_weekdays([2, 9])
