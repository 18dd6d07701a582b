"""繰り返しルールの展開 - テンプレートと日付から発生有無を判定する純粋関数群

曜日番号は 0始まり・日曜起点のインデックスに 1 を足したもの（日曜=1 .. 土曜=7）。
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from keepaneye.domain.errors import InvalidRecurrenceError
from keepaneye.domain.models import Frequency, RecurrenceRule

SUNDAY = 1
SATURDAY = 7


def weekday_number(day: date) -> int:
    """日付の曜日番号（日曜=1 .. 土曜=7）を返す"""
    # isoweekday: 月曜=1 .. 日曜=7 → 日曜起点の 0..6 に直してから +1
    return day.isoweekday() % 7 + 1


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """その日の [00:00, 翌日00:00) を返す"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def at_time_of_day(day: date, time_of_day: time) -> datetime:
    return datetime.combine(day, time_of_day)


def parse_time_of_day(value: str) -> time:
    """
    "HH:MM:SS"（または "HH:MM"）を time に変換する。

    Raises:
        InvalidRecurrenceError: 形式・範囲が不正な場合
    """
    parts = (value or "").strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise InvalidRecurrenceError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    try:
        return time(hour, minute, second)
    except ValueError as e:
        raise InvalidRecurrenceError(f"Invalid time of day: {value!r}") from e


def format_time_of_day(value: time) -> str:
    return value.strftime("%H:%M:%S")


def parse_frequency(value: str) -> Frequency:
    try:
        return Frequency(value)
    except ValueError as e:
        raise InvalidRecurrenceError(f"Invalid frequency: {value!r}") from e


def validate_weekday(weekday: int | None) -> None:
    if weekday is None:
        return
    if isinstance(weekday, bool) or not isinstance(weekday, int):
        raise InvalidRecurrenceError(f"Invalid weekday: {weekday!r}")
    if not SUNDAY <= weekday <= SATURDAY:
        raise InvalidRecurrenceError(f"Weekday out of range 1..7: {weekday}")


def validate_weekdays(weekdays: Iterable[int]) -> None:
    for weekday in weekdays:
        if weekday is None:
            raise InvalidRecurrenceError("Weekday must not be null")
        validate_weekday(weekday)


def validate_rule(rule: RecurrenceRule) -> None:
    """
    展開前にテンプレートを検証する。不正なデータを推測で補正せず即座に失敗させる。

    Raises:
        InvalidRecurrenceError: weekday が範囲外、または判定に必要な created_at が無い場合
    """
    validate_weekday(rule.weekday)
    needs_created_at = rule.frequency is Frequency.MONTHLY or (
        rule.frequency is Frequency.WEEKLY and rule.weekday is None
    )
    if needs_created_at and rule.created_at is None:
        raise InvalidRecurrenceError(
            f"Rule {rule.id} ({rule.frequency.value}) has no weekday and no created_at"
        )


def should_occur(rule: RecurrenceRule, day: date) -> bool:
    """
    テンプレートが指定日に発生するかを判定する。

    - daily: 常に True
    - weekly: 曜日番号が rule.weekday と一致。weekday 未設定の古いテンプレートは
      作成日の曜日で判定する
    - monthly: 日が作成日の日と一致。月末の切り詰めはしない
      （31日に作成したテンプレートは31日の無い月には発生しない）
    """
    if rule.frequency is Frequency.DAILY:
        return True

    if rule.frequency is Frequency.WEEKLY:
        target = rule.weekday
        if target is None:
            target = weekday_number(rule.created_at.date())
        return weekday_number(day) == target

    if rule.frequency is Frequency.MONTHLY:
        return day.day == rule.created_at.day

    return False
