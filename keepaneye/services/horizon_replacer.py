"""HorizonReplacer - プランに基づいて将来期間のスケジュールを置き換える

テンプレートを使わない簡易フロー。期間内の未編集スケジュールを全て削除してから、
プラン項目の曜日に従ってアドホック予定（rule_id なし）を作り直す。
手で編集したスケジュールは削除対象にも作成件数にも含まれない。
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime, time, timedelta

from keepaneye.domain.models import (
    PlanItem,
    ReplaceResult,
    ScheduleInstance,
    ScheduleStatus,
)
from keepaneye.domain.ports import InstanceStore
from keepaneye.domain.recurrence import (
    at_time_of_day,
    parse_time_of_day,
    validate_weekdays,
    weekday_number,
)

logger = logging.getLogger(__name__)

DEFAULT_WEEKS = 8
MAX_WEEKS = 26
DEFAULT_BATCH_SIZE = 1000


class HorizonReplacer:
    """
    [start_date, start_date + weeks*7日) のスケジュールをプランで置き換える。

    2段階（削除→作成）はトランザクションにしない。作成の途中で失敗しても、
    同じ引数で再実行すれば削除段階が未編集分を再度消すので安全に収束する。
    """

    def __init__(
        self,
        instance_store: InstanceStore,
        default_weeks: int = DEFAULT_WEEKS,
        max_weeks: int = MAX_WEEKS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Args:
            instance_store: スケジュールの読み書き先
            default_weeks: weeks 未指定時の期間（週）
            max_weeks: 期間の上限（週）
            batch_size: 一括作成の1回あたりの件数
            today: start_date 未指定時の基準日を返す関数
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._instances = instance_store
        self._default_weeks = default_weeks
        self._max_weeks = max_weeks
        self._batch_size = batch_size
        self._today = today

    def replace(
        self,
        child_id: str,
        plan: Sequence[PlanItem],
        start_date: date | None = None,
        weeks: int | None = None,
        created_by: str | None = None,
    ) -> ReplaceResult:
        """
        期間内の未編集スケジュールを削除し、プランから作り直す。

        Args:
            child_id: 子供ID
            plan: プラン項目のリスト
            start_date: 期間の開始日（未指定なら今日）
            weeks: 期間の週数（1〜max_weeks に丸める。未指定・0以下なら default_weeks）
            created_by: 作成者のユーザーID（監査用）

        Returns:
            ReplaceResult: 削除件数と作成件数

        Raises:
            InvalidRecurrenceError: プラン項目の曜日・時刻が不正な場合（削除前に検出）
            StoreError: 永続化に失敗した場合
        """
        # 削除する前に全項目を検証する
        times = [self._validate_item(item) for item in plan]

        horizon_weeks = self.clamp_weeks(weeks)
        start = datetime.combine(start_date or self._today(), time.min)
        end = start + timedelta(days=horizon_weeks * 7)

        deleted = self._instances.delete_unmodified_in_range(child_id, start, end)
        if deleted > 0:
            logger.info(
                "Replaced plan: deleted %d non-modified schedules for child %s",
                deleted,
                child_id,
            )

        to_insert = self._expand_plan(child_id, plan, times, start.date(), end.date(), created_by)

        created = 0
        for i in range(0, len(to_insert), self._batch_size):
            created += self._instances.add_instances(to_insert[i : i + self._batch_size])

        logger.info(
            "Plan replaced: child=%s, horizon=%s..%s (%d weeks), deleted=%d, created=%d",
            child_id,
            start.date(),
            end.date(),
            horizon_weeks,
            deleted,
            created,
        )
        return ReplaceResult(deleted=deleted, created=created)

    def clamp_weeks(self, weeks: int | None) -> int:
        if weeks is None or weeks <= 0:
            return self._default_weeks
        return min(self._max_weeks, weeks)

    @staticmethod
    def _validate_item(item: PlanItem) -> time:
        validate_weekdays(item.weekdays)
        return parse_time_of_day(item.time_of_day)

    @staticmethod
    def _expand_plan(
        child_id: str,
        plan: Sequence[PlanItem],
        times: list[time],
        first_day: date,
        end_day: date,
        created_by: str | None,
    ) -> list[ScheduleInstance]:
        """期間を1日ずつ進め、曜日が一致するプラン項目のスケジュールを組み立てる"""
        instances: list[ScheduleInstance] = []
        day = first_day
        while day < end_day:
            weekday = weekday_number(day)
            for item, time_of_day in zip(plan, times):
                if weekday not in item.weekdays:
                    continue
                instances.append(
                    ScheduleInstance(
                        id="",
                        child_id=child_id,
                        rule_id=None,
                        type=item.type,
                        title=item.title,
                        description=item.description,
                        notes=item.notes,
                        scheduled_time=at_time_of_day(day, time_of_day),
                        status=ScheduleStatus.SCHEDULED,
                        has_been_modified=False,
                        created_by=created_by,
                    )
                )
            day += timedelta(days=1)
        return instances
