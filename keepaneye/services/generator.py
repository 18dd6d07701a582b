"""ScheduleGenerator - テンプレートから日付ごとのスケジュールを生成する

日付ごとに独立して処理する:
1. 有効でないテンプレートに紐づく未編集スケジュール（孤児）を削除
2. 有効なテンプレートを展開し、まだ無いスケジュールだけを作成

同じ日付で再実行しても重複は作られない（テンプレート×日付で最大1件）。
日付をまたいだトランザクションは張らない。途中の日付で StoreError が発生した場合、
それ以前の日付の結果はコミット済みのまま残り、同じ日付リストで再実行すれば収束する。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from keepaneye.domain.models import (
    GenerationResult,
    RecurrenceRule,
    ScheduleInstance,
    ScheduleStatus,
)
from keepaneye.domain.ports import InstanceStore, RuleStore
from keepaneye.domain.recurrence import (
    at_time_of_day,
    day_bounds,
    should_occur,
    validate_rule,
)

logger = logging.getLogger(__name__)


class ScheduleGenerator:
    """
    子供の有効テンプレートを指定日に展開し、差分だけを書き込む。

    編集済み（has_been_modified）のスケジュールは削除も置換もしない。
    テンプレートに紐づかないアドホック予定には一切触れない。
    """

    def __init__(self, rule_store: RuleStore, instance_store: InstanceStore) -> None:
        """
        Args:
            rule_store: テンプレートの読み込み元
            instance_store: スケジュールの読み書き先
        """
        self._rules = rule_store
        self._instances = instance_store

    def generate(
        self,
        child_id: str,
        dates: Iterable[date],
        created_by: str | None = None,
    ) -> list[GenerationResult]:
        """
        指定日のスケジュールを生成する。

        Args:
            child_id: 子供ID
            dates: 対象日のリスト
            created_by: 作成者のユーザーID（監査用）

        Returns:
            list[GenerationResult]: (日付, テンプレート) ごとの作成/既存の結果

        Raises:
            InvalidRecurrenceError: 有効なテンプレートの曜日・頻度データが不正な場合
            StoreError: 永続化に失敗した場合（それ以前の日付はコミット済み）
        """
        all_rules = self._rules.list_rules(child_id)
        active = [r for r in all_rules if r.is_active]
        for rule in active:
            validate_rule(rule)

        active_ids = {r.id for r in active}
        known_ids = {r.id for r in all_rules}
        logger.info(
            "Generating schedules: child=%s, active_rules=%d, total_rules=%d",
            child_id,
            len(active),
            len(all_rules),
        )

        results: list[GenerationResult] = []
        for day in dates:
            results.extend(
                self._generate_day(child_id, day, active, active_ids, known_ids, created_by)
            )

        created = sum(1 for r in results if r.created)
        logger.info(
            "Generation complete: child=%s, created=%d, existing=%d",
            child_id,
            created,
            len(results) - created,
        )
        return results

    def _generate_day(
        self,
        child_id: str,
        day: date,
        active: list[RecurrenceRule],
        active_ids: set[str],
        known_ids: set[str],
        created_by: str | None,
    ) -> list[GenerationResult]:
        start, end = day_bounds(day)

        self._sweep_orphans(child_id, day, active_ids, known_ids)

        results: list[GenerationResult] = []
        for rule in active:
            if not should_occur(rule, day):
                continue

            # 冪等性チェック: 編集済みも含め、既にあればその枠は埋まっている
            existing = self._instances.find_instance_for_rule(
                child_id, rule.id, start, end
            )
            if existing is not None:
                logger.debug(
                    "Skipped '%s' on %s: schedule %s exists (modified=%s)",
                    rule.title,
                    day,
                    existing.id,
                    existing.has_been_modified,
                )
                results.append(
                    GenerationResult(
                        date=day, rule_id=rule.id, instance_id=existing.id, created=False
                    )
                )
                continue

            instance_id = self._instances.add_instance(
                self._instance_from_rule(rule, day, created_by)
            )
            logger.debug("Created '%s' on %s: schedule %s", rule.title, day, instance_id)
            results.append(
                GenerationResult(
                    date=day, rule_id=rule.id, instance_id=instance_id, created=True
                )
            )
        return results

    def _sweep_orphans(
        self, child_id: str, day: date, active_ids: set[str], known_ids: set[str]
    ) -> None:
        """有効でないテンプレートに紐づく未編集スケジュールを削除する"""
        start, end = day_bounds(day)
        unmodified = self._instances.list_instances(child_id, start, end, modified=False)
        orphans = [
            i for i in unmodified if i.rule_id is not None and i.rule_id not in active_ids
        ]
        if not orphans:
            return

        dangling = sum(1 for i in orphans if i.rule_id not in known_ids)
        deleted = self._instances.delete_instances([i.id for i in orphans])
        logger.info(
            "Cleaned up %d orphaned schedules for %s (inactive rule=%d, unknown rule=%d)",
            deleted,
            day,
            len(orphans) - dangling,
            dangling,
        )

    @staticmethod
    def _instance_from_rule(
        rule: RecurrenceRule, day: date, created_by: str | None
    ) -> ScheduleInstance:
        """テンプレートの内容を作成時点のスナップショットとしてコピーする"""
        return ScheduleInstance(
            id="",
            child_id=rule.child_id,
            rule_id=rule.id,
            type=rule.type,
            title=rule.title,
            description=rule.description,
            notes=rule.notes,
            scheduled_time=at_time_of_day(day, rule.time_of_day),
            status=ScheduleStatus.SCHEDULED,
            has_been_modified=False,
            created_by=created_by,
        )
