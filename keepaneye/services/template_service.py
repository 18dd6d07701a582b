"""TemplateService - テンプレートの一覧と一括アップサート"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, time
from typing import Any

from keepaneye.domain.models import (
    Frequency,
    RecurrenceRule,
    TemplateItem,
    UpsertResult,
)
from keepaneye.domain.ports import RuleStore
from keepaneye.domain.recurrence import (
    parse_frequency,
    parse_time_of_day,
    validate_weekday,
)

logger = logging.getLogger(__name__)


class TemplateService:
    """
    (child_id, type, title, frequency, weekday, time_of_day) を自然キーとして
    テンプレートを作成・再有効化・更新する。
    """

    def __init__(
        self, rule_store: RuleStore, now: Callable[[], datetime] = datetime.now
    ) -> None:
        self._rules = rule_store
        self._now = now

    def list_active(self, child_id: str) -> list[RecurrenceRule]:
        """有効なテンプレートを 頻度→曜日→時刻 の順で返す（曜日なしは末尾）"""
        rules = self._rules.list_rules(child_id, active_only=True)
        return sorted(
            rules,
            key=lambda r: (
                r.frequency.value,
                r.weekday is None,
                r.weekday or 0,
                r.time_of_day,
            ),
        )

    def bulk_upsert(
        self,
        child_id: str,
        items: Sequence[TemplateItem],
        created_by: str | None = None,
    ) -> list[UpsertResult]:
        """
        テンプレートを一括で登録する。

        - 同じキーの無効テンプレートがあれば再有効化し、description/notes を更新
        - 同じキーの有効テンプレートがあれば、指定された description/notes のみ更新
        - 無ければ新規作成

        Raises:
            InvalidRecurrenceError: frequency / weekday / time_of_day が不正な場合
        """
        # 書き込む前に全項目を検証する
        parsed = [self._parse_item(item) for item in items]

        results: list[UpsertResult] = []
        for item, (frequency, time_of_day) in zip(items, parsed):
            existing = self._rules.find_rule_by_key(
                child_id, item.type, item.title, frequency, item.weekday, time_of_day
            )
            if existing is None:
                now = self._now()
                rule_id = self._rules.create_rule(
                    RecurrenceRule(
                        id="",
                        child_id=child_id,
                        type=item.type,
                        title=item.title,
                        description=item.description,
                        notes=item.notes,
                        time_of_day=time_of_day,
                        frequency=frequency,
                        weekday=item.weekday,
                        is_active=True,
                        created_at=now,
                        updated_at=now,
                        created_by=created_by,
                    )
                )
                results.append(UpsertResult(id=rule_id, created=True))
                continue

            changes: dict[str, Any] = {}
            if not existing.is_active:
                changes = {
                    "is_active": True,
                    "description": item.description
                    if item.description is not None
                    else existing.description,
                    "notes": item.notes if item.notes is not None else existing.notes,
                }
            else:
                if item.description is not None:
                    changes["description"] = item.description
                if item.notes is not None:
                    changes["notes"] = item.notes
            if changes:
                self._rules.update_rule(existing.id, changes)
            results.append(UpsertResult(id=existing.id, created=False))

        logger.info(
            "Upserted templates: child=%s, created=%d, existing=%d",
            child_id,
            sum(1 for r in results if r.created),
            sum(1 for r in results if not r.created),
        )
        return results

    @staticmethod
    def _parse_item(item: TemplateItem) -> tuple[Frequency, time]:
        frequency = parse_frequency(item.frequency)
        validate_weekday(item.weekday)
        return frequency, parse_time_of_day(item.time_of_day)
