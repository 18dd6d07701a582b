"""インメモリ Store Adapter

RuleStore と InstanceStore の dict 実装。
SCHEDULE_STORE=memory のローカル開発とテストで使う。プロセス再起動で消える。
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, time
from typing import Any

from keepaneye.domain.errors import NotFoundError
from keepaneye.domain.models import Frequency, RecurrenceRule, ScheduleInstance
from keepaneye.domain.ports import InstanceStore, RuleStore

logger = logging.getLogger(__name__)


class InMemoryRuleStore(RuleStore):
    """dict を使った RuleStore 実装"""

    def __init__(self, rules: Sequence[RecurrenceRule] = ()) -> None:
        self._rules: dict[str, RecurrenceRule] = {r.id: r for r in rules}

    def list_rules(
        self, child_id: str, active_only: bool = False
    ) -> list[RecurrenceRule]:
        return [
            r
            for r in self._rules.values()
            if r.child_id == child_id and (r.is_active or not active_only)
        ]

    def get_rule(self, rule_id: str) -> RecurrenceRule | None:
        return self._rules.get(rule_id)

    def find_rule_by_key(
        self,
        child_id: str,
        type: str,
        title: str,
        frequency: Frequency,
        weekday: int | None,
        time_of_day: time,
    ) -> RecurrenceRule | None:
        for r in self._rules.values():
            if (r.child_id, r.type, r.title, r.frequency, r.weekday, r.time_of_day) == (
                child_id,
                type,
                title,
                frequency,
                weekday,
                time_of_day,
            ):
                return r
        return None

    def create_rule(self, rule: RecurrenceRule) -> str:
        rule_id = rule.id or str(uuid.uuid4())
        self._rules[rule_id] = replace(rule, id=rule_id)
        logger.debug("Created template: child=%s, template_id=%s", rule.child_id, rule_id)
        return rule_id

    def update_rule(self, rule_id: str, changes: dict[str, Any]) -> None:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise NotFoundError(f"Template not found: {rule_id}")
        self._rules[rule_id] = replace(rule, updated_at=datetime.now(), **changes)

    def deactivate_rule(self, rule_id: str) -> None:
        self.update_rule(rule_id, {"is_active": False})


class InMemoryInstanceStore(InstanceStore):
    """dict を使った InstanceStore 実装"""

    def __init__(self, instances: Sequence[ScheduleInstance] = ()) -> None:
        self._instances: dict[str, ScheduleInstance] = {i.id: i for i in instances}

    def all(self) -> list[ScheduleInstance]:
        """全スケジュールを時刻順で返す（テスト・デバッグ用）"""
        return sorted(self._instances.values(), key=lambda i: i.scheduled_time)

    def get_instance(self, instance_id: str) -> ScheduleInstance | None:
        return self._instances.get(instance_id)

    def list_instances(
        self,
        child_id: str,
        start: datetime,
        end: datetime,
        modified: bool | None = None,
    ) -> list[ScheduleInstance]:
        return [
            i
            for i in self.all()
            if i.child_id == child_id
            and start <= i.scheduled_time < end
            and (modified is None or i.has_been_modified == modified)
        ]

    def find_instance_for_rule(
        self, child_id: str, rule_id: str, start: datetime, end: datetime
    ) -> ScheduleInstance | None:
        for i in self.list_instances(child_id, start, end):
            if i.rule_id == rule_id:
                return i
        return None

    def add_instance(self, instance: ScheduleInstance) -> str:
        instance_id = instance.id or str(uuid.uuid4())
        now = datetime.now()
        self._instances[instance_id] = replace(
            instance, id=instance_id, created_at=now, updated_at=now
        )
        return instance_id

    def add_instances(self, instances: Sequence[ScheduleInstance]) -> int:
        for instance in instances:
            self.add_instance(instance)
        logger.debug("Created %d schedules", len(instances))
        return len(instances)

    def update_instance(
        self, instance_id: str, changes: dict[str, Any]
    ) -> ScheduleInstance:
        instance = self._instances.get(instance_id)
        if instance is None:
            raise NotFoundError(f"Schedule not found: {instance_id}")
        updated = replace(instance, updated_at=datetime.now(), **changes)
        self._instances[instance_id] = updated
        return updated

    def delete_instances(self, instance_ids: Sequence[str]) -> int:
        deleted = 0
        for instance_id in instance_ids:
            if self._instances.pop(instance_id, None) is not None:
                deleted += 1
        if deleted:
            logger.debug("Deleted %d schedules", deleted)
        return deleted

    def delete_unmodified_in_range(
        self, child_id: str, start: datetime, end: datetime
    ) -> int:
        targets = self.list_instances(child_id, start, end, modified=False)
        return self.delete_instances([i.id for i in targets])

    def delete_instances_for_rule(self, rule_id: str) -> int:
        targets = [i.id for i in self._instances.values() if i.rule_id == rule_id]
        return self.delete_instances(targets)
