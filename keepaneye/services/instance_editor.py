"""InstanceEditor - 個別スケジュールの参照・編集・削除"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from keepaneye.domain.errors import NotFoundError
from keepaneye.domain.models import InstanceEdit, ScheduleInstance
from keepaneye.domain.ports import InstanceStore
from keepaneye.domain.recurrence import day_bounds

logger = logging.getLogger(__name__)


class InstanceEditor:
    """
    ユーザーによるスケジュールの手動操作。

    title/description/scheduled_time/notes を変更すると has_been_modified が立ち、
    以降の生成・置換処理からは保護される。status だけの変更は編集扱いにしない。
    """

    def __init__(self, instance_store: InstanceStore) -> None:
        self._instances = instance_store

    def get(self, instance_id: str) -> ScheduleInstance:
        instance = self._instances.get_instance(instance_id)
        if instance is None:
            raise NotFoundError(f"Schedule not found: {instance_id}")
        return instance

    def list_for_day(self, child_id: str, day: date) -> list[ScheduleInstance]:
        """その日のスケジュールを時刻順で返す"""
        start, end = day_bounds(day)
        return self._instances.list_instances(child_id, start, end)

    def edit(self, instance_id: str, edit: InstanceEdit) -> ScheduleInstance:
        """
        スケジュールを部分更新する。

        初めて内容が編集されたとき、編集前の title/description を
        original_title/original_description に記録する（差分表示用）。

        Raises:
            NotFoundError: スケジュールが存在しない場合
        """
        current = self.get(instance_id)

        changes: dict[str, Any] = {}
        if edit.title is not None:
            changes["title"] = edit.title
        if edit.description is not None:
            changes["description"] = edit.description
        if edit.status is not None:
            changes["status"] = edit.status
        if edit.notes is not None:
            changes["notes"] = edit.notes
        if edit.scheduled_time is not None:
            changes["scheduled_time"] = edit.scheduled_time
        for field_name in edit.cleared:
            changes[field_name] = None

        if edit.touches_content:
            changes["has_been_modified"] = True
            if not current.has_been_modified:
                changes["original_title"] = current.title
                changes["original_description"] = current.description

        if not changes:
            return current

        updated = self._instances.update_instance(instance_id, changes)
        logger.info(
            "Updated schedule %s (modified=%s)", instance_id, updated.has_been_modified
        )
        return updated

    def delete(self, instance_id: str) -> None:
        """
        Raises:
            NotFoundError: スケジュールが存在しない場合
        """
        self.get(instance_id)
        self._instances.delete_instances([instance_id])
        logger.info("Deleted schedule %s", instance_id)
