"""Firestore Repository Adapter

RuleStore と InstanceStore の Firestore 実装。

Firestore コレクション構造:
  schedule_templates/{templateId}   ← 繰り返しテンプレート（child_id フィールドで子供に紐づく）
  schedules/{scheduleId}            ← 日付の確定したスケジュール（template_id は null 可）

日時はタイムゾーンなしのローカル時刻をそのまま書き込む。
Firestore は naive な datetime を UTC として保存し UTC 付きで返すので、
読み出し時に tzinfo を外して元の壁時計時刻に戻す。
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, time
from typing import Any

from google.api_core.exceptions import GoogleAPICallError, NotFound, RetryError
from google.cloud import firestore

from keepaneye.domain.errors import NotFoundError, StoreError
from keepaneye.domain.models import (
    Frequency,
    RecurrenceRule,
    ScheduleInstance,
    ScheduleStatus,
)
from keepaneye.domain.ports import InstanceStore, RuleStore
from keepaneye.domain.recurrence import (
    format_time_of_day,
    parse_frequency,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)

_TEMPLATES = "schedule_templates"
_SCHEDULES = "schedules"

# Firestore の1バッチあたりの書き込み上限
_MAX_BATCH_WRITES = 500


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Firestore の API エラーを StoreError に変換する"""
    try:
        yield
    except (GoogleAPICallError, RetryError) as e:
        logger.error("Firestore %s failed: %s", operation, e)
        raise StoreError(f"Firestore {operation} failed: {e}") from e


def _naive(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


class FirestoreRuleStore(RuleStore):
    """
    Firestore を使った RuleStore 実装。

    schedule_templates コレクションを管理する。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def list_rules(
        self, child_id: str, active_only: bool = False
    ) -> list[RecurrenceRule]:
        """子供のテンプレート一覧を取得"""
        query = self._db.collection(_TEMPLATES).where("child_id", "==", child_id)
        if active_only:
            query = query.where("is_active", "==", True)
        with _store_errors("list_rules"):
            return [
                self._dict_to_rule(snap.id, snap.to_dict() or {})
                for snap in query.stream()
            ]

    def get_rule(self, rule_id: str) -> RecurrenceRule | None:
        """テンプレートを取得。存在しない場合は None を返す"""
        with _store_errors("get_rule"):
            snap = self._db.collection(_TEMPLATES).document(rule_id).get()
        if not snap.exists:
            return None
        return self._dict_to_rule(rule_id, snap.to_dict() or {})

    def find_rule_by_key(
        self,
        child_id: str,
        type: str,
        title: str,
        frequency: Frequency,
        weekday: int | None,
        time_of_day: time,
    ) -> RecurrenceRule | None:
        """自然キーで検索（無効化済みのテンプレートも対象）"""
        query = (
            self._db.collection(_TEMPLATES)
            .where("child_id", "==", child_id)
            .where("type", "==", type)
            .where("title", "==", title)
            .where("frequency", "==", frequency.value)
            .where("weekday", "==", weekday)
            .where("time_of_day", "==", format_time_of_day(time_of_day))
            .limit(1)
        )
        with _store_errors("find_rule_by_key"):
            for snap in query.stream():
                return self._dict_to_rule(snap.id, snap.to_dict() or {})
        return None

    def create_rule(self, rule: RecurrenceRule) -> str:
        """テンプレートを作成。IDを返す"""
        rule_id = rule.id or str(uuid.uuid4())
        with _store_errors("create_rule"):
            self._db.collection(_TEMPLATES).document(rule_id).set(
                self._rule_to_dict(rule)
            )
        logger.info("Created template: child=%s, template_id=%s", rule.child_id, rule_id)
        return rule_id

    def update_rule(self, rule_id: str, changes: dict[str, Any]) -> None:
        """テンプレートを部分更新"""
        update = {**changes, "updated_at": firestore.SERVER_TIMESTAMP}
        with _store_errors("update_rule"):
            self._db.collection(_TEMPLATES).document(rule_id).update(update)
        logger.info("Updated template: template_id=%s, fields=%s", rule_id, sorted(changes))

    def deactivate_rule(self, rule_id: str) -> None:
        """テンプレートを論理削除"""
        self.update_rule(rule_id, {"is_active": False})

    # ── 変換ヘルパー ──────────────────────────────────────────────────────────

    @staticmethod
    def _rule_to_dict(rule: RecurrenceRule) -> dict:
        return {
            "child_id": rule.child_id,
            "type": rule.type,
            "title": rule.title,
            "description": rule.description,
            "notes": rule.notes,
            "time_of_day": format_time_of_day(rule.time_of_day),
            "frequency": rule.frequency.value,
            "weekday": rule.weekday,
            "is_active": rule.is_active,
            "created_by": rule.created_by,
            "created_at": rule.created_at or firestore.SERVER_TIMESTAMP,
            "updated_at": rule.updated_at or firestore.SERVER_TIMESTAMP,
        }

    @staticmethod
    def _dict_to_rule(rule_id: str, data: dict) -> RecurrenceRule:
        return RecurrenceRule(
            id=rule_id,
            child_id=data.get("child_id", ""),
            type=data.get("type", "other"),
            title=data.get("title", ""),
            description=data.get("description"),
            notes=data.get("notes"),
            time_of_day=parse_time_of_day(data.get("time_of_day", "")),
            frequency=parse_frequency(data.get("frequency", "daily")),
            weekday=data.get("weekday"),
            is_active=data.get("is_active", True),
            created_by=data.get("created_by"),
            created_at=_naive(data.get("created_at")),
            updated_at=_naive(data.get("updated_at")),
        )


class FirestoreInstanceStore(InstanceStore):
    """
    Firestore を使った InstanceStore 実装。

    schedules コレクションを管理する。複数件の書き込み・削除はバッチで行う。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def get_instance(self, instance_id: str) -> ScheduleInstance | None:
        """スケジュールを取得。存在しない場合は None を返す"""
        with _store_errors("get_instance"):
            snap = self._db.collection(_SCHEDULES).document(instance_id).get()
        if not snap.exists:
            return None
        return self._dict_to_instance(instance_id, snap.to_dict() or {})

    def list_instances(
        self,
        child_id: str,
        start: datetime,
        end: datetime,
        modified: bool | None = None,
    ) -> list[ScheduleInstance]:
        """[start, end) のスケジュールを時刻順で取得"""
        query = self._range_query(child_id, start, end).order_by("scheduled_time")
        with _store_errors("list_instances"):
            instances = [
                self._dict_to_instance(snap.id, snap.to_dict() or {})
                for snap in query.stream()
            ]
        # has_been_modified はクエリに含めずメモリ上で絞り込む
        if modified is not None:
            instances = [i for i in instances if i.has_been_modified == modified]
        return instances

    def find_instance_for_rule(
        self, child_id: str, rule_id: str, start: datetime, end: datetime
    ) -> ScheduleInstance | None:
        """テンプレート由来のスケジュールを1件検索（冪等性チェック）"""
        query = (
            self._range_query(child_id, start, end)
            .where("template_id", "==", rule_id)
            .limit(1)
        )
        with _store_errors("find_instance_for_rule"):
            for snap in query.stream():
                return self._dict_to_instance(snap.id, snap.to_dict() or {})
        return None

    def add_instance(self, instance: ScheduleInstance) -> str:
        """スケジュールを作成。IDを返す"""
        instance_id = instance.id or str(uuid.uuid4())
        with _store_errors("add_instance"):
            self._db.collection(_SCHEDULES).document(instance_id).set(
                self._instance_to_dict(instance)
            )
        logger.info(
            "Created schedule: child=%s, schedule_id=%s", instance.child_id, instance_id
        )
        return instance_id

    def add_instances(self, instances: Sequence[ScheduleInstance]) -> int:
        """スケジュールをバッチ書き込みで作成。作成件数を返す"""
        col = self._db.collection(_SCHEDULES)
        written = 0
        with _store_errors("add_instances"):
            for chunk in _chunks(instances, _MAX_BATCH_WRITES):
                batch = self._db.batch()
                for instance in chunk:
                    batch.set(
                        col.document(instance.id or str(uuid.uuid4())),
                        self._instance_to_dict(instance),
                    )
                batch.commit()
                written += len(chunk)
        logger.info("Created %d schedules", written)
        return written

    def update_instance(
        self, instance_id: str, changes: dict[str, Any]
    ) -> ScheduleInstance:
        """スケジュールを部分更新し、更新後の値を返す"""
        ref = self._db.collection(_SCHEDULES).document(instance_id)
        update: dict[str, Any] = {"updated_at": firestore.SERVER_TIMESTAMP}
        for key, value in changes.items():
            if key == "status":
                update["status"] = value.value
            else:
                update[key] = value
        with _store_errors("update_instance"):
            try:
                ref.update(update)
            except NotFound as e:
                raise NotFoundError(f"Schedule not found: {instance_id}") from e
            snap = ref.get()
        logger.info("Updated schedule: schedule_id=%s, fields=%s", instance_id, sorted(changes))
        return self._dict_to_instance(instance_id, snap.to_dict() or {})

    def delete_instances(self, instance_ids: Sequence[str]) -> int:
        """指定IDのスケジュールをバッチ削除"""
        col = self._db.collection(_SCHEDULES)
        refs = [col.document(instance_id) for instance_id in instance_ids]
        return self._delete_refs(refs, "delete_instances")

    def delete_unmodified_in_range(
        self, child_id: str, start: datetime, end: datetime
    ) -> int:
        """[start, end) の未編集スケジュールを削除"""
        with _store_errors("delete_unmodified_in_range"):
            refs = [
                snap.reference
                for snap in self._range_query(child_id, start, end).stream()
                if not (snap.to_dict() or {}).get("has_been_modified", False)
            ]
        return self._delete_refs(refs, "delete_unmodified_in_range")

    def delete_instances_for_rule(self, rule_id: str) -> int:
        """テンプレート由来のスケジュールを編集済みも含めて削除"""
        query = self._db.collection(_SCHEDULES).where("template_id", "==", rule_id)
        with _store_errors("delete_instances_for_rule"):
            refs = [snap.reference for snap in query.stream()]
        return self._delete_refs(refs, "delete_instances_for_rule")

    # ── 内部ヘルパー ──────────────────────────────────────────────────────────

    def _range_query(self, child_id: str, start: datetime, end: datetime):
        return (
            self._db.collection(_SCHEDULES)
            .where("child_id", "==", child_id)
            .where("scheduled_time", ">=", start)
            .where("scheduled_time", "<", end)
        )

    def _delete_refs(self, refs: list, operation: str) -> int:
        with _store_errors(operation):
            for chunk in _chunks(refs, _MAX_BATCH_WRITES):
                batch = self._db.batch()
                for ref in chunk:
                    batch.delete(ref)
                batch.commit()
        if refs:
            logger.info("Deleted %d schedules (%s)", len(refs), operation)
        return len(refs)

    @staticmethod
    def _instance_to_dict(instance: ScheduleInstance) -> dict:
        return {
            "child_id": instance.child_id,
            "template_id": instance.rule_id,
            "type": instance.type,
            "title": instance.title,
            "description": instance.description,
            "notes": instance.notes,
            "scheduled_time": instance.scheduled_time,
            "status": instance.status.value,
            "has_been_modified": instance.has_been_modified,
            "original_title": instance.original_title,
            "original_description": instance.original_description,
            "created_by": instance.created_by,
            "created_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        }

    @staticmethod
    def _dict_to_instance(instance_id: str, data: dict) -> ScheduleInstance:
        return ScheduleInstance(
            id=instance_id,
            child_id=data.get("child_id", ""),
            rule_id=data.get("template_id"),
            type=data.get("type", "other"),
            title=data.get("title", ""),
            description=data.get("description"),
            notes=data.get("notes"),
            scheduled_time=_naive(data["scheduled_time"]),
            status=ScheduleStatus(data.get("status") or "scheduled"),
            has_been_modified=data.get("has_been_modified", False),
            original_title=data.get("original_title"),
            original_description=data.get("original_description"),
            created_by=data.get("created_by"),
            created_at=_naive(data.get("created_at")),
            updated_at=_naive(data.get("updated_at")),
        )


def _chunks(items: Sequence, size: int) -> Iterator[Sequence]:
    for i in range(0, len(items), size):
        yield items[i : i + size]
