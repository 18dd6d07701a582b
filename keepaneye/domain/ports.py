"""Ports - 永続化層のインターフェース定義（ABC）

エンジンはテンプレートストアとスケジュールストアの2つのポートにのみ依存する。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要がある。
ABC にしているのは、実装漏れをインスタンス化時に検出するため。

日時は全てタイムゾーンなしのローカル時刻として扱う。
永続化に失敗した場合、Adapter は StoreError を送出する。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, time
from typing import Any

from keepaneye.domain.models import Frequency, RecurrenceRule, ScheduleInstance


class RuleStore(ABC):
    """繰り返しテンプレートの永続化（Firestore等）"""

    @abstractmethod
    def list_rules(
        self, child_id: str, active_only: bool = False
    ) -> list[RecurrenceRule]:
        """子供のテンプレート一覧を取得。active_only=True なら有効なもののみ"""
        pass

    @abstractmethod
    def get_rule(self, rule_id: str) -> RecurrenceRule | None:
        """テンプレートを取得。存在しない場合はNoneを返す"""
        pass

    @abstractmethod
    def find_rule_by_key(
        self,
        child_id: str,
        type: str,
        title: str,
        frequency: Frequency,
        weekday: int | None,
        time_of_day: time,
    ) -> RecurrenceRule | None:
        """自然キーで既存テンプレート（無効化済みを含む）を検索"""
        pass

    @abstractmethod
    def create_rule(self, rule: RecurrenceRule) -> str:
        """テンプレートを作成。生成されたIDを返す"""
        pass

    @abstractmethod
    def update_rule(self, rule_id: str, changes: dict[str, Any]) -> None:
        """テンプレートを部分更新（is_active / description / notes）"""
        pass

    @abstractmethod
    def deactivate_rule(self, rule_id: str) -> None:
        """テンプレートを論理削除（is_active=False）"""
        pass


class InstanceStore(ABC):
    """スケジュールの永続化（Firestore等）"""

    @abstractmethod
    def get_instance(self, instance_id: str) -> ScheduleInstance | None:
        """スケジュールを取得。存在しない場合はNoneを返す"""
        pass

    @abstractmethod
    def list_instances(
        self,
        child_id: str,
        start: datetime,
        end: datetime,
        modified: bool | None = None,
    ) -> list[ScheduleInstance]:
        """[start, end) のスケジュールを時刻順で取得。modified で has_been_modified を絞り込む"""
        pass

    @abstractmethod
    def find_instance_for_rule(
        self, child_id: str, rule_id: str, start: datetime, end: datetime
    ) -> ScheduleInstance | None:
        """[start, end) にテンプレート由来のスケジュールがあれば1件返す（編集済みを含む）"""
        pass

    @abstractmethod
    def add_instance(self, instance: ScheduleInstance) -> str:
        """スケジュールを作成。生成されたIDを返す"""
        pass

    @abstractmethod
    def add_instances(self, instances: Sequence[ScheduleInstance]) -> int:
        """スケジュールをまとめて作成。作成件数を返す"""
        pass

    @abstractmethod
    def update_instance(
        self, instance_id: str, changes: dict[str, Any]
    ) -> ScheduleInstance:
        """スケジュールを部分更新し、更新後の値を返す"""
        pass

    @abstractmethod
    def delete_instances(self, instance_ids: Sequence[str]) -> int:
        """指定IDのスケジュールを削除。削除件数を返す"""
        pass

    @abstractmethod
    def delete_unmodified_in_range(
        self, child_id: str, start: datetime, end: datetime
    ) -> int:
        """[start, end) の未編集スケジュールを rule_id に関係なく削除。削除件数を返す"""
        pass

    @abstractmethod
    def delete_instances_for_rule(self, rule_id: str) -> int:
        """テンプレート由来のスケジュールを編集済みも含めて全て削除。削除件数を返す"""
        pass
