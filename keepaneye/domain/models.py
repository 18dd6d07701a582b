"""ドメインモデル - 外部依存なしのデータ構造"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum


class Frequency(Enum):
    """テンプレートの繰り返し頻度"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ScheduleStatus(Enum):
    """スケジュールのステータス（エンジンは SCHEDULED でのみ作成し、以降は変更しない）"""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    MISSED = "missed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RecurrenceRule:
    """繰り返しテンプレート（schedule_templates）"""

    id: str
    child_id: str
    type: str  # 例: "feeding" | "medicine" | "nap" ...
    title: str
    time_of_day: time
    frequency: Frequency
    weekday: int | None = None  # 1=日曜 .. 7=土曜（weekly のみ有効）
    description: str | None = None
    notes: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None


@dataclass(frozen=True)
class ScheduleInstance:
    """日付の確定したスケジュール（schedules）

    type/title/description/notes は作成時点のテンプレートのスナップショット。
    テンプレートを編集しても既存のインスタンスには反映されない。
    """

    id: str
    child_id: str
    type: str
    title: str
    scheduled_time: datetime  # タイムゾーンなしのローカル時刻
    rule_id: str | None = None  # None ⇒ テンプレートに紐づかないアドホック予定
    description: str | None = None
    notes: str | None = None
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    has_been_modified: bool = False
    original_title: str | None = None  # 初回編集前のタイトル（差分表示用）
    original_description: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class PlanItem:
    """期間置換用のプラン項目（テンプレートとしては永続化されない）"""

    title: str
    type: str
    time_of_day: str  # "HH:MM:SS"
    weekdays: tuple[int, ...] = field(default_factory=tuple)  # 1=日曜 .. 7=土曜
    description: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TemplateItem:
    """テンプレート一括アップサートの入力項目"""

    type: str
    title: str
    time_of_day: str
    frequency: str = "daily"
    weekday: int | None = None
    description: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class InstanceEdit:
    """スケジュールの部分更新

    None のフィールドは変更しない。
    description/notes を空にする場合は cleared にフィールド名を入れる。
    """

    title: str | None = None
    description: str | None = None
    status: ScheduleStatus | None = None
    notes: str | None = None
    scheduled_time: datetime | None = None
    cleared: frozenset[str] = frozenset()

    CLEARABLE = frozenset({"description", "notes"})

    def __post_init__(self) -> None:
        unknown = self.cleared - self.CLEARABLE
        if unknown:
            raise ValueError(f"Fields cannot be cleared: {sorted(unknown)}")

    @property
    def touches_content(self) -> bool:
        """ユーザー編集扱いになるフィールドが含まれるか（status のみの変更は対象外）"""
        return bool(self.cleared) or any(
            v is not None
            for v in (self.title, self.description, self.notes, self.scheduled_time)
        )


@dataclass(frozen=True)
class GenerationResult:
    """generate() の (日付, テンプレート) ごとの結果"""

    date: date
    rule_id: str
    instance_id: str
    created: bool


@dataclass(frozen=True)
class ReplaceResult:
    """replace() の削除・作成件数"""

    deleted: int = 0
    created: int = 0


@dataclass(frozen=True)
class RetireResult:
    """retire() の結果"""

    child_id: str
    instances_deleted: int = 0


@dataclass(frozen=True)
class UpsertResult:
    """テンプレート一括アップサートの1項目分の結果"""

    id: str
    created: bool
