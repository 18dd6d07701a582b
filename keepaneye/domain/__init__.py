"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from keepaneye.domain.errors import (
    InvalidRecurrenceError,
    KeepAnEyeError,
    NotFoundError,
    StoreError,
)
from keepaneye.domain.models import (
    Frequency,
    GenerationResult,
    InstanceEdit,
    PlanItem,
    RecurrenceRule,
    ReplaceResult,
    RetireResult,
    ScheduleInstance,
    ScheduleStatus,
    TemplateItem,
    UpsertResult,
)
from keepaneye.domain.ports import InstanceStore, RuleStore

__all__ = [
    # Models
    "Frequency",
    "ScheduleStatus",
    "RecurrenceRule",
    "ScheduleInstance",
    "PlanItem",
    "TemplateItem",
    "InstanceEdit",
    "GenerationResult",
    "ReplaceResult",
    "RetireResult",
    "UpsertResult",
    # Errors
    "KeepAnEyeError",
    "NotFoundError",
    "InvalidRecurrenceError",
    "StoreError",
    # Ports
    "RuleStore",
    "InstanceStore",
]
