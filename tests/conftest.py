"""共通テストフィクスチャ

全テストから利用可能なサンプルデータとストアを提供。

ストアの作成:
- 状態の変化を検証するテストはインメモリ実装（InMemoryRuleStore/InMemoryInstanceStore）
- 呼び出しの検証だけが目的なら MagicMock(spec=ABC) でABCのメソッドシグネチャを保持
"""

from datetime import date, datetime, time
from unittest.mock import MagicMock

import pytest
from keepaneye.adapters.memory_store import InMemoryInstanceStore, InMemoryRuleStore
from keepaneye.domain.models import (
    Frequency,
    RecurrenceRule,
    ScheduleInstance,
    ScheduleStatus,
)
from keepaneye.domain.ports import InstanceStore, RuleStore
from keepaneye.entrypoints.factory import ScheduleEngine, build_engine

CHILD_ID = "child-1"
OTHER_CHILD_ID = "child-2"

# 2026-10-19 は月曜日（曜日番号 2）
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)


def make_rule(
    rule_id: str,
    frequency: Frequency = Frequency.DAILY,
    weekday: int | None = None,
    time_of_day: time = time(8, 0),
    child_id: str = CHILD_ID,
    is_active: bool = True,
    created_at: datetime = datetime(2026, 9, 1, 12, 0),
    title: str | None = None,
) -> RecurrenceRule:
    """テスト用テンプレートを生成するヘルパー"""
    return RecurrenceRule(
        id=rule_id,
        child_id=child_id,
        type="feeding",
        title=title or f"ミルク {rule_id}",
        description="200ml",
        notes="温めてから",
        time_of_day=time_of_day,
        frequency=frequency,
        weekday=weekday,
        is_active=is_active,
        created_at=created_at,
    )


def make_instance(
    instance_id: str,
    scheduled_time: datetime,
    rule_id: str | None = None,
    has_been_modified: bool = False,
    child_id: str = CHILD_ID,
    title: str = "ミルク",
) -> ScheduleInstance:
    """テスト用スケジュールを生成するヘルパー"""
    return ScheduleInstance(
        id=instance_id,
        child_id=child_id,
        rule_id=rule_id,
        type="feeding",
        title=title,
        description="200ml",
        scheduled_time=scheduled_time,
        status=ScheduleStatus.SCHEDULED,
        has_been_modified=has_been_modified,
    )


# ========== サンプルデータ ==========


@pytest.fixture
def daily_rule() -> RecurrenceRule:
    """毎日 8:00 のテンプレート"""
    return make_rule("R-DAILY")


@pytest.fixture
def monday_rule() -> RecurrenceRule:
    """毎週月曜 19:00 のテンプレート"""
    return make_rule("R-MON", Frequency.WEEKLY, weekday=2, time_of_day=time(19, 0))


# ========== ストア ==========


@pytest.fixture
def rule_store(daily_rule, monday_rule) -> InMemoryRuleStore:
    return InMemoryRuleStore([daily_rule, monday_rule])


@pytest.fixture
def instance_store() -> InMemoryInstanceStore:
    return InMemoryInstanceStore()


@pytest.fixture
def engine(rule_store, instance_store) -> ScheduleEngine:
    """インメモリストアで組み立てたエンジン（基準日は MONDAY）"""
    return build_engine(rule_store, instance_store, today=lambda: MONDAY)


@pytest.fixture
def mock_rule_store() -> MagicMock:
    """RuleStore のモック"""
    return MagicMock(spec=RuleStore)


@pytest.fixture
def mock_instance_store() -> MagicMock:
    """InstanceStore のモック"""
    return MagicMock(spec=InstanceStore)
