"""factory のテスト"""

from unittest.mock import MagicMock, patch

import pytest
from conftest import CHILD_ID, MONDAY
from keepaneye.adapters.firestore_repository import FirestoreInstanceStore, FirestoreRuleStore
from keepaneye.adapters.memory_store import InMemoryInstanceStore, InMemoryRuleStore
from keepaneye.config import AppConfig
from keepaneye.domain.models import PlanItem
from keepaneye.entrypoints.factory import build_engine, create_engine, create_stores


class TestCreateStores:
    def test_memory(self):
        rule_store, instance_store = create_stores(AppConfig(schedule_store="memory"))
        assert isinstance(rule_store, InMemoryRuleStore)
        assert isinstance(instance_store, InMemoryInstanceStore)

    def test_firestore_shares_one_client(self):
        with patch("google.cloud.firestore.Client") as mock_client:
            rule_store, instance_store = create_stores(
                AppConfig(schedule_store="firestore", project_id="keepaneye-dev")
            )

        mock_client.assert_called_once_with(project="keepaneye-dev")
        assert isinstance(rule_store, FirestoreRuleStore)
        assert isinstance(instance_store, FirestoreInstanceStore)

    def test_unknown_store_raises(self):
        with pytest.raises(ValueError):
            create_stores(AppConfig(schedule_store="sqlite"))


class TestBuildEngine:
    def test_config_controls_replacer(self, mock_rule_store):
        instance_store = MagicMock()
        instance_store.delete_unmodified_in_range.return_value = 0
        instance_store.add_instances.side_effect = len
        config = AppConfig(
            schedule_store="memory",
            default_horizon_weeks=2,
            max_horizon_weeks=4,
            insert_batch_size=5,
        )
        engine = build_engine(mock_rule_store, instance_store, config, today=lambda: MONDAY)

        result = engine.replacer.replace(
            CHILD_ID,
            [PlanItem(title="散歩", type="walk", time_of_day="10:00", weekdays=(1, 2, 3, 4, 5, 6, 7))],
        )

        # 既定の2週間 = 14件を5件ずつ挿入
        assert result.created == 14
        assert instance_store.add_instances.call_count == 3
        assert engine.replacer.clamp_weeks(10) == 4

    def test_create_engine_with_memory_config(self):
        engine = create_engine(AppConfig(schedule_store="memory"))
        assert engine.templates.list_active(CHILD_ID) == []
