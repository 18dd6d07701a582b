"""Factory - 依存性注入の組み立て

Store Adapter を生成し、各サービスに注入した ScheduleEngine を返す。
HTTP を介さずライブラリとして使う場合もここから生成する。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from keepaneye.config import AppConfig
from keepaneye.domain.ports import InstanceStore, RuleStore
from keepaneye.services.generator import ScheduleGenerator
from keepaneye.services.horizon_replacer import HorizonReplacer
from keepaneye.services.instance_editor import InstanceEditor
from keepaneye.services.rule_retirement import RuleRetirement
from keepaneye.services.template_service import TemplateService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleEngine:
    """エンジンの各操作をまとめたもの"""

    generator: ScheduleGenerator
    replacer: HorizonReplacer
    retirement: RuleRetirement
    templates: TemplateService
    editor: InstanceEditor


def build_engine(
    rule_store: RuleStore,
    instance_store: InstanceStore,
    config: AppConfig | None = None,
    today: Callable[[], date] = date.today,
) -> ScheduleEngine:
    """
    与えられた Store でエンジンを組み立てる。

    Args:
        rule_store: テンプレートストア
        instance_store: スケジュールストア
        config: 期間・バッチサイズの設定（None ならデフォルト値）
        today: 置換期間の基準日を返す関数
    """
    config = config or AppConfig()
    return ScheduleEngine(
        generator=ScheduleGenerator(rule_store, instance_store),
        replacer=HorizonReplacer(
            instance_store,
            default_weeks=config.default_horizon_weeks,
            max_weeks=config.max_horizon_weeks,
            batch_size=config.insert_batch_size,
            today=today,
        ),
        retirement=RuleRetirement(rule_store, instance_store),
        templates=TemplateService(rule_store),
        editor=InstanceEditor(instance_store),
    )


def create_stores(config: AppConfig) -> tuple[RuleStore, InstanceStore]:
    """
    設定に応じた Store Adapter を生成する。

    Raises:
        ValueError: 未知の SCHEDULE_STORE が指定された場合
    """
    if config.schedule_store == "memory":
        from keepaneye.adapters.memory_store import (
            InMemoryInstanceStore,
            InMemoryRuleStore,
        )

        logger.warning("Using in-memory schedule store (data is not persisted)")
        return InMemoryRuleStore(), InMemoryInstanceStore()

    if config.schedule_store == "firestore":
        from google.cloud import firestore

        from keepaneye.adapters.firestore_repository import (
            FirestoreInstanceStore,
            FirestoreRuleStore,
        )

        db = firestore.Client(project=config.project_id or None)
        logger.info("Firestore client initialized: project=%s", config.project_id)
        return FirestoreRuleStore(db), FirestoreInstanceStore(db)

    raise ValueError(f"Unknown schedule store: {config.schedule_store}")


def create_engine(config: AppConfig | None = None) -> ScheduleEngine:
    """
    環境変数の設定からエンジンを生成する。

    Raises:
        ValueError: 必須設定が不足している場合
    """
    if config is None:
        config = AppConfig.from_env()

    logger.info("Creating schedule engine: store=%s", config.schedule_store)
    rule_store, instance_store = create_stores(config)
    return build_engine(rule_store, instance_store, config)
