"""RuleRetirement - テンプレートの無効化と関連スケジュールの削除"""

from __future__ import annotations

import logging

from keepaneye.domain.errors import NotFoundError
from keepaneye.domain.models import RetireResult
from keepaneye.domain.ports import InstanceStore, RuleStore

logger = logging.getLogger(__name__)


class RuleRetirement:
    """
    テンプレートを論理削除し、そこから生成された全スケジュールを物理削除する。

    ユーザーが明示的に行う操作なので、編集済みスケジュールも削除対象になる。
    既に無効なテンプレートに対しても削除処理は行う（生成処理との競合で残った分の掃除）。
    """

    def __init__(self, rule_store: RuleStore, instance_store: InstanceStore) -> None:
        self._rules = rule_store
        self._instances = instance_store

    def retire(self, rule_id: str) -> RetireResult:
        """
        Args:
            rule_id: テンプレートID

        Returns:
            RetireResult: テンプレートの子供IDと削除件数

        Raises:
            NotFoundError: テンプレートが存在しない場合
            StoreError: 永続化に失敗した場合
        """
        rule = self._rules.get_rule(rule_id)
        if rule is None:
            raise NotFoundError(f"Template not found: {rule_id}")

        deleted = self._instances.delete_instances_for_rule(rule_id)
        logger.info("Deleted %d schedules for template %s", deleted, rule_id)

        if rule.is_active:
            self._rules.deactivate_rule(rule_id)
            logger.info("Deactivated template %s for child %s", rule_id, rule.child_id)
        else:
            logger.info("Template %s already inactive", rule_id)

        return RetireResult(child_id=rule.child_id, instances_deleted=deleted)
