"""Services layer - スケジュール生成・照合のビジネスロジック"""

from keepaneye.services.generator import ScheduleGenerator
from keepaneye.services.horizon_replacer import HorizonReplacer
from keepaneye.services.instance_editor import InstanceEditor
from keepaneye.services.rule_retirement import RuleRetirement
from keepaneye.services.template_service import TemplateService

__all__ = [
    "ScheduleGenerator",
    "HorizonReplacer",
    "RuleRetirement",
    "TemplateService",
    "InstanceEditor",
]
