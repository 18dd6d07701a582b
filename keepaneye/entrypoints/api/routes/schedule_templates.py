"""スケジュールテンプレート API ルート

GET    /api/schedule-templates?childId=      → 200 { templates: [...] }
POST   /api/schedule-templates/bulk-upsert   → 200 { results: [{ id, created }] }
DELETE /api/schedule-templates/{id}          → 200 { message, childId }
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from keepaneye.domain.models import RecurrenceRule, TemplateItem
from keepaneye.domain.recurrence import format_time_of_day
from keepaneye.entrypoints.api.deps import get_current_uid, get_engine
from keepaneye.entrypoints.factory import ScheduleEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/schedule-templates", tags=["schedule-templates"])


class TemplateResponse(BaseModel):
    id: str
    child_id: str
    type: str
    title: str
    description: str | None
    notes: str | None
    time_of_day: str
    frequency: str
    weekday: int | None
    is_active: bool
    created_at: datetime | None

    @classmethod
    def from_rule(cls, rule: RecurrenceRule) -> "TemplateResponse":
        return cls(
            id=rule.id,
            child_id=rule.child_id,
            type=rule.type,
            title=rule.title,
            description=rule.description,
            notes=rule.notes,
            time_of_day=format_time_of_day(rule.time_of_day),
            frequency=rule.frequency.value,
            weekday=rule.weekday,
            is_active=rule.is_active,
            created_at=rule.created_at,
        )


class TemplateListResponse(BaseModel):
    templates: list[TemplateResponse]


class TemplateItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    type: str
    description: str | None = None
    time_of_day: str = Field(alias="timeOfDay")
    frequency: str = "daily"
    weekday: int | None = None
    notes: str | None = None


class BulkUpsertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    child_id: str = Field(alias="childId", min_length=1)
    items: list[TemplateItemRequest]


class UpsertResultItem(BaseModel):
    id: str
    created: bool


class BulkUpsertResponse(BaseModel):
    results: list[UpsertResultItem]


class RetireResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    child_id: str = Field(serialization_alias="childId")


@router.get("", response_model=TemplateListResponse)
def list_templates(
    child_id: str = Query(alias="childId", min_length=1),
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> TemplateListResponse:
    """有効なテンプレートを 頻度→曜日→時刻 の順で返す"""
    rules = engine.templates.list_active(child_id)
    return TemplateListResponse(templates=[TemplateResponse.from_rule(r) for r in rules])


@router.post("/bulk-upsert", response_model=BulkUpsertResponse)
def bulk_upsert_templates(
    body: BulkUpsertRequest,
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> BulkUpsertResponse:
    """テンプレートを一括登録する。同じ内容の無効テンプレートは再有効化する"""
    items = [
        TemplateItem(
            type=it.type,
            title=it.title,
            time_of_day=it.time_of_day,
            frequency=it.frequency,
            weekday=it.weekday,
            description=it.description,
            notes=it.notes,
        )
        for it in body.items
    ]
    results = engine.templates.bulk_upsert(body.child_id, items, created_by=uid)
    return BulkUpsertResponse(
        results=[UpsertResultItem(id=r.id, created=r.created) for r in results]
    )


@router.delete("/{template_id}", response_model=RetireResponse)
def retire_template(
    template_id: str,
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> RetireResponse:
    """テンプレートを無効化し、そこから生成された全スケジュールを削除する"""
    result = engine.retirement.retire(template_id)
    logger.info(
        "Template retired: uid=%s, template_id=%s, schedules_deleted=%d",
        uid,
        template_id,
        result.instances_deleted,
    )
    return RetireResponse(
        message="Template deactivated and schedules deleted",
        child_id=result.child_id,
    )
