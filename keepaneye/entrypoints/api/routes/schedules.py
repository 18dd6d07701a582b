"""スケジュール API ルート

GET    /api/schedules?childId=&date=   → 200 { schedules: [...] }
POST   /api/schedules/generate         → 200 { results: [...] }
POST   /api/schedules/replace          → 200 { deleted, created }
PATCH  /api/schedules/{id}             → 200 { schedule }
DELETE /api/schedules/{id}             → 200 { message, id }
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from keepaneye.domain.models import (
    InstanceEdit,
    PlanItem,
    ScheduleInstance,
    ScheduleStatus,
)
from keepaneye.entrypoints.api.deps import get_current_uid, get_engine
from keepaneye.entrypoints.factory import ScheduleEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/schedules", tags=["schedules"])


class ScheduleResponse(BaseModel):
    id: str
    child_id: str
    template_id: str | None
    type: str
    title: str
    description: str | None
    notes: str | None
    scheduled_time: datetime
    status: str
    has_been_modified: bool
    original_title: str | None
    original_description: str | None

    @classmethod
    def from_instance(cls, instance: ScheduleInstance) -> "ScheduleResponse":
        return cls(
            id=instance.id,
            child_id=instance.child_id,
            template_id=instance.rule_id,
            type=instance.type,
            title=instance.title,
            description=instance.description,
            notes=instance.notes,
            scheduled_time=instance.scheduled_time,
            status=instance.status.value,
            has_been_modified=instance.has_been_modified,
            original_title=instance.original_title,
            original_description=instance.original_description,
        )


class ScheduleListResponse(BaseModel):
    schedules: list[ScheduleResponse]


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    child_id: str = Field(alias="childId", min_length=1)
    dates: list[date] = Field(min_length=1)


class GenerateResultItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    template_id: str = Field(serialization_alias="templateId")
    schedule_id: str = Field(serialization_alias="scheduleId")
    created: bool


class GenerateResponse(BaseModel):
    results: list[GenerateResultItem]


class PlanItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    type: str
    description: str | None = None
    time_of_day: str = Field(default="00:00:00", alias="timeOfDay")
    weekdays: list[int] = Field(default_factory=list)
    notes: str | None = None


class ReplaceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    child_id: str = Field(alias="childId", min_length=1)
    plan: list[PlanItemRequest]
    start_date: date | None = Field(default=None, alias="startDate")
    weeks: int | None = None


class ReplaceResponse(BaseModel):
    deleted: int
    created: int


class ScheduleUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    status: ScheduleStatus | None = None
    notes: str | None = None
    scheduled_time: datetime | None = None


class ScheduleUpdateResponse(BaseModel):
    schedule: ScheduleResponse


class DeleteResponse(BaseModel):
    message: str
    id: str


def _naive_local(value: datetime | None) -> datetime | None:
    """タイムゾーン付きで送られた時刻はローカル時刻に変換して tzinfo を外す"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


@router.get("", response_model=ScheduleListResponse)
def list_schedules(
    child_id: str = Query(alias="childId", min_length=1),
    day: date = Query(alias="date"),
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> ScheduleListResponse:
    """指定日のスケジュールを時刻順で返す"""
    instances = engine.editor.list_for_day(child_id, day)
    return ScheduleListResponse(
        schedules=[ScheduleResponse.from_instance(i) for i in instances]
    )


@router.post("/generate", response_model=GenerateResponse)
def generate_schedules(
    body: GenerateRequest,
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> GenerateResponse:
    """有効なテンプレートから指定日のスケジュールを生成する（再実行しても重複しない）"""
    results = engine.generator.generate(body.child_id, body.dates, created_by=uid)
    return GenerateResponse(
        results=[
            GenerateResultItem(
                date=r.date.isoformat(),
                template_id=r.rule_id,
                schedule_id=r.instance_id,
                created=r.created,
            )
            for r in results
        ]
    )


@router.post("/replace", response_model=ReplaceResponse)
def replace_schedules(
    body: ReplaceRequest,
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> ReplaceResponse:
    """
    期間内の未編集スケジュールをプランで置き換える。

    リクエスト例:
        {"childId": "...", "plan": [{"title": "ミルク", "type": "milk",
          "timeOfDay": "09:00:00", "weekdays": [2, 4]}], "weeks": 8}
    """
    plan = [
        PlanItem(
            title=item.title,
            type=item.type,
            description=item.description,
            time_of_day=item.time_of_day,
            weekdays=tuple(item.weekdays),
            notes=item.notes,
        )
        for item in body.plan
    ]
    result = engine.replacer.replace(
        body.child_id, plan, start_date=body.start_date, weeks=body.weeks, created_by=uid
    )
    return ReplaceResponse(deleted=result.deleted, created=result.created)


@router.patch("/{schedule_id}", response_model=ScheduleUpdateResponse)
def update_schedule(
    schedule_id: str,
    body: ScheduleUpdateRequest,
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> ScheduleUpdateResponse:
    """スケジュールを更新する。内容を変更すると以降の再生成から保護される"""
    updated = engine.editor.edit(
        schedule_id,
        InstanceEdit(
            title=body.title,
            description=body.description,
            status=body.status,
            notes=body.notes,
            scheduled_time=_naive_local(body.scheduled_time),
            # null を明示的に送ったフィールドは空にする（未送信とは区別する）
            cleared=frozenset(
                name
                for name in InstanceEdit.CLEARABLE
                if name in body.model_fields_set and getattr(body, name) is None
            ),
        ),
    )
    logger.info("Schedule updated: uid=%s, schedule_id=%s", uid, schedule_id)
    return ScheduleUpdateResponse(schedule=ScheduleResponse.from_instance(updated))


@router.delete("/{schedule_id}", response_model=DeleteResponse)
def delete_schedule(
    schedule_id: str,
    uid: str = Depends(get_current_uid),
    engine: ScheduleEngine = Depends(get_engine),
) -> DeleteResponse:
    """スケジュールを1件削除する"""
    engine.editor.delete(schedule_id)
    logger.info("Schedule deleted: uid=%s, schedule_id=%s", uid, schedule_id)
    return DeleteResponse(message="Schedule deleted", id=schedule_id)
