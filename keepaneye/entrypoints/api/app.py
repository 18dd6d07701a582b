"""FastAPI アプリケーション

keepaneye スケジュール API。Firebase Auth で認証する。
ルートは薄いアダプタで、処理は全て ScheduleEngine に委譲する。

エンドポイント一覧:
  GET    /api/schedules?childId=&date=
  POST   /api/schedules/generate
  POST   /api/schedules/replace
  PATCH  /api/schedules/{id}
  DELETE /api/schedules/{id}
  GET    /api/schedule-templates?childId=
  POST   /api/schedule-templates/bulk-upsert
  DELETE /api/schedule-templates/{id}
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from keepaneye.domain.errors import (
    InvalidRecurrenceError,
    NotFoundError,
    StoreError,
)
from keepaneye.entrypoints.api.routes import schedule_templates, schedules
from keepaneye.logging_config import setup_logging

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)

# ── FastAPI アプリ ───────────────────────────────────────────────────────────
app = FastAPI(
    title="keepaneye API",
    description="育児スケジュールの繰り返し生成・照合 API",
    version="1.0.0",
)


# ── ドメイン例外 → HTTP ステータス ─────────────────────────────────────────────


@app.exception_handler(NotFoundError)
async def _handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
    )


@app.exception_handler(InvalidRecurrenceError)
async def _handle_invalid_recurrence(
    request: Request, exc: InvalidRecurrenceError
) -> JSONResponse:
    logger.warning("Invalid recurrence: %s %s - %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
    )


@app.exception_handler(StoreError)
async def _handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    # 同じリクエストを再実行すれば収束する（生成は冪等、置換は未編集分を消し直す）
    logger.error(
        "Store failure: %s %s - %s", request.method, request.url.path, exc, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage error, please retry"},
    )


# ── グローバル例外ミドルウェア ──────────────────────────────────────────────────
# add_middleware は後から登録したものが外側になる。
# CORSMiddleware より先に登録して内側に置き、500 レスポンスにも CORS ヘッダーを付与する。
#
# スタック: ServerErrorMiddleware → CORSMiddleware → このMW → ExceptionMiddleware → Routes


@app.middleware("http")
async def _catch_unhandled_exceptions(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# ── CORS ─────────────────────────────────────────────────────────────────────
# CORS_ORIGINS 環境変数でカンマ区切りの追加オリジンを指定可能
_extra_origins = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_extra_origins if _extra_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ── ルーター登録 ─────────────────────────────────────────────────────────────
_PREFIX = "/api"

app.include_router(schedules.router, prefix=_PREFIX)
app.include_router(schedule_templates.router, prefix=_PREFIX)


@app.get("/health")
async def health() -> dict:
    """ヘルスチェックエンドポイント"""
    return {"status": "ok"}


logger.info("keepaneye API started")
