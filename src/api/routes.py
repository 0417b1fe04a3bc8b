"""
FastAPI 라우터 정의

봇 프로세스 상태를 확인하기 위한 읽기 전용 엔드포인트입니다.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from config.settings import settings
from src.context import BotContext
from src.exceptions import AppError

router = APIRouter()


# ── 응답 스키마 ────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str = Field(..., description="서비스 상태", examples=["ok"])
    env: str = Field(..., description="실행 환경", examples=["development"])


class StatusResponse(BaseModel):
    """봇 상태 응답"""
    users: int = Field(..., description="등록 사용자 수")
    rate_keys: int = Field(..., description="인덱스에 등록된 목표 환율 키 수")
    listener_running: bool = Field(..., description="명령 수신 루프 실행 여부")
    poller: dict[str, Any] = Field(..., description="폴링 스케줄러 상태")


# ── 의존성 ─────────────────────────────────────────────────────


def get_bot_context(request: Request) -> BotContext:
    """lifespan에서 생성한 BotContext 주입"""
    context = getattr(request.app.state, "bot", None)
    if context is None:
        raise AppError("봇 컨텍스트가 초기화되지 않았습니다.")
    return context


# ── 엔드포인트 ─────────────────────────────────────────────────


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="헬스 체크",
)
async def health_check():
    """헬스 체크 엔드포인트"""
    return HealthResponse(status="ok", env=settings.app_env)


@router.get(
    "/api/v1/status",
    response_model=StatusResponse,
    tags=["System"],
    summary="봇 상태 조회",
    description="등록 사용자 수, 인덱스 크기, 폴링 스케줄러 상태를 반환합니다.",
)
async def get_status(bot: BotContext = Depends(get_bot_context)):
    return StatusResponse(
        users=bot.store.user_count,
        rate_keys=len(bot.rate_index),
        listener_running=bot.listener.is_running,
        poller=bot.poller.get_status(),
    )


@router.get(
    "/api/v1/rate-index",
    tags=["System"],
    summary="목표 환율 인덱스 조회",
)
async def get_rate_index(bot: BotContext = Depends(get_bot_context)) -> dict[str, list[Any]]:
    """양자화 키 → 구독 사용자 ID 목록"""
    return bot.rate_index.snapshot()
