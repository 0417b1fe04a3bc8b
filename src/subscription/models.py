"""
구독 도메인 모델

사용자(User)와 사용자가 등록한 목표 환율 구독(Subscription)입니다.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.subscription.rate_index import quantize


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Subscription(BaseModel):
    """목표 환율 구독 — 출력 자산 1단위당 입력 자산 가격"""

    quantity: float = 1.0
    target_rate: float = Field(..., gt=0, allow_inf_nan=False)
    active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @property
    def rate_key(self) -> Decimal:
        """인덱스에 등록되는 양자화 키"""
        return quantize(self.target_rate)


class User(BaseModel):
    """봇 사용자 — 최초 /start 시 생성되어 프로세스 수명 동안 유지"""

    id: int | str
    name: str = ""
    subscriptions: list[Subscription] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
