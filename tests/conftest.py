"""
테스트 공통 Fixture 정의

pytest conftest.py - 모든 테스트에서 공유하는 fixture들을 정의합니다.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.quote.jupiter_client import QuoteSample
from src.subscription.rate_index import RateIndex
from src.subscription.store import SubscriptionStore


@pytest.fixture
def rate_index() -> RateIndex:
    """빈 RateIndex"""
    return RateIndex()


@pytest.fixture
def store(rate_index: RateIndex) -> SubscriptionStore:
    """rate_index fixture를 공유하는 SubscriptionStore"""
    return SubscriptionStore(rate_index)


@pytest.fixture
def mock_telegram() -> MagicMock:
    """send_message / get_updates 가 AsyncMock인 Telegram 클라이언트"""
    telegram = MagicMock()
    telegram.send_message = AsyncMock(return_value={"message_id": 1})
    telegram.get_updates = AsyncMock(return_value=[])
    telegram.close = AsyncMock()
    return telegram


@pytest.fixture
def make_sample() -> Callable[[float], QuoteSample]:
    """주어진 환율의 QuoteSample 생성기 (1 USDC 기준)"""

    def _make(rate: float) -> QuoteSample:
        return QuoteSample(in_amount=1_000_000, out_amount=round(1e9 / rate), rate=rate)

    return _make
