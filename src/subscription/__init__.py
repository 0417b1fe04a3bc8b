"""
구독 패키지

사용자별 목표 환율 구독 저장소와 양자화 환율 인덱스를 제공합니다.
"""

from __future__ import annotations

__all__ = [
    "RateIndex",
    "Subscription",
    "SubscriptionStore",
    "User",
    "quantize",
]

from src.subscription.models import Subscription, User
from src.subscription.rate_index import RateIndex, quantize
from src.subscription.store import SubscriptionStore
