"""
구독 저장소

사용자 ID → 사용자 프로필(이름, 구독 목록) 매핑을 관리합니다.
구독 추가/삭제는 항상 RateIndex 갱신을 동반하므로,
저장소와 인덱스는 함께 생성되어 하나의 단위로 주입됩니다.
"""

from __future__ import annotations

import math
from typing import Any

from src.exceptions import InvalidArgumentsError, InvalidRateError, NotRegisteredError
from src.subscription.models import Subscription, User
from src.subscription.rate_index import RateIndex, UserId
from src.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_QUANTITY = 1.0


def parse_quantity(raw: Any) -> float:
    """수량 파싱 — 없거나 숫자가 아니면 1

    양수 여부는 검증하지 않습니다.
    """
    if raw is None or isinstance(raw, bool):
        return DEFAULT_QUANTITY
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_QUANTITY
    return value if math.isfinite(value) else DEFAULT_QUANTITY


def parse_rate(raw: Any) -> float:
    """목표 환율 파싱 — 유한한 양수가 아니면 InvalidRateError"""
    if isinstance(raw, bool):
        raise InvalidRateError(detail={"target_rate": raw})
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidRateError(detail={"target_rate": raw}) from e
    if not math.isfinite(value) or value <= 0:
        raise InvalidRateError(detail={"target_rate": raw})
    return value


class SubscriptionStore:
    """사용자별 구독 저장소

    Usage::

        index = RateIndex()
        store = SubscriptionStore(index)
        store.ensure_user(42, "alice")
        store.add_subscription(42, None, 150.5)
        index.lookup(150.503)  # frozenset({42})
    """

    def __init__(self, rate_index: RateIndex) -> None:
        self._users: dict[UserId, User] = {}
        self._index = rate_index

    @property
    def rate_index(self) -> RateIndex:
        return self._index

    @property
    def user_count(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def get_user(self, user_id: UserId) -> User | None:
        return self._users.get(user_id)

    def ensure_user(self, user_id: UserId, display_name: str = "") -> User:
        """사용자 등록 (이미 있으면 기존 사용자를 그대로 반환, 이름 갱신 없음)"""
        user = self._users.get(user_id)
        if user is not None:
            logger.debug("기존 사용자: ID=%s", user_id)
            return user

        user = User(id=user_id, name=display_name or "")
        self._users[user_id] = user
        logger.info("신규 사용자 등록: ID=%s, 총 사용자=%d", user_id, len(self._users))
        return user

    def add_subscription(
        self,
        user_id: UserId,
        quantity: Any = None,
        target_rate: Any = None,
    ) -> Subscription:
        """구독 추가 + 인덱스 등록

        Raises:
            NotRegisteredError: 등록되지 않은 사용자
            InvalidRateError: 목표 환율이 유한한 양수가 아님
        """
        user = self._require_user(user_id)
        rate = parse_rate(target_rate)

        subscription = Subscription(quantity=parse_quantity(quantity), target_rate=rate)
        # 인덱스 등록이 실패하면 저장소도 변경하지 않음
        key = self._index.insert(user_id, subscription.target_rate)
        user.subscriptions.append(subscription)

        logger.info(
            "구독 추가: ID=%s, 수량=%s, 목표=%s (key=%s), 총 구독=%d",
            user_id,
            subscription.quantity,
            subscription.target_rate,
            key,
            len(user.subscriptions),
        )
        return subscription

    def list_subscriptions(self, user_id: UserId) -> tuple[Subscription, ...]:
        """사용자의 구독 목록 (등록 순서, 읽기 전용)"""
        return tuple(self._require_user(user_id).subscriptions)

    def remove_subscription(self, user_id: UserId, position: int) -> Subscription:
        """구독 삭제 (position은 /subscriptions 에 표시되는 1부터 시작하는 번호)

        같은 키에 해당하는 다른 활성 구독이 남아 있으면 인덱스는 유지합니다.
        """
        user = self._require_user(user_id)
        if not 1 <= position <= len(user.subscriptions):
            raise InvalidArgumentsError(
                f"No subscription #{position}. Use /subscriptions to see your list.",
                detail={"position": position, "count": len(user.subscriptions)},
            )

        removed = user.subscriptions.pop(position - 1)
        still_subscribed = any(
            s.active and s.rate_key == removed.rate_key for s in user.subscriptions
        )
        if not still_subscribed:
            self._index.remove(user_id, removed.target_rate)

        logger.info(
            "구독 삭제: ID=%s, 목표=%s, 남은 구독=%d",
            user_id,
            removed.target_rate,
            len(user.subscriptions),
        )
        return removed

    def _require_user(self, user_id: UserId) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotRegisteredError(detail={"user_id": user_id})
        return user
