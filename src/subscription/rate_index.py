"""
목표 환율 인덱스

소수점 둘째 자리로 양자화한 목표 환율 → 구독 사용자 ID 집합 매핑입니다.
폴링 시 "이 환율을 기다리는 사용자"를 O(1)로 찾기 위해 사용합니다.

구독 경로(insert)와 폴링 경로(lookup)는 반드시 같은 ``quantize()`` 를
사용해야 합니다. 반올림 규칙이 어긋나면 매칭이 조용히 누락됩니다.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal

from src.utils.logger import get_logger

logger = get_logger(__name__)

UserId = int | str

RATE_PRECISION = Decimal("0.01")


def quantize(rate: float | str | Decimal) -> Decimal:
    """환율을 소수점 둘째 자리로 반올림 (ROUND_HALF_UP)

    float는 ``str()`` 을 거쳐 Decimal로 변환합니다.
    ``Decimal(233.195)`` 처럼 이진 표현을 그대로 쓰면 233.19로 내려갈 수 있습니다.

    >>> str(quantize(150.505))
    '150.51'
    >>> str(quantize(150.5))
    '150.50'

    기본 컨텍스트(28자리)로는 1e26 이상에서 InvalidOperation이 나므로
    정수부 자릿수 + 소수 2자리를 담을 수 있는 정밀도를 지정합니다.
    """
    value = rate if isinstance(rate, Decimal) else Decimal(str(rate))
    context = Context(prec=max(28, value.adjusted() + 3))
    return value.quantize(RATE_PRECISION, rounding=ROUND_HALF_UP, context=context)


class RateIndex:
    """양자화된 목표 환율 → 사용자 ID 집합"""

    def __init__(self) -> None:
        self._entries: dict[Decimal, set[UserId]] = {}

    def insert(self, user_id: UserId, rate: float | str | Decimal) -> Decimal:
        """사용자를 해당 환율 키에 등록 (이미 있으면 no-op)"""
        key = quantize(rate)
        users = self._entries.setdefault(key, set())
        if user_id not in users:
            users.add(user_id)
            logger.debug("인덱스 등록: key=%s, user=%s", key, user_id)
        return key

    def remove(self, user_id: UserId, rate: float | str | Decimal) -> bool:
        """사용자를 해당 환율 키에서 제거, 비어 있는 키는 삭제"""
        key = quantize(rate)
        users = self._entries.get(key)
        if users is None or user_id not in users:
            return False

        users.discard(user_id)
        if not users:
            del self._entries[key]
        logger.debug("인덱스 제거: key=%s, user=%s", key, user_id)
        return True

    def lookup(self, rate: float | str | Decimal) -> frozenset[UserId]:
        """해당 환율을 기다리는 사용자 집합 (없으면 빈 집합)"""
        return frozenset(self._entries.get(quantize(rate), ()))

    def keys(self) -> list[Decimal]:
        return sorted(self._entries)

    def snapshot(self) -> dict[str, list[UserId]]:
        """상태 API용 직렬화 스냅샷"""
        return {
            str(key): sorted(users, key=str)
            for key, users in sorted(self._entries.items())
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, rate: object) -> bool:
        if not isinstance(rate, (int, float, str, Decimal)):
            return False
        return quantize(rate) in self._entries
