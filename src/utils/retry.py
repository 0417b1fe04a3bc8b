"""
에러 재시도 유틸리티 — Exponential Backoff + Jitter

Telegram 메시지 전송처럼 사용자에게 결과가 전달되어야 하는 외부 호출에서
일시적인 네트워크 오류를 자동으로 재시도합니다.

시세 폴링은 재시도하지 않습니다. 다음 폴링 주기가 곧 재시도입니다.

Usage::

    @async_retry(max_retries=2, base_delay=0.5, retryable=(httpx.TransportError,))
    async def send_message(...):
        ...
"""

from __future__ import annotations

import asyncio
import functools
import random
from collections.abc import Callable
from typing import Any, TypeVar

from src.utils.logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class RetryExhaustedError(Exception):
    """모든 재시도가 소진된 경우 발생하는 예외

    Attributes:
        attempts: 총 시도 횟수
        last_exception: 마지막으로 발생한 예외
    """

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        last_exception: Exception | None = None,
    ) -> None:
        self.attempts = attempts
        self.last_exception = last_exception
        super().__init__(message)


def _calculate_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    jitter: bool,
) -> float:
    """Exponential backoff + optional full jitter 지연 시간 (초)

    attempt는 0부터 시작합니다.
    """
    delay = min(base_delay * (2 ** attempt), max_delay)
    if jitter:
        delay = random.uniform(0, delay)  # noqa: S311
    return delay


def async_retry(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    jitter: bool = True,
    retryable: tuple[type[Exception], ...] = (Exception,),
    non_retryable: tuple[type[Exception], ...] = (),
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> Callable[[F], F]:
    """비동기 함수용 재시도 데코레이터

    Args:
        max_retries: 최대 재시도 횟수 (0이면 재시도 안 함)
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: True이면 랜덤 jitter 추가
        retryable: 재시도할 예외 타입 튜플
        non_retryable: 재시도하지 않을 예외 타입 (retryable보다 우선)
        on_retry: 재시도 시 호출할 콜백 (attempt, exception, delay)

    Raises:
        RetryExhaustedError: 재시도가 모두 실패한 경우
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except non_retryable:
                    raise
                except retryable as e:
                    if attempt >= max_retries:
                        logger.warning(
                            "재시도 소진: %s (총 %d회 시도, 마지막 에러: %s)",
                            func.__name__,
                            attempt + 1,
                            e,
                        )
                        raise RetryExhaustedError(
                            f"{func.__name__}: {max_retries}회 재시도 후에도 실패",
                            attempts=attempt + 1,
                            last_exception=e,
                        ) from e

                    delay = _calculate_delay(attempt, base_delay, max_delay, jitter)
                    attempt += 1
                    logger.info(
                        "재시도 %d/%d: %s (에러: %s, %.2f초 후 재시도)",
                        attempt,
                        max_retries,
                        func.__name__,
                        e,
                        delay,
                    )
                    if on_retry is not None:
                        on_retry(attempt, e, delay)

                    await asyncio.sleep(delay)

        return wrapper  # type: ignore[return-value]

    return decorator
