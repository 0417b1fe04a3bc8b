"""
목표 환율 도달 알림 모듈

폴링에서 매칭된 사용자에게 Telegram 메시지를 전송합니다.
"""

from __future__ import annotations

from decimal import Decimal

import httpx

from src.exceptions import TelegramError
from src.notification.telegram_client import TelegramBotClient
from src.quote.jupiter_client import QuoteSample
from src.subscription.rate_index import UserId
from src.utils.logger import get_logger
from src.utils.retry import RetryExhaustedError

logger = get_logger(__name__)


class RateNotifier:
    """목표 환율 도달 알림기"""

    def __init__(
        self,
        telegram: TelegramBotClient,
        input_symbol: str = "USDC",
        output_symbol: str = "SOL",
    ) -> None:
        self._telegram = telegram
        self.input_symbol = input_symbol
        self.output_symbol = output_symbol

    def build_message(self, sample: QuoteSample, key: Decimal) -> str:
        return (
            f"🎉 Target reached! 1 {self.output_symbol} = {key} {self.input_symbol}\n"
            f"(current rate: {sample.rate:.4f} {self.input_symbol})"
        )

    async def notify(self, user_id: UserId, sample: QuoteSample, key: Decimal) -> bool:
        """
        매칭된 사용자 한 명에게 알림 전송

        Telegram 개인 채팅은 chat_id == user_id 이므로 사용자 ID로 바로 전송합니다.
        전송 실패는 로그만 남기고 False를 반환합니다 (폴링 사이클에 전파하지 않음).
        """
        try:
            await self._telegram.send_message(user_id, self.build_message(sample, key))
        except (TelegramError, RetryExhaustedError, httpx.HTTPError) as e:
            logger.error(
                "알림 전송 실패: user=%s, key=%s, error=%s",
                user_id,
                key,
                e,
                extra={"user_id": user_id, "rate_key": str(key)},
            )
            return False

        logger.info("알림 전송 완료: user=%s, key=%s", user_id, key)
        return True
