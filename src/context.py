"""
봇 실행 컨텍스트

구독 저장소, 환율 인덱스, 외부 클라이언트, 폴링 스케줄러, 명령 리스너를
시작 시 한 번 생성하여 하나의 컨텍스트로 묶습니다.
전역 상태 대신 이 컨텍스트를 FastAPI ``app.state`` 로 주입합니다.
"""

from __future__ import annotations

from dataclasses import dataclass

from config.settings import Settings
from src.bot.commands import CommandDispatcher
from src.bot.listener import UpdateListener
from src.notification.rate_notifier import RateNotifier
from src.notification.telegram_client import TelegramBotClient
from src.poller.rate_poller import RatePoller
from src.quote.jupiter_client import JupiterQuoteClient
from src.subscription.rate_index import RateIndex
from src.subscription.store import SubscriptionStore
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BotContext:
    settings: Settings
    rate_index: RateIndex
    store: SubscriptionStore
    quote_client: JupiterQuoteClient
    telegram: TelegramBotClient
    dispatcher: CommandDispatcher
    listener: UpdateListener
    poller: RatePoller

    async def start(self) -> None:
        """폴링과 명령 수신 시작"""
        self.poller.start(interval_seconds=self.settings.poll_interval_seconds)
        self.listener.start()

    async def shutdown(self) -> None:
        """새 폴링 예약 중지 → 명령 수신 중지 → HTTP 클라이언트 정리"""
        if self.poller.is_running:
            self.poller.stop()
        await self.listener.stop()
        await self.quote_client.close()
        await self.telegram.close()
        logger.info("봇 컨텍스트 종료 완료")


def build_context(settings: Settings) -> BotContext:
    """설정으로부터 전체 컴포넌트를 조립합니다."""
    rate_index = RateIndex()
    store = SubscriptionStore(rate_index)

    quote_client = JupiterQuoteClient(
        settings.jupiter_api_url,
        input_decimals=settings.input_decimals,
        output_decimals=settings.output_decimals,
        slippage_bps=settings.slippage_bps,
        restrict_intermediate_tokens=settings.restrict_intermediate_tokens,
        timeout=settings.http_timeout,
    )
    telegram = TelegramBotClient(
        settings.bot_token,
        settings.telegram_api_url,
        timeout=settings.http_timeout,
    )

    dispatcher = CommandDispatcher(
        store,
        input_symbol=settings.input_symbol,
        output_symbol=settings.output_symbol,
    )
    listener = UpdateListener(
        telegram,
        dispatcher,
        poll_timeout=settings.telegram_poll_timeout,
        error_backoff=settings.listener_error_backoff_seconds,
    )
    notifier = RateNotifier(
        telegram,
        input_symbol=settings.input_symbol,
        output_symbol=settings.output_symbol,
    )
    poller = RatePoller(
        quote_client,
        rate_index,
        notifier,
        amount=settings.quote_amount,
        from_asset=settings.input_mint,
        to_asset=settings.output_mint,
        cooldown_seconds=settings.notify_cooldown_seconds,
    )

    return BotContext(
        settings=settings,
        rate_index=rate_index,
        store=store,
        quote_client=quote_client,
        telegram=telegram,
        dispatcher=dispatcher,
        listener=listener,
        poller=poller,
    )
