"""
Telegram 업데이트 수신 루프

getUpdates long polling으로 새 메시지를 받아 CommandDispatcher에 전달하고,
답장을 같은 채팅으로 전송합니다.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import httpx

from src.bot.commands import CommandDispatcher, IncomingMessage
from src.exceptions import TelegramError
from src.notification.telegram_client import TelegramBotClient
from src.utils.logger import get_logger
from src.utils.retry import RetryExhaustedError

logger = get_logger(__name__)


class UpdateListener:
    """명령 수신 리스너 — start()/stop()으로 백그라운드 태스크 관리"""

    def __init__(
        self,
        telegram: TelegramBotClient,
        dispatcher: CommandDispatcher,
        *,
        poll_timeout: int = 30,
        error_backoff: float = 3.0,
    ) -> None:
        self._telegram = telegram
        self._dispatcher = dispatcher
        self.poll_timeout = poll_timeout
        self.error_backoff = error_backoff
        self._offset = 0
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def offset(self) -> int:
        return self._offset

    def start(self) -> None:
        """수신 루프 시작"""
        if self._running:
            logger.warning("리스너가 이미 실행 중입니다")
            return

        self._running = True
        self._task = asyncio.create_task(self._run(), name="telegram-update-listener")
        logger.info("Telegram 명령 수신 시작")

    async def stop(self) -> None:
        """수신 루프 중지 — 진행 중인 long polling 요청은 버립니다"""
        self._running = False

        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        elif self._task and not self._task.cancelled() and self._task.exception():
            # 이미 종료된 루프의 예외는 _run에서 로그됨, 여기서는 회수만
            logger.debug("종료된 수신 루프 정리: %r", self._task.exception())
        self._task = None
        logger.info("Telegram 명령 수신 중지")

    async def _run(self) -> None:
        try:
            while self._running:
                try:
                    updates = await self._telegram.get_updates(
                        offset=self._offset, timeout=self.poll_timeout
                    )
                except (TelegramError, httpx.HTTPError) as e:
                    logger.warning(
                        "업데이트 조회 실패: %s (%.1f초 후 재시도)", e, self.error_backoff
                    )
                    await asyncio.sleep(self.error_backoff)
                    continue

                for update in updates:
                    try:
                        await self.process_update(update)
                    except Exception:
                        logger.exception("업데이트 처리 중 예상치 못한 오류: %r", update)
        except Exception:
            logger.exception("수신 루프 비정상 종료")
            raise
        finally:
            self._running = False

    async def process_update(self, update: dict[str, Any]) -> None:
        """업데이트 1건 처리 — offset은 처리 결과와 무관하게 전진합니다"""
        if not isinstance(update, dict):
            logger.warning("알 수 없는 업데이트 형식 무시: %r", update)
            return

        update_id = update.get("update_id")
        if isinstance(update_id, int):
            self._offset = max(self._offset, update_id + 1)

        message = update.get("message")
        if not isinstance(message, dict):
            return

        text = message.get("text")
        sender = message.get("from") or {}
        chat = message.get("chat") or {}
        if not text or "id" not in sender:
            return

        incoming = IncomingMessage(
            user_id=sender["id"],
            text=text,
            display_name=sender.get("first_name", ""),
            username=sender.get("username"),
        )
        reply = await self._dispatcher.dispatch(incoming)
        if reply is None:
            return

        chat_id = chat.get("id", sender["id"])
        try:
            await self._telegram.send_message(chat_id, reply)
        except (TelegramError, RetryExhaustedError, httpx.HTTPError) as e:
            logger.error(
                "답장 전송 실패: chat_id=%s, error=%s", chat_id, e, extra={"chat_id": chat_id}
            )
