"""
Telegram Bot API 클라이언트

Bot API의 ``getUpdates`` (long polling)와 ``sendMessage`` 만 사용합니다.

References:
    - https://core.telegram.org/bots/api#getupdates
    - https://core.telegram.org/bots/api#sendmessage
"""

from __future__ import annotations

from typing import Any

import httpx

from src.exceptions import TelegramError
from src.utils.logger import get_logger
from src.utils.retry import async_retry

logger = get_logger(__name__)

# Telegram 메시지 최대 길이
MAX_MESSAGE_LENGTH = 4096


class TelegramBotClient:
    """Telegram Bot API 클라이언트

    Usage::

        client = TelegramBotClient(token="123:abc")
        updates = await client.get_updates(offset=0, timeout=30)
        await client.send_message(chat_id=42, text="Hello there!")
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/bot{token}",
            timeout=timeout,
        )

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        await self._client.aclose()

    async def get_updates(self, offset: int = 0, timeout: int = 30) -> list[dict[str, Any]]:
        """
        새 업데이트 조회 (long polling)

        Args:
            offset: 마지막으로 처리한 update_id + 1
            timeout: 서버 측 대기 시간 (초)

        Returns:
            업데이트 리스트 (없으면 빈 리스트)
        """
        result = await self._call(
            "getUpdates",
            {"offset": offset, "timeout": timeout, "allowed_updates": ["message"]},
            request_timeout=timeout + self.timeout,
        )
        return result if isinstance(result, list) else []

    @async_retry(max_retries=2, base_delay=0.5, retryable=(httpx.TransportError,))
    async def send_message(self, chat_id: int | str, text: str) -> dict[str, Any]:
        """메시지 전송 (네트워크 오류 시 최대 2회 재시도)"""
        result = await self._call(
            "sendMessage",
            {"chat_id": chat_id, "text": text[:MAX_MESSAGE_LENGTH]},
        )
        logger.debug("메시지 전송 완료: chat_id=%s", chat_id)
        return result if isinstance(result, dict) else {}

    async def _call(
        self,
        method: str,
        payload: dict[str, Any],
        *,
        request_timeout: float | None = None,
    ) -> Any:
        """Bot API 메서드 호출

        HTTP 상태 코드와 무관하게 응답 본문의 ``ok`` 필드로 성공 여부를 판단합니다.
        전송 계층 오류(httpx.TransportError)는 재시도를 위해 그대로 전파합니다.
        """
        response = await self._client.post(
            f"/{method}",
            json=payload,
            timeout=request_timeout or self.timeout,
        )

        try:
            body = response.json()
        except ValueError as e:
            raise TelegramError(
                f"{method}: 응답 JSON 파싱 실패 (HTTP {response.status_code})",
                detail={"status_code": response.status_code},
            ) from e

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise TelegramError(
                f"{method} 실패: {description or response.status_code}",
                detail={"status_code": response.status_code, "description": description},
            )

        return body.get("result")
