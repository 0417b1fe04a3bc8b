"""
알림 패키지

Telegram Bot API 클라이언트와 목표 환율 도달 알림 기능을 제공합니다.
"""

from __future__ import annotations

__all__ = [
    "RateNotifier",
    "TelegramBotClient",
]

from src.notification.rate_notifier import RateNotifier
from src.notification.telegram_client import TelegramBotClient
