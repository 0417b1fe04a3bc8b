"""
봇 명령 처리 패키지

채팅 명령 파싱/디스패치와 Telegram 업데이트 수신 루프를 제공합니다.
"""

from __future__ import annotations

__all__ = [
    "CommandDispatcher",
    "IncomingMessage",
    "UpdateListener",
]

from src.bot.commands import CommandDispatcher, IncomingMessage
from src.bot.listener import UpdateListener
