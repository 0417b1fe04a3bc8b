"""
설정 패키지

환경변수 기반 설정을 구조화하여 관리합니다.
- settings: Telegram 봇 / Jupiter 시세 API / 폴링 주기 설정
"""

from __future__ import annotations

from config.settings import settings

__all__ = ["settings"]
