"""
애플리케이션 설정 관리

pydantic-settings를 사용하여 환경변수 기반 설정을 관리합니다.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_MINT = "So11111111111111111111111111111111111111112"


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # Telegram 봇 설정
    bot_token: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    telegram_poll_timeout: int = 30
    listener_error_backoff_seconds: float = 3.0

    # Jupiter 시세 API 설정
    jupiter_api_url: str = "https://lite-api.jup.ag"
    input_mint: str = USDC_MINT
    output_mint: str = SOL_MINT
    input_symbol: str = "USDC"
    output_symbol: str = "SOL"
    input_decimals: int = 6
    output_decimals: int = 9
    quote_amount: int = 1_000_000  # 1 USDC (최소 단위)
    slippage_bps: int = 1000  # 10%
    restrict_intermediate_tokens: bool = True
    http_timeout: float = 10.0

    # 폴링 / 알림 설정
    poll_interval_seconds: int = 5
    notify_cooldown_seconds: int = 0

    # 앱 설정
    app_env: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# 전역 설정 인스턴스
settings = Settings()
