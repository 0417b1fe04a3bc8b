"""
봇 애플리케이션 엔트리포인트

uvicorn 위에서 FastAPI 상태 API와 함께 실행됩니다.
lifespan에서 봇 컨텍스트를 생성하고 폴링/명령 수신을 시작하며,
SIGINT/SIGTERM 수신 시 uvicorn이 lifespan 종료 구간을 실행합니다.
"""

from __future__ import annotations

import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import Settings, settings
from src.api.routes import router as base_router
from src.context import build_context
from src.exceptions import StartupConfigMissingError, register_exception_handlers
from src.utils.logger import get_logger

logger = get_logger(__name__)


def ensure_startup_config(config: Settings) -> None:
    """필수 설정 확인 — BOT_TOKEN이 없으면 시작할 수 없습니다."""
    logger.debug("BOT_TOKEN 설정 여부: %s", bool(config.bot_token))
    if not config.bot_token:
        raise StartupConfigMissingError(detail={"hint": ".env 파일에 BOT_TOKEN을 설정하세요."})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """애플리케이션 시작/종료 시 실행되는 로직"""
    # Startup
    ensure_startup_config(settings)
    context = build_context(settings)
    app.state.bot = context
    await context.start()
    logger.info(
        "🤖 Swap Rate Bot 시작 (환경: %s, %s → %s)",
        settings.app_env,
        settings.input_symbol,
        settings.output_symbol,
    )

    yield

    # Shutdown
    await context.shutdown()
    logger.info("👋 Swap Rate Bot 종료")


app = FastAPI(
    title="Swap Rate Bot",
    description="목표 스왑 환율 도달 시 Telegram으로 알려주는 봇의 상태 API",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)
app.include_router(base_router)


def run() -> None:
    """프로세스 엔트리포인트"""
    try:
        ensure_startup_config(settings)
    except StartupConfigMissingError as e:
        logger.error("❌ %s", e.message)
        sys.exit(1)

    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
