"""
커스텀 예외 클래스 및 FastAPI 예외 핸들러

모든 비즈니스 예외는 AppError를 상속합니다.
봇 명령 핸들러에서는 ``message`` 가 그대로 사용자 답장으로 쓰이고,
상태 API에서는 일관된 JSON 형식으로 반환됩니다.

응답 형식::

    {
        "error": {
            "code": "QUOTE_UNAVAILABLE",
            "message": "Price quote is currently unavailable.",
            "detail": { ... }  // optional
        }
    }
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

SUBSCRIBE_USAGE = "Usage: /subscribe <quantity> <target_rate>"


# ───────────────────────── Base ─────────────────────────


class AppError(Exception):
    """애플리케이션 최상위 예외"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Something went wrong. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        *,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.detail = detail
        super().__init__(self.message)


# ───────────────────── Concrete Errors ──────────────────


class NotRegisteredError(AppError):
    """/start 이전에 명령을 사용한 경우 (403)"""

    status_code = 403
    code = "NOT_REGISTERED"
    message = "Please use /start command first"


class InvalidArgumentsError(AppError):
    """명령 인자 형식 오류 (422)"""

    status_code = 422
    code = "INVALID_ARGUMENTS"
    message = SUBSCRIBE_USAGE


class InvalidRateError(InvalidArgumentsError):
    """목표 환율이 유한한 양수가 아님 (422)"""

    code = "INVALID_RATE"
    message = f"Invalid rate. Please enter a positive number.\n{SUBSCRIBE_USAGE}"


class QuoteUnavailableError(AppError):
    """시세 API 호출 실패 (502)"""

    status_code = 502
    code = "QUOTE_UNAVAILABLE"
    message = "Price quote is currently unavailable."


class TelegramError(AppError):
    """Telegram Bot API 호출 실패 (502)"""

    status_code = 502
    code = "TELEGRAM_ERROR"
    message = "Telegram Bot API request failed."


class StartupConfigMissingError(AppError):
    """필수 설정 누락 — 프로세스를 시작할 수 없음"""

    status_code = 500
    code = "STARTUP_CONFIG_MISSING"
    message = "BOT_TOKEN is not set"


# ──────────────────── Exception Handlers ────────────────


def _error_body(code: str, message: str, detail: Any = None) -> dict:
    body: dict[str, Any] = {"error": {"code": code, "message": message}}
    if detail is not None:
        body["error"]["detail"] = detail
    return body


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    """AppError 계열 예외를 일관된 JSON으로 변환"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.detail),
    )


async def unhandled_error_handler(
    _request: Request, _exc: Exception
) -> JSONResponse:
    """예상치 못한 예외에 대한 안전한 500 응답"""
    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_ERROR", AppError.message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """FastAPI 앱에 예외 핸들러를 등록합니다."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
