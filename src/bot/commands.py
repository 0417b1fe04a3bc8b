"""
봇 명령 디스패처

채팅 메시지 텍스트를 파싱하여 /start, /subscribe, /subscriptions,
/unsubscribe, /help 명령을 처리하고 답장 텍스트를 반환합니다.

모든 핸들러는 에러 경계 안에서 실행됩니다. 한 사용자의 잘못된 입력이
공유 프로세스를 중단시키지 않도록 예외는 답장 메시지로 변환됩니다.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from src.exceptions import SUBSCRIBE_USAGE, AppError, InvalidArgumentsError, NotRegisteredError
from src.subscription.rate_index import UserId
from src.subscription.store import SubscriptionStore
from src.utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = (
    "Commands:\n"
    "/start - Start the bot\n"
    "/subscribe <quantity> <target_rate> - Subscribe to a rate\n"
    "/subscriptions - List your subscriptions\n"
    "/unsubscribe <number> - Remove a subscription\n"
    "/help - Show this help message"
)
START_REPLY = "Hello there!"
NOT_STARTED_REPLY = "Please use /start first"
NO_SUBSCRIPTIONS_REPLY = "You have no subscriptions yet. Use /subscribe to add one."
UNSUBSCRIBE_USAGE = "Usage: /unsubscribe <number>"
INTERNAL_ERROR_REPLY = AppError.message


@dataclass(frozen=True)
class IncomingMessage:
    """디스패처 입력 — 메시징 플랫폼과 무관한 최소 정보"""

    user_id: UserId
    text: str
    display_name: str = ""
    username: str | None = None


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: list[str] = field(default_factory=list)


def parse_command(text: str) -> ParsedCommand | None:
    """``/subscribe@my_bot 1 150.5`` → ParsedCommand("subscribe", ["1", "150.5"])

    명령이 아닌 텍스트는 None을 반환합니다.
    """
    parts = text.strip().split()
    if not parts or not parts[0].startswith("/"):
        return None

    name = parts[0][1:].split("@", 1)[0].lower()
    if not name:
        return None
    return ParsedCommand(name=name, args=parts[1:])


Handler = Callable[[IncomingMessage, list[str]], Awaitable[str]]


class CommandDispatcher:
    """명령 이름 → 핸들러 라우팅"""

    def __init__(
        self,
        store: SubscriptionStore,
        input_symbol: str = "USDC",
        output_symbol: str = "SOL",
    ) -> None:
        self._store = store
        self.input_symbol = input_symbol
        self.output_symbol = output_symbol
        self._handlers: dict[str, Handler] = {
            "start": self.handle_start,
            "subscribe": self.handle_subscribe,
            "subscriptions": self.handle_subscriptions,
            "unsubscribe": self.handle_unsubscribe,
            "help": self.handle_help,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, message: IncomingMessage) -> str | None:
        """
        메시지를 처리하고 답장 텍스트를 반환합니다.

        Returns:
            답장 텍스트. 명령이 아니거나 알 수 없는 명령이면 None.
        """
        command = parse_command(message.text)
        if command is None:
            return None

        handler = self._handlers.get(command.name)
        if handler is None:
            logger.debug("알 수 없는 명령 무시: /%s", command.name)
            return None

        logger.debug(
            "/%s 명령 수신: user=%s, username=%s, args=%s",
            command.name,
            message.user_id,
            message.username,
            command.args,
        )

        try:
            return await handler(message, command.args)
        except AppError as e:
            logger.info(
                "/%s 처리 실패 (%s): user=%s",
                command.name,
                e.code,
                message.user_id,
                extra={"user_id": message.user_id, "command": command.name},
            )
            return e.message
        except Exception:
            logger.exception(
                "/%s 처리 중 예상치 못한 오류: user=%s",
                command.name,
                message.user_id,
                extra={"user_id": message.user_id, "command": command.name},
            )
            return INTERNAL_ERROR_REPLY

    # ───────────────── Handlers ─────────────────

    async def handle_start(self, message: IncomingMessage, _args: list[str]) -> str:
        self._store.ensure_user(message.user_id, message.display_name)
        return START_REPLY

    async def handle_subscribe(self, message: IncomingMessage, args: list[str]) -> str:
        if message.user_id not in self._store:
            raise NotRegisteredError(detail={"user_id": message.user_id})
        if len(args) < 2:
            raise InvalidArgumentsError(SUBSCRIBE_USAGE, detail={"args": args})

        subscription = self._store.add_subscription(message.user_id, args[0], args[1])
        return (
            "Subscribed successfully! "
            f"You'll be notified when 1 {self.output_symbol} = "
            f"{subscription.rate_key} {self.input_symbol}."
        )

    async def handle_subscriptions(self, message: IncomingMessage, _args: list[str]) -> str:
        if message.user_id not in self._store:
            return NOT_STARTED_REPLY

        subscriptions = self._store.list_subscriptions(message.user_id)
        if not subscriptions:
            return NO_SUBSCRIPTIONS_REPLY

        return "\n".join(
            f"{idx}. {s.quantity:g} {self.output_symbol} @ "
            f"{s.rate_key} {self.input_symbol}"
            for idx, s in enumerate(subscriptions, 1)
        )

    async def handle_unsubscribe(self, message: IncomingMessage, args: list[str]) -> str:
        if message.user_id not in self._store:
            raise NotRegisteredError(detail={"user_id": message.user_id})
        if len(args) != 1 or not args[0].isdigit():
            raise InvalidArgumentsError(UNSUBSCRIBE_USAGE, detail={"args": args})

        removed = self._store.remove_subscription(message.user_id, int(args[0]))
        return (
            f"Unsubscribed from 1 {self.output_symbol} = "
            f"{removed.rate_key} {self.input_symbol}."
        )

    async def handle_help(self, _message: IncomingMessage, _args: list[str]) -> str:
        return HELP_TEXT
