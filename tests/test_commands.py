"""CommandDispatcher 테스트"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest

from src.bot.commands import (
    HELP_TEXT,
    INTERNAL_ERROR_REPLY,
    NO_SUBSCRIPTIONS_REPLY,
    NOT_STARTED_REPLY,
    START_REPLY,
    CommandDispatcher,
    IncomingMessage,
    parse_command,
)
from src.exceptions import SUBSCRIBE_USAGE, NotRegisteredError
from src.subscription.rate_index import RateIndex
from src.subscription.store import SubscriptionStore


@pytest.fixture
def dispatcher(store: SubscriptionStore) -> CommandDispatcher:
    return CommandDispatcher(store, input_symbol="USDC", output_symbol="SOL")


def _msg(text: str, user_id: int = 42, name: str = "alice") -> IncomingMessage:
    return IncomingMessage(user_id=user_id, text=text, display_name=name)


# ────────────────── 파싱 ──────────────────


class TestParseCommand:
    def test_command_with_args(self) -> None:
        parsed = parse_command("/subscribe 1 150.5")
        assert parsed is not None
        assert parsed.name == "subscribe"
        assert parsed.args == ["1", "150.5"]

    def test_bot_mention_suffix(self) -> None:
        parsed = parse_command("/Start@swap_rate_bot")
        assert parsed is not None
        assert parsed.name == "start"
        assert parsed.args == []

    @pytest.mark.parametrize("text", ["", "   ", "hello", "/", "/@bot"])
    def test_not_a_command(self, text: str) -> None:
        assert parse_command(text) is None


# ────────────────── /start, /help ──────────────────


@pytest.mark.asyncio
async def test_start_registers_user(
    dispatcher: CommandDispatcher, store: SubscriptionStore
) -> None:
    reply = await dispatcher.dispatch(_msg("/start"))

    assert reply == START_REPLY
    assert store.get_user(42) is not None
    assert store.get_user(42).name == "alice"


@pytest.mark.asyncio
async def test_help(dispatcher: CommandDispatcher) -> None:
    reply = await dispatcher.dispatch(_msg("/help", user_id=7))

    assert reply == HELP_TEXT
    for command in dispatcher.commands:
        assert f"/{command}" in reply


@pytest.mark.asyncio
async def test_non_command_and_unknown_command(dispatcher: CommandDispatcher) -> None:
    assert await dispatcher.dispatch(_msg("hello")) is None
    assert await dispatcher.dispatch(_msg("/price")) is None


# ────────────────── /subscribe ──────────────────


@pytest.mark.asyncio
async def test_subscribe_before_start(
    dispatcher: CommandDispatcher, rate_index: RateIndex
) -> None:
    reply = await dispatcher.dispatch(_msg("/subscribe 1 150.5"))

    assert reply == NotRegisteredError.message
    assert len(rate_index) == 0


@pytest.mark.asyncio
async def test_subscribe_success(
    dispatcher: CommandDispatcher, store: SubscriptionStore, rate_index: RateIndex
) -> None:
    await dispatcher.dispatch(_msg("/start"))
    reply = await dispatcher.dispatch(_msg("/subscribe 2 150.5"))

    assert reply is not None
    assert reply.startswith("Subscribed successfully!")
    assert "1 SOL = 150.50 USDC" in reply
    assert store.list_subscriptions(42)[0].quantity == 2.0
    assert rate_index.lookup(150.5) == {42}


@pytest.mark.asyncio
async def test_subscribe_non_numeric_quantity_defaults(
    dispatcher: CommandDispatcher, store: SubscriptionStore
) -> None:
    await dispatcher.dispatch(_msg("/start"))
    await dispatcher.dispatch(_msg("/subscribe some 150.5"))

    assert store.list_subscriptions(42)[0].quantity == 1.0


@pytest.mark.asyncio
async def test_subscribe_malformed(
    dispatcher: CommandDispatcher, store: SubscriptionStore, rate_index: RateIndex
) -> None:
    """/subscribe abc → 사용법 안내, 구독/인덱스 변화 없음"""
    await dispatcher.dispatch(_msg("/start"))
    reply = await dispatcher.dispatch(_msg("/subscribe abc"))

    assert reply == SUBSCRIBE_USAGE
    assert store.list_subscriptions(42) == ()
    assert len(rate_index) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("rate", ["abc", "0", "-3", "nan"])
async def test_subscribe_invalid_rate(
    dispatcher: CommandDispatcher,
    store: SubscriptionStore,
    rate_index: RateIndex,
    rate: str,
) -> None:
    await dispatcher.dispatch(_msg("/start"))
    reply = await dispatcher.dispatch(_msg(f"/subscribe 1 {rate}"))

    assert reply is not None
    assert SUBSCRIBE_USAGE in reply
    assert store.list_subscriptions(42) == ()
    assert len(rate_index) == 0


# ────────────────── /subscriptions ──────────────────


@pytest.mark.asyncio
async def test_subscriptions_before_start(dispatcher: CommandDispatcher) -> None:
    reply = await dispatcher.dispatch(_msg("/subscriptions"))
    assert reply == NOT_STARTED_REPLY


@pytest.mark.asyncio
async def test_subscriptions_empty(dispatcher: CommandDispatcher) -> None:
    await dispatcher.dispatch(_msg("/start"))
    reply = await dispatcher.dispatch(_msg("/subscriptions"))
    assert reply == NO_SUBSCRIPTIONS_REPLY


@pytest.mark.asyncio
async def test_subscriptions_listing(dispatcher: CommandDispatcher) -> None:
    await dispatcher.dispatch(_msg("/start"))
    await dispatcher.dispatch(_msg("/subscribe 1 150.5"))
    await dispatcher.dispatch(_msg("/subscribe 0.5 233.194"))

    reply = await dispatcher.dispatch(_msg("/subscriptions"))

    assert reply == "1. 1 SOL @ 150.50 USDC\n2. 0.5 SOL @ 233.19 USDC"


@pytest.mark.asyncio
async def test_huge_rate_subscription_stays_usable(
    dispatcher: CommandDispatcher, rate_index: RateIndex
) -> None:
    big = "1" + "0" * 30 + ".00"
    await dispatcher.dispatch(_msg("/start"))
    await dispatcher.dispatch(_msg("/subscribe 1 1e30"))
    await dispatcher.dispatch(_msg("/subscribe 1 150.5"))

    listing = await dispatcher.dispatch(_msg("/subscriptions"))
    removed = await dispatcher.dispatch(_msg("/unsubscribe 1"))

    assert listing == f"1. 1 SOL @ {big} USDC\n2. 1 SOL @ 150.50 USDC"
    assert removed == f"Unsubscribed from 1 SOL = {big} USDC."
    assert rate_index.keys() == [Decimal("150.50")]


# ────────────────── /unsubscribe ──────────────────


@pytest.mark.asyncio
async def test_unsubscribe(
    dispatcher: CommandDispatcher, store: SubscriptionStore, rate_index: RateIndex
) -> None:
    await dispatcher.dispatch(_msg("/start"))
    await dispatcher.dispatch(_msg("/subscribe 1 150.5"))

    reply = await dispatcher.dispatch(_msg("/unsubscribe 1"))

    assert reply == "Unsubscribed from 1 SOL = 150.50 USDC."
    assert store.list_subscriptions(42) == ()
    assert rate_index.lookup(150.5) == frozenset()


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/unsubscribe", "/unsubscribe x", "/unsubscribe 5"])
async def test_unsubscribe_bad_arguments(dispatcher: CommandDispatcher, text: str) -> None:
    await dispatcher.dispatch(_msg("/start"))
    reply = await dispatcher.dispatch(_msg(text))

    assert reply is not None
    assert "/unsubscribe" in reply or "/subscriptions" in reply


# ────────────────── 에러 경계 ──────────────────


@pytest.mark.asyncio
async def test_unexpected_error_is_contained(
    dispatcher: CommandDispatcher, store: SubscriptionStore
) -> None:
    """예상치 못한 예외도 답장으로 변환되고 전파되지 않음"""
    await dispatcher.dispatch(_msg("/start"))

    with patch.object(store, "add_subscription", side_effect=RuntimeError("boom")):
        reply = await dispatcher.dispatch(_msg("/subscribe 1 150.5"))

    assert reply == INTERNAL_ERROR_REPLY
