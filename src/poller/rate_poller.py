"""
환율 폴링 스케줄러 — 주기적으로 시세를 조회하고 구독과 매칭

매 주기마다:
1. 고정 수량(1 USDC)으로 스왑 견적 조회
2. 실패 시 로그만 남기고 이번 주기 종료 (재시도 없음, 다음 주기가 재시도)
3. 성공 시 환율을 양자화하여 RateIndex 조회
4. 매칭된 사용자마다 알림 1건 전송

매칭은 양자화 후 정확히 일치하는 경우에만 성립합니다 (임계값 비교 아님).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.exceptions import QuoteUnavailableError
from src.notification.rate_notifier import RateNotifier
from src.quote.jupiter_client import JupiterQuoteClient
from src.subscription.rate_index import RateIndex, UserId, quantize
from src.utils.logger import get_logger

logger = get_logger(__name__)

JOB_ID = "rate_poll_tick"


class PollState(str, Enum):
    """폴링 상태 — IDLE → POLLING → (MATCH_FOUND | NO_MATCH | POLL_FAILED) → IDLE"""

    IDLE = "idle"
    POLLING = "polling"
    MATCH_FOUND = "match_found"
    NO_MATCH = "no_match"
    POLL_FAILED = "poll_failed"


class RatePoller:
    """환율 폴링 + 구독 매칭"""

    MAX_HISTORY = 100

    def __init__(
        self,
        quote_source: JupiterQuoteClient,
        rate_index: RateIndex,
        notifier: RateNotifier,
        *,
        amount: int,
        from_asset: str,
        to_asset: str,
        cooldown_seconds: int = 0,
        event_loop: Any | None = None,
    ) -> None:
        """
        Parameters
        ----------
        quote_source:
            get_rate(amount, from_asset, to_asset) 를 제공하는 시세 클라이언트
        rate_index:
            구독 저장소와 공유하는 목표 환율 인덱스
        notifier:
            매칭된 사용자에게 알림을 보내는 알림기
        amount:
            견적 요청 수량 (입력 자산 최소 단위)
        cooldown_seconds:
            같은 사용자/같은 키에 대한 재알림 최소 간격. 0이면 매 주기 알림.
        event_loop:
            APScheduler가 붙을 asyncio 이벤트 루프. None이면 실행 중인 루프 사용.
        """
        self._quote = quote_source
        self._index = rate_index
        self._notifier = notifier
        self.amount = amount
        self.from_asset = from_asset
        self.to_asset = to_asset
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self._event_loop = event_loop
        self._scheduler = self._create_scheduler()
        self._is_running = False
        self._interval_seconds: int = 5
        self._state = PollState.IDLE
        self._last_notified: dict[tuple[UserId, Decimal], datetime] = {}
        self._history: list[dict[str, Any]] = []

    def _create_scheduler(self) -> AsyncIOScheduler:
        kwargs: dict[str, Any] = {"timezone": UTC}
        if self._event_loop is not None:
            kwargs["event_loop"] = self._event_loop
        return AsyncIOScheduler(**kwargs)

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ───────────────── 시작 / 중지 ─────────────────

    def start(self, interval_seconds: int = 5) -> None:
        """폴링 시작 — 이전 주기가 끝나지 않았으면 다음 주기는 건너뜁니다"""
        if self._is_running:
            logger.warning("폴링이 이미 실행 중입니다")
            return

        self._interval_seconds = interval_seconds
        self._scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=interval_seconds, timezone=UTC),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self._is_running = True
        logger.info("환율 폴링 시작: %d초 간격", interval_seconds)

    def stop(self) -> None:
        """폴링 중지 — 새 주기 예약을 멈추고, 진행 중인 요청은 기다리지 않습니다"""
        if not self._is_running:
            logger.warning("폴링이 실행 중이 아닙니다")
            return

        self._scheduler.shutdown(wait=False)
        # 재시작 가능하도록 새 스케줄러 준비
        self._scheduler = self._create_scheduler()
        self._is_running = False
        logger.info("환율 폴링 중지")

    # ───────────────── 폴링 주기 ─────────────────

    async def tick(self) -> dict[str, Any]:
        """폴링 1회 실행 — 어떤 경우에도 예외를 밖으로 던지지 않습니다"""
        now = datetime.now(UTC)
        self._state = PollState.POLLING

        try:
            sample = await self._quote.get_rate(self.amount, self.from_asset, self.to_asset)
        except QuoteUnavailableError as e:
            logger.warning("시세 조회 실패 — 이번 주기 스킵: %s", e.message)
            return self._finish(
                PollState.POLL_FAILED,
                {"timestamp": now.isoformat(), "error": e.message},
            )
        except Exception:
            logger.exception("시세 조회 중 예상치 못한 오류")
            return self._finish(
                PollState.POLL_FAILED,
                {"timestamp": now.isoformat(), "error": "시세 조회 중 오류 발생"},
            )

        key = quantize(sample.rate)
        matched = self._index.lookup(key)
        logger.debug("현재 환율: %.6f (key=%s), 매칭 %d명", sample.rate, key, len(matched))

        result: dict[str, Any] = {
            "timestamp": now.isoformat(),
            "rate": sample.rate,
            "key": str(key),
            "matched_users": sorted(matched, key=str),
            "notified": [],
        }
        self._prune_expired(now)
        if not matched:
            return self._finish(PollState.NO_MATCH, result)

        logger.info(
            "목표 환율 도달: key=%s, 사용자 %d명",
            key,
            len(matched),
            extra={"rate_key": str(key)},
        )
        for user_id in result["matched_users"]:
            if not self._is_ready_to_notify(user_id, key, now):
                continue
            if await self._notifier.notify(user_id, sample, key):
                if self.cooldown:
                    self._last_notified[(user_id, key)] = now
                result["notified"].append(user_id)

        return self._finish(PollState.MATCH_FOUND, result)

    def _is_ready_to_notify(self, user_id: UserId, key: Decimal, now: datetime) -> bool:
        """Cooldown이 지났는지 확인"""
        last = self._last_notified.get((user_id, key))
        if last is None or not self.cooldown:
            return True
        return now - last >= self.cooldown

    def _prune_expired(self, now: datetime) -> None:
        """cooldown이 지난 알림 기록 삭제 (해지된 구독 포함)"""
        expired = [k for k, last in self._last_notified.items() if now - last >= self.cooldown]
        for k in expired:
            del self._last_notified[k]

    def _finish(self, outcome: PollState, result: dict[str, Any]) -> dict[str, Any]:
        result["status"] = outcome.value
        logger.debug("폴링 완료: %s", outcome.value, extra={"tick_status": outcome.value})
        self._history.append(result)
        if len(self._history) > self.MAX_HISTORY:
            self._history = self._history[-self.MAX_HISTORY:]
        self._state = PollState.IDLE
        return result

    # ───────────────── 상태 조회 ─────────────────

    def get_status(self) -> dict[str, Any]:
        """폴링 상태 조회"""
        next_run_time = None
        if self._is_running:
            job = self._scheduler.get_job(JOB_ID)
            if job and job.next_run_time:
                next_run_time = job.next_run_time.isoformat()

        return {
            "is_running": self._is_running,
            "state": self._state.value,
            "interval_seconds": self._interval_seconds,
            "next_run_time": next_run_time,
            "total_ticks": len(self._history),
            "last_result": self._history[-1] if self._history else None,
        }

    def get_history(self, limit: int = 10) -> list[dict[str, Any]]:
        """최근 폴링 결과 (최신순)"""
        return list(reversed(self._history[-limit:]))
