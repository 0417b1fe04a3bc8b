"""
Jupiter 스왑 시세 클라이언트

Jupiter Swap API(``/swap/v1/quote``)로 입력 자산 → 출력 자산 스왑 견적을 조회하고,
출력 자산 1단위의 입력 자산 가격(예: 1 SOL = 150.5 USDC)을 계산합니다.

References:
    - https://dev.jup.ag/docs/api/swap-api/quote
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx

from src.exceptions import QuoteUnavailableError
from src.utils.logger import get_logger

logger = get_logger(__name__)

QUOTE_PATH = "/swap/v1/quote"


@dataclass(frozen=True)
class QuoteSample:
    """스왑 견적 결과 (저장하지 않는 일회성 값)"""

    in_amount: int
    out_amount: int
    rate: float
    fetched_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "in_amount": self.in_amount,
            "out_amount": self.out_amount,
            "rate": self.rate,
            "fetched_at": self.fetched_at.isoformat(),
        }


def derive_rate(
    in_amount: int,
    out_amount: int,
    input_decimals: int,
    output_decimals: int,
) -> float:
    """최소 단위 수량으로부터 출력 자산 1단위당 입력 자산 가격 계산

    1 USDC(1_000_000) → 0.0066 SOL(6_600_000) 이면 1 / 0.0066 ≈ 151.51
    """
    in_units = in_amount / 10**input_decimals
    out_units = out_amount / 10**output_decimals
    return in_units / out_units


class JupiterQuoteClient:
    """Jupiter 시세 API 클라이언트

    httpx 기반 비동기 HTTP 클라이언트로 스왑 견적을 조회합니다.
    네트워크/응답 오류는 모두 QuoteUnavailableError로 변환됩니다.

    Usage::

        client = JupiterQuoteClient()
        sample = await client.get_rate(1_000_000, USDC_MINT, SOL_MINT)
        print(sample.rate)  # 1 SOL의 USDC 가격
    """

    def __init__(
        self,
        base_url: str = "https://lite-api.jup.ag",
        *,
        input_decimals: int = 6,
        output_decimals: int = 9,
        slippage_bps: int = 1000,
        restrict_intermediate_tokens: bool = True,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.input_decimals = input_decimals
        self.output_decimals = output_decimals
        self.slippage_bps = slippage_bps
        self.restrict_intermediate_tokens = restrict_intermediate_tokens
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        await self._client.aclose()

    async def get_rate(
        self,
        amount: int,
        from_asset: str,
        to_asset: str,
    ) -> QuoteSample:
        """
        스왑 견적 조회

        Args:
            amount: 입력 자산 수량 (최소 단위)
            from_asset: 입력 자산 mint 주소
            to_asset: 출력 자산 mint 주소

        Returns:
            QuoteSample (rate = 출력 자산 1단위의 입력 자산 가격)

        Raises:
            QuoteUnavailableError: 네트워크 오류, 비정상 응답, 수량 누락
        """
        params = {
            "inputMint": from_asset,
            "outputMint": to_asset,
            "amount": str(amount),
            "slippageBps": str(self.slippage_bps),
            "restrictIntermediateTokens": str(self.restrict_intermediate_tokens).lower(),
        }

        try:
            response = await self._client.get(QUOTE_PATH, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise QuoteUnavailableError(
                f"시세 API 응답 오류: HTTP {e.response.status_code}",
                detail={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise QuoteUnavailableError(
                f"시세 API 요청 실패: {e}",
                detail={"error": type(e).__name__},
            ) from e
        except ValueError as e:
            raise QuoteUnavailableError("시세 API 응답 JSON 파싱 실패") from e

        return self._parse_quote(data, amount)

    def _parse_quote(self, data: Any, requested_amount: int) -> QuoteSample:
        """견적 응답에서 inAmount/outAmount를 추출해 환율 계산"""
        if not isinstance(data, dict):
            raise QuoteUnavailableError("시세 API 응답 형식 오류", detail={"body": data})

        try:
            in_amount = int(data.get("inAmount") or requested_amount)
            out_amount = int(data["outAmount"])
        except (KeyError, TypeError, ValueError) as e:
            raise QuoteUnavailableError(
                "시세 API 응답에 outAmount가 없습니다.",
                detail={"body": data},
            ) from e

        if in_amount <= 0 or out_amount <= 0:
            raise QuoteUnavailableError(
                "시세 API 응답 수량이 0 이하입니다.",
                detail={"in_amount": in_amount, "out_amount": out_amount},
            )

        rate = derive_rate(in_amount, out_amount, self.input_decimals, self.output_decimals)
        logger.debug(
            "스왑 견적: in=%d, out=%d, rate=%.6f", in_amount, out_amount, rate
        )
        return QuoteSample(in_amount=in_amount, out_amount=out_amount, rate=rate)
