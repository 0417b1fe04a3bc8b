"""
시세 조회 패키지

외부 스왑 견적 API로부터 현재 환율을 조회합니다.
"""

from __future__ import annotations

__all__ = ["JupiterQuoteClient", "QuoteSample", "derive_rate"]

from src.quote.jupiter_client import JupiterQuoteClient, QuoteSample, derive_rate
