"""
환율 폴링 패키지
"""

from __future__ import annotations

__all__ = ["PollState", "RatePoller"]

from src.poller.rate_poller import PollState, RatePoller
