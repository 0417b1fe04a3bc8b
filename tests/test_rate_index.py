"""RateIndex / quantize 유닛 테스트"""

from __future__ import annotations

from decimal import Decimal

import pytest

from src.subscription.rate_index import RateIndex, quantize


class TestQuantize:
    """양자화 규칙 테스트"""

    def test_two_decimal_places(self) -> None:
        assert str(quantize(150.5)) == "150.50"
        assert str(quantize(233.194)) == "233.19"

    def test_round_half_up(self) -> None:
        """0.005는 항상 올림"""
        assert str(quantize(0.125)) == "0.13"
        # float 이진 표현(2.67499...)에 끌려가지 않음
        assert str(quantize(2.675)) == "2.68"
        assert str(quantize(150.505)) == "150.51"

    def test_huge_rates(self) -> None:
        """기본 28자리 정밀도를 넘는 값도 양자화됨"""
        assert str(quantize(1e30)) == "1" + "0" * 30 + ".00"
        assert quantize("1e30") == quantize(Decimal("1E+30"))
        assert quantize(1.7e308) == Decimal("1.7E+308")

    def test_accepts_str_and_decimal(self) -> None:
        assert quantize("150.5") == quantize(Decimal("150.50")) == quantize(150.5)

    @pytest.mark.parametrize("rate", [0.001, 0.005, 1.0, 2.675, 150.503, 233.195, 98765.4321])
    def test_idempotent(self, rate: float) -> None:
        """quantize(float(quantize(r))) == quantize(r)"""
        once = quantize(rate)
        assert quantize(float(once)) == once


class TestRateIndex:
    """RateIndex 등록/조회/삭제 테스트"""

    def test_lookup_missing_key_is_empty(self, rate_index: RateIndex) -> None:
        assert rate_index.lookup(123.45) == frozenset()
        assert len(rate_index) == 0

    def test_insert_then_lookup(self, rate_index: RateIndex) -> None:
        key = rate_index.insert(1, 150.5)

        assert str(key) == "150.50"
        assert rate_index.lookup(150.503) == {1}
        assert 150.5 in rate_index

    def test_nearby_rates_share_key(self, rate_index: RateIndex) -> None:
        """233.194 와 233.191 은 모두 233.19 키"""
        rate_index.insert("alice", 233.194)
        rate_index.insert("bob", 233.191)

        assert rate_index.lookup(233.19) == {"alice", "bob"}
        assert len(rate_index) == 1

    def test_insert_is_idempotent(self, rate_index: RateIndex) -> None:
        rate_index.insert(1, 10.0)
        rate_index.insert(1, 10.001)

        assert rate_index.lookup(10) == {1}
        assert rate_index.snapshot() == {"10.00": [1]}

    def test_remove_drops_empty_key(self, rate_index: RateIndex) -> None:
        rate_index.insert(1, 10.0)
        rate_index.insert(2, 10.0)

        assert rate_index.remove(1, 10.0) is True
        assert rate_index.lookup(10.0) == {2}

        assert rate_index.remove(2, 10.004) is True
        assert 10.0 not in rate_index
        assert rate_index.keys() == []

    def test_remove_unknown(self, rate_index: RateIndex) -> None:
        assert rate_index.remove(1, 10.0) is False

    def test_lookup_result_is_a_copy(self, rate_index: RateIndex) -> None:
        rate_index.insert(1, 10.0)
        result = rate_index.lookup(10.0)
        rate_index.insert(2, 10.0)

        assert result == {1}
