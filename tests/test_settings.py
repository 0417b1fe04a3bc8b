"""
Settings (애플리케이션 설정) 테스트

환경변수 기반 설정의 기본값과 커스텀 값 적용을 검증합니다.
"""

from config.settings import SOL_MINT, USDC_MINT, Settings


class TestSettingsDefaults:
    """Settings 기본값 테스트"""

    def test_default_bot_token_is_empty(self, monkeypatch):
        """BOT_TOKEN 기본값은 빈 문자열 (시작 시 검증)"""
        monkeypatch.delenv("BOT_TOKEN", raising=False)
        s = Settings(_env_file=None)
        assert s.bot_token == ""

    def test_default_quote_parameters(self):
        """1 USDC → SOL, 슬리피지 10%, 중간 경유 토큰 제한"""
        s = Settings(_env_file=None)
        assert s.input_mint == USDC_MINT
        assert s.output_mint == SOL_MINT
        assert s.quote_amount == 1_000_000
        assert s.slippage_bps == 1000
        assert s.restrict_intermediate_tokens is True
        assert (s.input_decimals, s.output_decimals) == (6, 9)

    def test_default_poll_interval(self):
        """기본 폴링 주기 5초, cooldown 없음"""
        s = Settings(_env_file=None)
        assert s.poll_interval_seconds == 5
        assert s.notify_cooldown_seconds == 0

    def test_default_app_env(self):
        """기본 앱 환경이 development인지 확인"""
        s = Settings(_env_file=None)
        assert s.app_env == "development"
        assert s.log_level == "INFO"


class TestSettingsCustom:
    """Settings 커스텀 값 테스트"""

    def test_env_override(self, monkeypatch):
        """환경변수(대소문자 무관)로 값이 덮어써지는지 확인"""
        monkeypatch.setenv("BOT_TOKEN", "123:abc")
        monkeypatch.setenv("poll_interval_seconds", "15")
        s = Settings(_env_file=None)
        assert s.bot_token == "123:abc"
        assert s.poll_interval_seconds == 15

    def test_custom_symbols(self):
        s = Settings(_env_file=None, input_symbol="USDT", output_symbol="JUP")
        assert s.input_symbol == "USDT"
        assert s.output_symbol == "JUP"
