"""Tests for HMAC API-key generation and verification."""

import base64
import time

import pytest

from authbase.config import Settings
from authbase.core.errors import TokenConfigurationError, Unauthorized
from authbase.core.signature import check_api_key, generate_api_key

USER_KEY = "client-a"
SECRET = "shared-secret"


@pytest.fixture
def api_settings() -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        USER_KEY=USER_KEY,
        SECRET_KEY=SECRET,
        API_KEY_MAX_AGE_SECONDS=300,
    )


def encode(raw: str) -> str:
    return base64.b64encode(raw.encode()).decode()


@pytest.mark.unit
class TestCheckApiKey:
    def test_valid_key(self, api_settings):
        api_key = generate_api_key(USER_KEY, SECRET)

        assert check_api_key(api_key, api_settings) == USER_KEY

    def test_key_decodes_to_three_parts(self):
        api_key = generate_api_key(USER_KEY, SECRET, 1735689600000)

        user_key, timestamp, signature = base64.b64decode(api_key).decode().split(":")

        assert user_key == USER_KEY
        assert timestamp == "1735689600000"
        assert len(signature) == 64

    def test_missing_key(self, api_settings):
        with pytest.raises(Unauthorized, match="API key not found"):
            check_api_key(None, api_settings)

    def test_not_base64(self, api_settings):
        with pytest.raises(Unauthorized, match="Invalid API key format"):
            check_api_key("%%%not-base64%%%", api_settings)

    def test_wrong_number_of_parts(self, api_settings):
        with pytest.raises(Unauthorized, match="Invalid API key format"):
            check_api_key(encode(f"{USER_KEY}:123"), api_settings)

    def test_non_numeric_timestamp(self, api_settings):
        with pytest.raises(Unauthorized, match="Invalid API key format"):
            check_api_key(encode(f"{USER_KEY}:yesterday:abc"), api_settings)

    def test_other_user_key(self, api_settings):
        api_key = generate_api_key("client-b", SECRET)

        with pytest.raises(Unauthorized, match="Invalid identity"):
            check_api_key(api_key, api_settings)

    def test_expired_key(self, api_settings):
        six_minutes_ago = int(time.time() * 1000) - 6 * 60 * 1000
        api_key = generate_api_key(USER_KEY, SECRET, six_minutes_ago)

        with pytest.raises(Unauthorized, match="Request expired"):
            check_api_key(api_key, api_settings)

    def test_key_inside_window(self, api_settings):
        now_ms = 1735689600000
        api_key = generate_api_key(USER_KEY, SECRET, now_ms - 4 * 60 * 1000)

        assert check_api_key(api_key, api_settings, now_ms=now_ms) == USER_KEY

    def test_wrong_secret(self, api_settings):
        api_key = generate_api_key(USER_KEY, "another-secret")

        with pytest.raises(Unauthorized, match="Invalid signature"):
            check_api_key(api_key, api_settings)

    def test_unconfigured(self):
        settings = Settings(_env_file=None, USER_KEY=None, SECRET_KEY=None)  # type: ignore[call-arg]

        with pytest.raises(TokenConfigurationError):
            check_api_key(generate_api_key(USER_KEY, SECRET), settings)
