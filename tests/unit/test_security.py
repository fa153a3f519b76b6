"""Tests for password hashing, email validation and the token issuer."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from authbase.core.errors import InvalidOrExpiredToken, TokenConfigurationError
from authbase.core.security import (
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
    TokenIssuer,
    get_password_hash,
    is_email_valid,
    verify_password,
)

ACCESS_SECRET = "unit-access-secret"
REFRESH_SECRET = "unit-refresh-secret"
CLAIMS = {"id": "user-1", "email": "user@example.com", "role": "user"}


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(ACCESS_SECRET, REFRESH_SECRET)


@pytest.mark.unit
class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = get_password_hash("SecurePassword123!", rounds=4)

        assert hashed != "SecurePassword123!"
        assert verify_password("SecurePassword123!", hashed)
        assert not verify_password("WrongPassword", hashed)

    def test_long_password_beyond_bcrypt_limit(self):
        """Passwords over 72 bytes still distinguish their tails."""
        base = "a" * 80
        hashed = get_password_hash(base + "1", rounds=4)

        assert verify_password(base + "1", hashed)
        assert not verify_password(base + "2", hashed)

    def test_verify_against_non_bcrypt_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


@pytest.mark.unit
class TestEmailValidation:
    @pytest.mark.parametrize("email", ["a@b.co", "first.last@example.com", "x+tag@sub.domain.org"])
    def test_valid(self, email):
        assert is_email_valid(email)

    @pytest.mark.parametrize("email", ["", "plainaddress", "no-at.example.com", "a@b", "a b@c.com"])
    def test_invalid(self, email):
        assert not is_email_valid(email)


@pytest.mark.unit
class TestTokenIssuer:
    def test_access_token_round_trip(self, issuer):
        token = issuer.issue_access(CLAIMS)

        payload = issuer.verify_access(token)

        assert payload["id"] == "user-1"
        assert payload["email"] == "user@example.com"
        assert payload["role"] == "user"
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == ACCESS_TOKEN_TTL

    def test_refresh_token_round_trip(self, issuer):
        token = issuer.issue_refresh(CLAIMS)

        payload = issuer.verify_refresh(token)

        assert payload["id"] == "user-1"
        assert payload["type"] == "refresh"
        assert payload["exp"] - payload["iat"] == REFRESH_TOKEN_TTL

    def test_tokens_issued_back_to_back_differ(self, issuer):
        assert issuer.issue_access(CLAIMS) != issuer.issue_access(CLAIMS)

    def test_access_token_rejected_as_refresh(self, issuer):
        token = issuer.issue_access(CLAIMS)

        with pytest.raises(InvalidOrExpiredToken):
            issuer.verify_refresh(token)

    def test_refresh_token_rejected_as_access(self, issuer):
        token = issuer.issue_refresh(CLAIMS)

        with pytest.raises(InvalidOrExpiredToken):
            issuer.verify_access(token)

    def test_type_claim_checked_when_secrets_match(self):
        """Same secret for both kinds still keeps them apart."""
        shared = TokenIssuer("same-secret", "same-secret")
        refresh = shared.issue_refresh(CLAIMS)

        with pytest.raises(InvalidOrExpiredToken):
            shared.verify_access(refresh)

    def test_token_from_other_secret_rejected(self, issuer):
        other = TokenIssuer("other-access", "other-refresh")
        token = other.issue_access(CLAIMS)

        with pytest.raises(InvalidOrExpiredToken):
            issuer.verify_access(token)

    def test_expired_token_rejected(self, issuer):
        past = datetime.now(UTC) - timedelta(hours=2)
        token = jwt.encode(
            {**CLAIMS, "type": "access", "iat": past, "exp": past + timedelta(hours=1)},
            ACCESS_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidOrExpiredToken):
            issuer.verify_access(token)

    def test_token_without_id_rejected(self, issuer):
        token = jwt.encode(
            {"type": "access", "exp": datetime.now(UTC) + timedelta(hours=1)},
            ACCESS_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidOrExpiredToken):
            issuer.verify_access(token)

    def test_garbage_token_rejected(self, issuer):
        with pytest.raises(InvalidOrExpiredToken):
            issuer.verify_access("not.a.jwt")

    def test_missing_access_secret(self):
        issuer = TokenIssuer(None, REFRESH_SECRET)

        with pytest.raises(TokenConfigurationError):
            issuer.issue_access(CLAIMS)
        with pytest.raises(TokenConfigurationError):
            issuer.verify_access("whatever")

    def test_missing_refresh_secret(self):
        issuer = TokenIssuer(ACCESS_SECRET, "")

        with pytest.raises(TokenConfigurationError):
            issuer.issue_refresh(CLAIMS)
