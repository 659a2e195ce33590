"""Tests for session tokens and shared-password checks."""

from datetime import UTC, datetime

import pytest
from pydantic import SecretStr

from app.core.security import SessionCodec, verify_shared_password
from app.core.settings import AuthConfig


def make_config(secret: str = "secret-a") -> AuthConfig:
    return AuthConfig(
        secret_key=SecretStr(secret),
        cookie_name="eldaline_session",
        max_age_days=30,
        allowed_users=("test1", "test2", "admin"),
        admin_username="admin",
        shared_password=SecretStr("boldJam3"),
        login_rate_limit="5/minute",
        max_login_attempts=5,
        login_lockout_seconds=300,
    )


@pytest.fixture
def codec() -> SessionCodec:
    return SessionCodec(make_config())


class TestSessionCodec:
    """Issue/parse behaviour of signed session tokens."""

    def test_round_trip(self, codec: SessionCodec) -> None:
        for username in ("test1", "test2", "admin"):
            assert codec.parse(codec.issue(username)) == username

    def test_token_layout(self, codec: SessionCodec) -> None:
        issued_at = datetime(2026, 1, 1, tzinfo=UTC)
        token = codec.issue("test1", issued_at=issued_at)
        version, username, millis, signature = token.split(".")
        assert version == "v1"
        assert username == "test1"
        assert millis == str(int(issued_at.timestamp() * 1000))
        assert len(signature) == 64
        int(signature, 16)

    def test_issue_rejects_unknown_user(self, codec: SessionCodec) -> None:
        with pytest.raises(ValueError):
            codec.issue("mallory")

    def test_any_single_character_mutation_fails(self, codec: SessionCodec) -> None:
        token = codec.issue("test1")
        for index, char in enumerate(token):
            replacement = "x" if char != "x" else "y"
            mutated = token[:index] + replacement + token[index + 1 :]
            assert codec.parse(mutated) is None, f"mutation at {index} accepted"

    def test_other_secret_rejected(self, codec: SessionCodec) -> None:
        token = codec.issue("test1")
        assert SessionCodec(make_config("secret-b")).parse(token) is None

    @pytest.mark.parametrize(
        "token",
        [
            None,
            "",
            "garbage",
            "v1.test1.123",
            "v1.test1.123.abc.def",
            "v2.test1.123.abc",
            "v1.test1.notanumber.abc",
            "v1.test1.123.ünïcode",
        ],
    )
    def test_malformed_tokens(self, codec: SessionCodec, token: str | None) -> None:
        assert codec.parse(token) is None

    def test_user_removed_from_allow_list(self) -> None:
        token = SessionCodec(make_config()).issue("test2")
        narrowed = make_config().model_copy(update={"allowed_users": ("test1", "admin")})
        assert SessionCodec(narrowed).parse(token) is None

    def test_forged_username_with_valid_signature_of_other_user(
        self, codec: SessionCodec
    ) -> None:
        _, _, millis, signature = codec.issue("test1").split(".")
        assert codec.parse(f"v1.admin.{millis}.{signature}") is None


class TestSharedPassword:
    """Tests for constant-time shared password comparison."""

    def test_match(self) -> None:
        assert verify_shared_password("boldJam3", "boldJam3") is True

    def test_mismatch(self) -> None:
        assert verify_shared_password("boldjam3", "boldJam3") is False
        assert verify_shared_password("", "boldJam3") is False
