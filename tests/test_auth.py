from datetime import datetime, timedelta, timezone

import jwt
import pytest
from pydantic import ValidationError

from fitforum.config.config import JwtConfig, settings
from fitforum.dependencies.auth import decode_access_token
from fitforum.errors import AuthenticationError


class TestJwtConfig:
    @pytest.mark.parametrize("secret_key", ["", "   ", "secret", "your-secret-key"])
    def test_rejects_placeholder_keys(self, secret_key: str):
        with pytest.raises(ValidationError):
            JwtConfig(secret_key=secret_key)

    def test_accepts_real_key(self):
        assert JwtConfig(secret_key="a-real-signing-key").algorithm == "HS256"


def _encode(payload: dict, secret_key: str | None = None) -> str:
    return jwt.encode(
        payload, secret_key or settings.jwt.secret_key, algorithm=settings.jwt.algorithm
    )


class TestDecodeAccessToken:
    def test_valid(self):
        now = datetime.now(timezone.utc)
        token = _encode(
            {
                "userId": 7,
                "userName": "runner",
                "email": "runner@test.com",
                "role": "admin",
                "exp": now + timedelta(minutes=5),
            }
        )
        identity = decode_access_token(token)
        assert identity.user_id == 7
        assert identity.is_admin
        assert identity.permissions.can_manage_posts is False

    def test_expired(self):
        token = _encode(
            {
                "userId": 7,
                "userName": "runner",
                "email": "runner@test.com",
                "role": "user",
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            }
        )
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.detail == "Token has expired"

    def test_wrong_signature(self):
        token = _encode({"userId": 7}, secret_key="another-signing-key-used-only-in-tests")
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_missing_claims(self):
        token = _encode({"userId": 7})
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401
