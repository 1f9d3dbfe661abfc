"""
Unit Tests for Security Utilities.

Access tokens and stateless login challenges.
"""

import time
from datetime import timedelta

import pytest
from jose import jwt

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.exceptions import AuthenticationError, SignatureVerificationError
from adminui.backend.core.security import (
    create_access_token,
    decode_token,
    issue_challenge,
    verify_challenge,
)


class TestAccessTokens:
    """Tests for JWT creation and validation."""

    def test_token_carries_operator_and_method(self):
        token, token_id, expires_at = create_access_token("admin", "telegram")

        payload = decode_token(token)

        assert payload["sub"] == "admin"
        assert payload["method"] == "telegram"
        assert payload["jti"] == token_id
        assert expires_at is not None

    def test_expired_token_is_rejected(self):
        token, _, _ = create_access_token("admin", "ssh", expires_delta=timedelta(seconds=-10))

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_tampered_token_is_rejected(self):
        token, _, _ = create_access_token("admin", "ssh")
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[:-4]}AAAA"

        with pytest.raises(AuthenticationError):
            decode_token(tampered)

    def test_token_signed_with_other_secret_is_rejected(self):
        jwt_config = get_app_config().security.jwt
        forged = jwt.encode(
            {"sub": "admin", "type": "access", "aud": jwt_config.audience},
            "another-secret",
            algorithm=jwt_config.algorithm,
        )

        with pytest.raises(AuthenticationError):
            decode_token(forged)

    def test_token_for_other_audience_is_rejected(self):
        jwt_config = get_app_config().security.jwt
        foreign = jwt.encode(
            {"sub": "admin", "type": "access", "aud": "someone-else"},
            get_settings().jwt_secret,
            algorithm=jwt_config.algorithm,
        )

        with pytest.raises(AuthenticationError):
            decode_token(foreign)

    def test_non_access_token_is_rejected(self):
        jwt_config = get_app_config().security.jwt
        refresh = jwt.encode(
            {"sub": "admin", "type": "refresh", "aud": jwt_config.audience},
            get_settings().jwt_secret,
            algorithm=jwt_config.algorithm,
        )

        with pytest.raises(AuthenticationError):
            decode_token(refresh)


class TestChallenges:
    """Tests for signed, self-expiring challenges."""

    def test_issued_challenge_verifies(self):
        challenge = issue_challenge()

        verify_challenge(challenge)

        assert challenge.startswith(get_app_config().security.challenges.prefix + "-")

    def test_custom_prefix(self):
        challenge = issue_challenge("webauthn")

        verify_challenge(challenge)

        assert challenge.startswith("webauthn-")

    def test_challenges_are_unique(self):
        assert issue_challenge() != issue_challenge()

    def test_modified_challenge_is_rejected(self):
        challenge = issue_challenge()
        prefix, rest = challenge.split("-", 1)

        with pytest.raises(SignatureVerificationError):
            verify_challenge(f"{prefix}X-{rest}")

    def test_expired_challenge_is_rejected(self):
        ttl = get_app_config().security.challenges.ttl_seconds
        issued = time.time() - ttl - 5
        challenge = issue_challenge(now=issued)

        with pytest.raises(SignatureVerificationError, match="expired"):
            verify_challenge(challenge)

    def test_challenge_from_the_future_is_rejected(self):
        challenge = issue_challenge(now=time.time() + 3600)

        with pytest.raises(SignatureVerificationError):
            verify_challenge(challenge)

    def test_garbage_is_rejected(self):
        with pytest.raises(SignatureVerificationError):
            verify_challenge("hello")
