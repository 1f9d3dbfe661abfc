"""
Unit Tests for SSH Signature Verification.

ssh-keygen itself is never invoked; _verify_one is patched where a key
decision is needed.
"""

import base64
from unittest.mock import AsyncMock, patch

import pytest

from adminui.backend.core.exceptions import SignatureVerificationError
from adminui.backend.services.ssh_signature import (
    ARMOR_BEGIN,
    ARMOR_END,
    find_signing_key,
    normalize_signature,
)

SSHSIG_BLOB = b"SSHSIG\x00\x00\x00\x01" + bytes(range(96))
ARMORED = f"{ARMOR_BEGIN}\nU1NIU0lHAAAAAQ==\n{ARMOR_END}"

KEY_A = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOMqqnkVzrm0SdG6UOoqKLsabgH5C9okWi0dh2l9GKJl alice@laptop"
KEY_B = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIBmWbm3lIq8Vv6Tjf3zJw1QbX5z3Gk0J0tVt9kCqG0Rz bob@desk"


class TestNormalizeSignature:
    def test_armored_passes_through(self):
        result = normalize_signature(ARMORED.replace("\n", "\r\n") + "\r\n")

        assert result == ARMORED + "\n"

    def test_base64_of_armored_text(self):
        encoded = base64.b64encode(ARMORED.encode()).decode()

        assert normalize_signature(encoded) == ARMORED + "\n"

    def test_base64_of_raw_blob_is_armored(self):
        encoded = base64.b64encode(SSHSIG_BLOB).decode()

        result = normalize_signature(encoded)

        lines = result.strip().splitlines()
        assert lines[0] == ARMOR_BEGIN
        assert lines[-1] == ARMOR_END
        assert all(len(line) <= 70 for line in lines[1:-1])
        assert base64.b64decode("".join(lines[1:-1])) == SSHSIG_BLOB

    def test_not_base64(self):
        with pytest.raises(SignatureVerificationError, match="neither armored nor base64"):
            normalize_signature("this is not a signature!")

    def test_base64_of_something_else(self):
        with pytest.raises(SignatureVerificationError, match="not an SSH signature"):
            normalize_signature(base64.b64encode(b"hello world").decode())


class TestFindSigningKey:
    @pytest.mark.asyncio
    async def test_no_candidates(self):
        with pytest.raises(SignatureVerificationError, match="No SSH public keys"):
            await find_signing_key("msg", ARMORED, [], "adminui-auth")

    @pytest.mark.asyncio
    async def test_returns_the_key_that_verifies(self):
        verify = AsyncMock(side_effect=[False, True])

        with patch("adminui.backend.services.ssh_signature._verify_one", verify):
            key = await find_signing_key("msg", ARMORED, [KEY_A, KEY_B], "adminui-auth")

        assert key == KEY_B
        assert verify.await_count == 2
        _, message, signature_file, public_key, namespace = verify.await_args.args
        assert message == b"msg"
        assert public_key == KEY_B
        assert namespace == "adminui-auth"
        assert signature_file.name == "message.sig"

    @pytest.mark.asyncio
    async def test_no_key_verifies(self):
        with patch(
            "adminui.backend.services.ssh_signature._verify_one",
            AsyncMock(return_value=False),
        ):
            with pytest.raises(SignatureVerificationError):
                await find_signing_key("msg", ARMORED, [KEY_A], "adminui-auth")

    @pytest.mark.asyncio
    async def test_bad_signature_never_runs_ssh_keygen(self):
        verify = AsyncMock()

        with patch("adminui.backend.services.ssh_signature._verify_one", verify):
            with pytest.raises(SignatureVerificationError):
                await find_signing_key("msg", "garbage!", [KEY_A], "adminui-auth")

        verify.assert_not_awaited()
