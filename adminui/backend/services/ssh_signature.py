"""
SSH Signature Verification.

Checks ``ssh-keygen -Y sign`` signatures with the OpenSSH tool itself
(OpenSSH 8.2 or newer). The operator signs the login challenge with:

    echo -n "<message>" | ssh-keygen -Y sign -f ~/.ssh/id_ed25519 -n adminui-auth

Each candidate key is tried on its own so the caller learns which key
signed the message.
"""

import asyncio
import base64
import binascii
import tempfile
import textwrap
from collections.abc import Sequence
from pathlib import Path

from adminui.backend.core.exceptions import ServiceUnavailableError, SignatureVerificationError
from adminui.backend.core.logging import get_logger

logger = get_logger(__name__)

ARMOR_BEGIN = "-----BEGIN SSH SIGNATURE-----"
ARMOR_END = "-----END SSH SIGNATURE-----"
SIGNER_IDENTITY = "operator"
VERIFY_TIMEOUT_SECONDS = 10


def normalize_signature(signature: str) -> str:
    """
    Return the armored form of a signature.

    Accepts the armored text itself, base64 of the armored text, or base64
    of the raw SSHSIG blob.

    Raises:
        SignatureVerificationError: Input is none of those
    """
    text = signature.strip()
    if text.startswith(ARMOR_BEGIN):
        return text.replace("\r\n", "\n") + "\n"

    try:
        decoded = base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError):
        raise SignatureVerificationError("Signature is neither armored nor base64")

    if decoded.startswith(ARMOR_BEGIN.encode()):
        return decoded.decode("ascii", errors="strict").strip().replace("\r\n", "\n") + "\n"
    if decoded.startswith(b"SSHSIG"):
        body = "\n".join(textwrap.wrap(base64.b64encode(decoded).decode("ascii"), 70))
        return f"{ARMOR_BEGIN}\n{body}\n{ARMOR_END}\n"

    raise SignatureVerificationError("Signature is not an SSH signature")


async def _verify_one(
    workdir: Path,
    message: bytes,
    signature_file: Path,
    public_key: str,
    namespace: str,
) -> bool:
    signers = workdir / "allowed_signers"
    signers.write_text(f"{SIGNER_IDENTITY} {public_key}\n", encoding="utf-8")

    try:
        proc = await asyncio.create_subprocess_exec(
            "ssh-keygen",
            "-Y", "verify",
            "-f", str(signers),
            "-I", SIGNER_IDENTITY,
            "-n", namespace,
            "-s", str(signature_file),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        raise ServiceUnavailableError("ssh-keygen is not installed on the panel host")

    try:
        _, stderr = await asyncio.wait_for(proc.communicate(message), VERIFY_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning("ssh-keygen verify timed out")
        return False

    if proc.returncode != 0:
        logger.debug(
            "Signature did not verify against key",
            extra={"stderr": stderr.decode(errors="replace").strip()},
        )
    return proc.returncode == 0


async def find_signing_key(
    message: str,
    signature: str,
    candidate_keys: Sequence[str],
    namespace: str,
) -> str:
    """
    Find the candidate key that produced ``signature`` over ``message``.

    Returns:
        The matching public key line

    Raises:
        SignatureVerificationError: No candidate key verifies the signature
        ServiceUnavailableError: ssh-keygen is missing
    """
    if not candidate_keys:
        raise SignatureVerificationError("No SSH public keys are configured for login")

    armored = normalize_signature(signature)
    with tempfile.TemporaryDirectory(prefix="adminui-sig-") as tmp:
        workdir = Path(tmp)
        signature_file = workdir / "message.sig"
        signature_file.write_text(armored, encoding="ascii")

        for key in candidate_keys:
            if await _verify_one(workdir, message.encode("utf-8"), signature_file, key, namespace):
                return key

    raise SignatureVerificationError()
