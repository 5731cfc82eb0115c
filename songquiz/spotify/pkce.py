"""PKCE (RFC 7636) verifier and challenge generation."""

import base64
import hashlib
import secrets
import string
from dataclasses import dataclass

# Unreserved characters allowed in a code verifier.
VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"
VERIFIER_LENGTH = 128
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


def generate_code_verifier(length: int = VERIFIER_LENGTH) -> str:
    """Return a cryptographically random verifier of ``length`` characters."""
    if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
        raise ValueError(
            f"Verifier length must be between {MIN_VERIFIER_LENGTH} "
            f"and {MAX_VERIFIER_LENGTH}, got {length}"
        )
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def generate_code_challenge(code_verifier: str) -> str:
    """Derive the S256 challenge: unpadded base64url of SHA-256(verifier)."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class PKCEChallenge:
    """A verifier/challenge pair for one authorization attempt."""

    code_verifier: str
    code_challenge: str
    method: str = "S256"

    @classmethod
    def generate(cls) -> "PKCEChallenge":
        verifier = generate_code_verifier()
        return cls(
            code_verifier=verifier,
            code_challenge=generate_code_challenge(verifier),
        )
