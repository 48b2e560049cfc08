"""Random anti-forgery values and PKCE verifier/challenge pairs."""

import hashlib
import math
import secrets
from base64 import urlsafe_b64encode

from pkjwt.crypto.types import PKCEPair

STATE_LENGTH = 64
NONCE_LENGTH = 64
CODE_VERIFIER_LENGTH = 64
JTI_LENGTH = 24


def random_string(length: int) -> str:
    """Return ``length`` characters of unpadded base64url random data.

    Each base64 character carries 6 bits, so ``ceil(0.75 * length)`` random
    bytes are enough to fill the string before truncation.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    raw = secrets.token_bytes(math.ceil(0.75 * length))
    encoded = urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    return encoded[:length]


def generate_state() -> str:
    """Generate the ``state`` parameter for one login attempt."""
    return random_string(STATE_LENGTH)


def generate_nonce() -> str:
    """Generate the ID token ``nonce`` for one login attempt."""
    return random_string(NONCE_LENGTH)


def generate_jti() -> str:
    """Generate a JWT ID for a single-use assertion or request object."""
    return random_string(JTI_LENGTH)


def compute_code_challenge(code_verifier: str) -> str:
    """S256 challenge: base64url(SHA256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_code_verifier_and_challenge() -> PKCEPair:
    """Generate a fresh PKCE verifier and its S256 challenge."""
    verifier = random_string(CODE_VERIFIER_LENGTH)
    return PKCEPair(
        code_verifier=verifier,
        code_challenge=compute_code_challenge(verifier),
    )
