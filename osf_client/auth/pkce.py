"""PKCE (Proof Key for Code Exchange) implementation per RFC 7636.

OSF's authorization server (CAS) binds each authorization code to a
client-generated verifier, so the verifier must stay on the client until
the code exchange request.
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass


# PKCE code verifier length constraints per RFC 7636
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
DEFAULT_VERIFIER_LENGTH = 128

# Allowed characters for code verifier (unreserved URI characters)
VERIFIER_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"

# Largest multiple of len(VERIFIER_CHARS) that fits in a byte (66 * 3).
# Bytes at or above this value are rejected so every character is equally likely.
REJECTION_THRESHOLD = 256 - (256 % len(VERIFIER_CHARS))


class InvalidLengthError(ValueError):
    """Requested code verifier length is outside the RFC 7636 range."""

    pass


@dataclass
class PKCEChallenge:
    """PKCE code verifier and challenge pair.

    The verifier is a cryptographically random string sent only in the token request.
    The challenge is a SHA256 hash of the verifier sent in the authorization request.
    """

    code_verifier: str
    code_challenge: str
    method: str = "S256"


def generate_code_verifier(length: int = DEFAULT_VERIFIER_LENGTH) -> str:
    """Generate a cryptographically random code verifier.

    Per RFC 7636 Section 4.1, the code verifier must be:
    - Between 43 and 128 characters
    - Use only unreserved URI characters: [A-Z] / [a-z] / [0-9] / "-" / "." / "_" / "~"

    Random bytes are mapped onto the character set with rejection sampling:
    a byte is used only if it falls below REJECTION_THRESHOLD, otherwise it is
    discarded and another one is drawn.

    Args:
        length: Length of the verifier (default 128, must be 43-128)

    Returns:
        Cryptographically random code verifier string

    Raises:
        InvalidLengthError: If length is outside allowed range
    """
    if length < MIN_VERIFIER_LENGTH or length > MAX_VERIFIER_LENGTH:
        raise InvalidLengthError(
            f"Code verifier length must be between {MIN_VERIFIER_LENGTH} "
            f"and {MAX_VERIFIER_LENGTH}, got {length}"
        )

    chars: list[str] = []
    while len(chars) < length:
        for byte in secrets.token_bytes(length - len(chars)):
            if byte >= REJECTION_THRESHOLD:
                continue
            chars.append(VERIFIER_CHARS[byte % len(VERIFIER_CHARS)])

    return "".join(chars)


def compute_code_challenge(verifier: str) -> str:
    """Compute the S256 code challenge for a verifier.

    Per RFC 7636 Section 4.2:
    code_challenge = BASE64URL(SHA256(code_verifier))

    Args:
        verifier: The code verifier string

    Returns:
        Base64URL-encoded SHA256 hash of the verifier, without padding
    """
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()

    # Base64URL encode without padding (per RFC 7636)
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_pkce_challenge(length: int = DEFAULT_VERIFIER_LENGTH) -> PKCEChallenge:
    """Generate a complete PKCE pair (verifier + challenge).

    Args:
        length: Length of the code verifier (default 128)

    Returns:
        PKCEChallenge with verifier, challenge, and method (always "S256")
    """
    verifier = generate_code_verifier(length)
    challenge = compute_code_challenge(verifier)

    return PKCEChallenge(code_verifier=verifier, code_challenge=challenge)


def generate_state() -> str:
    """Generate a cryptographically random state parameter.

    Returns:
        32-character random hex string
    """
    return secrets.token_hex(16)
