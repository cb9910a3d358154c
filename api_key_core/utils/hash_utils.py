"""
Hash and identifier utilities for API key secrets.

Secrets are hashed with SHA-256 and stored as base64 text. Comparisons go
through hmac.compare_digest so they take the same time whether the first
or the last character differs.
"""

import base64
import hashlib
import hmac
import uuid

from ..exceptions import KeyGenerationError


def sha256_text(value: str) -> str:
    """
    Hash text with SHA-256.

    Args:
        value: Text to hash, encoded as UTF-8. Lone surrogates are encoded
            as-is so every str has a hash.

    Returns:
        Base64 encoding of the 32-byte digest (44 characters)
    """
    digest = hashlib.sha256(value.encode("utf-8", errors="surrogatepass")).digest()
    return base64.b64encode(digest).decode("ascii")


def is_sha256_text(value: str) -> bool:
    """Return True if value is the base64 text of a 32-byte digest."""
    try:
        decoded = base64.b64decode(value, validate=True)
    except (ValueError, TypeError):
        return False
    return len(decoded) == hashlib.sha256().digest_size


def secrets_match(candidate: str, stored_hash: str) -> bool:
    """
    Check a plaintext candidate against a stored hash in constant time.

    Args:
        candidate: Plaintext secret presented by a caller
        stored_hash: Output of sha256_text() for the real secret

    Returns:
        True if the candidate hashes to stored_hash
    """
    return hmac.compare_digest(
        sha256_text(candidate).encode("ascii"), stored_hash.encode("ascii")
    )


def generate_id() -> str:
    """
    Generate a random v4 UUID as text.

    Raises:
        KeyGenerationError: If the random source fails
    """
    try:
        return str(uuid.uuid4())
    except Exception as e:
        raise KeyGenerationError(f"Failed to generate ID: {e}", cause=e)
