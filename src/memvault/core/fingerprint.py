"""Entry fingerprinting for deduplication and integrity checks.

fingerprint = sha256(content + timestamp + creator)

The same (content, timestamp, creator) triple always produces the same
fingerprint, so a vault can reject duplicates and re-verify stored entries.
"""

from __future__ import annotations

import hashlib
import hmac

__all__ = [
    "FINGERPRINT_LENGTH",
    "fingerprint_matches",
    "generate_fingerprint",
    "is_fingerprint",
]

FINGERPRINT_LENGTH = 64
_HEX_DIGITS = frozenset("0123456789abcdef")


def generate_fingerprint(content: str, timestamp: int, creator: str) -> str:
    """Generate deterministic entry fingerprint.

    Components are concatenated as text with no separator, then hashed.

    Parameters
    ----------
    content
        Entry text
    timestamp
        Creation time in epoch seconds
    creator
        Creator identifier

    Returns
    -------
    str
        Fingerprint (hex-encoded SHA-256)

    Example
    -------
    >>> fp = generate_fingerprint("gm", 1738281600, "0xabc")
    >>> len(fp)
    64
    """
    combined = f"{content}{timestamp}{creator}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


def fingerprint_matches(fingerprint: str, content: str, timestamp: int, creator: str) -> bool:
    """Recompute a fingerprint and compare it to a stored one."""
    expected = generate_fingerprint(content, timestamp, creator)
    return hmac.compare_digest(expected, fingerprint)


def is_fingerprint(value: str) -> bool:
    """Check that value looks like a lowercase hex SHA-256 digest."""
    return len(value) == FINGERPRINT_LENGTH and set(value) <= _HEX_DIGITS
