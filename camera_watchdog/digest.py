"""Content fingerprints used to detect a frozen stream."""

import hashlib


def digest(body: bytes) -> str:
    """Return a SHA-256 hex fingerprint of a response body.

    Only ever compared for equality between ticks.
    """
    return hashlib.sha256(body).hexdigest()
