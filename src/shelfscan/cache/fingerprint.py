"""Content fingerprints used as probe cache keys.

A fingerprint is the SHA-256 digest of a file's first MiB, truncated to 128
bits, paired with the exact file size. Hashing only the head keeps the cost
bounded on slow mounts; the size guards against files that share a header.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from shelfscan.domain import FileFingerprint

# Bytes read from offset 0 for the digest
FINGERPRINT_HEAD_BYTES = 1024 * 1024

# Hex chars kept from the SHA-256 digest (128 bits)
FINGERPRINT_HASH_CHARS = 32


class HashFailure(Exception):
    """Raised when a file cannot be stat'd or read for fingerprinting.

    Callers treat this as "bypass the cache", never as a probe failure.
    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot fingerprint {path}: {reason}")


def compute_fingerprint(path: Path | str) -> FileFingerprint:
    """Compute the fingerprint of a file.

    Args:
        path: File to fingerprint.

    Returns:
        FileFingerprint for the file's current head content and size.

    Raises:
        HashFailure: If the file cannot be opened, stat'd or read.
    """
    try:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            head = f.read(min(size, FINGERPRINT_HEAD_BYTES))
    except OSError as e:
        raise HashFailure(path, e.strerror or str(e)) from e

    digest = hashlib.sha256(head).hexdigest()[:FINGERPRINT_HASH_CHARS]
    return FileFingerprint(content_hash=digest, size=size)
