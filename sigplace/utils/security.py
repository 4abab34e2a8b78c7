"""
Hashing utilities: document content hashes used as cache keys and log
fingerprints.
"""
import hashlib


def compute_bytes_hash(data: bytes) -> str:
    """Compute SHA-256 hash of bytes."""
    return hashlib.sha256(data).hexdigest()
