"""
Content hashing for write classification.

Provides:
- SHA-256 digest of exact content (str is hashed as UTF-8 bytes)
- Short digest prefixes for log lines
"""

import hashlib

from writeguard.types import Content


def compute_content_hash(content: Content) -> str:
    """
    Compute SHA-256 hash of content.

    Args:
        content: Text (encoded as UTF-8) or any bytes-like object

    Returns:
        Hex digest of SHA-256 hash

    Raises:
        TypeError: If content is neither str nor bytes-like
    """
    if isinstance(content, str):
        data = content.encode("utf-8")
    elif isinstance(content, (bytes, bytearray, memoryview)):
        data = content
    else:
        raise TypeError(
            f"content must be str or bytes-like, got {type(content).__name__}"
        )
    return hashlib.sha256(data).hexdigest()


def short_hash(digest: str | None, length: int = 16) -> str:
    """Abbreviate a digest for logging."""
    if not digest:
        return "<none>"
    return f"{digest[:length]}..."
