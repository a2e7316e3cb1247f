"""Content fingerprints for install inputs.

A fingerprint is the lower-case hex SHA-256 digest of a file's normalized
content. The digest carries no algorithm prefix: the post-install record
stores bare hex strings and comparisons are plain string equality.

Key rules:
- Strings are hashed as UTF-8 bytes
- Identical input always yields an identical digest
- No side effects, no I/O
"""

import hashlib
from typing import Union


def hash_content(content: Union[str, bytes]) -> str:
    """Compute the SHA256 fingerprint of normalized content.

    Args:
        content: Normalized content as string or bytes

    Returns:
        SHA256 hash as a 64 character hex string
    """
    if isinstance(content, str):
        content_bytes = content.encode('utf-8')
    else:
        content_bytes = content

    return hashlib.sha256(content_bytes).hexdigest()
