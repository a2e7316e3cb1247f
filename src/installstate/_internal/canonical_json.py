"""Centralized JSON serialization.

Two shapes are used across the package:

- canonical_dumps: compact, sorted keys. Used for the probe record and the
  post-install records, where key order carries no meaning.
- manifest_dumps: the layout a package manifest is re-serialized with before
  fingerprinting. Key order is preserved as parsed, one tab per indent level,
  exactly one trailing newline.

Both keep non-ASCII text verbatim so the bytes hashed on one platform match
the bytes hashed on another.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Compact JSON serialization with sorted keys.

    Args:
        obj: Python object to serialize

    Returns:
        JSON string without trailing whitespace
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )


def manifest_dumps(obj: Any) -> str:
    """
    Serialize a parsed manifest in its canonical form.

    Args:
        obj: Parsed manifest (usually a dict)

    Returns:
        Tab-indented JSON followed by a single newline
    """
    return json.dumps(obj, indent="\t", ensure_ascii=False) + "\n"
