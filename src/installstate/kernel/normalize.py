"""Content normalization for install inputs.

Structured manifests are parsed, stripped of volatile top-level keys and
re-serialized so that reformatting-only edits never change the fingerprint.
Every other input passes through as its decoded text.
"""

import json
import math
from pathlib import Path
from typing import FrozenSet, Union

from installstate._internal.canonical_json import manifest_dumps

MANIFEST_FILENAME = "package.json"

# Top-level manifest keys expected to vary without signaling real drift.
PACKAGE_JSON_IGNORED_KEYS: FrozenSet[str] = frozenset({"distro"})


class ContentReadError(ValueError):
    """Raised when an input file cannot be read, decoded or parsed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path}: {reason}")


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a JSON value")


def _parse_number(text: str):
    """Parse a JSON number with a fraction or exponent the way a JavaScript
    runtime would print it back: integral values lose their fraction and
    values out of float range become null.
    """
    value = float(text)
    if not math.isfinite(value):
        return None
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def normalize_manifest(raw: str) -> str:
    """Normalize the text of a package manifest.

    `100`, `100.0` and `1e2` normalize identically. NaN and Infinity are
    rejected.

    Raises:
        json.JSONDecodeError: If raw is not valid JSON
        ValueError: If raw uses a non-standard constant such as NaN
    """
    data = json.loads(raw, parse_float=_parse_number, parse_constant=_reject_constant)
    if isinstance(data, dict):
        for key in PACKAGE_JSON_IGNORED_KEYS:
            data.pop(key, None)
    return manifest_dumps(data)


def normalize_content(file_name: str, raw: str) -> str:
    """Normalize already-read text according to the file's name."""
    if file_name == MANIFEST_FILENAME:
        return normalize_manifest(raw)
    return raw


def normalize_file_content(path: Union[str, Path]) -> str:
    """Read a file and return its normalized content.

    Line endings of non-manifest files are kept as they are on disk.

    Args:
        path: Absolute path of the input file

    Returns:
        Normalized content

    Raises:
        ContentReadError: If the file is missing, unreadable, not UTF-8, or
            a manifest that does not parse
    """
    p = Path(path)
    try:
        raw = p.read_bytes().decode("utf-8")
    except OSError as e:
        raise ContentReadError(p, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise ContentReadError(p, f"not valid UTF-8 ({e.reason})") from e

    try:
        return normalize_content(p.name, raw)
    except json.JSONDecodeError as e:
        raise ContentReadError(p, f"invalid JSON: {e.msg} at line {e.lineno}") from e
    except ValueError as e:
        raise ContentReadError(p, f"invalid JSON: {e}") from e
