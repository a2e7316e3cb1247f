"""Snapshot store: the two records the install process leaves in node_modules.

- The state record: {"nodeVersion": str, "fileHashes": {path: fingerprint}}
- The contents record: {path: normalized text}, only read for diff display

Reads fail closed. A missing, unreadable, malformed or wrongly-shaped record
is reported as absent, exactly like a first run. Writes are only performed
by the post-install hook (`installstate record`).
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import TypeAdapter

from installstate.kernel.state import StateSnapshot
from .canonical_json import canonical_dumps

logger = logging.getLogger(__name__)

_CONTENTS_ADAPTER = TypeAdapter(Dict[str, str])


def _read_json(path: Path) -> object:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def read_saved_state(path: Union[str, Path]) -> Optional[StateSnapshot]:
    """Load the saved state snapshot, or None if there is no usable record."""
    p = Path(path)
    try:
        data = _read_json(p)
        return StateSnapshot.model_validate(data, strict=True)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError, UnicodeDecodeError and ValidationError are all ValueErrors
        logger.debug("No saved state at %s: %s", p, e)
        return None


def read_saved_contents(path: Union[str, Path]) -> Optional[Dict[str, str]]:
    """Load the saved contents record, or None if there is no usable record."""
    p = Path(path)
    try:
        data = _read_json(p)
        return _CONTENTS_ADAPTER.validate_python(data, strict=True)
    except (OSError, ValueError) as e:
        logger.debug("No saved contents at %s: %s", p, e)
        return None


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_saved_state(path: Union[str, Path], state: StateSnapshot) -> None:
    """Persist a state snapshot as the post-install record."""
    _write_atomic(Path(path), canonical_dumps(state.to_record()) + "\n")


def write_saved_contents(path: Union[str, Path], contents: Dict[str, str]) -> None:
    """Persist the normalized contents record."""
    _write_atomic(Path(path), canonical_dumps(contents) + "\n")
