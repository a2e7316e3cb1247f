"""State snapshots: the runtime version plus one fingerprint per input file."""

import logging
import subprocess
from pathlib import Path
from typing import Dict, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from .hash_utils import hash_content
from .inputs import DEFAULT_VERSION_PIN_FILE, collect_input_files, relative_key
from .normalize import ContentReadError, normalize_file_content

logger = logging.getLogger(__name__)


class RuntimeVersionError(RuntimeError):
    """Raised when the runtime version marker cannot be determined."""
    pass


class StateSnapshot(BaseModel):
    """Runtime version and per-file fingerprints at one point in time.

    Field aliases match the post-install record on disk:
    {"nodeVersion": str, "fileHashes": {relative_path: fingerprint}}.
    """
    node_version: str = Field(alias="nodeVersion")
    file_hashes: Dict[str, str] = Field(alias="fileHashes")

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True, extra="ignore")

    def to_record(self) -> Dict[str, object]:
        """Return the on-disk record shape."""
        return self.model_dump(by_alias=True)


def detect_runtime_version(node_executable: str = "node", timeout: float = 5.0) -> str:
    """Return the version of the installed Node.js runtime, without the leading "v".

    Raises:
        RuntimeVersionError: If the executable cannot be run or prints nothing
    """
    try:
        result = subprocess.run(
            [node_executable, "--version"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise RuntimeVersionError(f"Cannot determine runtime version from {node_executable!r}: {e}") from e

    version = result.stdout.strip()
    if version.startswith("v"):
        version = version[1:]
    if not version:
        raise RuntimeVersionError(f"{node_executable!r} --version printed nothing")
    return version


def compute_state(
    root: Union[str, Path],
    runtime_version: str,
    dirs: Sequence[str] = ("",),
    version_pin_file: str = DEFAULT_VERSION_PIN_FILE,
) -> StateSnapshot:
    """
    Fingerprint every install input under root.

    Inputs that cannot be read or parsed are left out of file_hashes; the
    comparator then reports them as changed whenever the saved snapshot has
    an entry for them.
    """
    file_hashes: Dict[str, str] = {}
    for path in collect_input_files(root, dirs, version_pin_file):
        key = relative_key(root, path)
        try:
            file_hashes[key] = hash_content(normalize_file_content(path))
        except ContentReadError as e:
            logger.debug("Skipping %s: %s", key, e.reason)
    return StateSnapshot(node_version=runtime_version, file_hashes=file_hashes)


def compute_contents(
    root: Union[str, Path],
    dirs: Sequence[str] = ("",),
    version_pin_file: str = DEFAULT_VERSION_PIN_FILE,
) -> Dict[str, str]:
    """Return the normalized content of every readable install input, by relative path."""
    contents: Dict[str, str] = {}
    for path in collect_input_files(root, dirs, version_pin_file):
        key = relative_key(root, path)
        try:
            contents[key] = normalize_file_content(path)
        except ContentReadError as e:
            logger.debug("Skipping %s: %s", key, e.reason)
    return contents
