"""Probe invocation boundary.

`installstate state` computes the current install state and prints it as one
JSON object. This is the only contract a presentation layer consumes:

    {"root": str, "stateContentsFile": str, "current": StateSnapshot,
     "saved": StateSnapshot (omitted when absent), "files": [str, ...]}

query_state() runs the probe in a subprocess with a timeout. Any failure
(spawn error, timeout, non-zero exit, malformed output) yields None, which
callers must treat as "no state available".
"""

import asyncio
import logging
import os
import sys
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from installstate.config import Settings
from installstate.kernel.inputs import collect_input_files
from installstate.kernel.state import StateSnapshot, compute_state, detect_runtime_version
from installstate._internal.store import read_saved_state

logger = logging.getLogger(__name__)


class InstallState(BaseModel):
    """The probe record."""
    root: str
    state_contents_file: str = Field(alias="stateContentsFile")
    current: StateSnapshot
    saved: Optional[StateSnapshot] = None
    files: List[str]  # Input files plus the state file itself

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def build_install_state(settings: Settings) -> InstallState:
    """Compute the probe record in-process.

    Raises:
        RuntimeVersionError: If no runtime version is configured and none can be detected
    """
    runtime_version = settings.runtime_version or detect_runtime_version(settings.node_executable)
    current = compute_state(settings.root, runtime_version, settings.dirs, settings.version_pin_file)
    saved = read_saved_state(settings.state_file)
    inputs = collect_input_files(settings.root, settings.dirs, settings.version_pin_file)
    return InstallState(
        root=str(settings.root),
        state_contents_file=str(settings.state_contents_file),
        current=current,
        saved=saved,
        files=[str(p) for p in inputs] + [str(settings.state_file)],
    )


def parse_install_state(output: Union[str, bytes]) -> Optional[InstallState]:
    """Validate probe output, or None if it is not a well-formed record."""
    try:
        return InstallState.model_validate_json(output)
    except ValidationError as e:
        logger.error("Malformed probe output: %s", e)
        return None


def probe_command(settings: Settings) -> List[str]:
    if settings.probe_command:
        return list(settings.probe_command)
    return [sys.executable, "-m", "installstate", "state"]


async def _reap(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
    await proc.wait()


async def query_state(settings: Settings) -> Optional[InstallState]:
    """Run the probe in a subprocess and return its record, or None on any failure."""
    command = probe_command(settings)
    env = {**os.environ, **settings.as_environ()}
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(settings.root),
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error("Cannot start probe %s: %s", command, e)
        return None

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(), timeout=settings.probe_timeout_seconds
        )
    except asyncio.TimeoutError:
        await _reap(proc)
        logger.error("Probe timed out after %.1fs", settings.probe_timeout_seconds)
        return None
    except BaseException:
        # Cancelled: the child must not outlive the check
        await _reap(proc)
        raise

    if proc.returncode != 0:
        logger.error(
            "Probe exited with code %s: %s",
            proc.returncode,
            stderr.decode("utf-8", errors="replace").strip(),
        )
        return None

    output = stdout.decode("utf-8", errors="replace").strip()
    logger.debug("raw output: %s", output)
    return parse_install_state(output)
