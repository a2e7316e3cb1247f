"""Public API for installstate.

High-level functions that return complete, structured results. Tooling
should use these functions instead of importing from _internal.
"""

import logging
from typing import Dict, Optional

from installstate.codes import CheckStatus
from installstate.config import Settings
from installstate.kernel.compare import CheckResult, summarize
from installstate.kernel.state import (
    RuntimeVersionError,
    StateSnapshot,
    compute_contents,
    compute_state,
    detect_runtime_version,
)
from installstate.probe import InstallState, build_install_state
from installstate._internal.diff_view import DependencyDiff, show_diff
from installstate._internal.store import (
    read_saved_contents,
    read_saved_state,
    write_saved_contents,
    write_saved_state,
)

logger = logging.getLogger(__name__)


def _settings(settings: Optional[Settings]) -> Settings:
    return settings if settings is not None else Settings()


def runtime_version(settings: Optional[Settings] = None) -> str:
    """Configured runtime version, or the detected Node.js version."""
    s = _settings(settings)
    return s.runtime_version or detect_runtime_version(s.node_executable)


def current_state(settings: Optional[Settings] = None) -> StateSnapshot:
    """Fingerprint the install inputs as they are on disk now."""
    s = _settings(settings)
    return compute_state(s.root, runtime_version(s), s.dirs, s.version_pin_file)


def current_contents(settings: Optional[Settings] = None) -> Dict[str, str]:
    s = _settings(settings)
    return compute_contents(s.root, s.dirs, s.version_pin_file)


def saved_state(settings: Optional[Settings] = None) -> Optional[StateSnapshot]:
    """The snapshot recorded after the last successful install, if any."""
    return read_saved_state(_settings(settings).state_file)


def saved_contents(settings: Optional[Settings] = None) -> Optional[Dict[str, str]]:
    return read_saved_contents(_settings(settings).state_contents_file)


def install_state(settings: Optional[Settings] = None) -> InstallState:
    """The probe record, computed in-process."""
    return build_install_state(_settings(settings))


def check(settings: Optional[Settings] = None) -> CheckResult:
    """Compare current and saved state in-process.

    Returns a CheckResult with status UNKNOWN when the current state cannot
    be computed.
    """
    s = _settings(settings)
    try:
        current = current_state(s)
    except RuntimeVersionError as e:
        logger.error("%s", e)
        return CheckResult(status=CheckStatus.UNKNOWN)
    return summarize(current, saved_state(s))


def is_up_to_date(settings: Optional[Settings] = None) -> bool:
    """True only when a saved snapshot exists and matches the current one exactly."""
    s = _settings(settings)
    saved = saved_state(s)
    if saved is None:
        return False
    return saved == current_state(s)


def record(settings: Optional[Settings] = None) -> StateSnapshot:
    """Write the state and contents records. Run by the install process after a successful install."""
    s = _settings(settings)
    state = current_state(s)
    write_saved_state(s.state_file, state)
    write_saved_contents(s.state_contents_file, current_contents(s))
    return state


def diff_file(file: str, settings: Optional[Settings] = None) -> DependencyDiff:
    """Saved vs current normalized content of one input file."""
    s = _settings(settings)
    return show_diff(s.root, s.state_contents_file, file)
