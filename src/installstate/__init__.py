"""installstate: detects stale npm installs from fingerprinted manifests."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("installstate")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
# Note: check and record are exported from installstate.api, not from root
from installstate.codes import CheckStatus
from installstate.config import Settings
from installstate.kernel.compare import ChangeEntry, CheckResult, get_changed_files
from installstate.kernel.state import StateSnapshot
from installstate.probe import InstallState

__all__ = [
    "__version__",
    "CheckStatus",
    "Settings",
    "ChangeEntry",
    "CheckResult",
    "get_changed_files",
    "StateSnapshot",
    "InstallState",
]
