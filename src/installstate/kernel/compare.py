"""Structural comparison between the current and the saved state snapshot."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from installstate.codes import CheckStatus
from .state import StateSnapshot

NO_SAVED_STATE_LABEL = "(no postinstall state found)"


@dataclass(frozen=True)
class ChangeEntry:
    """A single reason the installed dependencies are stale."""
    label: str  # Relative input path when is_file, otherwise a description
    is_file: bool  # False for synthetic entries (runtime version, missing saved state)

    def to_dict(self) -> Dict[str, object]:
        return {"label": self.label, "isFile": self.is_file}


@dataclass(frozen=True)
class CheckResult:
    """What a presentation layer needs to render one check."""
    status: CheckStatus
    changes: List[ChangeEntry] = field(default_factory=list)

    @property
    def changed_files(self) -> List[str]:
        return [c.label for c in self.changes if c.is_file]

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "changes": [c.to_dict() for c in self.changes],
        }


def runtime_version_label(saved: str, current: str) -> str:
    return f"Node.js version ({saved} → {current})"


def get_changed_files(current: StateSnapshot, saved: Optional[StateSnapshot]) -> List[ChangeEntry]:
    """
    Compute what changed between the saved snapshot and the current one.

    Returns:
        A single synthetic entry when there is no saved snapshot. Otherwise
        one synthetic entry for a runtime version mismatch, followed by one
        file entry per key that was added, removed or re-fingerprinted. An
        empty list means the install is up to date.

    File entries follow current keys first, then keys only present in saved.
    The order is for display only.
    """
    if saved is None:
        return [ChangeEntry(label=NO_SAVED_STATE_LABEL, is_file=False)]

    changed: List[ChangeEntry] = []
    if saved.node_version != current.node_version:
        changed.append(ChangeEntry(
            label=runtime_version_label(saved.node_version, current.node_version),
            is_file=False,
        ))

    # dict preserves insertion order, giving a stable union
    all_keys = dict.fromkeys([*current.file_hashes, *saved.file_hashes])
    for key in all_keys:
        if current.file_hashes.get(key) != saved.file_hashes.get(key):
            changed.append(ChangeEntry(label=key, is_file=True))
    return changed


def is_stale(changes: List[ChangeEntry]) -> bool:
    return len(changes) > 0


def summarize(current: Optional[StateSnapshot], saved: Optional[StateSnapshot]) -> CheckResult:
    """Turn a pair of snapshots into a CheckResult.

    current is None when the current state could not be computed; that is
    reported as UNKNOWN rather than guessed.
    """
    if current is None:
        return CheckResult(status=CheckStatus.UNKNOWN)
    changes = get_changed_files(current, saved)
    status = CheckStatus.STALE if is_stale(changes) else CheckStatus.UP_TO_DATE
    return CheckResult(status=status, changes=changes)
