"""Last-install vs current content of one input file, for diff display."""

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from installstate.kernel.normalize import ContentReadError, normalize_file_content
from .store import read_saved_contents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyDiff:
    """Two text blobs for one input file."""
    file: str
    saved: str
    current: str

    @property
    def title(self) -> str:
        return f"{self.file} (last install ↔ current)"

    @property
    def changed(self) -> bool:
        return self.saved != self.current

    def unified(self, context: int = 3) -> str:
        lines = difflib.unified_diff(
            self.saved.splitlines(keepends=True),
            self.current.splitlines(keepends=True),
            fromfile=f"{self.file} (last install)",
            tofile=f"{self.file} (current)",
            n=context,
        )
        # Lines without a trailing newline would run into the next header
        return "".join(line if line.endswith("\n") else line + "\n" for line in lines)


def read_saved_content(contents_file: Union[str, Path], file: str) -> str:
    """Content of file as recorded at the last install, or "" if unknown."""
    contents = read_saved_contents(contents_file)
    if contents is None:
        return ""
    return contents.get(file, "")


def read_current_content(root: Union[str, Path], file: str) -> str:
    """Live normalized content of file, or "" if it cannot be read."""
    root_path = Path(root).resolve()
    path = (root_path / file).resolve()
    if not path.is_relative_to(root_path):
        logger.debug("Refusing to read %s: outside %s", file, root_path)
        return ""
    try:
        return normalize_file_content(path)
    except ContentReadError as e:
        logger.debug("No current content for %s: %s", file, e.reason)
        return ""


def show_diff(root: Union[str, Path], contents_file: Union[str, Path], file: str) -> DependencyDiff:
    """Resolve file against the saved contents record and the file on disk."""
    return DependencyDiff(
        file=file,
        saved=read_saved_content(contents_file, file),
        current=read_current_content(root, file),
    )
