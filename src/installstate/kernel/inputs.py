"""Enumeration of the files whose content determines install validity."""

import os
from pathlib import Path
from typing import List, Sequence, Tuple, Union

# Probed in this order in every configured directory.
INPUT_FILENAMES: Tuple[str, ...] = ("package.json", "package-lock.json", ".npmrc")

DEFAULT_VERSION_PIN_FILE = ".nvmrc"


def collect_input_files(
    root: Union[str, Path],
    dirs: Sequence[str] = ("",),
    version_pin_file: str = DEFAULT_VERSION_PIN_FILE,
) -> List[Path]:
    """
    Collect the install inputs under root.

    For each directory in dirs ("" being root itself), every name in
    INPUT_FILENAMES that exists as a file is included. The version pin file
    at root is appended unconditionally; if it is missing, that surfaces later
    as a read failure during normalization.

    The order is deterministic but carries no meaning. Callers treat the
    result as a set.

    Args:
        root: Project root
        dirs: Directories relative to root to probe
        version_pin_file: Runtime version pin, relative to root

    Returns:
        Absolute paths of the inputs
    """
    root_path = Path(root)
    files: List[Path] = []
    seen_dirs = set()

    for d in dirs:
        base = root_path / d if d else root_path
        if base in seen_dirs:
            continue
        seen_dirs.add(base)
        for name in INPUT_FILENAMES:
            candidate = base / name
            if candidate.is_file():
                files.append(candidate)

    files.append(root_path / version_pin_file)
    return files


def relative_key(root: Union[str, Path], path: Union[str, Path]) -> str:
    """Return the FileHashes key of path: POSIX-style, relative to root.

    Inputs outside root get a key with leading `..` segments.
    """
    return Path(os.path.relpath(path, root)).as_posix()
