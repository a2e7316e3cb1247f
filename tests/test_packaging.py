"""Packaging regression tests.

Tests that verify the source layout and the installed package.
"""

from pathlib import Path


def test_source_layout():
    here = Path(__file__).resolve().parent
    src = here.parent / "src" / "installstate"

    assert src.exists(), "installstate package should exist in src/"
    assert (src / "kernel").exists(), "installstate.kernel should exist"
    assert (src / "_internal").exists(), "installstate._internal should exist"
    assert (src / "__main__.py").exists(), "python -m installstate is the default probe"


def test_import_boundary():
    import installstate
    import installstate.kernel  # noqa: F401

    # Dev mode reports "dev", an installed build its version
    assert installstate.__version__ in ("1.0.0", "dev")


def test_kernel_does_not_import_outer_layers():
    """The kernel must not reach back into config, probe, watch or cli."""
    import installstate

    kernel = Path(installstate.__file__).parent / "kernel"
    forbidden = ("installstate.config", "installstate.probe", "installstate.watch",
                 "installstate.monitor", "installstate.cli", "watchdog", "pydantic_settings")
    for source in kernel.glob("*.py"):
        text = source.read_text(encoding="utf-8")
        for token in forbidden:
            assert token not in text, f"{source.name} imports {token}"
