"""Tests for state snapshots."""

import subprocess

import pytest
from pydantic import ValidationError

from installstate.kernel.hash_utils import hash_content
from installstate.kernel.state import (
    RuntimeVersionError,
    StateSnapshot,
    compute_contents,
    compute_state,
    detect_runtime_version,
)


class TestStateSnapshot:
    """Tests for the StateSnapshot model."""

    def test_populate_by_alias_and_name(self):
        a = StateSnapshot.model_validate({"nodeVersion": "20.0.0", "fileHashes": {"package.json": "h1"}})
        b = StateSnapshot(node_version="20.0.0", file_hashes={"package.json": "h1"})
        assert a == b

    def test_record_uses_aliases(self):
        state = StateSnapshot(node_version="18.0.0", file_hashes={"package.json": "h1"})
        assert state.to_record() == {"nodeVersion": "18.0.0", "fileHashes": {"package.json": "h1"}}

    def test_frozen(self):
        state = StateSnapshot(node_version="18.0.0", file_hashes={})
        with pytest.raises(ValidationError):
            state.node_version = "20.0.0"

    def test_equality_ignores_key_order(self):
        a = StateSnapshot(node_version="1", file_hashes={"a": "1", "b": "2"})
        b = StateSnapshot(node_version="1", file_hashes={"b": "2", "a": "1"})
        assert a == b

    def test_strict_types(self):
        with pytest.raises(ValidationError):
            StateSnapshot.model_validate({"nodeVersion": 20, "fileHashes": {}})


class TestComputeState:
    """Tests for compute_state function."""

    def test_keys_are_relative_paths(self, project):
        state = compute_state(project, "20.0.0")
        assert state.node_version == "20.0.0"
        assert set(state.file_hashes) == {"package.json", "package-lock.json", ".nvmrc"}

    def test_hashes_normalized_content(self, project):
        state = compute_state(project, "20.0.0")
        expected = hash_content('{\n\t"name": "demo",\n\t"version": "1.0.0"\n}\n')
        assert state.file_hashes["package.json"] == expected
        assert state.file_hashes[".nvmrc"] == hash_content("20.0.0\n")

    def test_distro_change_does_not_change_state(self, project):
        before = compute_state(project, "20.0.0")
        (project / "package.json").write_text(
            '{"name": "demo", "version": "1.0.0", "distro": "other"}', encoding="utf-8"
        )
        assert compute_state(project, "20.0.0") == before

    def test_missing_version_pin_omitted(self, project):
        (project / ".nvmrc").unlink()
        state = compute_state(project, "20.0.0")
        assert ".nvmrc" not in state.file_hashes
        assert "package.json" in state.file_hashes

    def test_malformed_manifest_only_affects_itself(self, project):
        (project / "package.json").write_text("{broken", encoding="utf-8")
        state = compute_state(project, "20.0.0")
        assert "package.json" not in state.file_hashes
        assert set(state.file_hashes) == {"package-lock.json", ".nvmrc"}

    def test_subdirectory_inputs(self, project):
        (project / "build").mkdir()
        (project / "build" / ".npmrc").write_text("x=1\n", encoding="utf-8")
        state = compute_state(project, "20.0.0", ["", "build"])
        assert "build/.npmrc" in state.file_hashes


class TestComputeContents:
    def test_normalized_text_by_key(self, project):
        contents = compute_contents(project)
        assert contents["package.json"] == '{\n\t"name": "demo",\n\t"version": "1.0.0"\n}\n'
        assert contents[".nvmrc"] == "20.0.0\n"

    def test_contents_hash_to_state(self, project):
        """Each stored text fingerprints to the state entry for the same key."""
        contents = compute_contents(project)
        state = compute_state(project, "20.0.0")
        assert {k: hash_content(v) for k, v in contents.items()} == state.file_hashes


class TestDetectRuntimeVersion:
    """Tests for detect_runtime_version function."""

    def test_strips_leading_v(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            assert cmd == ["node", "--version"]
            return subprocess.CompletedProcess(cmd, 0, stdout="v20.11.1\n", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        assert detect_runtime_version() == "20.11.1"

    def test_missing_executable(self, tmp_path):
        with pytest.raises(RuntimeVersionError):
            detect_runtime_version(str(tmp_path / "no-such-node"))

    def test_failing_executable(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(1, cmd)

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(RuntimeVersionError):
            detect_runtime_version()

    def test_empty_output(self, monkeypatch):
        monkeypatch.setattr(
            subprocess, "run",
            lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout="\n", stderr=""),
        )
        with pytest.raises(RuntimeVersionError):
            detect_runtime_version()
