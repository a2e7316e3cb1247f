"""Pytest configuration for tests.

No sys.path hacks - tests should import from installed installstate package.
"""

import json
import os
from pathlib import Path

import pytest

from installstate.config import Settings


def write_json(path: Path, data, indent=2) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=indent) + "\n", encoding="utf-8")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep INSTALLSTATE_* variables and .env files of the host out of tests."""
    for key in list(os.environ):
        if key.startswith("INSTALLSTATE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def project(tmp_path) -> Path:
    """A minimal npm project: manifest, lockfile and runtime pin at the root."""
    root = tmp_path / "project"
    root.mkdir()
    write_json(root / "package.json", {"name": "demo", "version": "1.0.0", "distro": "abc123"})
    write_json(root / "package-lock.json", {"name": "demo", "lockfileVersion": 3})
    (root / ".nvmrc").write_text("20.0.0\n", encoding="utf-8")
    return root


@pytest.fixture
def settings(project) -> Settings:
    return Settings(root=project, runtime_version="20.0.0")


class FakeObserver:
    """Records schedule calls instead of opening platform watches."""

    def __init__(self):
        self.scheduled = []
        self.started = False
        self.stopped = False
        self.joined = False

    def start(self):
        self.started = True

    def schedule(self, handler, path, recursive=False):
        watch = (handler, path)
        self.scheduled.append(watch)
        return watch

    def unschedule_all(self):
        self.scheduled = []

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        self.joined = True

    def fire(self, event):
        for handler, _ in list(self.scheduled):
            handler.dispatch(event)


@pytest.fixture
def observers():
    """Every FakeObserver created through observer_factory, in order."""
    return []


@pytest.fixture
def observer_factory(observers):
    def factory():
        observer = FakeObserver()
        observers.append(observer)
        return observer
    return factory
