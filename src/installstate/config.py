"""Tracker configuration loaded from environment variables."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "INSTALLSTATE_"


class Settings(BaseSettings):
    """Tracker settings loaded from environment variables with INSTALLSTATE_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Project layout
    root: Path = Field(default_factory=Path.cwd)
    dirs: list[str] = Field(default_factory=lambda: [""])
    install_dir: str = "node_modules"
    state_file_name: str = ".postinstall-state"
    contents_file_name: str = ".postinstall-state-contents"
    version_pin_file: str = ".nvmrc"

    # Runtime version marker
    runtime_version: str | None = None
    node_executable: str = "node"

    # Watching
    debounce_ms: int = Field(default=500, ge=0)

    # Probe
    probe_timeout_seconds: float = Field(default=10.0, gt=0)
    probe_command: list[str] | None = None

    # Install
    install_command: str = "node build/npm/fast-install.ts --force"

    # Logging
    log_level: str = "WARNING"

    @field_validator("root")
    @classmethod
    def _resolve_root(cls, v: Path) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def state_file(self) -> Path:
        return self.root / self.install_dir / self.state_file_name

    @property
    def state_contents_file(self) -> Path:
        return self.root / self.install_dir / self.contents_file_name

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def force_install_message(self) -> str:
        return f"Run {self.install_command} to force a full install."

    def as_environ(self) -> dict[str, str]:
        """Render these settings as INSTALLSTATE_* variables for a child process."""
        env: dict[str, str] = {}
        for name, value in self.model_dump().items():
            if value is None:
                continue
            if isinstance(value, (list, dict)):
                rendered = json.dumps(value)
            else:
                rendered = str(value)
            env[f"{ENV_PREFIX}{name.upper()}"] = rendered
        return env


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment, with explicit overrides taking precedence."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
