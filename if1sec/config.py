"""Process-wide settings, read from the munin environment exactly once."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from if1sec.errors import ConfigError

PLUGIN_NAME = "if1sec"
FILE_PREFIX = "munin"

# Fetch chunk size; 64k is arbitrary but beats the default 8k.
FETCH_SIZE = 65535
SPAWN_WAIT_S = 1.0
TICK_INTERVAL_S = 1.0


@dataclass(frozen=True)
class Config:
    """Everything the verbs need besides the interface itself."""

    interface: str
    state_dir: Path
    dirtyconfig: bool = False
    plugin_name: str = PLUGIN_NAME
    fetch_size: int = FETCH_SIZE
    spawn_wait_s: float = SPAWN_WAIT_S
    interval_s: float = TICK_INTERVAL_S

    @classmethod
    def from_env(cls, interface: str, environ: Mapping[str, str] | None = None) -> "Config":
        if environ is None:
            environ = os.environ
        state_dir = environ.get("MUNIN_PLUGSTATE", "")
        if not state_dir:
            raise ConfigError("MUNIN_PLUGSTATE is not set, no place for cache and pid files")
        return cls(
            interface=interface,
            state_dir=Path(state_dir),
            dirtyconfig=environ.get("MUNIN_CAP_DIRTYCONFIG") == "1",
        )

    @property
    def instance(self) -> str:
        """Name of this plugin instance, e.g. ``if1sec_eth0``."""
        return f"{self.plugin_name}_{self.interface}"

    @property
    def cache_file(self) -> Path:
        return self.state_dir / f"{FILE_PREFIX}.{self.instance}.value"

    @property
    def pid_file(self) -> Path:
        return self.state_dir / f"{FILE_PREFIX}.{self.instance}.pid"
