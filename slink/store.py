"""Persisted "active host" slot.

Stores a single hostname, newline terminated, in <config_dir>/hostname.
"""

from __future__ import annotations

import logging

from slink.config import (
    BaseDirs,
    ConfigReadError,
    ConfigWriteError,
    NoHostConfigured,
)

log = logging.getLogger(__name__)

HOST_FILE_NAME = "hostname"


class HostStore:
    """Reads and writes the host every other command targets."""

    def __init__(self, dirs: BaseDirs) -> None:
        self.path = dirs.config_dir / HOST_FILE_NAME

    def set_host(self, host: str) -> None:
        """Overwrite the active host, creating the config directory if needed."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(f"{host.strip()}\n", encoding="utf-8")
        except OSError as exc:
            raise ConfigWriteError(f"Cannot write {self.path}: {exc}") from exc
        log.debug("Active host set to %r in %s", host.strip(), self.path)

    def get_host(self) -> str:
        """Return the active host.

        Raises ``NoHostConfigured`` when no host was ever set and
        ``ConfigReadError`` when the entry exists but cannot be read.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NoHostConfigured() from exc
        except OSError as exc:
            raise ConfigReadError(f"Cannot read {self.path}: {exc}") from exc
        return raw.strip()
