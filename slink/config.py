"""Base directories, optional settings, and the error taxonomy for slink.

Directories follow the XDG base-directory layout (~/.config/slink and
~/.cache/slink by default). They are resolved once per invocation into a
``BaseDirs`` value that is passed explicitly to the host store and the
command builder, so tests can point both at temporary directories.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

APP_NAME = "slink"
ENV_CONFIG_DIR_VAR = "SLINK_CONFIG_DIR"
SETTINGS_FILE_NAME = "settings.yaml"
SUPPORTED_SETTINGS_VERSION = 1
DEFAULT_ELEVATE_WITH = "sudo"

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SlinkError(Exception):
    """Base class for every error slink reports to the user."""


class ConfigError(SlinkError):
    """Raised when persisted configuration cannot be used."""


class NoHostConfigured(ConfigError):
    """Raised when no remote host has ever been selected."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "No remote host configured. Run `slink use <host>` first."
        )


class ConfigWriteError(ConfigError):
    """Raised when a configuration entry or directory cannot be written."""


class ConfigReadError(ConfigError):
    """Raised when an existing configuration entry cannot be read."""


# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BaseDirs:
    """Where slink keeps its persisted state and its control sockets."""

    config_dir: Path
    cache_dir: Path


def _xdg_base(env: Mapping[str, str], var: str, fallback: str) -> Path:
    value = env.get(var, "")
    # Relative paths are invalid per the XDG rules and must be ignored.
    if value and os.path.isabs(value):
        return Path(value)
    return Path.home() / fallback


def resolve_base_dirs(env: Mapping[str, str] | None = None) -> BaseDirs:
    """Resolve the config and cache directories from the environment."""
    env = os.environ if env is None else env

    override = env.get(ENV_CONFIG_DIR_VAR)
    if override:
        config_dir = Path(override).expanduser().resolve()
    else:
        config_dir = _xdg_base(env, "XDG_CONFIG_HOME", ".config") / APP_NAME

    cache_dir = _xdg_base(env, "XDG_CACHE_HOME", ".cache") / APP_NAME
    return BaseDirs(config_dir=config_dir, cache_dir=cache_dir)


def ensure_cache_dir(dirs: BaseDirs) -> Path:
    """Create the control-socket directory; ssh will not create it itself."""
    try:
        dirs.cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigWriteError(
            f"Cannot create cache directory {dirs.cache_dir}: {exc}"
        ) from exc
    return dirs.cache_dir


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Settings:
    """Optional user settings read from settings.yaml."""

    ssh_options: list[str] = field(default_factory=list)
    elevate_with: str = DEFAULT_ELEVATE_WITH


def get_settings_path(dirs: BaseDirs) -> Path:
    return dirs.config_dir / SETTINGS_FILE_NAME


def load_settings(dirs: BaseDirs) -> Settings:
    """Load settings.yaml, falling back to defaults when it does not exist."""
    path = get_settings_path(dirs)

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.debug("No settings file at %s, using defaults", path)
        return Settings()
    except OSError as exc:
        raise ConfigReadError(f"Cannot read {path}: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigReadError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        return Settings()
    if not isinstance(raw, dict):
        raise ConfigReadError(f"Settings file {path} must be a YAML mapping at the top level.")

    version = raw.get("version", SUPPORTED_SETTINGS_VERSION)
    if version != SUPPORTED_SETTINGS_VERSION:
        raise ConfigReadError(
            f"Unsupported settings version {version}. Expected {SUPPORTED_SETTINGS_VERSION}."
        )

    ssh_options = raw.get("ssh_options", [])
    if not isinstance(ssh_options, list) or not all(isinstance(o, str) for o in ssh_options):
        raise ConfigReadError(f"'ssh_options' in {path} must be a list of strings.")

    elevate_with = raw.get("elevate_with", DEFAULT_ELEVATE_WITH)
    if not isinstance(elevate_with, str):
        raise ConfigReadError(f"'elevate_with' in {path} must be a string.")
    if not elevate_with:
        raise ConfigReadError(f"'elevate_with' in {path} must not be empty.")

    return Settings(
        ssh_options=list(ssh_options),
        elevate_with=elevate_with,
    )
