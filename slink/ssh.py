"""SSH/SCP command building with connection multiplexing.

Every command slink launches carries the same ControlMaster options, so
successive invocations against one host share a single transport
connection through a per-host control socket instead of reconnecting.
Building a command is pure: nothing here touches the filesystem or
spawns a process.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from slink.config import BaseDirs, Settings

SSH_PROGRAM = "ssh"
SCP_PROGRAM = "scp"

CONTROL_MASTER = "auto"
CONTROL_PERSIST = "10m"
SOCKET_PREFIX = "conn-"
SOCKET_SUFFIX = ".sock"

# Binding local ports below this needs elevated privileges.
PRIVILEGED_PORT_LIMIT = 1024
FORWARD_BIND_ADDRESS = "127.0.0.1"

# ---------------------------------------------------------------------------
# Connection options
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConnectionOptions:
    """Multiplexing options derived from a host. Never persisted."""

    socket_path: Path
    control_master: str = CONTROL_MASTER
    control_persist: str = CONTROL_PERSIST

    def as_args(self) -> list[str]:
        return [
            # auto: create the shared connection if absent, attach otherwise
            f"-oControlMaster={self.control_master}",
            f"-oControlPath={_option_value(self.socket_path)}",
            # keep the master alive between short-lived invocations
            f"-oControlPersist={self.control_persist}",
        ]


def _option_value(value: object) -> str:
    # ssh splits -o values on whitespace unless the value is double-quoted
    text = str(value)
    if any(ch.isspace() for ch in text):
        return f'"{text}"'
    return text


def socket_path(host: str, dirs: BaseDirs) -> Path:
    """Return the control-socket path for *host*.

    The host string is embedded verbatim, so distinct hosts without path
    separators never share a socket.
    """
    return dirs.cache_dir / f"{SOCKET_PREFIX}{host}{SOCKET_SUFFIX}"


def connection_options(host: str, dirs: BaseDirs) -> ConnectionOptions:
    return ConnectionOptions(socket_path=socket_path(host, dirs))


def base_connection_options(host: str, dirs: BaseDirs) -> list[str]:
    """The option prefix shared by every command built for *host*."""
    return connection_options(host, dirs).as_args()


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Interactive:
    """Open a login shell on the host."""


@dataclass(frozen=True, slots=True)
class RunCommand:
    """Run one command string through the remote shell."""

    command: str


@dataclass(frozen=True, slots=True)
class Upload:
    local_path: str
    remote_path: str
    recursive: bool = False


@dataclass(frozen=True, slots=True)
class Download:
    remote_path: str
    local_path: str
    recursive: bool = False


@dataclass(frozen=True, slots=True)
class PortForward:
    """Forward each local port to the same port on the remote loopback."""

    ports: list[int] = field(default_factory=list)

    @property
    def needs_elevation(self) -> bool:
        # One privileged port elevates the whole batch: all forwards share
        # a single ssh process.
        return any(port < PRIVILEGED_PORT_LIMIT for port in self.ports)

    def forward_specs(self) -> list[str]:
        return [f"-L{port}:{FORWARD_BIND_ADDRESS}:{port}" for port in self.ports]


Operation = Union[Interactive, RunCommand, Upload, Download, PortForward]


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """A program and the arguments it should be launched with."""

    program: str
    args: list[str] = field(default_factory=list)

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _option_prefix(host: str, dirs: BaseDirs, settings: Settings) -> list[str]:
    return base_connection_options(host, dirs) + list(settings.ssh_options)


def _remote(host: str, path: str) -> str:
    return f"{host}:{path}"


def build_command(
    host: str,
    operation: Operation,
    dirs: BaseDirs,
    *,
    settings: Settings | None = None,
    stdout_isatty: bool | None = None,
) -> CommandSpec:
    """Build the ``CommandSpec`` that performs *operation* against *host*.

    Parameters
    ----------
    host:
        The active host, as returned by the host store.
    operation:
        One of ``Interactive``, ``RunCommand``, ``Upload``, ``Download`` or
        ``PortForward``.
    dirs:
        Base directories; the control socket lives in ``dirs.cache_dir``.
    settings:
        Optional user settings. Extra ssh options follow the multiplexing
        options; ``elevate_with`` names the wrapper used for low ports.
    stdout_isatty:
        Whether standard output is a terminal. Defaults to asking
        ``sys.stdout``. Only a terminal gets ``-t`` (forced PTY), since a
        PTY would mangle piped output.
    """
    settings = settings or Settings()
    prefix = _option_prefix(host, dirs, settings)

    if isinstance(operation, (Interactive, RunCommand)):
        if stdout_isatty is None:
            stdout_isatty = sys.stdout.isatty()

        args = list(prefix)
        if stdout_isatty:
            args.append("-t")
        args.append("-q")
        args.append(host)
        if isinstance(operation, RunCommand):
            args.append(operation.command)
        return CommandSpec(SSH_PROGRAM, args)

    if isinstance(operation, Upload):
        args = list(prefix)
        if operation.recursive:
            args.append("-r")
        args.extend([operation.local_path, _remote(host, operation.remote_path)])
        return CommandSpec(SCP_PROGRAM, args)

    if isinstance(operation, Download):
        args = list(prefix)
        if operation.recursive:
            args.append("-r")
        args.extend([_remote(host, operation.remote_path), operation.local_path])
        return CommandSpec(SCP_PROGRAM, args)

    if isinstance(operation, PortForward):
        args = list(prefix)
        # -N: no remote command, the session only carries the forwards
        args.append("-N")
        args.extend(operation.forward_specs())
        args.append(host)
        if operation.needs_elevation:
            return CommandSpec(settings.elevate_with, [SSH_PROGRAM, *args])
        return CommandSpec(SSH_PROGRAM, args)

    raise TypeError(f"Unsupported operation: {operation!r}")
