"""Typer CLI application for slink.

Maps each command onto the host store and the command builder, then runs
the resulting ssh/scp process in the foreground.
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Annotated, Optional

import typer

from slink import __version__
from slink.config import BaseDirs, ConfigError, ensure_cache_dir, load_settings, resolve_base_dirs
from slink.ssh import (
    Download,
    Interactive,
    Operation,
    PortForward,
    RunCommand,
    Upload,
    build_command,
)
from slink.store import HostStore
from slink.utils import console, print_error, print_info, print_success, setup_logging

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="slink",
    help="Interact with a remote machine over a shared SSH connection.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

sync_app = typer.Typer(
    name="sync",
    help="Sync a directory to and from the remote.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(sync_app, name="sync")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_verbose(ctx: typer.Context) -> bool:
    root = ctx.find_root()
    return bool(root.obj and root.obj.get("verbose"))


def _dirs_or_exit() -> BaseDirs:
    try:
        return resolve_base_dirs()
    except RuntimeError as exc:
        # Path.home() fails when HOME cannot be determined
        print_error(str(exc))
        raise typer.Exit(1)


def _run_operation(ctx: typer.Context, operation: Operation) -> None:
    """Resolve the active host, build the command for *operation*, and run it."""
    from slink.executor import ProcessError, execute

    dirs = _dirs_or_exit()
    try:
        host = HostStore(dirs).get_host()
        settings = load_settings(dirs)
        ensure_cache_dir(dirs)
    except ConfigError as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    spec = build_command(host, operation, dirs, settings=settings)

    try:
        execute(spec, preview=_is_verbose(ctx))
    except ProcessError as exc:
        if exc.started:
            print_error(str(exc))
        else:
            print_error(f"{exc}. Is '{exc.program}' installed and on your PATH?")
        raise typer.Exit(exc.exit_code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise typer.Exit(130)


def _absolute(path: Path) -> Path:
    return path.expanduser().resolve()


# ---------------------------------------------------------------------------
# Default callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"slink [bold]{__version__}[/bold]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show commands and debug logging.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
):
    """Point at one remote machine, then go, run, copy and forward."""
    setup_logging(verbose)
    ctx.obj = {"verbose": verbose}


# ---------------------------------------------------------------------------
# slink use / host
# ---------------------------------------------------------------------------


@app.command("use")
def cmd_use(
    host: Annotated[str, typer.Argument(help="The hostname or ssh alias of the remote machine.")],
):
    """Update which remote machine slink uses."""
    host = host.strip()
    if not host:
        raise typer.BadParameter("Host must not be empty.", param_hint="HOST")
    if "/" in host:
        raise typer.BadParameter("Host must not contain '/'.", param_hint="HOST")

    dirs = _dirs_or_exit()
    try:
        HostStore(dirs).set_host(host)
    except ConfigError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    print_success(f"Now using {host}")


@app.command("host")
def cmd_host():
    """Show which remote machine slink uses."""
    dirs = _dirs_or_exit()
    try:
        host = HostStore(dirs).get_host()
    except ConfigError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    console.print(host, highlight=False, markup=False)


# ---------------------------------------------------------------------------
# slink go / run
# ---------------------------------------------------------------------------


@app.command("go")
def cmd_go(ctx: typer.Context):
    """SSH to the remote."""
    _run_operation(ctx, Interactive())


@app.command("run")
def cmd_run(
    ctx: typer.Context,
    command: Annotated[str, typer.Argument(help="Command to run on the remote machine.")],
):
    """Run a command on the remote."""
    _run_operation(ctx, RunCommand(command))


# ---------------------------------------------------------------------------
# slink sync up / down
# ---------------------------------------------------------------------------


@sync_app.command("up")
def sync_up(
    ctx: typer.Context,
    directory: Annotated[
        Optional[Path], typer.Argument(help="Local directory (default: current directory).")
    ] = None,
    remote: Annotated[
        Optional[str],
        typer.Option("--remote", "-r", help="Remote parent directory (default: parent of the local directory)."),
    ] = None,
):
    """Sync directory up to the remote machine."""
    local = _absolute(directory or Path.cwd())
    if not local.is_dir():
        print_error(f"Not a directory: {local}")
        raise typer.Exit(1)
    _run_operation(
        ctx,
        Upload(str(local), remote or str(local.parent), recursive=True),
    )


@sync_app.command("down")
def sync_down(
    ctx: typer.Context,
    directory: Annotated[
        Optional[Path], typer.Argument(help="Local directory (default: current directory).")
    ] = None,
    remote: Annotated[
        Optional[str],
        typer.Option("--remote", "-r", help="Remote directory with the same name as the local one (default: same path as local)."),
    ] = None,
):
    """Sync directory down from the remote machine."""
    local = _absolute(directory or Path.cwd())
    if remote and posixpath.basename(remote.rstrip("/")) != local.name:
        # scp -r recreates the remote directory by name inside the target
        raise typer.BadParameter(
            f"Remote directory name must match the local one ({local.name!r}).",
            param_hint="--remote",
        )
    _run_operation(
        ctx,
        Download(remote or str(local), str(local.parent), recursive=True),
    )


# ---------------------------------------------------------------------------
# slink upload / download
# ---------------------------------------------------------------------------


@app.command("upload")
def cmd_upload(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Path to local file.")],
    to: Annotated[
        Optional[str], typer.Option("--to", help="Remote path (default: same as PATH).")
    ] = None,
):
    """Upload a file to the remote."""
    _run_operation(ctx, Upload(str(path), to or str(path)))


@app.command("download")
def cmd_download(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Path to remote file.")],
    to: Annotated[
        Optional[str], typer.Option("--to", help="Local path (default: same as PATH).")
    ] = None,
):
    """Download a file from the remote."""
    _run_operation(ctx, Download(str(path), to or str(path)))


# ---------------------------------------------------------------------------
# slink forward
# ---------------------------------------------------------------------------


@app.command("forward")
def cmd_forward(
    ctx: typer.Context,
    ports: Annotated[list[int], typer.Argument(help="Ports to forward to the remote loopback.")],
):
    """Forward local ports to the same ports on the remote."""
    for port in ports:
        if not 1 <= port <= 65535:
            raise typer.BadParameter(f"Invalid port {port}.", param_hint="PORTS")

    operation = PortForward(list(ports))
    if operation.needs_elevation:
        print_info("Privileged port requested; forwarding with elevated privileges.")
    _run_operation(ctx, operation)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def app_entry() -> None:
    """Console script entry point for ``slink``."""
    app()
