"""Process execution for built commands.

The child inherits stdin/stdout/stderr; slink never reads or interprets
its output, only whether it started and what status it returned.
"""

from __future__ import annotations

import logging
import os
import subprocess

from slink.config import SlinkError
from slink.ssh import CommandSpec
from slink.utils import print_command_preview

log = logging.getLogger(__name__)


class ProcessError(SlinkError):
    """An external program failed to start or exited unsuccessfully.

    ``returncode`` is ``None`` when the program never started.
    """

    def __init__(
        self,
        program: str,
        returncode: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.program = program
        self.returncode = returncode
        self.cause = cause
        if returncode is None:
            msg = f"Failed to start '{program}': {cause}"
        elif returncode < 0:
            msg = f"'{program}' was terminated by signal {-returncode}"
        else:
            msg = f"'{program}' exited with status {returncode}"
        super().__init__(msg)

    @property
    def started(self) -> bool:
        return self.returncode is not None

    @property
    def exit_code(self) -> int:
        """Exit status slink should mirror for this failure."""
        if self.returncode is None:
            return 127 if isinstance(self.cause, FileNotFoundError) else 126
        if self.returncode < 0:
            return 128 - self.returncode
        return self.returncode


def execute(spec: CommandSpec, *, preview: bool = False) -> int:
    """Run *spec* in the foreground, inheriting the terminal.

    Returns 0 on success. Raises ``ProcessError`` if the program cannot be
    spawned or exits with a non-zero status.
    """
    cmd = spec.argv
    if preview:
        print_command_preview(cmd)
    log.debug("Executing %s", cmd)

    try:
        result = subprocess.run(cmd, env=os.environ.copy())
    except OSError as exc:
        raise ProcessError(spec.program, cause=exc) from exc

    log.debug("%s exited with status %d", spec.program, result.returncode)
    if result.returncode != 0:
        raise ProcessError(spec.program, result.returncode)
    return result.returncode
