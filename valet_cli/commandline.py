"""Shell command execution with an explicit privilege context.

Every command valet runs goes through :class:`CommandLine`. Callers state
who the command should run as by passing an :class:`ExecutionContext`:
the privileged context (root, via ``sudo`` when valet itself is not root)
or the invoking user's context (``sudo -u <user>`` when valet runs as root).
"""

import logging
import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from .errors import ShellCommandFailure
from .platform import invoking_user, is_admin
from .subprocess_timeouts import timeout_for_command

logger = logging.getLogger("valet.commandline")

ErrorCallback = Callable[[int | None, str], None]


@dataclass(frozen=True)
class ExecutionContext:
    """Who a shell command runs as.

    ``user=None`` is the privileged (root) context.
    """

    user: str | None = None

    @property
    def privileged(self) -> bool:
        return self.user is None

    def describe(self) -> str:
        return "root" if self.privileged else f"user:{self.user}"


ROOT = ExecutionContext()


class CommandLine:
    """Runs shell commands as root or as the invoking user."""

    def __init__(self, user: str | None = None):
        self.user = user or invoking_user()

    @property
    def user_context(self) -> ExecutionContext:
        return ExecutionContext(user=self.user)

    def build_command(self, command: str, context: ExecutionContext) -> str:
        """Return the command line actually handed to the shell."""
        running_as_root = is_admin()
        if context.privileged:
            if running_as_root:
                return command
            return f"sudo sh -c {shlex.quote(command)}"
        if running_as_root:
            return f"sudo -u {shlex.quote(context.user)} sh -c {shlex.quote(command)}"
        return command

    def run(
        self,
        command: str,
        on_error: ErrorCallback | None = None,
        context: ExecutionContext = ROOT,
    ) -> str:
        """Run *command* in *context* and return its combined output.

        On a non-zero exit ``on_error(exit_code, output)`` is called when given
        and the result is ``""``; otherwise :class:`ShellCommandFailure` is raised.
        """
        shell_command = self.build_command(command, context)
        logger.debug("Running [%s]: %s", context.describe(), command)
        try:
            result = subprocess.run(
                shell_command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout_for_command(command),
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            output = f"timed out after {exc.timeout}s"
            if on_error is not None:
                on_error(None, output)
                return ""
            raise ShellCommandFailure(command, None, output) from exc

        output = (result.stdout or "") + (result.stderr or "")
        if result.returncode != 0:
            logger.debug("Command exited %s: %s", result.returncode, command)
            if on_error is None:
                raise ShellCommandFailure(command, result.returncode, result.stderr or result.stdout or "")
            on_error(result.returncode, result.stderr or output)
            return ""
        return output

    def run_as_user(self, command: str, on_error: ErrorCallback | None = None) -> str:
        """Run *command* as the invoking (non-root) user."""
        return self.run(command, on_error=on_error, context=self.user_context)

    def quietly(self, command: str, context: ExecutionContext = ROOT) -> None:
        """Run *command* discarding its output; a non-zero exit is only logged."""

        def _ignore(exit_code, output):
            logger.debug("Ignoring failure (%s) of %s: %s", exit_code, command, output.strip())

        self.run(command, on_error=_ignore, context=context)
