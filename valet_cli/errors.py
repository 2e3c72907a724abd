"""Exception types raised by valet operations"""


class ValetError(RuntimeError):
    """Base class for failures surfaced to the CLI with a non-zero exit."""


class ShellCommandFailure(ValetError):
    """A shell command exited non-zero (or timed out)."""

    def __init__(self, command: str, exit_code: int | None, output: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.output = output.strip()
        detail = self.output or "no output"
        if exit_code is None:
            message = f"Command timed out: {command} ({detail})"
        else:
            message = f"Command failed with exit code {exit_code}: {command}\n{detail}"
        super().__init__(message)


class DomainRenameError(ValetError):
    """One or more hosts could not be moved to the new domain."""

    def __init__(self, failures: list[tuple[str, Exception]]):
        self.failures = failures
        hosts = ", ".join(url for url, _ in failures)
        super().__init__(f"Failed to re-secure {len(failures)} site(s): {hosts}")
