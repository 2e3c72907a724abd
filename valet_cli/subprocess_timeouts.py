"""
Subprocess timeout table for shell commands run by valet.

Every command executed through CommandLine is bounded by one of these
values so a wedged package manager or service script cannot hang the CLI.
"""

# Timeout constants (in seconds)

# Short operations (< 5 seconds)
TIMEOUT_QUICK = 5
"""Quick operations: grep, file removal, certificate lookups."""

# Standard operations (< 30 seconds)
TIMEOUT_STANDARD = 30
"""Standard operations: key generation, service restarts, trust store updates."""

# Long operations (< 60 seconds)
TIMEOUT_LONG = 60
"""Long operations: network-manager restarts, CA bundle rebuilds."""

# Extended operations (< 300 seconds)
TIMEOUT_EXTENDED = 300
"""Extended operations: package installations."""


TIMEOUTS = {
    # Certificate operations
    "openssl": TIMEOUT_STANDARD,
    "certutil": TIMEOUT_QUICK,
    "security": TIMEOUT_STANDARD,
    "update-ca-certificates": TIMEOUT_LONG,
    # Package operations
    "dpkg": TIMEOUT_QUICK,
    "apt-get": TIMEOUT_EXTENDED,
    # Service operations
    "service": TIMEOUT_LONG,
    "systemctl": TIMEOUT_STANDARD,
    "pkill": TIMEOUT_QUICK,
    # Configuration edits
    "grep": TIMEOUT_QUICK,
    "sed": TIMEOUT_QUICK,
}


def get_timeout(operation: str, default: int = TIMEOUT_STANDARD) -> int:
    """
    Get the timeout for a specific operation.

    Args:
        operation: Program name (e.g., "openssl", "apt-get")
        default: Default timeout if operation not found

    Returns:
        Timeout in seconds

    Examples:
        >>> get_timeout("grep")
        5
        >>> get_timeout("apt-get")
        300
        >>> get_timeout("unknown_operation")
        30
    """
    return TIMEOUTS.get(operation, default)


def timeout_for_command(command: str, default: int = TIMEOUT_STANDARD) -> int:
    """Pick the timeout for a shell command line.

    ``sudo``/``sudo -u <user>`` prefixes and ``VAR=value`` assignments are
    skipped, and the largest timeout of any program in a pipeline or ``&&``
    chain wins.
    """
    timeout = None
    for segment in command.replace("&&", "|").split("|"):
        words = segment.split()
        while words and (words[0] == "sudo" or "=" in words[0]):
            if words[0] == "sudo" and len(words) > 1 and words[1] == "-u":
                words = words[3:]
            else:
                words = words[1:]
        if not words:
            continue
        candidate = TIMEOUTS.get(words[0].rsplit("/", 1)[-1])
        if candidate is not None and (timeout is None or candidate > timeout):
            timeout = candidate
    return timeout if timeout is not None else default
