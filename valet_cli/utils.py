"""Plain-text console messages for valet commands"""

import os
import sys


class Colors:
    """ANSI escape codes, blanked when color is off"""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    GRAY = "\033[90m"

    @classmethod
    def disable(cls):
        cls.RESET = cls.BOLD = cls.RED = cls.GREEN = cls.YELLOW = cls.BLUE = cls.GRAY = ""


def color_enabled() -> bool:
    """Color unless NO_COLOR is set or stdout is redirected"""
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


if not color_enabled():
    Colors.disable()


ICON_SUCCESS = "[ok]"
ICON_ERROR = "[x]"
ICON_WARN = "[!]"
ICON_INFO = ">"


def highlight(text: str) -> str:
    """Bold a host, path or domain inside a message"""
    return f"{Colors.BOLD}{text}{Colors.RESET}"


def msg_success(text: str):
    print(f"{Colors.GREEN}{ICON_SUCCESS}{Colors.RESET} {text}")


def msg_error(text: str):
    """Errors go to stderr so `valet secured --json` output stays parseable"""
    print(f"{Colors.RED}{ICON_ERROR}{Colors.RESET} {text}", file=sys.stderr)


def msg_warning(text: str):
    print(f"{Colors.YELLOW}{ICON_WARN}{Colors.RESET} {text}")


def msg_info(text: str):
    print(f"{Colors.BLUE}{ICON_INFO}{Colors.RESET} {text}")


def msg_step(current: int, total: int, text: str):
    print(f"{Colors.GRAY}[{current}/{total}]{Colors.RESET} {text}")


def msg_detail(text: str, stream=None):
    """Indented follow-up line under a previous message"""
    print(f"    {Colors.GRAY}{text}{Colors.RESET}", file=stream or sys.stdout)
