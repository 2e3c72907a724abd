"""Platform detection and invoking-user helpers"""

import getpass
import os
import platform
import pwd
from pathlib import Path

IS_MACOS = platform.system() == "Darwin"


def is_admin() -> bool:
    """Check if running with root privileges"""
    return os.geteuid() == 0 if hasattr(os, "geteuid") else False


def invoking_user() -> str:
    """Return the non-root user who invoked valet.

    Under ``sudo`` this is ``SUDO_USER``; otherwise the current login user.
    """
    sudo_user = os.environ.get("SUDO_USER", "").strip()
    if sudo_user and sudo_user != "root":
        return sudo_user
    return getpass.getuser()


def user_home(user: str | None = None) -> Path:
    """Home directory of *user* (defaults to the invoking user)"""
    name = user or invoking_user()
    try:
        return Path(pwd.getpwnam(name).pw_dir)
    except KeyError:
        return Path.home()
