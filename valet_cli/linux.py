"""OS package and service management (apt/dpkg + service)"""

import logging
import shlex
import shutil

from .commandline import CommandLine
from .errors import ShellCommandFailure, ValetError

logger = logging.getLogger("valet.linux")


class PackageManager:
    """Installs and controls named OS packages/services"""

    def __init__(self, cli: CommandLine):
        self.cli = cli

    def installed(self, package: str) -> bool:
        """True if dpkg lists *package* exactly"""
        output = self.cli.run(
            f"dpkg -l | grep {shlex.quote(package)} | sed 's_  _\\t_g' | cut -f 2",
            on_error=lambda exit_code, output: None,
        )
        return package in (line.strip() for line in output.splitlines())

    def ensure_installed(self, package: str) -> None:
        if not self.installed(package):
            self.install_or_fail(package)

    def install_or_fail(self, package: str) -> None:
        if not shutil.which("apt-get"):
            raise ValetError(f"apt-get not found. Install {package} with your package manager and re-run.")

        logger.info("Installing %s", package)
        command = f"DEBIAN_FRONTEND=noninteractive apt-get install -y {shlex.quote(package)}"

        def _raise(exit_code, output):
            raise ShellCommandFailure(command, exit_code, f"Apt was unable to install [{package}]. {output}")

        self.cli.run(command, on_error=_raise)

    def restart_service(self, service: str) -> None:
        logger.info("Restarting %s", service)
        self.cli.run(f"service {shlex.quote(service)} restart")

    def stop_service(self, service: str) -> None:
        logger.info("Stopping %s", service)
        self.cli.run(f"service {shlex.quote(service)} stop")

    def start_service(self, service: str) -> None:
        logger.info("Starting %s", service)
        self.cli.run(f"service {shlex.quote(service)} start")
