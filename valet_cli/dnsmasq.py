"""dnsmasq configuration: resolve *.<domain> to 127.0.0.1

Valet never rewrites the primary dnsmasq configuration. It seeds it from
stubs/dnsmasq.conf only when the file is missing, and appends a single
``conf-file=`` line importing valet's own fragment (~/.valet/dnsmasq.conf).
The fragment holds exactly one ``address=`` line and is replaced wholesale
on every install, so changing the domain never leaves a stale record.
"""

import logging
import shlex
from pathlib import Path

from .commandline import CommandLine
from .config import STUBS_DIR, Settings, ValetPaths
from .filesystem import Filesystem
from .linux import PackageManager

logger = logging.getLogger("valet.dnsmasq")

LOOPBACK = "127.0.0.1"


class DnsMasq:
    """Installs and maintains valet's dnsmasq fragment"""

    def __init__(
        self,
        linux: PackageManager,
        cli: CommandLine,
        files: Filesystem,
        paths: ValetPaths,
        settings: Settings,
    ):
        self.linux = linux
        self.cli = cli
        self.files = files
        self.paths = paths
        self.settings = settings
        self.config_path = settings.dnsmasq_config_path
        self.example_config_path = STUBS_DIR / "dnsmasq.conf"

    def custom_config_path(self) -> Path:
        return self.paths.dnsmasq_fragment

    def install(self, domain: str = "dev") -> None:
        """Install dnsmasq and point *.<domain> at the loopback address"""
        self.linux.ensure_installed("dnsmasq")
        self.manage_dnsmasq_manually()

        self.create_custom_config_file(domain)

        self.linux.restart_service(self.settings.dnsmasq_service)

    def create_custom_config_file(self, domain: str) -> None:
        custom_config_path = self.custom_config_path()

        self.copy_example_config()

        self.append_custom_config_import(custom_config_path)

        self.files.ensure_dir_exists(custom_config_path.parent, self.files.user)
        self.files.put_as_user(custom_config_path, self.address_directive(domain) + "\n")
        logger.info("Wrote %s for *.%s", custom_config_path, domain)

    @staticmethod
    def address_directive(domain: str) -> str:
        return f"address=/.{domain}/{LOOPBACK}"

    def manage_dnsmasq_manually(self) -> None:
        """Take dnsmasq away from NetworkManager, once.

        While NetworkManager runs its own dnsmasq, restarting ours (as every
        domain change does) would drop the network connection. Systems
        without ``dns=dnsmasq`` are left alone, so repeat calls are no-ops.
        """
        nm_config = shlex.quote(str(self.settings.network_manager_config_path))

        def _not_managed(exit_code, output):
            logger.debug("NetworkManager does not manage dnsmasq (grep exit %s)", exit_code)

        output = self.cli.run(f"grep '^dns=dnsmasq' {nm_config}", on_error=_not_managed)
        if not output.strip():
            return

        logger.info("Disabling NetworkManager's dnsmasq control in %s", nm_config)
        nm_service = self.settings.network_manager_service
        self.cli.run(f"sed -i 's/^dns=/#dns=/g' {nm_config}")
        self.linux.stop_service(nm_service)
        self.cli.quietly("pkill dnsmasq")
        self.linux.start_service(nm_service)
        self.linux.restart_service(self.settings.dnsmasq_service)

    def copy_example_config(self) -> None:
        """Seed the primary configuration from the bundled stub, if missing"""
        if not self.files.exists(self.config_path):
            self.files.copy(self.example_config_path, self.config_path)
            logger.info("Seeded %s", self.config_path)

    def append_custom_config_import(self, custom_config_path: Path) -> None:
        if self.custom_config_is_being_imported(custom_config_path):
            logger.debug("%s already imports %s", self.config_path, custom_config_path)
            return
        self.files.append(self.config_path, f"\nconf-file={custom_config_path}\n")

    def custom_config_is_being_imported(self, custom_config_path: Path) -> bool:
        return str(custom_config_path) in self.files.get(self.config_path)

    def update_domain(self, old_domain: str, new_domain: str) -> None:
        """Reinstall for *new_domain*; the fragment overwrite drops *old_domain*"""
        logger.debug("Replacing dnsmasq domain %s with %s", old_domain, new_domain)
        self.install(new_domain)
