"""CLI command implementations"""

import json
import logging
import os
from pathlib import Path

from .certificates import CertificateStore, TrustStore
from .commandline import CommandLine
from .config import Config, Settings, ValetPaths, get_valet_home
from .dnsmasq import DnsMasq
from .domain import update_domain
from .filesystem import Filesystem
from .linux import PackageManager
from .output import print_info, print_install, print_links, print_secured, print_success
from .platform import invoking_user
from .sites import SiteRegistry
from .utils import highlight, msg_error, msg_info, msg_step, msg_success, msg_warning
from .validation import validate_domain, validate_site_name

logger = logging.getLogger("valet.cli")


class ValetCLI:
    """Main CLI interface; wires the collaborators for one invocation"""

    def __init__(self, home: Path | None = None, user: str | None = None):
        user = user or invoking_user()
        self.paths = ValetPaths(home or get_valet_home())
        self.files = Filesystem(user)
        self.cli = CommandLine(user)
        self.config = Config(self.paths, self.files)
        self.settings = Settings.load(self.paths)
        self.linux = PackageManager(self.cli)
        self.trust_store = TrustStore(self.cli, self.settings)
        self.certificates = CertificateStore(self.paths, self.files, self.cli, self.trust_store, self.settings)
        self.sites = SiteRegistry(self.paths, self.files, self.config)
        self.dnsmasq = DnsMasq(self.linux, self.cli, self.files, self.paths, self.settings)

    def _url(self, name: str | None) -> str:
        """``<name>.<domain>``, defaulting the name to the current directory's site"""
        site = name or self.sites.host(Path.cwd())
        return f"{site}.{self.config.get_domain()}"

    def install(self, domain: str | None = None) -> bool:
        """Create the valet home and configure dnsmasq"""
        if domain and not validate_domain(domain):
            return False

        msg_step(1, 3, "Preparing valet home...")
        for directory in (self.paths.home, self.paths.sites, self.paths.certificates, self.paths.caddy, self.paths.logs):
            self.files.ensure_dir_exists(directory, self.files.user)
        if domain:
            self.config.set_domain(domain)
        domain = self.config.get_domain()

        msg_step(2, 3, "Configuring dnsmasq...")
        self.dnsmasq.install(domain)

        msg_step(3, 3, "Pruning stale links...")
        for name in self.sites.prune_links():
            msg_info(f"Removed dangling link: {name}")

        print_install(domain, str(self.paths.home), str(self.dnsmasq.config_path))
        return True

    def domain(self, name: str | None = None) -> bool:
        """Print the current domain, or switch to *name*"""
        if not name:
            print(self.config.get_domain())
            return True

        name = name.strip().lstrip(".")
        if not validate_domain(name):
            return False

        if os.environ.get("VALET_DOMAIN"):
            msg_warning("VALET_DOMAIN is set and will keep overriding the configured domain.")

        renamed = update_domain(self.config, self.dnsmasq, self.sites, self.certificates, name)
        for url in renamed:
            msg_info(f"Re-secured: {url}")
        msg_success(f"Your Valet domain has been updated to [{highlight(name)}].")
        return True

    def secure(self, name: str | None = None) -> bool:
        url = self._url(name)
        if not validate_site_name(url):
            return False

        self.certificates.secure(url)
        msg_success(f"The [{highlight(url)}] site has been secured with a fresh TLS certificate.")
        return True

    def unsecure(self, name: str | None = None) -> bool:
        url = self._url(name)
        if not self.certificates.is_secured(url):
            msg_info(f"The [{url}] site is not secured.")
            return True

        self.certificates.unsecure(url)
        msg_success(f"The [{url}] site will now serve traffic over HTTP.")
        return True

    def secured(self, json_output: bool = False) -> bool:
        statuses = [self.certificates.certificate_status(url) for url in self.sites.secured()]

        if json_output:
            print(json.dumps(statuses, indent=2))
            return True

        if not statuses:
            print_info("No secured sites yet")
            print_info("Secure one with: valet secure <name>")
            return True

        print_secured(statuses)
        return True

    def link(self, name: str | None = None, path: str | None = None) -> bool:
        target = Path(path).expanduser().resolve() if path else Path.cwd()
        name = name or target.name
        if not validate_site_name(name):
            return False
        if not target.is_dir():
            msg_error(f"Not a directory: {target}")
            return False

        link_path = self.sites.link(target, name)
        print_success(f"A [{name}] symbolic link has been created in [{link_path}].")
        return True

    def unlink(self, name: str | None = None) -> bool:
        name = name or Path.cwd().name
        if self.sites.unlink(name):
            msg_success(f"The [{name}] symbolic link has been removed.")
        else:
            msg_info(f"No [{name}] symbolic link found.")
        return True

    def links(self, json_output: bool = False) -> bool:
        links = self.sites.links(self.config.get_domain())

        if json_output:
            print(json.dumps(links, indent=2))
            return True

        if not links:
            print_info("No linked sites yet")
            print_info("Link one with: valet link [name]")
            return True

        print_links(links)
        return True

    def prune(self) -> bool:
        removed = self.sites.prune_links()
        if not removed:
            msg_info("No dangling links found.")
        for name in removed:
            msg_success(f"Removed dangling link: {name}")
        return True

    def which(self, path: str | None = None) -> bool:
        """Print the site name valet uses for *path*"""
        target = Path(path).expanduser() if path else Path.cwd()
        print(self.sites.host(target))
        return True

    def logs(self) -> bool:
        files = self.sites.logs()
        if not files:
            msg_warning("No log files were found.")
            return True
        for path in files:
            print(path)
        return True
