"""Linked sites (~/.valet/Sites) and the set of secured hosts"""

import logging
from pathlib import Path

from .certificates import CERTIFICATE_EXTENSIONS
from .config import Config, ValetPaths
from .filesystem import Filesystem

logger = logging.getLogger("valet.sites")


class SiteRegistry:
    """Hostname -> project directory symlinks, recomputed from disk on every call"""

    def __init__(self, paths: ValetPaths, files: Filesystem, config: Config):
        self.paths = paths
        self.files = files
        self.config = config

    @property
    def sites_path(self) -> Path:
        return self.paths.sites

    @property
    def certificates_path(self) -> Path:
        return self.paths.certificates

    def host(self, path: Path) -> str:
        """Name of the link pointing at *path*, or the basename of *path*"""
        wanted = self.files.realpath(path)
        for link in self.files.scandir(self.sites_path):
            if self.files.realpath(self.sites_path / link) == wanted:
                return link
        return Path(path).name

    def link(self, target: Path, name: str) -> Path:
        """Link *target* as site *name* and return the link path"""
        self.files.ensure_dir_exists(self.sites_path, self.files.user)

        self.config.prepend_path(self.sites_path)

        link_path = self.sites_path / name
        self.files.symlink_as_user(Path(target), link_path)
        logger.info("Linked %s -> %s", name, target)
        return link_path

    def unlink(self, name: str) -> bool:
        """Remove the link for *name*; returns False when there was none"""
        path = self.sites_path / name
        if not (self.files.exists(path) or self.files.is_link(path)):
            return False
        self.files.unlink(path)
        logger.info("Unlinked %s", name)
        return True

    def prune_links(self) -> list[str]:
        """Remove links whose target no longer exists"""
        self.files.ensure_dir_exists(self.sites_path, self.files.user)
        return self.files.remove_broken_links_at(self.sites_path)

    def secured(self) -> list[str]:
        """Hosts that currently have certificate material, first-seen order"""
        hosts: list[str] = []
        for file in self.files.scandir(self.certificates_path):
            host = file
            for extension in CERTIFICATE_EXTENSIONS:
                if host.endswith(extension):
                    host = host[: -len(extension)]
                    break
            if host not in hosts:
                hosts.append(host)
        return hosts

    def links(self, domain: str) -> list[dict]:
        """Describe every linked site"""
        secured = set(self.secured())
        result = []
        for name in self.files.scandir(self.sites_path):
            link = self.sites_path / name
            if not self.files.is_link(link):
                continue
            url = f"{name}.{domain}"
            is_secured = url in secured
            result.append(
                {
                    "site": name,
                    "secured": is_secured,
                    "url": f"{'https' if is_secured else 'http'}://{url}",
                    "path": str(self.files.realpath(link)),
                    "exists": self.files.exists(link),
                }
            )
        return result

    def logs(self, paths: list[str] | None = None) -> list[Path]:
        """Laravel log files of every project under the site paths.

        Missing log files are created (as the invoking user) so they can be
        tailed straight away.
        """
        log_files = []
        for base in paths if paths is not None else self.config.site_paths:
            for directory in self.files.scandir(Path(base)):
                log_path = Path(base) / directory / "storage" / "logs" / "laravel.log"
                if self.files.is_dir(log_path.parent):
                    log_files.append(self.files.touch_as_user(log_path))
        return log_files
