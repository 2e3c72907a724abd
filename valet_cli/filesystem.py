"""Filesystem operations scoped to the invoking user.

When valet runs under sudo, everything it creates inside the valet home
(sites, certificates, Caddy fragments, config) must still belong to the
user who ran it. The ``*_as_user`` helpers write as usual and then hand
ownership back to that user.
"""

import logging
import os
import pwd
import shutil
from pathlib import Path

from .platform import invoking_user, is_admin

logger = logging.getLogger("valet.filesystem")


class Filesystem:
    """Thin wrapper over path operations with user-ownership variants"""

    def __init__(self, user: str | None = None):
        self.user = user or invoking_user()

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_link(self, path: Path) -> bool:
        return Path(path).is_symlink()

    def get(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def scandir(self, path: Path) -> list[str]:
        """Sorted entry names in *path*; empty when the directory is missing"""
        directory = Path(path)
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir())

    def realpath(self, path: Path) -> Path:
        return Path(os.path.realpath(path))

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    def ensure_dir_exists(self, path: Path, owner: str | None = None, mode: int = 0o755) -> None:
        directory = Path(path)
        if not directory.is_dir():
            directory.mkdir(mode=mode, parents=True, exist_ok=True)
            logger.debug("Created directory %s", directory)
        if owner:
            self.chown(directory, owner)

    def put(self, path: Path, contents: str) -> None:
        """Replace the contents of *path* atomically"""
        target = Path(path)
        tmp = target.with_name(f".{target.name}.tmp")
        tmp.write_text(contents, encoding="utf-8")
        tmp.replace(target)

    def put_as_user(self, path: Path, contents: str) -> None:
        self.put(path, contents)
        self.chown(path, self.user)

    def append(self, path: Path, contents: str) -> None:
        with Path(path).open("a", encoding="utf-8") as fh:
            fh.write(contents)

    def copy(self, source: Path, destination: Path) -> None:
        shutil.copyfile(source, destination)

    def touch_as_user(self, path: Path) -> Path:
        target = Path(path)
        target.touch(exist_ok=True)
        self.chown(target, self.user)
        return target

    def chmod(self, path: Path, mode: int) -> None:
        Path(path).chmod(mode)

    def symlink(self, target: Path, link: Path) -> None:
        """Point *link* at *target*, replacing any existing link"""
        link_path = Path(link)
        if link_path.is_symlink() or link_path.exists():
            self.unlink(link_path)
        link_path.symlink_to(target)

    def symlink_as_user(self, target: Path, link: Path) -> None:
        self.symlink(target, link)
        self.chown(link, self.user)

    def unlink(self, path: Path) -> None:
        """Remove a file or link; missing paths are ignored"""
        Path(path).unlink(missing_ok=True)

    def remove_broken_links_at(self, path: Path) -> list[str]:
        """Delete dangling symlinks directly inside *path*; returns their names"""
        removed = []
        for name in self.scandir(path):
            link = Path(path) / name
            if link.is_symlink() and not link.exists():
                link.unlink()
                removed.append(name)
                logger.info("Pruned dangling link %s", link)
        return removed

    def chown(self, path: Path, user: str) -> None:
        """Give *path* to *user* (root only; a no-op for unprivileged runs)"""
        if not is_admin():
            return
        try:
            entry = pwd.getpwnam(user)
        except KeyError:
            logger.warning("Unknown user %s; leaving ownership of %s unchanged", user, path)
            return
        os.chown(path, entry.pw_uid, entry.pw_gid, follow_symlinks=False)
