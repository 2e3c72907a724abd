"""Configuration management for ~/.valet/config.json and valet.yml settings"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .filesystem import Filesystem
from .platform import user_home

logger = logging.getLogger("valet.config")

STUBS_DIR = Path(__file__).parent / "stubs"

DEFAULT_DOMAIN = "dev"


def get_valet_home() -> Path:
    """Get the valet home directory (VALET_HOME or ~<user>/.valet)"""
    env_path = os.getenv("VALET_HOME", "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()
    return user_home() / ".valet"


@dataclass(frozen=True)
class ValetPaths:
    """Locations of everything valet keeps under its home directory"""

    home: Path

    @property
    def config_file(self) -> Path:
        return self.home / "config.json"

    @property
    def settings_file(self) -> Path:
        return self.home / "valet.yml"

    @property
    def sites(self) -> Path:
        return self.home / "Sites"

    @property
    def certificates(self) -> Path:
        return self.home / "Certificates"

    @property
    def caddy(self) -> Path:
        return self.home / "Caddy"

    @property
    def logs(self) -> Path:
        return self.home / "Log"

    @property
    def dnsmasq_fragment(self) -> Path:
        return self.home / "dnsmasq.conf"


class Config:
    """Manages config.json (base domain and site search paths)"""

    def __init__(self, paths: ValetPaths, files: Filesystem):
        self.paths = paths
        self.files = files
        self.config_file = paths.config_file

    def load(self) -> dict:
        """Load configuration from file, creating the default when missing"""
        if not self.config_file.exists():
            data = {"domain": DEFAULT_DOMAIN, "paths": []}
            self.save(data)
            return data

        try:
            with open(self.config_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load %s: %s", self.config_file, e)
            return {"domain": DEFAULT_DOMAIN, "paths": []}

        if not isinstance(data, dict):
            return {"domain": DEFAULT_DOMAIN, "paths": []}
        data.setdefault("domain", DEFAULT_DOMAIN)
        data.setdefault("paths", [])
        return data

    def save(self, data: dict):
        """Save configuration atomically, owned by the invoking user"""
        self.files.ensure_dir_exists(self.paths.home, self.files.user)
        self.files.put_as_user(self.config_file, json.dumps(data, indent=2, sort_keys=True) + "\n")

    def update(self, key: str, value: Any) -> dict:
        data = self.load()
        data[key] = value
        self.save(data)
        return data

    def get_domain(self) -> str:
        """Get base domain from env or config"""
        domain = os.environ.get("VALET_DOMAIN", "").strip()
        if domain:
            return domain
        return str(self.load().get("domain") or DEFAULT_DOMAIN)

    def set_domain(self, domain: str) -> None:
        self.update("domain", domain)

    @property
    def site_paths(self) -> list[str]:
        return list(self.load().get("paths", []))

    def prepend_path(self, path: Path) -> None:
        """Put *path* first in the site search paths, without duplicating it"""
        path_str = str(path)
        data = self.load()
        current = list(data.get("paths", []))
        paths = [path_str, *(p for p in current if p != path_str)]
        if paths == current:
            return
        data["paths"] = paths
        self.save(data)


def _deep_merge(base: dict, overlay: dict) -> dict:
    merged = base.copy()
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Settings:
    """
    Machine-level settings: bundled stubs/settings.yml merged with an
    optional ~/.valet/valet.yml override.

    Schema:
        fpm_address: str              # upstream written into Caddy fragments
        dnsmasq.config_path: str      # primary dnsmasq configuration
        dnsmasq.service: str
        network_manager.config_path: str
        network_manager.service: str
        trust_store.backend: str      # auto | system | nss | keychain
        trust_store.ca_directory: str # system backend
        trust_store.nss_database: str # nss backend ("~" is the user's home)
    """

    DEFAULTS_FILE = STUBS_DIR / "settings.yml"

    def __init__(self, data: dict):
        self.data = data

    @classmethod
    def load(cls, paths: ValetPaths | None = None) -> "Settings":
        with open(cls.DEFAULTS_FILE, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if paths is not None and paths.settings_file.exists():
            try:
                with open(paths.settings_file, encoding="utf-8") as f:
                    overrides = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Ignoring unreadable settings %s: %s", paths.settings_file, e)
                overrides = {}
            if isinstance(overrides, dict):
                data = _deep_merge(data, overrides)

        return cls(data)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        value: Any = self.data
        for part in dotted_key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    @property
    def fpm_address(self) -> str:
        return str(self.get("fpm_address", "127.0.0.1:9000"))

    @property
    def dnsmasq_config_path(self) -> Path:
        return Path(self.get("dnsmasq.config_path", "/etc/dnsmasq.conf"))

    @property
    def dnsmasq_service(self) -> str:
        return str(self.get("dnsmasq.service", "dnsmasq"))

    @property
    def network_manager_config_path(self) -> Path:
        return Path(self.get("network_manager.config_path", "/etc/NetworkManager/NetworkManager.conf"))

    @property
    def network_manager_service(self) -> str:
        return str(self.get("network_manager.service", "network-manager"))

    @property
    def trust_store_backend(self) -> str:
        return str(self.get("trust_store.backend", "auto")).lower()
