"""
valet-linux - local development sites on Linux
Wildcard dnsmasq resolution, project links and self-signed TLS per site
"""

__version__ = "2.0.0"

from .certificates import CertificateStore, TrustStore
from .commandline import ROOT, CommandLine, ExecutionContext
from .config import Config, Settings, ValetPaths, get_valet_home
from .dnsmasq import DnsMasq
from .domain import resecure_for_new_domain, update_domain
from .errors import DomainRenameError, ShellCommandFailure, ValetError
from .filesystem import Filesystem
from .linux import PackageManager
from .sites import SiteRegistry

__all__ = [
    "CertificateStore",
    "TrustStore",
    "CommandLine",
    "ExecutionContext",
    "ROOT",
    "Config",
    "Settings",
    "ValetPaths",
    "get_valet_home",
    "DnsMasq",
    "resecure_for_new_domain",
    "update_domain",
    "DomainRenameError",
    "ShellCommandFailure",
    "ValetError",
    "Filesystem",
    "PackageManager",
    "SiteRegistry",
    "__version__",
]
