"""Self-signed TLS certificates for secured sites

Each secured host owns three files in ~/.valet/Certificates sharing one base
name (``<host>.key``, ``<host>.csr``, ``<host>.crt``) plus a Caddy fragment in
~/.valet/Caddy/<host>. A host counts as secured exactly when its ``.crt``
exists; nothing else records it.
"""

import logging
import shlex
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from cryptography import x509

from .commandline import CommandLine
from .config import STUBS_DIR, Settings, ValetPaths
from .filesystem import Filesystem
from .platform import IS_MACOS, user_home

logger = logging.getLogger("valet.certificates")

KEY_BITS = 2048
VALID_DAYS = 365
CERTIFICATE_EXTENSIONS = (".key", ".csr", ".crt")
# Every distinguished-name field empty except the common name
SUBJECT_TEMPLATE = "/C=/ST=/O=/localityName=/commonName={host}/organizationalUnitName=/emailAddress=/"


@dataclass(frozen=True)
class CertificatePaths:
    """The key/request/certificate triplet for one host"""

    key: Path
    csr: Path
    crt: Path

    def __iter__(self):
        return iter((self.key, self.csr, self.crt))


def check_key_permissions(key_path: Path) -> tuple[bool, str]:
    """Check if private key has secure permissions (0600)

    Returns:
        Tuple of (is_secure, error_message)
    """
    if not key_path.exists():
        return False, f"Key file does not exist: {key_path}"

    try:
        mode = key_path.stat().st_mode
    except OSError as e:
        return False, f"Cannot check permissions for {key_path}: {e}"

    if mode & (stat.S_IROTH | stat.S_IWOTH):
        return False, f"Private key {key_path} is world-readable/writable (permissions: {oct(stat.S_IMODE(mode))})"

    if mode & (stat.S_IRGRP | stat.S_IWGRP):
        logger.warning(
            "Private key %s is group-readable/writable (permissions: %s). Consider setting to 0600.",
            key_path,
            oct(stat.S_IMODE(mode)),
        )

    return True, ""


def check_certificate_expiration(cert_path: Path, warning_days: int = 30) -> tuple[bool, datetime | None, str]:
    """Check if certificate is expiring soon

    Args:
        cert_path: Path to a PEM certificate
        warning_days: Number of days before expiration to warn (default: 30)

    Returns:
        Tuple of (is_expiring_soon, expiration_date, message)
    """
    if not cert_path.exists():
        return False, None, f"Certificate file does not exist: {cert_path}"

    try:
        cert = x509.load_pem_x509_certificate(cert_path.read_bytes())
    except (OSError, ValueError) as e:
        logger.debug("Cannot parse certificate %s: %s", cert_path, e)
        return False, None, f"Cannot check expiration for {cert_path.name}: {e}"

    expiration_date = cert.not_valid_after_utc
    days_until_expiry = (expiration_date - datetime.now(timezone.utc)).days
    day_str = expiration_date.strftime("%Y-%m-%d")

    if days_until_expiry < 0:
        return True, expiration_date, f"Certificate {cert_path.name} EXPIRED on {day_str}"
    if days_until_expiry <= warning_days:
        return True, expiration_date, f"Certificate {cert_path.name} expires in {days_until_expiry} days ({day_str})"
    return False, expiration_date, f"Certificate {cert_path.name} valid until {day_str} ({days_until_expiry} days remaining)"


class TrustStore:
    """Adds and removes certificates from the OS trust store.

    Backends:
        system   -- Debian/Ubuntu CA bundle (update-ca-certificates)
        nss      -- an NSS database via certutil (Chrome/Firefox on Linux)
        keychain -- the macOS system keychain

    All commands run in the privileged context.
    """

    def __init__(self, cli: CommandLine, settings: Settings):
        self.cli = cli
        self.settings = settings

    @property
    def backend(self) -> str:
        backend = self.settings.trust_store_backend
        if backend == "auto":
            return "keychain" if IS_MACOS else "system"
        return backend

    def _ca_path(self, name: str) -> Path:
        directory = Path(self.settings.get("trust_store.ca_directory", "/usr/local/share/ca-certificates/valet"))
        return directory / f"{name}.crt"

    def _nss_database(self) -> str:
        raw = str(self.settings.get("trust_store.nss_database", "~/.pki/nssdb"))
        if raw.startswith("~"):
            raw = str(user_home(self.cli.user)) + raw[1:]
        return f"sql:{raw}"

    def add_command(self, crt_path: Path, name: str) -> str:
        crt = shlex.quote(str(crt_path))
        if self.backend == "keychain":
            return f"security add-trusted-cert -d -r trustRoot -k /Library/Keychains/System.keychain {crt}"
        if self.backend == "nss":
            return f"certutil -d {shlex.quote(self._nss_database())} -A -t 'C,,' -n {shlex.quote(name)} -i {crt}"
        target = self._ca_path(name)
        return (
            f"mkdir -p {shlex.quote(str(target.parent))} && "
            f"cp {crt} {shlex.quote(str(target))} && update-ca-certificates"
        )

    def remove_command(self, name: str) -> str:
        if self.backend == "keychain":
            return f"security delete-certificate -c {shlex.quote(name)} -t"
        if self.backend == "nss":
            return f"certutil -d {shlex.quote(self._nss_database())} -D -n {shlex.quote(name)}"
        return f"rm {shlex.quote(str(self._ca_path(name)))} && update-ca-certificates --fresh"

    def add(self, crt_path: Path, name: str) -> None:
        self.cli.run(self.add_command(crt_path, name))
        logger.info("Trusted certificate %s (%s)", name, self.backend)

    def remove(self, name: str) -> None:
        """Remove the entry for *name*; an already-missing entry is not an error."""

        def _already_absent(exit_code, output):
            logger.info("No trust store entry removed for %s (exit %s): %s", name, exit_code, output.strip())

        self.cli.run(self.remove_command(name), on_error=_already_absent)


class CertificateStore:
    """Issues and revokes the TLS material for individual hosts"""

    def __init__(
        self,
        paths: ValetPaths,
        files: Filesystem,
        cli: CommandLine,
        trust_store: TrustStore,
        settings: Settings,
    ):
        self.paths = paths
        self.files = files
        self.cli = cli
        self.trust_store = trust_store
        self.settings = settings

    def certificate_paths(self, url: str) -> CertificatePaths:
        base = self.paths.certificates
        return CertificatePaths(key=base / f"{url}.key", csr=base / f"{url}.csr", crt=base / f"{url}.crt")

    def caddy_path(self, url: str) -> Path:
        return self.paths.caddy / url

    def is_secured(self, url: str) -> bool:
        return self.files.exists(self.certificate_paths(url).crt)

    def secure(self, url: str) -> None:
        """Issue a fresh certificate for *url* and write its Caddy fragment.

        Always starts from a clean slate: any existing material for *url*,
        trust store entry included, is removed first.
        """
        self.unsecure(url)

        self.files.ensure_dir_exists(self.paths.certificates, self.files.user)

        self.create_certificate(url)

        self.files.ensure_dir_exists(self.paths.caddy, self.files.user)
        self.files.put_as_user(self.caddy_path(url), self.build_secure_caddyfile(url))
        logger.info("Secured %s", url)

    def unsecure(self, url: str) -> None:
        """Remove the certificate triplet, Caddy fragment and trust entry for *url*"""
        cert = self.certificate_paths(url)
        if not self.files.exists(cert.crt):
            logger.debug("%s is not secured; nothing to remove", url)
            return

        self.files.unlink(self.caddy_path(url))
        for path in cert:
            self.files.unlink(path)

        self.trust_store.remove(url)
        logger.info("Unsecured %s", url)

    def create_certificate(self, url: str) -> CertificatePaths:
        """Generate key, signing request and self-signed certificate, then trust it"""
        cert = self.certificate_paths(url)

        self.create_private_key(cert.key)
        self.create_signing_request(url, cert.key, cert.csr)
        self.sign_certificate(cert.csr, cert.key, cert.crt)

        self.trust_certificate(cert.crt, url)
        return cert

    def create_private_key(self, key_path: Path) -> None:
        self.cli.run_as_user(f"openssl genrsa -out {shlex.quote(str(key_path))} {KEY_BITS}")
        if self.files.exists(key_path):
            self.files.chmod(key_path, 0o600)

    def create_signing_request(self, url: str, key_path: Path, csr_path: Path) -> None:
        subject = SUBJECT_TEMPLATE.format(host=url)
        self.cli.run_as_user(
            f"openssl req -new -subj {shlex.quote(subject)} "
            f"-key {shlex.quote(str(key_path))} -out {shlex.quote(str(csr_path))} -passin pass:"
        )

    def sign_certificate(self, csr_path: Path, key_path: Path, crt_path: Path) -> None:
        self.cli.run_as_user(
            f"openssl x509 -req -days {VALID_DAYS} -in {shlex.quote(str(csr_path))} "
            f"-signkey {shlex.quote(str(key_path))} -out {shlex.quote(str(crt_path))}"
        )

    def trust_certificate(self, crt_path: Path, url: str) -> None:
        self.trust_store.add(crt_path, url)

    def build_secure_caddyfile(self, url: str) -> str:
        cert = self.certificate_paths(url)
        template = self.files.get(STUBS_DIR / "SecureCaddyfile")
        replacements = {
            "VALET_SITE": url,
            "VALET_CERT": str(cert.crt),
            "VALET_KEY": str(cert.key),
            "FPM_ADDRESS": self.settings.fpm_address,
            "VALET_HOME_PATH": str(self.paths.home),
        }
        for placeholder, value in replacements.items():
            template = template.replace(placeholder, value)
        return template

    def certificate_status(self, url: str, warning_days: int = 30) -> dict:
        """Expiry and key-permission summary for a secured host"""
        cert = self.certificate_paths(url)
        expiring, expires_at, message = check_certificate_expiration(cert.crt, warning_days)
        key_ok, key_message = check_key_permissions(cert.key)
        return {
            "url": url,
            "certificate": str(cert.crt),
            "expires": expires_at.isoformat() if expires_at else None,
            "expiring": expiring,
            "message": message,
            "key_secure": key_ok,
            "key_message": key_message,
        }

