"""Tests for certificate issuing, revocation and trust store commands"""

import os
import stat
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from valet_cli import certificates
from valet_cli.certificates import TrustStore
from valet_cli.commandline import ROOT
from valet_cli.config import Settings
from valet_cli.errors import ShellCommandFailure


def _write_certificate(path: Path, not_after: datetime):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "blog.dev")])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=400))
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))


def test_secure_creates_triplet_and_caddy_fragment(valet):
    valet.certificates.secure("blog.dev")

    certs = valet.paths.certificates
    assert sorted(p.name for p in certs.iterdir()) == ["blog.dev.crt", "blog.dev.csr", "blog.dev.key"]

    fragment = (valet.paths.caddy / "blog.dev").read_text(encoding="utf-8")
    assert "https://blog.dev:443" in fragment
    assert f"tls {certs / 'blog.dev.crt'} {certs / 'blog.dev.key'}" in fragment
    assert "fastcgi / 127.0.0.1:9000 php" in fragment
    assert f"{valet.paths.home}/Log/access.log" in fragment
    for placeholder in ("VALET_SITE", "VALET_CERT", "VALET_KEY", "FPM_ADDRESS", "VALET_HOME_PATH"):
        assert placeholder not in fragment


def test_secure_runs_openssl_as_user_and_trusts_as_root(valet):
    valet.certificates.secure("blog.dev")

    openssl = valet.cli.ran("openssl")
    assert [cmd.split()[1] for cmd, _ in openssl] == ["genrsa", "req", "x509"]
    assert all(context == valet.cli.user_context for _, context in openssl)

    genrsa = openssl[0][0]
    assert "2048" in genrsa
    assert "-days 365" in openssl[2][0]
    assert "commonName=blog.dev" in openssl[1][0]

    trust = valet.cli.ran("update-ca-certificates")
    assert len(trust) == 1
    assert trust[0][1] == ROOT


@pytest.mark.skipif(os.name == "nt", reason="Unix permissions test")
def test_secure_restricts_private_key(valet):
    valet.certificates.secure("blog.dev")

    key = valet.paths.certificates / "blog.dev.key"
    assert stat.S_IMODE(key.stat().st_mode) == 0o600


def test_secure_twice_leaves_one_triplet(valet):
    valet.certificates.secure("blog.dev")
    valet.certificates.secure("blog.dev")

    names = sorted(p.name for p in valet.paths.certificates.iterdir())
    assert names == ["blog.dev.crt", "blog.dev.csr", "blog.dev.key"]

    # The second run removed the first trust entry before adding its own
    commands = [cmd for cmd, _ in valet.cli.commands]
    removal = next(i for i, cmd in enumerate(commands) if "--fresh" in cmd)
    adds = [i for i, cmd in enumerate(commands) if cmd.endswith("&& update-ca-certificates")]
    assert adds[0] < removal < adds[1]


def test_key_failure_stops_before_trust(valet):
    valet.cli.fail_on["genrsa"] = 1

    with pytest.raises(ShellCommandFailure):
        valet.certificates.secure("blog.dev")

    assert valet.cli.ran("openssl req") == []
    assert valet.cli.ran("update-ca-certificates") == []
    assert not valet.certificates.is_secured("blog.dev")
    assert not (valet.paths.caddy / "blog.dev").exists()


def test_unsecure_without_certificate_is_noop(valet):
    valet.certificates.unsecure("blog.dev")

    assert valet.cli.commands == []


def test_unsecure_removes_files_and_trust_entry(valet):
    valet.certificates.secure("blog.dev")
    valet.cli.commands.clear()

    valet.certificates.unsecure("blog.dev")

    assert list(valet.paths.certificates.iterdir()) == []
    assert not (valet.paths.caddy / "blog.dev").exists()
    assert len(valet.cli.ran("update-ca-certificates --fresh")) == 1


def test_unsecure_tolerates_missing_trust_entry(valet):
    valet.certificates.secure("blog.dev")
    valet.cli.fail_on["--fresh"] = 1

    valet.certificates.unsecure("blog.dev")

    assert not valet.certificates.is_secured("blog.dev")


def test_certificate_status_reports_key_and_expiry(valet):
    valet.certificates.secure("blog.dev")
    _write_certificate(valet.paths.certificates / "blog.dev.crt", datetime.now(timezone.utc) + timedelta(days=200))

    status = valet.certificates.certificate_status("blog.dev")

    assert status["url"] == "blog.dev"
    assert status["expiring"] is False
    assert status["expires"] is not None
    assert status["key_secure"] is True


class TestTrustStoreCommands(unittest.TestCase):
    """Command lines per trust store backend"""

    def setUp(self):
        self.cli = MagicMock()
        self.cli.user = "alice"
        self.settings = Settings(
            {
                "trust_store": {
                    "backend": "system",
                    "ca_directory": "/usr/local/share/ca-certificates/valet",
                    "nss_database": "/home/alice/.pki/nssdb",
                }
            }
        )
        self.store = TrustStore(self.cli, self.settings)
        self.crt = Path("/home/alice/.valet/Certificates/blog.dev.crt")

    def test_system_backend(self):
        add = self.store.add_command(self.crt, "blog.dev")
        self.assertIn("cp /home/alice/.valet/Certificates/blog.dev.crt", add)
        self.assertIn("/usr/local/share/ca-certificates/valet/blog.dev.crt", add)
        self.assertTrue(add.endswith("update-ca-certificates"))

        remove = self.store.remove_command("blog.dev")
        self.assertEqual(
            remove, "rm /usr/local/share/ca-certificates/valet/blog.dev.crt && update-ca-certificates --fresh"
        )

    def test_nss_backend(self):
        self.settings.data["trust_store"]["backend"] = "nss"

        add = self.store.add_command(self.crt, "blog.dev")
        self.assertTrue(add.startswith("certutil -d sql:/home/alice/.pki/nssdb -A -t 'C,,' -n blog.dev"))
        self.assertEqual(
            self.store.remove_command("blog.dev"), "certutil -d sql:/home/alice/.pki/nssdb -D -n blog.dev"
        )

    def test_keychain_backend(self):
        self.settings.data["trust_store"]["backend"] = "keychain"

        add = self.store.add_command(self.crt, "blog.dev")
        self.assertIn("security add-trusted-cert -d -r trustRoot -k /Library/Keychains/System.keychain", add)
        self.assertEqual(self.store.remove_command("blog.dev"), "security delete-certificate -c blog.dev -t")

    def test_auto_backend_follows_platform(self):
        self.settings.data["trust_store"]["backend"] = "auto"
        with patch.object(certificates, "IS_MACOS", True):
            self.assertEqual(self.store.backend, "keychain")
        with patch.object(certificates, "IS_MACOS", False):
            self.assertEqual(self.store.backend, "system")

    def test_remove_passes_error_callback(self):
        self.store.remove("blog.dev")

        _, kwargs = self.cli.run.call_args
        self.assertIsNotNone(kwargs["on_error"])
        kwargs["on_error"](1, "not found")


class TestCertificateChecks(unittest.TestCase):
    """Expiry and key permission checks on files on disk"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.base = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_missing_certificate(self):
        expiring, expires, message = certificates.check_certificate_expiration(self.base / "missing.crt")
        self.assertFalse(expiring)
        self.assertIsNone(expires)
        self.assertIn("does not exist", message)

    def test_expiring_soon(self):
        cert = self.base / "soon.crt"
        _write_certificate(cert, datetime.now(timezone.utc) + timedelta(days=10))

        expiring, expires, message = certificates.check_certificate_expiration(cert)

        self.assertTrue(expiring)
        self.assertIsNotNone(expires)
        self.assertIn("expires in", message)

    def test_expired(self):
        cert = self.base / "old.crt"
        _write_certificate(cert, datetime.now(timezone.utc) - timedelta(days=3))

        expiring, _, message = certificates.check_certificate_expiration(cert)

        self.assertTrue(expiring)
        self.assertIn("EXPIRED", message)

    def test_unparseable_certificate(self):
        cert = self.base / "junk.crt"
        cert.write_text("not a certificate")

        expiring, expires, message = certificates.check_certificate_expiration(cert)

        self.assertFalse(expiring)
        self.assertIsNone(expires)
        self.assertIn("Cannot check expiration", message)

    @unittest.skipIf(os.name == "nt", "Unix permissions test")
    def test_world_readable_key_rejected(self):
        key = self.base / "blog.dev.key"
        key.write_text("key")
        key.chmod(0o644)

        is_secure, message = certificates.check_key_permissions(key)

        self.assertFalse(is_secure)
        self.assertIn("world-readable", message)


if __name__ == "__main__":
    unittest.main()
