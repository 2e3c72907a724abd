"""Shared fixtures: a valet home under tmp_path and a recording command line"""

import getpass
import shlex
from pathlib import Path
from types import SimpleNamespace

import pytest

from valet_cli.certificates import CertificateStore, TrustStore
from valet_cli.commandline import ROOT, CommandLine, ExecutionContext
from valet_cli.config import Config, Settings, ValetPaths
from valet_cli.dnsmasq import DnsMasq
from valet_cli.errors import ShellCommandFailure
from valet_cli.filesystem import Filesystem
from valet_cli.linux import PackageManager
from valet_cli.sites import SiteRegistry


class FakeCommandLine(CommandLine):
    """Records commands instead of running them.

    ``openssl ... -out <file>`` creates <file> so the certificate pipeline
    leaves the same files behind as the real tools. ``fail_on`` maps a
    command substring to the exit code it should fail with; ``responses``
    maps a command substring to its output.
    """

    def __init__(self, user: str):
        super().__init__(user)
        self.commands: list[tuple[str, ExecutionContext]] = []
        self.fail_on: dict[str, int] = {}
        self.responses: dict[str, str] = {}

    def run(self, command, on_error=None, context=ROOT):
        self.commands.append((command, context))

        for needle, exit_code in self.fail_on.items():
            if needle in command:
                if on_error is None:
                    raise ShellCommandFailure(command, exit_code, "simulated failure")
                on_error(exit_code, "simulated failure")
                return ""

        if command.startswith("openssl"):
            words = shlex.split(command)
            if "-out" in words:
                Path(words[words.index("-out") + 1]).write_text(f"# {words[1]}\n", encoding="utf-8")

        for needle, output in self.responses.items():
            if needle in command:
                return output
        return ""

    def ran(self, needle: str) -> list[tuple[str, ExecutionContext]]:
        return [(command, context) for command, context in self.commands if needle in command]


@pytest.fixture
def valet(tmp_path: Path, monkeypatch):
    """Every collaborator wired against a throwaway home and /etc"""
    monkeypatch.delenv("VALET_DOMAIN", raising=False)

    user = getpass.getuser()
    paths = ValetPaths(tmp_path / ".valet")
    files = Filesystem(user)
    cli = FakeCommandLine(user)
    config = Config(paths, files)

    etc = tmp_path / "etc"
    (etc / "NetworkManager").mkdir(parents=True)
    settings = Settings.load()
    settings.data["dnsmasq"]["config_path"] = str(etc / "dnsmasq.conf")
    settings.data["network_manager"]["config_path"] = str(etc / "NetworkManager" / "NetworkManager.conf")
    settings.data["trust_store"]["backend"] = "system"
    settings.data["trust_store"]["ca_directory"] = str(tmp_path / "ca-certificates")

    linux = PackageManager(cli)
    trust_store = TrustStore(cli, settings)
    certificates = CertificateStore(paths, files, cli, trust_store, settings)
    sites = SiteRegistry(paths, files, config)
    dnsmasq = DnsMasq(linux, cli, files, paths, settings)

    return SimpleNamespace(
        user=user,
        paths=paths,
        files=files,
        cli=cli,
        config=config,
        settings=settings,
        linux=linux,
        trust_store=trust_store,
        certificates=certificates,
        sites=sites,
        dnsmasq=dnsmasq,
        etc=etc,
    )
