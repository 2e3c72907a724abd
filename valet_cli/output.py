"""
Rich-powered console output for valet

Tables for linked and secured sites, plus a summary panel after install.
"""

import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console(force_terminal=None)

# ASCII-safe icons when not writing to a terminal
_USE_ASCII = not sys.stdout.isatty()

STATUS_STYLES = {
    "ok": ("+" if _USE_ASCII else "✓", "green"),
    "error": ("x" if _USE_ASCII else "✗", "red"),
    "warning": ("!", "yellow"),
    "secured": ("+" if _USE_ASCII else "🔒", "green"),
    "plain": ("-" if _USE_ASCII else "○", "dim"),
}


def status_icon(status: str) -> Text:
    """Create a styled status icon"""
    icon, style = STATUS_STYLES.get(status, ("?", "dim"))
    return Text(icon, style=style)


def links_table(links: list[dict]) -> Table:
    """
    Table of linked sites.

    Args:
        links: Entries from SiteRegistry.links()
    """
    table = Table(title="Linked Sites", show_header=True, header_style="bold cyan")

    table.add_column("Site", style="bold")
    table.add_column("SSL", justify="center")
    table.add_column("URL", style="cyan")
    table.add_column("Path", style="dim")

    for link in links:
        path = link["path"] if link.get("exists", True) else f"[red]{link['path']} (missing)[/red]"
        table.add_row(
            link["site"],
            status_icon("secured" if link["secured"] else "plain"),
            link["url"],
            path,
        )

    return table


def secured_table(statuses: list[dict]) -> Table:
    """
    Table of secured hosts and their certificate state.

    Args:
        statuses: Entries from CertificateStore.certificate_status()
    """
    table = Table(title="Secured Sites", show_header=True, header_style="bold cyan")

    table.add_column("Host", style="bold")
    table.add_column("Expires")
    table.add_column("Key", justify="center")
    table.add_column("Status", style="dim")

    for status in statuses:
        if status["expiring"]:
            expiry_style = "yellow" if "EXPIRED" not in status["message"] else "red"
        else:
            expiry_style = "green"
        expires = (status["expires"] or "?")[:10]
        table.add_row(
            status["url"],
            Text(expires, style=expiry_style),
            status_icon("ok" if status["key_secure"] else "error"),
            status["message"],
        )

    return table


def install_panel(domain: str, home: str, resolver_config: str) -> Panel:
    """Summary shown after `valet install`"""
    lines = [
        Text.assemble(status_icon("ok"), f" *.{domain} resolves to 127.0.0.1"),
        Text(f"Valet home: {home}"),
        Text(f"dnsmasq: {resolver_config}"),
    ]
    return Panel(Text("\n").join(lines), title="Valet Installed", border_style="cyan")


def print_success(message: str):
    """Print a success message"""
    icon, _ = STATUS_STYLES["ok"]
    console.print(f"[green]{icon}[/green] {message}")


def print_info(message: str):
    """Print an info message"""
    icon = "i" if _USE_ASCII else "ℹ"
    console.print(f"[blue]{icon}[/blue] {message}")


def print_links(links: list[dict]):
    console.print(links_table(links))


def print_secured(statuses: list[dict]):
    console.print(secured_table(statuses))


def print_install(domain: str, home: str, resolver_config: str):
    console.print(install_panel(domain, home, resolver_config))
