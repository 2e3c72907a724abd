"""Main entry point for valet CLI"""

import argparse
import logging
import sys

from . import __version__
from .cli import ValetCLI
from .errors import DomainRenameError, ShellCommandFailure, ValetError
from .structured_logging import setup_logging
from .utils import msg_detail, msg_error

logger = logging.getLogger("valet.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="valet",
        description="Valet - local development sites with wildcard DNS and self-signed TLS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"valet {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every command valet runs")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # install command
    install_parser = subparsers.add_parser("install", help="Install dnsmasq and configure the wildcard domain")
    install_parser.add_argument("--domain", help="Base domain to resolve (default: configured domain)")

    # domain command
    domain_parser = subparsers.add_parser("domain", help="Get or set the base domain")
    domain_parser.add_argument("name", nargs="?", help="New domain (re-secures every secured site)")

    # secure command
    secure_parser = subparsers.add_parser("secure", help="Secure a site with a fresh TLS certificate")
    secure_parser.add_argument("name", nargs="?", help="Site name (default: current directory)")

    # unsecure command
    unsecure_parser = subparsers.add_parser("unsecure", help="Stop serving a site over TLS")
    unsecure_parser.add_argument("name", nargs="?", help="Site name (default: current directory)")

    # secured command
    secured_parser = subparsers.add_parser("secured", help="List secured sites")
    secured_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # link command
    link_parser = subparsers.add_parser("link", help="Link a project directory as a site")
    link_parser.add_argument("name", nargs="?", help="Site name (default: directory name)")
    link_parser.add_argument("--path", "-p", help="Project directory (default: current directory)")

    # unlink command
    unlink_parser = subparsers.add_parser("unlink", help="Remove a site link")
    unlink_parser.add_argument("name", nargs="?", help="Site name (default: directory name)")

    # links command
    links_parser = subparsers.add_parser("links", help="List linked sites")
    links_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # prune command
    subparsers.add_parser("prune", help="Remove links whose project directory is gone")

    # which command
    which_parser = subparsers.add_parser("which", help="Show the site name for a directory")
    which_parser.add_argument("path", nargs="?", help="Directory (default: current directory)")

    # logs command
    subparsers.add_parser("logs", help="List application log files of linked projects")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else None)

    if not args.command:
        parser.print_help()
        return 0

    try:
        cli = ValetCLI()
        if args.command == "install":
            success = cli.install(args.domain)
        elif args.command == "domain":
            success = cli.domain(args.name)
        elif args.command == "secure":
            success = cli.secure(args.name)
        elif args.command == "unsecure":
            success = cli.unsecure(args.name)
        elif args.command == "secured":
            success = cli.secured(args.json)
        elif args.command == "link":
            success = cli.link(args.name, args.path)
        elif args.command == "unlink":
            success = cli.unlink(args.name)
        elif args.command == "links":
            success = cli.links(args.json)
        elif args.command == "prune":
            success = cli.prune()
        elif args.command == "which":
            success = cli.which(args.path)
        elif args.command == "logs":
            success = cli.logs()
        else:
            parser.print_help()
            return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except DomainRenameError as e:
        logger.error("%s", e)
        msg_error(str(e))
        for url, error in e.failures:
            msg_detail(f"{url}: {error}", stream=sys.stderr)
        msg_error("Run `valet domain <name>` again once the cause is fixed.")
        return 1
    except ShellCommandFailure as e:
        logger.error("Command failed: %s (exit %s)", e.command, e.exit_code)
        msg_error(str(e))
        return 1
    except ValetError as e:
        logger.error("%s", e)
        msg_error(str(e))
        return 1
    except PermissionError as e:
        msg_error(f"Permission denied: {e.filename or e}")
        msg_error("Commands that touch system services need root; try again with sudo.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
