"""Command line entry point for binstage.

Typical use is as a package install hook::

    binstage install            # provision into the current directory
    binstage install path/to/pkg --force
    binstage status --json
"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from binstage.cli.commands import Command, InstallCommand, StatusCommand
from binstage.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from binstage.config import ConfigError, load_config
from binstage.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def _get_version() -> str:
    try:
        return version("binstage")
    except PackageNotFoundError:
        # Fallback for editable installs that have not yet built metadata.
        from binstage import __version__

        return __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binstage",
        description="binstage - install prebuilt native addons for a package.",
    )

    # Global options
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show binstage version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce logging output to errors only.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    install = subparsers.add_parser(
        "install",
        help="Install the native binary for this platform (default).",
    )
    _add_common_arguments(install)
    install.add_argument(
        "--force",
        action="store_true",
        help="Remove an existing installed binary and install again.",
    )
    install.add_argument(
        "--remote-base-url",
        metavar="URL",
        help="Base https URL to download artifacts from when none is bundled.",
    )
    install.add_argument(
        "--max-attempts",
        type=int,
        metavar="N",
        help="Maximum download attempts (default: 4).",
    )
    install.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Timeout for each download attempt (default: 30).",
    )

    status = subparsers.add_parser(
        "status",
        help="Show platform, variant and install state.",
    )
    _add_common_arguments(status)
    status.add_argument(
        "--json",
        action="store_true",
        help="Print status as JSON.",
    )

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Package root (default: current directory).",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        type=Path,
        help="Path to config file (default: .binstage.yml in the package root).",
    )


def cli_args_to_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect config values given as CLI flags."""
    overrides = {
        "remote_base_url": getattr(args, "remote_base_url", None),
        "max_attempts": getattr(args, "max_attempts", None),
        "timeout": getattr(args, "timeout", None),
    }
    return {k: v for k, v in overrides.items() if v is not None}


class CLIRunner:
    """Parses arguments, loads config and dispatches to a command."""

    def __init__(self, commands: Optional[Dict[str, Command]] = None) -> None:
        self._commands = commands or {
            "install": InstallCommand(),
            "status": StatusCommand(),
        }

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        parser = build_parser()
        argv_list: Optional[List[str]] = list(argv) if argv is not None else None

        try:
            args = parser.parse_args(argv_list)
        except SystemExit as e:
            # argparse exits 0 for --help, 2 for bad usage
            return EXIT_SUCCESS if e.code in (0, None) else EXIT_INVALID_USAGE

        # Configure logging as early as possible.
        configure_logging(debug=args.debug, verbose=args.verbose, quiet=args.quiet)

        if args.version:
            print(_get_version())
            return EXIT_SUCCESS

        if args.command is None:
            # Bare invocation behaves like `install .`
            install_args = parser.parse_args(["install"])
            for flag in ("debug", "verbose", "quiet"):
                setattr(install_args, flag, getattr(args, flag))
            args = install_args

        package_root = Path(args.path).resolve()
        try:
            config = load_config(
                package_root=package_root,
                cli_config_path=args.config,
                cli_overrides=cli_args_to_config_overrides(args),
            )
        except ConfigError as e:
            LOGGER.error(str(e))
            return EXIT_INVALID_USAGE

        return self._commands[args.command].execute(args, config)


def main(argv: Optional[Iterable[str]] = None) -> int:
    """CLI entrypoint.

    Returns an exit code suitable for use as a console script.
    """
    return CLIRunner().run(argv)
