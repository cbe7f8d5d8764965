"""CLI entrypoints for flakewrap commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import FlakeWrapError, ReferenceParseFailure
from .flake import Flake
from .logging import configure_logging
from .reference import Reference, parse_reference

DEFAULT_COMMAND = "show"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _reference_argument(value: str) -> Reference:
    try:
        return parse_reference(value)
    except ReferenceParseFailure as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _add_reference_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "reference",
        nargs="?",
        type=_reference_argument,
        default=None,
        help="Target as `.#name`, `proto:path` or a bare package name.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flakewrap",
        description="Build, check, run and list the outputs of the enclosing Nix flake.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command")

    build_parser = subparsers.add_parser("build", help="Build a package of the flake.")
    _add_verbose_option(build_parser, suppress_default=True)
    _add_reference_argument(build_parser)

    check_parser = subparsers.add_parser("check", help="Run the flake checks.")
    _add_verbose_option(check_parser, suppress_default=True)
    _add_reference_argument(check_parser)

    run_parser = subparsers.add_parser("run", help="Run a package of the flake.")
    _add_verbose_option(run_parser, suppress_default=True)
    _add_reference_argument(run_parser)

    show_parser = subparsers.add_parser(
        "show",
        help="List the flake outputs for the current platform (default).",
    )
    _add_verbose_option(show_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for flakewrap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    command = args.command or DEFAULT_COMMAND

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        flake = Flake.discover()
        if command == "build":
            flake.build(args.reference)
        elif command == "check":
            flake.check(args.reference)
        elif command == "run":
            flake.run(args.reference)
        elif command == "show":
            print(flake.render_show())
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except FlakeWrapError as exc:
        parser.exit(1, f"flakewrap {command} failed: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
