#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
sonnetdoc/__main__.py
=====================

Command-line entry point.

Usage
-----
    python -m sonnetdoc [FILE] [-J DIR]... [--format text|json|sexp]
                        [--sort] [--show-opaque] [--max-depth N]
                        [--color auto|always|never] [-v] [--version]

``FILE`` defaults to ``main.libsonnet``; ``-`` reads the program from stdin
(imports are then resolved relative to the working directory).

Exit codes
----------
    0     Success.
    1     Syntax or resolution error (printed GCC-style on stderr).
    2     Infrastructure failure (unreadable input, internal error).
    130   Interrupted.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import textwrap
from dataclasses import replace
from typing import Optional, Sequence, TextIO

from . import __version__
from .config import DEFAULT_ENTRY_FILE, CatalogConfig
from .errors import SonnetdocError
from .importer import FileImporter
from .parser import parse
from .render import FORMATS, _Colors, _get_colors, render
from .resolver import Resolver

_log = logging.getLogger("sonnetdoc")

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2
EXIT_INTERRUPTED: int = 130


def _configure_logging(verbosity: int) -> None:
    """Set up the ``sonnetdoc`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("sonnetdoc")
    root.setLevel(level)
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)


def _report(exc: SonnetdocError, colors: _Colors, stream: Optional[TextIO] = None) -> None:
    """Print *exc* GCC-style, colouring the severity like a compiler does."""
    stream = stream or sys.stderr
    c = colors
    severity = exc.severity.value
    head, _, rest = exc.to_gcc_format().partition("\n")
    head = head.replace(
        f": {severity}: ", f": {c.RED}{severity}:{c.RESET}{c.BOLD} ", 1
    )
    stream.write(f"{c.BOLD}{head}{c.RESET}\n")
    if rest:
        stream.write(rest + "\n")


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the sonnetdoc CLI."""
    parser = argparse.ArgumentParser(
        prog="sonnetdoc",
        description="List the functions a Jsonnet library exports.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s
              %(prog)s lib/k.libsonnet -J vendor --sort
              %(prog)s main.libsonnet --format json
              cat main.libsonnet | %(prog)s -
        """),
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=DEFAULT_ENTRY_FILE,
        help=f"Entry file (default: {DEFAULT_ENTRY_FILE}; use '-' for stdin)",
    )
    parser.add_argument(
        "-J", "--jpath",
        action="append",
        default=[],
        metavar="DIR",
        help="Library search directory; may be repeated, right-most wins",
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--sort",
        action="store_true",
        help="Sort entries by name instead of declaration order",
    )
    parser.add_argument(
        "--show-opaque",
        action="store_true",
        help="Also list entries that are not functions or objects",
    )
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Resolution depth budget (default: 400, or $SONNETDOC_MAX_DEPTH)",
    )
    parser.add_argument(
        "--color",
        choices=("auto", "always", "never"),
        default="auto",
        help="Colorize output (default: auto)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _load_config(args: argparse.Namespace) -> CatalogConfig:
    config = CatalogConfig.from_env().with_search_paths(tuple(args.jpath))
    config = replace(config, sort_keys=args.sort, show_opaque=args.show_opaque)
    if args.max_depth is not None:
        config = replace(config, max_depth=args.max_depth)
    for warning in config.validate():
        _log.warning("%s", warning)
    return config


def run(args: argparse.Namespace) -> int:
    """Parse, resolve and print the catalog described by *args*."""
    config = _load_config(args)
    err_colors = _get_colors(sys.stderr, args.color)

    try:
        if args.input == "-":
            source = sys.stdin.read()
            filename = "<stdin>"
        else:
            with open(args.input, "r", encoding="utf-8") as f:
                source = f.read()
            filename = args.input
    except (OSError, UnicodeDecodeError) as exc:
        sys.stderr.write(
            f"{err_colors.BOLD}sonnetdoc: {err_colors.RED}error:{err_colors.RESET} "
            f"cannot read {args.input}: {exc}\n"
        )
        return EXIT_INFRA

    try:
        root = parse(source, filename)
        catalog = Resolver(FileImporter(config.search_paths), config).build(root, filename)
    except SonnetdocError as exc:
        _report(exc, err_colors, sys.stderr)
        return EXIT_ERROR

    render(
        catalog,
        args.format,
        stream=sys.stdout,
        colors=_get_colors(sys.stdout, args.color),
        sort_keys=config.sort_keys,
        show_opaque=config.show_opaque,
    )
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the sonnetdoc CLI.

    Parameters
    ----------
    argv : sequence of str, optional
        Command-line arguments. Defaults to sys.argv[1:].

    Returns
    -------
    int
        Exit code (see module docstring).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return run(args)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return EXIT_INTERRUPTED
    except BrokenPipeError:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_OK
    except Exception as exc:
        _log.error("Internal error: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    sys.exit(main())
