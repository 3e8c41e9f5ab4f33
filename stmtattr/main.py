#!/usr/bin/env python3
"""stmtattr/main.py — CLI entry-point for the statement attribute checker.

Usage examples
--------------
    # Check the statement attributes of a source snippet
    python -m stmtattr check loops.cpp

    # Same, as JSON, with warnings promoted to errors
    python -m stmtattr check loops.cpp --format json --Werror

    # Ignore unknown-attribute warnings
    python -m stmtattr check loops.cpp --suppress warn_unknown_attribute_ignored

    # Dump the checked tree as an S-expression (debugging aid)
    python -m stmtattr dump loops.cpp --format sexp

    # List the loop-hint options
    python -m stmtattr options

    # Show version and exit
    python -m stmtattr --version

Exit codes
----------
    0   Success (no error diagnostics).
    1   One or more diagnostics with severity ERROR were emitted.
    2   Infrastructure failure (missing file, unparseable input, etc.).

The module doubles as ``python -m stmtattr`` via the companion
``stmtattr/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from stmtattr import __version__
from stmtattr.attributes import LoopHintOption, OptionClass
from stmtattr.config import SemaConfig
from stmtattr.errors import Diagnostic, SnippetSyntaxError, format_diagnostics

_log = logging.getLogger("stmtattr")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``stmtattr`` logger.

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
    root = logging.getLogger("stmtattr")
    root.setLevel(level)
    root.handlers[:] = [handler]


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_diagnostics(
    diagnostics: List[Diagnostic],
    fmt: str,
    stream: TextIO,
) -> int:
    """Write *diagnostics* to *stream* in the chosen format.

    Returns the count of ERROR-severity diagnostics.
    """
    error_count = sum(1 for diag in diagnostics if diag.severity.is_error())

    if fmt == "json":
        # One JSON array, the same shape DiagnosticsEngine.format produces.
        stream.write(format_diagnostics(diagnostics, format="json") + "\n")
        return error_count

    for diag in diagnostics:
        # GCC-style: file:line:col: severity: message [id]
        stream.write(diag.to_gcc_format() + "\n")

    if fmt == "summary":
        stream.write(f"\n--- {len(diagnostics)} diagnostic(s), "
                     f"{error_count} error(s) ---\n")
    return error_count


def _config_from_args(args: argparse.Namespace, source: Path) -> SemaConfig:
    config = SemaConfig.from_mapping({
        "filename": str(source),
        "warnings_as_errors": getattr(args, "werror", False),
        "suppressed_diagnostics": getattr(args, "suppress", None) or (),
        "strict_loop_hint_options": getattr(args, "strict_loop_hints", False),
    })
    for warning in config.validate():
        _log.warning("%s", warning)
    return config


# ===========================================================================
# Sub-commands
# ===========================================================================

# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Check the statement attributes of a source file and report."""
    from stmtattr.frontend import check_file

    src_path = _resolve_path(args.source_file, "source file")
    config = _config_from_args(args, src_path)

    try:
        result = check_file(src_path, config)
    except SnippetSyntaxError as exc:
        _log.error("Parse error: %s", exc)
        return EXIT_INFRA

    out = _open_output(args.output)
    try:
        error_count = _emit_diagnostics(result.diagnostics.diagnostics, args.format, out)
    finally:
        if out is not sys.stdout:
            out.close()

    return EXIT_ERROR if error_count > 0 else EXIT_OK


# ---------------------------------------------------------------------------
# dump
# ---------------------------------------------------------------------------

def cmd_dump(args: argparse.Namespace) -> int:
    """Check a source file and print the resulting tree.

    Useful for seeing which attributes survived validation.
    """
    from stmtattr import sexp
    from stmtattr.frontend import check_file

    src_path = _resolve_path(args.source_file, "source file")
    config = _config_from_args(args, src_path)

    try:
        result = check_file(src_path, config)
    except SnippetSyntaxError as exc:
        _log.error("Parse error: %s", exc)
        return EXIT_INFRA

    out = _open_output(args.output)
    try:
        if args.format == "sexp":
            out.write(sexp.dumps(result.unit) + "\n")
        else:
            out.write(repr(result.unit) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()

    if result.diagnostics.diagnostics:
        _emit_diagnostics(result.diagnostics.diagnostics, "gcc", sys.stderr)

    return EXIT_ERROR if result.has_errors else EXIT_OK


# ---------------------------------------------------------------------------
# options (list loop-hint options)
# ---------------------------------------------------------------------------

def cmd_options(args: argparse.Namespace) -> int:
    """List the loop-hint options and their categories."""
    out = _open_output(args.output)
    try:
        for option in LoopHintOption:
            kind = "enable|disable" if option.option_class is OptionClass.BOOLEAN else "N >= 1"
            out.write(f"  {option.spelling:<18} {option.category.name.lower():<11} {kind}\n")
        out.write(f"\n{len(LoopHintOption)} option(s) available.\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="stmtattr",
        description=(
            "stmtattr — statement attribute checker.\n\n"
            "Validates [[fallthrough]] and '#pragma clang loop' hints on\n"
            "statements and reports conflicting loop hints."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              stmtattr check loops.cpp
              stmtattr check loops.cpp -f json --Werror
              stmtattr dump  loops.cpp -f sexp
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_output_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    def _add_check_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("checking")
        g.add_argument(
            "--Werror",
            dest="werror",
            action="store_true",
            help="Treat warnings as errors.",
        )
        g.add_argument(
            "--suppress",
            nargs="+",
            default=None,
            metavar="ID",
            help="Suppress warnings by name or ATTR-NNNN code.",
        )
        g.add_argument(
            "--strict-loop-hints",
            dest="strict_loop_hints",
            action="store_true",
            help="Reject unknown loop-hint options instead of reading them as 'vectorize'.",
        )

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Check statement attributes in a source file.",
        description=(
            "Parse a source file, validate every statement attribute and "
            "report diagnostics."
        ),
    )
    p_check.add_argument("source_file", metavar="FILE", help="Source file to check.")
    p_check.add_argument(
        "-f", "--format",
        choices=["gcc", "json", "summary"],
        default="gcc",
        help="Output format (default: gcc).",
    )
    _add_output_arg(p_check)
    _add_check_args(p_check)
    p_check.set_defaults(func=cmd_check)

    # --- dump --------------------------------------------------------------
    p_dump = subparsers.add_parser(
        "dump",
        help="Print the checked tree.",
        description="Check a source file and print the tree with validated attributes.",
    )
    p_dump.add_argument("source_file", metavar="FILE", help="Source file to dump.")
    p_dump.add_argument(
        "-f", "--format",
        choices=["sexp", "repr"],
        default="sexp",
        help="Output format (default: sexp).",
    )
    _add_output_arg(p_dump)
    _add_check_args(p_dump)
    p_dump.set_defaults(func=cmd_dump)

    # --- options -----------------------------------------------------------
    p_options = subparsers.add_parser(
        "options",
        help="List loop-hint options.",
    )
    _add_output_arg(p_options)
    p_options.set_defaults(func=cmd_options)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the stmtattr CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
