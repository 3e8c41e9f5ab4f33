"""stmtattr — statement attribute validation.

Checks the attributes written in front of statements in a C/C++-style
front end: the ``[[fallthrough]]`` marker and ``#pragma clang loop``
hints.  Each attribute is validated against the statement it annotates,
its arguments are parsed into a typed value, and the loop hints on one
statement are checked against each other.

Submodules
----------
ast
    Source positions, statement and expression nodes, integer constant
    evaluation.

attributes
    Attribute kind registry, raw attributes, the loop-hint option table and
    the validated ``FallThroughAttr`` / ``LoopHintAttr`` values.

loop_hint
    Loop-hint argument parsing and the per-statement compatibility check.

sema
    Per-kind handlers and ``Sema.process_stmt_attributes``.

errors
    Diagnostic catalog (``ATTR-NNNN``), ``DiagnosticsEngine`` and
    exceptions.

parser / frontend
    A parsimonious snippet front end and the tree walk that feeds ``Sema``.

main
    CLI entry-point with subcommands: ``check``, ``dump``, ``options``.

Usage
-----
Command-line::

    python -m stmtattr check loops.cpp
    python -m stmtattr --help

Programmatic::

    from stmtattr.frontend import check_source

    result = check_source(source_text)
    print(result.format_diagnostics())
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "ast",
    "attributes",
    "config",
    "errors",
    "frontend",
    "loop_hint",
    "parser",
    "sema",
    "sexp",
    "visitor",
]
