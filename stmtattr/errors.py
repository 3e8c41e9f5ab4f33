# stmtattr/errors.py
"""
Diagnostic Model and Error Types for Statement Attribute Checking

This module provides the diagnostic infrastructure used by every phase of
statement-attribute processing.  The checker never raises for user errors:
it *reports* them through a ``DiagnosticsEngine`` and carries on.  Python
exceptions are reserved for infrastructure failures (unparseable input) and
for internal defects.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│  DiagID            - catalog entry: name, ATTR-NNNN code, severity, text    │
│  Diagnostic        - one reported problem (+ attached notes and fix-its)    │
│  DiagnosticsEngine - collects diagnostics, applies suppression / -Werror    │
│                                                                             │
│  StmtAttrError (base exception)                                             │
│  ├── SnippetSyntaxError - front-end input could not be parsed               │
│  └── InternalError      - checker bug (should never happen)                 │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each diagnostic has a stable symbolic name (``err_pragma_loop_invalid_value``)
and a numeric code ``ATTR-NNNN`` in ranges:
  - 1000-1999: attribute kind / position
  - 2000-2999: attribute target mismatch
  - 3000-3999: malformed attribute arguments
  - 4000-4999: cross-attribute conflicts
  - 9000-9999: notes

Message templates use ``str.format`` fields.  A field may carry a
``select:`` spec that picks one alternative by the argument's integer
value, e.g. ``{0:select:incompatible|duplicate}``.

Example Usage:
──────────────
    from stmtattr.errors import Diags, DiagnosticsEngine

    diags = DiagnosticsEngine()
    diags.report(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE, loc)
    if diags.has_errors():
        print(diags.format())
"""

from __future__ import annotations

import json
import string
from dataclasses import dataclass, field
from enum import Enum, auto, unique
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from stmtattr.ast import NO_LOC, SourceLoc, SourceRange

# ═══════════════════════════════════════════════════════════════════════════════
# SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════


@unique
class DiagnosticSeverity(Enum):
    """Severity of a diagnostic.

    The checker itself only emits ``WARNING`` (unknown attributes) and
    ``ERROR`` (everything else); ``NOTE`` is used for supplementary
    diagnostics attached to an error.
    """

    NOTE = "note"
    WARNING = "warning"
    ERROR = "error"

    def is_error(self) -> bool:
        return self is DiagnosticSeverity.ERROR


@unique
class DiagCategory(Enum):
    """Error taxonomy for statement attributes."""

    UNRECOGNIZED_KIND = auto()   # unknown attribute name
    WRONG_POSITION = auto()      # declaration attribute on a statement
    TARGET_MISMATCH = auto()     # attribute on the wrong kind of statement
    MALFORMED_ARGUMENT = auto()  # bad keyword / non-constant / non-positive
    CONFLICT = auto()            # duplicate or contradictory loop hints
    NOTE = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════


class _DiagFormatter(string.Formatter):
    """``str.format`` with a ``select:a|b|...`` format spec."""

    def format_field(self, value: Any, format_spec: str) -> str:
        if format_spec.startswith("select:"):
            choices = format_spec[len("select:"):].split("|")
            return choices[int(value)]
        return super().format_field(value, format_spec)


_FORMATTER = _DiagFormatter()


# ═══════════════════════════════════════════════════════════════════════════════
# DIAGNOSTIC IDS
# ═══════════════════════════════════════════════════════════════════════════════


class DiagID:
    """
    A diagnostic catalog entry.

    Carries a symbolic name, a numeric code (rendered ``ATTR-NNNN``), the
    taxonomy category, the default severity and the message template.
    """

    __slots__ = ("name", "number", "category", "default_severity", "template")

    prefix = "ATTR"

    def __init__(
        self,
        name: str,
        number: int,
        category: DiagCategory,
        default_severity: DiagnosticSeverity,
        template: str,
    ) -> None:
        self.name = name
        self.number = number
        self.category = category
        self.default_severity = default_severity
        self.template = template

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def format(self, args: Iterable[Any]) -> str:
        return _FORMATTER.format(self.template, *args)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"DiagID({self.name!r}, {self.code})"

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DiagID):
            return self.name == other.name
        if isinstance(other, str):
            return other in (self.name, self.code)
        return False


class Diags:
    """Predefined diagnostics for statement attribute processing."""

    # ═══════════════════════════════════════════════════════════════════════════
    # ATTRIBUTE KIND / POSITION (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    WARN_UNKNOWN_ATTRIBUTE_IGNORED = DiagID(
        "warn_unknown_attribute_ignored", 1000,
        DiagCategory.UNRECOGNIZED_KIND, DiagnosticSeverity.WARNING,
        "unknown attribute '{0}' ignored",
    )
    WARN_UNHANDLED_MS_ATTRIBUTE_IGNORED = DiagID(
        "warn_unhandled_ms_attribute_ignored", 1001,
        DiagCategory.UNRECOGNIZED_KIND, DiagnosticSeverity.WARNING,
        "__declspec attribute '{0}' is not supported",
    )
    ERR_ATTRIBUTE_INVALID_ON_STMT = DiagID(
        "err_attribute_invalid_on_stmt", 1002,
        DiagCategory.WRONG_POSITION, DiagnosticSeverity.ERROR,
        "'{0}' attribute cannot be applied to a statement",
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # TARGET MISMATCH (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    ERR_FALLTHROUGH_ATTR_WRONG_TARGET = DiagID(
        "err_fallthrough_attr_wrong_target", 2000,
        DiagCategory.TARGET_MISMATCH, DiagnosticSeverity.ERROR,
        "fallthrough attribute is only allowed on empty statements",
    )
    ERR_FALLTHROUGH_ATTR_OUTSIDE_SWITCH = DiagID(
        "err_fallthrough_attr_outside_switch", 2001,
        DiagCategory.TARGET_MISMATCH, DiagnosticSeverity.ERROR,
        "fallthrough annotation is outside switch statement",
    )
    ERR_PRAGMA_LOOP_PRECEDES_NONLOOP = DiagID(
        "err_pragma_loop_precedes_nonloop", 2002,
        DiagCategory.TARGET_MISMATCH, DiagnosticSeverity.ERROR,
        "expected a for, while, or do-while loop to follow the "
        "'#pragma clang loop' directive",
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # MALFORMED ARGUMENTS (3000-3999)
    # ═══════════════════════════════════════════════════════════════════════════

    ERR_PRAGMA_LOOP_INVALID_KEYWORD = DiagID(
        "err_pragma_loop_invalid_keyword", 3000,
        DiagCategory.MALFORMED_ARGUMENT, DiagnosticSeverity.ERROR,
        "invalid argument; expected 'enable' or 'disable'",
    )
    ERR_PRAGMA_LOOP_INVALID_VALUE = DiagID(
        "err_pragma_loop_invalid_value", 3001,
        DiagCategory.MALFORMED_ARGUMENT, DiagnosticSeverity.ERROR,
        "invalid argument; expected a positive integer value",
    )
    ERR_PRAGMA_LOOP_INVALID_OPTION = DiagID(
        "err_pragma_loop_invalid_option", 3002,
        DiagCategory.MALFORMED_ARGUMENT, DiagnosticSeverity.ERROR,
        "invalid loop hint option '{0}'; expected vectorize, vectorize_width, "
        "interleave, interleave_count, unroll, or unroll_count",
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFLICTS (4000-4999)
    # ═══════════════════════════════════════════════════════════════════════════

    ERR_PRAGMA_LOOP_COMPATIBILITY = DiagID(
        "err_pragma_loop_compatibility", 4000,
        DiagCategory.CONFLICT, DiagnosticSeverity.ERROR,
        "{0:select:incompatible|duplicate} directives '{1}({2})' and '{3}({4})'",
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # NOTES (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT = DiagID(
        "note_fallthrough_insert_semi_fixit", 9000,
        DiagCategory.NOTE, DiagnosticSeverity.NOTE,
        "did you forget ';'?",
    )

    @classmethod
    def all(cls) -> List[DiagID]:
        return [v for v in vars(cls).values() if isinstance(v, DiagID)]

    @classmethod
    def by_name(cls, name: str) -> Optional[DiagID]:
        """Look a diagnostic up by symbolic name or ``ATTR-NNNN`` code."""
        for diag_id in cls.all():
            if diag_id == name:
                return diag_id
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# DIAGNOSTICS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FixItHint:
    """Suggested source edit: insert ``insertion`` at ``loc``."""

    loc: SourceLoc
    insertion: str

    def __str__(self) -> str:
        return f'fix-it:"{self.loc.file}":{{{self.loc.line}:{self.loc.col}}}:"{self.insertion}"'


@dataclass
class Diagnostic:
    """
    One reported problem.

    ``args`` are the message arguments in template order.  ``ranges`` are
    highlighted source extents, such as the statement an attribute was
    wrongly written on.  Notes are themselves ``Diagnostic`` objects with
    ``NOTE`` severity.
    """

    diag_id: DiagID
    severity: DiagnosticSeverity
    location: SourceLoc = NO_LOC
    args: Tuple[Any, ...] = ()
    notes: List["Diagnostic"] = field(default_factory=list)
    fixits: List[FixItHint] = field(default_factory=list)
    ranges: List[SourceRange] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.diag_id.name

    @property
    def code(self) -> str:
        return self.diag_id.code

    @property
    def message(self) -> str:
        return self.diag_id.format(self.args)

    def to_gcc_format(self) -> str:
        """Format as GCC-style lines (the diagnostic, its fix-its, its notes)."""
        head = f"{self.location}: {self.severity.value}: {self.message}"
        if self.severity is not DiagnosticSeverity.NOTE:
            head += f" [{self.name}]"
        lines = [head]
        lines.extend(str(fixit) for fixit in self.fixits)
        for note in self.notes:
            lines.append(note.to_gcc_format())
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "id": self.name,
            "code": self.code,
            "severity": self.severity.value,
            "message": self.message,
            "location": {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.col,
            },
        }
        if self.ranges:
            result["ranges"] = [
                {
                    "begin": {"line": r.begin.line, "column": r.begin.col},
                    "end": {"line": r.end.line, "column": r.end.col},
                }
                for r in self.ranges
            ]
        if self.fixits:
            result["fixits"] = [
                {"line": f.loc.line, "column": f.loc.col, "insert": f.insertion}
                for f in self.fixits
            ]
        if self.notes:
            result["notes"] = [note.to_dict() for note in self.notes]
        return result

    def __str__(self) -> str:
        return self.to_gcc_format()


class DiagnosticsEngine:
    """
    Collects diagnostics reported by the attribute checker.

    Supports suppression of warnings by name or code and promotion of
    warnings to errors.  Errors cannot be suppressed.  Notes attach to the
    most recently reported diagnostic and disappear with it when it is
    suppressed.
    """

    def __init__(
        self,
        *,
        suppressed: Iterable[str] = (),
        warnings_as_errors: bool = False,
    ) -> None:
        self._diagnostics: List[Diagnostic] = []
        self._suppressed = frozenset(suppressed)
        self._warnings_as_errors = warnings_as_errors
        self._last: Optional[Diagnostic] = None

    def _is_suppressed(self, diag_id: DiagID) -> bool:
        return diag_id.name in self._suppressed or diag_id.code in self._suppressed

    def report(
        self,
        diag_id: DiagID,
        loc: SourceLoc,
        *args: Any,
        ranges: Iterable[SourceRange] = (),
    ) -> Optional[Diagnostic]:
        """
        Report a diagnostic at *loc*, highlighting *ranges*.

        Returns the recorded ``Diagnostic``, or ``None`` if it was suppressed.
        """
        severity = diag_id.default_severity
        if severity is DiagnosticSeverity.WARNING:
            if self._is_suppressed(diag_id):
                self._last = None
                return None
            if self._warnings_as_errors:
                severity = DiagnosticSeverity.ERROR

        diag = Diagnostic(
            diag_id=diag_id, severity=severity, location=loc, args=args,
            ranges=list(ranges),
        )
        self._diagnostics.append(diag)
        self._last = diag
        return diag

    def note(
        self,
        diag_id: DiagID,
        loc: SourceLoc,
        *args: Any,
        fixits: Iterable[FixItHint] = (),
    ) -> Optional[Diagnostic]:
        """Attach a note to the most recently reported diagnostic."""
        if self._last is None:
            return None
        note = Diagnostic(
            diag_id=diag_id,
            severity=DiagnosticSeverity.NOTE,
            location=loc,
            args=args,
            fixits=list(fixits),
        )
        self._last.notes.append(note)
        return note

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Get all collected top-level diagnostics, in report order."""
        return list(self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.severity.is_error()]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.severity is DiagnosticSeverity.WARNING]

    def has_errors(self) -> bool:
        return any(d.severity.is_error() for d in self._diagnostics)

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings)

    def with_id(self, diag_id: DiagID) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.diag_id == diag_id]

    def clear(self) -> None:
        self._diagnostics.clear()
        self._last = None

    def format(self, *, format: str = "gcc") -> str:
        """
        Format all diagnostics as a string.

        Args:
            format: Output format - "gcc" for GCC-style, "json" for JSON
        """
        return format_diagnostics(self._diagnostics, format=format)


def format_diagnostics(diagnostics: Iterable[Diagnostic], *, format: str = "gcc") -> str:
    diagnostics = list(diagnostics)
    if format == "json":
        return json.dumps([d.to_dict() for d in diagnostics], indent=2)
    return "\n".join(d.to_gcc_format() for d in diagnostics)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════


class StmtAttrError(Exception):
    """Base class for stmtattr exceptions."""


class SnippetSyntaxError(StmtAttrError):
    """Source text handed to the front end could not be parsed."""

    def __init__(self, message: str, loc: SourceLoc = NO_LOC) -> None:
        super().__init__(f"{loc}: {message}")
        self.message = message
        self.loc = loc


class InternalError(StmtAttrError):
    """An internal invariant of the checker is broken (a bug, not user error)."""
