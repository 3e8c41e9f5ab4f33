# tests/test_errors.py
"""
Tests for the diagnostic catalog, the diagnostics engine and formatting.
"""

import json

import pytest

from stmtattr.errors import (
    DiagCategory,
    Diagnostic,
    DiagnosticsEngine,
    DiagnosticSeverity,
    Diags,
    FixItHint,
    InternalError,
    SnippetSyntaxError,
    StmtAttrError,
    format_diagnostics,
)
from tests.conftest import loc


class TestCatalog:

    def test_codes_are_unique(self):
        codes = [d.code for d in Diags.all()]
        assert len(codes) == len(set(codes))
        assert all(code.startswith("ATTR-") and len(code) == 9 for code in codes)

    def test_names_are_unique(self):
        names = [d.name for d in Diags.all()]
        assert len(names) == len(set(names))

    def test_by_name_and_code(self):
        assert Diags.by_name("err_pragma_loop_invalid_value") is Diags.ERR_PRAGMA_LOOP_INVALID_VALUE
        assert Diags.by_name("ATTR-3001") is Diags.ERR_PRAGMA_LOOP_INVALID_VALUE
        assert Diags.by_name("nope") is None

    def test_severities(self):
        assert Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED.default_severity is DiagnosticSeverity.WARNING
        assert Diags.NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT.category is DiagCategory.NOTE
        errors = [d for d in Diags.all() if d.name.startswith("err_")]
        assert all(d.default_severity.is_error() for d in errors)

    @pytest.mark.parametrize("selector, word", [(0, "incompatible"), (1, "duplicate")])
    def test_select_format(self, selector, word):
        text = Diags.ERR_PRAGMA_LOOP_COMPATIBILITY.format(
            (selector, "unroll", "disable", "unroll_count", 4)
        )
        assert text == f"{word} directives 'unroll(disable)' and 'unroll_count(4)'"

    def test_equality_with_strings(self):
        assert Diags.ERR_ATTRIBUTE_INVALID_ON_STMT == "err_attribute_invalid_on_stmt"
        assert Diags.ERR_ATTRIBUTE_INVALID_ON_STMT == "ATTR-1002"
        assert Diags.ERR_ATTRIBUTE_INVALID_ON_STMT != Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED


class TestEngine:

    def test_report_order_and_counts(self, diags):
        diags.report(Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED, loc(1), "foo")
        diags.report(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE, loc(2))
        assert [d.name for d in diags] == [
            "warn_unknown_attribute_ignored",
            "err_pragma_loop_invalid_value",
        ]
        assert diags.has_errors()
        assert diags.error_count() == 1
        assert diags.warning_count() == 1
        assert len(diags.with_id(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE)) == 1

    def test_clear(self, diags):
        diags.report(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE, loc(2))
        diags.clear()
        assert len(diags) == 0
        assert diags.note(Diags.NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT, loc(1)) is None

    def test_note_attaches_to_last(self, diags):
        diags.report(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE, loc(1))
        error = diags.report(Diags.ERR_FALLTHROUGH_ATTR_WRONG_TARGET, loc(2))
        note = diags.note(Diags.NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT, loc(2, 9))
        assert error.notes == [note]
        # Notes are not top-level diagnostics.
        assert len(diags) == 2

    def test_suppress_warning_by_name_or_code(self):
        by_name = DiagnosticsEngine(suppressed={"warn_unknown_attribute_ignored"})
        by_code = DiagnosticsEngine(suppressed={"ATTR-1000"})
        for engine in (by_name, by_code):
            assert engine.report(Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED, loc(1), "x") is None
            assert len(engine) == 0

    def test_errors_cannot_be_suppressed(self):
        engine = DiagnosticsEngine(suppressed={"err_pragma_loop_invalid_value"})
        engine.report(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE, loc(1))
        assert engine.error_count() == 1

    def test_note_after_suppressed_is_dropped(self):
        engine = DiagnosticsEngine(suppressed={"ATTR-1000"})
        engine.report(Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED, loc(1), "x")
        assert engine.note(Diags.NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT, loc(1)) is None

    def test_warnings_as_errors(self):
        engine = DiagnosticsEngine(warnings_as_errors=True)
        diag = engine.report(Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED, loc(1), "x")
        assert diag.severity is DiagnosticSeverity.ERROR
        assert engine.warning_count() == 0
        assert engine.has_errors()


class TestFormatting:

    def make_error_with_note(self) -> Diagnostic:
        engine = DiagnosticsEngine()
        diag = engine.report(Diags.ERR_FALLTHROUGH_ATTR_WRONG_TARGET, loc(5, 11))
        fixit = FixItHint(loc(5, 24), ";")
        engine.note(Diags.NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT, loc(5, 24), fixits=[fixit])
        return diag

    def test_gcc_format(self):
        assert self.make_error_with_note().to_gcc_format().splitlines() == [
            "<test>:5:11: error: fallthrough attribute is only allowed on empty "
            "statements [err_fallthrough_attr_wrong_target]",
            "<test>:5:24: note: did you forget ';'?",
            'fix-it:"<test>":{5:24}:";"',
        ]

    def test_gcc_format_with_argument(self, diags):
        diags.report(Diags.ERR_ATTRIBUTE_INVALID_ON_STMT, loc(3, 20), "aligned")
        assert diags.format() == (
            "<test>:3:20: error: 'aligned' attribute cannot be applied to a "
            "statement [err_attribute_invalid_on_stmt]"
        )

    def test_to_dict(self):
        data = self.make_error_with_note().to_dict()
        assert data["id"] == "err_fallthrough_attr_wrong_target"
        assert data["code"] == "ATTR-2000"
        assert data["severity"] == "error"
        assert data["location"] == {"file": "<test>", "line": 5, "column": 11}
        [note] = data["notes"]
        assert note["fixits"] == [{"line": 5, "column": 24, "insert": ";"}]

    def test_json_format(self):
        text = format_diagnostics([self.make_error_with_note()], format="json")
        [entry] = json.loads(text)
        assert entry["message"] == "fallthrough attribute is only allowed on empty statements"

    def test_empty(self, diags):
        assert diags.format() == ""
        assert json.loads(diags.format(format="json")) == []


class TestExceptions:

    def test_hierarchy(self):
        assert issubclass(SnippetSyntaxError, StmtAttrError)
        assert issubclass(InternalError, StmtAttrError)

    def test_syntax_error_message(self):
        err = SnippetSyntaxError("syntax error near ')'", loc(4, 2))
        assert str(err) == "<test>:4:2: syntax error near ')'"
        assert err.loc == loc(4, 2)
