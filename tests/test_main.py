# tests/test_main.py
"""
Tests for the command-line interface.
"""

import json

import pytest

from stmtattr import __version__
from stmtattr.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, main
from tests.conftest import (
    CONFLICT_SRC,
    FALLTHROUGH_SRC,
    MISSING_SEMI_SRC,
    UNKNOWN_ATTRS_SRC,
    VALID_LOOP_SRC,
)


@pytest.fixture
def write_source(tmp_path):
    def write(text, name="snippet.cc"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path.resolve())
    return write


class TestCheck:

    def test_clean_file(self, write_source, capsys):
        assert main(["check", write_source(FALLTHROUGH_SRC)]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_errors_exit_one(self, write_source, capsys):
        path = write_source(MISSING_SEMI_SRC)
        assert main(["check", path]) == EXIT_ERROR
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith(f"{path}:5:11: error: fallthrough attribute")
        assert lines[1] == f"{path}:5:24: note: did you forget ';'?"
        assert lines[2] == f'fix-it:"{path}":{{5:24}}:";"'

    def test_json(self, write_source, capsys):
        assert main(["check", write_source(CONFLICT_SRC), "-f", "json"]) == EXIT_ERROR
        [entry] = json.loads(capsys.readouterr().out)
        assert entry["id"] == "err_pragma_loop_compatibility"
        assert entry["location"]["line"] == 3

    def test_json_clean_file_is_empty_array(self, write_source, capsys):
        assert main(["check", write_source(FALLTHROUGH_SRC), "-f", "json"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == []

    def test_summary(self, write_source, capsys):
        main(["check", write_source(UNKNOWN_ATTRS_SRC), "--format", "summary"])
        out = capsys.readouterr().out
        assert out.rstrip().endswith("--- 4 diagnostic(s), 2 error(s) ---")

    def test_warnings_only_exit_zero(self, write_source):
        source = "void f() {\n    [[clang::hot_path]] ;\n}\n"
        assert main(["check", write_source(source)]) == EXIT_OK

    def test_werror(self, write_source):
        source = "void f() {\n    [[clang::hot_path]] ;\n}\n"
        assert main(["check", write_source(source), "--Werror"]) == EXIT_ERROR

    def test_suppress(self, write_source, capsys):
        path = write_source(UNKNOWN_ATTRS_SRC)
        main(["check", path, "--suppress", "ATTR-1000", "warn_unhandled_ms_attribute_ignored"])
        out = capsys.readouterr().out
        assert "warning" not in out
        assert out.count("error:") == 2

    def test_strict_loop_hints(self, write_source, capsys):
        source = "void f() {\n    #pragma clang loop vectorise(enable)\n    for (;;) ;\n}\n"
        path = write_source(source)
        assert main(["check", path]) == EXIT_OK
        assert main(["check", path, "--strict-loop-hints"]) == EXIT_ERROR
        assert "err_pragma_loop_invalid_option" in capsys.readouterr().out

    def test_output_file(self, write_source, tmp_path):
        report = tmp_path / "out" / "report.txt"
        main(["check", write_source(CONFLICT_SRC), "-o", str(report)])
        assert "incompatible directives" in report.read_text(encoding="utf-8")


class TestInfrastructureFailures:

    def test_missing_file(self, tmp_path):
        assert main(["check", str(tmp_path / "missing.cc")]) == EXIT_INFRA

    def test_syntax_error(self, write_source):
        assert main(["check", write_source("void f() { for (;; }\n")]) == EXIT_INFRA

    def test_no_command(self, capsys):
        assert main([]) == EXIT_INFRA
        assert "usage:" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestDump:

    def test_sexp(self, write_source, capsys):
        assert main(["dump", write_source(VALID_LOOP_SRC)]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("(translation-unit (function f")
        assert "(attributed ((loop-hint vectorize enable) (loop-hint vectorize_width 4))" in out

    def test_diagnostics_go_to_stderr(self, write_source, capsys):
        assert main(["dump", write_source(CONFLICT_SRC)]) == EXIT_ERROR
        captured = capsys.readouterr()
        assert "err_pragma_loop_compatibility" in captured.err
        assert "err_pragma_loop_compatibility" not in captured.out

    def test_repr(self, write_source, capsys):
        main(["dump", write_source(VALID_LOOP_SRC), "-f", "repr"])
        assert capsys.readouterr().out.startswith("TranslationUnit(")


class TestOptions:

    def test_lists_every_option(self, capsys):
        assert main(["options"]) == EXIT_OK
        out = capsys.readouterr().out
        for name in ("vectorize", "vectorize_width", "interleave",
                     "interleave_count", "unroll", "unroll_count"):
            assert name in out
        assert "6 option(s) available." in out
