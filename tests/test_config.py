# tests/test_config.py
"""
Tests for SemaConfig.
"""

from stmtattr.config import SemaConfig
from stmtattr.errors import Diags, DiagnosticSeverity
from tests.conftest import loc


class TestDefaults:

    def test_defaults(self):
        config = SemaConfig()
        assert config.filename == "<input>"
        assert not config.warnings_as_errors
        assert config.suppressed_diagnostics == frozenset()
        assert not config.strict_loop_hint_options
        assert config.validate() == []


class TestFromMapping:

    def test_known_keys(self):
        config = SemaConfig.from_mapping({
            "filename": "a.cc",
            "warnings_as_errors": True,
            "suppressed_diagnostics": ["ATTR-1000"],
        })
        assert config.filename == "a.cc"
        assert config.warnings_as_errors
        assert config.suppressed_diagnostics == frozenset({"ATTR-1000"})

    def test_unrelated_keys_and_none_are_ignored(self):
        config = SemaConfig.from_mapping({"verbose": 2, "filename": None})
        assert config == SemaConfig()


class TestValidate:

    def test_unknown_name(self):
        config = SemaConfig(suppressed_diagnostics=frozenset({"warn_bogus"}))
        assert config.validate() == ["unknown diagnostic 'warn_bogus' cannot be suppressed"]

    def test_error_cannot_be_suppressed(self):
        config = SemaConfig(suppressed_diagnostics=frozenset({"ATTR-3001"}))
        assert config.validate() == ["error diagnostic 'ATTR-3001' cannot be suppressed"]

    def test_warning_names_and_codes(self):
        config = SemaConfig(suppressed_diagnostics=frozenset({
            "warn_unknown_attribute_ignored", "ATTR-1001",
        }))
        assert config.validate() == []


class TestEngine:

    def test_engine_follows_config(self):
        engine = SemaConfig(
            warnings_as_errors=True,
            suppressed_diagnostics=frozenset({"ATTR-1001"}),
        ).make_diagnostics_engine()
        assert engine.report(Diags.WARN_UNHANDLED_MS_ATTRIBUTE_IGNORED, loc(1), "x") is None
        diag = engine.report(Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED, loc(1), "x")
        assert diag.severity is DiagnosticSeverity.ERROR
