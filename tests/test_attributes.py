# tests/test_attributes.py
"""
Tests for the attribute registry, raw attributes and the loop-hint option table.
"""

import pytest

from stmtattr import ast as A
from stmtattr.attributes import (
    ATTRIBUTE_REGISTRY,
    CATEGORY_OPTIONS,
    DEFAULT_LOOP_HINT_OPTION,
    LOOP_HINT_OPTIONS,
    AttributeKind,
    AttributeSyntax,
    FallThroughAttr,
    HintCategory,
    HintMode,
    IdentifierLoc,
    LoopHintAttr,
    LoopHintOption,
    OptionClass,
    RawAttribute,
    category_options,
    lookup_attribute_kind,
    normalize_attribute_name,
    value_name,
)
from tests.conftest import int_lit, loc


class TestRegistry:

    @pytest.mark.parametrize("name, syntax, scope, kind", [
        ("fallthrough", AttributeSyntax.CXX11, None, AttributeKind.FALLTHROUGH),
        ("fallthrough", AttributeSyntax.CXX11, "clang", AttributeKind.FALLTHROUGH),
        ("loop", AttributeSyntax.PRAGMA, None, AttributeKind.LOOP_HINT),
        ("aligned", AttributeSyntax.GNU, None, AttributeKind.ALIGNED),
        ("__aligned__", AttributeSyntax.GNU, None, AttributeKind.ALIGNED),
        ("unused", AttributeSyntax.CXX11, "gnu", AttributeKind.UNUSED),
        ("align", AttributeSyntax.DECLSPEC, None, AttributeKind.ALIGNED),
    ])
    def test_lookup(self, name, syntax, scope, kind):
        assert lookup_attribute_kind(name, syntax, scope) is kind

    @pytest.mark.parametrize("name, syntax, scope", [
        ("fallthrough", AttributeSyntax.GNU, None),
        ("loop", AttributeSyntax.CXX11, None),
        ("unused", AttributeSyntax.CXX11, None),
        ("likely", AttributeSyntax.CXX11, "clang"),
    ])
    def test_unknown(self, name, syntax, scope):
        assert lookup_attribute_kind(name, syntax, scope) is AttributeKind.UNKNOWN

    def test_statement_kinds(self):
        statement_kinds = {k for k in AttributeKind if k.is_statement_attribute}
        assert statement_kinds == {AttributeKind.FALLTHROUGH, AttributeKind.LOOP_HINT}
        assert AttributeKind.UNKNOWN not in set(ATTRIBUTE_REGISTRY.values())

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            ATTRIBUTE_REGISTRY[(AttributeSyntax.GNU, "hot")] = AttributeKind.UNUSED

    @pytest.mark.parametrize("name, expected", [
        ("__unused__", "unused"),
        ("unused", "unused"),
        ("____", "____"),
        ("__x", "__x"),
    ])
    def test_normalize(self, name, expected):
        assert normalize_attribute_name(name) == expected


class TestRawAttribute:

    def test_create_resolves_kind(self):
        raw = RawAttribute.create("fallthrough", AttributeSyntax.CXX11, scope="clang")
        assert raw.kind is AttributeKind.FALLTHROUGH
        assert raw.qualified_name == "clang::fallthrough"
        assert not raw.is_declspec

    def test_argument_accessors(self):
        ident = IdentifierLoc(loc(1, 20), "unroll")
        raw = RawAttribute.create(
            "loop", AttributeSyntax.PRAGMA, args=(ident, None, int_lit(4))
        )
        assert raw.arg_as_ident(0) is ident
        assert raw.arg_as_ident(1) is None
        assert raw.arg_as_ident(2) is None
        assert raw.arg_as_expr(2).value == 4
        assert raw.arg_as_expr(0) is None
        assert raw.arg_as_expr(7) is None

    def test_loc_is_range_begin(self):
        source_range = A.SourceRange(loc(3, 7), loc(3, 18))
        raw = RawAttribute.create("fallthrough", AttributeSyntax.CXX11, source_range)
        assert raw.loc == loc(3, 7)


class TestOptionTable:

    def test_six_options_plus_default(self):
        assert len(LOOP_HINT_OPTIONS) == 6
        assert DEFAULT_LOOP_HINT_OPTION is LoopHintOption.VECTORIZE

    @pytest.mark.parametrize("category, boolean, numeric", [
        (HintCategory.VECTORIZE, LoopHintOption.VECTORIZE, LoopHintOption.VECTORIZE_WIDTH),
        (HintCategory.INTERLEAVE, LoopHintOption.INTERLEAVE, LoopHintOption.INTERLEAVE_COUNT),
        (HintCategory.UNROLL, LoopHintOption.UNROLL, LoopHintOption.UNROLL_COUNT),
    ])
    def test_category_pairs(self, category, boolean, numeric):
        assert category_options(category) == (boolean, numeric)
        assert CATEGORY_OPTIONS[category] == (boolean, numeric)
        assert boolean.option_class is OptionClass.BOOLEAN
        assert numeric.option_class is OptionClass.NUMERIC

    def test_names(self):
        assert LoopHintOption.INTERLEAVE_COUNT.spelling == "interleave_count"
        assert LOOP_HINT_OPTIONS["interleave_count"] is LoopHintOption.INTERLEAVE_COUNT
        assert "unroll_cnt" not in LOOP_HINT_OPTIONS
        assert value_name(1) == "enable"
        assert value_name(False) == "disable"


class TestValidatedAttributes:

    def test_loop_hint_modes(self):
        assert LoopHintAttr(LoopHintOption.UNROLL, 1).mode is HintMode.ENABLE
        assert LoopHintAttr(LoopHintOption.UNROLL, 0).mode is HintMode.DISABLE
        assert LoopHintAttr(LoopHintOption.UNROLL_COUNT, 4).mode is HintMode.NUMERIC

    def test_pretty(self):
        assert LoopHintAttr(LoopHintOption.VECTORIZE, 0).pretty() == (
            "#pragma clang loop vectorize(disable)"
        )
        assert LoopHintAttr(LoopHintOption.VECTORIZE_WIDTH, 8).pretty() == (
            "#pragma clang loop vectorize_width(8)"
        )
        assert FallThroughAttr().pretty() == "[[fallthrough]]"

    def test_kinds(self):
        assert FallThroughAttr.kind is AttributeKind.FALLTHROUGH
        assert LoopHintAttr(LoopHintOption.UNROLL, 1).category is HintCategory.UNROLL
