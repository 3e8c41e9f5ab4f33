# tests/conftest.py
"""
Shared fixtures, builders and source snippets for the stmtattr tests.
"""

import textwrap
from typing import Optional

import pytest

from stmtattr import ast as A
from stmtattr.attributes import AttributeSyntax, IdentifierLoc, RawAttribute
from stmtattr.config import SemaConfig
from stmtattr.errors import DiagnosticsEngine
from stmtattr.sema import Sema

TEST_FILE = "<test>"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def loc(line: int, col: int = 1) -> A.SourceLoc:
    return A.SourceLoc(TEST_FILE, line, col)


def srange(line: int, begin: int, end: int) -> A.SourceRange:
    """A single-line range ``[begin, end)``."""
    return A.SourceRange(loc(line, begin), loc(line, end))


def int_lit(value: int, line: int = 1, col: int = 1) -> A.IntegerLiteral:
    return A.IntegerLiteral(value=value, text=str(value), loc=loc(line, col))


def loop_hint(
    option: str,
    value: Optional[str] = None,
    expr: Optional[A.Expr] = None,
    line: int = 1,
) -> RawAttribute:
    """Build a raw ``#pragma clang loop option(value)`` attribute on *line*.

    Columns follow ``#pragma clang loop `` at column 1: the option starts
    at column 20 and the value right after its opening parenthesis.
    """
    option_col = 20
    value_col = option_col + len(option) + 1
    value_len = len(value) if value is not None else len(getattr(expr, "text", "") or "x")
    end_col = value_col + value_len + 1
    if value is not None and expr is None:
        expr = A.DeclRefExpr(value, loc=loc(line, value_col))
    args = (
        IdentifierLoc(loc(line, option_col), option),
        IdentifierLoc(loc(line, value_col), value),
        expr,
    )
    return RawAttribute.create(
        name="loop",
        syntax=AttributeSyntax.PRAGMA,
        source_range=srange(line, option_col, end_col),
        args=args,
    )


def numeric_hint(option: str, count: int, line: int = 1) -> RawAttribute:
    return loop_hint(option, expr=int_lit(count, line, 21 + len(option)), line=line)


def cxx11_attr(name: str, scope: Optional[str] = None, line: int = 1, col: int = 3) -> RawAttribute:
    width = len(name) + (len(scope) + 2 if scope else 0)
    return RawAttribute.create(
        name=name,
        syntax=AttributeSyntax.CXX11,
        source_range=srange(line, col, col + width),
        scope=scope,
    )


def attr_spec_range(line: int = 1) -> A.SourceRange:
    """Range of a ``[[fallthrough]]`` specifier at column 1."""
    return srange(line, 1, 16)


def dedent(source: str) -> str:
    return textwrap.dedent(source)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

def for_loop(line: int = 2) -> A.ForStmt:
    return A.ForStmt(
        init=None, cond=None, inc=None,
        body=A.CompoundStmt(loc=loc(line, 10)),
        loc=loc(line, 1),
    )


def while_loop(line: int = 2) -> A.WhileStmt:
    return A.WhileStmt(
        cond=A.DeclRefExpr("n"), body=A.NullStmt(loc=loc(line, 10)), loc=loc(line, 1)
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def diags():
    return DiagnosticsEngine()


@pytest.fixture
def sema(diags):
    """A ``Sema`` already inside a function body."""
    s = Sema(diags=diags)
    s.push_function_scope("test_fn")
    yield s
    s.pop_function_scope()


@pytest.fixture
def strict_sema():
    s = Sema(config=SemaConfig(strict_loop_hint_options=True))
    with s.function_scope("test_fn"):
        yield s


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------

VALID_LOOP_SRC = dedent("""\
    void f(int n) {
        #pragma clang loop vectorize(enable) vectorize_width(4)
        for (int i = 0; i < n; i++) {
        }
    }
""")

FALLTHROUGH_SRC = dedent("""\
    int g(int x) {
        switch (x) {
        case 1:
            x++;
            [[fallthrough]];
        case 2:
            return x;
        default:
            break;
        }
        return 0;
    }
""")

MISSING_SEMI_SRC = dedent("""\
    void h(int x) {
        switch (x) {
        case 1:
            x = 2;
            [[fallthrough]]
        case 2:
            break;
        }
    }
""")

OUTSIDE_SWITCH_SRC = dedent("""\
    void k() {
        [[fallthrough]];
    }
""")

NONLOOP_SRC = dedent("""\
    void m(int n) {
        #pragma clang loop unroll(enable)
        n = n + 1;
    }
""")

CONST_SRC = dedent("""\
    const int W = 4;
    void p(int n) {
        const int U = W * 2;
        #pragma clang loop vectorize_width(W) unroll_count(U)
        while (n > 0) { n--; }
    }
""")

TEMPLATE_SRC = dedent("""\
    template <int N>
    void t(int n) {
        #pragma clang loop unroll_count(N)
        for (;;) { break; }
    }
""")

RUNTIME_VALUE_SRC = dedent("""\
    void q(int n) {
        int k = 4;
        #pragma clang loop unroll_count(k)
        do { n--; } while (n);
    }
""")

CONFLICT_SRC = dedent("""\
    void c(int n) {
        #pragma clang loop vectorize(disable)
        #pragma clang loop vectorize_width(4)
        for (int i = 0; i < n; ++i) { }
    }
""")

UNKNOWN_ATTRS_SRC = dedent("""\
    void u(int n) {
        [[clang::likely_not]] n++;
        __attribute__((aligned(8))) n++;
        __declspec(dllexport) n++;
        [[gnu::unused]] ;
    }
""")
