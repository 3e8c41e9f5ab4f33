"""
S-expression dumps of checked translation units.

``to_sexp`` turns a node into nested lists of ``sexpdata.Symbol``, ints and
strings; ``dumps`` renders it with ``sexpdata.dumps``.  Validated
attributes print as ``(loop-hint unroll_count 8)`` and ``(fallthrough)``.
"""

from __future__ import annotations

from typing import Any, List

import sexpdata
from sexpdata import Symbol

from stmtattr import ast as A
from stmtattr.attributes import (
    FallThroughAttr,
    HintMode,
    IdentifierLoc,
    LoopHintAttr,
    RawAttribute,
)

NIL = Symbol("nil")

_UNARY_SYMBOLS = {
    A.UnaryOpKind.PLUS: "+",
    A.UnaryOpKind.MINUS: "-",
    A.UnaryOpKind.NOT: "!",
    A.UnaryOpKind.BITNOT: "~",
    A.UnaryOpKind.PRE_INC: "pre++",
    A.UnaryOpKind.PRE_DEC: "pre--",
    A.UnaryOpKind.POST_INC: "post++",
    A.UnaryOpKind.POST_DEC: "post--",
}


def _form(head: str, *items: Any) -> List[Any]:
    return [Symbol(head), *items]


def _opt(node: Any) -> Any:
    return NIL if node is None else to_sexp(node)


def to_sexp(node: Any) -> Any:
    """Convert a tree node, expression or attribute to an S-expression."""
    # --- Containers ---
    if isinstance(node, A.TranslationUnit):
        return _form(
            "translation-unit",
            *(to_sexp(decl) for decl in node.globals),
            *(to_sexp(fn) for fn in node.functions),
        )
    if isinstance(node, A.FunctionDecl):
        form = _form("function", Symbol(node.name))
        if node.template_params:
            form.append(_form("template", *map(Symbol, node.template_params)))
        form.append(_form("params", *map(Symbol, node.params)))
        form.append(to_sexp(node.body))
        return form

    # --- Attributes ---
    if isinstance(node, FallThroughAttr):
        return _form("fallthrough")
    if isinstance(node, LoopHintAttr):
        value = node.value if node.mode is HintMode.NUMERIC else Symbol(node.value_text())
        return _form("loop-hint", Symbol(node.option.spelling), value)
    if isinstance(node, RawAttribute):
        return _form("attr", Symbol(node.qualified_name), *map(_opt, node.args))
    if isinstance(node, IdentifierLoc):
        return NIL if node.ident is None else Symbol(node.ident)

    # --- Statements ---
    if isinstance(node, A.NullStmt):
        return _form("null")
    if isinstance(node, A.CompoundStmt):
        return _form("compound", *(to_sexp(s) for s in node.body))
    if isinstance(node, A.ExprStmt):
        return _form("expr", to_sexp(node.expr))
    if isinstance(node, A.DeclStmt):
        return _form("decl", node.type_name, Symbol(node.name), _opt(node.init))
    if isinstance(node, A.ReturnStmt):
        return _form("return", _opt(node.value))
    if isinstance(node, A.BreakStmt):
        return _form("break")
    if isinstance(node, A.ContinueStmt):
        return _form("continue")
    if isinstance(node, A.IfStmt):
        return _form("if", to_sexp(node.cond), to_sexp(node.then_stmt), _opt(node.else_stmt))
    if isinstance(node, A.SwitchStmt):
        return _form("switch", to_sexp(node.cond), to_sexp(node.body))
    if isinstance(node, A.CaseStmt):
        return _form("case", to_sexp(node.value), to_sexp(node.sub_stmt))
    if isinstance(node, A.DefaultStmt):
        return _form("default", to_sexp(node.sub_stmt))
    if isinstance(node, A.ForStmt):
        return _form(
            "for", _opt(node.init), _opt(node.cond), _opt(node.inc), to_sexp(node.body)
        )
    if isinstance(node, A.RangeForStmt):
        return _form(
            "range-for", node.type_name, Symbol(node.var_name),
            to_sexp(node.range_expr), to_sexp(node.body),
        )
    if isinstance(node, A.WhileStmt):
        return _form("while", to_sexp(node.cond), to_sexp(node.body))
    if isinstance(node, A.DoStmt):
        return _form("do", to_sexp(node.body), to_sexp(node.cond))
    if isinstance(node, A.AttributedStmt):
        return _form(
            "attributed", [to_sexp(a) for a in node.attrs], to_sexp(node.sub_stmt)
        )
    if isinstance(node, A.ParsedAttributedStmt):
        return _form(
            "parsed-attributed", [to_sexp(a) for a in node.attrs], to_sexp(node.sub_stmt)
        )

    # --- Expressions ---
    if isinstance(node, A.IntegerLiteral):
        return node.value
    if isinstance(node, A.StringLiteral):
        return node.value
    if isinstance(node, A.DeclRefExpr):
        return Symbol(node.name)
    if isinstance(node, A.ParenExpr):
        return to_sexp(node.inner)
    if isinstance(node, A.UnaryOperator):
        return _form(_UNARY_SYMBOLS[node.op], to_sexp(node.operand))
    if isinstance(node, A.BinaryOperator):
        return _form(node.op.symbol, to_sexp(node.lhs), to_sexp(node.rhs))
    if isinstance(node, A.ConditionalOperator):
        return _form(
            "?:", to_sexp(node.cond), to_sexp(node.then_expr), to_sexp(node.else_expr)
        )
    if isinstance(node, A.CallExpr):
        return _form("call", to_sexp(node.callee), *(to_sexp(a) for a in node.args))
    if isinstance(node, A.AssignExpr):
        return _form(node.op, to_sexp(node.target), to_sexp(node.value))

    raise TypeError(f"cannot convert {type(node).__name__} to an S-expression")


def dumps(node: Any) -> str:
    """Render *node* as S-expression text."""
    return sexpdata.dumps(to_sexp(node))
