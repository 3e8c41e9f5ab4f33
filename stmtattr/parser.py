"""
parser.py — Snippet front end for statement attribute checking
==============================================================

A small C/C++ subset, enough to put attributes in front of statements and
see what the checker makes of them::

    from stmtattr.parser import parse_source

    unit = parse_source('''
        void f(int n) {
            #pragma clang loop unroll_count(4)
            for (int i = 0; i < n; i++) { }
        }
    ''')

Supported: function definitions (optionally ``template <int N>``),
file-scope and block-scope variable declarations, compound, ``if``,
``switch``/``case``/``default``, ``for``, range ``for``, ``while``,
``do``/``while``, ``break``, ``continue``, ``return``, expression and null
statements, C operator precedence, and the attribute specifiers
``[[...]]``, ``__attribute__((...))``, ``__declspec(...)`` and
``#pragma clang loop opt(value) ...``.

Attributed statements come out as ``ParsedAttributedStmt`` nodes carrying
their ``RawAttribute`` list; names are not resolved here.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import bisect
import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from stmtattr import ast as A
from stmtattr.attributes import AttributeSyntax, IdentifierLoc, RawAttribute
from stmtattr.errors import SnippetSyntaxError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — SNIPPET GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

SNIPPET_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Top-Level Structure
    # ─────────────────────────────────────────────────────────────

    translation_unit = _ (top_level _)*
    top_level        = function_def / decl_stmt

    function_def     = template_header? type_name _ identifier _ "(" _ params? _ ")" _ compound_stmt
    template_header  = ~r"template\b" _ "<" _ template_param (_ "," _ template_param)* _ ">" _
    template_param   = ~r"(?:typename|class|int|unsigned|long|short|bool|char)\b" _ identifier
    params           = param (_ "," _ param)*
    param            = type_name (_ identifier)?

    type_name        = ~r"(?:const\s+)?(?:(?:unsigned|signed)\s+)?(?:int|long|short|char|auto|bool|float|double|unsigned|void)\b(?:\s*[*&])*"

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    statement        = attributed_stmt / labeled_stmt / compound_stmt / selection_stmt
                     / iteration_stmt / jump_stmt / decl_stmt / null_stmt / expr_stmt

    attributed_stmt  = attr_spec_seq _ statement
    attr_spec_seq    = attr_spec (_ attr_spec)*

    labeled_stmt     = case_stmt / default_stmt
    case_stmt        = ~r"case\b" _ expr _ ":" _ statement
    default_stmt     = ~r"default\b" _ ":" _ statement

    compound_stmt    = "{" _ (statement _)* "}"

    selection_stmt   = if_stmt / switch_stmt
    if_stmt          = ~r"if\b" _ "(" _ expr _ ")" _ statement else_clause?
    else_clause      = _ ~r"else\b" _ statement
    switch_stmt      = ~r"switch\b" _ "(" _ expr _ ")" _ statement

    iteration_stmt   = while_stmt / do_stmt / range_for_stmt / for_stmt
    while_stmt       = ~r"while\b" _ "(" _ expr _ ")" _ statement
    do_stmt          = ~r"do\b" _ statement _ ~r"while\b" _ "(" _ expr _ ")" _ ";"
    range_for_stmt   = ~r"for\b" _ "(" _ type_name _ identifier _ ":" _ expr _ ")" _ statement
    for_stmt         = ~r"for\b" _ "(" _ for_init _ expr? _ ";" _ expr? _ ")" _ statement
    for_init         = decl_stmt / expr_stmt / null_stmt

    jump_stmt        = break_stmt / continue_stmt / return_stmt
    break_stmt       = ~r"break\b" _ ";"
    continue_stmt    = ~r"continue\b" _ ";"
    return_stmt      = ~r"return\b" _ expr? _ ";"

    decl_stmt        = type_name _ identifier _ decl_init? ";"
    decl_init        = ~r"=(?!=)" _ expr _
    null_stmt        = ";"
    expr_stmt        = expr _ ";"

    # ─────────────────────────────────────────────────────────────
    # Attribute Specifiers
    # ─────────────────────────────────────────────────────────────

    attr_spec        = cxx11_attr_spec / gnu_attr_spec / declspec_attr_spec / pragma_loop

    cxx11_attr_spec  = "[[" _ attr_list? _ "]]"
    gnu_attr_spec    = ~r"__attribute__\b" _ "(" _ "(" _ attr_list? _ ")" _ ")"
    declspec_attr_spec = ~r"__declspec\b" _ "(" _ declspec_list? _ ")"

    attr_list        = attribute (_ "," _ attribute)*
    attribute        = scoped_name (_ attr_args)?
    scoped_name      = identifier (_ "::" _ identifier)?
    attr_args        = "(" _ arg_list? _ ")"
    arg_list         = expr (_ "," _ expr)*
    declspec_list    = declspec_attr (_ declspec_attr)*
    declspec_attr    = identifier (_ attr_args)?

    # One directive per line; every option(value) pair becomes one attribute.
    pragma_loop      = ~r"#[ \t]*pragma[ \t]+clang[ \t]+loop\b" loop_hint+ hs eol
    loop_hint        = hs identifier hs "(" _ expr? _ ")"

    # ─────────────────────────────────────────────────────────────
    # Expressions (C precedence, lowest first)
    # ─────────────────────────────────────────────────────────────

    expr             = assign_expr / conditional
    assign_expr      = unary _ assign_op _ expr
    assign_op        = ~r"(?:<<|>>|[-+*/%&^|])?=(?!=)"
    conditional      = logical_or (_ "?" _ expr _ ":" _ conditional)?
    logical_or       = logical_and (_ "||" _ logical_and)*
    logical_and      = bit_or (_ "&&" _ bit_or)*
    bit_or           = bit_xor (_ ~r"\|(?![|=])" _ bit_xor)*
    bit_xor          = bit_and (_ ~r"\^(?!=)" _ bit_and)*
    bit_and          = equality (_ ~r"&(?![&=])" _ equality)*
    equality         = relational (_ ~r"[=!]=" _ relational)*
    relational       = shift (_ ~r"<=|>=|<(?![<=])|>(?![>=])" _ shift)*
    shift            = additive (_ ~r"(?:<<|>>)(?!=)" _ additive)*
    additive         = multiplicative (_ ~r"[-+](?![-+=])" _ multiplicative)*
    multiplicative   = unary (_ ~r"[*/%](?!=)" _ unary)*

    unary            = prefix_expr / postfix_expr
    prefix_expr      = ~r"\+\+|--|[-+!~](?![=])" _ unary
    postfix_expr     = primary (_ postfix_op)*
    postfix_op       = call_suffix / ~r"\+\+|--"
    call_suffix      = "(" _ arg_list? _ ")"

    primary          = integer_literal / string_literal / bool_literal / paren_expr / identifier
    paren_expr       = "(" _ expr _ ")"

    # ─────────────────────────────────────────────────────────────
    # Lexical Elements
    # ─────────────────────────────────────────────────────────────

    integer_literal  = ~r"(?:0[xX][0-9a-fA-F]+|0[bB][01]+|[1-9][0-9]*|0[0-7]*)(?:[uU](?:ll|LL|l|L)?|(?:ll|LL|l|L)[uU]?)?\b"
    string_literal   = ~r'"(?:[^"\\\n]|\\.)*"'
    bool_literal     = ~r"(?:true|false)\b"
    identifier       = ~r"(?!(?:if|else|switch|case|default|for|while|do|break|continue|return|const|static|int|long|short|char|unsigned|signed|auto|bool|float|double|void|template|typename|class|true|false|__attribute__|__declspec)\b)[A-Za-z_][A-Za-z0-9_]*"

    # Whitespace, comments and preprocessor lines other than '#pragma clang loop'.
    _                = ~r"(?:\s+|//[^\n]*|/\*.*?\*/|#(?![ \t]*pragma[ \t]+clang[ \t]+loop\b)[^\n]*)*"s
    hs               = ~r"[ \t]*"
    eol              = ~r"(?://[^\n]*)?(?:\n|\Z)"
''')


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE → AST
# ═══════════════════════════════════════════════════════════════════

def _opt(visited: Any) -> Any:
    """Result of an optional (``x?``) term, or ``None`` when it did not match."""
    return visited[0] if isinstance(visited, list) else None


def _many(visited: Any) -> List[Any]:
    """Results of a repeated (``x*``) term; empty when it matched nothing."""
    return visited if isinstance(visited, list) else []


_AttrSpec = Tuple[List[RawAttribute], A.SourceRange]


class SnippetASTBuilder(NodeVisitor):
    """Transforms the Parsimonious parse tree into statement nodes."""

    unwrapped_exceptions = (SnippetSyntaxError,)

    def __init__(self, text: str, filename: str = "<input>") -> None:
        self.filename = filename
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def loc(self, offset: int) -> A.SourceLoc:
        """Convert a character offset into a 1-based line/column location."""
        line = bisect.bisect_right(self._line_starts, offset)
        col = offset - self._line_starts[line - 1] + 1
        return A.SourceLoc(self.filename, line, col)

    def range(self, start: int, end: int) -> A.SourceRange:
        return A.SourceRange(self.loc(start), self.loc(end))

    def generic_visit(self, node, visited_children):
        return visited_children or node

    # ─────────────────────────────────────────────────────────────
    # Top level
    # ─────────────────────────────────────────────────────────────

    def visit_translation_unit(self, node, visited_children):
        _, items = visited_children
        functions: List[A.FunctionDecl] = []
        globals_: List[A.DeclStmt] = []
        for top_level, _ in _many(items):
            if isinstance(top_level, A.FunctionDecl):
                functions.append(top_level)
            else:
                globals_.append(top_level)
        return A.TranslationUnit(
            functions=tuple(functions), globals=tuple(globals_), file=self.filename
        )

    def visit_top_level(self, node, visited_children):
        return visited_children[0]

    def visit_function_def(self, node, visited_children):
        template, return_type, _, name, _, _, _, params, _, _, _, body = visited_children
        return A.FunctionDecl(
            name=name,
            body=body,
            params=tuple(_opt(params) or ()),
            template_params=tuple(_opt(template) or ()),
            return_type=return_type,
            loc=self.loc(node.start),
        )

    def visit_template_header(self, node, visited_children):
        _, _, _, _, first, rest, _, _, _ = visited_children
        return [first] + [item[-1] for item in _many(rest)]

    def visit_template_param(self, node, visited_children):
        return visited_children[-1]

    def visit_params(self, node, visited_children):
        first, rest = visited_children
        names = [first] + [item[-1] for item in _many(rest)]
        return [name for name in names if name is not None]

    def visit_param(self, node, visited_children):
        _, name = visited_children
        named = _opt(name)
        return named[-1] if named else None

    def visit_type_name(self, node, visited_children):
        return " ".join(node.text.split())

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    def visit_statement(self, node, visited_children):
        return visited_children[0]

    def visit_attributed_stmt(self, node, visited_children):
        specs, _, stmt = visited_children
        attrs = [attr for spec_attrs, _ in specs for attr in spec_attrs]
        source_range = A.SourceRange(specs[0][1].begin, specs[-1][1].end)
        return A.ParsedAttributedStmt(
            attrs=tuple(attrs),
            sub_stmt=stmt,
            source_range=source_range,
            loc=source_range.begin,
        )

    def visit_attr_spec_seq(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[-1] for item in _many(rest)]

    def visit_labeled_stmt(self, node, visited_children):
        return visited_children[0]

    def visit_case_stmt(self, node, visited_children):
        _, _, value, _, _, _, stmt = visited_children
        return A.CaseStmt(value=value, sub_stmt=stmt, loc=self.loc(node.start))

    def visit_default_stmt(self, node, visited_children):
        stmt = visited_children[-1]
        return A.DefaultStmt(sub_stmt=stmt, loc=self.loc(node.start))

    def visit_compound_stmt(self, node, visited_children):
        _, _, items, _ = visited_children
        body = tuple(stmt for stmt, _ in _many(items))
        return A.CompoundStmt(body=body, loc=self.loc(node.start))

    def visit_selection_stmt(self, node, visited_children):
        return visited_children[0]

    def visit_if_stmt(self, node, visited_children):
        _, _, _, _, cond, _, _, _, then_stmt, else_clause = visited_children
        return A.IfStmt(
            cond=cond,
            then_stmt=then_stmt,
            else_stmt=_opt(else_clause),
            loc=self.loc(node.start),
        )

    def visit_else_clause(self, node, visited_children):
        return visited_children[-1]

    def visit_switch_stmt(self, node, visited_children):
        _, _, _, _, cond, _, _, _, body = visited_children
        return A.SwitchStmt(cond=cond, body=body, loc=self.loc(node.start))

    def visit_iteration_stmt(self, node, visited_children):
        return visited_children[0]

    def visit_while_stmt(self, node, visited_children):
        _, _, _, _, cond, _, _, _, body = visited_children
        return A.WhileStmt(cond=cond, body=body, loc=self.loc(node.start))

    def visit_do_stmt(self, node, visited_children):
        _, _, body, _, _, _, _, _, cond, _, _, _, _ = visited_children
        return A.DoStmt(body=body, cond=cond, loc=self.loc(node.start))

    def visit_range_for_stmt(self, node, visited_children):
        _, _, _, _, type_name, _, var_name, _, _, _, range_expr, _, _, _, body = visited_children
        return A.RangeForStmt(
            var_name=var_name,
            range_expr=range_expr,
            body=body,
            type_name=type_name,
            loc=self.loc(node.start),
        )

    def visit_for_stmt(self, node, visited_children):
        _, _, _, _, init, _, cond, _, _, _, inc, _, _, _, body = visited_children
        return A.ForStmt(
            init=None if isinstance(init, A.NullStmt) else init,
            cond=_opt(cond),
            inc=_opt(inc),
            body=body,
            loc=self.loc(node.start),
        )

    def visit_for_init(self, node, visited_children):
        return visited_children[0]

    def visit_jump_stmt(self, node, visited_children):
        return visited_children[0]

    def visit_break_stmt(self, node, visited_children):
        return A.BreakStmt(loc=self.loc(node.start))

    def visit_continue_stmt(self, node, visited_children):
        return A.ContinueStmt(loc=self.loc(node.start))

    def visit_return_stmt(self, node, visited_children):
        _, _, value, _, _ = visited_children
        return A.ReturnStmt(value=_opt(value), loc=self.loc(node.start))

    def visit_decl_stmt(self, node, visited_children):
        type_name, _, name, _, init, _ = visited_children
        return A.DeclStmt(
            name=name,
            type_name=type_name,
            init=_opt(init),
            is_const=type_name.split()[0] == "const",
            loc=self.loc(node.start),
        )

    def visit_decl_init(self, node, visited_children):
        return visited_children[2]

    def visit_null_stmt(self, node, visited_children):
        return A.NullStmt(loc=self.loc(node.start))

    def visit_expr_stmt(self, node, visited_children):
        return A.ExprStmt(expr=visited_children[0], loc=self.loc(node.start))

    # ─────────────────────────────────────────────────────────────
    # Attribute specifiers
    # ─────────────────────────────────────────────────────────────

    def visit_attr_spec(self, node, visited_children):
        return visited_children[0]

    def _spec(self, node, entries, syntax: AttributeSyntax) -> _AttrSpec:
        attrs = [
            RawAttribute.create(
                name=name,
                syntax=syntax,
                source_range=source_range,
                args=args,
                scope=scope,
            )
            for scope, name, args, source_range in entries
        ]
        return attrs, self.range(node.start, node.end)

    def visit_cxx11_attr_spec(self, node, visited_children):
        _, _, entries, _, _ = visited_children
        return self._spec(node, _opt(entries) or [], AttributeSyntax.CXX11)

    def visit_gnu_attr_spec(self, node, visited_children):
        entries = visited_children[6]
        return self._spec(node, _opt(entries) or [], AttributeSyntax.GNU)

    def visit_declspec_attr_spec(self, node, visited_children):
        _, _, _, _, entries, _, _ = visited_children
        return self._spec(node, _opt(entries) or [], AttributeSyntax.DECLSPEC)

    def visit_attr_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[-1] for item in _many(rest)]

    def visit_attribute(self, node, visited_children):
        (scope, name), args = visited_children
        arg_list = _opt(args)
        return (
            scope,
            name,
            tuple(arg_list[-1]) if arg_list else (),
            self.range(node.start, node.end),
        )

    def visit_scoped_name(self, node, visited_children):
        first, rest = visited_children
        qualified = _opt(rest)
        if qualified is None:
            return None, first
        return first, qualified[-1]

    def visit_attr_args(self, node, visited_children):
        _, _, args, _, _ = visited_children
        return _opt(args) or []

    def visit_arg_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[-1] for item in _many(rest)]

    def visit_declspec_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[-1] for item in _many(rest)]

    def visit_declspec_attr(self, node, visited_children):
        name, args = visited_children
        arg_list = _opt(args)
        return (
            None,
            name,
            tuple(arg_list[-1]) if arg_list else (),
            self.range(node.start, node.end),
        )

    def visit_pragma_loop(self, node, visited_children):
        _, hints, _, _ = visited_children
        attrs = [
            RawAttribute.create(
                name="loop",
                syntax=AttributeSyntax.PRAGMA,
                source_range=source_range,
                args=args,
            )
            for args, source_range in hints
        ]
        # The directive ends with its last option, not with the newline.
        end = hints[-1][1].end
        return attrs, A.SourceRange(self.loc(node.start), end)

    def visit_loop_hint(self, node, visited_children):
        _, option, _, _, _, value, _, rparen = visited_children
        option_node = node.children[1]
        expr = _opt(value)
        if expr is None:
            value_loc = IdentifierLoc(self.loc(rparen.start))
        elif isinstance(expr, A.DeclRefExpr):
            value_loc = IdentifierLoc(expr.loc, expr.name)
        else:
            value_loc = IdentifierLoc(expr.loc)
        args = (IdentifierLoc(self.loc(option_node.start), option), value_loc, expr)
        return args, self.range(option_node.start, node.end)

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_expr(self, node, visited_children):
        return visited_children[0]

    def visit_assign_expr(self, node, visited_children):
        target, _, op, _, value = visited_children
        return A.AssignExpr(op=op.text, target=target, value=value, loc=self.loc(node.start))

    def visit_conditional(self, node, visited_children):
        cond, rest = visited_children
        branches = _opt(rest)
        if branches is None:
            return cond
        return A.ConditionalOperator(
            cond=cond,
            then_expr=branches[3],
            else_expr=branches[7],
            loc=self.loc(node.start),
        )

    def _binary_chain(self, node, visited_children):
        lhs, rest = visited_children
        for _, op, _, rhs in _many(rest):
            lhs = A.BinaryOperator(
                op=A.BinaryOpKind(op.text), lhs=lhs, rhs=rhs, loc=self.loc(node.start)
            )
        return lhs

    visit_logical_or = _binary_chain
    visit_logical_and = _binary_chain
    visit_bit_or = _binary_chain
    visit_bit_xor = _binary_chain
    visit_bit_and = _binary_chain
    visit_equality = _binary_chain
    visit_relational = _binary_chain
    visit_shift = _binary_chain
    visit_additive = _binary_chain
    visit_multiplicative = _binary_chain

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_prefix_expr(self, node, visited_children):
        op, _, operand = visited_children
        return A.UnaryOperator(
            op=A.UnaryOpKind.prefix(op.text), operand=operand, loc=self.loc(node.start)
        )

    def visit_postfix_expr(self, node, visited_children):
        expr, rest = visited_children
        for _, (kind, payload) in _many(rest):
            if kind == "call":
                expr = A.CallExpr(callee=expr, args=tuple(payload), loc=self.loc(node.start))
            else:
                expr = A.UnaryOperator(
                    op=A.UnaryOpKind.postfix(payload), operand=expr, loc=self.loc(node.start)
                )
        return expr

    def visit_postfix_op(self, node, visited_children):
        child = visited_children[0]
        if isinstance(child, Node):
            return "incdec", child.text
        return "call", child

    def visit_call_suffix(self, node, visited_children):
        _, _, args, _, _ = visited_children
        return _opt(args) or []

    def visit_primary(self, node, visited_children):
        child = visited_children[0]
        if isinstance(child, str):
            return A.DeclRefExpr(name=child, loc=self.loc(node.start))
        return child

    def visit_paren_expr(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return A.ParenExpr(inner=inner, loc=self.loc(node.start))

    def visit_integer_literal(self, node, visited_children):
        text = node.text
        digits = text.rstrip("uUlL")
        if digits[:2] in ("0x", "0X"):
            value = int(digits[2:], 16)
        elif digits[:2] in ("0b", "0B"):
            value = int(digits[2:], 2)
        elif len(digits) > 1 and digits.startswith("0"):
            value = int(digits[1:], 8)
        else:
            value = int(digits)
        return A.IntegerLiteral(value=value, text=text, loc=self.loc(node.start))

    def visit_string_literal(self, node, visited_children):
        return A.StringLiteral(value=node.text[1:-1], loc=self.loc(node.start))

    def visit_bool_literal(self, node, visited_children):
        return A.IntegerLiteral(
            value=int(node.text == "true"), text=node.text, loc=self.loc(node.start)
        )

    def visit_identifier(self, node, visited_children):
        return node.text


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_source(text: str, filename: str = "<input>") -> A.TranslationUnit:
    """Parse *text* into a translation unit; raises ``SnippetSyntaxError``."""
    builder = SnippetASTBuilder(text, filename)
    try:
        tree = SNIPPET_GRAMMAR.parse(text)
    except ParseError as exc:
        loc = builder.loc(exc.pos)
        near = text[exc.pos:exc.pos + 20].split("\n", 1)[0]
        message = f"syntax error near '{near}'" if near else "unexpected end of input"
        raise SnippetSyntaxError(message, loc) from exc
    unit = builder.visit(tree)
    logger.debug("parsed %s: %d function(s)", filename, len(unit.functions))
    return unit


def parse_file(path: Union[str, Path]) -> A.TranslationUnit:
    path = Path(path)
    return parse_source(path.read_text(encoding="utf-8"), str(path))
