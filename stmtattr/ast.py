"""stmtattr/ast.py – Statement and expression nodes for attribute checking.

The attribute checker only needs a narrow view of the syntax tree: the
structural kind of the statement an attribute annotates, the source
position of that statement, and the argument expressions of the attribute
itself.  This module defines exactly that view as a tree of frozen
dataclasses.

Design invariants
-----------------
* Every node is a frozen dataclass (immutable after construction).
* Children are stored in tuples, never lists.
* Every node records where it starts (``loc``); nodes that need a full
  extent (attribute-carrying statements) also record a ``SourceRange``.
* ``SourceRange.end`` points one character *past* the last character of
  the range, so "insert after this range" fix-its use it directly.

Module layout
-------------
§1  Source positions
§2  Expressions and integer constant evaluation
§3  Statements
§4  Declarations and translation units
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, ClassVar, Optional, Tuple, Union

if TYPE_CHECKING:
    from stmtattr.attributes import Attr, RawAttribute


# ════════════════════════════════════════════════════════════════════════
# §1  Source positions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SourceLoc:
    """A position in a source file (1-based line and column)."""

    file: str = "<unknown>"
    line: int = 0
    col: int = 0

    @property
    def is_valid(self) -> bool:
        return self.line > 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


#: Sentinel for nodes synthesised without a source position.
NO_LOC = SourceLoc()


@dataclass(frozen=True, slots=True)
class SourceRange:
    """Half-open source extent ``[begin, end)``."""

    begin: SourceLoc = NO_LOC
    end: SourceLoc = NO_LOC

    def __str__(self) -> str:
        return f"{self.begin}-{self.end.line}:{self.end.col}"


NO_RANGE = SourceRange()


# ════════════════════════════════════════════════════════════════════════
# §2  Expressions
# ════════════════════════════════════════════════════════════════════════


class UnaryOpKind(Enum):
    PLUS = auto()
    MINUS = auto()
    NOT = auto()
    BITNOT = auto()
    PRE_INC = auto()
    PRE_DEC = auto()
    POST_INC = auto()
    POST_DEC = auto()

    @classmethod
    def prefix(cls, symbol: str) -> "UnaryOpKind":
        return {
            "+": cls.PLUS, "-": cls.MINUS, "!": cls.NOT, "~": cls.BITNOT,
            "++": cls.PRE_INC, "--": cls.PRE_DEC,
        }[symbol]

    @classmethod
    def postfix(cls, symbol: str) -> "UnaryOpKind":
        return {"++": cls.POST_INC, "--": cls.POST_DEC}[symbol]

    @property
    def has_side_effects(self) -> bool:
        return self in (
            UnaryOpKind.PRE_INC, UnaryOpKind.PRE_DEC,
            UnaryOpKind.POST_INC, UnaryOpKind.POST_DEC,
        )


class BinaryOpKind(Enum):
    """Binary operators, valued by their C spelling."""

    MUL = "*"
    DIV = "/"
    REM = "%"
    ADD = "+"
    SUB = "-"
    SHL = "<<"
    SHR = ">>"
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    EQ = "=="
    NE = "!="
    BIT_AND = "&"
    BIT_XOR = "^"
    BIT_OR = "|"
    LAND = "&&"
    LOR = "||"

    @property
    def symbol(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class IntegerLiteral:
    """An integer literal; ``text`` keeps the original spelling."""

    value: int
    text: str = ""
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class StringLiteral:
    value: str
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class DeclRefExpr:
    """A reference to a named entity.

    The front end binds names it can resolve: ``constant`` holds the value
    of a ``const`` integer whose initializer is itself constant, and
    ``is_template_param`` marks a value-dependent template parameter.
    An unbound reference is simply a runtime value.
    """

    name: str
    constant: Optional[int] = None
    is_template_param: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ParenExpr:
    inner: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class UnaryOperator:
    op: UnaryOpKind
    operand: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class BinaryOperator:
    op: BinaryOpKind
    lhs: Expr
    rhs: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ConditionalOperator:
    cond: Expr
    then_expr: Expr
    else_expr: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class CallExpr:
    callee: Expr
    args: Tuple[Expr, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class AssignExpr:
    """Simple or compound assignment; ``op`` is the spelling (``=``, ``+=``...)."""

    op: str
    target: Expr
    value: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


Expr = Union[
    IntegerLiteral,
    StringLiteral,
    DeclRefExpr,
    ParenExpr,
    UnaryOperator,
    BinaryOperator,
    ConditionalOperator,
    CallExpr,
    AssignExpr,
]

#: Concrete expression classes, for ``isinstance`` checks.
EXPR_TYPES: Tuple[type, ...] = (
    IntegerLiteral,
    StringLiteral,
    DeclRefExpr,
    ParenExpr,
    UnaryOperator,
    BinaryOperator,
    ConditionalOperator,
    CallExpr,
    AssignExpr,
)


# --- Integer constant evaluation -------------------------------------

# Constant folding is carried out at 64-bit signed width; anything that
# overflows it is not a constant expression.
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1


class _NotConstant(Exception):
    """Raised internally when a subexpression is not an integer constant."""


def evaluate_integer_constant(expr: Optional[Expr]) -> Optional[int]:
    """Evaluate *expr* as an integer constant expression.

    Returns the value, or ``None`` when the expression cannot be evaluated
    at compile time.  Value-dependent expressions (template parameters),
    calls, assignments, increments, unresolved names, string literals,
    division by zero, invalid shifts and 64-bit overflow all make the
    expression non-constant.
    """
    if expr is None:
        return None
    try:
        return _fold(expr)
    except _NotConstant:
        return None


def is_value_dependent(expr: Optional[Expr]) -> bool:
    """True when *expr* mentions a template parameter."""
    if expr is None:
        return False
    if isinstance(expr, DeclRefExpr):
        return expr.is_template_param
    if isinstance(expr, ParenExpr):
        return is_value_dependent(expr.inner)
    if isinstance(expr, UnaryOperator):
        return is_value_dependent(expr.operand)
    if isinstance(expr, BinaryOperator):
        return is_value_dependent(expr.lhs) or is_value_dependent(expr.rhs)
    if isinstance(expr, ConditionalOperator):
        return any(
            is_value_dependent(e)
            for e in (expr.cond, expr.then_expr, expr.else_expr)
        )
    if isinstance(expr, CallExpr):
        return is_value_dependent(expr.callee) or any(
            is_value_dependent(a) for a in expr.args
        )
    if isinstance(expr, AssignExpr):
        return is_value_dependent(expr.target) or is_value_dependent(expr.value)
    return False


def _checked(value: int) -> int:
    if value < _INT_MIN or value > _INT_MAX:
        raise _NotConstant
    return value


def _fold(expr: Expr) -> int:
    if isinstance(expr, IntegerLiteral):
        return _checked(expr.value)
    if isinstance(expr, DeclRefExpr):
        if expr.is_template_param or expr.constant is None:
            raise _NotConstant
        return _checked(expr.constant)
    if isinstance(expr, ParenExpr):
        return _fold(expr.inner)
    if isinstance(expr, UnaryOperator):
        if expr.op.has_side_effects:
            raise _NotConstant
        operand = _fold(expr.operand)
        if expr.op is UnaryOpKind.PLUS:
            return operand
        if expr.op is UnaryOpKind.MINUS:
            return _checked(-operand)
        if expr.op is UnaryOpKind.NOT:
            return int(not operand)
        return ~operand
    if isinstance(expr, BinaryOperator):
        return _fold_binary(expr)
    if isinstance(expr, ConditionalOperator):
        if _fold(expr.cond):
            return _fold(expr.then_expr)
        return _fold(expr.else_expr)
    raise _NotConstant


def _fold_binary(expr: BinaryOperator) -> int:
    op = expr.op
    lhs = _fold(expr.lhs)
    # Short-circuit: the unevaluated operand need not be constant.
    if op is BinaryOpKind.LAND:
        return int(bool(lhs) and bool(_fold(expr.rhs)))
    if op is BinaryOpKind.LOR:
        return int(bool(lhs) or bool(_fold(expr.rhs)))

    rhs = _fold(expr.rhs)
    if op is BinaryOpKind.ADD:
        return _checked(lhs + rhs)
    if op is BinaryOpKind.SUB:
        return _checked(lhs - rhs)
    if op is BinaryOpKind.MUL:
        return _checked(lhs * rhs)
    if op in (BinaryOpKind.DIV, BinaryOpKind.REM):
        if rhs == 0:
            raise _NotConstant
        # C division truncates toward zero.
        quotient = abs(lhs) // abs(rhs)
        if (lhs < 0) != (rhs < 0):
            quotient = -quotient
        if op is BinaryOpKind.DIV:
            return _checked(quotient)
        return _checked(lhs - rhs * quotient)
    if op in (BinaryOpKind.SHL, BinaryOpKind.SHR):
        if rhs < 0 or rhs >= 64:
            raise _NotConstant
        if op is BinaryOpKind.SHL:
            if lhs < 0:
                raise _NotConstant
            return _checked(lhs << rhs)
        return lhs >> rhs
    if op is BinaryOpKind.BIT_AND:
        return lhs & rhs
    if op is BinaryOpKind.BIT_XOR:
        return lhs ^ rhs
    if op is BinaryOpKind.BIT_OR:
        return lhs | rhs
    comparisons = {
        BinaryOpKind.LT: lhs < rhs,
        BinaryOpKind.GT: lhs > rhs,
        BinaryOpKind.LE: lhs <= rhs,
        BinaryOpKind.GE: lhs >= rhs,
        BinaryOpKind.EQ: lhs == rhs,
        BinaryOpKind.NE: lhs != rhs,
    }
    return int(comparisons[op])


# ════════════════════════════════════════════════════════════════════════
# §3  Statements
# ════════════════════════════════════════════════════════════════════════


class StmtClass(Enum):
    """Structural kind of a statement, as seen by attribute validators."""

    NULL = auto()
    COMPOUND = auto()
    EXPR = auto()
    DECL = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()
    IF = auto()
    SWITCH = auto()
    CASE = auto()
    DEFAULT = auto()
    FOR = auto()
    RANGE_FOR = auto()
    WHILE = auto()
    DO = auto()
    ATTRIBUTED = auto()
    PARSED_ATTRIBUTED = auto()


LOOP_STMT_CLASSES = frozenset(
    {StmtClass.FOR, StmtClass.RANGE_FOR, StmtClass.WHILE, StmtClass.DO}
)
SWITCH_CASE_CLASSES = frozenset({StmtClass.CASE, StmtClass.DEFAULT})


@dataclass(frozen=True, slots=True)
class NullStmt:
    """The empty statement ``;``."""

    stmt_class: ClassVar[StmtClass] = StmtClass.NULL
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class CompoundStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.COMPOUND
    body: Tuple[Stmt, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ExprStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.EXPR
    expr: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class DeclStmt:
    """A single variable declaration, e.g. ``const int N = 8;``."""

    stmt_class: ClassVar[StmtClass] = StmtClass.DECL
    name: str
    type_name: str = "int"
    init: Optional[Expr] = None
    is_const: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ReturnStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.RETURN
    value: Optional[Expr] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class BreakStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.BREAK
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ContinueStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.CONTINUE
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class IfStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.IF
    cond: Expr
    then_stmt: Stmt
    else_stmt: Optional[Stmt] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class SwitchStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.SWITCH
    cond: Expr
    body: Stmt
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class CaseStmt:
    """``case <value>: <sub_stmt>``."""

    stmt_class: ClassVar[StmtClass] = StmtClass.CASE
    value: Expr
    sub_stmt: Stmt
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class DefaultStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.DEFAULT
    sub_stmt: Stmt
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ForStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.FOR
    init: Optional[Stmt]
    cond: Optional[Expr]
    inc: Optional[Expr]
    body: Stmt
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class RangeForStmt:
    """``for (<type> <var> : <range>) <body>``."""

    stmt_class: ClassVar[StmtClass] = StmtClass.RANGE_FOR
    var_name: str
    range_expr: Expr
    body: Stmt
    type_name: str = "auto"
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class WhileStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.WHILE
    cond: Expr
    body: Stmt
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class DoStmt:
    stmt_class: ClassVar[StmtClass] = StmtClass.DO
    body: Stmt
    cond: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class AttributedStmt:
    """A statement wrapped with its validated attributes.

    Only ever built with a non-empty ``attrs`` tuple; a statement whose
    attributes all failed validation is left unwrapped.
    """

    stmt_class: ClassVar[StmtClass] = StmtClass.ATTRIBUTED
    attrs: Tuple[Attr, ...]
    sub_stmt: Stmt
    source_range: SourceRange = NO_RANGE
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class ParsedAttributedStmt:
    """A statement preceded by raw, not-yet-validated attributes.

    Produced by the front end; ``source_range`` covers the whole
    attribute-specifier sequence.  Attribute processing replaces it with
    either an ``AttributedStmt`` or the bare ``sub_stmt``.
    """

    stmt_class: ClassVar[StmtClass] = StmtClass.PARSED_ATTRIBUTED
    attrs: Tuple[RawAttribute, ...]
    sub_stmt: Stmt
    source_range: SourceRange = NO_RANGE
    loc: SourceLoc = field(default=NO_LOC, repr=False)


Stmt = Union[
    NullStmt,
    CompoundStmt,
    ExprStmt,
    DeclStmt,
    ReturnStmt,
    BreakStmt,
    ContinueStmt,
    IfStmt,
    SwitchStmt,
    CaseStmt,
    DefaultStmt,
    ForStmt,
    RangeForStmt,
    WhileStmt,
    DoStmt,
    AttributedStmt,
    ParsedAttributedStmt,
]


def is_loop_stmt(stmt: Stmt) -> bool:
    """``for``, range-based ``for``, ``while`` and ``do``/``while``."""
    return stmt.stmt_class in LOOP_STMT_CLASSES


def is_switch_case(stmt: Stmt) -> bool:
    """``case`` and ``default`` labels."""
    return stmt.stmt_class in SWITCH_CASE_CLASSES


# ════════════════════════════════════════════════════════════════════════
# §4  Declarations and translation units
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FunctionDecl:
    name: str
    body: CompoundStmt
    params: Tuple[str, ...] = ()
    template_params: Tuple[str, ...] = ()
    return_type: str = "void"
    loc: SourceLoc = field(default=NO_LOC, repr=False)


@dataclass(frozen=True, slots=True)
class TranslationUnit:
    """Top-level container: file-scope constants and function definitions."""

    functions: Tuple[FunctionDecl, ...] = ()
    globals: Tuple[DeclStmt, ...] = ()
    file: str = "<unknown>"
