"""
frontend.py — Run statement attribute processing over a parsed unit
===================================================================

Walks every function body top-down, keeping the state attribute handlers
need (the current function and its enclosing ``switch`` statements), and
replaces each ``ParsedAttributedStmt`` with the result of
``Sema.process_stmt_attributes``.

The walk also binds the names used in attribute arguments: a ``const``
integer whose initializer is constant becomes a known value, a template
parameter becomes value-dependent, and anything else stays a runtime value.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from stmtattr import ast as A
from stmtattr.attributes import Attr, RawAttribute
from stmtattr.config import SemaConfig
from stmtattr.errors import DiagnosticsEngine
from stmtattr.parser import parse_source
from stmtattr.sema import Sema
from stmtattr.visitor import TransformingStmtVisitor

logger = logging.getLogger(__name__)

# name -> (constant value, is template parameter)
_Binding = Tuple[Optional[int], bool]


class AttributeResolver(TransformingStmtVisitor):
    """Rebuilds a translation unit with every attributed statement validated."""

    def __init__(self, sema: Sema) -> None:
        self.sema = sema
        self.attributes: List[Attr] = []
        self._scopes: List[Dict[str, _Binding]] = [{}]

    # --- Name binding ---

    def _lookup(self, name: str) -> Optional[_Binding]:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return None

    def bind_expr(self, expr: Optional[A.Expr]) -> Optional[A.Expr]:
        """Return *expr* with its names bound against the current scopes."""
        if expr is None:
            return None
        if isinstance(expr, A.DeclRefExpr):
            binding = self._lookup(expr.name)
            if binding is None:
                return expr
            constant, is_template_param = binding
            return dataclasses.replace(
                expr, constant=constant, is_template_param=is_template_param
            )
        changes = {}
        for f in dataclasses.fields(expr):
            value = getattr(expr, f.name)
            if isinstance(value, A.EXPR_TYPES):
                changes[f.name] = self.bind_expr(value)
            elif isinstance(value, tuple) and value and isinstance(value[0], A.EXPR_TYPES):
                changes[f.name] = tuple(self.bind_expr(v) for v in value)
        return dataclasses.replace(expr, **changes) if changes else expr

    def _bind_attribute(self, attr: RawAttribute) -> RawAttribute:
        args = tuple(
            self.bind_expr(arg) if isinstance(arg, A.EXPR_TYPES) else arg
            for arg in attr.args
        )
        return dataclasses.replace(attr, args=args)

    def _declare(self, decl: A.DeclStmt) -> None:
        constant = None
        if decl.is_const:
            constant = A.evaluate_integer_constant(self.bind_expr(decl.init))
        self._scopes[-1][decl.name] = (constant, False)

    def _scoped_visit(self, node):
        self._scopes.append({})
        try:
            return self.generic_visit(node)
        finally:
            self._scopes.pop()

    # --- Declarations ---

    def visit_translation_unit(self, node: A.TranslationUnit) -> A.TranslationUnit:
        for decl in node.globals:
            self._declare(decl)
        return super().visit_translation_unit(node)

    def visit_function_decl(self, node: A.FunctionDecl) -> A.FunctionDecl:
        scope: Dict[str, _Binding] = {name: (None, True) for name in node.template_params}
        scope.update({name: (None, False) for name in node.params})
        self._scopes.append(scope)
        try:
            with self.sema.function_scope(node.name):
                return super().visit_function_decl(node)
        finally:
            self._scopes.pop()

    # --- Statements ---

    def visit_decl_stmt(self, node: A.DeclStmt) -> A.DeclStmt:
        self._declare(node)
        return node

    def visit_compound_stmt(self, node: A.CompoundStmt) -> A.CompoundStmt:
        return self._scoped_visit(node)

    def visit_for_stmt(self, node: A.ForStmt) -> A.ForStmt:
        return self._scoped_visit(node)

    def visit_range_for_stmt(self, node: A.RangeForStmt) -> A.RangeForStmt:
        self._scopes.append({node.var_name: (None, False)})
        try:
            return self.generic_visit(node)
        finally:
            self._scopes.pop()

    def visit_switch_stmt(self, node: A.SwitchStmt) -> A.SwitchStmt:
        with self.sema.switch_scope(node):
            return self.generic_visit(node)

    def visit_parsed_attributed_stmt(self, node: A.ParsedAttributedStmt) -> A.Stmt:
        sub_stmt = self.visit(node.sub_stmt)
        attrs = [self._bind_attribute(attr) for attr in node.attrs]
        result = self.sema.process_stmt_attributes(sub_stmt, attrs, node.source_range)
        if isinstance(result, A.AttributedStmt):
            self.attributes.extend(result.attrs)
        return result


@dataclass
class CheckResult:
    """Outcome of checking one translation unit."""

    unit: A.TranslationUnit
    diagnostics: DiagnosticsEngine
    attributes: List[Attr] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors()

    @property
    def error_count(self) -> int:
        return self.diagnostics.error_count()

    @property
    def warning_count(self) -> int:
        return self.diagnostics.warning_count()

    def format_diagnostics(self, format: str = "gcc") -> str:
        return self.diagnostics.format(format=format)


def check_unit(unit: A.TranslationUnit, config: Optional[SemaConfig] = None) -> CheckResult:
    """Process every attributed statement in *unit*."""
    sema = Sema(config=config)
    resolver = AttributeResolver(sema)
    resolved = resolver.visit(unit)
    logger.info(
        "%s: %d attribute(s) validated, %d error(s), %d warning(s)",
        unit.file, len(resolver.attributes),
        sema.diags.error_count(), sema.diags.warning_count(),
    )
    return CheckResult(unit=resolved, diagnostics=sema.diags, attributes=resolver.attributes)


def check_source(
    text: str,
    config: Optional[SemaConfig] = None,
    filename: Optional[str] = None,
) -> CheckResult:
    """Parse and check *text*; raises ``SnippetSyntaxError`` on bad input."""
    config = config or SemaConfig()
    unit = parse_source(text, filename or config.filename)
    return check_unit(unit, config)


def check_file(path: Union[str, Path], config: Optional[SemaConfig] = None) -> CheckResult:
    path = Path(path)
    return check_source(path.read_text(encoding="utf-8"), config, filename=str(path))
