"""
Statement Attribute Semantic Checks

Validates the raw attributes attached to one statement and builds the
attributed statement:

1. Registry dispatch - unknown kinds warn, declaration-only kinds error,
   statement kinds go to their handler
2. Per-kind handlers - ``fallthrough`` and loop hints check their target
   statement and arguments
3. Compatibility - the surviving loop hints of the statement are checked
   against each other, once, after every attribute has been handled

A handler that returns ``None`` has already reported why.  Diagnostics from
the compatibility pass never remove an attribute.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from stmtattr import ast as A
from stmtattr.attributes import (
    Attr,
    AttributeKind,
    FallThroughAttr,
    LoopHintAttr,
    RawAttribute,
    STATEMENT_ATTRIBUTE_KINDS,
)
from stmtattr.config import SemaConfig
from stmtattr.errors import Diags, DiagnosticsEngine, FixItHint, InternalError
from stmtattr.loop_hint import check_for_incompatible_attributes, parse_loop_hint_args

logger = logging.getLogger(__name__)


# ============================================================================
# PART 1 — SCOPE TRACKING
# ============================================================================


@dataclass
class FunctionScopeInfo:
    """
    Per-function state visible to attribute handlers.

    ``switch_stack`` holds the ``switch`` statements enclosing the statement
    currently being processed, innermost last.
    """
    name: str = "<anonymous>"
    switch_stack: List[A.SwitchStmt] = field(default_factory=list)


def _stmt_start(stmt: A.Stmt) -> A.SourceRange:
    """Highlight for the statement an attribute was written on."""
    return A.SourceRange(stmt.loc, stmt.loc)


StmtAttrHandler = Callable[["Sema", A.Stmt, RawAttribute, A.SourceRange], Optional[Attr]]


class Sema:
    """
    Statement attribute processing.

    Holds the diagnostics engine, the configuration and the stack of
    function scopes.  Handlers that need to know whether a statement sits
    inside a ``switch`` consult ``cur_function``.
    """

    def __init__(
        self,
        diags: Optional[DiagnosticsEngine] = None,
        config: Optional[SemaConfig] = None,
    ) -> None:
        self.config = config or SemaConfig()
        self.diags = diags if diags is not None else self.config.make_diagnostics_engine()
        self._function_scopes: List[FunctionScopeInfo] = []

    # --- Scopes ---

    @property
    def cur_function(self) -> Optional[FunctionScopeInfo]:
        return self._function_scopes[-1] if self._function_scopes else None

    def push_function_scope(self, name: str = "<anonymous>") -> FunctionScopeInfo:
        scope = FunctionScopeInfo(name)
        self._function_scopes.append(scope)
        return scope

    def pop_function_scope(self) -> FunctionScopeInfo:
        if not self._function_scopes:
            raise InternalError("no function scope to pop")
        return self._function_scopes.pop()

    @contextmanager
    def function_scope(self, name: str = "<anonymous>") -> Iterator[FunctionScopeInfo]:
        scope = self.push_function_scope(name)
        try:
            yield scope
        finally:
            self.pop_function_scope()

    def push_switch(self, stmt: A.SwitchStmt) -> None:
        self._require_function().switch_stack.append(stmt)

    def pop_switch(self) -> A.SwitchStmt:
        stack = self._require_function().switch_stack
        if not stack:
            raise InternalError("no switch statement to pop")
        return stack.pop()

    @contextmanager
    def switch_scope(self, stmt: A.SwitchStmt) -> Iterator[None]:
        self.push_switch(stmt)
        try:
            yield
        finally:
            self.pop_switch()

    def _require_function(self) -> FunctionScopeInfo:
        scope = self.cur_function
        if scope is None:
            raise InternalError("statement attributes processed outside a function")
        return scope

    # --- Handlers ---

    def handle_fallthrough_attr(
        self, stmt: A.Stmt, attr: RawAttribute, range: A.SourceRange
    ) -> Optional[FallThroughAttr]:
        if not isinstance(stmt, A.NullStmt):
            self.diags.report(
                Diags.ERR_FALLTHROUGH_ATTR_WRONG_TARGET, attr.loc,
                ranges=[_stmt_start(stmt)],
            )
            if A.is_switch_case(stmt):
                # [[fallthrough]] case 1: -> [[fallthrough]]; case 1:
                loc = range.end
                self.diags.note(
                    Diags.NOTE_FALLTHROUGH_INSERT_SEMI_FIXIT, loc,
                    fixits=[FixItHint(loc, ";")],
                )
            return None
        scope = self.cur_function
        if scope is None or not scope.switch_stack:
            self.diags.report(Diags.ERR_FALLTHROUGH_ATTR_OUTSIDE_SWITCH, attr.loc)
            return None
        return FallThroughAttr(source_range=attr.source_range)

    def handle_loop_hint_attr(
        self, stmt: A.Stmt, attr: RawAttribute, range: A.SourceRange
    ) -> Optional[LoopHintAttr]:
        if not A.is_loop_stmt(stmt):
            self.diags.report(Diags.ERR_PRAGMA_LOOP_PRECEDES_NONLOOP, stmt.loc)
            return None
        return parse_loop_hint_args(
            attr, self.diags, strict_options=self.config.strict_loop_hint_options
        )

    # --- Driver ---

    def process_stmt_attribute(
        self, stmt: A.Stmt, attr: RawAttribute, range: A.SourceRange
    ) -> Optional[Attr]:
        """Validate one raw attribute against *stmt*."""
        if attr.kind is AttributeKind.UNKNOWN:
            diag_id = (
                Diags.WARN_UNHANDLED_MS_ATTRIBUTE_IGNORED
                if attr.is_declspec
                else Diags.WARN_UNKNOWN_ATTRIBUTE_IGNORED
            )
            self.diags.report(diag_id, attr.loc, attr.qualified_name)
            return None

        if not attr.kind.is_statement_attribute:
            # A known attribute that is not a statement attribute is a
            # declaration attribute.
            self.diags.report(
                Diags.ERR_ATTRIBUTE_INVALID_ON_STMT, attr.loc, attr.qualified_name,
                ranges=[_stmt_start(stmt)],
            )
            return None

        logger.debug("dispatching %s attribute at %s", attr.kind.name, attr.loc)
        return STMT_ATTRIBUTE_HANDLERS[attr.kind](self, stmt, attr, range)

    def process_stmt_attributes(
        self,
        stmt: A.Stmt,
        attrs: Iterable[RawAttribute],
        range: A.SourceRange,
    ) -> A.Stmt:
        """
        Validate every attribute on *stmt* and wrap it with the survivors.

        Returns *stmt* itself when no attribute survives, otherwise an
        ``AttributedStmt`` spanning *range*.
        """
        validated: List[Attr] = []
        for raw in attrs:
            attr = self.process_stmt_attribute(stmt, raw, range)
            if attr is not None:
                validated.append(attr)

        check_for_incompatible_attributes(validated, self.diags)

        if not validated:
            return stmt
        return A.AttributedStmt(
            attrs=tuple(validated), sub_stmt=stmt, source_range=range, loc=range.begin
        )


STMT_ATTRIBUTE_HANDLERS: Dict[AttributeKind, StmtAttrHandler] = {
    AttributeKind.FALLTHROUGH: Sema.handle_fallthrough_attr,
    AttributeKind.LOOP_HINT: Sema.handle_loop_hint_attr,
}


if set(STMT_ATTRIBUTE_HANDLERS) != STATEMENT_ATTRIBUTE_KINDS:
    raise InternalError("every statement attribute kind needs exactly one handler")
