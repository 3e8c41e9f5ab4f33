#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
stmtattr/visitor.py
===================

Visitor pattern infrastructure for statement tree traversal.

Provides:
- ``StmtVisitor`` — dispatches on node class to ``visit_<snake_name>``
- ``TransformingStmtVisitor`` — visitor that rebuilds the tree (for rewrites)
- ``iter_child_stmts`` — the direct statement children of a node
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any, Callable, Dict, Iterator, Tuple

from stmtattr import ast as A

__all__ = [
    "StmtVisitor",
    "TransformingStmtVisitor",
    "iter_child_stmts",
]

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

STMT_TYPES: Tuple[type, ...] = (
    A.NullStmt,
    A.CompoundStmt,
    A.ExprStmt,
    A.DeclStmt,
    A.ReturnStmt,
    A.BreakStmt,
    A.ContinueStmt,
    A.IfStmt,
    A.SwitchStmt,
    A.CaseStmt,
    A.DefaultStmt,
    A.ForStmt,
    A.RangeForStmt,
    A.WhileStmt,
    A.DoStmt,
    A.AttributedStmt,
    A.ParsedAttributedStmt,
)


def _method_name(cls: type) -> str:
    return "visit_" + _CAMEL_RE.sub("_", cls.__name__).lower()


def iter_child_stmts(node: Any) -> Iterator[Any]:
    """Yield the direct statement children of *node* in source order."""
    for f in dataclasses.fields(node):
        value = getattr(node, f.name)
        if isinstance(value, STMT_TYPES):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, STMT_TYPES):
                    yield item


class StmtVisitor:
    """Base class for statement tree visitors.

    ``visit(node)`` calls ``visit_<snake_case_class_name>`` when the subclass
    defines it (``visit_for_stmt`` for ``ForStmt``) and ``generic_visit``
    otherwise.  The default ``generic_visit`` visits every child statement.
    """

    _dispatch_cache: Dict[type, str] = {}

    def visit(self, node: Any) -> Any:
        """Dispatch to the appropriate visit method."""
        cls = type(node)
        name = self._dispatch_cache.get(cls)
        if name is None:
            name = _method_name(cls)
            self._dispatch_cache[cls] = name
        method: Callable[[Any], Any] = getattr(self, name, self.generic_visit)
        return method(node)

    def generic_visit(self, node: Any) -> Any:
        for child in iter_child_stmts(node):
            self.visit(child)
        return None

    def visit_translation_unit(self, node: A.TranslationUnit) -> Any:
        for fn in node.functions:
            self.visit(fn)
        return None

    def visit_function_decl(self, node: A.FunctionDecl) -> Any:
        return self.visit(node.body)


class TransformingStmtVisitor(StmtVisitor):
    """Visitor that rebuilds the tree, allowing transformations.

    Children are rebuilt first; a node whose children all come back
    unchanged is returned as-is.  Subclasses override specific
    ``visit_X`` methods to perform rewrites.
    """

    def generic_visit(self, node: Any) -> Any:
        changes: Dict[str, Any] = {}
        for f in dataclasses.fields(node):
            value = getattr(node, f.name)
            if isinstance(value, STMT_TYPES):
                new_value = self.visit(value)
                if new_value is not value:
                    changes[f.name] = new_value
            elif isinstance(value, tuple) and any(isinstance(v, STMT_TYPES) for v in value):
                new_items = tuple(
                    self.visit(v) if isinstance(v, STMT_TYPES) else v for v in value
                )
                if any(new is not old for new, old in zip(new_items, value)):
                    changes[f.name] = new_items
        if not changes:
            return node
        return dataclasses.replace(node, **changes)

    def visit_translation_unit(self, node: A.TranslationUnit) -> A.TranslationUnit:
        functions = tuple(self.visit(fn) for fn in node.functions)
        if all(new is old for new, old in zip(functions, node.functions)):
            return node
        return dataclasses.replace(node, functions=functions)

    def visit_function_decl(self, node: A.FunctionDecl) -> A.FunctionDecl:
        body = self.visit(node.body)
        if body is node.body:
            return node
        return dataclasses.replace(node, body=body)
