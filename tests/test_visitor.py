# tests/test_visitor.py
"""
Tests for the statement visitor infrastructure.
"""

import dataclasses

from stmtattr import ast as A
from stmtattr.parser import parse_source
from stmtattr.visitor import StmtVisitor, TransformingStmtVisitor, iter_child_stmts
from tests.conftest import FALLTHROUGH_SRC, VALID_LOOP_SRC


class Collector(StmtVisitor):
    def __init__(self):
        self.seen = []

    def generic_visit(self, node):
        self.seen.append(type(node).__name__)
        return super().generic_visit(node)


class BreakCounter(StmtVisitor):
    def __init__(self):
        self.breaks = 0

    def visit_break_stmt(self, node):
        self.breaks += 1


class NullToBreak(TransformingStmtVisitor):
    def visit_null_stmt(self, node):
        return A.BreakStmt(loc=node.loc)


class TestIterChildren:

    def test_if_children_in_order(self):
        then_stmt, else_stmt = A.NullStmt(), A.BreakStmt()
        stmt = A.IfStmt(cond=A.DeclRefExpr("c"), then_stmt=then_stmt, else_stmt=else_stmt)
        assert list(iter_child_stmts(stmt)) == [then_stmt, else_stmt]

    def test_expressions_are_not_children(self):
        assert list(iter_child_stmts(A.ExprStmt(A.DeclRefExpr("x")))) == []

    def test_compound_body(self):
        body = (A.NullStmt(), A.ContinueStmt())
        assert list(iter_child_stmts(A.CompoundStmt(body=body))) == list(body)


class TestStmtVisitor:

    def test_walks_whole_unit(self):
        collector = Collector()
        collector.visit(parse_source(VALID_LOOP_SRC))
        assert collector.seen == [
            "CompoundStmt", "ParsedAttributedStmt", "ForStmt", "DeclStmt", "CompoundStmt",
        ]

    def test_specific_method_wins(self):
        counter = BreakCounter()
        counter.visit(parse_source(FALLTHROUGH_SRC))
        assert counter.breaks == 1


class TestTransformingStmtVisitor:

    def test_rewrites_and_rebuilds_parents(self):
        unit = parse_source(FALLTHROUGH_SRC)
        new_unit = NullToBreak().visit(unit)
        assert new_unit is not unit
        switch = new_unit.functions[0].body.body[0]
        attributed = switch.body.body[1]
        assert isinstance(attributed.sub_stmt, A.BreakStmt)
        # The original tree is untouched.
        old_attributed = unit.functions[0].body.body[0].body.body[1]
        assert isinstance(old_attributed.sub_stmt, A.NullStmt)

    def test_unchanged_tree_is_returned_as_is(self):
        unit = parse_source(VALID_LOOP_SRC)
        assert TransformingStmtVisitor().visit(unit) is unit

    def test_untouched_siblings_are_shared(self):
        unit = parse_source(FALLTHROUGH_SRC)
        new_unit = NullToBreak().visit(unit)
        old_return = unit.functions[0].body.body[1]
        assert new_unit.functions[0].body.body[1] is old_return

    def test_replace_keeps_other_fields(self):
        stmt = A.WhileStmt(cond=A.DeclRefExpr("n"), body=A.NullStmt(), loc=A.SourceLoc("f", 3, 1))
        new = NullToBreak().visit(stmt)
        assert new == dataclasses.replace(stmt, body=A.BreakStmt())
        assert new.loc == stmt.loc
