#!/usr/bin/env python3
"""
Tests for AST node construction, structural equality and tree ownership.
"""

import pytest

from proplang.shared.errors import TreeOwnershipError
from proplang.shared.nodes import (
    Assignment, BinaryExpression, BooleanLiteral, ExpressionStatement, Identifier,
    NodeType, Program, Quantifier, UnaryNot, check_tree_ownership, iter_nodes,
)
from proplang.shared.types import BinaryOp, QuantifierKind, SymbolType


class TestNodeConstruction:
    """Node kinds, lines and children"""

    def test_leaf_nodes(self):
        ident = Identifier("B", 3)
        lit = BooleanLiteral(True, 4)
        assert ident.node_type is NodeType.IDENTIFIER
        assert ident.name == "B" and ident.line == 3
        assert lit.node_type is NodeType.BOOLEAN
        assert lit.value is True and lit.line == 4
        assert list(ident.children()) == []

    def test_expression_statement_defaults_to_expression_line(self):
        stmt = ExpressionStatement(Identifier("C", 7))
        assert stmt.line == 7
        assert ExpressionStatement(Identifier("C", 7), 9).line == 9

    def test_children_in_serialization_order(self):
        left, right = Identifier("A", 1), BooleanLiteral(False, 1)
        expr = BinaryExpression(BinaryOp.OR, left, right, 1)
        assert list(expr.children()) == [left, right]

    def test_program_keeps_statement_order(self):
        program = Program()
        first = Assignment("B", BooleanLiteral(True, 1), 1)
        second = ExpressionStatement(Identifier("B", 2))
        program.add_statement(first)
        program.add_statement(second)
        assert program.statements == [first, second]
        assert program.line == 1

    def test_empty_program(self):
        program = Program()
        assert program.statements == []
        assert list(iter_nodes(program)) == [program]

    def test_str_rendering(self):
        expr = UnaryNot(BinaryExpression(BinaryOp.AND, Identifier("A", 1), BooleanLiteral(True, 1), 1), 1)
        assert str(expr) == "(NOT (A AND TRUE))"


class TestStructuralEquality:
    """Equality ignores analysis metadata but not lines"""

    def test_equal_trees(self):
        make = lambda: Program([
            Assignment("B", BooleanLiteral(True, 1), 1),
            ExpressionStatement(BinaryExpression(BinaryOp.IMPLIES, Identifier("B", 2), Identifier("C", 2), 2)),
        ])
        assert make() == make()

    def test_line_differences_break_equality(self):
        assert Identifier("B", 1) != Identifier("B", 2)

    def test_kind_differences_break_equality(self):
        assert BinaryExpression(BinaryOp.IFF, Identifier("a", 1), Identifier("b", 1), 1) != \
            BinaryExpression(BinaryOp.EQUIV, Identifier("a", 1), Identifier("b", 1), 1)
        assert Identifier("TRUE", 1) != BooleanLiteral(True, 1)

    def test_type_info_does_not_affect_equality(self):
        a, b = Identifier("B", 1), Identifier("B", 1)
        a._type_info = SymbolType.BOOLEAN
        assert a == b


class TestTreeOwnership:
    """A node object may have only one parent"""

    def test_preorder_traversal(self):
        body = Identifier("x", 1)
        quant = Quantifier(QuantifierKind.EXISTS, "x", body, 1)
        stmt = ExpressionStatement(quant)
        program = Program([stmt])
        assert list(iter_nodes(program)) == [program, stmt, quant, body]

    def test_distinct_nodes_pass(self):
        program = Program([
            ExpressionStatement(BinaryExpression(BinaryOp.AND, Identifier("A", 1), Identifier("A", 1), 1)),
        ])
        check_tree_ownership(program)

    def test_shared_subtree_rejected(self):
        shared = Identifier("A", 1)
        program = Program([
            ExpressionStatement(BinaryExpression(BinaryOp.AND, shared, shared, 1)),
        ])
        with pytest.raises(TreeOwnershipError):
            check_tree_ownership(program)

    def test_shared_statement_rejected(self):
        stmt = ExpressionStatement(Identifier("A", 1))
        with pytest.raises(TreeOwnershipError):
            check_tree_ownership(Program([stmt, stmt]))
