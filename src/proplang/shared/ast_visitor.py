"""
AST Visitor Pattern

Design:
- Abstract base class with visit_* methods for each AST node type
- Leaf nodes must be handled explicitly by every visitor
- Non-leaf nodes default to visiting their children
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from .nodes import (
        Assignment, BinaryExpression, BooleanLiteral, ExpressionStatement,
        Identifier, Program, Quantifier, UnaryNot,
    )

T = TypeVar('T')


class ASTVisitor(ABC, Generic[T]):
    """
    Base AST visitor with default traversal.

    Leaf nodes that MUST be implemented:
    - visit_identifier, visit_boolean_literal

    Usage:
        class Printer(ASTVisitor[str]):
            def visit_binary_expression(self, node) -> str:
                return f"{node.left.accept(self)} {node.operator.value} {node.right.accept(self)}"

            def visit_identifier(self, node) -> str:
                return node.name

            def visit_boolean_literal(self, node) -> str:
                return "TRUE" if node.value else "FALSE"
    """

    @abstractmethod
    def visit_identifier(self, node: 'Identifier') -> T:
        raise NotImplementedError(f"{self.__class__.__name__} must implement visit_identifier()")

    @abstractmethod
    def visit_boolean_literal(self, node: 'BooleanLiteral') -> T:
        raise NotImplementedError(f"{self.__class__.__name__} must implement visit_boolean_literal()")

    def visit_binary_expression(self, node: 'BinaryExpression') -> T:
        node.left.accept(self)
        node.right.accept(self)

    def visit_unary_not(self, node: 'UnaryNot') -> T:
        node.operand.accept(self)

    def visit_quantifier(self, node: 'Quantifier') -> T:
        node.body.accept(self)

    def visit_assignment(self, node: 'Assignment') -> T:
        node.value.accept(self)

    def visit_expression_statement(self, node: 'ExpressionStatement') -> T:
        node.expr.accept(self)

    def visit_program(self, node: 'Program') -> T:
        for stmt in node.statements:
            stmt.accept(self)
