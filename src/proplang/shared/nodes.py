"""
Proplang AST (Abstract Syntax Tree) Definitions

Visitor Pattern Support:
- All AST nodes have accept() methods for polymorphic dispatch
- children() yields owned subtrees in serialization order

Ownership: every node exclusively owns its children. The tree is acyclic and
no node object may appear twice; check_tree_ownership() enforces this before
a tree crosses a stage boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional, TYPE_CHECKING, TypeVar

from .types import BinaryOp, QuantifierKind, SymbolType
from .errors import TreeOwnershipError

if TYPE_CHECKING:
    from .ast_visitor import ASTVisitor

T = TypeVar('T')


class NodeType(Enum):
    """AST node types"""
    PROGRAM = "program"
    ASSIGNMENT = "assignment"
    EXPR_STMT = "expr_stmt"
    IDENTIFIER = "identifier"
    BOOLEAN = "boolean"
    BINARY_OP = "binary_op"
    NOT = "not"
    QUANTIFIER = "quantifier"


class ASTNode:
    """
    Base class for all AST nodes

    Every node carries the source line it was built from. Subclasses are
    dataclasses that list `line` as a field, so it takes part in equality;
    it is therefore an instance attribute rather than a slot.
    """
    __slots__ = ('node_type',)

    def __init__(self, node_type: NodeType, line: int):
        self.node_type = node_type
        self.line = line

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        raise NotImplementedError(f"accept() not implemented for {self.__class__.__name__}")

    def children(self) -> Iterator['ASTNode']:
        return iter(())


class Expression(ASTNode):
    """
    Base class for expressions

    Metadata populated by semantic analysis lives in slots, outside the
    dataclass fields, so it never affects structural equality.
    """
    __slots__ = ('_type_info', '_is_constant')

    def __init__(self, node_type: NodeType = None, line: int = 0):
        super().__init__(node_type, line)
        self._type_info: Optional[SymbolType] = None
        self._is_constant: bool = False


class Statement(ASTNode):
    """Base class for statements"""
    __slots__ = ('_type_info',)

    def __init__(self, node_type: NodeType = None, line: int = 0):
        super().__init__(node_type, line)
        self._type_info: Optional[SymbolType] = None


@dataclass
class Identifier(Expression):
    """Identifier (variable reference)"""
    name: str
    line: int

    def __str__(self) -> str:
        return self.name

    def __init__(self, name: str, line: int):
        super().__init__(NodeType.IDENTIFIER, line)
        self.name = name

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_identifier(self)


@dataclass
class BooleanLiteral(Expression):
    """TRUE or FALSE"""
    value: bool
    line: int

    def __str__(self) -> str:
        return "TRUE" if self.value else "FALSE"

    def __init__(self, value: bool, line: int):
        super().__init__(NodeType.BOOLEAN, line)
        self.value = bool(value)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_boolean_literal(self)


@dataclass
class BinaryExpression(Expression):
    """Binary connective (a AND b, a IMPLIES b, ...)"""
    operator: BinaryOp
    left: Expression
    right: Expression
    line: int

    def __str__(self) -> str:
        return f"({self.left} {self.operator.value} {self.right})"

    def __init__(self, operator: BinaryOp, left: Expression, right: Expression, line: int):
        super().__init__(NodeType.BINARY_OP, line)
        self.operator = operator
        self.left = left
        self.right = right

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_binary_expression(self)

    def children(self) -> Iterator[ASTNode]:
        yield self.left
        yield self.right


@dataclass
class UnaryNot(Expression):
    """Logical negation"""
    operand: Expression
    line: int

    def __str__(self) -> str:
        return f"(NOT {self.operand})"

    def __init__(self, operand: Expression, line: int):
        super().__init__(NodeType.NOT, line)
        self.operand = operand

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_unary_not(self)

    def children(self) -> Iterator[ASTNode]:
        yield self.operand


@dataclass
class Quantifier(Expression):
    """EXISTS x (body) / FORALL x (body). Represented, never evaluated."""
    kind: QuantifierKind
    variable: str
    body: Expression
    line: int

    def __str__(self) -> str:
        return f"({self.kind.value} {self.variable} {self.body})"

    def __init__(self, kind: QuantifierKind, variable: str, body: Expression, line: int):
        super().__init__(NodeType.QUANTIFIER, line)
        self.kind = kind
        self.variable = variable
        self.body = body

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_quantifier(self)

    def children(self) -> Iterator[ASTNode]:
        yield self.body


@dataclass
class Assignment(Statement):
    """variable := value"""
    variable: str
    value: Expression
    line: int

    def __init__(self, variable: str, value: Expression, line: int):
        super().__init__(NodeType.ASSIGNMENT, line)
        self.variable = variable
        self.value = value

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_assignment(self)

    def children(self) -> Iterator[ASTNode]:
        yield self.value


@dataclass
class ExpressionStatement(Statement):
    """
    Expression used as a statement.

    The value is computed (and observable in generated code) but not stored.
    """
    expr: Expression
    line: int

    def __init__(self, expr: Expression, line: Optional[int] = None):
        super().__init__(NodeType.EXPR_STMT, expr.line if line is None else line)
        self.expr = expr

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_expression_statement(self)

    def children(self) -> Iterator[ASTNode]:
        yield self.expr


@dataclass
class Program(ASTNode):
    """Program root node: ordered statement list"""
    statements: List[Statement]
    line: int

    def __init__(self, statements: Optional[List[Statement]] = None, line: int = 1):
        super().__init__(NodeType.PROGRAM, line)
        self.statements = list(statements) if statements is not None else []

    def add_statement(self, statement: Statement) -> None:
        """Append a statement; insertion order is execution order."""
        self.statements.append(statement)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_program(self)

    def children(self) -> Iterator[ASTNode]:
        return iter(self.statements)


def iter_nodes(node: ASTNode) -> Iterator[ASTNode]:
    """Pre-order traversal (parent before children, children in order)."""
    stack: List[Any] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(current.children())))


def check_tree_ownership(root: ASTNode) -> None:
    """Raise TreeOwnershipError if any node object is reachable twice."""
    seen = set()
    for node in iter_nodes(root):
        if id(node) in seen:
            raise TreeOwnershipError(
                f"{type(node).__name__} at line {node.line} is shared between two parents"
            )
        seen.add(id(node))
