"""
Shared components: AST, types, diagnostics.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, DiagnosticKind,
    ProplangError, DecodeError, UnsupportedConstructError, RegisterPressureExceededError,
    ArtifactIOError, UpstreamStageError, TreeOwnershipError, MachineFault,
)
from .types import BinaryOp, QuantifierKind, SymbolType
from .nodes import (
    ASTNode, Expression, Statement, Program, NodeType,
    Identifier, BooleanLiteral, BinaryExpression, UnaryNot, Quantifier,
    Assignment, ExpressionStatement,
    iter_nodes, check_tree_ownership,
)
from .ast_visitor import ASTVisitor
