"""
Proplang AST Transformer
Converts Lark parse tree to Proplang AST nodes
"""

from lark import Transformer, v_args
from lark.lexer import Token
from typing import Any
from typing_extensions import TypeAlias
import logging

from ...shared import (
    Program, Statement, Assignment, ExpressionStatement,
    Expression, BinaryExpression, UnaryNot, Quantifier,
    BooleanLiteral, Identifier,
)
from .literals import LiteralParser
from .expressions import BinaryExpressionParser

# Lark Meta object contains location information
LarkMeta: TypeAlias = Any

logger: logging.Logger = logging.getLogger(__name__)


@v_args(inline=True, meta=True)
class ProplangTransformer(Transformer):
    """
    Proplang AST Transformer

    Every node gets the line of the first token of its rule; leaves take the
    line straight from their token.
    """

    def __init__(self) -> None:
        super().__init__()
        self.expression_parser: BinaryExpressionParser = BinaryExpressionParser(self._extract_line)
        self.current_file: str = ""

    def _extract_line(self, meta: LarkMeta) -> int:
        """Extract line from Lark meta object (empty rules have no position)"""
        if meta is None or getattr(meta, "empty", True):
            return 1
        return meta.line or 1

    # =========================================================================
    # PROGRAM STRUCTURE
    # =========================================================================

    def program(self, meta: LarkMeta, *statements: Statement) -> Program:
        program = Program(line=self._extract_line(meta))
        for stmt in statements:
            program.add_statement(stmt)
        logger.debug("built program with %d statements", len(program.statements))
        return program

    def assignment(self, meta: LarkMeta, name: Token, value: Expression) -> Assignment:
        """Grammar: IDENTIFIER ":=" expr - ":=" filtered"""
        return Assignment(variable=str(name), value=value, line=name.line)

    def expression_statement(self, meta: LarkMeta, expr: Expression) -> ExpressionStatement:
        return ExpressionStatement(expr=expr, line=self._extract_line(meta))

    # =========================================================================
    # OPERATIONS - USING ALIASES
    # =========================================================================

    def binary_expr(self, meta: LarkMeta, left: Expression, operator: Token, right: Expression) -> BinaryExpression:
        return self.expression_parser.parse_connective(meta, left, operator, right)

    def not_expr(self, meta: LarkMeta, operator: Token, operand: Expression) -> UnaryNot:
        return self.expression_parser.parse_not(meta, operand)

    def quantifier(self, meta: LarkMeta, kind: Token, variable: Token, body: Expression) -> Quantifier:
        return self.expression_parser.parse_quantifier(meta, kind, variable, body)

    # =========================================================================
    # LEAVES
    # =========================================================================

    def true_literal(self, meta: LarkMeta, token: Token) -> BooleanLiteral:
        return LiteralParser.parse(token)

    def false_literal(self, meta: LarkMeta, token: Token) -> BooleanLiteral:
        return LiteralParser.parse(token)

    def identifier(self, meta: LarkMeta, name: Token) -> Identifier:
        return LiteralParser.parse(name)
