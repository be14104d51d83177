"""
Expression Parser - Extracted from ProplangTransformer
Handles connectives, negation and quantifiers
"""

from typing import Callable, Any
from typing_extensions import TypeAlias
from lark.lexer import Token

from ...shared import BinaryExpression, UnaryNot, Quantifier, QuantifierKind, Expression
from ...shared.types import TOKEN_TO_BINARY_OP

# Type aliases for better clarity
LarkMeta: TypeAlias = Any  # Lark's internal Meta object
LineExtractor: TypeAlias = Callable[[LarkMeta], int]


class BinaryExpressionParser:
    """Dedicated parser for connective, negation and quantifier nodes"""

    def __init__(self, line_extractor: LineExtractor) -> None:
        self.extract_line = line_extractor

    def parse_connective(self, meta: LarkMeta, left: Expression, operator: Token, right: Expression) -> BinaryExpression:
        """Parse any binary connective; the token type selects the operator"""
        # Grammar guarantees operator.type is one of the *_OP terminals
        return BinaryExpression(
            operator=TOKEN_TO_BINARY_OP[operator.type],
            left=left,
            right=right,
            line=self.extract_line(meta),
        )

    def parse_not(self, meta: LarkMeta, operand: Expression) -> UnaryNot:
        """Parse prefix NOT / ! / ~"""
        return UnaryNot(operand=operand, line=self.extract_line(meta))

    def parse_quantifier(self, meta: LarkMeta, kind: Token, variable: Token, body: Expression) -> Quantifier:
        """Parse EXISTS x (body) / FORALL x (body)"""
        return Quantifier(
            kind=QuantifierKind(str(kind)),
            variable=str(variable),
            body=body,
            line=self.extract_line(meta),
        )
