"""
Literal Parser - Extracted from ProplangTransformer
Handles boolean literals and identifiers
"""

from lark.lexer import Token

from ...shared import BooleanLiteral, Identifier


class LiteralParser:
    """Dedicated parser for leaf tokens"""

    @staticmethod
    def parse(token: Token):
        """Parse a TRUE/FALSE/IDENTIFIER token into the matching leaf node"""
        if token.type == 'TRUE':
            return BooleanLiteral(value=True, line=token.line)
        elif token.type == 'FALSE':
            return BooleanLiteral(value=False, line=token.line)
        return Identifier(name=str(token), line=token.line)
