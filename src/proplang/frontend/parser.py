"""
Parser

Rust Pattern: rustc_parse
"""

from typing import Optional
from pathlib import Path
from lark import Lark
from lark.exceptions import UnexpectedInput, LarkError
import logging

from ..shared.nodes import Program
from ..shared.source_location import SourceLocation
from ..shared.errors import ProplangError, DiagnosticKind
from .transformers.base import ProplangTransformer
from ..utils.config import DEFAULT_PARSER_CACHE_FILE, DEFAULT_SOURCE_FILE

logger = logging.getLogger("proplang.frontend.parser")


class Parser:
    """
    Parser (Rust naming: rustc_parse).

    - Takes source code, returns AST
    - Preserves source lines
    - Wraps Lark errors in ParseError
    - Uses Lark parser with caching
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            str(grammar_path),
            start='program',
            parser='lalr',              # Required for caching
            lexer='basic',              # keyword priorities apply in every parser state
            cache=cache_file,           # Built-in caching
            propagate_positions=True,   # Line tracking for AST nodes
            maybe_placeholders=False,
        )
        self.transformer = ProplangTransformer()

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> Program:
        """
        Parse source code to AST.

        Returns: AST (Program node)
        """
        self.transformer.current_file = source_file
        try:
            tree = self.parser.parse(source)
        except UnexpectedInput as e:
            # UnexpectedEOF reports line -1
            line = e.line if e.line and e.line > 0 else source.count("\n") + 1
            column = e.column if e.column and e.column > 0 else 1
            location = SourceLocation(file=source_file, line=line, column=column)
            raise ParseError(f"Parse error: {_describe(e)}", source_file, location) from e
        except LarkError as e:
            raise ParseError(f"Parse error: {e}", source_file) from e

        ast = self.transformer.transform(tree)
        logger.debug("parsed %s: %d statements", source_file, len(ast.statements))
        return ast


def _describe(error: UnexpectedInput) -> str:
    """One-line summary of a Lark error (the default str() spans several lines)."""
    token = getattr(error, "token", None)
    if token is not None:
        return f"unexpected {token.type} {str(token)!r}"
    char = getattr(error, "char", None)
    if char is not None:
        return f"unexpected character {char!r}"
    return "unexpected end of input"


class ParseError(ProplangError):
    """Parse error with source location"""
    kind = DiagnosticKind.SYNTAX_ERROR

    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None):
        super().__init__(message, location)
        self.source_file = source_file
