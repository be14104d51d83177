"""
Proplang AST Transformers
=========================

Specialized transformers for different AST node types.
"""

from .base import ProplangTransformer
from .literals import LiteralParser
from .expressions import BinaryExpressionParser

__all__ = [
    'ProplangTransformer',
    'LiteralParser',
    'BinaryExpressionParser',
]
