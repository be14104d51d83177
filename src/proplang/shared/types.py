"""
Type System

Enums shared by the frontend, the analyzer and the code generator.
Connective and quantifier kinds are structured data, never strings.
"""

from enum import Enum
from typing import Dict, TypeVar

T = TypeVar('T')


class BinaryOp(Enum):
    """Logical connectives (value = canonical source keyword)"""
    AND = "AND"
    OR = "OR"
    XOR = "XOR"
    XNOR = "XNOR"
    IMPLIES = "IMPLIES"
    IFF = "IFF"
    EQUIV = "EQUIV"


class QuantifierKind(Enum):
    """Quantifier kinds (parsed and serialized, never evaluated)"""
    EXISTS = "EXISTS"
    FORALL = "FORALL"


class SymbolType(Enum):
    """
    Inferred type of a symbol or expression.

    Only BOOLEAN carries values; the other members classify names the
    analyzer has seen but cannot (or does not yet) type further.
    """
    BOOLEAN = "BOOLEAN"
    IDENTIFIER = "IDENTIFIER"
    FUNCTION = "FUNCTION"
    PREDICATE = "PREDICATE"
    UNKNOWN = "UNKNOWN"

    def __str__(self) -> str:
        return self.value


# Grammar token type -> connective
TOKEN_TO_BINARY_OP: Dict[str, BinaryOp] = {
    "AND_OP": BinaryOp.AND,
    "OR_OP": BinaryOp.OR,
    "XOR_OP": BinaryOp.XOR,
    "XNOR_OP": BinaryOp.XNOR,
    "IMPLIES_OP": BinaryOp.IMPLIES,
    "IFF_OP": BinaryOp.IFF,
    "EQUIV_OP": BinaryOp.EQUIV,
}
