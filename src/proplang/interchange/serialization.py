"""
AST Serialization to S-Expressions
==================================

Converts an AST to a canonical S-expression and back. Used to embed statement
trees in the annotated AST artifact and for debugging dumps.

    (program :line 1 :statements
      ((assignment "B" (boolean true :line 1) :line 1)
       (expression-stmt (binary-op or (identifier "B" :line 3) (identifier "C" :line 3) :line 3) :line 3)))

Uses structured sexpr (nested lists + sexpdata.Symbol), then pretty-prints for
readable output. Names are strings (quoted); tags, operators, keywords and
booleans are symbols (unquoted).
"""

from typing import Any, Dict, List, Tuple

import sexpdata

from ..shared.errors import DecodeError, UnsupportedConstructError
from ..shared.nodes import (
    ASTNode, Assignment, BinaryExpression, BooleanLiteral, Expression,
    ExpressionStatement, Identifier, Program, Quantifier, Statement, UnaryNot,
)
from ..shared.types import BinaryOp, QuantifierKind


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = "  ", max_line: int = 100) -> str:
    """
    Pretty-print structured sexpr. Keeps short forms on one line; breaks only when needed.
    """
    # Check Symbol before str (sexpdata.Symbol subclasses str)
    if isinstance(sexpr, sexpdata.Symbol):
        return sexpr.value()
    if isinstance(sexpr, int):
        return str(sexpr)
    if isinstance(sexpr, str):
        return sexpdata.dumps(sexpr)
    if isinstance(sexpr, list):
        if not sexpr:
            return "()"
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
        one_line = "(" + " ".join(parts) + ")"
        if len(one_line) <= max_line and "\n" not in one_line:
            return one_line
        prefix = indent_str * indent
        next_prefix = indent_str * (indent + 1)
        # First element on same line as ( to avoid orphan (; no space after (
        rest = "\n".join(next_prefix + p for p in parts[1:])
        inner = parts[0] + ("\n" + rest if rest else "")
        return f"({inner}\n{prefix})"
    return str(sexpr)


def serialize_ast(node: ASTNode, pretty: bool = True) -> str:
    """
    Serialize an AST node to an S-expression string.

    Args:
        node: root of the tree to serialize
        pretty: Use pretty-printed format (default True). Set False for a
            compact single line (used inside the annotated artifact).
    """
    sexpr = ASTSerializer().serialize_to_sexpr(node)
    if pretty:
        return _pretty_dumps(sexpr)
    return sexpdata.dumps(sexpr)


class ASTSerializer:
    """AST to structured S-expression serializer."""

    def _sym(self, s: str) -> sexpdata.Symbol:
        """Convert string to Symbol (no quotes in output)."""
        return sexpdata.Symbol(s)

    def serialize_to_sexpr(self, node: ASTNode) -> list:
        method = getattr(self, f"_serialize_{type(node).__name__}", None)
        if method is None:
            raise UnsupportedConstructError(f"cannot serialize {type(node).__name__}")
        return method(node)

    def _with_line(self, node: ASTNode, core: list) -> list:
        return core + [self._sym(":line"), node.line]

    def _serialize_Identifier(self, node: Identifier) -> list:
        return self._with_line(node, [self._sym("identifier"), node.name])

    def _serialize_BooleanLiteral(self, node: BooleanLiteral) -> list:
        return self._with_line(node, [self._sym("boolean"), self._sym("true" if node.value else "false")])

    def _serialize_BinaryExpression(self, node: BinaryExpression) -> list:
        """(binary-op or LEFT RIGHT :line N)"""
        core = [
            self._sym("binary-op"),
            self._sym(node.operator.value.lower()),
            self.serialize_to_sexpr(node.left),
            self.serialize_to_sexpr(node.right),
        ]
        return self._with_line(node, core)

    def _serialize_UnaryNot(self, node: UnaryNot) -> list:
        return self._with_line(node, [self._sym("not"), self.serialize_to_sexpr(node.operand)])

    def _serialize_Quantifier(self, node: Quantifier) -> list:
        """(quantifier exists "x" BODY :line N)"""
        core = [
            self._sym("quantifier"),
            self._sym(node.kind.value.lower()),
            node.variable,
            self.serialize_to_sexpr(node.body),
        ]
        return self._with_line(node, core)

    def _serialize_Assignment(self, node: Assignment) -> list:
        return self._with_line(node, [self._sym("assignment"), node.variable, self.serialize_to_sexpr(node.value)])

    def _serialize_ExpressionStatement(self, node: ExpressionStatement) -> list:
        return self._with_line(node, [self._sym("expression-stmt"), self.serialize_to_sexpr(node.expr)])

    def _serialize_Program(self, node: Program) -> list:
        statements = [self.serialize_to_sexpr(s) for s in node.statements]
        return [self._sym("program"), self._sym(":line"), node.line, self._sym(":statements"), statements]


# ============================================================================
# Reading
# ============================================================================

# Unterminated strings and dangling escapes surface from the reader as
# AttributeError / IndexError rather than its own exception types.
_READ_ERRORS = (
    sexpdata.ExpectClosingBracket, sexpdata.ExpectNothing, sexpdata.ExpectSExp,
    AttributeError, IndexError,
)


def loads(text: str) -> Any:
    """Read exactly one S-expression into structured sexpr."""
    try:
        # nil and t stay plain symbols; only () is an empty list
        forms = sexpdata.parse(text, nil=None, true=None)
    except _READ_ERRORS as e:
        raise DecodeError(f"malformed S-expression: {e}") from e
    if len(forms) != 1:
        raise DecodeError(f"expected one S-expression, found {len(forms)}")
    return forms[0]


# ============================================================================
# Deserialization
# ============================================================================

def _is_symbol(x: Any) -> bool:
    return isinstance(x, sexpdata.Symbol)


def _plist(tail: list) -> Tuple[list, Dict[str, Any]]:
    """Split a form's tail into positional items and trailing :keyword options."""
    pos: List[Any] = []
    opts: Dict[str, Any] = {}
    i = 0
    while i < len(tail):
        item = tail[i]
        if _is_symbol(item) and item.startswith(":"):
            if i + 1 >= len(tail):
                raise DecodeError(f"keyword {item.value()} has no value")
            opts[item.value()] = tail[i + 1]
            i += 2
            continue
        if opts:
            raise DecodeError(f"positional item after keyword options: {item!r}")
        pos.append(item)
        i += 1
    return pos, opts


_BINARY_OPS = {op.value.lower(): op for op in BinaryOp}
_QUANTIFIERS = {kind.value.lower(): kind for kind in QuantifierKind}


class ASTDeserializer:
    """Structured S-expression to AST. Every malformed form raises DecodeError."""

    def deserialize(self, sexpr: Any) -> ASTNode:
        if not isinstance(sexpr, list) or not sexpr or not _is_symbol(sexpr[0]):
            raise DecodeError(f"expected a tagged form, found {sexpr!r}")
        tag = sexpr[0].value()
        method = getattr(self, f"_deserialize_{tag.replace('-', '_')}", None)
        if method is None:
            raise UnsupportedConstructError(f"unknown form tag {tag!r}")
        pos, opts = _plist(sexpr[1:])
        return method(tag, pos, opts)

    def _line(self, tag: str, opts: Dict[str, Any]) -> int:
        line = opts.get(":line")
        if not isinstance(line, int) or isinstance(line, bool) or line < 0:
            raise DecodeError(f"({tag} ...) needs a non-negative :line, found {line!r}")
        return line

    def _arity(self, tag: str, pos: list, n: int) -> None:
        if len(pos) != n:
            raise DecodeError(f"({tag} ...) takes {n} positional items, found {len(pos)}")

    def _name(self, tag: str, x: Any) -> str:
        if not isinstance(x, str) or _is_symbol(x) or not x:
            raise DecodeError(f"({tag} ...) expects a quoted name, found {x!r}")
        return x

    def _keyword(self, x: Any) -> str:
        """Symbol text, or '' for anything that is not a symbol."""
        return x.value() if _is_symbol(x) else ""

    def _expression(self, sexpr: Any) -> Expression:
        node = self.deserialize(sexpr)
        if not isinstance(node, Expression):
            raise DecodeError(f"expected an expression, found {type(node).__name__}")
        return node

    def _statement(self, sexpr: Any) -> Statement:
        node = self.deserialize(sexpr)
        if not isinstance(node, Statement):
            raise DecodeError(f"expected a statement, found {type(node).__name__}")
        return node

    def _deserialize_identifier(self, tag: str, pos: list, opts: dict) -> Identifier:
        self._arity(tag, pos, 1)
        return Identifier(self._name(tag, pos[0]), self._line(tag, opts))

    def _deserialize_boolean(self, tag: str, pos: list, opts: dict) -> BooleanLiteral:
        self._arity(tag, pos, 1)
        value = self._keyword(pos[0])
        if value not in ("true", "false"):
            raise DecodeError(f"boolean value must be true or false, found {pos[0]!r}")
        return BooleanLiteral(value == "true", self._line(tag, opts))

    def _deserialize_binary_op(self, tag: str, pos: list, opts: dict) -> BinaryExpression:
        self._arity(tag, pos, 3)
        op = self._keyword(pos[0])
        if op not in _BINARY_OPS:
            raise UnsupportedConstructError(f"unknown connective {pos[0]!r}")
        return BinaryExpression(
            _BINARY_OPS[op], self._expression(pos[1]), self._expression(pos[2]), self._line(tag, opts)
        )

    def _deserialize_not(self, tag: str, pos: list, opts: dict) -> UnaryNot:
        self._arity(tag, pos, 1)
        return UnaryNot(self._expression(pos[0]), self._line(tag, opts))

    def _deserialize_quantifier(self, tag: str, pos: list, opts: dict) -> Quantifier:
        self._arity(tag, pos, 3)
        kind = self._keyword(pos[0])
        if kind not in _QUANTIFIERS:
            raise UnsupportedConstructError(f"unknown quantifier {pos[0]!r}")
        return Quantifier(_QUANTIFIERS[kind], self._name(tag, pos[1]), self._expression(pos[2]), self._line(tag, opts))

    def _deserialize_assignment(self, tag: str, pos: list, opts: dict) -> Assignment:
        self._arity(tag, pos, 2)
        return Assignment(self._name(tag, pos[0]), self._expression(pos[1]), self._line(tag, opts))

    def _deserialize_expression_stmt(self, tag: str, pos: list, opts: dict) -> ExpressionStatement:
        self._arity(tag, pos, 1)
        return ExpressionStatement(self._expression(pos[0]), self._line(tag, opts))

    def _deserialize_program(self, tag: str, pos: list, opts: dict) -> Program:
        self._arity(tag, pos, 0)
        statements = opts.get(":statements", [])
        if not isinstance(statements, list):
            raise DecodeError(f":statements must be a list, found {statements!r}")
        return Program([self._statement(s) for s in statements], self._line(tag, opts))


def deserialize_ast(sexpr_str: str) -> ASTNode:
    """
    Deserialize an S-expression string to an AST node.
    """
    return ASTDeserializer().deserialize(loads(sexpr_str))
