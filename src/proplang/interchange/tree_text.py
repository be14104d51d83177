"""
Indented Tree Text Codec

Line-oriented, human-readable encoding of an AST. Each node is a header line
`KIND (line N)`; children follow one depth level deeper behind a role label.

    PROGRAM (line 1) - 2 statements
      Statement 1:
        ASSIGNMENT (line 1)
          Variable: B
          Value:
            BOOLEAN: TRUE (line 1)
      Statement 2:
        EXPRESSION_STMT (line 2)
          NOT (line 2)
            Operand:
              IDENTIFIER: B (line 2)

Invariant: decode_tree(encode_tree(t)) == t for every tree.
"""

import io
import re
import logging
from typing import List, NamedTuple, Optional, TextIO

from ..shared.ast_visitor import ASTVisitor
from ..shared.errors import DecodeError, UnsupportedConstructError
from ..shared.nodes import (
    ASTNode, Assignment, BinaryExpression, BooleanLiteral, Expression,
    ExpressionStatement, Identifier, Program, Quantifier, Statement, UnaryNot,
)
from ..shared.types import BinaryOp, QuantifierKind
from ..utils.config import INDENT_WIDTH

logger = logging.getLogger("proplang.interchange.tree_text")

# Header: KIND[: payload] (line N)[ - K statements]
_HEADER_RE = re.compile(
    r"^(?P<kind>[A-Z_]+)(?::\s(?P<payload>\S+))?\s\(line\s(?P<line>\d+)\)"
    r"(?:\s-\s(?P<count>\d+)\sstatements?)?$"
)
_STATEMENT_LABEL_RE = re.compile(r"^Statement\s(?P<index>\d+):$")
_VARIABLE_LABEL_RE = re.compile(r"^Variable:\s(?P<name>\S+)$")

KEYWORDS = frozenset(
    ["PROGRAM", "ASSIGNMENT", "EXPRESSION_STMT", "IDENTIFIER", "BOOLEAN", "NOT"]
    + [op.value for op in BinaryOp]
    + [kind.value for kind in QuantifierKind]
)


# ============================================================================
# Encoding
# ============================================================================

class TreeWriter(ASTVisitor[None]):
    """Writes the pre-order text form of a tree to an explicit sink."""

    def __init__(self, out: TextIO, depth: int = 0):
        self.out = out
        self.depth = depth

    def _emit(self, text: str, extra: int = 0) -> None:
        self.out.write(" " * ((self.depth + extra) * INDENT_WIDTH) + text + "\n")

    def _child(self, label: Optional[str], node: ASTNode) -> None:
        if label is None:
            self.depth += 1
            node.accept(self)
            self.depth -= 1
            return
        self._emit(label, 1)
        self.depth += 2
        node.accept(self)
        self.depth -= 2

    def visit_identifier(self, node: Identifier) -> None:
        self._emit(f"IDENTIFIER: {node.name} (line {node.line})")

    def visit_boolean_literal(self, node: BooleanLiteral) -> None:
        self._emit(f"BOOLEAN: {'TRUE' if node.value else 'FALSE'} (line {node.line})")

    def visit_binary_expression(self, node: BinaryExpression) -> None:
        self._emit(f"{node.operator.value} (line {node.line})")
        self._child("Left:", node.left)
        self._child("Right:", node.right)

    def visit_unary_not(self, node: UnaryNot) -> None:
        self._emit(f"NOT (line {node.line})")
        self._child("Operand:", node.operand)

    def visit_quantifier(self, node: Quantifier) -> None:
        self._emit(f"{node.kind.value} (line {node.line})")
        self._emit(f"Variable: {node.variable}", 1)
        self._child("Expression:", node.body)

    def visit_assignment(self, node: Assignment) -> None:
        self._emit(f"ASSIGNMENT (line {node.line})")
        self._emit(f"Variable: {node.variable}", 1)
        self._child("Value:", node.value)

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        self._emit(f"EXPRESSION_STMT (line {node.line})")
        self._child(None, node.expr)

    def visit_program(self, node: Program) -> None:
        count = len(node.statements)
        noun = "statement" if count == 1 else "statements"
        self._emit(f"PROGRAM (line {node.line}) - {count} {noun}")
        for i, stmt in enumerate(node.statements, 1):
            self._child(f"Statement {i}:", stmt)


def write_tree(node: ASTNode, out: TextIO, depth: int = 0) -> None:
    node.accept(TreeWriter(out, depth))


def encode_tree(node: ASTNode) -> str:
    buffer = io.StringIO()
    write_tree(node, buffer)
    return buffer.getvalue()


# ============================================================================
# Decoding
# ============================================================================

class _Line(NamedTuple):
    number: int   # 1-based line number within the artifact text
    depth: int
    text: str     # content with indentation removed


class TreeReader:
    """
    Recursive-descent decoder over indented tree text.

    Blank lines and `#` comment lines are ignored. `first_line` offsets the
    reported line numbers when the tree is embedded in a larger artifact.
    """

    def __init__(self, text: str, first_line: int = 1):
        self._lines = self._scan(text, first_line)
        self._pos = 0

    @staticmethod
    def _scan(text: str, first_line: int) -> List[_Line]:
        lines = []
        for offset, raw in enumerate(text.splitlines()):
            number = first_line + offset
            stripped = raw.strip()
            if not stripped or stripped.startswith("#"):
                continue
            content = raw.lstrip(" ")
            indent = len(raw) - len(content)
            if content[0].isspace():
                raise DecodeError("indentation must use spaces", number, raw)
            if indent % INDENT_WIDTH:
                raise DecodeError(f"indentation of {indent} is not a multiple of {INDENT_WIDTH}", number, raw)
            lines.append(_Line(number, indent // INDENT_WIDTH, content.rstrip()))
        return lines

    def read(self) -> ASTNode:
        """Decode exactly one tree rooted at depth 0."""
        if not self._lines:
            raise DecodeError("empty tree text")
        node = self._node(0)
        if self._pos < len(self._lines):
            extra = self._lines[self._pos]
            raise DecodeError("trailing content after tree", extra.number, extra.text)
        return node

    # --- line cursor ---

    def _next(self, depth: int, what: str) -> _Line:
        if self._pos >= len(self._lines):
            last = self._lines[-1]
            raise DecodeError(f"unexpected end of tree text, expected {what}", last.number, last.text)
        line = self._lines[self._pos]
        if line.depth != depth:
            raise DecodeError(f"expected {what} at depth {depth}, found depth {line.depth}", line.number, line.text)
        self._pos += 1
        return line

    def _label(self, depth: int, label: str) -> None:
        line = self._next(depth, f"'{label}'")
        if line.text != label:
            raise DecodeError(f"expected '{label}'", line.number, line.text)

    def _variable(self, depth: int) -> str:
        line = self._next(depth, "'Variable: name'")
        match = _VARIABLE_LABEL_RE.match(line.text)
        if match is None:
            raise DecodeError("expected 'Variable: name'", line.number, line.text)
        return match.group("name")

    # --- nodes ---

    def _node(self, depth: int) -> ASTNode:
        line = self._next(depth, "a node header")
        match = _HEADER_RE.match(line.text)
        if match is None:
            raise DecodeError("malformed node header", line.number, line.text)
        kind = match.group("kind")
        if kind not in KEYWORDS:
            raise UnsupportedConstructError(f"unknown node kind {kind!r} at artifact line {line.number}")
        payload = match.group("payload")
        count = match.group("count")
        source_line = int(match.group("line"))

        if (payload is not None) != (kind in ("IDENTIFIER", "BOOLEAN")):
            raise DecodeError(f"unexpected payload for {kind}", line.number, line.text)
        if (count is not None) != (kind == "PROGRAM"):
            raise DecodeError(f"unexpected statement count for {kind}", line.number, line.text)

        if kind == "IDENTIFIER":
            return Identifier(payload, source_line)
        if kind == "BOOLEAN":
            if payload not in ("TRUE", "FALSE"):
                raise DecodeError("boolean payload must be TRUE or FALSE", line.number, line.text)
            return BooleanLiteral(payload == "TRUE", source_line)
        if kind == "NOT":
            self._label(depth + 1, "Operand:")
            return UnaryNot(self._expression(depth + 2), source_line)
        if kind in ("EXISTS", "FORALL"):
            variable = self._variable(depth + 1)
            self._label(depth + 1, "Expression:")
            return Quantifier(QuantifierKind(kind), variable, self._expression(depth + 2), source_line)
        if kind == "ASSIGNMENT":
            variable = self._variable(depth + 1)
            self._label(depth + 1, "Value:")
            return Assignment(variable, self._expression(depth + 2), source_line)
        if kind == "EXPRESSION_STMT":
            return ExpressionStatement(self._expression(depth + 1), source_line)
        if kind == "PROGRAM":
            return self._program(depth, int(count), source_line)

        self._label(depth + 1, "Left:")
        left = self._expression(depth + 2)
        self._label(depth + 1, "Right:")
        right = self._expression(depth + 2)
        return BinaryExpression(BinaryOp(kind), left, right, source_line)

    def _program(self, depth: int, count: int, source_line: int) -> Program:
        program = Program(line=source_line)
        for expected in range(1, count + 1):
            line = self._next(depth + 1, f"'Statement {expected}:'")
            match = _STATEMENT_LABEL_RE.match(line.text)
            if match is None or int(match.group("index")) != expected:
                raise DecodeError(f"expected 'Statement {expected}:'", line.number, line.text)
            program.add_statement(self._statement(depth + 2))
        if self._pos < len(self._lines) and self._lines[self._pos].depth > depth:
            extra = self._lines[self._pos]
            raise DecodeError(f"program declares {count} statements but has more", extra.number, extra.text)
        return program

    def _expression(self, depth: int) -> Expression:
        start = self._lines[self._pos] if self._pos < len(self._lines) else None
        node = self._node(depth)
        if not isinstance(node, Expression):
            raise DecodeError(f"expected an expression, found {type(node).__name__}", start.number, start.text)
        return node

    def _statement(self, depth: int) -> Statement:
        start = self._lines[self._pos] if self._pos < len(self._lines) else None
        node = self._node(depth)
        if not isinstance(node, Statement):
            raise DecodeError(f"expected a statement, found {type(node).__name__}", start.number, start.text)
        return node


def decode_tree(text: str, first_line: int = 1) -> ASTNode:
    node = TreeReader(text, first_line).read()
    logger.debug("decoded %s from %d text lines", type(node).__name__, len(text.splitlines()))
    return node


def decode_program(text: str, first_line: int = 1) -> Program:
    """Decode text that must hold a PROGRAM root."""
    node = decode_tree(text, first_line)
    if not isinstance(node, Program):
        raise DecodeError(f"expected a PROGRAM root, found {type(node).__name__}")
    return node
