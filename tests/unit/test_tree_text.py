#!/usr/bin/env python3
"""
Tests for the indented tree text codec (ast.txt body).
"""

import io

import pytest

from proplang.interchange.tree_text import decode_program, decode_tree, encode_tree, write_tree
from proplang.shared.errors import DecodeError, UnsupportedConstructError
from proplang.shared.nodes import (
    Assignment, BinaryExpression, BooleanLiteral, ExpressionStatement, Identifier,
    Program, Quantifier, UnaryNot,
)
from proplang.shared.types import BinaryOp, QuantifierKind
from tests.test_utils import random_program


def _sample_program() -> Program:
    return Program([
        Assignment("B", BooleanLiteral(True, 1), 1),
        ExpressionStatement(UnaryNot(Identifier("B", 2), 2)),
    ])


class TestTreeEncoding:
    """Exact layout of the encoded text"""

    def test_sample_layout(self):
        expected = (
            "PROGRAM (line 1) - 2 statements\n"
            "  Statement 1:\n"
            "    ASSIGNMENT (line 1)\n"
            "      Variable: B\n"
            "      Value:\n"
            "        BOOLEAN: TRUE (line 1)\n"
            "  Statement 2:\n"
            "    EXPRESSION_STMT (line 2)\n"
            "      NOT (line 2)\n"
            "        Operand:\n"
            "          IDENTIFIER: B (line 2)\n"
        )
        assert encode_tree(_sample_program()) == expected

    def test_single_statement_noun(self):
        text = encode_tree(Program([ExpressionStatement(BooleanLiteral(False, 1))]))
        assert text.splitlines()[0] == "PROGRAM (line 1) - 1 statement"

    def test_binary_labels(self):
        text = encode_tree(BinaryExpression(BinaryOp.XNOR, Identifier("a", 5), Identifier("b", 5), 5))
        assert text.splitlines() == [
            "XNOR (line 5)",
            "  Left:",
            "    IDENTIFIER: a (line 5)",
            "  Right:",
            "    IDENTIFIER: b (line 5)",
        ]

    def test_quantifier_layout(self):
        text = encode_tree(Quantifier(QuantifierKind.FORALL, "x", Identifier("x", 3), 3))
        assert text.splitlines() == [
            "FORALL (line 3)",
            "  Variable: x",
            "  Expression:",
            "    IDENTIFIER: x (line 3)",
        ]

    def test_write_at_depth(self):
        out = io.StringIO()
        write_tree(Identifier("B", 1), out, depth=2)
        assert out.getvalue() == "    IDENTIFIER: B (line 1)\n"


class TestTreeRoundTrip:
    """decode(encode(t)) == t"""

    def test_sample(self):
        program = _sample_program()
        assert decode_program(encode_tree(program)) == program

    def test_empty_program(self):
        assert decode_program(encode_tree(Program())) == Program()

    def test_every_connective(self):
        for op in BinaryOp:
            expr = BinaryExpression(op, Identifier("p", 1), BooleanLiteral(False, 1), 1)
            assert decode_tree(encode_tree(expr)) == expr

    def test_quantifiers(self):
        for kind in QuantifierKind:
            expr = Quantifier(kind, "x", BinaryExpression(BinaryOp.OR, Identifier("x", 2), Identifier("y", 2), 2), 2)
            assert decode_tree(encode_tree(expr)) == expr

    @pytest.mark.parametrize("seed", range(25))
    def test_random_programs(self, seed):
        program = random_program(seed)
        assert decode_program(encode_tree(program)) == program

    def test_comments_and_blank_lines_ignored(self):
        text = "# header\n\n" + encode_tree(_sample_program()) + "\n# trailer\n"
        assert decode_program(text) == _sample_program()


class TestTreeDecodeErrors:
    """Malformed text raises DecodeError with the offending line"""

    def test_unknown_kind_is_unsupported(self):
        with pytest.raises(UnsupportedConstructError):
            decode_tree("NAND (line 1)\n  Left:\n    BOOLEAN: TRUE (line 1)\n")

    def test_odd_indentation(self):
        text = "EXPRESSION_STMT (line 1)\n   IDENTIFIER: B (line 1)\n"
        with pytest.raises(DecodeError) as exc_info:
            decode_tree(text)
        assert exc_info.value.text_line == 2

    def test_tab_indentation(self):
        with pytest.raises(DecodeError):
            decode_tree("EXPRESSION_STMT (line 1)\n\tIDENTIFIER: B (line 1)\n")

    def test_malformed_header(self):
        with pytest.raises(DecodeError):
            decode_tree("IDENTIFIER B line 1\n")

    def test_bad_boolean_payload(self):
        with pytest.raises(DecodeError):
            decode_tree("BOOLEAN: MAYBE (line 1)\n")

    def test_missing_payload(self):
        with pytest.raises(DecodeError):
            decode_tree("IDENTIFIER (line 1)\n")

    def test_missing_child(self):
        with pytest.raises(DecodeError):
            decode_tree("NOT (line 1)\n  Operand:\n")

    def test_wrong_label(self):
        with pytest.raises(DecodeError):
            decode_tree("AND (line 1)\n  Right:\n    BOOLEAN: TRUE (line 1)\n")

    def test_statement_count_too_small(self):
        text = encode_tree(_sample_program()).replace("- 2 statements", "- 1 statement")
        with pytest.raises(DecodeError):
            decode_program(text)

    def test_statement_count_too_large(self):
        text = encode_tree(_sample_program()).replace("- 2 statements", "- 3 statements")
        with pytest.raises(DecodeError):
            decode_program(text)

    def test_statement_where_expression_expected(self):
        text = "NOT (line 1)\n  Operand:\n    EXPRESSION_STMT (line 1)\n      BOOLEAN: TRUE (line 1)\n"
        with pytest.raises(DecodeError) as exc_info:
            decode_tree(text)
        assert exc_info.value.text_line == 3

    def test_trailing_content(self):
        with pytest.raises(DecodeError):
            decode_tree("BOOLEAN: TRUE (line 1)\nBOOLEAN: FALSE (line 1)\n")

    def test_empty_text(self):
        with pytest.raises(DecodeError):
            decode_tree("\n# nothing here\n")

    def test_non_program_root(self):
        with pytest.raises(DecodeError):
            decode_program("BOOLEAN: TRUE (line 1)\n")

    def test_first_line_offset(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tree("BOOLEAN: MAYBE (line 1)\n", first_line=10)
        assert exc_info.value.text_line == 10
