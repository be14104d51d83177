#!/usr/bin/env python3
"""
Tests for semantic analysis: symbol facts, diagnostics and statement annotations.
"""

import pytest

from proplang.analysis.annotations import VALIDATION_FAILED, VALIDATION_PASSED
from proplang.passes.base import CompilationContext, PassManager
from proplang.passes.semantic_analysis import SemanticAnalysisPass, SemanticAnalyzer
from proplang.shared.errors import DiagnosticKind, ErrorReporter, TreeOwnershipError
from proplang.shared.nodes import (
    BinaryExpression, ExpressionStatement, Identifier, Program,
)
from proplang.shared.types import BinaryOp, SymbolType


class TestSemanticAnalysis:
    """Analyzer behaviour on small programs"""

    def _analyze(self, source: str, parser):
        reporter = ErrorReporter({})
        analyzer = SemanticAnalyzer(reporter, "main.prop")
        annotated = analyzer.analyze(parser.parse(source, "main.prop"))
        return analyzer, annotated, reporter

    def test_defined_and_used_booleans(self, parser):
        analyzer, annotated, reporter = self._analyze("B := TRUE;\nC := FALSE;\nB OR C;\n", parser)
        table = analyzer.table
        for name, value in (("B", True), ("C", False)):
            entry = table.lookup(name)
            assert entry.symbol_type is SymbolType.BOOLEAN
            assert entry.defined and entry.used
            assert entry.value is value
            assert entry.first_use_line == 3
        assert analyzer.error_count == 0
        assert analyzer.warning_count == 0
        assert not reporter.has_errors()
        assert annotated.summary.success
        assert annotated.summary.symbols_processed == 2

    def test_undefined_variable(self, parser):
        analyzer, annotated, reporter = self._analyze("Y := X;\nY;\n", parser)
        assert analyzer.table.undefined_count == 1
        assert analyzer.error_count == 1
        [error] = reporter.errors
        assert error.kind is DiagnosticKind.UNDEFINED_VARIABLE
        assert error.symbol == "X"
        assert error.line == 1
        assert "X" in error.message
        assert not annotated.summary.success
        assert annotated.summary.analysis_result == "FAILED"

    def test_unused_variable_is_warning(self, parser):
        analyzer, annotated, reporter = self._analyze("Y := TRUE;\n", parser)
        assert analyzer.error_count == 0
        assert analyzer.warning_count == 1
        [warning] = reporter.warnings
        assert warning.kind is DiagnosticKind.UNUSED_VARIABLE
        assert warning.symbol == "Y"
        assert warning.is_warning
        assert annotated.summary.success

    def test_use_before_later_assignment(self, parser):
        analyzer, _, reporter = self._analyze("X;\nX := TRUE;\n", parser)
        entry = analyzer.table.lookup("X")
        assert entry.defined and entry.used
        # First seen on use: the type recorded then is kept
        assert entry.symbol_type is SymbolType.IDENTIFIER
        assert entry.value is None
        assert not reporter.has_errors()

    def test_self_assignment(self, parser):
        analyzer, _, reporter = self._analyze("B := B;\n", parser)
        entry = analyzer.table.lookup("B")
        assert entry.defined and entry.used
        assert not reporter.has_errors()
        assert not reporter.warnings

    def test_only_literals_store_values(self, parser):
        analyzer, _, _ = self._analyze("A := TRUE;\nB := NOT A;\nB;\n", parser)
        assert analyzer.table.lookup("A").value is True
        assert analyzer.table.lookup("B").value is None

    def test_quantifier_is_unknown_and_binds_its_variable(self, parser):
        analyzer, annotated, reporter = self._analyze("EXISTS x (x);\n", parser)
        assert annotated.statements[0].semantic_type is SymbolType.UNKNOWN
        assert annotated.statements[0].fields["Expression"] == "EXISTS"
        assert analyzer.table.count == 0
        assert not reporter.has_errors()

    def test_quantifier_body_free_names_are_uses(self, parser):
        analyzer, annotated, reporter = self._analyze("B := TRUE;\nEXISTS x (B);\n", parser)
        assert analyzer.table.lookup("B").used
        assert not reporter.has_errors()
        assert reporter.warnings == []
        assert annotated.statements[1].semantic_type is SymbolType.UNKNOWN

    def test_quantifier_body_free_undefined_name(self, parser):
        analyzer, annotated, reporter = self._analyze("FORALL x (x AND Q);\n", parser)
        assert analyzer.table.lookup("x") is None
        assert [(e.line, e.symbol) for e in reporter.errors] == [(1, "Q")]
        assert annotated.statements[0].validation == VALIDATION_FAILED

    def test_nested_quantifiers_restore_bindings(self, parser):
        analyzer, _, reporter = self._analyze("FORALL x (EXISTS y (x AND y));\ny;\n", parser)
        assert analyzer.table.lookup("x") is None
        assert [e.symbol for e in reporter.errors] == ["y"]
        assert reporter.errors[0].line == 2

    def test_diagnostics_ordered_by_line_then_name(self, parser):
        _, _, reporter = self._analyze("Z;\nB AND A;\n", parser)
        assert [(e.line, e.symbol) for e in reporter.errors] == [(1, "Z"), (2, "A"), (2, "B")]

    def test_deterministic(self, parser):
        source = "A := TRUE;\nB := A XOR C;\nD := FALSE;\nB;\n"
        first = self._analyze(source, parser)
        second = self._analyze(source, parser)
        assert [(e.name, e.symbol_type, e.defined, e.used) for e in first[0].table] == \
            [(e.name, e.symbol_type, e.defined, e.used) for e in second[0].table]
        assert [e.message for e in first[2].errors + first[2].warnings] == \
            [e.message for e in second[2].errors + second[2].warnings]

    def test_empty_program_has_no_symbols(self, parser):
        analyzer, annotated, reporter = self._analyze("", parser)
        assert analyzer.table.count == 0
        assert annotated.statements == []
        assert not reporter.has_errors() and not reporter.warnings

    def test_expression_types_recorded(self, parser):
        program = parser.parse("A := TRUE;\nNOT A;\n")
        SemanticAnalyzer(ErrorReporter({})).analyze(program)
        assert program.statements[1].expr._type_info is SymbolType.BOOLEAN
        assert program.statements[0].value._is_constant


class TestStatementAnnotations:
    """Per-statement annotation fields"""

    def _annotations(self, source: str, parser):
        return SemanticAnalyzer(ErrorReporter({})).analyze(parser.parse(source)).statements

    def test_assignment_fields(self, parser):
        first, second, third = self._annotations("B := TRUE;\nB := FALSE;\nB;\n", parser)
        assert first.node_type == "ASSIGNMENT"
        assert first.operation == "VARIABLE_ASSIGNMENT"
        assert first.fields == {
            "Target": "B",
            "Type_Check": "BOOLEAN_ASSIGNMENT",
            "Symbol_Table_Entry": "CREATED",
        }
        assert second.fields["Symbol_Table_Entry"] == "UPDATED"
        assert first.validation == VALIDATION_PASSED
        assert third.index == 3

    def test_expression_statement_fields(self, parser):
        [ann] = self._annotations("P IMPLIES Q;\n", parser)
        assert ann.node_type == "EXPRESSION_STMT"
        assert ann.operation == "EXPRESSION_EVALUATION"
        assert ann.semantic_type is SymbolType.BOOLEAN
        assert ann.fields == {
            "Result_Type": "BOOLEAN",
            "Expression": "IMPLIES",
            "Operands": "UNDEFINED_REFERENCE",
        }
        assert ann.validation == VALIDATION_FAILED

    def test_only_offending_statement_fails(self, parser):
        anns = self._annotations("A := TRUE;\nA;\nX;\n", parser)
        assert [a.validation for a in anns] == [VALIDATION_PASSED, VALIDATION_PASSED, VALIDATION_FAILED]
        assert anns[1].fields["Operands"] == "ALL_DEFINED"
        assert anns[1].fields["Expression"] == "IDENTIFIER"


class TestSemanticAnalysisPass:
    """Pass integration with CompilationContext and PassManager"""

    def test_result_stored_in_context(self, parser):
        tcx = CompilationContext("main.prop")
        manager = PassManager()
        manager.register_pass(SemanticAnalysisPass)
        manager.run_all(parser.parse("A := TRUE;\nA;\n"), tcx)
        result = tcx.get_analysis(SemanticAnalysisPass)
        assert result.symbol_table.count == 1
        assert result.annotated.summary.success

    def test_shared_nodes_rejected(self):
        shared = Identifier("A", 1)
        program = Program([ExpressionStatement(BinaryExpression(BinaryOp.AND, shared, shared, 1))])
        with pytest.raises(TreeOwnershipError):
            SemanticAnalysisPass().run(program, CompilationContext())
