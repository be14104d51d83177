"""
Semantic Analysis Pass

Rust Pattern: rustc_resolve + rustc_hir_typeck (collapsed for a boolean-only language)

Single walk in statement order. Every expression in this language is boolean
except quantifiers, which are represented but not analysed. Definition/use
facts go to the SymbolTable; diagnostics are raised once the walk is done so
that a use followed by a later assignment is not reported.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from ..analysis.annotations import (
    AnnotatedProgram, SemanticSummary, StatementAnnotation, SymbolReference,
    VALIDATION_FAILED, VALIDATION_PASSED,
)
from ..analysis.symbol_table import SymbolTable
from ..passes.base import BasePass, CompilationContext
from ..shared.ast_visitor import ASTVisitor
from ..shared.errors import DiagnosticKind, ErrorReporter
from ..shared.nodes import (
    Assignment, BinaryExpression, BooleanLiteral, ExpressionStatement,
    Identifier, Program, Quantifier, Statement, UnaryNot, check_tree_ownership,
)
from ..shared.source_location import SourceLocation
from ..shared.types import SymbolType

logger = logging.getLogger("proplang.passes.semantic_analysis")


@dataclass
class SemanticAnalysisResult:
    """Stored in CompilationContext under SemanticAnalysisPass"""
    annotated: AnnotatedProgram
    symbol_table: SymbolTable


class SemanticAnalysisPass(BasePass):
    """
    Semantic analysis pass.

    Builds the symbol table, reports undefined (error) and unused (warning)
    variables and produces the annotated program.
    """
    requires = []

    def run(self, program: Program, tcx: CompilationContext) -> Program:
        check_tree_ownership(program)
        analyzer = SemanticAnalyzer(tcx.reporter, tcx.source_file)
        annotated = analyzer.analyze(program)
        tcx.set_analysis(SemanticAnalysisPass, SemanticAnalysisResult(annotated, analyzer.table))
        return program


class SemanticAnalyzer(ASTVisitor[SymbolType]):
    """
    Tree walk computing types and symbol facts.

    visit_* methods return the inferred type of the node and record it in the
    node's _type_info slot.
    """

    def __init__(self, reporter: ErrorReporter, source_file: str = "<input>"):
        self.reporter = reporter
        self.source_file = source_file
        self.table = SymbolTable()
        self.error_count = 0
        self.warning_count = 0
        # Names referenced by the statement currently being analysed
        self._references: Set[str] = set()
        # Variables bound by the enclosing quantifiers, innermost last
        self._bound: List[str] = []

    def analyze(self, program: Program) -> AnnotatedProgram:
        references: List[Set[str]] = []
        created: List[bool] = []
        for stmt in program.statements:
            self._references = set()
            created.append(isinstance(stmt, Assignment) and stmt.variable not in self.table)
            stmt.accept(self)
            references.append(self._references)

        self._report_undefined()
        self._report_unused()

        undefined = {entry.name for entry in self.table if entry.is_undefined}
        statements = [
            self._annotate(i, stmt, refs & undefined, was_created)
            for i, (stmt, refs, was_created) in enumerate(zip(program.statements, references, created), 1)
        ]
        summary = SemanticSummary(
            symbols_processed=self.table.count,
            errors_found=self.error_count,
            warnings_issued=self.warning_count,
        )
        symbols = [SymbolReference.from_entry(entry) for entry in self.table]
        logger.debug(
            "analysed %d statements: %d symbols, %d errors, %d warnings",
            len(program.statements), self.table.count, self.error_count, self.warning_count,
        )
        return AnnotatedProgram(program=program, statements=statements, summary=summary, symbols=symbols)

    # --- expressions ---

    def visit_identifier(self, node: Identifier) -> SymbolType:
        if node.name in self._bound:
            node._type_info = SymbolType.BOOLEAN
            return SymbolType.BOOLEAN
        self.table.mark_used(node.name, node.line)
        self._references.add(node.name)
        node._type_info = SymbolType.BOOLEAN
        return SymbolType.BOOLEAN

    def visit_boolean_literal(self, node: BooleanLiteral) -> SymbolType:
        node._type_info = SymbolType.BOOLEAN
        node._is_constant = True
        return SymbolType.BOOLEAN

    def visit_binary_expression(self, node: BinaryExpression) -> SymbolType:
        node.left.accept(self)
        node.right.accept(self)
        # No folding: a connective of two constants is still not a constant
        node._type_info = SymbolType.BOOLEAN
        return SymbolType.BOOLEAN

    def visit_unary_not(self, node: UnaryNot) -> SymbolType:
        node.operand.accept(self)
        node._type_info = SymbolType.BOOLEAN
        return SymbolType.BOOLEAN

    def visit_quantifier(self, node: Quantifier) -> SymbolType:
        # Free names in the body count as uses; the quantifier itself stays unevaluated
        self._bound.append(node.variable)
        try:
            node.body.accept(self)
        finally:
            self._bound.pop()
        node._type_info = SymbolType.UNKNOWN
        return SymbolType.UNKNOWN

    # --- statements ---

    def visit_assignment(self, node: Assignment) -> SymbolType:
        self.table.insert(node.variable, SymbolType.BOOLEAN, node.line)
        node.value.accept(self)
        value: Optional[bool] = node.value.value if isinstance(node.value, BooleanLiteral) else None
        self.table.set_value(node.variable, value, node.line)
        node._type_info = SymbolType.BOOLEAN
        return SymbolType.BOOLEAN

    def visit_expression_statement(self, node: ExpressionStatement) -> SymbolType:
        node._type_info = node.expr.accept(self)
        return node._type_info

    def visit_program(self, node: Program) -> SymbolType:
        for stmt in node.statements:
            stmt.accept(self)
        return SymbolType.UNKNOWN

    # --- diagnostics ---

    def _location(self, line: int) -> SourceLocation:
        return SourceLocation(file=self.source_file, line=line)

    def _report_undefined(self) -> None:
        entries = sorted((e for e in self.table if e.is_undefined), key=lambda e: (e.first_use_line, e.name))
        for entry in entries:
            self.reporter.report_error(
                f"Variable '{entry.name}' is used but never assigned",
                self._location(entry.first_use_line),
                kind=DiagnosticKind.UNDEFINED_VARIABLE,
                symbol=entry.name,
                help=f"assign `{entry.name}` before using it",
            )
            self.error_count += 1

    def _report_unused(self) -> None:
        entries = sorted((e for e in self.table if e.is_unused), key=lambda e: (e.declaration_line, e.name))
        for entry in entries:
            self.reporter.report_warning(
                f"Variable '{entry.name}' is assigned but never used",
                self._location(entry.declaration_line),
                kind=DiagnosticKind.UNUSED_VARIABLE,
                symbol=entry.name,
            )
            self.warning_count += 1

    # --- annotations ---

    def _annotate(self, index: int, stmt: Statement, undefined_refs: Set[str], created: bool) -> StatementAnnotation:
        validation = VALIDATION_FAILED if undefined_refs else VALIDATION_PASSED
        semantic_type = stmt._type_info or SymbolType.UNKNOWN
        if isinstance(stmt, Assignment):
            return StatementAnnotation(
                index=index,
                node_type="ASSIGNMENT",
                line=stmt.line,
                semantic_type=semantic_type,
                operation="VARIABLE_ASSIGNMENT",
                fields={
                    "Target": stmt.variable,
                    "Type_Check": "BOOLEAN_ASSIGNMENT",
                    "Symbol_Table_Entry": "CREATED" if created else "UPDATED",
                },
                validation=validation,
            )
        expr = stmt.expr
        return StatementAnnotation(
            index=index,
            node_type="EXPRESSION_STMT",
            line=stmt.line,
            semantic_type=semantic_type,
            operation="EXPRESSION_EVALUATION",
            fields={
                "Result_Type": str(semantic_type),
                "Expression": _expression_kind(expr),
                "Operands": "UNDEFINED_REFERENCE" if undefined_refs else "ALL_DEFINED",
            },
            validation=validation,
        )


def _expression_kind(expr) -> str:
    if isinstance(expr, BinaryExpression):
        return expr.operator.value
    if isinstance(expr, Quantifier):
        return expr.kind.value
    if isinstance(expr, UnaryNot):
        return "NOT"
    if isinstance(expr, BooleanLiteral):
        return "BOOLEAN"
    return "IDENTIFIER"
