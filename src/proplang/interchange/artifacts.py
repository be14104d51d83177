"""
Stage Artifacts

Writers (and, where a later stage consumes them, readers) for the files that
cross stage boundaries:

- ast.txt            AST dump (indented tree text)
- annotated_ast.txt  program + semantic annotations; each statement carries its
                     tree as a one-line S-expression so the file decodes losslessly
- symbol_table.txt   symbol table dump
- semantic_errors.txt diagnostics report
- program.s          register-machine listing (see backends.register_machine)
- generation_errors.txt code generation report
"""

import io
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..analysis.annotations import (
    AnnotatedProgram, SemanticSummary, StatementAnnotation, SymbolReference,
    VALIDATION_FAILED, VALIDATION_PASSED,
)
from ..analysis.symbol_table import SymbolEntry
from ..shared.errors import DecodeError, Error
from ..shared.nodes import Program, Statement
from ..shared.types import SymbolType
from ..utils.config import ANNOTATED_AST_FILE, AST_DUMP_FILE, DEFAULT_SOURCE_FILE
from .serialization import deserialize_ast, serialize_ast
from .tree_text import decode_program, write_tree

logger = logging.getLogger("proplang.interchange.artifacts")


# ============================================================================
# ast.txt
# ============================================================================

def format_ast_dump(program: Program, source_name: str = DEFAULT_SOURCE_FILE) -> str:
    out = io.StringIO()
    out.write("# Abstract Syntax Tree (AST)\n")
    out.write("# Generated by the parse stage\n")
    out.write(f"# Input: {source_name}\n")
    out.write("#\n\n")
    write_tree(program, out)
    out.write("\n# End of AST\n")
    return out.getvalue()


def read_ast_dump(text: str) -> Program:
    return decode_program(text)


# ============================================================================
# symbol_table.txt
# ============================================================================

_SYMBOL_ROW = "{:<12} {:<10} {:<8} {:<8} {:<6} {:<6}"


def format_symbol_table(entries: Iterable[SymbolEntry]) -> str:
    entries = list(entries)
    lines = [
        "# Symbol Table",
        "# Generated by the analysis stage",
        "#",
        "",
        _SYMBOL_ROW.format("Name", "Type", "Defined", "Used", "Decl", "Use") + " Value",
        "─" * 64,
    ]
    for entry in entries:
        row = _SYMBOL_ROW.format(
            entry.name,
            str(entry.symbol_type),
            "Yes" if entry.defined else "No",
            "Yes" if entry.used else "No",
            entry.declaration_line,
            entry.first_use_line or 0,
        )
        lines.append(f"{row} {_value_text(entry.value, '--')}")
    lines.append("")
    lines.append(f"Total symbols: {len(entries)}")
    return "\n".join(lines) + "\n"


def _value_text(value: Optional[bool], missing: str) -> str:
    if value is None:
        return missing
    return "TRUE" if value else "FALSE"


# ============================================================================
# semantic_errors.txt
# ============================================================================

def _diagnostic_lines(diagnostics: List[Error]) -> List[str]:
    lines = []
    for i, diag in enumerate(diagnostics, 1):
        kind = diag.kind.value if diag.kind is not None else diag.severity.upper()
        header = f"{i}. {kind} (Line {diag.line})"
        if diag.symbol:
            header += f" - Symbol: {diag.symbol}"
        lines.append(header)
        lines.append(f"   Description: {diag.message}")
        lines.append("")
    return lines


def format_diagnostics_report(errors: List[Error], warnings: List[Error], symbols_processed: int,
                              input_name: str = AST_DUMP_FILE) -> str:
    lines = [
        "# Semantic Analysis Errors",
        "# Generated by the analysis stage",
        f"# Input: {input_name}",
        "#",
        "",
    ]
    if not errors:
        lines += [
            "No semantic errors found.",
            "",
            "Analysis Summary:",
            f"Symbols processed: {symbols_processed}",
            f"Warnings issued: {len(warnings)}",
            "All semantic rules satisfied",
            "",
        ]
    else:
        lines += [f"Semantic Errors Found: {len(errors)}", ""]
        lines += _diagnostic_lines(errors)
    if warnings:
        lines += ["Warnings:", ""]
        lines += _diagnostic_lines(warnings)
    lines.append("# End of semantic analysis report")
    return "\n".join(lines) + "\n"


# ============================================================================
# generation_errors.txt
# ============================================================================

def format_generation_report(errors: List[Error], instructions_emitted: int = 0,
                             input_name: str = ANNOTATED_AST_FILE) -> str:
    """Code generation report, written whether or not program.s was produced."""
    lines = [
        "# Code Generation Errors",
        "# Generated by the generation stage",
        f"# Input: {input_name}",
        "#",
        "",
    ]
    if not errors:
        lines += [
            "No generation errors found.",
            "",
            f"Instructions emitted: {instructions_emitted}",
            "",
        ]
    else:
        lines += [f"Generation Errors Found: {len(errors)}", ""]
        lines += _diagnostic_lines(errors)
    lines.append("# End of code generation report")
    return "\n".join(lines) + "\n"


# ============================================================================
# annotated_ast.txt
# ============================================================================

_HEADER_RE = re.compile(r"^(?P<name>\S+):$")
_FIELD_RE = re.compile(r"^(?P<key>[A-Za-z_]+):\s(?P<value>.*)$")

# Statement fields that map onto StatementAnnotation attributes; everything
# else is kept in StatementAnnotation.fields in file order.
_FIXED_STATEMENT_FIELDS = ("Node_Type", "Line", "Semantic_Type", "Operation", "Validation", "Tree")


def format_annotated_ast(annotated: AnnotatedProgram, input_name: str = AST_DUMP_FILE) -> str:
    program = annotated.program
    summary = annotated.summary
    lines = [
        "# Semantically Annotated Abstract Syntax Tree",
        "# Generated by the analysis stage",
        f"# Input: {input_name}",
        "#",
        "# Semantic Annotations:",
        "# - Type information added to statements",
        "# - Symbol table references included",
        "#",
        "",
        "ANNOTATED_PROGRAM:",
        "Node_Type: PROGRAM",
        "Semantic_Type: PROGRAM_BLOCK",
        f"Line: {program.line}",
        f"Statements: {len(program.statements)}",
        f"Analysis_Status: {'VALIDATED' if summary.success else 'FAILED'}",
        "",
    ]
    for ann, stmt in zip(annotated.statements, program.statements):
        lines += [
            f"Statement_{ann.index}:",
            f"Node_Type: {ann.node_type}",
            f"Line: {ann.line}",
            f"Semantic_Type: {ann.semantic_type}",
            f"Operation: {ann.operation}",
        ]
        lines += [f"{key}: {value}" for key, value in ann.fields.items()]
        lines += [
            f"Validation: {ann.validation}",
            f"Tree: {serialize_ast(stmt, pretty=False)}",
            "",
        ]
    lines += [
        "SEMANTIC_SUMMARY:",
        f"Symbols_Processed: {summary.symbols_processed}",
        f"Errors_Found: {summary.errors_found}",
        f"Warnings_Issued: {summary.warnings_issued}",
        f"Type_Safety: {summary.type_safety}",
        f"Analysis_Result: {summary.analysis_result}",
        "",
        "SYMBOL_REFERENCES:",
    ]
    for ref in annotated.symbols:
        lines += [
            f"{ref.name}:",
            f"Type: {ref.symbol_type}",
            f"Defined: {'YES' if ref.defined else 'NO'}",
            f"Used: {'YES' if ref.used else 'NO'}",
            f"Declaration_Line: {ref.declaration_line}",
        ]
        if ref.usage_line is not None:
            lines.append(f"Usage_Line: {ref.usage_line}")
        if ref.value is not None:
            lines.append(f"Value: {_value_text(ref.value, '--')}")
        lines.append("")
    lines.append("# End of Semantically Annotated AST")
    return "\n".join(lines) + "\n"


@dataclass
class _Section:
    name: str
    number: int                      # artifact line of the header
    fields: Dict[str, Tuple[str, int]] = field(default_factory=dict)

    def get(self, key: str) -> Tuple[str, int]:
        if key not in self.fields:
            raise DecodeError(f"section '{self.name}' is missing '{key}'", self.number, f"{self.name}:")
        return self.fields[key]

    def get_int(self, key: str) -> int:
        value, number = self.get(key)
        if not value.isdecimal():
            raise DecodeError(f"'{key}' must be a non-negative integer", number, value)
        return int(value)

    def get_flag(self, key: str) -> bool:
        value, number = self.get(key)
        if value not in ("YES", "NO"):
            raise DecodeError(f"'{key}' must be YES or NO", number, value)
        return value == "YES"

    def get_type(self, key: str) -> SymbolType:
        value, number = self.get(key)
        try:
            return SymbolType(value)
        except ValueError:
            raise DecodeError(f"unknown type in '{key}'", number, value) from None


def _split_sections(text: str) -> List[_Section]:
    sections: List[_Section] = []
    for number, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        header = _HEADER_RE.match(line)
        if header is not None:
            sections.append(_Section(header.group("name"), number))
            continue
        fld = _FIELD_RE.match(line)
        if fld is None or not sections:
            raise DecodeError("expected 'Section:' or 'Key: value'", number, raw)
        key = fld.group("key")
        if key in sections[-1].fields:
            raise DecodeError(f"duplicate field '{key}'", number, raw)
        sections[-1].fields[key] = (fld.group("value"), number)
    return sections


def parse_annotated_ast(text: str) -> AnnotatedProgram:
    sections = _split_sections(text)
    if not sections or sections[0].name != "ANNOTATED_PROGRAM":
        first = sections[0] if sections else None
        raise DecodeError("annotated AST must start with 'ANNOTATED_PROGRAM:'",
                          first.number if first else None, f"{first.name}:" if first else None)
    head = sections[0]
    statement_count = head.get_int("Statements")
    program = Program(line=head.get_int("Line"))

    pos = 1
    annotations: List[StatementAnnotation] = []
    for index in range(1, statement_count + 1):
        if pos >= len(sections) or sections[pos].name != f"Statement_{index}":
            at = sections[pos] if pos < len(sections) else sections[-1]
            raise DecodeError(f"expected 'Statement_{index}:'", at.number, f"{at.name}:")
        section = sections[pos]
        pos += 1
        tree_text, tree_number = section.get("Tree")
        try:
            stmt = deserialize_ast(tree_text)
        except DecodeError as e:
            raise DecodeError(f"bad statement tree: {e.message}", tree_number, tree_text) from e
        if not isinstance(stmt, Statement):
            raise DecodeError("statement tree is not a statement", tree_number, tree_text)
        program.add_statement(stmt)

        validation, number = section.get("Validation")
        if validation not in (VALIDATION_PASSED, VALIDATION_FAILED):
            raise DecodeError("'Validation' must be PASSED or FAILED", number, validation)
        annotations.append(StatementAnnotation(
            index=index,
            node_type=section.get("Node_Type")[0],
            line=section.get_int("Line"),
            semantic_type=section.get_type("Semantic_Type"),
            operation=section.get("Operation")[0],
            fields={k: v for k, (v, _) in section.fields.items() if k not in _FIXED_STATEMENT_FIELDS},
            validation=validation,
        ))

    if pos >= len(sections) or sections[pos].name != "SEMANTIC_SUMMARY":
        at = sections[pos] if pos < len(sections) else sections[-1]
        raise DecodeError("expected 'SEMANTIC_SUMMARY:'", at.number, f"{at.name}:")
    summary_section = sections[pos]
    summary = SemanticSummary(
        symbols_processed=summary_section.get_int("Symbols_Processed"),
        errors_found=summary_section.get_int("Errors_Found"),
        warnings_issued=summary_section.get_int("Warnings_Issued"),
    )
    result, number = summary_section.get("Analysis_Result")
    if result != summary.analysis_result:
        raise DecodeError(f"'Analysis_Result' disagrees with {summary.errors_found} errors", number, result)
    pos += 1

    symbols: List[SymbolReference] = []
    if pos < len(sections):
        if sections[pos].name != "SYMBOL_REFERENCES" or sections[pos].fields:
            raise DecodeError("expected 'SYMBOL_REFERENCES:'", sections[pos].number, f"{sections[pos].name}:")
        for section in sections[pos + 1:]:
            usage = section.fields.get("Usage_Line")
            value = section.fields.get("Value")
            if value is not None and value[0] not in ("TRUE", "FALSE"):
                raise DecodeError("'Value' must be TRUE or FALSE", value[1], value[0])
            symbols.append(SymbolReference(
                name=section.name,
                symbol_type=section.get_type("Type"),
                defined=section.get_flag("Defined"),
                used=section.get_flag("Used"),
                declaration_line=section.get_int("Declaration_Line"),
                usage_line=section.get_int("Usage_Line") if usage is not None else None,
                value=(value[0] == "TRUE") if value is not None else None,
            ))

    logger.debug("parsed annotated AST: %d statements, %d symbols", len(annotations), len(symbols))
    return AnnotatedProgram(program=program, statements=annotations, summary=summary, symbols=symbols)
