"""
Semantic annotations carried from the analysis stage to the generation stage.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..shared.nodes import Program
from ..shared.types import SymbolType
from .symbol_table import SymbolEntry

VALIDATION_PASSED = "PASSED"
VALIDATION_FAILED = "FAILED"


@dataclass
class StatementAnnotation:
    """Per-statement facts written to the annotated AST artifact"""
    index: int
    node_type: str
    line: int
    semantic_type: SymbolType
    operation: str
    fields: Dict[str, str] = field(default_factory=dict)
    validation: str = VALIDATION_PASSED


@dataclass
class SemanticSummary:
    symbols_processed: int
    errors_found: int
    warnings_issued: int

    @property
    def success(self) -> bool:
        return self.errors_found == 0

    @property
    def type_safety(self) -> str:
        return "GUARANTEED" if self.success else "VIOLATED"

    @property
    def analysis_result(self) -> str:
        return "SUCCESS" if self.success else "FAILED"


@dataclass
class SymbolReference:
    """Snapshot of a SymbolEntry as recorded in the annotated artifact"""
    name: str
    symbol_type: SymbolType
    defined: bool
    used: bool
    declaration_line: int
    usage_line: Optional[int] = None
    value: Optional[bool] = None

    @classmethod
    def from_entry(cls, entry: SymbolEntry) -> 'SymbolReference':
        return cls(
            name=entry.name,
            symbol_type=entry.symbol_type,
            defined=entry.defined,
            used=entry.used,
            declaration_line=entry.declaration_line,
            usage_line=entry.first_use_line,
            value=entry.value,
        )


@dataclass
class AnnotatedProgram:
    """Program plus everything semantic analysis learned about it"""
    program: Program
    statements: List[StatementAnnotation]
    summary: SemanticSummary
    symbols: List[SymbolReference] = field(default_factory=list)
