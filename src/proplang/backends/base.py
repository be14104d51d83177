"""
Backend Interface

Rust Pattern: LLVM TargetMachine
"""

from abc import ABC, abstractmethod
from typing import Any

from ..shared.nodes import Program
from ..runtime.runtime import ExecutionResult


class Backend(ABC):
    """
    Backend interface (Rust naming: rustc_codegen_llvm::Backend).

    - All backends implement same interface
    - Backend trusts analysed input (no re-analysis)
    - Backend handles target-specific codegen and owns execution
    """

    @abstractmethod
    def codegen(self, program: Program) -> Any:
        """
        Generate target code from an analysed program.

        Raises UnsupportedConstructError for nodes the target cannot express.
        """
        raise NotImplementedError

    @abstractmethod
    def execute(self, generated: Any) -> ExecutionResult:
        """
        Execute code produced by codegen().

        Faults are returned in ExecutionResult.error, not raised.
        """
        raise NotImplementedError
