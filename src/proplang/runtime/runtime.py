"""
Runtime

Rust Pattern: Minimal runtime, backend delegation
"""

from typing import Dict, Optional, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from ..backends.base import Backend
    from ..backends.register_machine import GeneratedProgram


class ExecutionResult:
    """
    Result of running a generated program.

    registers: final register file by register name
    exit_code: value of the first allocatable register (rax on x86_64) at halt
    statement_values: statement index (1-based) -> value the statement computed
    """
    def __init__(
        self,
        registers: Optional[Dict[str, int]] = None,
        exit_code: Optional[int] = None,
        statement_values: Optional[Dict[int, int]] = None,
        error: Optional[Exception] = None,
    ):
        self.registers = registers if registers is not None else {}
        self.exit_code = exit_code
        self.statement_values = statement_values if statement_values is not None else {}
        self.error = error

    @property
    def success(self) -> bool:
        """Whether execution succeeded (no error)"""
        return self.error is None

    @property
    def last_value(self) -> Optional[int]:
        if not self.statement_values:
            return None
        return self.statement_values[max(self.statement_values)]


class ProplangRuntime:
    """
    Thin runtime layer.

    - Only backend selection and delegation
    - No execution logic (all in backends)
    - Fresh backend per execute so no state leaks between runs
    """

    def __init__(self, backend: str = "register_machine"):
        from ..backends.register_machine import RegisterMachineBackend

        if backend == "register_machine":
            self._backend_class: Type['Backend'] = RegisterMachineBackend
        else:
            raise ValueError(f"Unknown backend: {backend}")

    def execute(self, generated: 'GeneratedProgram') -> ExecutionResult:
        if generated is None:
            return ExecutionResult(error=RuntimeError("No generated program to execute"))
        backend = self._backend_class()
        return backend.execute(generated)
