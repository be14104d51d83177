"""
Base Pass System

Rust Pattern: rustc_mir::transform::MirPass
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type
import logging

from ..shared.nodes import Program
from ..shared.errors import ErrorReporter
from ..utils.config import DEFAULT_TARGET

logger = logging.getLogger("proplang.passes.base")


class CompilationContext:
    """
    Single source of truth for the state of one compilation run
    (Rust naming: rustc_middle::ty::TyCtxt).

    - Analysis results stored here (not in passes)
    - One ErrorReporter shared by every pass
    - Created per run; nothing in it outlives the stage that built it
    """

    def __init__(self, source_file: str = "<input>", target: str = DEFAULT_TARGET):
        self.source_file = source_file
        self.target = target

        # Source information
        self.source_files: Dict[str, str] = {}

        # Error reporter (shares the source map for snippets)
        self.reporter: ErrorReporter = ErrorReporter(self.source_files)

        self._analysis_results: Dict[Type['BasePass'], Any] = {}

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def has_analysis(self, pass_class: Type['BasePass']) -> bool:
        return pass_class in self._analysis_results

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        """Store analysis results"""
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    Base class for all passes.

    - Explicit dependencies via `requires`
    - Pass results stored in the CompilationContext (not in the pass)
    - Passes never mutate tree structure; they return the program they were given
    """
    requires: List[Type['BasePass']] = []

    @abstractmethod
    def run(self, program: Program, tcx: CompilationContext) -> Program:
        raise NotImplementedError


class PassManager:
    """
    Pass manager with dependency resolution.

    - Automatic dependency resolution (topological sort)
    - Passes run in dependency order
    - Dependencies that are not registered are assumed satisfied by an
      earlier stage (e.g. code generation run from an annotated artifact)
    - Stops after the first pass that leaves errors in the reporter
    """

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], set] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        """Register a pass"""
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, program: Program, tcx: CompilationContext,
                stop_after_pass: Optional[str] = None) -> Program:
        for pass_class in self._topological_sort():
            logger.debug("running %s", pass_class.__name__)
            program = pass_class().run(program, tcx)
            if tcx.reporter.has_errors():
                logger.debug("%s reported %d errors; stopping", pass_class.__name__, tcx.reporter.error_count)
                break
            if stop_after_pass and pass_class.__name__ == stop_after_pass:
                break
        return program

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by (registered) dependencies"""
        registered = set(self.passes)
        in_degree = {p: len(self._dependency_graph[p] & registered) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
