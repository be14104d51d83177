"""
Compiler Driver

Rust Pattern: rustc_driver::driver

Two entry points over the same stages:

- compile(): in memory. The tree still crosses each stage boundary through
  its artifact encoding (encode -> decode), so the in-memory path sees exactly
  what the file-based stages see.
- run_*_stage(): file based. Each stage reads the previous stage's artifact
  and writes its own; a stage never runs on the output of a failed stage.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..analysis.annotations import AnnotatedProgram
from ..backends.register_machine import CodeGenerationPass, GeneratedProgram
from ..frontend.parser import Parser
from ..interchange.artifacts import (
    format_annotated_ast, format_ast_dump, format_diagnostics_report,
    format_generation_report, format_symbol_table, parse_annotated_ast, read_ast_dump,
)
from ..passes.base import CompilationContext, PassManager
from ..passes.semantic_analysis import SemanticAnalysisPass, SemanticAnalysisResult
from ..runtime.runtime import ExecutionResult, ProplangRuntime
from ..shared.errors import ProplangError, UpstreamStageError
from ..shared.nodes import Program
from ..utils.config import (
    ANNOTATED_AST_FILE, AST_DUMP_FILE, DEFAULT_SOURCE_FILE, DEFAULT_TARGET,
    GENERATION_ERRORS_FILE, PROGRAM_FILE, SEMANTIC_ERRORS_FILE, SYMBOL_TABLE_FILE,
)
from ..utils.io_utils import read_source_file, write_artifact

logger = logging.getLogger("proplang.compiler.driver")

PathLike = Union[str, Path]


class CompilationResult:
    """Compilation result"""
    def __init__(
        self,
        program: Optional[Program] = None,
        annotated: Optional[AnnotatedProgram] = None,
        generated: Optional[GeneratedProgram] = None,
        tcx: Optional[CompilationContext] = None,
        success: bool = False,
    ):
        self.program = program
        self.annotated = annotated
        self.generated = generated
        self.tcx = tcx
        self.success = success


@dataclass
class StageResult:
    """Outcome of one file-based stage"""
    stage: str
    success: bool
    tcx: CompilationContext
    outputs: Dict[str, Path] = field(default_factory=dict)
    program: Optional[Program] = None
    annotated: Optional[AnnotatedProgram] = None
    generated: Optional[GeneratedProgram] = None


class CompilerDriver:
    """
    Compiler driver (Rust naming: rustc_driver::driver).

    - Orchestrates the parse, analysis and generation stages
    - Converts raised ProplangErrors into reporter diagnostics
    - Success <=> the reporter holds no errors
    """

    def __init__(self, target: str = DEFAULT_TARGET):
        self.target = target
        self.parser = Parser()

    # ------------------------------------------------------------------
    # In-memory stages
    # ------------------------------------------------------------------

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> Program:
        """Source -> AST. Raises ParseError."""
        return self.parser.parse(source, source_file)

    def analyze(self, program: Program, tcx: CompilationContext) -> SemanticAnalysisResult:
        pass_manager = PassManager()
        pass_manager.register_pass(SemanticAnalysisPass)
        pass_manager.run_all(program, tcx)
        return tcx.get_analysis(SemanticAnalysisPass)

    def generate(self, annotated: AnnotatedProgram, tcx: CompilationContext) -> GeneratedProgram:
        """Annotated program -> register-machine code. Refuses failed analyses."""
        if not annotated.summary.success:
            raise UpstreamStageError(
                f"annotated AST reports Analysis_Result: {annotated.summary.analysis_result} "
                f"({annotated.summary.errors_found} errors); fix semantic errors before generating code"
            )
        pass_manager = PassManager()
        # SemanticAnalysisPass is satisfied by the annotated artifact
        pass_manager.register_pass(CodeGenerationPass)
        pass_manager.run_all(annotated.program, tcx)
        return tcx.get_analysis(CodeGenerationPass)

    def compile(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> CompilationResult:
        """
        Compile source code.

        Phases:
        1. Parsing (source -> AST -> ast.txt text -> AST)
        2. Semantic analysis (-> annotated_ast.txt text -> annotated program)
        3. Code generation (annotated program -> register-machine code)
        """
        tcx = CompilationContext(source_file, self.target)
        tcx.source_files[source_file] = source
        result = CompilationResult(tcx=tcx)
        try:
            program = read_ast_dump(format_ast_dump(self.parse(source, source_file), source_file))
            result.program = program

            analysis = self.analyze(program, tcx)
            if tcx.reporter.has_errors():
                result.annotated = analysis.annotated
                return result

            annotated = parse_annotated_ast(format_annotated_ast(analysis.annotated))
            result.annotated = annotated
            result.generated = self.generate(annotated, tcx)
        except ProplangError as e:
            logger.debug("compilation of %s failed: %s", source_file, e.message)
            tcx.reporter.report_exception(e)
            return result

        result.success = not tcx.reporter.has_errors()
        return result

    def run(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> ExecutionResult:
        """Compile and execute on the reference register machine."""
        result = self.compile(source, source_file)
        if not result.success:
            return ExecutionResult(error=RuntimeError(result.tcx.reporter.format_all_errors(color=False)))
        return ProplangRuntime().execute(result.generated)

    # ------------------------------------------------------------------
    # File-based stages
    # ------------------------------------------------------------------

    @staticmethod
    def _paths(input_path: Optional[PathLike], output_dir: Optional[PathLike], default_input: str):
        out_dir = Path(output_dir) if output_dir is not None else Path.cwd()
        in_path = Path(input_path) if input_path is not None else out_dir / default_input
        return in_path, out_dir

    @staticmethod
    def _write_report(stage: StageResult, path: Path, text: str) -> None:
        """Write a stage report; a failed write is itself reported, never raised."""
        try:
            stage.outputs[path.name] = write_artifact(path, text)
        except ProplangError as e:
            stage.tcx.reporter.report_exception(e)

    def run_parse_stage(self, input_path: Optional[PathLike] = None,
                        output_dir: Optional[PathLike] = None) -> StageResult:
        """Source file -> ast.txt"""
        in_path, out_dir = self._paths(input_path, output_dir, DEFAULT_SOURCE_FILE)
        tcx = CompilationContext(str(in_path), self.target)
        stage = StageResult("parse", False, tcx)
        try:
            source = read_source_file(in_path)
            tcx.source_files[str(in_path)] = source
            stage.program = self.parse(source, str(in_path))
            stage.outputs[AST_DUMP_FILE] = write_artifact(
                out_dir / AST_DUMP_FILE, format_ast_dump(stage.program, in_path.name)
            )
        except ProplangError as e:
            tcx.reporter.report_exception(e)
            return stage
        stage.success = True
        logger.debug("parse stage wrote %s", stage.outputs[AST_DUMP_FILE])
        return stage

    def run_analysis_stage(self, input_path: Optional[PathLike] = None,
                           output_dir: Optional[PathLike] = None) -> StageResult:
        """ast.txt -> annotated_ast.txt, symbol_table.txt, semantic_errors.txt"""
        in_path, out_dir = self._paths(input_path, output_dir, AST_DUMP_FILE)
        tcx = CompilationContext(str(in_path), self.target)
        stage = StageResult("analyze", False, tcx)
        try:
            stage.program = read_ast_dump(read_source_file(in_path))
            analysis = self.analyze(stage.program, tcx)
            stage.annotated = analysis.annotated
            reporter = tcx.reporter
            stage.outputs[ANNOTATED_AST_FILE] = write_artifact(
                out_dir / ANNOTATED_AST_FILE, format_annotated_ast(analysis.annotated, in_path.name)
            )
            stage.outputs[SYMBOL_TABLE_FILE] = write_artifact(
                out_dir / SYMBOL_TABLE_FILE, format_symbol_table(analysis.symbol_table)
            )
            stage.outputs[SEMANTIC_ERRORS_FILE] = write_artifact(
                out_dir / SEMANTIC_ERRORS_FILE,
                format_diagnostics_report(reporter.errors, reporter.warnings,
                                          analysis.symbol_table.count, in_path.name),
            )
        except ProplangError as e:
            tcx.reporter.report_exception(e)
            self._write_report(
                stage, out_dir / SEMANTIC_ERRORS_FILE,
                format_diagnostics_report(tcx.reporter.errors, tcx.reporter.warnings, 0, in_path.name),
            )
            return stage
        stage.success = not tcx.reporter.has_errors()
        logger.debug("analysis stage: %d errors, %d warnings",
                     tcx.reporter.error_count, tcx.reporter.warning_count)
        return stage

    def run_generation_stage(self, input_path: Optional[PathLike] = None,
                             output_dir: Optional[PathLike] = None) -> StageResult:
        """annotated_ast.txt -> program.s, generation_errors.txt"""
        in_path, out_dir = self._paths(input_path, output_dir, ANNOTATED_AST_FILE)
        tcx = CompilationContext(str(in_path), self.target)
        stage = StageResult("generate", False, tcx)
        try:
            stage.annotated = parse_annotated_ast(read_source_file(in_path))
            stage.program = stage.annotated.program
            stage.generated = self.generate(stage.annotated, tcx)
            stage.outputs[PROGRAM_FILE] = write_artifact(out_dir / PROGRAM_FILE, stage.generated.to_listing())
        except ProplangError as e:
            tcx.reporter.report_exception(e)
            self._write_report(
                stage, out_dir / GENERATION_ERRORS_FILE,
                format_generation_report(tcx.reporter.errors, input_name=in_path.name),
            )
            return stage
        self._write_report(
            stage, out_dir / GENERATION_ERRORS_FILE,
            format_generation_report([], len(stage.generated.instructions), in_path.name),
        )
        stage.success = not tcx.reporter.has_errors()
        logger.debug("generation stage wrote %d instructions", len(stage.generated.instructions))
        return stage

    def compile_files(self, source_path: PathLike, output_dir: Optional[PathLike] = None) -> List[StageResult]:
        """Run every file-based stage in order, stopping at the first failure."""
        out_dir = Path(output_dir) if output_dir is not None else Path.cwd()
        stages = [self.run_parse_stage(source_path, out_dir)]
        if stages[-1].success:
            stages.append(self.run_analysis_stage(out_dir / AST_DUMP_FILE, out_dir))
        if stages[-1].success:
            stages.append(self.run_generation_stage(out_dir / ANNOTATED_AST_FILE, out_dir))
        return stages
