"""CLI entry point: `proplang <stage> ...` or `python -m proplang <stage> ...`."""

import logging
import sys
from pathlib import Path
from typing import List, Optional


def _report(stage) -> int:
    reporter = stage.tcx.reporter
    text = reporter.format_all_errors()
    if text:
        sys.stderr.write(text + "\n")
    for path in stage.outputs.values():
        print(f"wrote {path}")
    if not stage.success:
        sys.stderr.write(f"proplang: {stage.stage} stage failed\n")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .compiler.driver import CompilerDriver
    from .runtime.runtime import ProplangRuntime
    from .utils.config import DEFAULT_TARGET

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    common.add_argument("-o", "--output-dir", type=Path, default=None,
                        help="Directory for stage artifacts (default: current directory)")
    common.add_argument("--target", default=DEFAULT_TARGET, choices=["x86_64", "arm64", "mips"],
                        help=f"Register machine target (default: {DEFAULT_TARGET})")

    parser = argparse.ArgumentParser(prog="proplang", description="Propositional logic compiler.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", parents=[common], help="source -> ast.txt")
    p.add_argument("input", nargs="?", type=Path, help="Source file (default: main.prop)")
    p = sub.add_parser("analyze", parents=[common], help="ast.txt -> annotated_ast.txt, symbol_table.txt, semantic_errors.txt")
    p.add_argument("input", nargs="?", type=Path, help="AST dump (default: ast.txt)")
    p = sub.add_parser("generate", parents=[common], help="annotated_ast.txt -> program.s")
    p.add_argument("input", nargs="?", type=Path, help="Annotated AST (default: annotated_ast.txt)")
    p = sub.add_parser("compile", parents=[common], help="Run every stage, stopping at the first failure")
    p.add_argument("input", type=Path, help="Source file")
    p = sub.add_parser("run", parents=[common], help="Compile and execute on the reference register machine")
    p.add_argument("input", type=Path, help="Source file")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    driver = CompilerDriver(target=args.target)

    if args.command == "parse":
        return _report(driver.run_parse_stage(args.input, args.output_dir))
    if args.command == "analyze":
        return _report(driver.run_analysis_stage(args.input, args.output_dir))
    if args.command == "generate":
        return _report(driver.run_generation_stage(args.input, args.output_dir))
    if args.command == "compile":
        for stage in driver.compile_files(args.input, args.output_dir):
            if _report(stage):
                return 1
        return 0

    # run
    from .utils.io_utils import read_source_file
    from .shared.errors import ArtifactIOError
    try:
        source = read_source_file(args.input)
    except ArtifactIOError as e:
        sys.stderr.write(f"proplang: error: {e.message}\n")
        return 1
    result = driver.compile(source, str(args.input))
    if not result.success:
        sys.stderr.write(result.tcx.reporter.format_all_errors() + "\n")
        return 1
    exec_result = ProplangRuntime().execute(result.generated)
    if exec_result.error is not None:
        sys.stderr.write(f"proplang: runtime error: {exec_result.error}\n")
        return 1
    for index, value in sorted(exec_result.statement_values.items()):
        print(f"statement {index}: {value}")
    print(f"exit code: {exec_result.exit_code}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
