#!/usr/bin/env python3
"""
Compile-and-run tests: source programs executed on the reference register machine.
"""

import pytest
from tests.test_utils import compile_and_execute

pytestmark = pytest.mark.integration


class TestProgramExecution:
    """Statement values observed while running generated code"""

    def _run(self, source: str, compiler, runtime):
        result = compile_and_execute(source, compiler, runtime)
        assert result.success, f"Execution failed: {result.errors}"
        return result

    def test_or_of_assigned_booleans(self, compiler, runtime):
        result = self._run("B := TRUE;\nC := FALSE;\nB OR C;\n", compiler, runtime)
        assert result.statement_values == {1: 1, 2: 0, 3: 1}
        assert result.last_value == 1
        assert result.exit_code == 0
        assert result.warnings == 0

    def test_connective_truth_tables(self, compiler, runtime):
        cases = [
            ("AND", lambda a, b: a and b),
            ("OR", lambda a, b: a or b),
            ("XOR", lambda a, b: a != b),
            ("XNOR", lambda a, b: a == b),
            ("IMPLIES", lambda a, b: (not a) or b),
            ("IFF", lambda a, b: a == b),
            ("EQUIV", lambda a, b: a == b),
        ]
        for keyword, fn in cases:
            for a in (False, True):
                for b in (False, True):
                    source = f"p := {str(a).upper()};\nq := {str(b).upper()};\np {keyword} q;\n"
                    result = self._run(source, compiler, runtime)
                    assert result.last_value == int(fn(a, b)), (keyword, a, b)

    def test_reassignment_uses_latest_value(self, compiler, runtime):
        result = self._run("A := TRUE;\nA := NOT A;\nA;\n", compiler, runtime)
        assert result.statement_values[3] == 0

    def test_nested_precedence(self, compiler, runtime):
        # TRUE OR (FALSE AND FALSE) = 1; (TRUE OR FALSE) AND FALSE = 0
        result = self._run("T := TRUE;\nF := FALSE;\nT OR F AND F;\n(T OR F) AND F;\n", compiler, runtime)
        assert result.statement_values[3] == 1
        assert result.statement_values[4] == 0

    def test_implication_chain(self, compiler, runtime):
        # FALSE -> (FALSE -> FALSE) right-associative = 1; (FALSE -> FALSE) -> FALSE = 0
        result = self._run("F := FALSE;\nF -> F -> F;\n(F -> F) -> F;\n", compiler, runtime)
        assert result.statement_values[2] == 1
        assert result.statement_values[3] == 0

    def test_literals_only(self, compiler, runtime):
        result = self._run("TRUE;\nFALSE;\n~TRUE;\n", compiler, runtime)
        assert result.statement_values == {1: 1, 2: 0, 3: 0}

    def test_empty_program(self, compiler, runtime):
        result = self._run("", compiler, runtime)
        assert result.statement_values == {}
        assert result.exit_code == 0

    def test_register_pressure_reported(self, compiler, runtime):
        source = "a := TRUE;\na AND (a AND (a AND (a AND a)));\n"
        result = compile_and_execute(source, compiler, runtime)
        assert not result.success
        assert "E0802" in result.errors[0]

    def test_driver_run(self, compiler):
        result = compiler.run("X := TRUE;\nNOT X;\n")
        assert result.success
        assert result.statement_values == {1: 1, 2: 0}
