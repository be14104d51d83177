#!/usr/bin/env python3
"""
Tests for the pass manager and compilation context.
"""

import pytest

from proplang.passes.base import BasePass, CompilationContext, PassManager
from proplang.shared.nodes import Program


class _Recorder(BasePass):
    log = []

    def run(self, program, tcx):
        self.log.append(type(self).__name__)
        return program


class First(_Recorder):
    requires = []


class Second(_Recorder):
    requires = [First]


class Third(_Recorder):
    requires = [Second]


class Failing(_Recorder):
    requires = [First]

    def run(self, program, tcx):
        super().run(program, tcx)
        tcx.reporter.report_error("boom", None)
        return program


class NeedsFailing(_Recorder):
    requires = [Failing]


class TestPassManager:
    """Ordering, early stop and unregistered dependencies"""

    def setup_method(self):
        _Recorder.log.clear()

    def _run(self, *passes, stop_after=None):
        manager = PassManager()
        for pass_class in passes:
            manager.register_pass(pass_class)
        manager.run_all(Program(), CompilationContext(), stop_after_pass=stop_after)
        return list(_Recorder.log)

    def test_dependency_order(self):
        assert self._run(Third, Second, First) == ["First", "Second", "Third"]

    def test_unregistered_dependency_is_satisfied(self):
        assert self._run(Third) == ["Third"]

    def test_stops_after_errors(self):
        assert self._run(First, Failing, NeedsFailing) == ["First", "Failing"]

    def test_stop_after_pass(self):
        assert self._run(First, Second, Third, stop_after="Second") == ["First", "Second"]

    def test_cycle_detected(self):
        class A(_Recorder):
            pass

        class B(_Recorder):
            requires = [A]

        A.requires = [B]
        with pytest.raises(RuntimeError):
            self._run(A, B)


class TestCompilationContext:
    """Analysis storage"""

    def test_missing_analysis(self):
        with pytest.raises(RuntimeError):
            CompilationContext().get_analysis(First)

    def test_set_and_get(self):
        tcx = CompilationContext("main.prop", "arm64")
        tcx.set_analysis(First, {"ok": True})
        assert tcx.has_analysis(First)
        assert tcx.get_analysis(First) == {"ok": True}
        assert tcx.target == "arm64"

    def test_reporter_shares_source_map(self):
        tcx = CompilationContext("main.prop")
        tcx.source_files["main.prop"] = "A;"
        assert tcx.reporter.source_files["main.prop"] == "A;"
