"""
Error Reporting

Rust Pattern: rustc_errors::Diagnostic

Diagnostics accumulate in an ErrorReporter (collect-all). Failures that abort
a stage outright are raised as ProplangError subclasses and converted into
reporter diagnostics by the compiler driver.
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("PROPLANG_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_YELLOW = "\033[33m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Diagnostic taxonomy
# ---------------------------------------------------------------------------

class DiagnosticKind(Enum):
    """
    Diagnostic kinds. The value is the name used in report artifacts.

    TYPE_MISMATCH, REDEFINITION and INVALID_OPERATION are reserved: the
    boolean-only type system never raises them.
    """
    UNDEFINED_VARIABLE = "UNDEFINED_VARIABLE"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    UNUSED_VARIABLE = "UNUSED_VARIABLE"
    REDEFINITION = "REDEFINITION"
    INVALID_OPERATION = "INVALID_OPERATION"
    UNSUPPORTED_CONSTRUCT = "UNSUPPORTED_CONSTRUCT"
    REGISTER_PRESSURE_EXCEEDED = "REGISTER_PRESSURE_EXCEEDED"
    IO_FAILURE = "IO_FAILURE"
    DECODE_FAILURE = "DECODE_FAILURE"
    SYNTAX_ERROR = "SYNTAX_ERROR"

    @property
    def code(self) -> str:
        return _DIAGNOSTIC_CODES[self]

    @property
    def is_warning(self) -> bool:
        return self is DiagnosticKind.UNUSED_VARIABLE


_DIAGNOSTIC_CODES: Dict[DiagnosticKind, str] = {
    DiagnosticKind.UNDEFINED_VARIABLE: "E0425",
    DiagnosticKind.TYPE_MISMATCH: "E0308",
    DiagnosticKind.UNUSED_VARIABLE: "W0001",
    DiagnosticKind.REDEFINITION: "E0428",
    DiagnosticKind.INVALID_OPERATION: "E0600",
    DiagnosticKind.UNSUPPORTED_CONSTRUCT: "E0801",
    DiagnosticKind.REGISTER_PRESSURE_EXCEEDED: "E0802",
    DiagnosticKind.IO_FAILURE: "E0901",
    DiagnosticKind.DECODE_FAILURE: "E0902",
    DiagnosticKind.SYNTAX_ERROR: "E0001",
}


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """
    Compiler diagnostic (error or warning).

    Rust Pattern: rustc_errors::Diagnostic
    """
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None
    kind: Optional[DiagnosticKind] = None
    symbol: Optional[str] = None
    severity: str = "error"

    @property
    def is_warning(self) -> bool:
        return self.severity == "warning"

    @property
    def line(self) -> int:
        return self.location.line if self.location is not None else 0


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0425]: cannot find value `X` in this program
         --> main.prop:2:1
          |
        2 | Y := X;
          | ^^^^^^^
          |
          = help: assign `X` before using it
    """
    out: List[str] = []

    head_color = _YELLOW if error.is_warning else _RED
    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"{error.severity}{code_str}", _BOLD, head_color, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    if source is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    gw = max(len(str(loc.line)), 1)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))

    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = max(1, len(code_line.rstrip()) - col_start)
    carets = " " * col_start + "^" * span_len
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, head_color, color=color)
    )

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _append_annotations(
    out: List[str],
    error: Error,
    gw: int,
    color: bool,
) -> None:
    if not (error.help or error.note):
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """
    Error reporter with Rust-style formatting.

    Rust Pattern: rustc_errors::Emitter

    Errors and warnings are kept in separate lists; only errors decide
    whether a stage succeeded.
    """

    def __init__(self, source_files: Dict[str, str]):
        self.source_files = source_files
        self.errors: List[Error] = []
        self.warnings: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
        kind: Optional[DiagnosticKind] = None,
        symbol: Optional[str] = None,
    ) -> None:
        if code is None and kind is not None:
            code = kind.code
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
            kind=kind,
            symbol=symbol,
        ))

    def report_warning(
        self,
        message: str,
        location: Optional[SourceLocation],
        kind: DiagnosticKind,
        symbol: Optional[str] = None,
        help: Optional[str] = None,
    ) -> None:
        self.warnings.append(Error(
            message=message,
            location=location,
            code=kind.code,
            help=help,
            kind=kind,
            symbol=symbol,
            severity="warning",
        ))

    def report_exception(self, exc: 'ProplangError') -> None:
        """Record a raised ProplangError as an error diagnostic."""
        self.report_error(
            exc.message,
            exc.location,
            kind=exc.kind,
            help=getattr(exc, "help", None),
        )

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None, include_warnings: bool = True) -> str:
        use_color = color if color is not None else _use_color()
        diagnostics = list(self.errors)
        if include_warnings:
            diagnostics.extend(self.warnings)
        parts = [self.format_error(e, color=use_color) for e in diagnostics]
        if self.errors:
            summary = f"aborting due to {_plural(len(self.errors), 'previous error')}"
            parts.append(
                _style("error", _BOLD, _RED, color=use_color)
                + _style(f": {summary}", _BOLD, color=use_color)
            )
        elif include_warnings and self.warnings:
            parts.append(
                _style("warning", _BOLD, _YELLOW, color=use_color)
                + _style(f": {_plural(len(self.warnings), 'warning')} emitted", _BOLD, color=use_color)
            )
        return "\n\n".join(parts)


# ============================================================================
# Exception Classes
# ============================================================================

class ProplangError(Exception):
    """Base exception for all errors that abort a stage"""
    kind: Optional[DiagnosticKind] = None

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        code = f"[{self.kind.code}]" if self.kind is not None else ""
        if self.location:
            return f"error{code}: {self.message}\n --> {self.location}"
        return f"error{code}: {self.message}"


class DecodeError(ProplangError):
    """Malformed interchange text. Carries the offending artifact line."""
    kind = DiagnosticKind.DECODE_FAILURE

    def __init__(self, message: str, text_line: Optional[int] = None, text: Optional[str] = None,
                 location: Optional[SourceLocation] = None):
        if text_line is not None:
            message = f"{message} (artifact line {text_line}: {text!r})"
        super().__init__(message, location)
        self.text_line = text_line
        self.text = text


class UnsupportedConstructError(ProplangError):
    """Generation or decoding hit a node kind it does not handle"""
    kind = DiagnosticKind.UNSUPPORTED_CONSTRUCT


class RegisterPressureExceededError(ProplangError):
    """Every allocatable register is live"""
    kind = DiagnosticKind.REGISTER_PRESSURE_EXCEEDED
    help = "split the expression into smaller assignments"


class ArtifactIOError(ProplangError):
    """Missing or unreadable/unwritable stage artifact"""
    kind = DiagnosticKind.IO_FAILURE


class UpstreamStageError(ProplangError):
    """Refusal to consume an artifact produced by a failed stage"""
    kind = DiagnosticKind.IO_FAILURE


class TreeOwnershipError(ProplangError):
    """A node object is reachable from two parents"""
    kind = DiagnosticKind.INVALID_OPERATION


class MachineFault(ProplangError):
    """Register machine execution fault (bad operand, unknown label, step limit)"""
    kind = DiagnosticKind.INVALID_OPERATION
