"""
Register Machine Backend

Rust Pattern: rustc_codegen_ssa (instruction selection + a trivial allocator)

Code generation targets an abstract machine with eight allocatable registers
in a fixed order plus a frame-base register that is never allocated.
Variables live in 8-byte frame slots below the frame base ([rbp-8], [rbp-16],
...), one slot per distinct name, assigned in order of first reference.

Every boolean is 0 or 1, so Not is the complement `v ^ 1`.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from typing_extensions import TypeAlias

from ..passes.base import BasePass, CompilationContext
from ..passes.semantic_analysis import SemanticAnalysisPass
from ..runtime.environment import MachineState
from ..runtime.runtime import ExecutionResult
from ..shared.ast_visitor import ASTVisitor
from ..shared.errors import (
    MachineFault, ProplangError, RegisterPressureExceededError, UnsupportedConstructError,
)
from ..shared.nodes import (
    ASTNode, Assignment, BinaryExpression, BooleanLiteral, Expression,
    ExpressionStatement, Identifier, Program, Quantifier, UnaryNot, check_tree_ownership,
)
from ..shared.source_location import SourceLocation
from ..shared.types import BinaryOp
from ..utils.config import DEFAULT_TARGET, MAX_EXECUTION_STEPS, STACK_SLOT_SIZE
from .base import Backend

logger = logging.getLogger("proplang.backends.register_machine")

REGISTER_COUNT = 8


# ============================================================================
# Targets and operands
# ============================================================================

class TargetArch(Enum):
    X86_64 = "x86_64"
    ARM64 = "arm64"
    MIPS = "mips"

    @property
    def register_names(self) -> Tuple[str, ...]:
        return _TARGET_REGISTERS[self][0]

    @property
    def frame_base_name(self) -> str:
        return _TARGET_REGISTERS[self][1]


_TARGET_REGISTERS: Dict[TargetArch, Tuple[Tuple[str, ...], str]] = {
    TargetArch.X86_64: (("rax", "rbx", "rcx", "rdx", "rsi", "rdi", "r8", "r9"), "rbp"),
    TargetArch.ARM64: (tuple(f"x{i}" for i in range(REGISTER_COUNT)), "x29"),
    TargetArch.MIPS: (tuple(f"$t{i}" for i in range(REGISTER_COUNT)), "$fp"),
}


@dataclass(frozen=True)
class Register:
    """index 0..7 are allocatable; index 8 is the frame base"""
    index: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Immediate:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Memory:
    base: Register
    offset: int

    def __str__(self) -> str:
        sign = "-" if self.offset < 0 else "+"
        return f"[{self.base}{sign}{abs(self.offset)}]"


@dataclass(frozen=True)
class LabelRef:
    name: str

    def __str__(self) -> str:
        return self.name


Operand: TypeAlias = Union[Register, Immediate, Memory, LabelRef]


class Opcode(Enum):
    """Value = listing mnemonic"""
    MOVE = "mov"
    ADD = "add"
    SUB = "sub"
    COMPARE = "cmp"
    JUMP = "jmp"
    JUMP_EQ = "je"
    JUMP_NEQ = "jne"
    CALL = "call"
    RETURN = "ret"
    PUSH = "push"
    POP = "pop"
    OR = "or"
    AND = "and"
    XOR = "xor"
    NOT = "not"
    TEST = "test"
    LABEL = "label"


@dataclass
class Instruction:
    opcode: Opcode
    operands: Tuple[Operand, ...] = ()
    comment: Optional[str] = None

    def __post_init__(self):
        if len(self.operands) > 3:
            raise ValueError(f"{self.opcode.name} takes at most 3 operands, got {len(self.operands)}")

    def format(self) -> str:
        """One listing line: `    mov rax, [rbp-8]    # B`; labels as `name:`."""
        if self.opcode is Opcode.LABEL:
            return f"{self.operands[0]}:"
        text = f"    {self.opcode.value}"
        if self.operands:
            text += " " + ", ".join(str(op) for op in self.operands)
        if self.comment:
            text = f"{text:<27} # {self.comment}"
        return text


@dataclass(frozen=True)
class ResultSite:
    """After instruction `instruction_index` runs, `register` holds statement `statement_index`'s value."""
    statement_index: int
    instruction_index: int
    register: Register


@dataclass
class GeneratedProgram:
    instructions: List[Instruction]
    target: TargetArch
    stack_map: Dict[str, int] = field(default_factory=dict)
    frame_size: int = 0
    result_sites: List[ResultSite] = field(default_factory=list)

    def to_listing(self) -> str:
        lines = [
            "# Register machine program",
            f"# Target: {self.target.value}",
            f"# Instructions: {len(self.instructions)}",
            f"# Frame size: {self.frame_size}",
            "#",
        ]
        for name, offset in self.stack_map.items():
            lines.append(f"# {name} -> [{self.target.frame_base_name}{offset}]")
        lines.append("")
        lines += [instruction.format() for instruction in self.instructions]
        return "\n".join(lines) + "\n"


# ============================================================================
# Code generation context
# ============================================================================

class CodeGenContext:
    """
    Mutable state of one code-generation run.

    - instructions: append-only
    - register usage: fixed-size free/in-use map, allocation in fixed order
    - stack map: name -> negative frame offset, first reference wins
    - labels: monotonic counter
    """

    def __init__(self, target: TargetArch = TargetArch(DEFAULT_TARGET), source_file: str = "<input>"):
        self.target = target
        self.source_file = source_file
        self.registers = [Register(i, name) for i, name in enumerate(target.register_names)]
        self.frame_base = Register(REGISTER_COUNT, target.frame_base_name)
        self.instructions: List[Instruction] = []
        self._in_use = [False] * REGISTER_COUNT
        self.stack_map: Dict[str, int] = {}
        self._label_counter = 0

    def emit(self, opcode: Opcode, *operands: Operand, comment: Optional[str] = None) -> int:
        """Append an instruction; returns its index."""
        self.instructions.append(Instruction(opcode, tuple(operands), comment))
        return len(self.instructions) - 1

    def allocate_register(self, line: Optional[int] = None) -> Register:
        for i, busy in enumerate(self._in_use):
            if not busy:
                self._in_use[i] = True
                return self.registers[i]
        location = SourceLocation(self.source_file, line) if line is not None else None
        raise RegisterPressureExceededError(
            f"expression needs more than {REGISTER_COUNT} live registers", location
        )

    def free_register(self, register: Register) -> None:
        if register.index >= REGISTER_COUNT or not self._in_use[register.index]:
            raise RuntimeError(f"register {register} is not allocated")
        self._in_use[register.index] = False

    def is_live(self, register: Register) -> bool:
        return register.index < REGISTER_COUNT and self._in_use[register.index]

    @property
    def live_count(self) -> int:
        return sum(self._in_use)

    def stack_slot(self, name: str) -> Memory:
        if name not in self.stack_map:
            self.stack_map[name] = -STACK_SLOT_SIZE * (len(self.stack_map) + 1)
        return Memory(self.frame_base, self.stack_map[name])

    @property
    def frame_size(self) -> int:
        return STACK_SLOT_SIZE * len(self.stack_map)

    def new_label(self, prefix: str) -> str:
        label = f"{prefix}_{self._label_counter}"
        self._label_counter += 1
        return label


# ============================================================================
# Code generator
# ============================================================================

class CodeGenerator(ASTVisitor[None]):
    """
    Tree walk emitting instructions.

    Expressions are generated into a destination register chosen by the
    caller (self._dest); every register an expression allocates is freed
    before it returns.
    """

    def __init__(self, ctx: CodeGenContext):
        self.ctx = ctx
        self._dest: Optional[Register] = None
        self._result_sites: List[ResultSite] = []
        self._statement_index = 0

    def generate(self, program: Program) -> GeneratedProgram:
        check_tree_ownership(program)
        program.accept(self)
        generated = GeneratedProgram(
            instructions=list(self.ctx.instructions),
            target=self.ctx.target,
            stack_map=dict(self.ctx.stack_map),
            frame_size=self.ctx.frame_size,
            result_sites=list(self._result_sites),
        )
        logger.debug(
            "generated %d instructions, %d slots for %s",
            len(generated.instructions), len(generated.stack_map), generated.target.value,
        )
        return generated

    def _generate_into(self, expr: Expression, dest: Register) -> None:
        saved = self._dest
        self._dest = dest
        try:
            expr.accept(self)
        finally:
            self._dest = saved

    def _unsupported(self, node: ASTNode) -> UnsupportedConstructError:
        return UnsupportedConstructError(
            f"{type(node).__name__} cannot be generated for the register machine",
            SourceLocation(self.ctx.source_file, node.line),
        )

    # --- expressions ---

    def visit_identifier(self, node: Identifier) -> None:
        self.ctx.emit(Opcode.MOVE, self._dest, self.ctx.stack_slot(node.name), comment=node.name)

    def visit_boolean_literal(self, node: BooleanLiteral) -> None:
        self.ctx.emit(Opcode.MOVE, self._dest, Immediate(1 if node.value else 0))

    def visit_binary_expression(self, node: BinaryExpression) -> None:
        dest = self._dest
        first = self.ctx.allocate_register(node.line)
        self._generate_into(node.left, first)
        second = self.ctx.allocate_register(node.line)
        self._generate_into(node.right, second)

        op = node.operator
        if op is BinaryOp.AND:
            self.ctx.emit(Opcode.AND, first, second)
        elif op is BinaryOp.OR:
            self.ctx.emit(Opcode.OR, first, second)
        elif op is BinaryOp.XOR:
            self.ctx.emit(Opcode.XOR, first, second)
        elif op in (BinaryOp.XNOR, BinaryOp.IFF, BinaryOp.EQUIV):
            self.ctx.emit(Opcode.XOR, first, second)
            self.ctx.emit(Opcode.NOT, first)
        elif op is BinaryOp.IMPLIES:
            # a -> b == (NOT a) OR b
            self.ctx.emit(Opcode.NOT, first)
            self.ctx.emit(Opcode.OR, first, second)
        else:
            raise self._unsupported(node)

        self.ctx.free_register(second)
        self.ctx.emit(Opcode.MOVE, dest, first)
        self.ctx.free_register(first)

    def visit_unary_not(self, node: UnaryNot) -> None:
        dest = self._dest
        reg = self.ctx.allocate_register(node.line)
        self._generate_into(node.operand, reg)
        self.ctx.emit(Opcode.NOT, reg)
        self.ctx.emit(Opcode.MOVE, dest, reg)
        self.ctx.free_register(reg)

    def visit_quantifier(self, node: Quantifier) -> None:
        raise self._unsupported(node)

    # --- statements ---

    def _record_result(self, reg: Register) -> None:
        self._result_sites.append(ResultSite(self._statement_index, len(self.ctx.instructions) - 1, reg))

    def visit_assignment(self, node: Assignment) -> None:
        slot = self.ctx.stack_slot(node.variable)
        reg = self.ctx.allocate_register(node.line)
        self._generate_into(node.value, reg)
        self._record_result(reg)
        self.ctx.emit(Opcode.MOVE, slot, reg, comment=f"{node.variable} :=")
        self.ctx.free_register(reg)

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        reg = self.ctx.allocate_register(node.line)
        self._generate_into(node.expr, reg)
        self._record_result(reg)
        self.ctx.free_register(reg)

    def visit_program(self, node: Program) -> None:
        for index, stmt in enumerate(node.statements, 1):
            self._statement_index = index
            stmt.accept(self)
        self.ctx.emit(Opcode.MOVE, self.ctx.registers[0], Immediate(0), comment="exit code")


class CodeGenerationPass(BasePass):
    """Generates register-machine code; result stored as a GeneratedProgram."""
    requires = [SemanticAnalysisPass]

    def run(self, program: Program, tcx: CompilationContext) -> Program:
        ctx = CodeGenContext(TargetArch(tcx.target), tcx.source_file)
        tcx.set_analysis(CodeGenerationPass, CodeGenerator(ctx).generate(program))
        return program


# ============================================================================
# Backend (codegen + reference interpreter)
# ============================================================================

class RegisterMachineBackend(Backend):
    """
    Register machine backend.

    execute() is a reference interpreter used to check generated code: it
    runs the instruction list on a MachineState and samples each statement's
    value at its result site.
    """

    def __init__(self, target: TargetArch = TargetArch(DEFAULT_TARGET),
                 max_steps: int = MAX_EXECUTION_STEPS):
        self.target = target
        self.max_steps = max_steps

    def codegen(self, program: Program, source_file: str = "<input>") -> GeneratedProgram:
        return CodeGenerator(CodeGenContext(self.target, source_file)).generate(program)

    def execute(self, generated: GeneratedProgram) -> ExecutionResult:
        state = MachineState(REGISTER_COUNT, generated.frame_size)
        names = list(generated.target.register_names) + [generated.target.frame_base_name]
        values: Dict[int, int] = {}
        try:
            self._run(generated, state, values)
        except ProplangError as e:
            logger.debug("execution fault: %s", e.message)
            return ExecutionResult(
                registers=_register_dump(names, state),
                statement_values=values,
                error=e,
            )
        return ExecutionResult(
            registers=_register_dump(names, state),
            exit_code=state.get_register(0),
            statement_values=values,
        )

    def _run(self, generated: GeneratedProgram, state: MachineState, values: Dict[int, int]) -> None:
        instructions = generated.instructions
        labels = {
            str(inst.operands[0]): i for i, inst in enumerate(instructions) if inst.opcode is Opcode.LABEL
        }
        sites: Dict[int, List[ResultSite]] = {}
        for site in generated.result_sites:
            sites.setdefault(site.instruction_index, []).append(site)

        def read(op: Operand) -> int:
            if isinstance(op, Register):
                return state.get_register(op.index)
            if isinstance(op, Immediate):
                return op.value
            if isinstance(op, Memory):
                return state.load(op.base.index, op.offset)
            raise MachineFault(f"cannot read a value from label operand {op}")

        def write(op: Operand, value: int) -> None:
            if isinstance(op, Register):
                state.set_register(op.index, value)
            elif isinstance(op, Memory):
                state.store(op.base.index, op.offset, value)
            else:
                raise MachineFault(f"cannot write to operand {op}")

        def jump(op: Operand) -> int:
            if not isinstance(op, LabelRef) or op.name not in labels:
                raise MachineFault(f"unknown jump target {op}")
            return labels[op.name]

        while state.pc < len(instructions):
            state.steps += 1
            if state.steps > self.max_steps:
                raise MachineFault(f"step limit of {self.max_steps} exceeded")
            index = state.pc
            inst = instructions[index]
            ops = inst.operands
            op = inst.opcode
            state.pc += 1

            if op is Opcode.MOVE:
                write(ops[0], read(ops[1]))
            elif op in _BINARY_ALU:
                result = _BINARY_ALU[op](read(ops[0]), read(ops[1]))
                write(ops[0], result)
                state.zero_flag = result == 0
            elif op is Opcode.NOT:
                result = read(ops[0]) ^ 1
                write(ops[0], result)
                state.zero_flag = result == 0
            elif op is Opcode.COMPARE:
                state.zero_flag = read(ops[0]) - read(ops[1]) == 0
            elif op is Opcode.TEST:
                state.zero_flag = read(ops[0]) & read(ops[1]) == 0
            elif op is Opcode.JUMP:
                state.pc = jump(ops[0])
            elif op is Opcode.JUMP_EQ:
                if state.zero_flag:
                    state.pc = jump(ops[0])
            elif op is Opcode.JUMP_NEQ:
                if not state.zero_flag:
                    state.pc = jump(ops[0])
            elif op is Opcode.CALL:
                state.call_stack.append(state.pc)
                state.pc = jump(ops[0])
            elif op is Opcode.RETURN:
                address = state.return_address()
                state.pc = len(instructions) if address is None else address
            elif op is Opcode.PUSH:
                state.push(read(ops[0]))
            elif op is Opcode.POP:
                write(ops[0], state.pop())
            # LABEL: no-op

            for site in sites.get(index, ()):
                values[site.statement_index] = state.get_register(site.register.index)


_BINARY_ALU = {
    Opcode.ADD: lambda a, b: a + b,
    Opcode.SUB: lambda a, b: a - b,
    Opcode.OR: lambda a, b: a | b,
    Opcode.AND: lambda a, b: a & b,
    Opcode.XOR: lambda a, b: a ^ b,
}


def _register_dump(names: List[str], state: MachineState) -> Dict[str, int]:
    return {name: state.get_register(i) for i, name in enumerate(names)}
