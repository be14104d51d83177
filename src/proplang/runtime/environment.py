"""
Machine State

Register file, stack frame and control state of the abstract register
machine. Storage is numpy int64; every value the generated code produces is
0 or 1, but the machine itself does not assume it.
"""

from typing import List, Optional

import numpy as np

from ..shared.errors import MachineFault
from ..utils.config import STACK_SLOT_SIZE


class MachineState:
    """
    - registers: one int64 per register, allocatable registers first, then the frame base
    - frame: one int64 word per stack slot; the frame base points one past its top
    - zero_flag: set by every arithmetic/logic result, Compare and Test
    - value_stack / call_stack: Push/Pop and Call/Return
    """

    def __init__(self, register_count: int, frame_size: int):
        if frame_size % STACK_SLOT_SIZE:
            raise MachineFault(f"frame size {frame_size} is not a multiple of {STACK_SLOT_SIZE}")
        self.registers = np.zeros(register_count + 1, dtype=np.int64)
        self.frame = np.zeros(frame_size // STACK_SLOT_SIZE, dtype=np.int64)
        self.frame_base_index = register_count
        self.registers[self.frame_base_index] = frame_size
        self.zero_flag = False
        self.value_stack: List[int] = []
        self.call_stack: List[int] = []
        self.pc = 0
        self.steps = 0

    # --- registers ---

    def get_register(self, index: int) -> int:
        return int(self.registers[index])

    def set_register(self, index: int, value: int) -> None:
        self.registers[index] = value

    # --- memory ---

    def _word(self, base_index: int, offset: int) -> int:
        address = self.get_register(base_index) + offset
        if address % STACK_SLOT_SIZE:
            raise MachineFault(f"unaligned frame access at byte {address}")
        word = address // STACK_SLOT_SIZE
        if not 0 <= word < len(self.frame):
            raise MachineFault(f"frame access at byte {address} is outside the {len(self.frame)}-slot frame")
        return word

    def load(self, base_index: int, offset: int) -> int:
        return int(self.frame[self._word(base_index, offset)])

    def store(self, base_index: int, offset: int, value: int) -> None:
        self.frame[self._word(base_index, offset)] = value

    # --- stacks ---

    def push(self, value: int) -> None:
        self.value_stack.append(value)

    def pop(self) -> int:
        if not self.value_stack:
            raise MachineFault("pop from empty value stack")
        return self.value_stack.pop()

    def return_address(self) -> Optional[int]:
        """Pop the call stack; None means return from the entry frame (halt)."""
        return self.call_stack.pop() if self.call_stack else None
