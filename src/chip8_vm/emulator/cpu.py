"""
CHIP-8 CPU
==========

Execution unit for the CHIP-8 virtual machine.

Registers:
- V0-VF: 16 general-purpose 8-bit registers (VF doubles as the flag register)
- I: 16-bit index register, used as a memory address
- PC: 16-bit program counter, address of the next instruction
- Call stack: up to 16 return addresses

Each call to step() performs exactly one fetch-decode-execute cycle.
The fetch advances PC by 2; jumps, calls and returns then overwrite it,
and a taken skip adds another 2.

Flag conventions (VF is always written last, as exactly 0 or 1):
- 8xy4 ADD:  VF = carry (sum > 255)
- 8xy5 SUB:  VF = NOT borrow (Vx > Vy)
- 8xy7 SUBN: VF = NOT borrow (Vy > Vx)
- 8xy6 SHR:  VF = bit 0 of Vx before the shift
- 8xyE SHL:  VF = bit 7 of Vx before the shift
- Dxyn DRW:  VF = 1 if any lit pixel was turned off

Key wait (Fx0A) does not block: the CPU enters an explicit waiting mode
and every following step is a no-op until the keypad press count moves
past the count recorded when the wait began. The keypad is only read,
never changed. The host can check `key_ready` to stop stepping meanwhile.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from ..errors import (
    ExecutionError,
    StackOverflow,
    StackUnderflow,
    UnrecognizedPrimaryOpcode,
)
from .decoder import Instruction, Op, decode
from .display import Display
from .events import StepOutcome
from .keyboard import Keypad
from .memory import Memory, PROGRAM_START, font_address
from .timers import Timers

logger = logging.getLogger(__name__)

NUM_REGISTERS = 16
STACK_CAPACITY = 16
FLAG = 0xF


class Registers:
    """
    The sixteen V registers.

    Indexing always yields the register's stored value; writes are masked
    to 8 bits, so arithmetic wraps modulo 256.

    Example:
        >>> v = Registers()
        >>> v[3] = 0x1FF
        >>> v[3]
        255
    """

    def __init__(self):
        self._values = bytearray(NUM_REGISTERS)

    def __getitem__(self, index: int) -> int:
        return self._values[index]

    def __setitem__(self, index: int, value: int) -> None:
        self._values[index] = value & 0xFF

    def __len__(self) -> int:
        return NUM_REGISTERS

    def __iter__(self):
        return iter(self._values)

    def __repr__(self) -> str:
        return "Registers(" + " ".join(f"{b:02X}" for b in self._values) + ")"

    def clear(self) -> None:
        self._values[:] = bytes(NUM_REGISTERS)


class CallStack:
    """
    Fixed-capacity return address stack.

    The stack pointer is the number of entries held. Pushing onto a full
    stack or popping an empty one raises, and leaves the stack unchanged.
    """

    def __init__(self, capacity: int = STACK_CAPACITY):
        self.capacity = capacity
        self._entries: list[int] = []

    @property
    def sp(self) -> int:
        """Stack pointer (current depth)."""
        return len(self._entries)

    def push(self, address: int) -> None:
        if len(self._entries) >= self.capacity:
            raise StackOverflow(self.capacity)
        self._entries.append(address & 0xFFFF)

    def pop(self) -> int:
        if not self._entries:
            raise StackUnderflow()
        return self._entries.pop()

    def entries(self) -> tuple[int, ...]:
        """Return addresses, oldest first."""
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()


@dataclass
class CPUState:
    """
    Complete CPU register state.

    Attributes:
        v: General-purpose registers V0-VF
        i: Index register (16-bit)
        pc: Program counter (16-bit)
        stack: Return address stack
        waiting_register: Register receiving the key while Fx0A waits
        wait_press_mark: Keypad press count when the wait began
    """
    v: Registers = field(default_factory=Registers)
    i: int = 0
    pc: int = PROGRAM_START
    stack: CallStack = field(default_factory=CallStack)
    waiting_register: Optional[int] = None
    wait_press_mark: int = 0


class CPU:
    """
    CHIP-8 execution unit.

    The CPU owns no peripherals; it is wired to the memory, display,
    keypad and timers of one interpreter and is their only mutator
    (apart from the host updating keys and ticking timers).

    Example:
        >>> mem = Memory()
        >>> mem.load_program(bytes([0x60, 0x05]))
        >>> cpu = CPU(mem, Display(), Keypad(), Timers())
        >>> cpu.step()
        <StepOutcome.EXECUTED: 1>
        >>> cpu.v[0], hex(cpu.pc)
        (5, '0x202')
    """

    def __init__(
        self,
        memory: Memory,
        display: Display,
        keypad: Keypad,
        timers: Timers,
        rng: Optional[random.Random] = None,
    ):
        self.memory = memory
        self.display = display
        self.keypad = keypad
        self.timers = timers
        self.rng = rng or random.Random()
        self.state = CPUState()

    # ========================================
    # Register Properties
    # ========================================

    @property
    def v(self) -> Registers:
        """General-purpose registers V0-VF."""
        return self.state.v

    @property
    def i(self) -> int:
        """Index register (16-bit)."""
        return self.state.i

    @i.setter
    def i(self, value: int) -> None:
        self.state.i = value & 0xFFFF

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFFFF

    @property
    def stack(self) -> CallStack:
        return self.state.stack

    @property
    def sp(self) -> int:
        """Stack pointer (number of return addresses held)."""
        return self.state.stack.sp

    @property
    def awaiting_key(self) -> bool:
        """True while an Fx0A instruction waits for a key press."""
        return self.state.waiting_register is not None

    @property
    def key_ready(self) -> bool:
        """True while waiting and a press has arrived since the wait began."""
        return (
            self.state.waiting_register is not None
            and self.keypad.press_count > self.state.wait_press_mark
            and self.keypad.last_press is not None
        )

    # ========================================
    # Reset
    # ========================================

    def reset(self) -> None:
        """Clear all registers and the stack, PC to the load address."""
        self.state = CPUState()

    # ========================================
    # Main Execution
    # ========================================

    def step(self) -> StepOutcome:
        """
        Execute exactly one instruction.

        Returns:
            What the step did

        Raises:
            ExecutionError: On a fatal error. PC is left on the faulting
                instruction and no memory write from it has happened.
        """
        if self.state.waiting_register is not None:
            return self._resume_key_wait()

        address = self.pc
        try:
            opcode = self.memory.read_word(address)
        except ExecutionError as e:
            raise e.locate(address, None)

        self.pc = address + 2
        instruction = decode(opcode)

        try:
            return self._execute(instruction)
        except ExecutionError as e:
            self.pc = address
            raise e.locate(address, opcode)

    def _resume_key_wait(self) -> StepOutcome:
        if not self.key_ready:
            return StepOutcome.AWAITING_KEY
        self.v[self.state.waiting_register] = self.keypad.last_press
        self.state.waiting_register = None
        self.pc += 2
        return StepOutcome.KEY_RECEIVED

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.pc += 2

    def _execute(self, ins: Instruction) -> StepOutcome:
        """
        Apply one decoded instruction. PC already points past it.

        Args:
            ins: Decoded instruction

        Returns:
            Step outcome
        """
        v = self.v
        x = ins.x
        y = ins.y

        match ins.op:
            # ============================================
            # Flow Control (0, 1, 2, B)
            # ============================================
            case Op.CLS:
                self.display.clear()
            case Op.RET:
                self.pc = self.stack.pop()
            case Op.JP:
                self.pc = ins.nnn
            case Op.CALL:
                self.stack.push(self.pc)
                self.pc = ins.nnn
            case Op.JP_V0:
                self.pc = ins.nnn + v[0]

            # ============================================
            # Conditional Skips (3, 4, 5, 9)
            # ============================================
            case Op.SE_BYTE:
                self._skip_if(v[x] == ins.kk)
            case Op.SNE_BYTE:
                self._skip_if(v[x] != ins.kk)
            case Op.SE_REG:
                self._skip_if(v[x] == v[y])
            case Op.SNE_REG:
                self._skip_if(v[x] != v[y])

            # ============================================
            # Immediate Loads (6, 7)
            # ============================================
            case Op.LD_BYTE:
                v[x] = ins.kk
            case Op.ADD_BYTE:
                v[x] = v[x] + ins.kk

            # ============================================
            # ALU (8xyN)
            # ============================================
            case Op.LD_REG:
                v[x] = v[y]
            case Op.OR:
                v[x] = v[x] | v[y]
            case Op.AND:
                v[x] = v[x] & v[y]
            case Op.XOR:
                v[x] = v[x] ^ v[y]
            case Op.ADD_REG:
                total = v[x] + v[y]
                v[x] = total
                v[FLAG] = 1 if total > 0xFF else 0
            case Op.SUB:
                not_borrow = 1 if v[x] > v[y] else 0
                v[x] = v[x] - v[y]
                v[FLAG] = not_borrow
            case Op.SHR:
                lsb = v[x] & 0x01
                v[x] = v[x] >> 1
                v[FLAG] = lsb
            case Op.SUBN:
                not_borrow = 1 if v[y] > v[x] else 0
                v[x] = v[y] - v[x]
                v[FLAG] = not_borrow
            case Op.SHL:
                msb = 1 if v[x] & 0x80 else 0
                v[x] = v[x] << 1
                v[FLAG] = msb

            # ============================================
            # Index, Random, Draw (A, C, D)
            # ============================================
            case Op.LD_I:
                self.i = ins.nnn
            case Op.RND:
                v[x] = self.rng.randrange(256) & ins.kk
            case Op.DRW:
                sprite = self.memory.read_block(self.i, ins.n)
                collision = self.display.blit(v[x], v[y], sprite)
                v[FLAG] = 1 if collision else 0

            # ============================================
            # Keypad (E)
            # ============================================
            case Op.SKP:
                self._skip_if(self.keypad.is_pressed(v[x] & 0xF))
            case Op.SKNP:
                self._skip_if(not self.keypad.is_pressed(v[x] & 0xF))

            # ============================================
            # Timers, Key Wait, Memory (F)
            # ============================================
            case Op.LD_VX_DT:
                v[x] = self.timers.delay
            case Op.LD_DT_VX:
                self.timers.delay = v[x]
            case Op.LD_ST_VX:
                self.timers.sound = v[x]
            case Op.LD_VX_K:
                # Stay on this instruction until a fresh press arrives
                self.state.waiting_register = x
                self.state.wait_press_mark = self.keypad.press_count
                self.pc -= 2
                return StepOutcome.AWAITING_KEY
            case Op.ADD_I:
                self.i = self.i + v[x]
            case Op.LD_F:
                self.i = font_address(v[x])
            case Op.LD_B:
                value = v[x]
                self.memory.write_block(
                    self.i, bytes([value // 100, (value // 10) % 10, value % 10])
                )
            case Op.STORE:
                self.memory.write_block(self.i, bytes(v[r] for r in range(x + 1)))
            case Op.LOAD:
                for r, value in enumerate(self.memory.read_block(self.i, x + 1)):
                    v[r] = value

            # ============================================
            # Unimplemented Sub-opcodes
            # ============================================
            case Op.SYS | Op.UNKNOWN:
                logger.warning(
                    f"Ignoring unimplemented opcode {ins.opcode:04X} "
                    f"at ${(self.pc - 2) & 0xFFFF:04X}"
                )
                return StepOutcome.IGNORED

            case _:
                raise UnrecognizedPrimaryOpcode(ins.opcode)

        return StepOutcome.EXECUTED
