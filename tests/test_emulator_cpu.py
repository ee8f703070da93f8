"""
CHIP-8 CPU Unit Tests
=====================

Tests for the execution unit, covering:
- Register wraparound
- ALU flag behavior
- Flow control and the call stack
- Conditional skips
- Index, font, BCD and register dump/load
- Drawing
- Key wait mode
- Fatal errors and ignored opcodes
"""

import random

import pytest

from chip8_vm.emulator import CPU, Display, Keypad, Memory, Timers
from chip8_vm.emulator.cpu import CallStack, Registers
from chip8_vm.emulator.events import StepOutcome
from chip8_vm.emulator.memory import FONT_ADDRESS
from chip8_vm.errors import (
    MemoryOutOfRange,
    StackOverflow,
    StackUnderflow,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def cpu():
    """CPU wired to fresh components with a fixed RNG seed."""
    return CPU(Memory(), Display(), Keypad(), Timers(), rng=random.Random(42))


def load(cpu: CPU, *words: int) -> None:
    """Load instruction words at $200."""
    cpu.memory.load_program(b"".join(w.to_bytes(2, "big") for w in words))


def run(cpu: CPU, steps: int) -> None:
    for _ in range(steps):
        cpu.step()


# =============================================================================
# Register Tests
# =============================================================================

class TestRegisters:
    """Test the V register file and call stack containers."""

    def test_initial_state(self, cpu):
        """Registers start at zero with PC at $200."""
        assert list(cpu.v) == [0] * 16
        assert cpu.i == 0
        assert cpu.pc == 0x200
        assert cpu.sp == 0

    def test_writes_wrap(self):
        """Register writes are masked to 8 bits."""
        v = Registers()
        v[0] = 0x1FF
        v[1] = -1
        assert v[0] == 0xFF
        assert v[1] == 0xFF

    def test_index_masked(self, cpu):
        """I is masked to 16 bits."""
        cpu.i = 0x12345
        assert cpu.i == 0x2345

    def test_call_stack_push_pop(self):
        stack = CallStack()
        stack.push(0x202)
        stack.push(0x300)
        assert stack.sp == 2
        assert stack.entries() == (0x202, 0x300)
        assert stack.pop() == 0x300
        assert stack.sp == 1

    def test_call_stack_overflow_leaves_stack(self):
        stack = CallStack(capacity=2)
        stack.push(1)
        stack.push(2)
        with pytest.raises(StackOverflow):
            stack.push(3)
        assert stack.entries() == (1, 2)

    def test_call_stack_underflow(self):
        with pytest.raises(StackUnderflow):
            CallStack().pop()

    def test_reset(self, cpu):
        cpu.v[3] = 9
        cpu.i = 0x300
        cpu.pc = 0x400
        cpu.stack.push(0x202)
        cpu.reset()
        assert cpu.v[3] == 0
        assert cpu.i == 0
        assert cpu.pc == 0x200
        assert cpu.sp == 0


# =============================================================================
# Load and Add Immediate
# =============================================================================

class TestImmediate:
    """Test 6xkk and 7xkk."""

    def test_load_byte(self, cpu):
        """Loading 60 05 and stepping gives V0=5, PC=$202."""
        load(cpu, 0x6005)
        assert cpu.step() is StepOutcome.EXECUTED
        assert cpu.v[0] == 5
        assert cpu.pc == 0x202

    def test_add_byte_wraps_without_flag(self, cpu):
        """7xkk wraps and leaves VF alone."""
        load(cpu, 0x6AF0, 0x6F07, 0x7A20)
        run(cpu, 3)
        assert cpu.v[0xA] == 0x10
        assert cpu.v[0xF] == 7


# =============================================================================
# ALU Tests
# =============================================================================

class TestALU:
    """Test the 8xyN group."""

    def test_ld_reg(self, cpu):
        load(cpu, 0x6142, 0x8010)
        run(cpu, 2)
        assert cpu.v[0] == 0x42

    def test_or_and_xor(self, cpu):
        load(cpu, 0x60F0, 0x613C, 0x8011, 0x62F0, 0x8212, 0x63F0, 0x8313)
        run(cpu, 7)
        assert cpu.v[0] == 0xFC
        assert cpu.v[2] == 0x30
        assert cpu.v[3] == 0xCC

    def test_add_with_carry(self, cpu):
        load(cpu, 0x60C8, 0x6164, 0x8014)
        run(cpu, 3)
        assert cpu.v[0] == 44
        assert cpu.v[0xF] == 1

    def test_add_without_carry(self, cpu):
        load(cpu, 0x6F05, 0x600A, 0x6114, 0x8014)
        run(cpu, 4)
        assert cpu.v[0] == 30
        assert cpu.v[0xF] == 0

    def test_sub_borrow(self, cpu):
        """8xy5 with Vx < Vy wraps and clears VF."""
        load(cpu, 0x600A, 0x6114, 0x8015)
        run(cpu, 3)
        assert cpu.v[0] == 246
        assert cpu.v[0xF] == 0

    def test_sub_no_borrow(self, cpu):
        load(cpu, 0x6014, 0x610A, 0x8015)
        run(cpu, 3)
        assert cpu.v[0] == 10
        assert cpu.v[0xF] == 1

    def test_sub_equal_clears_flag(self, cpu):
        load(cpu, 0x600A, 0x610A, 0x8015)
        run(cpu, 3)
        assert cpu.v[0] == 0
        assert cpu.v[0xF] == 0

    def test_subn(self, cpu):
        load(cpu, 0x600A, 0x6114, 0x8017)
        run(cpu, 3)
        assert cpu.v[0] == 10
        assert cpu.v[0xF] == 1

    def test_subn_borrow(self, cpu):
        load(cpu, 0x6014, 0x610A, 0x8017)
        run(cpu, 3)
        assert cpu.v[0] == 246
        assert cpu.v[0xF] == 0

    def test_shr(self, cpu):
        load(cpu, 0x6005, 0x8006)
        run(cpu, 2)
        assert cpu.v[0] == 0x02
        assert cpu.v[0xF] == 1

    def test_shl(self, cpu):
        load(cpu, 0x6081, 0x800E)
        run(cpu, 2)
        assert cpu.v[0] == 0x02
        assert cpu.v[0xF] == 1

    def test_shl_no_carry(self, cpu):
        load(cpu, 0x6F01, 0x6041, 0x800E)
        run(cpu, 3)
        assert cpu.v[0] == 0x82
        assert cpu.v[0xF] == 0

    def test_flag_written_last(self, cpu):
        """With VF as destination, the flag overwrites the result."""
        load(cpu, 0x6FC8, 0x6164, 0x8F14)
        run(cpu, 3)
        assert cpu.v[0xF] == 1

    @pytest.mark.parametrize("a,b", [(0, 0), (255, 255), (128, 128), (1, 255), (200, 57)])
    def test_add_sub_flags_are_boolean(self, cpu, a, b):
        load(cpu, 0x6000 | a, 0x6100 | b, 0x8014, 0x6200 | a, 0x8215, 0x6300 | a, 0x8317)
        run(cpu, 3)
        assert cpu.v[0] == (a + b) & 0xFF
        assert cpu.v[0xF] in (0, 1)
        run(cpu, 2)
        assert cpu.v[2] == (a - b) & 0xFF
        assert cpu.v[0xF] in (0, 1)
        run(cpu, 2)
        assert cpu.v[3] == (b - a) & 0xFF
        assert cpu.v[0xF] in (0, 1)


# =============================================================================
# Flow Control Tests
# =============================================================================

class TestFlowControl:
    """Test jumps, calls and returns."""

    def test_jump(self, cpu):
        load(cpu, 0x1234)
        cpu.step()
        assert cpu.pc == 0x234

    def test_jump_v0(self, cpu):
        load(cpu, 0x6004, 0xB300)
        run(cpu, 2)
        assert cpu.pc == 0x304

    def test_call_and_return(self, cpu):
        """CALL then RET resumes after the CALL with the stack restored."""
        load(cpu, 0x2206, 0x0000, 0x0000, 0x00EE)
        cpu.step()
        assert cpu.pc == 0x206
        assert cpu.sp == 1
        cpu.step()
        assert cpu.pc == 0x202
        assert cpu.sp == 0

    def test_stack_overflow(self, cpu):
        """The seventeenth nested CALL raises."""
        load(cpu, 0x2200)
        run(cpu, 16)
        assert cpu.sp == 16
        with pytest.raises(StackOverflow) as exc_info:
            cpu.step()
        assert cpu.sp == 16
        assert cpu.pc == 0x200
        assert exc_info.value.address == 0x200
        assert exc_info.value.opcode == 0x2200

    def test_stack_underflow(self, cpu):
        load(cpu, 0x00EE)
        with pytest.raises(StackUnderflow):
            cpu.step()
        assert cpu.pc == 0x200


# =============================================================================
# Conditional Skip Tests
# =============================================================================

class TestSkips:
    """Test 3xkk, 4xkk, 5xy0, 9xy0, Ex9E and ExA1."""

    @pytest.mark.parametrize("program,expected_pc", [
        ((0x6007, 0x3007), 0x206),
        ((0x6007, 0x3008), 0x204),
        ((0x6007, 0x4008), 0x206),
        ((0x6007, 0x4007), 0x204),
        ((0x6007, 0x6107, 0x5010), 0x208),
        ((0x6007, 0x6108, 0x5010), 0x206),
        ((0x6007, 0x6108, 0x9010), 0x208),
        ((0x6007, 0x6107, 0x9010), 0x206),
    ])
    def test_register_skips(self, cpu, program, expected_pc):
        load(cpu, *program)
        run(cpu, len(program))
        assert cpu.pc == expected_pc

    def test_skp_pressed(self, cpu):
        load(cpu, 0x6005, 0xE09E)
        cpu.keypad.set_key(5, True)
        run(cpu, 2)
        assert cpu.pc == 0x206

    def test_skp_not_pressed(self, cpu):
        load(cpu, 0x6005, 0xE09E)
        run(cpu, 2)
        assert cpu.pc == 0x204

    def test_sknp(self, cpu):
        load(cpu, 0x6005, 0xE0A1)
        run(cpu, 2)
        assert cpu.pc == 0x206

    def test_key_uses_low_nibble(self, cpu):
        load(cpu, 0x6015, 0xE09E)
        cpu.keypad.set_key(5, True)
        run(cpu, 2)
        assert cpu.pc == 0x206


# =============================================================================
# Index and Memory Tests
# =============================================================================

class TestIndexAndMemory:
    """Test Annn, Fx1E, Fx29, Fx33, Fx55, Fx65."""

    def test_ld_i(self, cpu):
        load(cpu, 0xA123)
        cpu.step()
        assert cpu.i == 0x123

    def test_add_i(self, cpu):
        load(cpu, 0xA100, 0x6005, 0xF01E)
        run(cpu, 3)
        assert cpu.i == 0x105

    def test_font_address(self, cpu):
        load(cpu, 0x600A, 0xF029)
        run(cpu, 2)
        assert cpu.i == FONT_ADDRESS + 0xA * 5

    def test_font_address_low_nibble(self, cpu):
        load(cpu, 0x601A, 0xF029)
        run(cpu, 2)
        assert cpu.i == FONT_ADDRESS + 0xA * 5

    def test_bcd(self, cpu):
        load(cpu, 0x60EA, 0xA300, 0xF033)
        run(cpu, 3)
        assert cpu.memory.read_block(0x300, 3) == bytes([2, 3, 4])
        assert cpu.i == 0x300

    def test_store_registers(self, cpu):
        load(cpu, 0x6001, 0x6102, 0x6203, 0x6309, 0xA300, 0xF255)
        run(cpu, 6)
        assert cpu.memory.read_block(0x300, 4) == bytes([1, 2, 3, 0])
        assert cpu.i == 0x300

    def test_load_registers(self, cpu):
        cpu.memory.write_block(0x300, bytes([7, 8, 9]))
        load(cpu, 0xA300, 0xF265)
        run(cpu, 2)
        assert [cpu.v[r] for r in range(4)] == [7, 8, 9, 0]
        assert cpu.i == 0x300

    def test_store_out_of_range_is_atomic(self, cpu):
        """A failing register dump writes nothing."""
        load(cpu, 0x6055, 0xAFFE, 0xF255)
        run(cpu, 2)
        with pytest.raises(MemoryOutOfRange):
            cpu.step()
        assert cpu.memory.read_block(0xFFE, 2) == bytes(2)
        assert cpu.pc == 0x204


# =============================================================================
# Timer Instruction Tests
# =============================================================================

class TestTimerInstructions:
    """Test Fx07, Fx15, Fx18."""

    def test_set_and_read_delay(self, cpu):
        load(cpu, 0x601E, 0xF015, 0xF107)
        run(cpu, 3)
        assert cpu.timers.delay == 30
        assert cpu.v[1] == 30

    def test_set_sound(self, cpu):
        load(cpu, 0x6004, 0xF018)
        run(cpu, 2)
        assert cpu.timers.sound == 4
        assert cpu.timers.is_sound_active


# =============================================================================
# Random and Draw Tests
# =============================================================================

class TestRandomAndDraw:
    """Test Cxkk, Dxyn and 00E0."""

    def test_rnd_masked(self, cpu):
        expected = random.Random(42).randrange(256) & 0x0F
        load(cpu, 0xC00F)
        cpu.step()
        assert cpu.v[0] == expected

    def test_rnd_zero_mask(self, cpu):
        load(cpu, 0xC000)
        cpu.step()
        assert cpu.v[0] == 0

    def test_draw_font_glyph(self, cpu):
        load(cpu, 0x6000, 0xF029, 0xD005)
        run(cpu, 3)
        # Glyph 0 top row is F0
        assert [cpu.display.pixel(x, 0) for x in range(8)] == [True] * 4 + [False] * 4
        assert cpu.v[0xF] == 0

    def test_draw_twice_collides_and_restores(self, cpu):
        load(cpu, 0xF029, 0xD005, 0xD005)
        run(cpu, 2)
        assert cpu.display.lit_count > 0
        cpu.step()
        assert cpu.v[0xF] == 1
        assert cpu.display.lit_count == 0

    def test_draw_zero_rows(self, cpu):
        load(cpu, 0x6F01, 0xD000)
        run(cpu, 2)
        assert cpu.v[0xF] == 0
        assert cpu.display.lit_count == 0

    def test_draw_out_of_range_restores_pc(self, cpu):
        """A sprite read past memory raises with PC left on the DRW."""
        load(cpu, 0xAFFE, 0xD005)
        cpu.step()
        with pytest.raises(MemoryOutOfRange) as exc_info:
            cpu.step()
        assert cpu.pc == 0x202
        assert exc_info.value.address == 0x202
        assert exc_info.value.opcode == 0xD005
        assert "$0202 (D005)" in str(exc_info.value)

    def test_cls(self, cpu):
        load(cpu, 0xF029, 0xD005, 0x00E0)
        run(cpu, 2)
        assert cpu.display.lit_count > 0
        cpu.step()
        assert cpu.display.lit_count == 0


# =============================================================================
# Key Wait Tests
# =============================================================================

class TestKeyWait:
    """Test Fx0A suspension and resumption."""

    def test_waits_without_press(self, cpu):
        load(cpu, 0xF30A)
        assert cpu.step() is StepOutcome.AWAITING_KEY
        assert cpu.awaiting_key
        for _ in range(5):
            assert cpu.step() is StepOutcome.AWAITING_KEY
            assert cpu.pc == 0x200

    def test_press_resumes(self, cpu):
        load(cpu, 0xF30A, 0x6001)
        cpu.step()
        cpu.keypad.set_key(0xB, True)
        assert cpu.step() is StepOutcome.KEY_RECEIVED
        assert cpu.v[3] == 0xB
        assert cpu.pc == 0x202
        assert not cpu.awaiting_key
        cpu.step()
        assert cpu.v[0] == 1

    def test_held_key_does_not_release(self, cpu):
        """A key already held before Fx0A needs a fresh press."""
        load(cpu, 0xF30A)
        cpu.keypad.set_key(4, True)
        cpu.step()
        assert cpu.step() is StepOutcome.AWAITING_KEY
        cpu.keypad.set_key(4, False)
        cpu.keypad.set_key(4, True)
        assert cpu.step() is StepOutcome.KEY_RECEIVED
        assert cpu.v[3] == 4

    def test_key_wait_leaves_keypad_unchanged(self, cpu):
        """Entering and leaving the wait only reads the keypad."""
        load(cpu, 0xF30A)
        cpu.keypad.set_key(2, True)
        cpu.step()
        assert cpu.keypad.press_count == 1
        assert cpu.keypad.last_press == 2
        assert not cpu.key_ready

        cpu.keypad.set_key(9, True)
        assert cpu.key_ready
        cpu.step()
        assert cpu.v[3] == 9
        assert cpu.keypad.press_count == 2
        assert cpu.keypad.last_press == 9
        assert cpu.keypad.pressed_keys == [2, 9]
        assert not cpu.key_ready


# =============================================================================
# Error and Ignored Opcode Tests
# =============================================================================

class TestErrors:
    """Test fatal errors and ignored opcodes."""

    def test_unknown_sub_opcode_ignored(self, cpu, caplog):
        load(cpu, 0x5121)
        with caplog.at_level("WARNING"):
            assert cpu.step() is StepOutcome.IGNORED
        assert cpu.pc == 0x202
        assert "5121" in caplog.text

    def test_sys_ignored(self, cpu):
        load(cpu, 0x0123)
        assert cpu.step() is StepOutcome.IGNORED
        assert cpu.pc == 0x202

    @pytest.mark.parametrize("word", [0x8008, 0xE000, 0xF0FF, 0x9001])
    def test_unassigned_words_ignored(self, cpu, word):
        load(cpu, word)
        assert cpu.step() is StepOutcome.IGNORED

    def test_fetch_out_of_range(self, cpu):
        cpu.pc = 0xFFF
        with pytest.raises(MemoryOutOfRange) as exc_info:
            cpu.step()
        assert exc_info.value.address == 0xFFF
        assert cpu.pc == 0xFFF
