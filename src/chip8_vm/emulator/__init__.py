"""
CHIP-8 Virtual Machine
======================

A headless interpreter for the CHIP-8 virtual machine.

This package provides:

- **CPU**: Fetch-decode-execute for the 35 base instructions
- **Decoder**: Pure mapping from 16-bit words to tagged instructions
- **Memory**: 4KB with bounds checking and built-in hex font
- **Display**: 64x32 XOR-sprite framebuffer with per-pixel wraparound
- **Keypad**: 16-key state with press-transition tracking
- **Timers**: Delay/sound timers and an elapsed-time frame clock

Quick Start
-----------

Basic usage::

    >>> from chip8_vm.emulator import Emulator
    >>> emu = Emulator()
    >>> emu.load_program(bytes([0x60, 0x05, 0x12, 0x02]))
    >>> emu.run_frames(1)
    10
    >>> emu.registers['v0']
    5

Driving it from a host loop::

    while running:
        emu.run_for(elapsed_seconds)
        if emu.display.needs_refresh:
            draw(emu.framebuffer())
            emu.display.mark_refreshed()
        beeper.set(emu.is_sound_active())

Module Structure
----------------

- `emulator.py`: Main Emulator class (high-level API)
- `cpu.py`: Execution unit, registers and call stack
- `decoder.py`: Instruction decoder
- `memory.py`: Memory and font sprites
- `display.py`: Framebuffer
- `keyboard.py`: Keypad state and host key mapping
- `timers.py`: Timer unit and frame clock
- `events.py`: Step and run result types
"""

# Main entry point
from .emulator import Emulator, EmulatorConfig

# CPU components
from .cpu import CPU, CPUState, CallStack, Registers
from .decoder import Instruction, Op, decode

# Memory subsystem
from .memory import (
    Memory,
    FONT_ADDRESS,
    FONT_SPRITES,
    MAX_PROGRAM_SIZE,
    MEMORY_SIZE,
    PROGRAM_START,
)

# I/O
from .display import Display, HEIGHT, WIDTH
from .keyboard import Keypad, KEY_NAME_TO_INDEX, key_index
from .timers import FrameClock, Timers

# Results
from .events import RunReason, StepEvent, StepOutcome

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",

    # CPU
    "CPU",
    "CPUState",
    "CallStack",
    "Registers",
    "Instruction",
    "Op",
    "decode",

    # Memory
    "Memory",
    "FONT_ADDRESS",
    "FONT_SPRITES",
    "MAX_PROGRAM_SIZE",
    "MEMORY_SIZE",
    "PROGRAM_START",

    # Display
    "Display",
    "WIDTH",
    "HEIGHT",

    # Keypad
    "Keypad",
    "KEY_NAME_TO_INDEX",
    "key_index",

    # Timers
    "FrameClock",
    "Timers",

    # Results
    "RunReason",
    "StepEvent",
    "StepOutcome",
]
