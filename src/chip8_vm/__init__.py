"""
CHIP-8 VM - Interpreter and Tools for the CHIP-8 Virtual Machine
================================================================

This package provides a headless interpreter for the CHIP-8 virtual
machine, the 1970s bytecode VM designed for programming games on the
COSMAC VIP and still widely used as a first emulation target.

The machine has 4KB of memory, sixteen 8-bit registers, a 16-bit index
register, a 16-level call stack, two 60 Hz countdown timers, a 16-key
hexadecimal keypad and a 64x32 monochrome display drawn with XOR sprites.

Main Components
---------------
- **emulator**: The interpreter (CPU, memory, display, keypad, timers)
    and the Emulator facade that wires them together

- **disassembler**: Static disassembler producing Cowgod-style listings

- **cli**: Command-line tools
    c8run runs a ROM headless, c8disasm disassembles one

Quick Start
-----------
Run a program:
    >>> from chip8_vm import Emulator
    >>> emu = Emulator()
    >>> emu.load_rom("maze.ch8")
    >>> emu.run_frames(60)
    >>> print(emu.display_text)

Disassemble a ROM:
    >>> from chip8_vm import Chip8Disassembler
    >>> for instr in Chip8Disassembler().disassemble(rom_bytes):
    ...     print(instr)

Or use the command-line tools:
    $ c8run maze.ch8 --frames 120 --screenshot maze.png
    $ c8disasm maze.ch8 -o maze.lst

Reference Documentation
-----------------------
- Cowgod's CHIP-8 Technical Reference: http://devernay.free.fr/hacks/chip8/C8TECH10.HTM

Version History
---------------
1.0.0 - Initial release with interpreter, disassembler and command-line tools
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_vm.emulator import Emulator, EmulatorConfig, StepEvent, StepOutcome
from chip8_vm.disassembler import Chip8Disassembler, DisassembledInstruction
from chip8_vm.errors import (
    Chip8Error,
    LoadError,
    LoadTooLarge,
    ExecutionError,
    MemoryOutOfRange,
    StackOverflow,
    StackUnderflow,
    UnrecognizedPrimaryOpcode,
    EmulatorHalted,
)

__all__ = [
    # Version
    "__version__",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "StepEvent",
    "StepOutcome",
    # Disassembler
    "Chip8Disassembler",
    "DisassembledInstruction",
    # Errors
    "Chip8Error",
    "LoadError",
    "LoadTooLarge",
    "ExecutionError",
    "MemoryOutOfRange",
    "StackOverflow",
    "StackUnderflow",
    "UnrecognizedPrimaryOpcode",
    "EmulatorHalted",
]
