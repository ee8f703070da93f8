"""
CHIP-8 VM Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from Chip8Error, allowing callers to catch every
VM-related error with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── LoadError (program loading)
│   └── LoadTooLarge - program does not fit above the load address
├── ExecutionError (fatal, raised by a step)
│   ├── MemoryOutOfRange - address outside $000-$FFF
│   ├── StackOverflow - CALL with a full call stack
│   ├── StackUnderflow - RET with an empty call stack
│   └── UnrecognizedPrimaryOpcode - dispatcher has no handler for a group
└── EmulatorHalted - step requested after a fatal error

Unimplemented sub-opcodes inside a known group are NOT errors. The CPU
treats them as no-ops and reports them through the step outcome and a
logged warning, so unusual ROMs keep running.

Error messages follow this format:
    $0204 (8AB8): stack overflow: call stack already holds 16 entries
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 VM errors.

        try:
            emu.run_frames(600)
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Load Exceptions
# =============================================================================

class LoadError(Chip8Error):
    """Base exception for program loading failures."""
    pass


class LoadTooLarge(LoadError):
    """
    Program image larger than the memory available above the load address.

    Oversized images are rejected outright; nothing is written to memory.

    Attributes:
        size: Size of the rejected image in bytes
        capacity: Number of bytes available at the load address
    """

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(
            f"program is {size} bytes but only {capacity} bytes are available"
        )


# =============================================================================
# Execution Exceptions
# =============================================================================

class ExecutionError(Chip8Error):
    """
    Base exception for fatal errors raised while executing an instruction.

    The CPU fills in the address and opcode of the faulting instruction
    before the error leaves step(), so messages always point at the culprit.

    Attributes:
        message: The error description
        address: Address of the faulting instruction (optional)
        opcode: The 16-bit instruction word (optional)
    """

    def __init__(
        self,
        message: str,
        address: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.message = message
        self.address = address
        self.opcode = opcode
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format as '$ADDR (OPCODE): message' when the location is known."""
        if self.address is None:
            return self.message
        if self.opcode is None:
            return f"${self.address:04X}: {self.message}"
        return f"${self.address:04X} ({self.opcode:04X}): {self.message}"

    def locate(self, address: int, opcode: Optional[int]) -> "ExecutionError":
        """Attach the faulting instruction location and refresh the message."""
        self.address = address
        self.opcode = opcode
        self.args = (self._format_message(),)
        return self


class MemoryOutOfRange(ExecutionError):
    """
    Memory access outside the 4KB address space.

    Raised for instruction fetches, sprite reads, font lookups and
    register dumps/loads alike. Addresses are never clamped or wrapped.
    """

    def __init__(self, access: int, length: int = 1):
        self.access = access
        self.length = length
        if length == 1:
            message = f"memory access out of range at ${access:04X}"
        else:
            end = access + length - 1
            message = f"memory access out of range at ${access:04X}-${end:04X}"
        super().__init__(message)


class StackOverflow(ExecutionError):
    """CALL executed while the call stack already holds its full capacity."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(
            f"stack overflow: call stack already holds {capacity} entries"
        )


class StackUnderflow(ExecutionError):
    """RET executed with an empty call stack."""

    def __init__(self):
        super().__init__("stack underflow: return with an empty call stack")


class UnrecognizedPrimaryOpcode(ExecutionError):
    """
    Instruction group with no handler in the execution unit.

    All sixteen top-nibble groups are defined by the architecture, so
    this indicates a defect in the decoder or dispatcher, never ROM
    behavior.
    """

    def __init__(self, opcode: int):
        super().__init__(f"unrecognized primary opcode group {opcode >> 12:X}")


# =============================================================================
# Emulator State Exceptions
# =============================================================================

class EmulatorHalted(Chip8Error):
    """
    Step requested after the emulator stopped on a fatal error.

    Attributes:
        cause: The fatal error that halted the emulator
    """

    def __init__(self, cause: Optional[Chip8Error] = None):
        self.cause = cause
        detail = f" ({cause})" if cause else ""
        super().__init__(f"emulator is halted{detail}; reset required")
