"""
Step Results for CHIP-8 VM
==========================

Describes what happened during a step or a run, so hosts can react
(for example, stop stepping while the VM waits for a key) without
inspecting CPU internals.

Fatal errors are not reported here; they are raised as exceptions
(see chip8_vm.errors).
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class StepOutcome(Enum):
    """
    Result of a single CPU step.
    """
    EXECUTED = auto()      # Instruction applied normally
    IGNORED = auto()       # Unimplemented sub-opcode treated as a no-op
    AWAITING_KEY = auto()  # Fx0A is waiting; PC did not advance
    KEY_RECEIVED = auto()  # Fx0A completed with a fresh key press


class RunReason(Enum):
    """
    Why a multi-step run returned.
    """
    STEP = auto()          # Single step
    MAX_STEPS = auto()     # Step budget exhausted
    AWAITING_KEY = auto()  # VM entered or remains in key-wait mode


@dataclass
class StepEvent:
    """
    Information about a step or run.

    Attributes:
        reason: Why control returned to the caller
        outcome: Outcome of the last step executed (if any)
        address: Address of the last instruction executed
        opcode: Instruction word of the last instruction executed
        steps: Number of steps taken
        message: Human-readable description
    """
    reason: RunReason
    outcome: Optional[StepOutcome] = None
    address: Optional[int] = None
    opcode: Optional[int] = None
    steps: int = 0
    message: str = ""

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case RunReason.STEP:
                if self.address is not None and self.opcode is not None:
                    return f"Step at ${self.address:04X} ({self.opcode:04X})"
                return "Single step"
            case RunReason.MAX_STEPS:
                return f"Executed {self.steps} steps"
            case RunReason.AWAITING_KEY:
                return "Waiting for key press"
            case _:
                return "Unknown"
