"""
CHIP-8 Emulator - Main Orchestrator
===================================

This module provides the main `Emulator` class that wires the CHIP-8
components together behind a small, host-friendly API.

The Emulator class:
- Owns one interpreter: memory, CPU, display, keypad and timers
- Loads programs from raw bytes or ROM files
- Exposes the core interfaces (step, tick_timers, set_key, framebuffer,
  is_sound_active, reset)
- Offers a deterministic reference driver (run_frames, run_for) where
  timing is a pure function of the frame count or elapsed time supplied
- Halts on fatal errors until the next reset

Example usage:
    >>> from chip8_vm.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(cycles_per_frame=12))
    >>> emu.load_rom("pong.ch8")
    >>> emu.run_frames(60)        # one emulated second
    >>> print(emu.display_text)
"""

import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..errors import Chip8Error, EmulatorHalted, ExecutionError, LoadTooLarge
from .cpu import CPU
from .display import Display, Framebuffer
from .events import RunReason, StepEvent, StepOutcome
from .keyboard import Keypad, key_index
from .memory import MAX_PROGRAM_SIZE, Memory, PROGRAM_START
from .timers import FrameClock, Timers, TIMER_HZ

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        cycles_per_frame: Instructions executed per timer tick by the
            reference driver (default 10, about 600 instructions/second)
        timer_hz: Timer tick rate in Hz (default 60)
        seed: Seed for the RND instruction; None for a random seed

    Example:
        >>> config = EmulatorConfig(cycles_per_frame=20, seed=1234)
    """
    cycles_per_frame: int = 10
    timer_hz: int = TIMER_HZ
    seed: Optional[int] = None

    def __post_init__(self):
        if self.cycles_per_frame < 1:
            raise ValueError(
                f"cycles_per_frame must be at least 1, got {self.cycles_per_frame}"
            )
        if self.timer_hz < 1:
            raise ValueError(f"timer_hz must be at least 1, got {self.timer_hz}")

    @classmethod
    def from_env(cls) -> "EmulatorConfig":
        """
        Create EmulatorConfig from environment variables.

        Environment variables (all optional, invalid values are ignored):
            CHIP8_CYCLES_PER_FRAME: Instructions per frame (integer)
            CHIP8_TIMER_HZ: Timer rate (integer)
            CHIP8_SEED: RND seed (integer)

        Returns:
            EmulatorConfig with values from environment variables
        """
        values = {}
        for name, env in (
            ("cycles_per_frame", "CHIP8_CYCLES_PER_FRAME"),
            ("timer_hz", "CHIP8_TIMER_HZ"),
            ("seed", "CHIP8_SEED"),
        ):
            if raw := os.environ.get(env):
                try:
                    values[name] = int(raw)
                except ValueError:
                    logger.debug(f"Ignoring non-integer {env}={raw!r}")

        try:
            return cls(**values)
        except ValueError as e:
            logger.debug(f"Ignoring invalid environment configuration: {e}")
            return cls()


class Emulator:
    """
    CHIP-8 interpreter with a host-facing API.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        memory: 4KB memory
        display: 64x32 display surface
        keypad: 16-key keypad state
        timers: Delay and sound timers
        cpu: Execution unit

    Example:
        >>> emu = Emulator()
        >>> emu.load_program(bytes([0x60, 0x05]))
        >>> emu.step().outcome
        <StepOutcome.EXECUTED: 1>
        >>> emu.registers['v0']
        5
    """

    def __init__(self, config: Optional[EmulatorConfig] = None):
        """
        Initialize the emulator in its reset state.

        Args:
            config: EmulatorConfig; defaults to EmulatorConfig()
        """
        self.config = config or EmulatorConfig()

        self.memory = Memory()
        self.display = Display()
        self.keypad = Keypad()
        self.timers = Timers()
        self.cpu = CPU(
            self.memory,
            self.display,
            self.keypad,
            self.timers,
            rng=random.Random(self.config.seed),
        )
        self.clock = FrameClock(self.config.timer_hz)

        self._last_error: Optional[Chip8Error] = None
        self._total_steps = 0
        self._total_frames = 0

    # =========================================================================
    # Program Loading
    # =========================================================================

    def reset(self) -> None:
        """
        Reset to power-on state.

        Memory is zeroed (font reinstalled), registers, I, stack and timers
        cleared, PC set to $200, display cleared, keys released, and any
        halt or key wait cancelled. The RND generator is reseeded from
        the configured seed so a seeded run repeats after a reset.
        """
        self.memory.clear()
        self.cpu.reset()
        self.cpu.rng.seed(self.config.seed)
        self.display.clear()
        self.keypad.reset()
        self.timers.reset()
        self.clock.reset()
        self._last_error = None
        self._total_steps = 0
        self._total_frames = 0
        logger.debug("Emulator reset")

    def load_program(self, data: bytes, reset: bool = False) -> None:
        """
        Copy a program image to $200.

        Args:
            data: Program bytes (at most 3584)
            reset: Reset the whole machine first (cold start)

        Raises:
            LoadTooLarge: If the image does not fit; nothing is changed
        """
        data = bytes(data)
        if len(data) > MAX_PROGRAM_SIZE:
            raise LoadTooLarge(len(data), MAX_PROGRAM_SIZE)
        if reset:
            self.reset()
        self.memory.load_program(data, PROGRAM_START)
        logger.info(f"Loaded {len(data)} byte program at ${PROGRAM_START:03X}")

    def load_rom(self, path: Union[str, Path], reset: bool = True) -> None:
        """
        Load a ROM file from disk.

        Args:
            path: Path to the ROM image
            reset: Reset the whole machine first (default True)

        Raises:
            FileNotFoundError: If the ROM file doesn't exist
            LoadTooLarge: If the ROM is larger than 3584 bytes
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"ROM file not found: {path}")
        logger.debug(f"Reading ROM {path}")
        self.load_program(path.read_bytes(), reset=reset)

    # =========================================================================
    # Execution Control
    # =========================================================================

    def step(self) -> StepEvent:
        """
        Execute a single fetch-decode-execute cycle.

        Returns:
            StepEvent with reason=STEP and the step outcome

        Raises:
            ExecutionError: On a fatal error; the emulator is then halted
            EmulatorHalted: If a previous step failed and no reset followed
        """
        if self._last_error is not None:
            raise EmulatorHalted(self._last_error)

        address = self.cpu.pc
        opcode = self._peek_opcode(address)
        try:
            outcome = self.cpu.step()
        except ExecutionError as e:
            self._last_error = e
            logger.error(f"Emulator halted: {e}")
            raise

        self._total_steps += 1
        return StepEvent(
            RunReason.STEP,
            outcome=outcome,
            address=address,
            opcode=opcode,
            steps=1,
        )

    def tick_timers(self) -> None:
        """Decrement the delay and sound timers once (call at 60 Hz)."""
        self.timers.tick()

    def run(self, max_steps: int = 1000) -> StepEvent:
        """
        Step until the budget is spent or the VM waits for a key.

        Timers are not ticked; use run_frames() for timed execution.

        Args:
            max_steps: Maximum number of steps

        Returns:
            StepEvent with reason MAX_STEPS or AWAITING_KEY
        """
        last: Optional[StepEvent] = None
        steps = 0

        while steps < max_steps:
            last = self.step()
            steps += 1
            if last.outcome is StepOutcome.AWAITING_KEY:
                return StepEvent(
                    RunReason.AWAITING_KEY,
                    outcome=last.outcome,
                    address=last.address,
                    opcode=last.opcode,
                    steps=steps,
                )

        return StepEvent(
            RunReason.MAX_STEPS,
            outcome=last.outcome if last else None,
            address=last.address if last else None,
            opcode=last.opcode if last else None,
            steps=steps,
        )

    def run_frames(self, frames: int) -> int:
        """
        Run a number of timer frames.

        Each frame ticks the timers once, then executes up to
        cycles_per_frame instructions. Stepping stops for the rest of a
        frame while the VM waits for a key; timers keep ticking.

        Args:
            frames: Number of frames to run

        Returns:
            Number of steps that did work (key-wait polls excluded)
        """
        executed = 0
        for _ in range(frames):
            self.tick_timers()
            self._total_frames += 1
            for _ in range(self.config.cycles_per_frame):
                if self.cpu.awaiting_key and not self.cpu.key_ready:
                    break
                self.step()
                executed += 1
        return executed

    def run_for(self, elapsed: float) -> int:
        """
        Run for an amount of emulated time.

        Args:
            elapsed: Seconds elapsed since the previous call

        Returns:
            Number of steps executed
        """
        return self.run_frames(self.clock.advance(elapsed))

    def _peek_opcode(self, address: int) -> Optional[int]:
        if 0 <= address < len(self.memory) - 1:
            return self.memory.read_word(address)
        return None

    # =========================================================================
    # Keyboard Input
    # =========================================================================

    def set_key(self, index: int, pressed: bool) -> None:
        """
        Update a keypad key.

        Args:
            index: Key index 0-15
            pressed: True if held
        """
        self.keypad.set_key(index, pressed)

    def press_key(self, key: Union[str, int]) -> None:
        """
        Press a key by host key name ('Q', 'X', ...) or keypad index.
        """
        index = key if isinstance(key, int) else key_index(key)
        self.keypad.set_key(index, True)

    def release_key(self, key: Union[str, int]) -> None:
        """
        Release a key by host key name or keypad index.
        """
        index = key if isinstance(key, int) else key_index(key)
        self.keypad.set_key(index, False)

    # =========================================================================
    # Display and Sound Output
    # =========================================================================

    def framebuffer(self) -> Framebuffer:
        """
        Get a read-only snapshot of the display.

        Returns:
            32 rows of 64 booleans
        """
        return self.display.framebuffer()

    @property
    def display_text(self) -> str:
        """Display rendered as '#'/'.' text, one line per row."""
        return self.display.get_text()

    def render_display(self, scale: int = 8) -> bytes:
        """
        Render the display to PNG.

        Args:
            scale: Pixel scaling factor (default 8)

        Returns:
            PNG image bytes
        """
        return self.display.render_image(scale=scale)

    def is_sound_active(self) -> bool:
        """True while the sound timer is non-zero."""
        return self.timers.is_sound_active

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        """Read a single byte from memory."""
        return self.memory.read(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read multiple bytes from memory."""
        return self.memory.read_block(address, count)

    def write_bytes(self, address: int, data: bytes) -> None:
        """Write multiple bytes to memory."""
        self.memory.write_block(address, data)

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """
        Get current register values as a dictionary.

        Returns:
            Dictionary with keys v0-vf, i, pc, sp, dt, st
        """
        result = {f"v{r:x}": value for r, value in enumerate(self.cpu.v)}
        result.update({
            'i': self.cpu.i,
            'pc': self.cpu.pc,
            'sp': self.cpu.sp,
            'dt': self.timers.delay,
            'st': self.timers.sound,
        })
        return result

    @property
    def awaiting_key(self) -> bool:
        """True while the VM is blocked on Fx0A."""
        return self.cpu.awaiting_key

    @property
    def is_halted(self) -> bool:
        """True after a fatal error until the next reset."""
        return self._last_error is not None

    @property
    def last_error(self) -> Optional[Chip8Error]:
        """The fatal error that halted the emulator, if any."""
        return self._last_error

    @property
    def total_steps(self) -> int:
        """Steps executed since the last reset."""
        return self._total_steps

    @property
    def total_frames(self) -> int:
        """Frames run since the last reset."""
        return self._total_frames

    def __repr__(self) -> str:
        """Return string representation of emulator state."""
        return (
            f"Emulator(pc=${self.cpu.pc:04X}, "
            f"i=${self.cpu.i:04X}, "
            f"steps={self._total_steps})"
        )
