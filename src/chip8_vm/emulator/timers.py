"""
Timer Unit for CHIP-8 VM
========================

Two independent 8-bit countdown timers:

- Delay timer: read and written by the program for pacing
- Sound timer: while non-zero, the host should produce a tone

Both decrement once per tick and stop at zero. Ticks must arrive at a
fixed real-time cadence (60 Hz canonically) no matter how many
instructions run in between; the CPU never decrements them itself.

FrameClock turns caller-supplied elapsed time into a whole number of due
ticks. Nothing here reads the wall clock, so runs are reproducible.
"""

from dataclasses import dataclass

TIMER_HZ = 60


@dataclass
class Timers:
    """
    Delay and sound timer pair.

    Attributes:
        delay: Delay timer value (0-255)
        sound: Sound timer value (0-255)
    """
    delay: int = 0
    sound: int = 0

    def tick(self) -> None:
        """Decrement both timers once; zero timers stay at zero."""
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    @property
    def is_sound_active(self) -> bool:
        """True while the sound timer is running."""
        return self.sound > 0

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0


class FrameClock:
    """
    Converts elapsed time into timer ticks.

    Fractional ticks are carried between calls, so the total number of
    ticks depends only on the total elapsed time, however it is split.

    Example:
        >>> clock = FrameClock(60)
        >>> sum(clock.advance(0.01) for _ in range(100))
        60
    """

    def __init__(self, hz: int = TIMER_HZ):
        if hz <= 0:
            raise ValueError(f"hz must be positive, got {hz}")
        self.hz = hz
        self._remainder = 0.0

    @property
    def period(self) -> float:
        """Seconds per tick."""
        return 1.0 / self.hz

    def advance(self, elapsed: float) -> int:
        """
        Account for elapsed time.

        Args:
            elapsed: Seconds since the previous call (must be >= 0)

        Returns:
            Number of whole ticks now due
        """
        if elapsed < 0:
            raise ValueError(f"elapsed time cannot be negative, got {elapsed}")
        total = self._remainder + elapsed * self.hz
        # Absorb float error so that e.g. 100 x 0.01s at 60 Hz gives 60 ticks
        ticks = int(total + 1e-9)
        self._remainder = max(total - ticks, 0.0)
        return ticks

    def reset(self) -> None:
        self._remainder = 0.0
