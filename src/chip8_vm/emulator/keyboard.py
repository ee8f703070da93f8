"""
Keypad for CHIP-8 VM
====================

The CHIP-8 has a 16-key hexadecimal keypad. The core only stores which
logical keys are held; translating host input events into key states is
the host's job, helped by the conventional key-name mapping below.

Keypad layout and host mapping:

    CHIP-8 keypad        Host keys
    1  2  3  C           1  2  3  4
    4  5  6  D           Q  W  E  R
    7  8  9  E           A  S  D  F
    A  0  B  F           Z  X  C  V

Besides the held state, the keypad counts press transitions (not pressed
-> pressed) and remembers the latest one. Readers compare counts to see
whether a fresh press happened; the key-wait instruction (Fx0A) does this
without ever changing keypad state.
"""

from typing import Dict, Optional

NUM_KEYS = 16


# =============================================================================
# HOST KEY NAME MAPPING
# =============================================================================

KEY_NAME_TO_INDEX: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


def key_index(name: str) -> int:
    """
    Look up the keypad index for a host key name.

    Raises:
        ValueError: If the name is not part of the mapping
    """
    try:
        return KEY_NAME_TO_INDEX[name.upper()]
    except KeyError:
        raise ValueError(
            f"Unknown key '{name}'. Valid keys: {', '.join(KEY_NAME_TO_INDEX)}"
        ) from None


class Keypad:
    """
    Sixteen-key keypad state.

    Example:
        >>> pad = Keypad()
        >>> pad.set_key(0xA, True)
        >>> pad.is_pressed(0xA)
        True
        >>> pad.press_count, pad.last_press
        (1, 10)
    """

    def __init__(self):
        self._pressed = [False] * NUM_KEYS
        self._press_count = 0
        self._last_press: Optional[int] = None

    @staticmethod
    def _check_index(index: int) -> None:
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"Key index must be 0-15, got {index}")

    def set_key(self, index: int, pressed: bool) -> None:
        """
        Update the held state of one key.

        Args:
            index: Key index 0-15
            pressed: True if the key is now held

        Raises:
            ValueError: If index is out of range
        """
        self._check_index(index)
        if pressed and not self._pressed[index]:
            self._press_count += 1
            self._last_press = index
        self._pressed[index] = bool(pressed)

    def is_pressed(self, index: int) -> bool:
        """Check whether a key is held (index 0-15)."""
        self._check_index(index)
        return self._pressed[index]

    def key_down(self, name: str) -> None:
        """Press a key by host key name (e.g. 'Q' for keypad 4)."""
        self.set_key(key_index(name), True)

    def key_up(self, name: str) -> None:
        """Release a key by host key name."""
        self.set_key(key_index(name), False)

    @property
    def pressed_keys(self) -> list[int]:
        """Indices of all keys currently held."""
        return [i for i, held in enumerate(self._pressed) if held]

    @property
    def press_count(self) -> int:
        """Number of press transitions since the last reset."""
        return self._press_count

    @property
    def last_press(self) -> Optional[int]:
        """Key index of the most recent press transition, if any."""
        return self._last_press

    def reset(self) -> None:
        """Release all keys and forget press history."""
        self._pressed = [False] * NUM_KEYS
        self._press_count = 0
        self._last_press = None
