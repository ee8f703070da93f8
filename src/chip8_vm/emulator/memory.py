"""
Memory Subsystem for CHIP-8 VM
==============================

Flat 4KB byte-addressable memory with strict bounds checking.

Memory Map:
    $000-$04F  Reserved (interpreter-internal)
    $050-$09F  Hexadecimal font sprites (16 glyphs x 5 bytes)
    $0A0-$1FF  Reserved (interpreter-internal)
    $200-$FFF  Program image and program data

Every access outside $000-$FFF raises MemoryOutOfRange. Multi-byte block
accesses validate the complete range before touching a single byte, so a
failing access never leaves memory half-written.
"""

import logging

from ..errors import LoadTooLarge, MemoryOutOfRange

logger = logging.getLogger(__name__)


MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
FONT_ADDRESS = 0x050
FONT_GLYPH_SIZE = 5

# Program images may fill memory from the load address to the top
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

# =============================================================================
# FONT SPRITES
# =============================================================================
# 4x5 pixel glyphs for the hexadecimal digits 0-F. Each glyph is five
# bytes, one per row, using the high nibble of each byte. Example for "2":
#
#     ****....   0xF0
#     ...*....   0x10
#     ****....   0xF0
#     *.......   0x80
#     ****....   0xF0

FONT_SPRITES = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


def font_address(digit: int) -> int:
    """Address of the font glyph for a hex digit (low nibble is used)."""
    return FONT_ADDRESS + (digit & 0xF) * FONT_GLYPH_SIZE


class Memory:
    """
    4KB CHIP-8 memory.

    Reads and writes are bounds-checked; nothing is silently clamped.
    The font is installed on construction and on every reset.

    Example:
        >>> mem = Memory()
        >>> mem.load_program(bytes([0x60, 0x05]))
        >>> hex(mem.read_word(0x200))
        '0x6005'
    """

    def __init__(self):
        self._data = bytearray(MEMORY_SIZE)
        self.load_font()

    def __len__(self) -> int:
        return MEMORY_SIZE

    # ========================================
    # Bounds Checking
    # ========================================

    @staticmethod
    def _check_range(address: int, length: int = 1) -> None:
        """Raise MemoryOutOfRange unless [address, address+length) fits."""
        if address < 0 or address + length > MEMORY_SIZE:
            raise MemoryOutOfRange(address, length)

    # ========================================
    # Byte Access
    # ========================================

    def read(self, address: int) -> int:
        """
        Read byte from memory.

        Args:
            address: Address in $000-$FFF

        Returns:
            Byte value at address

        Raises:
            MemoryOutOfRange: If address is outside memory
        """
        self._check_range(address)
        return self._data[address]

    def write(self, address: int, value: int) -> None:
        """
        Write byte to memory.

        Args:
            address: Address in $000-$FFF
            value: Byte value (masked to 8 bits)

        Raises:
            MemoryOutOfRange: If address is outside memory
        """
        self._check_range(address)
        self._data[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read 16-bit big-endian word (instruction fetch)."""
        self._check_range(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    # ========================================
    # Block Access
    # ========================================

    def read_block(self, address: int, length: int) -> bytes:
        """Read `length` consecutive bytes, validating the whole range first."""
        self._check_range(address, length)
        return bytes(self._data[address:address + length])

    def write_block(self, address: int, data: bytes) -> None:
        """Write consecutive bytes, validating the whole range first."""
        self._check_range(address, len(data))
        self._data[address:address + len(data)] = bytes(b & 0xFF for b in data)

    # ========================================
    # Lifecycle
    # ========================================

    def load_font(self) -> None:
        """Install the hexadecimal font sprites in reserved memory."""
        self._data[FONT_ADDRESS:FONT_ADDRESS + len(FONT_SPRITES)] = FONT_SPRITES

    def clear(self) -> None:
        """Zero all memory, then reinstall the font."""
        self._data[:] = bytes(MEMORY_SIZE)
        self.load_font()

    def load_program(self, data: bytes, address: int = PROGRAM_START) -> None:
        """
        Copy a program image into memory.

        Other state is left alone; reset first for a cold start.

        Args:
            data: Program bytes
            address: Load address (default $200)

        Raises:
            MemoryOutOfRange: If address is outside memory
            LoadTooLarge: If the image does not fit; nothing is written
        """
        if not 0 <= address < MEMORY_SIZE:
            raise MemoryOutOfRange(address, max(len(data), 1))
        capacity = MEMORY_SIZE - address
        if len(data) > capacity:
            raise LoadTooLarge(len(data), capacity)
        self._data[address:address + len(data)] = data
        logger.debug(f"Copied {len(data)} bytes to ${address:03X}")

    def snapshot(self) -> bytes:
        """Return an immutable copy of the full memory contents."""
        return bytes(self._data)
