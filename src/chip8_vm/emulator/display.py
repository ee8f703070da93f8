"""
Display Surface for CHIP-8 VM
=============================

Monochrome 64x32 framebuffer driven by XOR sprite drawing.

Pixels are stored as one flat bytearray of 2048 independent cells
(row-major, index = y * 64 + x). Sprites are one byte wide per row, MSB
leftmost, and are blitted by XOR-toggling each set bit. Coordinates wrap
per pixel on both axes, so a sprite running past the right or bottom edge
continues at the opposite edge.

A blit reports a collision when any toggle turns a set pixel off; the CPU
stores that result in VF.

Rendering to a real surface is the host's job. This module offers a
read-only framebuffer snapshot, an ASCII dump for terminals and tests, and
PNG export for screenshots.
"""

import io
from typing import Iterable, Tuple

WIDTH = 64
HEIGHT = 32

Framebuffer = Tuple[Tuple[bool, ...], ...]


class Display:
    """
    64x32 monochrome display surface.

    Mutated only by clear() and blit(). The needs_refresh flag is raised
    by either and lowered by the host once it has redrawn.

    Example:
        >>> display = Display()
        >>> display.blit(60, 0, [0xFF])
        False
        >>> [x for x in range(64) if display.pixel(x, 0)]
        [0, 1, 2, 3, 60, 61, 62, 63]
    """

    def __init__(self):
        self._pixels = bytearray(WIDTH * HEIGHT)
        self._needs_refresh = True

    @property
    def width(self) -> int:
        return WIDTH

    @property
    def height(self) -> int:
        return HEIGHT

    # ========================================
    # Mutation
    # ========================================

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels[:] = bytes(WIDTH * HEIGHT)
        self._needs_refresh = True

    def blit(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """
        XOR a sprite onto the framebuffer.

        Args:
            x: Column of the sprite origin (taken modulo 64)
            y: Row of the sprite origin (taken modulo 32)
            rows: Sprite bytes, one per row, MSB is the leftmost pixel

        Returns:
            True if any set pixel was turned off (collision)
        """
        pixels = self._pixels
        collision = False

        for row_idx, bits in enumerate(rows):
            if not bits:
                continue
            base = ((y + row_idx) % HEIGHT) * WIDTH
            for col in range(8):
                if bits & (0x80 >> col):
                    index = base + (x + col) % WIDTH
                    if pixels[index]:
                        collision = True
                    pixels[index] ^= 1

        self._needs_refresh = True
        return collision

    # ========================================
    # Queries
    # ========================================

    def pixel(self, x: int, y: int) -> bool:
        """
        Get a single pixel.

        Raises:
            IndexError: If (x, y) is outside the 64x32 grid
        """
        if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
            raise IndexError(f"pixel ({x}, {y}) outside {WIDTH}x{HEIGHT} display")
        return bool(self._pixels[y * WIDTH + x])

    def framebuffer(self) -> Framebuffer:
        """
        Read-only snapshot of the display.

        Returns:
            Tuple of 32 rows, each a tuple of 64 booleans
        """
        return tuple(
            tuple(bool(p) for p in self._pixels[row * WIDTH:(row + 1) * WIDTH])
            for row in range(HEIGHT)
        )

    @property
    def lit_count(self) -> int:
        """Number of pixels currently on."""
        return sum(self._pixels)

    @property
    def needs_refresh(self) -> bool:
        """True when the display changed since the last mark_refreshed()."""
        return self._needs_refresh

    def mark_refreshed(self) -> None:
        """Acknowledge that the host has redrawn the current contents."""
        self._needs_refresh = False

    def get_text(self, on: str = "#", off: str = ".") -> str:
        """
        Render the framebuffer as text, one line per row.

        Args:
            on: Character for lit pixels
            off: Character for dark pixels
        """
        lines = []
        for row in range(HEIGHT):
            cells = self._pixels[row * WIDTH:(row + 1) * WIDTH]
            lines.append("".join(on if p else off for p in cells))
        return "\n".join(lines)

    def render_image(
        self,
        scale: int = 8,
        ink_color: tuple = (255, 255, 255),
        paper_color: tuple = (0, 0, 0),
    ) -> bytes:
        """
        Render display as PNG image.

        Args:
            scale: Pixel scale factor (default 8, giving 512x256)
            ink_color: RGB tuple for lit pixels
            paper_color: RGB tuple for dark pixels

        Returns:
            PNG image bytes
        """
        from PIL import Image, ImageDraw

        if scale < 1:
            raise ValueError(f"scale must be at least 1, got {scale}")

        img = Image.new('RGB', (WIDTH * scale, HEIGHT * scale), color=paper_color)
        draw = ImageDraw.Draw(img)

        for index, lit in enumerate(self._pixels):
            if lit:
                px = (index % WIDTH) * scale
                py = (index // WIDTH) * scale
                draw.rectangle(
                    [px, py, px + scale - 1, py + scale - 1],
                    fill=ink_color,
                )

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()
