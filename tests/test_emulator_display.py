"""
Display Surface Unit Tests
==========================

Tests for the 64x32 XOR-sprite framebuffer.
"""

import pytest

from chip8_vm.emulator.display import HEIGHT, WIDTH, Display


@pytest.fixture
def display():
    return Display()


# =============================================================================
# Initialization and Clear
# =============================================================================

class TestDisplayInit:
    """Test display initialization and clearing."""

    def test_dimensions(self, display):
        assert (display.width, display.height) == (64, 32)

    def test_starts_blank(self, display):
        assert display.lit_count == 0

    def test_clear_no_aliasing(self, display):
        """After clear, lighting one cell lights exactly one cell."""
        display.blit(0, 0, [0xFF] * 15)
        display.clear()
        fb = display.framebuffer()
        assert len(fb) == HEIGHT
        assert all(len(row) == WIDTH for row in fb)
        assert sum(cell for row in fb for cell in row) == 0

        display.blit(5, 7, [0x80])
        fb = display.framebuffer()
        assert sum(cell for row in fb for cell in row) == 1
        assert fb[7][5] is True

    def test_framebuffer_is_snapshot(self, display):
        fb = display.framebuffer()
        display.blit(0, 0, [0x80])
        assert fb[0][0] is False


# =============================================================================
# Sprite Drawing
# =============================================================================

class TestBlit:
    """Test XOR drawing, collision and wraparound."""

    def test_msb_is_leftmost(self, display):
        display.blit(10, 3, [0b10100000])
        assert display.pixel(10, 3)
        assert not display.pixel(11, 3)
        assert display.pixel(12, 3)

    def test_no_collision_first_draw(self, display):
        assert display.blit(0, 0, [0xFF, 0x81]) is False

    def test_xor_round_trip(self, display):
        """Drawing the same sprite twice restores the screen and collides."""
        sprite = [0xF0, 0x90, 0x90, 0x90, 0xF0]
        display.blit(20, 10, sprite)
        lit = display.lit_count
        assert lit == 14
        assert display.blit(20, 10, sprite) is True
        assert display.lit_count == 0

    def test_partial_overlap_collision(self, display):
        display.blit(0, 0, [0x80])
        assert display.blit(0, 0, [0xC0]) is True
        assert not display.pixel(0, 0)
        assert display.pixel(1, 0)

    def test_wrap_horizontal(self, display):
        """An 8-wide sprite at x=60 wraps to columns 0-3."""
        display.blit(60, 0, [0xFF])
        lit = [x for x in range(WIDTH) if display.pixel(x, 0)]
        assert lit == [0, 1, 2, 3, 60, 61, 62, 63]

    def test_wrap_vertical(self, display):
        display.blit(0, 30, [0x80, 0x80, 0x80, 0x80])
        lit = [y for y in range(HEIGHT) if display.pixel(0, y)]
        assert lit == [0, 1, 30, 31]

    def test_origin_taken_modulo(self, display):
        display.blit(64 + 2, 32 + 1, [0x80])
        assert display.pixel(2, 1)

    def test_pixel_out_of_range(self, display):
        with pytest.raises(IndexError):
            display.pixel(64, 0)


# =============================================================================
# Output
# =============================================================================

class TestDisplayOutput:
    """Test refresh tracking and text/image rendering."""

    def test_needs_refresh(self, display):
        display.mark_refreshed()
        assert not display.needs_refresh
        display.blit(0, 0, [0x80])
        assert display.needs_refresh

    def test_text(self, display):
        display.blit(0, 0, [0xC0])
        lines = display.get_text().splitlines()
        assert len(lines) == HEIGHT
        assert lines[0] == "##" + "." * 62
        assert display.get_text(on="X", off=" ").splitlines()[0].startswith("XX ")

    def test_render_png(self, display):
        display.blit(0, 0, [0xFF])
        png = display.render_image(scale=2)
        assert png[:8] == b"\x89PNG\r\n\x1a\n"

    def test_render_size(self, display):
        import io
        from PIL import Image

        png = display.render_image(scale=3)
        with Image.open(io.BytesIO(png)) as img:
            assert img.size == (192, 96)

    def test_render_bad_scale(self, display):
        with pytest.raises(ValueError):
            display.render_image(scale=0)
