"""
CHIP-8 VM Command-Line Interface
================================

This package provides command-line tools for the CHIP-8 VM:

- **c8run**: Run a ROM headless and capture the display
- **c8disasm**: Disassemble a ROM

Each tool is implemented as a Click-based CLI application.
"""

__all__ = ["c8run", "c8disasm"]
