"""
CHIP-8 Disassembler Module
==========================

Static disassembly of CHIP-8 program images into readable listings.

Usage:
    from chip8_vm.disassembler import Chip8Disassembler

    disasm = Chip8Disassembler()
    instructions = disasm.disassemble(rom_bytes, start_address=0x200)
"""

from .chip8 import Chip8Disassembler, DisassembledInstruction

__all__ = [
    "Chip8Disassembler",
    "DisassembledInstruction",
]
