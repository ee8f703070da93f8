"""
CHIP-8 Disassembler
===================

Disassembles CHIP-8 program images into Cowgod-style assembly listings.

Instructions are two bytes, big-endian, normally on even addresses from
$200. The disassembler walks the image linearly; data embedded between
instructions (sprites, tables) is decoded as instructions too, exactly as
a linear sweep would see it, with unassigned words shown as DW.

Operand syntax:
    Vx          register (V0-VF)
    #kk         8-bit immediate
    $nnn        12-bit address
    I, [I]      index register / memory at I
    DT, ST, K   delay timer, sound timer, key press
    F, B        font glyph address, BCD store

Usage:
    disasm = Chip8Disassembler()
    for instr in disasm.disassemble(rom_bytes):
        print(instr)
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..emulator.decoder import Instruction, Op, decode
from ..emulator.memory import FONT_ADDRESS, PROGRAM_START


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled CHIP-8 instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The 16-bit word (or the single byte for a trailing DB)
        op: Decoded operation tag (None for a trailing DB byte)
        mnemonic: The instruction mnemonic (e.g., "LD", "DRW")
        operand_str: Formatted operand string for display
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (e.g., for font addresses)
    """
    address: int
    opcode: int
    op: Optional[Op]
    mnemonic: str
    operand_str: str
    raw_bytes: bytes
    comment: str = ""

    @property
    def size(self) -> int:
        return len(self.raw_bytes)

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC OPERAND"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(5)

        if self.operand_str:
            asm = f"{self.mnemonic} {self.operand_str}"
        else:
            asm = self.mnemonic

        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {asm:<16} ; {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:04X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# =============================================================================
# Operand Formatting
# =============================================================================

def _format_operands(ins: Instruction) -> str:
    x = f"V{ins.x:X}"
    y = f"V{ins.y:X}"
    kk = f"#{ins.kk:02X}"
    nnn = f"${ins.nnn:03X}"

    match ins.op:
        case Op.CLS | Op.RET:
            return ""
        case Op.SYS | Op.JP | Op.CALL:
            return nnn
        case Op.JP_V0:
            return f"V0, {nnn}"
        case Op.SE_BYTE | Op.SNE_BYTE | Op.LD_BYTE | Op.ADD_BYTE | Op.RND:
            return f"{x}, {kk}"
        case Op.SE_REG | Op.SNE_REG | Op.LD_REG | Op.OR | Op.AND | Op.XOR \
                | Op.ADD_REG | Op.SUB | Op.SUBN:
            return f"{x}, {y}"
        case Op.SHR | Op.SHL:
            return f"{x} {{, {y}}}"
        case Op.LD_I:
            return f"I, {nnn}"
        case Op.DRW:
            return f"{x}, {y}, {ins.n}"
        case Op.SKP | Op.SKNP:
            return x
        case Op.LD_VX_DT:
            return f"{x}, DT"
        case Op.LD_VX_K:
            return f"{x}, K"
        case Op.LD_DT_VX:
            return f"DT, {x}"
        case Op.LD_ST_VX:
            return f"ST, {x}"
        case Op.ADD_I:
            return f"I, {x}"
        case Op.LD_F:
            return f"F, {x}"
        case Op.LD_B:
            return f"B, {x}"
        case Op.STORE:
            return f"[I], {x}"
        case Op.LOAD:
            return f"{x}, [I]"
        case _:
            return f"${ins.opcode:04X}"


# =============================================================================
# CHIP-8 Disassembler
# =============================================================================

class Chip8Disassembler:
    """
    Linear-sweep disassembler for CHIP-8 programs.

    Attributes:
        _symbol_table: Optional address -> label mapping used to annotate
            jump, call and index targets
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping addresses to symbol names.
        """
        self._symbol_table = symbol_table or {}

    def _comment_for(self, ins: Instruction) -> str:
        if ins.op in (Op.JP, Op.CALL, Op.LD_I, Op.SYS):
            if ins.nnn in self._symbol_table:
                return self._symbol_table[ins.nnn]
            if ins.op is Op.LD_I and FONT_ADDRESS <= ins.nnn < FONT_ADDRESS + 80:
                return "font data"
        if ins.op is Op.SYS:
            return "machine code call (ignored)"
        if ins.op is Op.UNKNOWN:
            return "unassigned opcode"
        return ""

    def disassemble_one(self, data: bytes, offset: int, address: int) -> DisassembledInstruction:
        """
        Disassemble the instruction at data[offset].

        Args:
            data: Program bytes
            offset: Offset of the instruction within data
            address: Memory address the instruction lives at

        Returns:
            DisassembledInstruction (a DB pseudo-op if only one byte remains)
        """
        if offset + 1 >= len(data):
            byte = data[offset]
            return DisassembledInstruction(
                address=address,
                opcode=byte,
                op=None,
                mnemonic="DB",
                operand_str=f"#{byte:02X}",
                raw_bytes=bytes([byte]),
                comment="trailing byte",
            )

        word = (data[offset] << 8) | data[offset + 1]
        ins = decode(word)
        return DisassembledInstruction(
            address=address,
            opcode=word,
            op=ins.op,
            mnemonic=ins.mnemonic,
            operand_str=_format_operands(ins),
            raw_bytes=bytes(data[offset:offset + 2]),
            comment=self._comment_for(ins),
        )

    def disassemble(
        self,
        data: bytes,
        start_address: int = PROGRAM_START,
        count: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble a program image.

        Args:
            data: Program bytes
            start_address: Address of data[0] (default $200)
            count: Maximum number of instructions (default: all)

        Returns:
            List of DisassembledInstruction
        """
        result: List[DisassembledInstruction] = []
        offset = 0

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            instr = self.disassemble_one(data, offset, start_address + offset)
            result.append(instr)
            offset += instr.size

        return result

    def format_listing(
        self,
        data: bytes,
        start_address: int = PROGRAM_START,
        count: Optional[int] = None,
        show_bytes: bool = True,
    ) -> str:
        """
        Disassemble and format as a listing, one instruction per line.

        Args:
            data: Program bytes
            start_address: Address of data[0]
            count: Maximum number of instructions
            show_bytes: Include raw bytes in each line
        """
        lines = []
        for instr in self.disassemble(data, start_address, count):
            if show_bytes:
                lines.append(str(instr))
                continue
            asm = f"{instr.mnemonic} {instr.operand_str}".rstrip()
            if instr.comment:
                lines.append(f"${instr.address:04X}: {asm:<16} ; {instr.comment}")
            else:
                lines.append(f"${instr.address:04X}: {asm}")
        return "\n".join(lines)
