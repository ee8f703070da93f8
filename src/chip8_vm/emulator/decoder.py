"""
CHIP-8 Instruction Decoder
==========================

Turns a 16-bit instruction word into a tagged Instruction.

Instruction word layout (big-endian, as fetched from memory):

    15    12 11     8 7      4 3      0
    +-------+--------+--------+--------+
    | group |   x    |   y    |   n    |
    +-------+--------+--------+--------+
                     |       kk        |
             |          nnn            |

The top nibble selects the group. Groups 0, 8, E and F use a secondary
discriminator (the low byte or low nibble) to pick the operation; groups
5 and 9 require a zero low nibble.

decode() is pure and total: every one of the 65536 words maps to exactly
one Instruction, with Op.UNKNOWN for unassigned sub-operations. It never
touches VM state and never raises.
"""

from dataclasses import dataclass
from enum import Enum


class Op(Enum):
    """
    Operation tags, one per base CHIP-8 instruction.

    Values are the opcode patterns from the instruction set reference.
    Several operations share an assembly mnemonic (LD, ADD, SE, ...) and
    are told apart by their operands; see the `mnemonic` property.
    """
    SYS = "0nnn"
    CLS = "00E0"
    RET = "00EE"
    JP = "1nnn"
    CALL = "2nnn"
    SE_BYTE = "3xkk"
    SNE_BYTE = "4xkk"
    SE_REG = "5xy0"
    LD_BYTE = "6xkk"
    ADD_BYTE = "7xkk"
    LD_REG = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_REG = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_REG = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I = "Fx1E"
    LD_F = "Fx29"
    LD_B = "Fx33"
    STORE = "Fx55"
    LOAD = "Fx65"
    UNKNOWN = "????"

    @property
    def mnemonic(self) -> str:
        """Assembly mnemonic (Cowgod naming)."""
        return _MNEMONICS[self]


_MNEMONICS = {
    Op.SYS: "SYS", Op.CLS: "CLS", Op.RET: "RET",
    Op.JP: "JP", Op.CALL: "CALL", Op.JP_V0: "JP",
    Op.SE_BYTE: "SE", Op.SE_REG: "SE",
    Op.SNE_BYTE: "SNE", Op.SNE_REG: "SNE",
    Op.LD_BYTE: "LD", Op.LD_REG: "LD", Op.LD_I: "LD",
    Op.LD_VX_DT: "LD", Op.LD_VX_K: "LD", Op.LD_DT_VX: "LD",
    Op.LD_ST_VX: "LD", Op.LD_F: "LD", Op.LD_B: "LD",
    Op.STORE: "LD", Op.LOAD: "LD",
    Op.ADD_BYTE: "ADD", Op.ADD_REG: "ADD", Op.ADD_I: "ADD",
    Op.OR: "OR", Op.AND: "AND", Op.XOR: "XOR",
    Op.SUB: "SUB", Op.SUBN: "SUBN", Op.SHR: "SHR", Op.SHL: "SHL",
    Op.RND: "RND", Op.DRW: "DRW", Op.SKP: "SKP", Op.SKNP: "SKNP",
    Op.UNKNOWN: "DW",
}


@dataclass(frozen=True)
class Instruction:
    """
    A decoded instruction word.

    Every operand field is extracted regardless of the operation so the
    record is uniform; each operation reads only the fields it needs.

    Attributes:
        op: Operation tag
        opcode: The raw 16-bit word
        x: Register index from bits 8-11
        y: Register index from bits 4-7
        n: Nibble from bits 0-3
        kk: Byte from bits 0-7
        nnn: Address from bits 0-11
    """
    op: Op
    opcode: int
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    @property
    def group(self) -> int:
        """Primary group (top nibble)."""
        return self.opcode >> 12

    @property
    def mnemonic(self) -> str:
        return self.op.mnemonic

    @property
    def is_known(self) -> bool:
        """False for words with no assigned operation."""
        return self.op is not Op.UNKNOWN


# Secondary discriminators for the multi-operation groups

_GROUP_8_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_GROUP_E_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_GROUP_F_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.STORE,
    0x65: Op.LOAD,
}

# Groups whose operation is fully determined by the top nibble
_SINGLE_OPS = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


def _classify(word: int) -> Op:
    group = word >> 12
    n = word & 0xF
    kk = word & 0xFF

    if group in _SINGLE_OPS:
        return _SINGLE_OPS[group]

    match group:
        case 0x0:
            if word == 0x00E0:
                return Op.CLS
            if word == 0x00EE:
                return Op.RET
            return Op.SYS
        case 0x5:
            return Op.SE_REG if n == 0 else Op.UNKNOWN
        case 0x8:
            return _GROUP_8_OPS.get(n, Op.UNKNOWN)
        case 0x9:
            return Op.SNE_REG if n == 0 else Op.UNKNOWN
        case 0xE:
            return _GROUP_E_OPS.get(kk, Op.UNKNOWN)
        case 0xF:
            return _GROUP_F_OPS.get(kk, Op.UNKNOWN)
        case _:
            return Op.UNKNOWN


def decode(word: int) -> Instruction:
    """
    Decode a 16-bit instruction word.

    Args:
        word: Instruction word (only the low 16 bits are used)

    Returns:
        Instruction tagged with its Op (Op.UNKNOWN if unassigned)

    Example:
        >>> ins = decode(0x8AB4)
        >>> ins.op, ins.x, ins.y
        (<Op.ADD_REG: '8xy4'>, 10, 11)
    """
    word &= 0xFFFF
    return Instruction(
        op=_classify(word),
        opcode=word,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0xFFF,
    )
