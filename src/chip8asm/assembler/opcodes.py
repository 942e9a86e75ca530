"""
CHIP-8 Instruction Set Definition
=================================

This module defines the CHIP-8 mnemonics, registers and the constants the
assembler needs to encode them. Every CHIP-8 instruction is exactly two
bytes, stored big-endian (most significant byte first).

Field-Packing Convention
------------------------
Each instruction is a base constant OR'd with operand fields:

| Field | Bits  | Meaning                              |
|-------|-------|--------------------------------------|
| x     | 8-11  | First V register                     |
| y     | 4-7   | Second V register                    |
| n     | 0-3   | Nibble (sprite height)               |
| kk    | 0-7   | Byte immediate                       |
| nnn   | 0-11  | Address                              |

Registers
---------
- V0-VF: sixteen 8-bit general purpose registers (VF doubles as a flag).
  V10-V15 are accepted as aliases for VA-VF.
- I: 16-bit address register; [I] names the memory it points to.
- DT, ST: delay and sound timers.

Reference
---------
- Cowgod's Chip-8 Technical Reference:
  http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
"""

from enum import Enum, IntEnum
from typing import Optional


# =============================================================================
# Memory Layout Constants
# =============================================================================

# Programs are loaded at this address; label offsets are relative to it.
LOAD_ADDRESS = 0x200

# Largest value a 12-bit address field can hold
ADDRESS_MASK = 0x0FFF

# Literal limits for each parsing context
OPERAND_LIMIT = 0x0FFF   # Instruction operands
BYTE_LIMIT = 0xFF        # DB arguments, kk fields
WORD_LIMIT = 0xFFFF      # DW arguments, label offsets
NIBBLE_LIMIT = 0x0F      # n field

# Size of every encoded instruction in bytes
INSTRUCTION_SIZE = 2


# =============================================================================
# Mnemonics
# =============================================================================

class Mnemonic(Enum):
    """
    CHIP-8 mnemonics.

    The value is the canonical (upper case) spelling. Several mnemonics
    have more than one encoding; the code generator picks one from the
    operand kinds.
    """
    NOP = "NOP"
    SYS = "SYS"
    CLS = "CLS"
    RET = "RET"
    JP = "JP"
    CALL = "CALL"
    SE = "SE"
    SNE = "SNE"
    LD = "LD"
    ADD = "ADD"
    OR = "OR"
    AND = "AND"
    XOR = "XOR"
    SUB = "SUB"
    SHR = "SHR"
    SUBN = "SUBN"
    SHL = "SHL"
    RND = "RND"
    DRW = "DRW"
    SKP = "SKP"
    SKNP = "SKNP"

    def __str__(self) -> str:
        return self.value


_MNEMONICS_BY_NAME: dict[str, Mnemonic] = {m.value.lower(): m for m in Mnemonic}


def lookup_mnemonic(word: str) -> Optional[Mnemonic]:
    """
    Find the mnemonic for a source word (case-insensitive).

    Returns:
        The Mnemonic, or None if the word is not a mnemonic
    """
    return _MNEMONICS_BY_NAME.get(word.lower())


# =============================================================================
# Registers
# =============================================================================

class Register(IntEnum):
    """
    Addressable registers.

    V0-VF take the values 0-15 so that a V register's value is the nibble
    written into the x or y field of an instruction.
    """
    V0 = 0x0
    V1 = 0x1
    V2 = 0x2
    V3 = 0x3
    V4 = 0x4
    V5 = 0x5
    V6 = 0x6
    V7 = 0x7
    V8 = 0x8
    V9 = 0x9
    VA = 0xA
    VB = 0xB
    VC = 0xC
    VD = 0xD
    VE = 0xE
    VF = 0xF
    I = 0x10
    I_ADDR = 0x11
    DT = 0x12
    ST = 0x13

    @property
    def is_v_register(self) -> bool:
        """True for V0-VF."""
        return self <= Register.VF

    @property
    def display_name(self) -> str:
        """Name as written in assembly source."""
        if self is Register.I_ADDR:
            return "[I]"
        return self.name


# Source spellings, all lower case
REGISTER_NAMES: dict[str, Register] = {
    "v0": Register.V0,
    "v1": Register.V1,
    "v2": Register.V2,
    "v3": Register.V3,
    "v4": Register.V4,
    "v5": Register.V5,
    "v6": Register.V6,
    "v7": Register.V7,
    "v8": Register.V8,
    "v9": Register.V9,
    "va": Register.VA,
    "vb": Register.VB,
    "vc": Register.VC,
    "vd": Register.VD,
    "ve": Register.VE,
    "vf": Register.VF,
    "i": Register.I,
    "[i]": Register.I_ADDR,
    "dt": Register.DT,
    "st": Register.ST,
    # Decimal aliases for VA-VF
    "v10": Register.VA,
    "v11": Register.VB,
    "v12": Register.VC,
    "v13": Register.VD,
    "v14": Register.VE,
    "v15": Register.VF,
}


def lookup_register(word: str) -> Optional[Register]:
    """
    Find the register for a source word (case-insensitive).

    Returns:
        The Register, or None if the word does not name one
    """
    if not word:
        return None
    return REGISTER_NAMES.get(word.lower())


def v_register_from_nibble(nibble: int) -> Register:
    """Return the V register encoded by a 4-bit field."""
    return Register(nibble & 0xF)
