"""
CHIP-8 Disassembler
===================

Decodes CHIP-8 machine code back into assembly language. This is the
inverse of the assembler's code generation: every word the assembler can
produce decodes to the mnemonic and operands it was assembled from, with
addresses shown as numbers (labels are not recovered).

Words that are not valid instructions are shown as `DW 0xNNNN`, and an
odd trailing byte as `DB 0xNN`.

Usage:
    disasm = Chip8Disassembler()

    for instr in disasm.disassemble(code):
        print(instr)

    instr = disasm.disassemble_one(bytes([0x60, 0x12]))
    instr.mnemonic, instr.operands   # ("LD", ("V0", "0x12"))
"""

from dataclasses import dataclass
from typing import Optional

from chip8asm.assembler.opcodes import LOAD_ADDRESS, v_register_from_nibble


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled CHIP-8 word.

    Attributes:
        address: Memory address of the instruction
        word: The raw 16-bit word (or byte, for a trailing DB)
        mnemonic: The instruction mnemonic (e.g., "LD", "JP"), or DW/DB for data
        operands: Operand strings in source order
        size: Size in bytes (2, or 1 for a trailing byte)
    """
    address: int
    word: int
    mnemonic: str
    operands: tuple[str, ...] = ()
    size: int = 2

    @property
    def operand_str(self) -> str:
        return ", ".join(self.operands)

    @property
    def is_data(self) -> bool:
        """True if the word did not decode to an instruction."""
        return self.mnemonic in ("DW", "DB")

    def __str__(self) -> str:
        """Format as assembly line: ADDRESS: WORD  MNEMONIC OPERANDS"""
        raw = f"{self.word:04X}" if self.size == 2 else f"{self.word:02X}  "
        asm = f"{self.mnemonic} {self.operand_str}" if self.operands else self.mnemonic
        return f"0x{self.address:03X}: {raw}  {asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": self.address,
            "word": self.word,
            "mnemonic": self.mnemonic,
            "operands": list(self.operands),
            "size": self.size,
        }


# =============================================================================
# Decoding Tables
# =============================================================================

# 8xyN ALU operations
_ALU_NAMES = {
    0x0: "LD",
    0x1: "OR",
    0x2: "AND",
    0x3: "XOR",
    0x4: "ADD",
    0x5: "SUB",
    0x6: "SHR",
    0x7: "SUBN",
    0xE: "SHL",
}

# Fx.. operations: low byte -> (mnemonic, operand template)
# "x" in a template is replaced by the Vx register name
_F_FORMS = {
    0x07: ("LD", ("x", "DT")),
    0x0A: ("LD", ("x", "K")),
    0x15: ("LD", ("DT", "x")),
    0x18: ("LD", ("ST", "x")),
    0x1E: ("ADD", ("I", "x")),
    0x29: ("LD", ("F", "x")),
    0x33: ("LD", ("B", "x")),
    0x55: ("LD", ("[I]", "x")),
    0x65: ("LD", ("x", "[I]")),
}


def _v(nibble: int) -> str:
    return v_register_from_nibble(nibble).name


def _hex(value: int) -> str:
    return f"0x{value:X}"


# =============================================================================
# CHIP-8 Disassembler
# =============================================================================

class Chip8Disassembler:
    """
    Disassembler for CHIP-8 machine code.

    Attributes:
        symbols: Optional mapping of addresses to names. When a jump, call
            or LD I target matches, the name is shown instead of the number.
    """

    def __init__(self, symbols: Optional[dict[int, str]] = None):
        self.symbols = symbols or {}

    def decode(self, word: int) -> Optional[tuple[str, tuple[str, ...]]]:
        """
        Decode a 16-bit word.

        Returns:
            (mnemonic, operands), or None if the word is not an instruction
        """
        top = word >> 12
        x = (word >> 8) & 0xF
        y = (word >> 4) & 0xF
        n = word & 0xF
        kk = word & 0xFF
        nnn = word & 0xFFF

        if word == 0x0000:
            return "NOP", ()
        if word == 0x00E0:
            return "CLS", ()
        if word == 0x00EE:
            return "RET", ()
        if top == 0x0:
            return "SYS", (self._address(nnn),)
        if top == 0x1:
            return "JP", (self._address(nnn),)
        if top == 0x2:
            return "CALL", (self._address(nnn),)
        if top == 0x3:
            return "SE", (_v(x), _hex(kk))
        if top == 0x4:
            return "SNE", (_v(x), _hex(kk))
        if top == 0x5 and n == 0:
            return "SE", (_v(x), _v(y))
        if top == 0x6:
            return "LD", (_v(x), _hex(kk))
        if top == 0x7:
            return "ADD", (_v(x), _hex(kk))
        if top == 0x8 and n in _ALU_NAMES:
            return _ALU_NAMES[n], (_v(x), _v(y))
        if top == 0x9 and n == 0:
            return "SNE", (_v(x), _v(y))
        if top == 0xA:
            return "LD", ("I", self._address(nnn))
        if top == 0xB:
            return "JP", ("V0", self._address(nnn))
        if top == 0xC:
            return "RND", (_v(x), _hex(kk))
        if top == 0xD:
            return "DRW", (_v(x), _v(y), _hex(n))
        if top == 0xE and kk == 0x9E:
            return "SKP", (_v(x),)
        if top == 0xE and kk == 0xA1:
            return "SKNP", (_v(x),)
        if top == 0xF and kk in _F_FORMS:
            mnemonic, template = _F_FORMS[kk]
            return mnemonic, tuple(_v(x) if part == "x" else part for part in template)
        return None

    def _address(self, address: int) -> str:
        return self.symbols.get(address, _hex(address))

    def disassemble_one(
        self,
        data: bytes,
        address: int = LOAD_ADDRESS,
        offset: int = 0,
    ) -> DisassembledInstruction:
        """
        Disassemble the instruction at data[offset].

        Args:
            data: Byte buffer containing the program
            address: Memory address of the instruction (for display)
            offset: Offset into data where the instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        if offset + 1 >= len(data):
            byte = data[offset]
            return DisassembledInstruction(address, byte, "DB", (_hex(byte),), size=1)

        word = (data[offset] << 8) | data[offset + 1]
        decoded = self.decode(word)
        if decoded is None:
            return DisassembledInstruction(address, word, "DW", (_hex(word),))

        mnemonic, operands = decoded
        return DisassembledInstruction(address, word, mnemonic, operands)

    def disassemble(
        self,
        data: bytes,
        start_address: int = LOAD_ADDRESS,
        count: Optional[int] = None,
    ) -> list[DisassembledInstruction]:
        """
        Disassemble a buffer two bytes at a time.

        Args:
            data: Program bytes
            start_address: Address of data[0]
            count: Maximum number of instructions (default: all)

        Returns:
            List of DisassembledInstruction in address order
        """
        instructions = []
        offset = 0
        while offset < len(data):
            if count is not None and len(instructions) >= count:
                break
            instr = self.disassemble_one(data, start_address + offset, offset)
            instructions.append(instr)
            offset += instr.size
        return instructions
