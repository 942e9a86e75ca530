"""
CHIP-8 Code Generator
=====================

This module generates the binary image from parsed statements. It is the
second pass of the assembler: the parser has already walked the whole
source and built the label table, so every label reference, forward or
backward, can be resolved here.

Encoding
--------
Every instruction is one 16-bit word written big-endian. The word is a
base constant OR'd with operand fields (see chip8asm.assembler.opcodes).
Several mnemonics have more than one encoding; the operand kinds select
the one to use:

| Source             | Word  |     | Source             | Word  |
|--------------------|-------|-----|--------------------|-------|
| JP addr            | 1nnn  |     | LD Vx, K           | Fx0A  |
| JP V0, addr        | Bnnn  |     | LD DT, Vx          | Fx15  |
| SE Vx, byte        | 3xkk  |     | LD ST, Vx          | Fx18  |
| SE Vx, Vy          | 5xy0  |     | LD F, Vx           | Fx29  |
| LD Vx, byte        | 6xkk  |     | LD B, Vx           | Fx33  |
| LD Vx, Vy          | 8xy0  |     | LD [I], Vx         | Fx55  |
| LD I, addr         | Annn  |     | LD Vx, [I]         | Fx65  |
| LD Vx, DT          | Fx07  |     | ADD I, Vx          | Fx1E  |

Data directives are copied as-is: db one byte per argument, dw one
big-endian word per argument.
"""

import difflib
import logging
from typing import Callable, Optional

from chip8asm.errors import (
    AssemblerError,
    Diagnostics,
    OperandCountError,
    OperandTypeError,
    UndefinedSymbolError,
    ValueRangeError,
)
from chip8asm.assembler.opcodes import (
    ADDRESS_MASK,
    BYTE_LIMIT,
    LOAD_ADDRESS,
    NIBBLE_LIMIT,
    Mnemonic,
    Register,
)
from chip8asm.assembler.operands import Operand, OperandKind
from chip8asm.assembler.parser import (
    AnyStatement,
    ByteData,
    Instruction,
    WordData,
)


logger = logging.getLogger(__name__)


# Base words of the ALU instructions (8xyN)
ALU_OPCODES = {
    Mnemonic.OR: 0x8001,
    Mnemonic.AND: 0x8002,
    Mnemonic.XOR: 0x8003,
    Mnemonic.SUB: 0x8005,
    Mnemonic.SHR: 0x8006,
    Mnemonic.SUBN: 0x8007,
    Mnemonic.SHL: 0x800E,
}

# Shifts accept an optional source register
SHIFT_MNEMONICS = frozenset({Mnemonic.SHR, Mnemonic.SHL})


# =============================================================================
# Output Buffer
# =============================================================================

class ByteBuffer:
    """
    Append-only output image.

    16-bit values are always written big-endian.
    """

    def __init__(self):
        self._data = bytearray()

    def append8(self, value: int) -> None:
        self._data.append(value & 0xFF)
        logger.debug(f"Wrote 0x{value:02X} to output buffer")

    def append16(self, value: int) -> None:
        self._data.append((value >> 8) & 0xFF)
        self._data.append(value & 0xFF)
        logger.debug(f"Wrote 0x{value:04X} to output buffer")

    def __len__(self) -> int:
        return len(self._data)

    def to_bytes(self) -> bytes:
        return bytes(self._data)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Encodes statements into a CHIP-8 binary image.

    Usage:
        codegen = CodeGenerator(diagnostics)
        code = codegen.generate(result.statements, result.labels)

    Attributes:
        load_address: Address the program is loaded at; added to every
            label offset when a label is used as an address
    """

    def __init__(self, diagnostics: Optional[Diagnostics] = None, load_address: int = LOAD_ADDRESS):
        self._diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.load_address = load_address
        self._labels: dict[str, int] = {}
        self._encoders: dict[Mnemonic, Callable[[Instruction], int]] = {
            Mnemonic.NOP: self._encode_nop,
            Mnemonic.SYS: self._encode_sys,
            Mnemonic.CLS: self._encode_cls,
            Mnemonic.RET: self._encode_ret,
            Mnemonic.JP: self._encode_jp,
            Mnemonic.CALL: self._encode_call,
            Mnemonic.SE: self._encode_se,
            Mnemonic.SNE: self._encode_sne,
            Mnemonic.LD: self._encode_ld,
            Mnemonic.ADD: self._encode_add,
            Mnemonic.RND: self._encode_rnd,
            Mnemonic.DRW: self._encode_drw,
            Mnemonic.SKP: self._encode_skp,
            Mnemonic.SKNP: self._encode_sknp,
        }
        for mnemonic in ALU_OPCODES:
            self._encoders[mnemonic] = self._encode_alu

    def generate(self, statements: list[AnyStatement], labels: dict[str, int]) -> bytes:
        """
        Generate the binary image.

        Args:
            statements: Statements in program order
            labels: Complete label table (name -> byte offset)

        Returns:
            The assembled program

        Raises:
            AssemblerError: On the first statement that cannot be encoded;
                the error carries the statement's source location
        """
        self._labels = labels
        output = ByteBuffer()

        for statement in statements:
            if not isinstance(statement, (Instruction, ByteData, WordData)):
                raise AssemblerError(
                    f"internal error: unhandled statement type {type(statement).__name__}"
                )
            try:
                if isinstance(statement, Instruction):
                    output.append16(self.encode(statement))
                elif isinstance(statement, ByteData):
                    self._emit_bytes(statement, output)
                else:
                    for value in statement.values:
                        output.append16(value)
            except AssemblerError as e:
                raise e.with_location(statement.location, statement.source_line)

        logger.info(f"Generated {len(output)} bytes of code")
        return output.to_bytes()

    def _emit_bytes(self, statement: ByteData, output: ByteBuffer) -> None:
        for value in statement.values:
            output.append8(value)
        if len(output) % 2:
            self._diagnostics.warn(
                "unaligned data, instructions should only be at even addresses",
                statement.location,
            )

    def encode(self, instruction: Instruction) -> int:
        """
        Encode a single instruction into its 16-bit word.

        Raises:
            OperandCountError: Wrong number of operands
            OperandTypeError: Operand kind not valid for the mnemonic
            ValueRangeError: Immediate does not fit its field
            UndefinedSymbolError: Label reference cannot be resolved
        """
        logger.debug(f"Opcode: {instruction}")
        encoder = self._encoders.get(instruction.mnemonic)
        if encoder is None:
            raise AssemblerError(f"invalid opcode: {instruction.mnemonic}")
        return encoder(instruction)

    # =========================================================================
    # Operand Validation Helpers
    # =========================================================================

    @staticmethod
    def _expect_count(instruction: Instruction, *allowed: int) -> None:
        """Check that the number of operands is one of the allowed counts."""
        count = instruction.operand_count
        if count not in allowed:
            expected = " or ".join(str(n) for n in allowed)
            raise OperandCountError(str(instruction.mnemonic), expected, count)

    @staticmethod
    def _v_nibble(instruction: Instruction, operand: Operand, position: str) -> int:
        """Return the x/y field for a V register operand."""
        register = operand.as_register()
        if register is None or not register.is_v_register:
            raise OperandTypeError(
                f"{instruction.mnemonic} requires a Vx register as {position} operand, "
                f"got {operand.describe()}"
            )
        return int(register)

    @staticmethod
    def _immediate(instruction: Instruction, operand: Operand, limit: int, position: str) -> int:
        """Return an integer operand checked against its field width."""
        value = operand.as_uint()
        if value is None:
            raise OperandTypeError(
                f"{instruction.mnemonic} requires an integer as {position} operand, "
                f"got {operand.describe()}"
            )
        if value > limit:
            raise ValueRangeError(f"0x{value:X}", limit)
        return value

    def _address(self, instruction: Instruction, operand: Operand) -> Optional[int]:
        """
        Return the 12-bit address of an integer or label operand.

        Returns:
            The address, or None if the operand is neither
        """
        value = operand.as_uint()
        if value is not None:
            return value & ADDRESS_MASK

        name = operand.as_label()
        if name is None:
            return None

        address = self._resolve_label(name)
        if address > ADDRESS_MASK:
            self._diagnostics.warn(
                f"address 0x{address:X} of label '{name}' does not fit in 12 bits",
                instruction.location,
            )
        return address & ADDRESS_MASK

    def _resolve_label(self, name: str) -> int:
        """Look up a label and add the load address."""
        offset = self._labels.get(name)
        if offset is None:
            similar = difflib.get_close_matches(name, list(self._labels), n=3)
            raise UndefinedSymbolError(name, similar_symbols=similar)
        return self.load_address + offset

    # =========================================================================
    # Encoders
    # =========================================================================

    def _encode_nop(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 0)
        return 0x0000

    def _encode_sys(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 0, 1)
        target = instruction.operands[0]
        if target.is_empty:
            return 0x0000
        address = self._address(instruction, target)
        if address is None:
            raise OperandTypeError(f"SYS requires an address, got {target.describe()}")
        return 0x0000 | address

    def _encode_cls(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 0)
        return 0x00E0

    def _encode_ret(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 0)
        return 0x00EE

    def _encode_jp(self, instruction: Instruction) -> int:
        first, second, _ = instruction.operands

        if first.is_empty:
            raise OperandCountError("JP", "1 or 2", 0)

        if first.kind is OperandKind.REGISTER:
            # JP V0, addr
            self._expect_count(instruction, 2)
            if first.as_register() is not Register.V0:
                raise OperandTypeError("register-relative jump is only possible with register V0")
            address = self._address(instruction, second)
            if address is None:
                raise OperandTypeError(f"JP V0 requires an address, got {second.describe()}")
            return 0xB000 | address

        self._expect_count(instruction, 1)
        address = self._address(instruction, first)
        if address is None:
            raise OperandTypeError(f"JP requires an address, got {first.describe()}")
        return 0x1000 | address

    def _encode_call(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 1)
        target = instruction.operands[0]
        address = self._address(instruction, target)
        if address is None:
            raise OperandTypeError(f"CALL requires an address, got {target.describe()}")
        return 0x2000 | address

    def _encode_skip_compare(self, instruction: Instruction, byte_opcode: int, register_opcode: int) -> int:
        """Encode SE/SNE, which compare Vx with a byte or with Vy."""
        self._expect_count(instruction, 2)
        first, second, _ = instruction.operands
        x = self._v_nibble(instruction, first, "left")

        if second.kind is OperandKind.UINT:
            return byte_opcode | (x << 8) | self._immediate(instruction, second, BYTE_LIMIT, "right")

        y = self._v_nibble(instruction, second, "right")
        return register_opcode | (x << 8) | (y << 4)

    def _encode_se(self, instruction: Instruction) -> int:
        return self._encode_skip_compare(instruction, 0x3000, 0x5000)

    def _encode_sne(self, instruction: Instruction) -> int:
        return self._encode_skip_compare(instruction, 0x4000, 0x9000)

    def _encode_ld(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 2)
        dest, source, _ = instruction.operands

        if dest.kind is OperandKind.F:
            return 0xF029 | (self._v_nibble(instruction, source, "right") << 8)
        if dest.kind is OperandKind.B:
            return 0xF033 | (self._v_nibble(instruction, source, "right") << 8)
        if dest.kind is OperandKind.K:
            raise OperandTypeError("LD: left-side operand can't be K")
        if dest.kind is not OperandKind.REGISTER:
            raise OperandTypeError(f"LD: destination can't be {dest.describe()}")

        register = dest.as_register()

        if register is Register.I:
            # LD I, addr
            address = self._address(instruction, source)
            if address is None:
                raise OperandTypeError(
                    f"LD can only load an address into I, got {source.describe()}"
                )
            return 0xA000 | address
        if register is Register.I_ADDR:
            return 0xF055 | (self._v_nibble(instruction, source, "right") << 8)
        if register is Register.DT:
            return 0xF015 | (self._v_nibble(instruction, source, "right") << 8)
        if register is Register.ST:
            return 0xF018 | (self._v_nibble(instruction, source, "right") << 8)

        # Destination is Vx; the source picks the encoding
        x = int(register)

        if source.kind is OperandKind.UINT:
            return 0x6000 | (x << 8) | self._immediate(instruction, source, BYTE_LIMIT, "right")
        if source.kind is OperandKind.K:
            return 0xF00A | (x << 8)
        if source.kind is OperandKind.LABEL:
            raise OperandTypeError("LD: can't load an address into a Vx register")
        if source.kind is OperandKind.REGISTER:
            source_register = source.as_register()
            if source_register is Register.I_ADDR:
                return 0xF065 | (x << 8)
            if source_register is Register.DT:
                return 0xF007 | (x << 8)
            if source_register is Register.I:
                raise OperandTypeError("LD can't load from register I")
            y = self._v_nibble(instruction, source, "right")
            return 0x8000 | (x << 8) | (y << 4)

        raise OperandTypeError(f"LD: right-side operand can't be {source.describe()}")

    def _encode_add(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 2)
        dest, source, _ = instruction.operands

        if dest.as_register() is Register.I:
            # ADD I, Vx
            return 0xF01E | (self._v_nibble(instruction, source, "right") << 8)

        x = self._v_nibble(instruction, dest, "left")
        if source.kind is OperandKind.UINT:
            return 0x7000 | (x << 8) | self._immediate(instruction, source, BYTE_LIMIT, "right")
        y = self._v_nibble(instruction, source, "right")
        return 0x8004 | (x << 8) | (y << 4)

    def _encode_alu(self, instruction: Instruction) -> int:
        if instruction.mnemonic in SHIFT_MNEMONICS:
            # SHR Vx {, Vy}
            self._expect_count(instruction, 1, 2)
        else:
            self._expect_count(instruction, 2)

        first, second, _ = instruction.operands
        x = self._v_nibble(instruction, first, "left")
        y = 0 if second.is_empty else self._v_nibble(instruction, second, "right")
        return ALU_OPCODES[instruction.mnemonic] | (x << 8) | (y << 4)

    def _encode_rnd(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 2)
        first, second, _ = instruction.operands
        x = self._v_nibble(instruction, first, "left")
        return 0xC000 | (x << 8) | self._immediate(instruction, second, BYTE_LIMIT, "right")

    def _encode_drw(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 3)
        first, second, third = instruction.operands
        x = self._v_nibble(instruction, first, "first")
        y = self._v_nibble(instruction, second, "second")
        n = self._immediate(instruction, third, NIBBLE_LIMIT, "third")
        return 0xD000 | (x << 8) | (y << 4) | n

    def _encode_skp(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 1)
        return 0xE09E | (self._v_nibble(instruction, instruction.operands[0], "only") << 8)

    def _encode_sknp(self, instruction: Instruction) -> int:
        self._expect_count(instruction, 1)
        return 0xE0A1 | (self._v_nibble(instruction, instruction.operands[0], "only") << 8)
