# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for instruction encoding and label resolution.
#
# Test coverage includes:
#   - Every instruction form and its 16-bit encoding
#   - Operand count and operand kind validation
#   - Byte and nibble immediate range checks
#   - Label resolution relative to the load address
#   - Data emission and alignment warnings
# =============================================================================

import pytest

from chip8asm.assembler.codegen import ByteBuffer, CodeGenerator
from chip8asm.assembler.opcodes import Mnemonic
from chip8asm.assembler.operands import EMPTY, Operand
from chip8asm.assembler.parser import parse_source
from chip8asm.errors import (
    AssemblerError,
    Diagnostics,
    OperandCountError,
    OperandTypeError,
    SourceLocation,
    UndefinedSymbolError,
    ValueRangeError,
)


def encode_source(source: str, diagnostics: Diagnostics = None) -> bytes:
    """Helper to parse and generate a source snippet."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    result = parse_source(source, "<test>", diagnostics)
    return CodeGenerator(diagnostics).generate(result.statements, result.labels)


def encode_one(line: str) -> int:
    """Helper returning the single 16-bit word of one instruction."""
    code = encode_source(line)
    assert len(code) == 2
    return (code[0] << 8) | code[1]


# =============================================================================
# Encoding Table Tests
# =============================================================================

class TestEncodings:
    """Golden encodings for every instruction form."""

    @pytest.mark.parametrize("line,word", [
        ("NOP", 0x0000),
        ("SYS", 0x0000),
        ("SYS 0x123", 0x0123),
        ("CLS", 0x00E0),
        ("RET", 0x00EE),
        ("JP 0x300", 0x1300),
        ("JP V0, 0x300", 0xB300),
        ("CALL 0x2A4", 0x22A4),
        ("SE V1, 0x22", 0x3122),
        ("SE V1, V2", 0x5120),
        ("SNE V1, 0x22", 0x4122),
        ("SNE V1, V2", 0x9120),
        ("LD V1, 0x22", 0x6122),
        ("LD V1, V2", 0x8120),
        ("LD I, 0x300", 0xA300),
        ("LD V1, DT", 0xF107),
        ("LD V1, K", 0xF10A),
        ("LD DT, V1", 0xF115),
        ("LD ST, V1", 0xF118),
        ("LD F, V1", 0xF129),
        ("LD B, V1", 0xF133),
        ("LD [I], V3", 0xF355),
        ("LD V3, [I]", 0xF365),
        ("ADD V1, 5", 0x7105),
        ("ADD V1, V2", 0x8124),
        ("ADD I, V5", 0xF51E),
        ("OR V1, V2", 0x8121),
        ("AND V1, V2", 0x8122),
        ("XOR V1, V2", 0x8123),
        ("SUB V1, V2", 0x8125),
        ("SHR V1", 0x8106),
        ("SHR V1, V2", 0x8126),
        ("SUBN V1, V2", 0x8127),
        ("SHL V1", 0x810E),
        ("SHL V1, V2", 0x812E),
        ("RND V2, 0xFF", 0xC2FF),
        ("DRW V1, V2, 5", 0xD125),
        ("SKP V3", 0xE39E),
        ("SKNP V3", 0xE3A1),
    ])
    def test_encoding(self, line, word):
        assert encode_one(line) == word

    def test_high_registers(self):
        assert encode_one("LD VF, VE") == 0x8FE0
        assert encode_one("LD V15, v14") == 0x8FE0

    def test_big_endian(self):
        assert encode_source("LD V0, 0x12") == bytes([0x60, 0x12])

    def test_address_masked_to_12_bits(self):
        assert encode_one("JP 0xFFF") == 0x1FFF


# =============================================================================
# Operand Count Tests
# =============================================================================

class TestOperandCounts:
    """Test rejected operand counts."""

    @pytest.mark.parametrize("line", [
        "CLS V0",
        "RET 1",
        "NOP 1",
        "SYS 1, 2",
        "JP",
        "JP 0x200, 1",
        "CALL",
        "SE V0",
        "LD V0",
        "LD V0, 1, 2",
        "ADD V0",
        "ADD V0, V1, V2",
        "OR V0",
        "SUB V0, V1, V2",
        "SHR",
        "SHL V0, V1, V2",
        "RND V0",
        "DRW V0, V1",
        "SKP",
        "SKNP V0, V1",
    ])
    def test_wrong_count(self, line):
        with pytest.raises(OperandCountError):
            encode_source(line)

    def test_message(self):
        with pytest.raises(OperandCountError) as exc_info:
            encode_source("ADD V0, V1, V2")
        assert "invalid number of operands for ADD: expected 2, got 3" in str(exc_info.value)


# =============================================================================
# Operand Kind Tests
# =============================================================================

class TestOperandKinds:
    """Test rejected operand kinds."""

    @pytest.mark.parametrize("line", [
        "SE 5, V0",
        "SE V0, I",
        "JP V1, 0x300",
        "JP V0, V1",
        "JP DT, 0x300",
        "CALL V0",
        "LD V0, loop",
        "LD V0, I",
        "LD I, V0",
        "LD 5, V0",
        "LD DT, 5",
        "ADD V0, DT",
        "ADD I, 5",
        "OR V0, 5",
        "SHR I",
        "RND V0, V1",
        "DRW V0, V1, V2",
        "SKP 5",
        "SYS V0",
    ])
    def test_wrong_kind(self, line):
        with pytest.raises(OperandTypeError):
            encode_source(line + "\nloop:")

    def test_jp_register_message(self):
        with pytest.raises(OperandTypeError) as exc_info:
            encode_source("JP V1, 0x300")
        assert "only possible with register V0" in str(exc_info.value)


# =============================================================================
# Immediate Range Tests
# =============================================================================

class TestImmediateRanges:
    """Byte and nibble immediates are range checked, not masked."""

    @pytest.mark.parametrize("line", [
        "LD V0, 0x100",
        "ADD V0, 256",
        "SE V0, 0x1FF",
        "SNE V0, 0x100",
        "RND V0, 0x100",
        "DRW V0, V1, 16",
    ])
    def test_out_of_range(self, line):
        with pytest.raises(ValueRangeError):
            encode_source(line)

    def test_nibble_limit(self):
        assert encode_one("DRW V0, V1, 15") == 0xD01F


# =============================================================================
# Label Resolution Tests
# =============================================================================

class TestLabels:
    """Test label references in address operands."""

    def test_backward_reference(self):
        code = encode_source("loop:\nCLS\nJP loop")
        assert code == bytes([0x00, 0xE0, 0x12, 0x00])

    def test_forward_reference(self):
        code = encode_source("JP end\nCLS\nend: RET")
        assert code == bytes([0x12, 0x04, 0x00, 0xE0, 0x00, 0xEE])

    @pytest.mark.parametrize("line,word", [
        ("CALL target", 0x2202),
        ("LD I, target", 0xA202),
        ("JP V0, target", 0xB202),
        ("SYS target", 0x0202),
    ])
    def test_label_in_every_address_form(self, line, word):
        code = encode_source(f"{line}\ntarget:\nRET")
        assert (code[0] << 8) | code[1] == word

    def test_custom_load_address(self):
        result = parse_source("start: JP start")
        code = CodeGenerator(load_address=0x600).generate(result.statements, result.labels)
        assert code == bytes([0x16, 0x00])

    def test_undefined_label(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            encode_source("CLS\nJP nowhere")
        error = exc_info.value
        assert error.symbol == "nowhere"
        assert error.location.line == 2
        assert "reference to undefined label 'nowhere'" in str(error)

    def test_undefined_label_suggestion(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            encode_source("draw_sprite:\nCALL draw_sprit")
        assert "draw_sprite" in exc_info.value.similar_symbols
        assert "did you mean" in str(exc_info.value)

    def test_label_address_over_12_bits(self):
        """Label addresses that do not fit are masked with a warning."""
        diagnostics = Diagnostics()
        location = SourceLocation("<test>", 1)
        statements = parse_source("JP far", "<test>").statements
        code = CodeGenerator(diagnostics).generate(statements, {"far": 0xF00})
        assert code == bytes([0x11, 0x00])
        assert diagnostics.warning_count() == 1
        assert diagnostics.warnings[0].location == location
        assert "does not fit in 12 bits" in diagnostics.warnings[0].message


# =============================================================================
# Data Emission Tests
# =============================================================================

class TestData:
    """Test DB and DW output."""

    def test_bytes_and_words(self):
        code = encode_source("db 1, 2\ndw 0x1234")
        assert code == bytes([0x01, 0x02, 0x12, 0x34])

    def test_unaligned_warning(self):
        diagnostics = Diagnostics()
        encode_source("db 1\nCLS", diagnostics)
        assert diagnostics.warning_count() == 1
        assert "unaligned" in diagnostics.warnings[0].message

    def test_aligned_no_warning(self):
        diagnostics = Diagnostics()
        encode_source("db 1, 2\nCLS", diagnostics)
        assert not diagnostics.has_warnings()


# =============================================================================
# Internal Structure Tests
# =============================================================================

class TestInternals:
    """Test the output buffer and direct encoding."""

    def test_byte_buffer(self):
        buffer = ByteBuffer()
        buffer.append8(0x12)
        buffer.append16(0xABCD)
        assert len(buffer) == 3
        assert buffer.to_bytes() == bytes([0x12, 0xAB, 0xCD])

    def test_encode_instruction(self):
        from chip8asm.assembler.parser import Instruction
        instr = Instruction(
            location=SourceLocation("<test>", 1),
            mnemonic=Mnemonic.JP,
            operands=(Operand.uint(0x345), EMPTY, EMPTY),
        )
        assert CodeGenerator().encode(instr) == 0x1345

    def test_unknown_statement_type(self):
        with pytest.raises(AssemblerError):
            CodeGenerator().generate([object()], {})
