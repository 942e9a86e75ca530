# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the complete CHIP-8 assembler pipeline, from source
# text (macros included) to the binary image.
#
# Test coverage includes:
#   - Complete program assembly
#   - Macros, labels and data working together
#   - Error reporting with file names and line numbers
#   - Warnings, symbols and macro tables
#   - Binary and hex dump output files
# =============================================================================

import pytest

from chip8asm import __version__
from chip8asm.assembler import Assembler, assemble, assemble_file, format_hex_dump
from chip8asm.errors import (
    AssemblerError,
    AssemblySyntaxError,
    DuplicateSymbolError,
    MacroError,
    OperandCountError,
    UndefinedSymbolError,
    ValueRangeError,
)


# A small program using every statement kind
DEMO_PROGRAM = """\
; Draw a sprite and wait for a key
%define X_POS V1
%define Y_POS V2

start:
    CLS
    LD X_POS, 10
    LD Y_POS, 0x0C
    LD I, sprite
    DRW X_POS, Y_POS, 5
wait: LD V0, K          ; block until a key is pressed
    SE V0, 0x0F
    JP wait
    JP start

sprite:
    db 0xF0, 0x90, 0x90, 0x90, 0xF0, 0
    dw 0x1234
"""


# =============================================================================
# Full Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline."""

    def test_version(self):
        assert __version__ == "1.0.0"

    def test_minimal_program(self):
        assert assemble("CLS\nRET\n") == bytes([0x00, 0xE0, 0x00, 0xEE])

    def test_empty_source(self):
        assert assemble("") == b""

    def test_comments_only(self):
        assert assemble("; nothing\n\n   ; here\n") == b""

    def test_demo_program(self):
        asm = Assembler()
        code = asm.assemble_string(DEMO_PROGRAM, "demo.asm")
        assert code == bytes([
            0x00, 0xE0,             # CLS
            0x61, 0x0A,             # LD V1, 10
            0x62, 0x0C,             # LD V2, 0x0C
            0xA2, 0x12,             # LD I, sprite
            0xD1, 0x25,             # DRW V1, V2, 5
            0xF0, 0x0A,             # wait: LD V0, K
            0x30, 0x0F,             # SE V0, 0x0F
            0x12, 0x0A,             # JP wait
            0x12, 0x00,             # JP start
            0xF0, 0x90, 0x90, 0x90, 0xF0,
            0x00,
            0x12, 0x34,
        ])
        assert asm.get_symbols() == {"start": 0, "wait": 10, "sprite": 18}
        assert asm.get_macros() == {"X_POS": "V1", "Y_POS": "V2"}
        assert asm.get_warnings() == []

    def test_statement_count(self):
        asm = Assembler()
        asm.assemble_string(DEMO_PROGRAM)
        assert len(asm.get_statements()) == 11

    def test_macro_expands_to_label(self):
        code = assemble("%define TARGET done\nJP TARGET\ndone: RET")
        assert code == bytes([0x12, 0x02, 0x00, 0xEE])

    def test_macro_expands_to_mnemonic(self):
        code = assemble("%define CLEAR CLS\nCLEAR")
        assert code == bytes([0x00, 0xE0])

    def test_byte_data_boundaries(self):
        assert assemble("db 255") == bytes([0xFF])
        with pytest.raises(ValueRangeError):
            assemble("db 256")

    def test_word_data_boundaries(self):
        assert assemble("dw 0xFFFF") == bytes([0xFF, 0xFF])
        with pytest.raises(ValueRangeError):
            assemble("dw 0x10000")

    def test_output_is_sum_of_statement_sizes(self):
        asm = Assembler()
        code = asm.assemble_string(DEMO_PROGRAM)
        assert len(code) == sum(s.size for s in asm.get_statements())

    def test_custom_load_address(self):
        asm = Assembler(load_address=0x600)
        assert asm.assemble_string("start: JP start") == bytes([0x16, 0x00])


# =============================================================================
# Error Reporting Tests
# =============================================================================

class TestErrorReporting:
    """Test error messages carry file and line."""

    def test_syntax_error_line(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            assemble("CLS\n\nbogus line\n", "game.asm")
        assert str(exc_info.value).startswith("game.asm:3: error: syntax error: bogus line")

    def test_line_numbers_after_directives(self):
        """Directive lines still count when errors are reported."""
        with pytest.raises(AssemblerError) as exc_info:
            assemble("%define A 1\n%define B 2\nLD V0\n", "game.asm")
        assert exc_info.value.location.line == 3

    def test_undefined_label(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            assemble("CLS\nCALL draw\n", "game.asm")
        message = str(exc_info.value)
        assert message.startswith("game.asm:2: error: reference to undefined label 'draw'")
        assert "CALL draw" in message

    def test_duplicate_label(self):
        with pytest.raises(DuplicateSymbolError):
            assemble("x: CLS\nx: RET")

    def test_macro_error(self):
        with pytest.raises(MacroError):
            assemble("%macro X")

    def test_operand_count_error(self):
        with pytest.raises(OperandCountError):
            assemble("LD V0, V1, V2")

    def test_no_partial_state_on_error(self):
        """A failed assembly leaves no code from the previous run."""
        asm = Assembler()
        asm.assemble_string("CLS")
        with pytest.raises(AssemblerError):
            asm.assemble_string("JP nowhere")
        assert asm.get_code() == b""
        assert asm.get_symbols() == {}


# =============================================================================
# Warning Tests
# =============================================================================

class TestWarnings:
    """Test non-fatal diagnostics."""

    def test_warnings_collected(self):
        asm = Assembler()
        asm.assemble_string("%define X 1\n%define X 2\ndb\ndw\n", "w.asm")
        messages = [w.message for w in asm.get_warnings()]
        assert messages == ['macro redeclared: "X"', "DB without data", "DW without data"]
        assert [w.location.line for w in asm.get_warnings()] == [2, 3, 4]

    def test_warnings_reset_between_runs(self):
        asm = Assembler()
        asm.assemble_string("db")
        assert asm.diagnostics.has_warnings()
        asm.assemble_string("CLS")
        assert not asm.diagnostics.has_warnings()

    def test_report(self):
        asm = Assembler()
        asm.assemble_string("db 1\nCLS", "w.asm")
        report = asm.diagnostics.report()
        assert "w.asm:1: warning: unaligned data" in report
        assert report.endswith("1 warning")

    def test_warnings_logged(self, caplog):
        with caplog.at_level("WARNING"):
            assemble("dw")
        assert "DW without data" in caplog.text


# =============================================================================
# Output Tests
# =============================================================================

class TestOutput:
    """Test hex dumps and file output."""

    def test_hex_dump_format(self):
        assert format_hex_dump(bytes([0x00, 0xE0, 0x00, 0xEE])) == "00 e0 00 ee\n"

    def test_hex_dump_wraps_at_16_bytes(self):
        dump = format_hex_dump(bytes(range(18)))
        lines = dump.splitlines()
        assert len(lines) == 2
        assert lines[0].split() == [f"{n:02x}" for n in range(16)]
        assert lines[1] == "10 11"

    def test_hex_dump_empty(self):
        assert format_hex_dump(b"") == ""

    def test_get_hex_dump(self):
        asm = Assembler()
        asm.assemble_string("LD V0, 0x12")
        assert asm.get_hex_dump() == "60 12\n"

    def test_assemble_file(self, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("CLS\nRET\n")
        assert assemble_file(source) == bytes([0x00, 0xE0, 0x00, 0xEE])

    def test_file_error_has_filename(self, tmp_path):
        source = tmp_path / "bad.asm"
        source.write_text("JP nowhere\n")
        with pytest.raises(UndefinedSymbolError) as exc_info:
            Assembler().assemble_file(source)
        assert exc_info.value.location.filename == str(source)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            assemble_file(tmp_path / "missing.asm")

    def test_write_binary(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("CLS")
        output = tmp_path / "out.ch8"
        asm.write_binary(output)
        assert output.read_bytes() == bytes([0x00, 0xE0])

    def test_write_hex(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("CLS")
        output = tmp_path / "out.hex"
        asm.write_hex(output)
        assert output.read_text() == "00 e0\n"
