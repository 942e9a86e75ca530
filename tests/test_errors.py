# =============================================================================
# test_errors.py - Error and Warning Formatting Tests
# =============================================================================

import pytest

from chip8asm.errors import (
    AssemblerError,
    AssemblySyntaxError,
    AssemblyWarning,
    Chip8Error,
    Diagnostics,
    DuplicateSymbolError,
    MacroError,
    OperandCountError,
    OperandTypeError,
    SourceLocation,
    SymbolError,
    UndefinedSymbolError,
    ValueRangeError,
)


class TestHierarchy:
    """All assembler errors share one base class."""

    @pytest.mark.parametrize("cls", [
        AssemblySyntaxError,
        MacroError,
        OperandTypeError,
        SymbolError,
    ])
    def test_message_errors(self, cls):
        error = cls("boom")
        assert isinstance(error, AssemblerError)
        assert isinstance(error, Chip8Error)

    def test_macro_is_syntax_error(self):
        assert issubclass(MacroError, AssemblySyntaxError)

    def test_symbol_errors(self):
        assert issubclass(UndefinedSymbolError, SymbolError)
        assert issubclass(DuplicateSymbolError, SymbolError)


class TestFormatting:
    """Test the text of error messages."""

    def test_without_location(self):
        assert str(AssemblerError("bad thing")) == "error: bad thing"

    def test_with_location_and_source(self):
        error = AssemblerError(
            "bad thing",
            SourceLocation("game.asm", 7),
            hint="try again",
            source_line="LD V0",
        )
        assert str(error) == "game.asm:7: error: bad thing\n    LD V0\nhint: try again"

    def test_with_location_fills_missing(self):
        error = AssemblySyntaxError("oops")
        result = error.with_location(SourceLocation("a.asm", 2), "CLS X")
        assert result is error
        assert str(error) == "a.asm:2: error: oops\n    CLS X"

    def test_with_location_keeps_existing(self):
        error = AssemblySyntaxError("oops", SourceLocation("a.asm", 2))
        error.with_location(SourceLocation("b.asm", 9))
        assert error.location == SourceLocation("a.asm", 2)

    def test_value_range(self):
        error = ValueRangeError(256, 0xFF)
        assert error.message == "value 256 is out of range (maximum 0xFF)"

    def test_operand_count(self):
        error = OperandCountError("DRW", 3, 2)
        assert error.message == "invalid number of operands for DRW: expected 3, got 2"

    def test_duplicate(self):
        error = DuplicateSymbolError("loop", 0x2, 0x10)
        assert error.message == (
            "label redeclared: 'loop', original offset: 0x0002, new offset: 0x0010"
        )

    def test_undefined_hint(self):
        error = UndefinedSymbolError("lop", similar_symbols=["loop"])
        assert error.hint == "did you mean 'loop'?"


class TestDiagnostics:
    """Test warning collection."""

    def test_warn(self):
        diagnostics = Diagnostics()
        warning = diagnostics.warn("careful", SourceLocation("x.asm", 4))
        assert warning == AssemblyWarning("careful", SourceLocation("x.asm", 4))
        assert diagnostics.warnings == [warning]
        assert str(warning) == "x.asm:4: warning: careful"

    def test_warning_without_location(self):
        assert str(AssemblyWarning("hmm")) == "warning: hmm"

    def test_report_and_clear(self):
        diagnostics = Diagnostics()
        diagnostics.warn("one")
        diagnostics.warn("two")
        assert diagnostics.report() == "warning: one\nwarning: two\n2 warnings"
        diagnostics.clear()
        assert not diagnostics.has_warnings()
        assert diagnostics.warning_count() == 0
