"""
CHIP-8 Assembler Error Hierarchy
================================

This module defines the exception hierarchy for the whole toolchain.
All exceptions inherit from Chip8Error, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
└── AssemblerError (assembler-related)
    ├── AssemblySyntaxError - unrecognized line shape or bad operand word
    │   └── MacroError - bad %define directive or empty macro use
    ├── ValueRangeError - literal does not fit the field it is used in
    ├── OperandTypeError - operand kind not allowed for the mnemonic/slot
    ├── OperandCountError - wrong number of operands for a mnemonic
    └── SymbolError - label table problems
        ├── UndefinedSymbolError - reference to an undeclared label
        └── DuplicateSymbolError - label declared twice

Warnings
--------
Conditions that do not stop assembly (macro redeclaration, data directive
without arguments, odd alignment after byte data, a label address that
does not fit in 12 bits) are recorded as AssemblyWarning entries in a
Diagnostics collector, which the assembler returns to the caller.

Error messages follow this format:
    filename:line: error: description
        source_line_text
    hint: suggestion for fixing (when available)
"""

import logging
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all toolchain errors.

        try:
            assembler.assemble_file("game.asm")
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a line in a source file for error reporting.

    The assembler works line by line, so a location is a file name and a
    1-based line number. Line numbers survive preprocessing because
    directive lines are blanked rather than removed.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
    """
    filename: str
    line: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Chip8Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            game.asm:15: error: undefined symbol 'draw_sprit'
                CALL draw_sprit
            hint: did you mean 'draw_sprite'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)

    def with_location(
        self,
        location: SourceLocation,
        source_line: Optional[str] = None,
    ) -> "AssemblerError":
        """
        Attach a source location to an error raised without one.

        Helpers deep in the pipeline (literal parsing, label lookup) do not
        know which line they are working on; the stage driving them catches
        the error and re-raises it enriched with the line. Errors that
        already carry a location are left untouched.

        Returns:
            The same exception object, for use in a raise statement
        """
        if self.location is None:
            self.location = location
            if self.source_line is None:
                self.source_line = source_line
            self.args = (self._format_message(),)
        return self


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Examples:
        - Line that is neither a label, an instruction nor a data directive
        - Operand word that is not a register, literal or label name
        - Malformed numeric or character literal
    """
    pass


class MacroError(AssemblySyntaxError):
    """
    Error in a %define directive or in a macro expansion.

    Raised when:
    - The directive keyword after '%' is not 'define'
    - The macro name is missing or is not a valid identifier
    - A macro whose value is empty is used in the source
    """
    pass


class ValueRangeError(AssemblerError):
    """
    Numeric value does not fit the field it is used in.

    The width depends on context: 12 bits for instruction operands,
    8 bits for DB arguments and byte immediates, 16 bits for DW arguments,
    4 bits for the DRW sprite height.
    """

    def __init__(
        self,
        value: int | str,
        limit: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.value = value
        self.limit = limit
        super().__init__(
            f"value {value} is out of range (maximum 0x{limit:X})",
            location=location,
            source_line=source_line,
        )


class OperandTypeError(AssemblerError):
    """
    Operand kind is wrong for its mnemonic or position.

    Example:
        SE 5, V0     ; Error: SE needs a V register on the left
        CLS F        ; Error: F is only meaningful with LD
    """
    pass


class OperandCountError(AssemblerError):
    """
    Wrong number of operands for a mnemonic.

    Example:
        ADD V0, V1, V2   ; Error: ADD takes 2 operands
    """

    def __init__(
        self,
        mnemonic: str,
        expected: int | str,
        actual: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"invalid number of operands for {mnemonic}: expected {expected}, got {actual}",
            location=location,
            source_line=source_line,
        )


class SymbolError(AssemblerError):
    """Base class for label table errors."""
    pass


class UndefinedSymbolError(SymbolError):
    """
    Reference to an undefined label.

    Raised during code generation, once the label table is complete, when
    a label reference cannot be resolved. Similar label names are offered
    as a hint to help catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"reference to undefined label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(SymbolError):
    """
    Label declared more than once.

    Both byte offsets are reported so the two declarations can be found.
    """

    def __init__(
        self,
        symbol: str,
        original_offset: int,
        new_offset: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_offset = original_offset
        self.new_offset = new_offset

        super().__init__(
            f"label redeclared: '{symbol}', original offset: 0x{original_offset:04X}, "
            f"new offset: 0x{new_offset:04X}",
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Warning Collection
# =============================================================================

@dataclass(frozen=True)
class AssemblyWarning:
    """
    A non-fatal condition found while assembling.

    Attributes:
        message: Description of the condition
        location: Source location, when the condition belongs to a line
    """
    message: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: warning: {self.message}"
        return f"warning: {self.message}"


class Diagnostics:
    """
    Collects warnings produced by the pipeline stages.

    Each stage receives the same collector, so the caller can inspect every
    warning of a run after it finishes instead of capturing log output.
    Warnings are also sent to the logging system as they are added.

    Example:
        diagnostics = Diagnostics()
        text = preprocess(source, "game.asm", diagnostics)
        ...
        for warning in diagnostics.warnings:
            print(warning)
    """

    def __init__(self):
        self.warnings: list[AssemblyWarning] = []

    def warn(self, message: str, location: Optional[SourceLocation] = None) -> AssemblyWarning:
        """
        Record a warning.

        Args:
            message: Description of the condition
            location: Source location, if known

        Returns:
            The recorded AssemblyWarning
        """
        warning = AssemblyWarning(message, location)
        self.warnings.append(warning)
        logger.warning(str(warning))
        return warning

    def has_warnings(self) -> bool:
        """Return True if any warnings have been collected."""
        return len(self.warnings) > 0

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """
        Format all warnings for display.

        Returns:
            One warning per line followed by a summary line
        """
        lines = [str(warning) for warning in self.warnings]
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(f"{len(self.warnings)} {warning_word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected warnings."""
        self.warnings.clear()
