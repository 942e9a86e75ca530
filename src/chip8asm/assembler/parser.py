"""
CHIP-8 Assembly Language Parser
===============================

This module turns preprocessed source text into a list of statements and
builds the label table in the same pass.

Statement Types
---------------
1. **Instruction**: mnemonic with up to three operands (2 bytes)
   ```asm
   LD V0, 0x12
   DRW V0, V1, 5
   ```

2. **ByteData**: raw bytes (1 byte per argument)
   ```asm
   db 0xF0, 0x90, "HI\\n"
   ```

3. **WordData**: raw words (2 bytes per argument, big-endian)
   ```asm
   dw 0x1234, 42
   ```

Label declarations (`name:`) do not produce a statement. They record the
current byte offset in the label table. The offset is relative to the
start of the program; the load address is added when a label is used.

Because the label table is only complete at the end of the pass, label
references are kept as names and resolved by the code generator.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from chip8asm.errors import (
    AssemblerError,
    AssemblySyntaxError,
    Diagnostics,
    DuplicateSymbolError,
    OperandCountError,
    OperandTypeError,
    SourceLocation,
    ValueRangeError,
)
from chip8asm.assembler.lexer import (
    next_word,
    is_comment,
    is_label_declaration,
)
from chip8asm.assembler.opcodes import (
    BYTE_LIMIT,
    INSTRUCTION_SIZE,
    OPERAND_LIMIT,
    WORD_LIMIT,
    Mnemonic,
    lookup_mnemonic,
)
from chip8asm.assembler.operands import (
    EMPTY,
    Operand,
    OperandKind,
    SPECIAL_KINDS,
    classify_operand,
    parse_integer,
    parse_string_literal,
)


logger = logging.getLogger(__name__)


MAX_OPERANDS = 3


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass
class Statement(ABC):
    """
    Base class for all parsed statements.

    Every statement remembers where it came from for error reporting.
    """
    location: SourceLocation
    source_line: Optional[str] = field(default=None, kw_only=True)

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of bytes the statement occupies in the output."""


@dataclass
class Instruction(Statement):
    """
    Machine instruction statement.

    Attributes:
        mnemonic: The instruction mnemonic
        operands: Exactly three operand slots; unused slots are EMPTY
    """
    mnemonic: Mnemonic
    operands: tuple[Operand, Operand, Operand] = (EMPTY, EMPTY, EMPTY)

    @property
    def size(self) -> int:
        return INSTRUCTION_SIZE

    @property
    def operand_count(self) -> int:
        """Number of filled operand slots."""
        return sum(1 for operand in self.operands if not operand.is_empty)

    def __str__(self) -> str:
        used = [str(operand) for operand in self.operands if not operand.is_empty]
        if used:
            return f"{self.mnemonic} {', '.join(used)}"
        return str(self.mnemonic)


@dataclass
class ByteData(Statement):
    """
    Raw byte data (db directive).

    Attributes:
        values: Byte values in output order
    """
    values: list[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.values)


@dataclass
class WordData(Statement):
    """
    Raw word data (dw directive).

    Attributes:
        values: 16-bit values in output order
    """
    values: list[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return 2 * len(self.values)


AnyStatement = Union[Instruction, ByteData, WordData]


@dataclass
class ParseResult:
    """
    Output of the parsing pass.

    Attributes:
        statements: Statements in program order
        labels: Label name -> byte offset from the start of the program
    """
    statements: list[AnyStatement] = field(default_factory=list)
    labels: dict[str, int] = field(default_factory=dict)

    @property
    def size(self) -> int:
        """Total number of bytes the program will occupy."""
        return sum(statement.size for statement in self.statements)


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses preprocessed CHIP-8 assembly into statements and a label table.

    Usage:
        parser = Parser("game.asm", diagnostics)
        result = parser.parse(preprocessed_text)
        result.statements, result.labels
    """

    def __init__(self, filename: str = "<input>", diagnostics: Optional[Diagnostics] = None):
        """
        Initialize the parser.

        Args:
            filename: Source filename for error reporting
            diagnostics: Collector for warnings
        """
        self._filename = filename
        self._diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._result = ParseResult()
        self._offset = 0

    def parse(self, source: str) -> ParseResult:
        """
        Parse every line of the source.

        Returns:
            ParseResult with the statements and the completed label table

        Raises:
            AssemblerError: On the first invalid line; the error carries the
                file name and line number
        """
        self._result = ParseResult()
        self._offset = 0

        for line_number, line in enumerate(source.split("\n"), start=1):
            location = SourceLocation(self._filename, line_number)
            try:
                self._parse_line(line, 0, location)
            except AssemblerError as e:
                raise e.with_location(location, line.strip())

        logger.info(
            f"Parsed {len(self._result.statements)} statements, "
            f"{len(self._result.labels)} labels"
        )
        return self._result

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self, line: str, pos: int, location: SourceLocation) -> None:
        """Parse the part of a line starting at pos."""
        word, pos = next_word(line, pos)

        if not word or is_comment(word):
            return

        logger.debug(f"Word: \"{word}\"")

        if is_label_declaration(word):
            self._declare_label(word[:-1], location)
            # Whatever follows the label is a statement of its own
            self._parse_line(line, pos, location)
            return

        mnemonic = lookup_mnemonic(word)
        if mnemonic is not None:
            self._add(self._parse_instruction(mnemonic, line, pos, location))
            return

        directive = word.lower()
        if directive == "db":
            self._add(self._parse_db(line, pos, location))
            return
        if directive == "dw":
            self._add(self._parse_dw(line, pos, location))
            return

        raise AssemblySyntaxError(f"syntax error: {line.strip()}")

    def _add(self, statement: AnyStatement) -> None:
        """Append a statement and advance the byte offset."""
        self._result.statements.append(statement)
        self._offset += statement.size
        if self._offset > WORD_LIMIT:
            raise ValueRangeError(self._offset, WORD_LIMIT)

    # =========================================================================
    # Labels
    # =========================================================================

    def _declare_label(self, name: str, location: SourceLocation) -> None:
        """Record a label at the current byte offset."""
        logger.debug(f"Found a label declaration: \"{name}\", offset: 0x{self._offset:X}")

        labels = self._result.labels
        if name in labels:
            raise DuplicateSymbolError(name, labels[name], self._offset)
        labels[name] = self._offset

    # =========================================================================
    # Instructions
    # =========================================================================

    def _parse_instruction(
        self,
        mnemonic: Mnemonic,
        line: str,
        pos: int,
        location: SourceLocation,
    ) -> Instruction:
        """Parse the operands of an instruction line."""
        logger.debug(f"Found an opcode: {mnemonic}")

        operands: list[Operand] = []
        while True:
            word, pos = next_word(line, pos)
            if not word:
                break
            operand = classify_operand(word, OPERAND_LIMIT)
            if operand is None:
                # Comment, the rest of the line is ignored
                break
            if len(operands) == MAX_OPERANDS:
                raise OperandCountError(str(mnemonic), f"at most {MAX_OPERANDS}", len(operands) + 1)
            operands.append(operand)

        while len(operands) < MAX_OPERANDS:
            operands.append(EMPTY)

        self._check_special_operands(mnemonic, operands)

        return Instruction(
            location=location,
            mnemonic=mnemonic,
            operands=tuple(operands),
            source_line=line.strip(),
        )

    @staticmethod
    def _check_special_operands(mnemonic: Mnemonic, operands: list[Operand]) -> None:
        """
        Check where F, B and K appear.

        F and B are only valid as the destination of LD (LD F, Vx and
        LD B, Vx); K is only valid as the source of LD (LD Vx, K).
        """
        for index, operand in enumerate(operands):
            if operand.kind not in SPECIAL_KINDS:
                continue
            if mnemonic is Mnemonic.LD:
                if index == 0 and operand.kind in (OperandKind.F, OperandKind.B):
                    continue
                if index == 1 and operand.kind is OperandKind.K:
                    continue
            raise OperandTypeError(
                "invalid use of F/B/K operator",
                hint="F and B are only allowed as LD destination, K only as LD source",
            )

    # =========================================================================
    # Data Directives
    # =========================================================================

    def _data_words(self, line: str, pos: int) -> Iterator[str]:
        """Yield the argument words of a data directive."""
        while True:
            word, pos = next_word(line, pos)
            if not word or is_comment(word):
                return
            yield word

    def _parse_db(self, line: str, pos: int, location: SourceLocation) -> ByteData:
        """Parse a db directive: byte literals and double-quoted strings."""
        logger.debug("Found a byte definition")

        values: list[int] = []
        for word in self._data_words(line, pos):
            logger.debug(f"DB argument: {word}")
            codes = parse_string_literal(word)
            if codes is None:
                values.append(parse_integer(word, BYTE_LIMIT))
                continue
            for code in codes:
                if code > BYTE_LIMIT:
                    raise ValueRangeError(f"'{chr(code)}'", BYTE_LIMIT)
            values.extend(codes)

        if not values:
            self._diagnostics.warn("DB without data", location)

        return ByteData(location=location, values=values, source_line=line.strip())

    def _parse_dw(self, line: str, pos: int, location: SourceLocation) -> WordData:
        """Parse a dw directive: 16-bit literals."""
        logger.debug("Found a word definition")

        values = [parse_integer(word, WORD_LIMIT) for word in self._data_words(line, pos)]

        if not values:
            self._diagnostics.warn("DW without data", location)

        return WordData(location=location, values=values, source_line=line.strip())


# =============================================================================
# Convenience Function
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    diagnostics: Optional[Diagnostics] = None,
) -> ParseResult:
    """
    Parse preprocessed source text.

    Args:
        source: Source text (after preprocessing)
        filename: Filename for error messages
        diagnostics: Collector for warnings

    Returns:
        ParseResult with statements and label table
    """
    return Parser(filename, diagnostics).parse(source)
