"""
CHIP-8 Operand Model and Classifier
===================================

This module converts operand words into typed Operand values and parses
numeric and character literals.

Operand Kinds
-------------
| Kind     | Source example     | Notes                               |
|----------|--------------------|-------------------------------------|
| EMPTY    | (unused slot)      |                                     |
| UINT     | 42, 0x2A, 0b101010 | range-checked against a limit       |
| REGISTER | V0, va, v10, [I]   | case-insensitive                    |
| LABEL    | draw_sprite        | resolved during code generation     |
| F, B, K  | f, B, k            | special LD operands                 |

Literal Formats
---------------
| Format      | Example  | Value |
|-------------|----------|-------|
| Decimal     | 123      | 123   |
| Hexadecimal | 0x7F     | 127   |
| Octal       | 0177     | 127   |
| Binary      | 0b1010   | 10    |
| Character   | 'A'      | 65    |
| Escape      | '\\n'    | 10    |
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from chip8asm.errors import AssemblySyntaxError, ValueRangeError
from chip8asm.assembler.lexer import is_comment, is_valid_label_name
from chip8asm.assembler.opcodes import OPERAND_LIMIT, Register, lookup_register


logger = logging.getLogger(__name__)


# Escape sequences shared by character and string literals
ESCAPE_SEQUENCES = {
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "t": "\t",
    "v": "\v",
    "f": "\f",
    "r": "\r",
    "n": "\n",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

HEX_DIGITS = frozenset(string.hexdigits)
OCT_DIGITS = frozenset(string.octdigits)
DEC_DIGITS = frozenset(string.digits)


# =============================================================================
# Operand Kinds
# =============================================================================

class OperandKind(Enum):
    """Kinds of operand that can fill an instruction slot."""
    EMPTY = auto()
    UINT = auto()       # Byte, nibble or address
    REGISTER = auto()
    LABEL = auto()      # Label reference
    F = auto()          # Sprite location (LD F, Vx)
    B = auto()          # BCD store (LD B, Vx)
    K = auto()          # Key wait (LD Vx, K)

    def __str__(self) -> str:
        return {
            OperandKind.EMPTY: "empty",
            OperandKind.UINT: "integer",
            OperandKind.REGISTER: "register",
            OperandKind.LABEL: "label",
            OperandKind.F: "sprite operator (F)",
            OperandKind.B: "BCD operator (B)",
            OperandKind.K: "key operator (K)",
        }[self]


SPECIAL_KINDS = frozenset({OperandKind.F, OperandKind.B, OperandKind.K})

_SPECIAL_NAMES = {
    "f": OperandKind.F,
    "b": OperandKind.B,
    "k": OperandKind.K,
}


# =============================================================================
# Operand Data Class
# =============================================================================

@dataclass(frozen=True)
class Operand:
    """
    A single instruction operand.

    Exactly one kind is active. The accessors return None when the
    operand holds a different kind; callers decide how to report that.

    Attributes:
        kind: Which kind of operand this is
        value: Integer value (UINT), Register (REGISTER), or name (LABEL)
    """
    kind: OperandKind
    value: int | Register | str | None = None

    @classmethod
    def uint(cls, value: int) -> "Operand":
        return cls(OperandKind.UINT, value)

    @classmethod
    def register(cls, register: Register) -> "Operand":
        return cls(OperandKind.REGISTER, register)

    @classmethod
    def label(cls, name: str) -> "Operand":
        return cls(OperandKind.LABEL, name)

    @property
    def is_empty(self) -> bool:
        return self.kind is OperandKind.EMPTY

    def as_uint(self) -> Optional[int]:
        """Return the integer value, or None if this is not a UINT."""
        return self.value if self.kind is OperandKind.UINT else None

    def as_register(self) -> Optional[Register]:
        """Return the register, or None if this is not a REGISTER."""
        return self.value if self.kind is OperandKind.REGISTER else None

    def as_label(self) -> Optional[str]:
        """Return the label name, or None if this is not a LABEL."""
        return self.value if self.kind is OperandKind.LABEL else None

    def describe(self) -> str:
        """Human readable form for error messages."""
        if self.kind is OperandKind.UINT:
            return f"integer 0x{self.value:X}"
        if self.kind is OperandKind.REGISTER:
            return f"register {self.value.display_name}"
        if self.kind is OperandKind.LABEL:
            return f"label '{self.value}'"
        return str(self.kind)

    def __str__(self) -> str:
        if self.kind is OperandKind.UINT:
            return f"0x{self.value:X}"
        if self.kind is OperandKind.REGISTER:
            return self.value.display_name
        if self.kind is OperandKind.LABEL:
            return self.value
        if self.kind in SPECIAL_KINDS:
            return self.kind.name
        return ""


EMPTY = Operand(OperandKind.EMPTY)
F_OPERAND = Operand(OperandKind.F)
B_OPERAND = Operand(OperandKind.B)
K_OPERAND = Operand(OperandKind.K)


# =============================================================================
# Literal Parsing
# =============================================================================

def translate_escape(char: str) -> str:
    """
    Translate the character following a backslash.

    Raises:
        AssemblySyntaxError: If the escape is not supported
    """
    try:
        return ESCAPE_SEQUENCES[char]
    except KeyError:
        raise AssemblySyntaxError(f"invalid escape sequence: \\{char}") from None


def parse_integer(word: str, limit: int) -> int:
    """
    Parse a numeric or character literal.

    Args:
        word: The literal as written in the source
        limit: Largest value allowed in this context

    Returns:
        The literal value

    Raises:
        AssemblySyntaxError: If the literal is malformed
        ValueRangeError: If the value exceeds limit
    """
    logger.debug(f"Converting \"{word}\" to integer")

    if len(word) > 2 and word.startswith("0b"):
        digits = word[2:]
        if any(char not in "01" for char in digits):
            raise AssemblySyntaxError(f"invalid binary integer literal: {word}")
        value = int(digits, 2)

    elif len(word) == 3 and word[0] == "'" and word[2] == "'":
        if word[1] == "\\":
            raise AssemblySyntaxError(f"spare '\\' in character literal: {word}")
        value = ord(word[1])

    elif len(word) == 4 and word[0] == "'" and word[1] == "\\" and word[3] == "'":
        try:
            value = ord(translate_escape(word[2]))
        except AssemblySyntaxError:
            raise AssemblySyntaxError(f"invalid escape sequence: {word}") from None

    else:
        value = _parse_plain_integer(word)

    if value > limit:
        raise ValueRangeError(word, limit)
    return value


def _parse_plain_integer(word: str) -> int:
    """Parse hexadecimal (0x), octal (leading 0) or decimal digits."""
    if word[:2].lower() == "0x":
        digits, base, allowed = word[2:], 16, HEX_DIGITS
    elif len(word) > 1 and word[0] == "0":
        digits, base, allowed = word[1:], 8, OCT_DIGITS
    else:
        digits, base, allowed = word, 10, DEC_DIGITS

    # int() would also accept signs, underscores and surrounding blanks
    if not digits or any(char not in allowed for char in digits):
        raise AssemblySyntaxError(f"integer conversion failed, value: {word}")
    return int(digits, base)


def parse_string_literal(word: str) -> Optional[list[int]]:
    """
    Expand a double-quoted string literal into character codes.

    Args:
        word: A word from a DB directive

    Returns:
        List of character codes, or None if the word is not a complete
        double-quoted string

    Raises:
        AssemblySyntaxError: If the string contains an invalid escape
    """
    if len(word) < 2 or word[0] != '"' or word[-1] != '"':
        return None

    body = word[1:-1]
    codes = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\":
            if i + 1 >= len(body):
                # The closing quote itself is escaped
                return None
            codes.append(ord(translate_escape(body[i + 1])))
            i += 2
        else:
            codes.append(ord(char))
            i += 1
    return codes


# =============================================================================
# Operand Classification
# =============================================================================

def classify_operand(word: str, limit: int = OPERAND_LIMIT) -> Optional[Operand]:
    """
    Classify an operand word.

    Resolution order, first match wins: comment, register name, F/B/K,
    literal (word starts with a digit or a single quote), label name.

    Args:
        word: The operand word (non-empty)
        limit: Largest literal value allowed

    Returns:
        The Operand, or None if the word starts a comment

    Raises:
        AssemblySyntaxError: If the word is not a valid operand
        ValueRangeError: If a literal exceeds limit
    """
    if is_comment(word):
        return None

    register = lookup_register(word)
    if register is not None:
        logger.debug(f"Register: {register.display_name}")
        return Operand.register(register)

    special = _SPECIAL_NAMES.get(word.lower())
    if special is not None:
        logger.debug(f"{special.name} operand")
        return Operand(special)

    if word[0].isdigit() or word[0] == "'":
        value = parse_integer(word, limit)
        logger.debug(f"Integer: {value}")
        return Operand.uint(value)

    if is_valid_label_name(word):
        logger.debug(f"Label reference to \"{word}\"")
        return Operand.label(word)

    raise AssemblySyntaxError(f"invalid operand value: {word}")
