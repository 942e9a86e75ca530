"""
CHIP-8 Assembly Word Splitter
=============================

CHIP-8 assembly is line oriented: a line is a label declaration, an
instruction with up to three operands, or a data directive. The lexer
therefore does not produce typed tokens; it splits a line into words and
leaves classification to the operand classifier and the parser.

Word Rules
----------
- Words are separated by whitespace and commas.
- A quoted span ('...' or "...") is part of a single word even when it
  contains separators. A quote preceded by a backslash does not open or
  close a span, unless that backslash is itself escaped. The closing quote
  ends the word.
- A word starting with ';' is a comment; the parser stops reading the line
  there.

Example
-------
>>> list(split_words('db "Hi, there", 0 ; greeting'))
['db', '"Hi, there"', '0', ';', 'greeting']
"""

import string
from typing import Iterator


# Characters that separate words
SEPARATORS = frozenset(" \t\n\r\f\v,")

# Characters that open a quoted span
QUOTES = frozenset("'\"")

# Characters allowed in label and macro names
IDENT_CHARS = frozenset(string.ascii_letters + string.digits + "_")

COMMENT_CHAR = ";"


def next_word(line: str, pos: int = 0) -> tuple[str, int]:
    """
    Extract the next word of a line.

    Args:
        line: The source line
        pos: Cursor position to start reading from

    Returns:
        (word, new_pos) where new_pos is just past the consumed word.
        The word is empty when the end of the line is reached.
    """
    length = len(line)

    while pos < length and line[pos] in SEPARATORS:
        pos += 1

    start = pos
    quote = None
    escaped = False

    while pos < length:
        char = line[pos]

        if char in QUOTES and not escaped:
            if quote is None:
                quote = char
            elif char == quote:
                # The closing quote terminates the word
                pos += 1
                break

        if quote is None and char in SEPARATORS:
            break
        # A backslash escapes the next character unless it is escaped itself
        escaped = char == "\\" and not escaped
        pos += 1

    return line[start:pos], pos


def split_words(line: str) -> Iterator[str]:
    """
    Yield every word of a line in order.

    Comments are not removed; callers decide where to stop.
    """
    pos = 0
    while True:
        word, pos = next_word(line, pos)
        if not word:
            return
        yield word


def is_comment(word: str) -> bool:
    """Check if a word starts a comment."""
    return word.startswith(COMMENT_CHAR)


def is_valid_label_name(name: str) -> bool:
    """
    Check if a string is a valid label (or macro) name.

    A name is non-empty, does not start with a digit, and contains only
    letters, digits and underscores.
    """
    if not name or name[0].isdigit():
        return False
    return all(char in IDENT_CHARS for char in name)


def is_label_declaration(word: str) -> bool:
    """Check if a word declares a label ('name:')."""
    return word.endswith(":") and is_valid_label_name(word[:-1])
