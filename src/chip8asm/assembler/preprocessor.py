"""
CHIP-8 Assembly Preprocessor
============================

The preprocessor runs on the raw source text before any line is split
into words. It handles a single directive:

    %define NAME value...

Processing
----------
1. Every line starting with '%' is a directive. It is replaced by an empty
   line so that line numbers reported later still match the file on disk.
   Only 'define' is accepted after the '%'.
2. Each macro name is then replaced by its value everywhere in the
   remaining text. Replacement is plain text substitution, not token
   aware: a macro named SPEED also rewrites the middle of MAXSPEED.

Macros are applied one at a time in sorted name order. Each replacement
is a single pass over the text, so a value that contains its own name is
not expanded again. Definition lines are blanked before substitution
starts and therefore never rewrite themselves.
A value may not begin with '%', so an expanded line never turns into a
new directive.

Example
-------
>>> preprocess("%define PLAYER V3\\nLD PLAYER, 0\\n")
'\\nLD V3, 0\\n'
"""

import logging
from typing import Optional

from chip8asm.errors import Diagnostics, MacroError, SourceLocation
from chip8asm.assembler.lexer import next_word, is_valid_label_name


logger = logging.getLogger(__name__)


DIRECTIVE_PREFIX = "%"
DEFINE_DIRECTIVE = "define"


class Preprocessor:
    """
    Expands %define macros in CHIP-8 assembly source.

    Usage:
        preprocessor = Preprocessor("game.asm", diagnostics)
        text = preprocessor.process(source)
        print(preprocessor.macros)

    Attributes:
        filename: Source filename for error reporting
        macros: Macro table collected by the last process() call
    """

    def __init__(self, filename: str = "<input>", diagnostics: Optional[Diagnostics] = None):
        self.filename = filename
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.macros: dict[str, str] = {}

    def process(self, source: str) -> str:
        """
        Strip directives and expand macros.

        Args:
            source: Raw source text

        Returns:
            The transformed text, with the same number of lines

        Raises:
            MacroError: On an unknown directive, a bad macro name, a value
                starting with '%', or the use of a macro whose value is empty
        """
        self.macros = {}
        lines = []

        for line_number, line in enumerate(source.split("\n"), start=1):
            line = line.rstrip("\r")
            if line.startswith(DIRECTIVE_PREFIX):
                self._handle_directive(line, line_number)
                lines.append("")
            else:
                lines.append(line)

        output = "\n".join(lines)
        logger.debug(f"Preprocessed file (stage 1):\n{output}")

        for name in sorted(self.macros):
            output = self._expand(output, name, self.macros[name])

        logger.debug(f"Preprocessed file (stage 2):\n{output}")
        return output

    def _handle_directive(self, line: str, line_number: int) -> None:
        """Validate a directive line and record the macro it defines."""
        location = SourceLocation(self.filename, line_number)

        keyword, pos = next_word(line)
        if keyword[len(DIRECTIVE_PREFIX):] != DEFINE_DIRECTIVE:
            raise MacroError(
                f"invalid preprocessor directive: {line}",
                location,
                source_line=line,
            )

        name, value = self._split_definition(line[pos:])
        if not name:
            raise MacroError("missing macro name", location, source_line=line)
        if not is_valid_label_name(name):
            raise MacroError(
                f"invalid macro name: \"{name}\"",
                location,
                hint="macro names contain letters, digits and '_' and do not start with a digit",
                source_line=line,
            )
        if value.startswith(DIRECTIVE_PREFIX):
            # Expanded lines are never rescanned for directives
            raise MacroError(
                f"macro value can't start with '{DIRECTIVE_PREFIX}': \"{name}\"",
                location,
                source_line=line,
            )

        logger.debug(f"Found a macro declaration: \"{name}\", value: \"{value}\"")

        if name in self.macros:
            self.diagnostics.warn(f"macro redeclared: \"{name}\"", location)
        self.macros[name] = value

    @staticmethod
    def _split_definition(rest: str) -> tuple[str, str]:
        """Split 'NAME value...' into the name and the rest of the line."""
        rest = rest.lstrip()
        for i, char in enumerate(rest):
            if char.isspace():
                return rest[:i], rest[i:].strip()
        return rest, ""

    def _expand(self, text: str, name: str, value: str) -> str:
        """Replace every occurrence of one macro."""
        if name not in text:
            return text
        if not value:
            raise MacroError(
                f"invalid use of empty macro \"{name}\"",
                SourceLocation(self.filename, _line_of(text, text.find(name))),
            )
        logger.debug(f"Replacing macro \"{name}\" with \"{value}\"")
        return text.replace(name, value)


def _line_of(text: str, index: int) -> int:
    """Return the 1-based line number of a character index."""
    return text.count("\n", 0, index) + 1


def preprocess(
    source: str,
    filename: str = "<input>",
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """
    Convenience function to preprocess source text.

    Args:
        source: Raw source text
        filename: Source filename for error messages
        diagnostics: Collector for warnings (a private one is used if omitted)

    Returns:
        The preprocessed text
    """
    return Preprocessor(filename, diagnostics).process(source)
