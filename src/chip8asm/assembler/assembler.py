"""
CHIP-8 Assembler - Main Interface
=================================

This module provides the Assembler class, the primary interface for
assembling CHIP-8 source code. It runs the pipeline stages in order:

1. Preprocessor - strip %define directives, expand macros
2. Parser       - build statements and the label table (first pass)
3. Code generator - encode statements, resolve labels (second pass)

Generation never starts before the parser has finished, so a label may be
used before it is declared.

Example Usage
-------------
>>> from chip8asm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... start:
...     CLS
...     JP start
... ''')
>>> code.hex()
'00e01200'
>>> asm.get_symbols()
{'start': 0}
"""

import logging
from pathlib import Path
from typing import Optional

from chip8asm.errors import AssemblyWarning, Diagnostics
from chip8asm.assembler.codegen import CodeGenerator
from chip8asm.assembler.opcodes import LOAD_ADDRESS
from chip8asm.assembler.parser import AnyStatement, Parser
from chip8asm.assembler.preprocessor import Preprocessor


logger = logging.getLogger(__name__)


# Bytes per line in hex dumps
HEX_DUMP_WIDTH = 16


def format_hex_dump(code: bytes, width: int = HEX_DUMP_WIDTH) -> str:
    """
    Render bytes as space-separated two-digit hex, `width` bytes per line.

    Example:
        >>> format_hex_dump(bytes([0x00, 0xE0, 0x00, 0xEE]))
        '00 e0 00 ee\\n'
    """
    lines = []
    for start in range(0, len(code), width):
        chunk = code[start:start + width]
        lines.append(" ".join(f"{byte:02x}" for byte in chunk))
    return "".join(f"{line}\n" for line in lines)


class Assembler:
    """
    Main CHIP-8 assembler class.

    One Assembler instance can assemble several sources in turn; each call
    starts from a clean state and replaces the results of the previous one.

    Attributes:
        load_address: Address the program is loaded at (default 0x200)
    """

    def __init__(self, load_address: int = LOAD_ADDRESS):
        """
        Initialize the assembler.

        Args:
            load_address: Address added to label offsets when labels are
                used as jump, call or load targets
        """
        self.load_address = load_address
        self._diagnostics = Diagnostics()
        self._code = b""
        self._symbols: dict[str, int] = {}
        self._statements: list[AnyStatement] = []
        self._macros: dict[str, str] = {}

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The binary image

        Raises:
            AssemblerError: If assembly fails; no partial image is kept
        """
        self._diagnostics = Diagnostics()
        self._code = b""
        self._symbols = {}
        self._statements = []
        self._macros = {}

        logger.info(f"Assembling {filename}")

        preprocessor = Preprocessor(filename, self._diagnostics)
        text = preprocessor.process(source)

        parser = Parser(filename, self._diagnostics)
        result = parser.parse(text)

        codegen = CodeGenerator(self._diagnostics, load_address=self.load_address)
        code = codegen.generate(result.statements, result.labels)

        self._macros = dict(preprocessor.macros)
        self._statements = result.statements
        self._symbols = dict(result.labels)
        self._code = code

        if self._diagnostics.has_warnings():
            logger.info(f"Assembly finished with {self._diagnostics.warning_count()} warning(s)")
        return code

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to assembly source file

        Returns:
            The binary image

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        logger.debug(f"Reading file: {filepath}")
        source = filepath.read_text()
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Results
    # =========================================================================

    def get_code(self) -> bytes:
        """Return the binary image of the last assembly."""
        return self._code

    def get_symbols(self) -> dict[str, int]:
        """
        Return the label table of the last assembly.

        Values are byte offsets from the start of the program; add
        load_address to get the runtime address.
        """
        return dict(self._symbols)

    def get_macros(self) -> dict[str, str]:
        """Return the macros defined by the last source."""
        return dict(self._macros)

    def get_statements(self) -> list[AnyStatement]:
        """Return the parsed statements of the last assembly."""
        return list(self._statements)

    def get_warnings(self) -> list[AssemblyWarning]:
        """Return the warnings of the last assembly."""
        return list(self._diagnostics.warnings)

    @property
    def diagnostics(self) -> Diagnostics:
        """Warning collector of the last assembly."""
        return self._diagnostics

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_hex_dump(self) -> str:
        """Return the binary image formatted as a hex dump."""
        return format_hex_dump(self._code)

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write the raw binary image.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_bytes(self._code)
        logger.info(f"Wrote {len(self._code)} bytes to {filepath}")

    def write_hex(self, filepath: str | Path) -> None:
        """
        Write the binary image as a hex dump text file.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_text(self.get_hex_dump())
        logger.info(f"Wrote hex dump of {len(self._code)} bytes to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        filename: Virtual filename for errors

    Returns:
        The binary image

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Args:
        filepath: Path to source file

    Returns:
        The binary image

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_file(filepath)
