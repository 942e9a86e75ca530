"""
chip8asm - Assembler Toolchain for the CHIP-8 Virtual Machine
=============================================================

This package translates CHIP-8 assembly source into flat binary images
that CHIP-8 interpreters load at address 0x200.

Main Components
---------------
- **assembler**: CHIP-8 assembler (c8asm)
    Preprocesses, parses and encodes assembly source (.asm) into a
    binary image (.ch8)

- **disassembler**: CHIP-8 disassembler (c8disasm)
    Decodes binary images back into assembly text

Quick Start
-----------
Assemble a program:
    >>> from chip8asm import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("game.asm")
    >>> asm.write_binary("game.ch8")

Or use the command-line tools:
    $ c8asm game.asm -o game.ch8
    $ c8asm game.asm -o -          # hex dump to stdout
    $ c8disasm game.ch8

Source Syntax
-------------
    %define SPEED 2       ; text macro
    start:                ; label
        LD V0, SPEED
        JP start
    sprite:
        db 0xF0, 0x90, 0xF0
        dw 0x1234
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8asm.assembler import Assembler, assemble, assemble_file
from chip8asm.disassembler import Chip8Disassembler
from chip8asm.errors import (
    Chip8Error,
    AssemblerError,
    AssemblySyntaxError,
    MacroError,
    ValueRangeError,
    OperandTypeError,
    OperandCountError,
    SymbolError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    AssemblyWarning,
    Diagnostics,
    SourceLocation,
)

__all__ = [
    "__version__",
    "Assembler",
    "assemble",
    "assemble_file",
    "Chip8Disassembler",
    "Chip8Error",
    "AssemblerError",
    "AssemblySyntaxError",
    "MacroError",
    "ValueRangeError",
    "OperandTypeError",
    "OperandCountError",
    "SymbolError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "AssemblyWarning",
    "Diagnostics",
    "SourceLocation",
]
