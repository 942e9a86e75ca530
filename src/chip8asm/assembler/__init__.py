"""
CHIP-8 Assembler
================

This package converts CHIP-8 assembly source into a flat binary image
loaded at address 0x200.

Main Components
---------------
- **Assembler**: Main assembler class that runs the pipeline
- **Preprocessor**: Strips %define directives and expands macros
- **lexer**: Splits source lines into words
- **operands**: Classifies operand words and parses literals
- **Parser**: Builds statements and the label table
- **CodeGenerator**: Encodes statements and resolves labels

Assembly Process
----------------
1. **Preprocessing**: directive lines are blanked (line numbers are kept)
   and macro names are replaced by their values.

2. **Parsing** (first pass):
   - Split each line into words
   - Record label declarations at the current byte offset
   - Produce Instruction, ByteData and WordData statements

3. **Code Generation** (second pass):
   - Validate operand counts and kinds per mnemonic
   - Resolve labels as load address + offset
   - Emit big-endian words and raw data

Example Usage
-------------
>>> from chip8asm.assembler import Assembler
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... %define PLAYER V1
... loop:
...     LD PLAYER, 0x05
...     ADD PLAYER, 1
...     JP loop
... ''')
>>> code.hex()
'610571011200'
"""

from chip8asm.assembler.assembler import Assembler, assemble, assemble_file, format_hex_dump
from chip8asm.assembler.preprocessor import Preprocessor, preprocess
from chip8asm.assembler.parser import (
    Parser,
    ParseResult,
    Statement,
    Instruction,
    ByteData,
    WordData,
    parse_source,
)
from chip8asm.assembler.codegen import CodeGenerator
from chip8asm.assembler.operands import Operand, OperandKind, classify_operand, parse_integer
from chip8asm.assembler.opcodes import (
    LOAD_ADDRESS,
    Mnemonic,
    Register,
    lookup_mnemonic,
    lookup_register,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    "format_hex_dump",
    # Preprocessor
    "Preprocessor",
    "preprocess",
    # Parser
    "Parser",
    "ParseResult",
    "Statement",
    "Instruction",
    "ByteData",
    "WordData",
    "parse_source",
    # Code generator
    "CodeGenerator",
    # Operands
    "Operand",
    "OperandKind",
    "classify_operand",
    "parse_integer",
    # Instruction set
    "LOAD_ADDRESS",
    "Mnemonic",
    "Register",
    "lookup_mnemonic",
    "lookup_register",
]
