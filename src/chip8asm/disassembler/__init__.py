"""
CHIP-8 Disassembler Module
==========================

Decodes CHIP-8 machine code into assembly text. Used to inspect assembled
programs and to check that encodings can be read back.

Usage:
    from chip8asm.disassembler import Chip8Disassembler

    disasm = Chip8Disassembler()
    for instr in disasm.disassemble(code):
        print(instr)
"""

from .chip8 import Chip8Disassembler, DisassembledInstruction

__all__ = [
    "Chip8Disassembler",
    "DisassembledInstruction",
]
