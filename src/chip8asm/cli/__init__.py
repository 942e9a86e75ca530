"""
chip8asm Command-Line Interface
===============================

This package provides the command-line tools:

- **c8asm**: CHIP-8 assembler
- **c8disasm**: CHIP-8 disassembler

Each tool is a Click application with built-in help, `--version`, and
uniform exit codes (see `errors.ExitCode`).
"""

__all__ = ["c8asm", "c8disasm"]
