"""
c8disasm - CHIP-8 Disassembler Command-Line Interface
=====================================================

Usage Examples
--------------
Disassemble a program:
    $ c8disasm game.ch8

With base address:
    $ c8disasm dump.bin --address 0x300

Limit number of instructions:
    $ c8disasm game.ch8 --count 20

Output to file:
    $ c8disasm game.ch8 -o listing.asm

Copyright (c) 2021-2026 chip8asm contributors
"""

import sys
from pathlib import Path
from typing import Optional

import click

from chip8asm import __version__
from chip8asm.assembler.opcodes import LOAD_ADDRESS
from chip8asm.cli.errors import ExitCode, handle_cli_exception
from chip8asm.disassembler import Chip8Disassembler


def parse_address(text: str) -> int:
    """Parse a hex (0x prefix) or decimal address."""
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default=f"0x{LOAD_ADDRESS:X}",
    help="Load address of the first byte (hex with 0x prefix or decimal). Default: 0x200",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.version_option(version=__version__, prog_name="c8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
) -> None:
    """
    Disassemble a CHIP-8 binary image.

    INPUT_FILE is the binary file (.ch8) to disassemble.

    \b
    Examples:
        c8disasm game.ch8
        c8disasm game.ch8 --count 20 -o listing.asm
    """
    try:
        base_address = parse_address(address)
    except ValueError:
        click.echo(f"Error: Invalid address '{address}'", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if not 0 <= base_address <= 0xFFF:
        click.echo("Error: Address must be 0-4095 (0x000-0xFFF)", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        data = input_file.read_bytes()

        lines = [
            f"; Disassembly of {input_file.name}",
            f"; Size: {len(data)} bytes",
            "",
        ]
        disasm = Chip8Disassembler()
        lines.extend(str(instr) for instr in disasm.disassemble(data, base_address, count))
        text = "\n".join(lines) + "\n"

        if output is not None:
            output.write_text(text)
        else:
            click.echo(text, nl=False)

    except Exception as e:
        handle_cli_exception(e)


if __name__ == "__main__":
    main()
