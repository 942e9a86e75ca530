"""
c8asm - CHIP-8 Assembler Command-Line Interface
===============================================

Usage Examples
--------------
Basic assembly (writes game.ch8):
    $ c8asm game.asm

With output file:
    $ c8asm game.asm -o out.ch8

Hex dump to stdout:
    $ c8asm game.asm -o -

Hex dump file:
    $ c8asm game.asm --hex -o game.hex

Verbose mode:
    $ c8asm -V game.asm

Copyright (c) 2021-2026 chip8asm contributors
"""

import logging
from pathlib import Path
from typing import Optional

import click

from chip8asm import __version__
from chip8asm.assembler import Assembler
from chip8asm.cli.errors import ExitCode, handle_cli_exception, setup_logging


logger = logging.getLogger(__name__)


STDOUT_PATH = "-"

LICENSE_TEXT = """\
BSD 2-Clause License

Copyright (c) 2021, chip8asm contributors
All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this
   list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
   this list of conditions and the following disclaimer in the documentation
   and/or other materials provided with the distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""


def _print_license(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(LICENSE_TEXT, nl=False)
    ctx.exit(ExitCode.SUCCESS)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, allow_dash=True),
    help="Output file (default: input.ch8). Use '-' for a hex dump on stdout",
)
@click.option(
    "--hex", "hex_output",
    is_flag=True,
    help="Write a hex dump text file instead of a raw binary",
)
@click.option(
    "-q", "--quiet", "verbosity",
    flag_value="quiet",
    default=True,
    help="Only report warnings and errors (default)",
)
@click.option(
    "-V", "--verbose", "verbosity",
    flag_value="verbose",
    help="Report assembly progress",
)
@click.option(
    "-d", "--debug", "verbosity",
    flag_value="debug",
    help="Print debug messages",
)
@click.option(
    "-l", "--license",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_print_license,
    help="Print license and exit",
)
@click.version_option(version=__version__, prog_name="c8asm")
def main(
    input_file: Path,
    output: Optional[str],
    hex_output: bool,
    verbosity: str,
) -> None:
    """
    Assemble CHIP-8 source code.

    INPUT_FILE is the assembly source file (.asm) to assemble.

    The output is a flat binary image that CHIP-8 interpreters load at
    address 0x200.

    \b
    Examples:
        c8asm game.asm              # Outputs game.ch8
        c8asm game.asm -o out.ch8   # Specify output file
        c8asm game.asm -o -         # Hex dump to stdout
    """
    setup_logging(verbosity)

    asm = Assembler()

    try:
        asm.assemble_file(input_file)

        if output == STDOUT_PATH:
            click.echo(asm.get_hex_dump(), nl=False)
            return

        if output is not None:
            output_file = Path(output)
        elif hex_output:
            output_file = input_file.with_suffix(".hex")
        else:
            output_file = input_file.with_suffix(".ch8")

        if hex_output:
            asm.write_hex(output_file)
        else:
            asm.write_binary(output_file)

        logger.info(
            f"Assembly complete: {len(asm.get_code())} bytes, "
            f"{len(asm.get_symbols())} labels, {len(asm.get_macros())} macros"
        )

    except Exception as e:
        handle_cli_exception(e, verbose=verbosity == "debug")


if __name__ == "__main__":
    main()
