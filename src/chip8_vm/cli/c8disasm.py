"""
c8disasm - CHIP-8 Disassembler Command-Line Interface
=====================================================

Usage Examples
--------------
Disassemble a ROM loaded at $200:
    $ c8disasm pong.ch8

Limit number of instructions:
    $ c8disasm pong.ch8 --count 20

Output to file with a hex dump:
    $ c8disasm pong.ch8 --hex -o pong.lst
"""

from pathlib import Path
from typing import Optional

import click

from chip8_vm import __version__
from chip8_vm.cli.errors import configure_logging, handle_cli_exception
from chip8_vm.disassembler import Chip8Disassembler
from chip8_vm.emulator.memory import MEMORY_SIZE


def parse_address(value: str) -> int:
    """
    Parse an address given as 0x-prefixed hex, $-prefixed hex or decimal.

    Raises:
        click.BadParameter: If the value is malformed or outside $000-$FFF
    """
    try:
        if value.lower().startswith("0x"):
            address = int(value, 16)
        elif value.startswith("$"):
            address = int(value[1:], 16)
        else:
            address = int(value)
    except ValueError:
        raise click.BadParameter(f"invalid address '{value}'", param_hint="--address")

    if not 0 <= address < MEMORY_SIZE:
        raise click.BadParameter(
            f"address must be 0-4095 (0x000-0xFFF), got {value}",
            param_hint="--address",
        )
    return address


def _hex_dump(data: bytes, base_address: int) -> list[str]:
    lines = ["; Hex dump:", "; " + "-" * 60]
    for i in range(0, len(data), 16):
        chunk = data[i:i + 16]
        hex_str = " ".join(f"{b:02X}" for b in chunk)
        lines.append(f"; ${base_address + i:04X}: {hex_str}")
    lines.append("; " + "-" * 60)
    lines.append("")
    return lines


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
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0x200",
    help="Load address of the first byte (hex with 0x or $ prefix, or decimal). Default: 0x200",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=0),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    show_hex: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a CHIP-8 ROM.

    INPUT_FILE is the program image to disassemble.
    """
    configure_logging(verbose)

    try:
        base_address = parse_address(address)
        data = input_file.read_bytes()

        if verbose:
            click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
            click.echo(f"Base address: ${base_address:04X}", err=True)

        output_lines = [
            f"; Disassembly of {input_file.name}",
            f"; Size: {len(data)} bytes",
            f"; Base address: ${base_address:04X}",
            "",
        ]
        if show_hex:
            output_lines.extend(_hex_dump(data, base_address))

        disasm = Chip8Disassembler()
        listing = disasm.format_listing(
            data, start_address=base_address, count=count, show_bytes=not no_bytes,
        )
        if listing:
            output_lines.append(listing)

        result = "\n".join(output_lines) + "\n"

        if output:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            click.echo(result, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
