"""
c8run - Headless CHIP-8 Runner
==============================

This module implements the command-line interface for running a CHIP-8
ROM without a live display. The ROM is loaded into a fresh emulator,
optionally with some keypad keys held, run for a fixed number of frames,
and the resulting display is printed as text.

Timing is deterministic: each frame is one 60 Hz timer tick followed by
a fixed number of instructions, so the same ROM, seed and options always
produce the same screen.

Usage Examples
--------------
Run for two emulated seconds:
    $ c8run maze.ch8 --frames 120

Hold keypad keys 5 and A (each also answers a key wait):
    $ c8run pong.ch8 --key 5 --key A

Save a screenshot and dump registers:
    $ c8run ibm.ch8 --screenshot ibm.png --scale 10 --registers
"""

import logging
from pathlib import Path
from typing import Optional

import click

from chip8_vm import __version__
from chip8_vm.cli.errors import configure_logging, handle_cli_exception
from chip8_vm.emulator import Emulator, EmulatorConfig

logger = logging.getLogger(__name__)


def _parse_key(value: str) -> int:
    try:
        index = int(value, 16)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a hex key (0-F)", param_hint="--key")
    if not 0 <= index <= 0xF:
        raise click.BadParameter(f"key {value} out of range (0-F)", param_hint="--key")
    return index


def _run_with_held_keys(emu: Emulator, frames: int, held: list[int]) -> int:
    """
    Run frames one at a time with keys held.

    A key held since before a key wait began is not a fresh press, so
    whenever the VM is waiting the held keys are released and pressed
    again before the next frame.
    """
    for index in held:
        emu.set_key(index, True)

    steps = 0
    for _ in range(frames):
        if held and emu.awaiting_key and not emu.cpu.key_ready:
            for index in held:
                emu.set_key(index, False)
                emu.set_key(index, True)
        steps += emu.run_frames(1)
    return steps


def _format_registers(emu: Emulator) -> str:
    regs = emu.registers
    v_line = " ".join(f"V{r:X}={regs[f'v{r:x}']:02X}" for r in range(16))
    return (
        f"{v_line}\n"
        f"I=${regs['i']:04X} PC=${regs['pc']:04X} SP={regs['sp']} "
        f"DT={regs['dt']} ST={regs['st']}"
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-f", "--frames",
    type=click.IntRange(min=0),
    default=60,
    show_default=True,
    help="Number of 60 Hz frames to run",
)
@click.option(
    "--cycles-per-frame",
    type=click.IntRange(min=1),
    default=None,
    help="Instructions executed per frame (default: 10, or CHIP8_CYCLES_PER_FRAME)",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the RND instruction (default: CHIP8_SEED, else random)",
)
@click.option(
    "-k", "--key",
    "keys",
    multiple=True,
    help="Hex keypad key (0-F) to hold for the whole run, re-pressed whenever the ROM waits for a key; repeatable",
)
@click.option(
    "-s", "--screenshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the final display to a PNG file",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=8,
    show_default=True,
    help="Pixel scale for --screenshot",
)
@click.option(
    "-r", "--registers",
    "show_registers",
    is_flag=True,
    help="Print register state after the run",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8run")
def main(
    rom: Path,
    frames: int,
    cycles_per_frame: Optional[int],
    seed: Optional[int],
    keys: tuple[str, ...],
    screenshot: Optional[Path],
    scale: int,
    show_registers: bool,
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 ROM headless and print the display.

    ROM is the program image to load at $200.

    Examples:

        # Run one emulated second and show the screen
        c8run maze.ch8

        # Hold key 5 and save a screenshot
        c8run pong.ch8 --key 5 --screenshot pong.png
    """
    configure_logging(verbose)

    try:
        held = [_parse_key(k) for k in keys]

        env_config = EmulatorConfig.from_env()
        config = EmulatorConfig(
            cycles_per_frame=cycles_per_frame or env_config.cycles_per_frame,
            timer_hz=env_config.timer_hz,
            seed=seed if seed is not None else env_config.seed,
        )
        logger.debug(f"Using {config}")

        emu = Emulator(config)
        emu.load_rom(rom)

        steps = _run_with_held_keys(emu, frames, held)

        click.echo(emu.display_text)
        if show_registers:
            click.echo(_format_registers(emu))
        if emu.awaiting_key:
            click.echo("Waiting for a key press", err=True)

        if screenshot:
            screenshot.write_bytes(emu.render_display(scale=scale))
            if verbose:
                click.echo(f"Screenshot written to: {screenshot}", err=True)

        if verbose:
            click.echo(f"Frames: {frames}, instructions: {steps}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
