"""
c8run CLI Tests
===============

Tests for the headless runner command and the shared CLI error handling.
"""

import click
import pytest
from click.testing import CliRunner

from chip8_vm.cli.c8run import main
from chip8_vm.cli.errors import ExitCode, handle_cli_exception
from chip8_vm.errors import LoadTooLarge


def program(*words: int) -> bytes:
    return b"".join(w.to_bytes(2, "big") for w in words)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def digit_rom(tmp_path):
    """ROM drawing glyph 8 at the top-left corner, then looping."""
    rom = tmp_path / "digit.ch8"
    rom.write_bytes(program(0x6008, 0xF029, 0x6100, 0xD115, 0x1208))
    return rom


class TestRunCommand:
    """Tests for the c8run CLI tool."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Run a CHIP-8 ROM headless" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "c8run" in result.output

    def test_prints_display(self, runner, digit_rom):
        result = runner.invoke(main, [str(digit_rom), "--frames", "1"])
        assert result.exit_code == 0
        assert "####." + "." * 59 in result.output

    def test_registers(self, runner, digit_rom):
        result = runner.invoke(main, [str(digit_rom), "-f", "1", "--registers"])
        assert result.exit_code == 0
        assert "V0=08" in result.output
        assert "PC=$0208" in result.output

    def test_screenshot(self, runner, digit_rom, tmp_path):
        png = tmp_path / "shot.png"
        result = runner.invoke(
            main, [str(digit_rom), "-f", "1", "--screenshot", str(png), "--scale", "2"]
        )
        assert result.exit_code == 0
        assert png.read_bytes()[:4] == b"\x89PNG"

    def test_held_key(self, runner, tmp_path):
        rom = tmp_path / "key.ch8"
        # V1 is loaded only when key A is held
        rom.write_bytes(program(0x600A, 0xE09E, 0x1208, 0x6101, 0x1208))
        result = runner.invoke(main, [str(rom), "-f", "1", "--key", "a", "-r"])
        assert result.exit_code == 0
        assert "V1=01" in result.output

    def test_held_key_answers_key_wait(self, runner, tmp_path):
        rom = tmp_path / "title.ch8"
        rom.write_bytes(program(0xF30A, 0x1202))
        result = runner.invoke(main, [str(rom), "--key", "5", "-f", "3", "-r"])
        assert result.exit_code == 0
        assert "V3=05" in result.output
        assert "PC=$0202" in result.output
        assert "Waiting for a key press" not in result.output

    def test_held_key_answers_repeated_waits(self, runner, tmp_path):
        rom = tmp_path / "menu.ch8"
        # Two waits in a row, counting answered waits in V0
        rom.write_bytes(program(0xF30A, 0x7001, 0xF40A, 0x7001, 0x1208))
        result = runner.invoke(main, [str(rom), "--key", "e", "-f", "5", "-r"])
        assert result.exit_code == 0
        assert "V0=02" in result.output
        assert "V4=0E" in result.output

    def test_awaiting_key_reported(self, runner, tmp_path):
        rom = tmp_path / "wait.ch8"
        rom.write_bytes(program(0xF00A))
        result = runner.invoke(main, [str(rom), "-f", "2"])
        assert result.exit_code == 0
        assert "Waiting for a key press" in result.output

    def test_bad_key(self, runner, digit_rom):
        result = runner.invoke(main, [str(digit_rom), "--key", "G"])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "Error" in result.output

    def test_fatal_error(self, runner, tmp_path):
        rom = tmp_path / "bad.ch8"
        rom.write_bytes(program(0x00EE))
        result = runner.invoke(main, [str(rom)])
        assert result.exit_code == ExitCode.VM_ERROR
        assert "stack underflow" in result.output

    def test_rom_too_large(self, runner, tmp_path):
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(4000))
        result = runner.invoke(main, [str(rom)])
        assert result.exit_code == ExitCode.VM_ERROR

    def test_missing_rom(self, runner, tmp_path):
        result = runner.invoke(main, [str(tmp_path / "none.ch8")])
        assert result.exit_code == 2

    def test_cycles_per_frame(self, runner, tmp_path):
        rom = tmp_path / "count.ch8"
        rom.write_bytes(program(0x7001, 0x1200))
        result = runner.invoke(
            main, [str(rom), "-f", "2", "--cycles-per-frame", "4", "-r"]
        )
        assert result.exit_code == 0
        assert "V0=04" in result.output


class TestHandleCliException:
    """Exception to exit code mapping."""

    @pytest.mark.parametrize("error,code", [
        (LoadTooLarge(5000, 3584), ExitCode.VM_ERROR),
        (click.BadParameter("bad"), ExitCode.INVALID_ARGS),
        (FileNotFoundError("gone"), ExitCode.INVALID_ARGS),
        (PermissionError("denied"), ExitCode.INVALID_ARGS),
        (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
    ])
    def test_exit_codes(self, error, code, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(error)
        assert exc_info.value.code == code

    def test_internal_error_message(self, capsys):
        with pytest.raises(SystemExit):
            handle_cli_exception(RuntimeError("boom"))
        assert "Internal error: boom" in capsys.readouterr().err
