"""
CLI Unit Tests
==============

This module contains tests for the frugen command-line tool and its
configuration.

Test Categories
---------------
1. Config: environment variable defaults
2. Create: building images from options and templates
3. Info: human-readable and JSON output
4. Validate: reporting format violations
5. Errors: exit codes
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from frugen import __version__
from frugen.cli.errors import ExitCode
from frugen.cli.frugen import main
from frugen.config import FruConfig
from frugen.fru import (
    ChassisType,
    EncodingPolicy,
    FieldType,
    FieldValue,
    Language,
    parse_fru_file,
)


SAMPLE_UUID = "01234567-89AB-CDEF-0123-456789ABCDEF"

BOARD_OPTIONS = [
    "--board-mfg", "ACME",
    "--board-prodname", "Widget",
    "--board-serial", "001",
    "--board-part", "PN1",
    "--board-date", "01/01/2021 00:00:00",
]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# =============================================================================
# Configuration Tests
# =============================================================================

class TestFruConfig:
    """Tests for FruConfig."""

    def test_defaults(self):
        config = FruConfig()
        assert config.policy == EncodingPolicy.AUTO
        assert config.language == Language.ENGLISH
        assert config.chassis_type == ChassisType.UNKNOWN

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FRUGEN_ASCII", "yes")
        monkeypatch.setenv("FRUGEN_LANGUAGE", "0")
        monkeypatch.setenv("FRUGEN_CHASSIS_TYPE", "0x17")
        config = FruConfig.from_env()
        assert config.policy == EncodingPolicy.TEXT
        assert config.language == 0
        assert config.chassis_type == ChassisType.RACK_MOUNT

    def test_invalid_env_ignored(self, monkeypatch):
        monkeypatch.setenv("FRUGEN_ASCII", "nope")
        monkeypatch.setenv("FRUGEN_LANGUAGE", "english")
        monkeypatch.delenv("FRUGEN_CHASSIS_TYPE", raising=False)
        assert FruConfig.from_env() == FruConfig()


# =============================================================================
# Create Command Tests
# =============================================================================

class TestCreate:
    """Tests for the create command."""

    def test_version(self, runner: CliRunner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_board(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", *BOARD_OPTIONS, "fru.bin"])
            assert result.exit_code == 0, result.output
            assert "Created fru.bin (40 bytes)" in result.output

            parser = parse_fru_file("fru.bin")
            assert parser.board.manufacturer == FieldValue("ACME", FieldType.SIXBIT_ASCII)
            assert parser.board.serial == FieldValue("001", FieldType.BCDPLUS)
            assert parser.board.mfg_date.year == 2021
            assert parser.chassis is None
            assert parser.product is None

    def test_default_date_is_now(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", "--board-mfg", "ACME", "fru.bin"])
            assert result.exit_code == 0, result.output
            assert parse_fru_file("fru.bin").board.mfg_date is not None

    def test_date_unspecified(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", "-m", "ACME", "-u", "fru.bin"])
            assert result.exit_code == 0, result.output
            assert parse_fru_file("fru.bin").board.mfg_date is None

    def test_date_conflict(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", *BOARD_OPTIONS, "-u", "fru.bin"])
            assert result.exit_code == ExitCode.INVALID_ARGS
            assert not Path("fru.bin").exists()

    def test_all_areas(self, runner: CliRunner):
        args = [
            "create",
            "-t", "17",
            "-a", "CH-1000",
            "-c", "CS123",
            "-C", "binary:0102",
            *BOARD_OPTIONS,
            "-B", "rev A",
            "-N", "Gadget",
            "-G", "ACME",
            "-M", "G-1",
            "-V", "1.0",
            "-S", "PS1",
            "-A", "text:1234",
            "-P", "custom one",
            "-P", "custom two",
            "-U", SAMPLE_UUID,
            "fru.bin",
        ]
        with runner.isolated_filesystem():
            result = runner.invoke(main, args)
            assert result.exit_code == 0, result.output

            parser = parse_fru_file("fru.bin")
            assert parser.chassis.chassis_type == ChassisType.RACK_MOUNT
            assert parser.chassis.custom == [FieldValue(b"\x01\x02", FieldType.BINARY)]
            assert parser.board.custom[0].value == "rev A"
            assert parser.product.asset_tag == FieldValue("1234", FieldType.TEXT)
            assert [c.value for c in parser.product.custom] == ["custom one", "custom two"]
            assert parser.get_uuid() == SAMPLE_UUID.lower()

    def test_ascii_flag(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", "--ascii", *BOARD_OPTIONS, "fru.bin"])
            assert result.exit_code == 0, result.output
            board = parse_fru_file("fru.bin").board
            assert board.manufacturer.type == FieldType.TEXT
            assert board.serial.type == FieldType.TEXT

    def test_ascii_from_env(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(
                main, ["create", *BOARD_OPTIONS, "fru.bin"], env={"FRUGEN_ASCII": "1"}
            )
            assert result.exit_code == 0, result.output
            assert parse_fru_file("fru.bin").board.serial.type == FieldType.TEXT

    def test_colon_without_prefix_is_text(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", "-m", "Vendor: ACME", "-u", "fru.bin"])
            assert result.exit_code == 0, result.output
            assert parse_fru_file("fru.bin").board.manufacturer.value == "Vendor: ACME"

    def test_template(self, runner: CliRunner):
        template = {
            "board": {"mfg": "ACME", "pname": "Widget", "date": None},
            "product": {"mfg": "ACME", "serial": "PS1"},
        }
        with runner.isolated_filesystem():
            Path("fru.json").write_text(json.dumps(template))
            result = runner.invoke(
                main, ["create", "--json", "fru.json", "--prod-serial", "PS2", "fru.bin"]
            )
            assert result.exit_code == 0, result.output

            parser = parse_fru_file("fru.bin")
            assert parser.board.mfg_date is None
            assert parser.product.manufacturer.value == "ACME"
            assert parser.product.serial.value == "PS2"

    def test_template_custom_fields_extended(self, runner: CliRunner):
        template = {"chassis": {"type": 17, "custom": ["first"]}}
        with runner.isolated_filesystem():
            Path("fru.json").write_text(json.dumps(template))
            result = runner.invoke(
                main, ["create", "-j", "fru.json", "-C", "second", "fru.bin"]
            )
            assert result.exit_code == 0, result.output
            chassis = parse_fru_file("fru.bin").chassis
            assert chassis.chassis_type == ChassisType.MAIN_SERVER
            assert [c.value for c in chassis.custom] == ["first", "second"]


# =============================================================================
# Info Command Tests
# =============================================================================

class TestInfo:
    """Tests for the info command."""

    def test_human_readable(self, runner: CliRunner):
        with runner.isolated_filesystem():
            runner.invoke(main, ["create", "-t", "17", *BOARD_OPTIONS, "-U", SAMPLE_UUID, "fru.bin"])
            result = runner.invoke(main, ["info", "fru.bin"])
            assert result.exit_code == 0, result.output
            assert "Rack Mount" in result.output
            assert "ACME" in result.output
            assert "01/01/2021 00:00:00" in result.output
            assert "001  [bcdplus]" in result.output
            assert f"System UUID:   {SAMPLE_UUID.lower()}" in result.output

    def test_json(self, runner: CliRunner):
        with runner.isolated_filesystem():
            runner.invoke(main, ["create", *BOARD_OPTIONS, "fru.bin"])
            result = runner.invoke(main, ["info", "--json", "fru.bin"])
            assert result.exit_code == 0, result.output
            doc = json.loads(result.output)
            assert doc["board"]["mfg"] == {"type": "6bitascii", "data": "ACME"}
            assert doc["board"]["date"] == "01/01/2021 00:00:00"

    def test_json_round_trip(self, runner: CliRunner):
        """Test that info --json output recreates the same image."""
        with runner.isolated_filesystem():
            runner.invoke(main, ["create", "-a", "CH-1", *BOARD_OPTIONS, "-U", SAMPLE_UUID, "a.bin"])
            dumped = runner.invoke(main, ["info", "--json", "a.bin"]).output
            Path("a.json").write_text(dumped)
            result = runner.invoke(main, ["create", "--json", "a.json", "b.bin"])
            assert result.exit_code == 0, result.output
            assert Path("a.bin").read_bytes() == Path("b.bin").read_bytes()

    def test_corrupt_file(self, runner: CliRunner):
        with runner.isolated_filesystem():
            Path("bad.bin").write_bytes(bytes(8))
            result = runner.invoke(main, ["info", "bad.bin"])
            assert result.exit_code == ExitCode.BUILD_ERROR

    def test_missing_file(self, runner: CliRunner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["info", "missing.bin"])
            assert result.exit_code == 2


# =============================================================================
# Validate Command Tests
# =============================================================================

class TestValidate:
    """Tests for the validate command."""

    def test_valid(self, runner: CliRunner):
        with runner.isolated_filesystem():
            runner.invoke(main, ["create", *BOARD_OPTIONS, "-U", SAMPLE_UUID, "fru.bin"])
            result = runner.invoke(main, ["validate", "fru.bin"])
            assert result.exit_code == 0, result.output
            assert "Validation PASSED" in result.output

    def test_verbose(self, runner: CliRunner):
        with runner.isolated_filesystem():
            runner.invoke(main, ["create", *BOARD_OPTIONS, "fru.bin"])
            result = runner.invoke(main, ["validate", "-v", "fru.bin"])
            assert result.exit_code == 0, result.output
            assert "Board Info Area: OK (32 bytes)" in result.output

    def test_bad_area_checksum(self, runner: CliRunner):
        with runner.isolated_filesystem():
            runner.invoke(main, ["create", *BOARD_OPTIONS, "fru.bin"])
            data = bytearray(Path("fru.bin").read_bytes())
            data[-1] ^= 0x01
            Path("fru.bin").write_bytes(bytes(data))

            result = runner.invoke(main, ["validate", "fru.bin"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "Validation FAILED" in result.output
            assert "ERROR: Board Info Area" in result.output

    def test_bad_header(self, runner: CliRunner):
        with runner.isolated_filesystem():
            Path("bad.bin").write_bytes(b"\x01\x00\x00\x00\x00\x00\x00\x00")
            result = runner.invoke(main, ["validate", "bad.bin"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "ERROR: Header" in result.output


# =============================================================================
# Exit Code Tests
# =============================================================================

class TestExitCodes:
    """Tests for error exit codes."""

    @pytest.mark.parametrize("args", [
        ["-m", "x" * 64],
        ["-U", "not-a-uuid"],
        ["-t", "0"],
        ["-s", "bcdplus:12AB"],
    ])
    def test_invalid_values(self, runner: CliRunner, args):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", *args, "fru.bin"])
            assert result.exit_code == ExitCode.INVALID_ARGS
            assert not Path("fru.bin").exists()

    @pytest.mark.parametrize("args", [
        ["-t", "zz"],
        ["-m", "binary:XYZ"],
        ["-d", "2021-01-01"],
    ])
    def test_bad_options(self, runner: CliRunner, args):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["create", *args, "fru.bin"])
            assert result.exit_code == 2
