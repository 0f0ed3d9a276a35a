"""
frugen - FRU Information Generator Command-Line Interface
=========================================================

This module implements the command-line interface for building and
inspecting IPMI FRU information images.

Commands
--------
- **create**: Create a FRU image from options and/or a JSON template
- **info**: Show the decoded contents of a FRU image
- **validate**: Validate a FRU image format

Field Values
------------
Every field option accepts an optional encoding prefix:

    binary:DEADBEEF     raw bytes, given as hex
    bcdplus:1234-5      BCD plus (digits, space, dash, dot)
    6bitascii:ACME      6-bit ASCII (uppercase and symbols)
    text:acme           plain 8-bit ASCII
    auto:ACME           pick the most compact encoding (the default)

Usage Examples
--------------
Create an image with a board area:
    $ frugen create --board-mfg ACME --board-prodname Widget \\
        --board-serial 001 --board-part PN1 fru.bin

Create an image from a template and add a System UUID:
    $ frugen create --json fru.json \\
        --mr-uuid 01234567-89AB-CDEF-0123-456789ABCDEF fru.bin

Show the contents of an image:
    $ frugen info fru.bin
    $ frugen info --json fru.bin > fru.json

Validate an image:
    $ frugen validate fru.bin
"""

from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
import json
import logging
import sys

import click

from frugen import __version__
from frugen.cli.errors import ExitCode, handle_cli_exception
from frugen.config import FruConfig
from frugen.errors import FruArgumentError, FruError
from frugen.fru import (
    AreaType,
    BoardInfo,
    ChassisInfo,
    ChassisType,
    EncodingPolicy,
    FieldType,
    FieldValue,
    FruBuilder,
    FruParser,
    ProductInfo,
    decode_info_area,
    dump_fru,
    find_area,
    load_template,
    parse_header,
)
from frugen.fru.template import FruTemplate, format_date, parse_date, parse_hex


# =============================================================================
# Parameter Types
# =============================================================================

class FieldValueParam(click.ParamType):
    """
    Click parameter type for FRU field values.

    Accepts an optional encoding prefix (binary:, bcdplus:, 6bitascii:,
    text:, auto:). Values without a known prefix are auto-typed text.
    """
    name = "field"

    def convert(self, value: Any, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> FieldValue:
        """Convert string to FieldValue."""
        if isinstance(value, FieldValue):
            return value

        prefix, sep, data = value.partition(":")
        if not sep:
            return FieldValue(value)

        try:
            ftype = FieldType.from_name(prefix)
        except ValueError:
            # Not an encoding prefix, the colon is part of the text
            return FieldValue(value)

        if ftype == FieldType.BINARY:
            try:
                return FieldValue(parse_hex(data), ftype)
            except FruArgumentError as e:
                self.fail(str(e), param, ctx)
        return FieldValue(data, ftype)


class HexIntParam(click.ParamType):
    """Click parameter type for a byte given in hex (0x prefix optional)."""
    name = "hex"

    def convert(self, value: Any, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        if isinstance(value, int):
            return value
        try:
            number = int(value, 16)
        except ValueError:
            self.fail(f"Invalid hex value '{value}'", param, ctx)
        if not 0 <= number <= 0xFF:
            self.fail(f"Value 0x{number:X} does not fit in a byte", param, ctx)
        return number


class DateParam(click.ParamType):
    """Click parameter type for "DD/MM/YYYY HH:MM:SS" dates (UTC)."""
    name = "date"

    def convert(self, value: Any, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> datetime:
        if isinstance(value, datetime):
            return value
        try:
            return parse_date(value)
        except FruArgumentError as e:
            self.fail(str(e), param, ctx)


FIELD = FieldValueParam()
HEX_INT = HexIntParam()
DATE = DateParam()


# =============================================================================
# Context and Logging
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the configuration loaded from the environment and verbosity.
    """

    def __init__(self) -> None:
        self.config: FruConfig = FruConfig.from_env()
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def _override(info: Any, **values: Any) -> Any:
    """Return a copy of an area with the given (non-None) attributes replaced."""
    changes = {k: v for k, v in values.items() if v is not None}
    return replace(info, **changes) if changes else info


def _format_value(value: Any) -> str:
    """Format a decoded field for display."""
    if not isinstance(value, FieldValue):
        return str(value)
    if value.type == FieldType.TEXT:
        return value.display()
    return f"{value.display()}  [{value.type.get_name()}]"


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", prog_name="frugen")
@pass_context
def main(ctx: Context) -> None:
    """
    FRU Information Generator for IPMI.

    Create, inspect and validate IPMI FRU information images.

    \b
    Commands:
      create    Create a FRU image from options or a template
      info      Show the contents of a FRU image
      validate  Validate a FRU image

    \b
    Examples:
      frugen create --board-mfg ACME --board-prodname Widget fru.bin
      frugen info fru.bin
      frugen validate fru.bin

    \b
    Environment:
      FRUGEN_ASCII         Force plain ASCII text fields
      FRUGEN_LANGUAGE      Default language code
      FRUGEN_CHASSIS_TYPE  Default chassis type
    """
    pass


# =============================================================================
# Create Command
# =============================================================================

@main.command("create")
@click.argument(
    "output",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-j", "--json", "template",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Load FRU contents from a JSON template (options override it)",
)
@click.option(
    "--ascii", "ascii_only",
    is_flag=True,
    help="Store text fields as plain ASCII, no BCD plus or 6-bit packing",
)
# Chassis info area
@click.option("-t", "--chassis-type", type=HEX_INT,
              help="Chassis type (hex, default: 0x02 'Unknown')")
@click.option("-a", "--chassis-pn", type=FIELD, help="Chassis part number")
@click.option("-c", "--chassis-sn", type=FIELD, help="Chassis serial number")
@click.option("-C", "--chassis-custom", type=FIELD, multiple=True,
              help="Custom chassis field (repeatable)")
# Board info area
@click.option("-n", "--board-prodname", type=FIELD, help="Board product name")
@click.option("-m", "--board-mfg", type=FIELD, help="Board manufacturer")
@click.option("-d", "--board-date", type=DATE,
              help='Manufacturing date, "DD/MM/YYYY HH:MM:SS" UTC (default: now)')
@click.option("-u", "--board-date-unspecified", is_flag=True,
              help="Leave the manufacturing date unspecified")
@click.option("-p", "--board-part", type=FIELD, help="Board part number")
@click.option("-s", "--board-serial", type=FIELD, help="Board serial number")
@click.option("-f", "--board-file", type=FIELD, help="Board FRU file id")
@click.option("-B", "--board-custom", type=FIELD, multiple=True,
              help="Custom board field (repeatable)")
# Product info area
@click.option("-N", "--prod-name", type=FIELD, help="Product name")
@click.option("-G", "--prod-mfg", type=FIELD, help="Product manufacturer")
@click.option("-M", "--prod-modelpn", type=FIELD, help="Product model / part number")
@click.option("-V", "--prod-version", type=FIELD, help="Product version")
@click.option("-S", "--prod-serial", type=FIELD, help="Product serial number")
@click.option("-A", "--prod-atag", type=FIELD, help="Product asset tag")
@click.option("-F", "--prod-file", type=FIELD, help="Product FRU file id")
@click.option("-P", "--prod-custom", type=FIELD, multiple=True,
              help="Custom product field (repeatable)")
# MultiRecord area
@click.option("-U", "--mr-uuid", help="System UUID (32 hex digits, dashes optional)")
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@pass_context
def cmd_create(
    ctx: Context,
    output: Path,
    template: Optional[Path],
    ascii_only: bool,
    chassis_type: Optional[int],
    chassis_pn: Optional[FieldValue],
    chassis_sn: Optional[FieldValue],
    chassis_custom: tuple[FieldValue, ...],
    board_prodname: Optional[FieldValue],
    board_mfg: Optional[FieldValue],
    board_date: Optional[datetime],
    board_date_unspecified: bool,
    board_part: Optional[FieldValue],
    board_serial: Optional[FieldValue],
    board_file: Optional[FieldValue],
    board_custom: tuple[FieldValue, ...],
    prod_name: Optional[FieldValue],
    prod_mfg: Optional[FieldValue],
    prod_modelpn: Optional[FieldValue],
    prod_version: Optional[FieldValue],
    prod_serial: Optional[FieldValue],
    prod_atag: Optional[FieldValue],
    prod_file: Optional[FieldValue],
    prod_custom: tuple[FieldValue, ...],
    mr_uuid: Optional[str],
    verbose: bool,
) -> None:
    """
    Create a FRU information image.

    OUTPUT is the file to write. Areas are only included when at least
    one of their options is given (or the template describes them).

    \b
    Examples:
      frugen create --board-mfg ACME --board-prodname Widget fru.bin
      frugen create -t 17 --chassis-pn CH-1 --chassis-custom binary:0102 fru.bin
      frugen create --json fru.json --board-date "01/01/2021 00:00:00" fru.bin
    """
    ctx.verbose = verbose
    ctx.setup_logging()

    try:
        if board_date is not None and board_date_unspecified:
            raise click.BadParameter(
                "--board-date and --board-date-unspecified are mutually exclusive"
            )

        config = ctx.config
        if ascii_only:
            config = replace(config, policy=EncodingPolicy.TEXT)

        # The board date defaults to the current time, minute resolution
        if board_date_unspecified:
            default_date = None
        else:
            default_date = datetime.now(timezone.utc).replace(second=0, microsecond=0)

        if template is not None:
            contents = load_template(template, config, default_date)
        else:
            contents = FruTemplate()

        # Command-line options override the template
        if chassis_type is not None or chassis_pn or chassis_sn or chassis_custom:
            chassis = contents.chassis or ChassisInfo(chassis_type=config.chassis_type)
            contents.chassis = _override(
                chassis,
                chassis_type=chassis_type,
                part_number=chassis_pn,
                serial=chassis_sn,
                custom=chassis.custom + list(chassis_custom) if chassis_custom else None,
            )

        board_options = (board_prodname, board_mfg, board_part, board_serial, board_file)
        if any(board_options) or board_custom or board_date is not None:
            board = contents.board or BoardInfo(
                language=config.language, mfg_date=default_date
            )
            contents.board = _override(
                board,
                product_name=board_prodname,
                manufacturer=board_mfg,
                part_number=board_part,
                serial=board_serial,
                file_id=board_file,
                mfg_date=board_date,
                custom=board.custom + list(board_custom) if board_custom else None,
            )
        if contents.board is not None and board_date_unspecified:
            contents.board = replace(contents.board, mfg_date=None)

        product_options = (
            prod_name, prod_mfg, prod_modelpn, prod_version,
            prod_serial, prod_atag, prod_file,
        )
        if any(product_options) or prod_custom:
            product = contents.product or ProductInfo(language=config.language)
            contents.product = _override(
                product,
                product_name=prod_name,
                manufacturer=prod_mfg,
                part_number=prod_modelpn,
                version=prod_version,
                serial=prod_serial,
                asset_tag=prod_atag,
                file_id=prod_file,
                custom=product.custom + list(prod_custom) if prod_custom else None,
            )

        builder = FruBuilder(policy=config.policy)
        contents.apply(builder)
        if mr_uuid:
            builder.add_uuid(mr_uuid)

        bytes_written = builder.build_to_file(output)

        if verbose:
            parser = FruParser.from_file(output)
            click.echo(f"Created {output}")
            for area in parser.get_present_areas():
                click.echo(f"  {area.get_description()}")
            click.echo(f"  Size: {bytes_written} bytes written")
        else:
            click.echo(f"Created {output} ({bytes_written} bytes)")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Build")


# =============================================================================
# Info Command
# =============================================================================

def _echo_fields(labels: list[str], info: Any, attrs: list[str]) -> None:
    for label, attr in zip(labels, attrs):
        click.echo(f"  {label + ':':<15}{_format_value(getattr(info, attr))}")
    for index, value in enumerate(info.custom, start=1):
        click.echo(f"  {f'Custom {index}:':<15}{_format_value(value)}")


@main.command("info")
@click.argument(
    "fru_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the contents as a JSON template",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@pass_context
def cmd_info(ctx: Context, fru_file: Path, as_json: bool, verbose: bool) -> None:
    """
    Show the contents of a FRU information image.

    \b
    Example:
      frugen info fru.bin
      frugen info --json fru.bin > fru.json
    """
    ctx.verbose = verbose
    ctx.setup_logging()

    try:
        parser = FruParser.from_file(fru_file)

        if as_json:
            click.echo(json.dumps(dump_fru(parser), indent=2))
            return

        info = parser.get_info()
        click.echo(f"FRU Information: {fru_file}")
        click.echo("=" * 40)
        click.echo(f"Size:          {info['size']} bytes")
        click.echo(f"Areas:         {', '.join(info['areas']) or 'none'}")

        if parser.internal_use is not None:
            click.echo()
            click.echo("Internal Use:")
            click.echo(f"  {parser.internal_use.hex().upper()}")

        if parser.chassis is not None:
            click.echo()
            click.echo("Chassis:")
            click.echo(
                f"  {'Type:':<15}{ChassisType.get_name(parser.chassis.chassis_type)}"
            )
            _echo_fields(
                ["Part Number", "Serial"],
                parser.chassis,
                ["part_number", "serial"],
            )

        if parser.board is not None:
            click.echo()
            click.echo("Board:")
            click.echo(f"  {'Language:':<15}{parser.board.language}")
            date = format_date(parser.board.mfg_date) or "Unspecified"
            click.echo(f"  {'Mfg Date:':<15}{date}")
            _echo_fields(
                ["Manufacturer", "Product Name", "Serial", "Part Number", "FRU File"],
                parser.board,
                ["manufacturer", "product_name", "serial", "part_number", "file_id"],
            )

        if parser.product is not None:
            click.echo()
            click.echo("Product:")
            click.echo(f"  {'Language:':<15}{parser.product.language}")
            _echo_fields(
                ["Manufacturer", "Product Name", "Part Number", "Version",
                 "Serial", "Asset Tag", "FRU File"],
                parser.product,
                ["manufacturer", "product_name", "part_number", "version",
                 "serial", "asset_tag", "file_id"],
            )

        if parser.multirecords:
            click.echo()
            click.echo("MultiRecord:")
            for record in parser.multirecords:
                if record.is_system_uuid():
                    click.echo(f"  {'System UUID:':<15}{record.system_uuid()}")
                else:
                    click.echo(
                        f"  {record.get_type_name() + ':':<15}"
                        f"{record.payload.hex().upper()}"
                    )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@click.argument(
    "fru_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show validation details",
)
@pass_context
def cmd_validate(ctx: Context, fru_file: Path, verbose: bool) -> None:
    """
    Validate a FRU information image.

    Checks:
    - Common header version, pad byte and checksum
    - Each present area's bounds, version and checksum
    - Field structure of the chassis, board and product areas
    - MultiRecord chain checksums

    \b
    Example:
      frugen validate fru.bin
    """
    ctx.verbose = verbose
    ctx.setup_logging()

    try:
        data = fru_file.read_bytes()
        errors = []
        warnings = []

        try:
            parse_header(data)
            if verbose:
                click.echo("Validation Details:")
                click.echo("  Common header: OK")
        except FruError as e:
            errors.append(f"Header: {e}")

        # Check every area on its own so all problems are reported
        if not errors:
            for area_type in AreaType.slots():
                name = area_type.get_description()
                try:
                    area = find_area(data, area_type)
                    if area is None:
                        continue
                    if area_type.is_info_area:
                        decoded = decode_info_area(area_type, area)
                        if (area_type == AreaType.CHASSIS
                                and not ChassisType.is_valid(decoded.chassis_type)):
                            warnings.append(
                                f"{name}: unknown chassis type "
                                f"0x{decoded.chassis_type:02X}"
                            )
                    if verbose:
                        click.echo(f"  {name}: OK ({len(area)} bytes)")
                except FruError as e:
                    errors.append(f"{name}: {e}")

        # Report results
        if errors:
            click.echo("Validation FAILED:")
            for error in errors:
                click.echo(f"  ERROR: {error}")
            sys.exit(ExitCode.BUILD_ERROR)
        elif warnings:
            click.echo("Validation passed with warnings:")
            for warning in warnings:
                click.echo(f"  WARNING: {warning}")
        else:
            click.echo(f"Validation PASSED: {fru_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Validation")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
