"""
FRU JSON Templates
==================

This module maps FRU contents to and from JSON documents, so an image can
be described in a file instead of on the command line, and a decoded
image can be printed in the same shape.

Template Format
---------------
    {
        "internal": "0102DEADBEEF",
        "chassis": {
            "type": 23,
            "pn": "CH-1000",
            "serial": "CS123",
            "custom": ["rev A", {"type": "binary", "data": "DEADBEEF"}]
        },
        "board": {
            "lang": 25,
            "date": "01/01/2021 00:00:00",
            "mfg": "ACME", "pname": "Widget", "serial": "001",
            "pn": "PN1", "file": ""
        },
        "product": {
            "lang": 25,
            "mfg": "ACME", "pname": "Gadget", "pn": "G-1", "ver": "1.0",
            "serial": "PS1", "atag": "", "file": ""
        },
        "multirecord": [
            {"type": "management", "subtype": "uuid",
             "uuid": "01234567-89AB-CDEF-0123-456789ABCDEF"},
            {"type": 192, "data": "0102"}
        ]
    }

Field values are either plain strings (encoding picked automatically) or
objects with an explicit "type" (auto, binary, bcdplus, 6bitascii, text)
and "data". Binary data is written as a hex string.

The board "date" is "DD/MM/YYYY HH:MM:SS" in UTC; null means unspecified.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union
import json
import logging

from frugen.config import FruConfig
from frugen.errors import FruArgumentError
from frugen.fru.areas import BoardInfo, ChassisInfo, ProductInfo
from frugen.fru.builder import FruBuilder
from frugen.fru.fields import Field, FieldType, FieldValue, decode
from frugen.fru.multirecord import MultiRecord, build_uuid_record
from frugen.fru.parser import FruParser
from frugen.fru.records import MultiRecordType

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DATE_FORMAT = "%d/%m/%Y %H:%M:%S"

# JSON key -> dataclass attribute, in wire order
CHASSIS_KEYS = {"pn": "part_number", "serial": "serial"}
BOARD_KEYS = {
    "mfg": "manufacturer",
    "pname": "product_name",
    "serial": "serial",
    "pn": "part_number",
    "file": "file_id",
}
PRODUCT_KEYS = {
    "mfg": "manufacturer",
    "pname": "product_name",
    "pn": "part_number",
    "ver": "version",
    "serial": "serial",
    "atag": "asset_tag",
    "file": "file_id",
}


@dataclass
class FruTemplate:
    """
    FRU contents loaded from a template.

    Attributes:
        internal_use: Internal use payload, if any
        chassis: Chassis area contents, if any
        board: Board area contents, if any
        product: Product area contents, if any
        multirecords: MultiRecord area records, in order
    """
    internal_use: Optional[bytes] = None
    chassis: Optional[ChassisInfo] = None
    board: Optional[BoardInfo] = None
    product: Optional[ProductInfo] = None
    multirecords: list[MultiRecord] = field(default_factory=list)

    def apply(self, builder: FruBuilder) -> FruBuilder:
        """Load the template contents into a builder."""
        if self.internal_use is not None:
            builder.set_internal_use(self.internal_use)
        if self.chassis is not None:
            builder.set_chassis(self.chassis)
        if self.board is not None:
            builder.set_board(self.board)
        if self.product is not None:
            builder.set_product(self.product)
        for record in self.multirecords:
            builder.add_multirecord(record)
        return builder


# =============================================================================
# Value Conversion
# =============================================================================

def parse_hex(text: str, what: str = "binary data") -> bytes:
    """
    Parse a hex string into bytes.

    Raises:
        FruArgumentError: If the string is not an even number of hex digits
    """
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise FruArgumentError(f"Invalid hex string for {what}: {text!r}") from e


def parse_date(text: str) -> datetime:
    """
    Parse a "DD/MM/YYYY HH:MM:SS" UTC date.

    Raises:
        FruArgumentError: If the text does not match the format
    """
    try:
        date = datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError as e:
        raise FruArgumentError(
            f'Invalid date/time {text!r}, use "DD/MM/YYYY HH:MM:SS"'
        ) from e
    return date.replace(tzinfo=timezone.utc)


def format_date(date: Optional[datetime]) -> Optional[str]:
    if date is None:
        return None
    return date.astimezone(timezone.utc).strftime(DATE_FORMAT)


def parse_field_value(item: Any) -> FieldValue:
    """
    Convert a template value into a FieldValue.

    Raises:
        FruArgumentError: If the value is malformed
    """
    if isinstance(item, str):
        return FieldValue(item)

    if not isinstance(item, dict) or "data" not in item:
        raise FruArgumentError(f"Invalid field value: {item!r}")

    try:
        ftype = FieldType.from_name(str(item.get("type", "auto")))
    except ValueError as e:
        raise FruArgumentError(str(e)) from e

    data = item["data"]
    if not isinstance(data, str):
        raise FruArgumentError(f"Field data must be a string: {data!r}")
    if ftype == FieldType.BINARY:
        return FieldValue(parse_hex(data), ftype)
    return FieldValue(data, ftype)


def dump_field_value(item: Union[Field, FieldValue]) -> dict:
    """Convert a decoded value into its template form."""
    if isinstance(item, Field):
        item = decode(item)
    return {"type": item.type.get_name(), "data": item.display()}


def _parse_int(value: Any, what: str) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 0)
    except ValueError as e:
        raise FruArgumentError(f"Invalid {what}: {value!r}") from e


# =============================================================================
# Loading
# =============================================================================

def _section(doc: dict, name: str) -> Optional[dict]:
    section = doc.get(name)
    if section is not None and not isinstance(section, dict):
        raise FruArgumentError(f'Template section "{name}" must be an object')
    return section


def _section_fields(section: dict, keys: dict[str, str]) -> dict[str, Any]:
    values = {
        attr: parse_field_value(section[key])
        for key, attr in keys.items()
        if key in section
    }
    values["custom"] = [parse_field_value(v) for v in section.get("custom", [])]
    return values


def _parse_multirecord(entry: Any) -> MultiRecord:
    if not isinstance(entry, dict):
        raise FruArgumentError(f"Invalid multirecord entry: {entry!r}")

    if entry.get("type") == "management":
        if entry.get("subtype") != "uuid":
            raise FruArgumentError(
                f"Unsupported management record subtype: {entry.get('subtype')!r}"
            )
        return build_uuid_record(str(entry.get("uuid", "")))

    type_id = _parse_int(entry.get("type"), "multirecord type")
    return MultiRecord(type_id, parse_hex(str(entry.get("data", "")), "record data"))


def load_template(
    source: Union[str, Path, dict],
    config: Optional[FruConfig] = None,
    default_date: Optional[datetime] = None,
) -> FruTemplate:
    """
    Load FRU contents from a JSON template.

    Args:
        source: Path to a JSON file, or an already parsed document
        config: Defaults for language and chassis type
        default_date: Board date used when the template has no "date" key

    Returns:
        FruTemplate with the areas the document describes

    Raises:
        FileNotFoundError: If the file doesn't exist
        FruArgumentError: If the document is malformed
    """
    if config is None:
        config = FruConfig()

    if isinstance(source, (str, Path)):
        try:
            doc = json.loads(Path(source).read_text())
        except json.JSONDecodeError as e:
            raise FruArgumentError(f"Invalid JSON in {source}: {e}") from e
        logger.debug(f"Loaded template {source}")
    else:
        doc = source

    if not isinstance(doc, dict):
        raise FruArgumentError("Template must be a JSON object")

    template = FruTemplate()

    if "internal" in doc:
        template.internal_use = parse_hex(str(doc["internal"]), "internal use data")

    if (section := _section(doc, "chassis")) is not None:
        template.chassis = ChassisInfo(
            chassis_type=_parse_int(
                section.get("type", config.chassis_type), "chassis type"
            ),
            **_section_fields(section, CHASSIS_KEYS),
        )

    if (section := _section(doc, "board")) is not None:
        date = default_date
        if "date" in section:
            date = parse_date(section["date"]) if section["date"] else None
        template.board = BoardInfo(
            language=_parse_int(section.get("lang", config.language), "language"),
            mfg_date=date,
            **_section_fields(section, BOARD_KEYS),
        )

    if (section := _section(doc, "product")) is not None:
        template.product = ProductInfo(
            language=_parse_int(section.get("lang", config.language), "language"),
            **_section_fields(section, PRODUCT_KEYS),
        )

    for entry in doc.get("multirecord", []):
        template.multirecords.append(_parse_multirecord(entry))

    return template


# =============================================================================
# Dumping
# =============================================================================

def _dump_section(info: Any, keys: dict[str, str]) -> dict:
    section = {key: dump_field_value(getattr(info, attr)) for key, attr in keys.items()}
    section["custom"] = [dump_field_value(item) for item in info.custom]
    return section


def _dump_multirecord(record: MultiRecord) -> dict:
    if record.is_system_uuid():
        return {"type": "management", "subtype": "uuid", "uuid": record.system_uuid()}
    return {
        "type": record.type_id,
        "name": MultiRecordType.get_name(record.type_id),
        "data": record.payload.hex().upper(),
    }


def dump_fru(parser: FruParser) -> dict:
    """
    Render a parsed FRU image as a template document.

    Loading the result with load_template() describes the same image.
    """
    doc: dict[str, Any] = {}

    if parser.internal_use is not None:
        doc["internal"] = parser.internal_use.hex().upper()

    if parser.chassis is not None:
        doc["chassis"] = {
            "type": parser.chassis.chassis_type,
            **_dump_section(parser.chassis, CHASSIS_KEYS),
        }

    if parser.board is not None:
        doc["board"] = {
            "lang": parser.board.language,
            "date": format_date(parser.board.mfg_date),
            **_dump_section(parser.board, BOARD_KEYS),
        }

    if parser.product is not None:
        doc["product"] = {
            "lang": parser.product.language,
            **_dump_section(parser.product, PRODUCT_KEYS),
        }

    if parser.multirecords:
        doc["multirecord"] = [_dump_multirecord(r) for r in parser.multirecords]

    return doc
