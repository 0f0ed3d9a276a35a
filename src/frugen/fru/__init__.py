"""
IPMI FRU Information Handling
=============================

This module provides support for building and reading IPMI FRU
(Field Replaceable Unit) information images, the small binary blobs
stored in the EEPROMs of servers, boards and power supplies that
describe what the hardware is and who made it.

Overview
--------
A FRU image is a common header followed by up to five areas:
- **Internal Use**: opaque, vendor-defined data
- **Chassis Info**: chassis type, part and serial numbers
- **Board Info**: manufacturer, product name, serial, part number, date
- **Product Info**: manufacturer, name, model, version, serial, asset tag
- **MultiRecord**: chained typed records (here: the System UUID)

This module provides:
- **Field codec**: type detection, BCD plus, 6-bit ASCII and text encoding
- **Area builders/decoders**: chassis, board and product info areas
- **MultiRecord codec**: record chains and the System UUID record
- **FruBuilder**: assemble complete images
- **FruParser**: validate and decode existing images
- **Templates**: describe images as JSON documents

Quick Start
-----------
Creating an image:

    >>> from frugen.fru import FruBuilder, BoardInfo
    >>> builder = FruBuilder()
    >>> builder.set_board(BoardInfo(manufacturer="ACME", product_name="Widget"))
    >>> builder.build_to_file("fru.bin")

Reading an image:

    >>> from frugen.fru import FruParser
    >>> parser = FruParser.from_file("fru.bin")
    >>> print(parser.board.manufacturer.value)

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3
"""

# =============================================================================
# Public API Exports
# =============================================================================

# Checksums
from frugen.fru.checksum import (
    zero_checksum,
    verify_zero_checksum,
)

# Enums, constants and headers
from frugen.fru.records import (
    # Constants
    FRU_VERSION,
    BLOCK_SIZE,
    # Enums
    AreaType,
    Language,
    ChassisType,
    ChassisField,
    BoardField,
    ProductField,
    MultiRecordType,
    ManagementSubtype,
    # Headers
    FruHeader,
    InfoAreaHeader,
)

# Field codec
from frugen.fru.fields import (
    FIELD_MAX_LENGTH,
    FieldType,
    EncodingPolicy,
    TypeLen,
    FieldValue,
    Field,
    classify,
    encode,
    decode,
)

# Info areas
from frugen.fru.areas import (
    ChassisInfo,
    BoardInfo,
    ProductInfo,
    build_info_area,
    build_chassis_area,
    build_board_area,
    build_product_area,
    build_area,
    decode_info_area,
    decode_chassis_area,
    decode_board_area,
    decode_product_area,
)

# MultiRecord area
from frugen.fru.multirecord import (
    MultiRecord,
    MultiRecordArea,
    build_uuid_record,
    assemble_area,
    parse_multirecord_area,
)

# Image builder
from frugen.fru.builder import (
    FruArea,
    FruBuilder,
    create_fru,
)

# Image parser
from frugen.fru.parser import (
    FruParser,
    parse_header,
    find_area,
    parse_fru,
    parse_fru_file,
)

# Stream reader
from frugen.fru.reader import (
    read_exact,
    read_fru_header,
    read_info_area,
)

# JSON templates
from frugen.fru.template import (
    FruTemplate,
    load_template,
    dump_fru,
)

__all__ = [
    # Checksums
    "zero_checksum",
    "verify_zero_checksum",
    # Records
    "FRU_VERSION",
    "BLOCK_SIZE",
    "AreaType",
    "Language",
    "ChassisType",
    "ChassisField",
    "BoardField",
    "ProductField",
    "MultiRecordType",
    "ManagementSubtype",
    "FruHeader",
    "InfoAreaHeader",
    # Fields
    "FIELD_MAX_LENGTH",
    "FieldType",
    "EncodingPolicy",
    "TypeLen",
    "FieldValue",
    "Field",
    "classify",
    "encode",
    "decode",
    # Areas
    "ChassisInfo",
    "BoardInfo",
    "ProductInfo",
    "build_info_area",
    "build_chassis_area",
    "build_board_area",
    "build_product_area",
    "build_area",
    "decode_info_area",
    "decode_chassis_area",
    "decode_board_area",
    "decode_product_area",
    # MultiRecord
    "MultiRecord",
    "MultiRecordArea",
    "build_uuid_record",
    "assemble_area",
    "parse_multirecord_area",
    # Builder
    "FruArea",
    "FruBuilder",
    "create_fru",
    # Parser
    "FruParser",
    "parse_header",
    "find_area",
    "parse_fru",
    "parse_fru_file",
    # Reader
    "read_exact",
    "read_fru_header",
    "read_info_area",
    # Templates
    "FruTemplate",
    "load_template",
    "dump_fru",
]
