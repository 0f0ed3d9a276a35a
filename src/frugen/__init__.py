"""
frugen - IPMI FRU Information Generator
=======================================

This package builds and reads IPMI FRU (Field Replaceable Unit)
information images: the binary records stored in hardware EEPROMs that
identify a chassis, a board or a product.

Main Components
---------------
- **fru**: FRU codec
    Field encodings, info areas, MultiRecord area, image builder and parser

- **cli**: Command-line tool (frugen)
    Creates images from options or JSON templates, prints and validates them

Quick Start
-----------
Build an image:
    >>> from frugen import FruBuilder, BoardInfo, ProductInfo
    >>> builder = FruBuilder()
    >>> builder.set_board(BoardInfo(manufacturer="ACME", product_name="Widget"))
    >>> builder.set_product(ProductInfo(manufacturer="ACME", version="1.0"))
    >>> builder.build_to_file("fru.bin")

Read it back:
    >>> from frugen import FruParser
    >>> parser = FruParser.from_file("fru.bin")
    >>> print(parser.get_info())

Or use the command-line tool:
    $ frugen create --board-mfg ACME --board-prodname Widget fru.bin
    $ frugen info fru.bin

Reference Documentation
-----------------------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3
- DMTF SMBIOS Reference Specification (chassis types, UUID byte order)
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from frugen.fru import (
    AreaType,
    ChassisType,
    Language,
    FieldType,
    EncodingPolicy,
    FieldValue,
    Field,
    ChassisInfo,
    BoardInfo,
    ProductInfo,
    MultiRecord,
    FruBuilder,
    FruParser,
    create_fru,
    load_template,
    dump_fru,
)
from frugen.config import FruConfig
from frugen.errors import (
    FruError,
    FruArgumentError,
    FieldLengthError,
    FieldValueError,
    ChassisTypeError,
    AreaTypeError,
    UuidFormatError,
    RecordSlotError,
    FruFormatError,
    FormatVersionError,
    ChecksumError,
    AreaBoundsError,
    FruReadError,
    FieldCapacityError,
)

__all__ = [
    # Version info
    "__version__",
    # Codec
    "AreaType",
    "ChassisType",
    "Language",
    "FieldType",
    "EncodingPolicy",
    "FieldValue",
    "Field",
    "ChassisInfo",
    "BoardInfo",
    "ProductInfo",
    "MultiRecord",
    "FruBuilder",
    "FruParser",
    "create_fru",
    "load_template",
    "dump_fru",
    # Configuration
    "FruConfig",
    # Exception hierarchy
    "FruError",
    "FruArgumentError",
    "FieldLengthError",
    "FieldValueError",
    "ChassisTypeError",
    "AreaTypeError",
    "UuidFormatError",
    "RecordSlotError",
    "FruFormatError",
    "FormatVersionError",
    "ChecksumError",
    "AreaBoundsError",
    "FruReadError",
    "FieldCapacityError",
]
