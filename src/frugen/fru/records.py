"""
FRU Record Type Definitions
===========================

This module defines the enumerations, size arithmetic and fixed headers
shared by the FRU codec modules.

FRU Image Structure Overview
----------------------------
A FRU information image contains:
1. Common Header (8 bytes): version, five area offsets, pad, checksum
2. Up to five areas, each starting on an 8-byte block boundary:
   - Internal Use Area (opaque payload)
   - Chassis Info Area
   - Board Info Area
   - Product Info Area
   - MultiRecord Area (chain of records, not block padded per record)

Common Header
-------------
    Byte 0:   Low nibble: format version (1), high nibble: reserved (0)
    Byte 1-5: Area offsets in 8-byte blocks (internal use, chassis,
              board, product, multirecord), 0 = area absent
    Byte 6:   Pad (0)
    Byte 7:   Zero checksum over bytes 0-6

Info Area Header
----------------
    Byte 0:   Format version (1)
    Byte 1:   Area size in 8-byte blocks
    Byte 2:   Language code (board, product) or chassis type (chassis)
    Byte 3-5: Board only: manufacturing date, minutes since 1996-01-01
              00:00 UTC, 24-bit little-endian, 0 = unspecified

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3
- DMTF SMBIOS Reference Specification 3.x, section 7.4.1 (chassis types)
"""

from dataclasses import dataclass, field
from enum import IntEnum
import struct

from frugen.errors import AreaBoundsError
from frugen.fru.checksum import pack_24bit_le, unpack_24bit_le, zero_checksum


# =============================================================================
# Constants
# =============================================================================

FRU_VERSION = 1
BLOCK_SIZE = 8
FRU_HEADER_SIZE = 8
INFO_AREA_HEADER_SIZE = 3
BOARD_AREA_HEADER_SIZE = 6
DATE_UNSPECIFIED = 0


def blocks_for(nbytes: int) -> int:
    """Number of 8-byte blocks needed to hold nbytes."""
    return (nbytes + BLOCK_SIZE - 1) // BLOCK_SIZE


def bytes_for(blocks: int) -> int:
    """Size in bytes of the given number of blocks."""
    return blocks * BLOCK_SIZE


# =============================================================================
# Enumeration Types
# =============================================================================

class AreaType(IntEnum):
    """
    FRU area identifiers.

    The values double as the slot index of each area in the common header
    offset table, which is why the order must never change.
    """
    NOT_PRESENT = -1
    INTERNAL_USE = 0
    CHASSIS = 1
    BOARD = 2
    PRODUCT = 3
    MULTIRECORD = 4

    @classmethod
    def slots(cls) -> list["AreaType"]:
        """All real area types in header slot order."""
        return [cls.INTERNAL_USE, cls.CHASSIS, cls.BOARD, cls.PRODUCT, cls.MULTIRECORD]

    @property
    def is_info_area(self) -> bool:
        """True for the areas with the generic info-area layout."""
        return self in (AreaType.CHASSIS, AreaType.BOARD, AreaType.PRODUCT)

    @property
    def has_date(self) -> bool:
        """True for the board area, the only one with a manufacturing date."""
        return self == AreaType.BOARD

    def get_description(self) -> str:
        """Get a human-readable description of the area type."""
        descriptions = {
            AreaType.INTERNAL_USE: "Internal Use Area",
            AreaType.CHASSIS: "Chassis Info Area",
            AreaType.BOARD: "Board Info Area",
            AreaType.PRODUCT: "Product Info Area",
            AreaType.MULTIRECORD: "MultiRecord Area",
        }
        return descriptions.get(self, "Not present")


class Language(IntEnum):
    """Language codes for board and product areas (IPMI FRU Table 15-1 subset)."""
    DEFAULT = 0     # Treated as English by consumers
    ENGLISH = 25


class ChassisType(IntEnum):
    """
    SMBIOS chassis type codes, stored in byte 2 of the chassis info area.
    """
    OTHER = 0x01
    UNKNOWN = 0x02
    DESKTOP = 0x03
    LOW_PROFILE_DESKTOP = 0x04
    PIZZA_BOX = 0x05
    MINI_TOWER = 0x06
    TOWER = 0x07
    PORTABLE = 0x08
    LAPTOP = 0x09
    NOTEBOOK = 0x0A
    HAND_HELD = 0x0B
    DOCKING_STATION = 0x0C
    ALL_IN_ONE = 0x0D
    SUB_NOTEBOOK = 0x0E
    SPACE_SAVING = 0x0F
    LUNCH_BOX = 0x10
    MAIN_SERVER = 0x11
    EXPANSION = 0x12
    SUBCHASSIS = 0x13
    BUS_EXPANSION = 0x14
    PERIPHERAL = 0x15
    RAID = 0x16
    RACK_MOUNT = 0x17
    SEALED_CASE_PC = 0x18
    MULTI_SYSTEM = 0x19
    COMPACT_PCI = 0x1A
    ADVANCED_TCA = 0x1B
    BLADE = 0x1C
    BLADE_ENCLOSURE = 0x1D
    TABLET = 0x1E
    CONVERTIBLE = 0x1F
    DETACHABLE = 0x20
    IOT_GATEWAY = 0x21
    EMBEDDED_PC = 0x22
    MINI_PC = 0x23
    STICK_PC = 0x24

    @classmethod
    def is_valid(cls, code: int) -> bool:
        """Check if a byte is a known SMBIOS chassis type."""
        return cls.OTHER <= code <= cls.STICK_PC

    @classmethod
    def get_name(cls, code: int) -> str:
        """Get a human-readable name for a chassis type code."""
        if cls.is_valid(code):
            return cls(code).name.replace("_", " ").title()
        return f"Invalid (0x{code:02X})"


class ChassisField(IntEnum):
    """Mandatory chassis area fields, in wire order."""
    PART_NUMBER = 0
    SERIAL = 1


class BoardField(IntEnum):
    """Mandatory board area fields, in wire order."""
    MANUFACTURER = 0
    PRODUCT_NAME = 1
    SERIAL = 2
    PART_NUMBER = 3
    FILE_ID = 4


class ProductField(IntEnum):
    """Mandatory product area fields, in wire order."""
    MANUFACTURER = 0
    PRODUCT_NAME = 1
    PART_NUMBER = 2
    VERSION = 3
    SERIAL = 4
    ASSET_TAG = 5
    FILE_ID = 6


MANDATORY_FIELDS: dict[AreaType, type[IntEnum]] = {
    AreaType.CHASSIS: ChassisField,
    AreaType.BOARD: BoardField,
    AreaType.PRODUCT: ProductField,
}


class MultiRecordType(IntEnum):
    """MultiRecord area record type identifiers (IPMI FRU Table 16-2)."""
    PSU_INFO = 0x00
    DC_OUTPUT = 0x01
    DC_LOAD = 0x02
    MGMT_ACCESS = 0x03
    BASE_COMPAT = 0x04
    EXT_COMPAT = 0x05
    ASF_FIXED_SMBUS = 0x06
    ASF_LEGACY_ALERTS = 0x07
    ASF_REMOTE_CTRL = 0x08
    EXT_DC_OUTPUT = 0x09
    EXT_DC_LOAD = 0x0A
    NVME_B = 0x0B
    NVME_C = 0x0C
    NVME_D = 0x0D
    NVME_E = 0x0E
    NVME_F = 0x0F

    # OEM records range from 0xC0 to 0xFF
    OEM_MIN = 0xC0
    OEM_MAX = 0xFF

    @classmethod
    def get_name(cls, type_id: int) -> str:
        """Get a human-readable name for a record type id."""
        if cls.OEM_MIN <= type_id <= cls.OEM_MAX:
            return f"OEM (0x{type_id:02X})"
        try:
            return cls(type_id).name
        except ValueError:
            return f"Unknown (0x{type_id:02X})"


class ManagementSubtype(IntEnum):
    """Management Access record subtypes (IPMI FRU Table 18-6)."""
    SYSTEM_URL = 0x01
    SYSTEM_NAME = 0x02
    SYSTEM_PING = 0x03
    COMPONENT_URL = 0x04
    COMPONENT_NAME = 0x05
    COMPONENT_PING = 0x06
    SYSTEM_UUID = 0x07


# =============================================================================
# Common Header
# =============================================================================

@dataclass(frozen=True)
class FruHeader:
    """
    FRU common header (8 bytes at the start of the image).

    Offsets are in 8-byte blocks, indexed by AreaType slot; 0 means the
    area is absent.
    """
    offsets: tuple[int, int, int, int, int] = (0, 0, 0, 0, 0)
    version: int = FRU_VERSION
    reserved: int = 0
    pad: int = 0
    checksum: int = field(default=0, compare=False)

    def offset_of(self, area_type: AreaType) -> int:
        """Get the block offset of an area (0 if absent)."""
        return self.offsets[area_type]

    def body_bytes(self) -> bytes:
        """Serialize bytes 0-6 (everything the checksum covers)."""
        return struct.pack(
            "BBBBBBB",
            (self.reserved << 4) | (self.version & 0x0F),
            *self.offsets,
            self.pad,
        )

    def to_bytes(self) -> bytes:
        """Serialize the header with a freshly computed checksum."""
        body = self.body_bytes()
        return body + bytes([zero_checksum(body)])

    @classmethod
    def from_bytes(cls, data: bytes) -> "FruHeader":
        """
        Deserialize the raw header fields.

        No semantic validation is performed here; see
        frugen.fru.parser.parse_header for that.
        """
        if len(data) < FRU_HEADER_SIZE:
            raise AreaBoundsError(
                f"FRU header too short: need {FRU_HEADER_SIZE} bytes, got {len(data)}",
                needed=FRU_HEADER_SIZE,
                available=len(data),
            )
        return cls(
            offsets=tuple(data[1:6]),
            version=data[0] & 0x0F,
            reserved=data[0] >> 4,
            pad=data[6],
            checksum=data[7],
        )


# =============================================================================
# Info Area Header
# =============================================================================

@dataclass(frozen=True)
class InfoAreaHeader:
    """
    Header of a chassis, board or product info area.

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        0       1       Format version (low nibble)
        1       1       Area size in 8-byte blocks
        2       1       Language code or chassis type
        3       3       Board only: manufacturing date (minutes, LE)
    """
    area_type: AreaType
    blocks: int = 0
    langtype: int = Language.ENGLISH
    mfg_minutes: int = DATE_UNSPECIFIED
    version: int = FRU_VERSION

    @property
    def size(self) -> int:
        """Header length in bytes for this area type."""
        if self.area_type.has_date:
            return BOARD_AREA_HEADER_SIZE
        return INFO_AREA_HEADER_SIZE

    def to_bytes(self) -> bytes:
        """Serialize the header."""
        data = bytes([self.version, self.blocks, self.langtype])
        if self.area_type.has_date:
            data += pack_24bit_le(self.mfg_minutes)
        return data

    @classmethod
    def from_bytes(cls, area_type: AreaType, data: bytes) -> "InfoAreaHeader":
        """Deserialize the header of an area of the given type."""
        size = BOARD_AREA_HEADER_SIZE if area_type.has_date else INFO_AREA_HEADER_SIZE
        if len(data) < size:
            raise AreaBoundsError(
                f"{area_type.get_description()} header too short: "
                f"need {size} bytes, got {len(data)}",
                needed=size,
                available=len(data),
            )
        minutes = DATE_UNSPECIFIED
        if area_type.has_date:
            minutes = unpack_24bit_le(data[3:6])
        return cls(
            area_type=area_type,
            blocks=data[1],
            langtype=data[2],
            mfg_minutes=minutes,
            version=data[0],
        )
