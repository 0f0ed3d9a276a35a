"""
FRU Image Parser
================

This module reads FRU information images: it validates the common header,
locates each area and decodes it.

Locating Areas
--------------
find_area() never hands out an area it has not validated:

    Chassis/Board/Product:
        1. The 3-byte area header lies inside the buffer
        2. The area version byte is 1
        3. The declared size lies inside the buffer
        4. The area sums to zero
    MultiRecord:
        Every record of the chain is walked and checked up to the
        end-of-list record; the chain length is the area size
    Internal use:
        Version byte is 1; the area runs to the next area or the end
        of the buffer

Usage Examples
--------------
    >>> from frugen.fru import FruParser
    >>> parser = FruParser.from_file("fru.bin")
    >>> if parser.board:
    ...     print(parser.board.manufacturer.value)
    >>> print(parser.get_uuid())

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging

from frugen.errors import (
    AreaBoundsError,
    AreaTypeError,
    ChecksumError,
    FormatVersionError,
    FruError,
)
from frugen.fru.areas import (
    BoardInfo,
    ChassisInfo,
    ProductInfo,
    decode_board_area,
    decode_chassis_area,
    decode_product_area,
)
from frugen.fru.checksum import verify_zero_checksum, zero_checksum
from frugen.fru.multirecord import MultiRecord, parse_multirecord_area
from frugen.fru.records import (
    FRU_HEADER_SIZE,
    FRU_VERSION,
    INFO_AREA_HEADER_SIZE,
    AreaType,
    FruHeader,
    bytes_for,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Header and Area Lookup
# =============================================================================

def parse_header(data: bytes) -> FruHeader:
    """
    Parse and validate the common header.

    Raises:
        AreaBoundsError: If data is shorter than 8 bytes
        FormatVersionError: If version, reserved bits or pad are wrong
        ChecksumError: If the header checksum fails
    """
    header = FruHeader.from_bytes(data)

    if header.version != FRU_VERSION or header.reserved != 0 or header.pad != 0:
        raise FormatVersionError(
            f"Unsupported FRU header: version {header.version}, "
            f"reserved 0x{header.reserved:X}, pad 0x{header.pad:02X}"
        )

    if not verify_zero_checksum(data[:FRU_HEADER_SIZE]):
        raise ChecksumError(
            "FRU header",
            zero_checksum(data[:FRU_HEADER_SIZE - 1]),
            data[FRU_HEADER_SIZE - 1],
        )

    logger.debug(f"FRU header valid, offsets {list(header.offsets)}")
    return header


def _info_area_size(data: bytes, offset: int, area_type: AreaType) -> int:
    """Validate an info area in place and return its size in bytes."""
    name = area_type.get_description()

    if offset + INFO_AREA_HEADER_SIZE > len(data):
        raise AreaBoundsError(
            f"{name} header at offset {offset} is past the end of data",
            needed=offset + INFO_AREA_HEADER_SIZE,
            available=len(data),
        )

    if data[offset] != FRU_VERSION:
        raise FormatVersionError(
            f"{name} version {data[offset]}, expected {FRU_VERSION}"
        )

    size = bytes_for(data[offset + 1])
    if not size:
        raise AreaBoundsError(f"{name} declares a zero size", needed=1, available=0)
    if offset + size > len(data):
        raise AreaBoundsError(
            f"{name} at offset {offset} declares {size} bytes, "
            f"only {len(data) - offset} available",
            needed=offset + size,
            available=len(data),
        )

    area = data[offset:offset + size]
    if not verify_zero_checksum(area):
        raise ChecksumError(name, zero_checksum(area[:-1]), area[-1])
    return size


def _internal_use_size(data: bytes, header: FruHeader, offset: int) -> int:
    """Extent of the internal use area: up to the next area or the end."""
    if offset >= len(data):
        raise AreaBoundsError(
            f"Internal Use Area at offset {offset} is past the end of data",
            needed=offset + 1,
            available=len(data),
        )
    if data[offset] != FRU_VERSION:
        raise FormatVersionError(
            f"Internal Use Area version {data[offset]}, expected {FRU_VERSION}"
        )

    following = [
        bytes_for(block) for block in header.offsets
        if bytes_for(block) > offset
    ]
    end = min(following, default=len(data))
    return min(end, len(data)) - offset


def find_area(data: bytes, area_type: AreaType) -> Optional[bytes]:
    """
    Locate and validate one area of a FRU image.

    Args:
        data: The whole FRU image
        area_type: Which area to look for

    Returns:
        The area bytes, or None if the header marks it absent

    Raises:
        AreaTypeError: If area_type is NOT_PRESENT
        FruFormatError: If the header or the area fails validation
    """
    if area_type not in AreaType.slots():
        raise AreaTypeError(f"Cannot look up area type {area_type!r}")

    header = parse_header(data)
    block = header.offset_of(area_type)
    if not block:
        return None

    offset = bytes_for(block)
    if area_type.is_info_area:
        size = _info_area_size(data, offset, area_type)
    elif area_type == AreaType.MULTIRECORD:
        records = parse_multirecord_area(data, offset)
        size = sum(record.size for record in records)
    else:
        size = _internal_use_size(data, header, offset)

    logger.debug(
        f"Found {area_type.get_description()} at offset 0x{offset:03X}, "
        f"{size} bytes"
    )
    return bytes(data[offset:offset + size])


# =============================================================================
# FRU Parser
# =============================================================================

@dataclass
class FruParser:
    """
    Parser for FRU information images.

    Parsing happens on construction; any format violation raises a
    FruFormatError subclass.

    Attributes:
        data: The raw image bytes
        header: The parsed common header
        internal_use: Internal use payload (after its version byte), if present
        chassis: Decoded chassis area, if present
        board: Decoded board area, if present
        product: Decoded product area, if present
        multirecords: Records of the MultiRecord area

    Example:
        >>> parser = FruParser.from_bytes(image)
        >>> parser.product.serial.value
        'S123'
    """
    # Raw image data (not exposed in repr)
    data: bytes = field(repr=False)

    header: Optional[FruHeader] = field(default=None, init=False)
    internal_use: Optional[bytes] = field(default=None, init=False)
    chassis: Optional[ChassisInfo] = field(default=None, init=False)
    board: Optional[BoardInfo] = field(default=None, init=False)
    product: Optional[ProductInfo] = field(default=None, init=False)
    multirecords: list[MultiRecord] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        """Parse the image after initialization."""
        self.data = bytes(self.data)
        self._parse()

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "FruParser":
        """
        Create a FruParser from a file path.

        Raises:
            FileNotFoundError: If the file doesn't exist
            FruFormatError: If the file is not a valid FRU image
        """
        return cls(data=Path(filepath).read_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "FruParser":
        """Create a FruParser from raw bytes."""
        return cls(data=data)

    def _parse(self) -> None:
        try:
            self.header = parse_header(self.data)

            internal = find_area(self.data, AreaType.INTERNAL_USE)
            if internal is not None:
                self.internal_use = internal[1:]

            chassis = find_area(self.data, AreaType.CHASSIS)
            if chassis is not None:
                self.chassis = decode_chassis_area(chassis)

            board = find_area(self.data, AreaType.BOARD)
            if board is not None:
                self.board = decode_board_area(board)

            product = find_area(self.data, AreaType.PRODUCT)
            if product is not None:
                self.product = decode_product_area(product)

            if self.header.offset_of(AreaType.MULTIRECORD):
                offset = bytes_for(self.header.offset_of(AreaType.MULTIRECORD))
                self.multirecords = parse_multirecord_area(self.data, offset)
        except FruError as e:
            logger.error(f"Failed to parse FRU image: {e}")
            raise

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_area(self, area_type: AreaType) -> Optional[bytes]:
        """Get the raw, validated bytes of an area (None if absent)."""
        return find_area(self.data, area_type)

    def get_uuid(self) -> Optional[str]:
        """Get the System UUID, if the image carries one."""
        for record in self.multirecords:
            if record.is_system_uuid():
                return record.system_uuid()
        return None

    def get_present_areas(self) -> list[AreaType]:
        """List the areas the header marks present."""
        if self.header is None:
            return []
        return [
            area_type for area_type in AreaType.slots()
            if self.header.offset_of(area_type)
        ]

    def get_info(self) -> dict:
        """
        Get summary information about the image.

        Returns:
            Dictionary with image information
        """
        return {
            "size": len(self.data),
            "areas": [a.get_description() for a in self.get_present_areas()],
            "offsets": {
                a.name.lower(): bytes_for(self.header.offset_of(a))
                for a in self.get_present_areas()
            },
            "custom_fields": sum(
                len(info.custom)
                for info in (self.chassis, self.board, self.product)
                if info is not None
            ),
            "multirecords": len(self.multirecords),
            "uuid": self.get_uuid(),
        }


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_fru(data: bytes) -> FruParser:
    """Parse a FRU image from bytes."""
    return FruParser.from_bytes(data)


def parse_fru_file(filepath: Union[str, Path]) -> FruParser:
    """Parse a FRU image from disk."""
    return FruParser.from_file(filepath)
