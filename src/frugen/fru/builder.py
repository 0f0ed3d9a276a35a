"""
FRU Image Builder
=================

This module assembles complete FRU information images from their areas.

create_fru() takes five already built areas (internal use, chassis,
board, product, multirecord), places them one after another on 8-byte
block boundaries and writes the common header pointing at them.

FruBuilder is the convenient front end: it accepts exploded area
contents, builds each area and then assembles the image.

Usage
-----
    >>> from frugen.fru import FruBuilder, BoardInfo
    >>> builder = FruBuilder()
    >>> builder.set_board(BoardInfo(manufacturer="ACME", product_name="Widget"))
    >>> builder.add_uuid("01234567-89AB-CDEF-0123-456789ABCDEF")
    >>> image = builder.build()
    >>> builder.build_to_file("fru.bin")

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3,
  section 8 (Common Header)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union
import logging

from frugen.errors import AreaTypeError, FruArgumentError
from frugen.fru.areas import (
    BoardInfo,
    ChassisInfo,
    ProductInfo,
    build_area,
)
from frugen.fru.fields import EncodingPolicy
from frugen.fru.multirecord import MultiRecord, MultiRecordArea
from frugen.fru.records import (
    BLOCK_SIZE,
    FRU_HEADER_SIZE,
    AreaType,
    FruHeader,
    blocks_for,
    bytes_for,
)

# Logger for this module
logger = logging.getLogger(__name__)

MAX_OFFSET_BLOCKS = 0xFF


# =============================================================================
# Area Descriptor
# =============================================================================

@dataclass(frozen=True)
class FruArea:
    """
    A built area ready to be placed in an image.

    Attributes:
        area_type: The area's type, or NOT_PRESENT to leave its slot empty
        data: The area bytes
        blocks: Size in 8-byte blocks; if None it is taken from the info
            area header, or from the data length for the other areas
    """
    area_type: AreaType
    data: bytes = b""
    blocks: Optional[int] = None


def _area_blocks(slot: AreaType, area: FruArea) -> int:
    """Work out how many blocks an area occupies."""
    if area.blocks is not None:
        blocks = area.blocks
    elif slot.is_info_area and len(area.data) > 1:
        # Info areas carry their own size in byte 1
        blocks = area.data[1]
    else:
        blocks = blocks_for(len(area.data))

    # Zero blocks leaves the slot empty
    if blocks and bytes_for(blocks) < len(area.data):
        raise FruArgumentError(
            f"{slot.get_description()} of {len(area.data)} bytes does not fit "
            f"in {blocks} blocks"
        )
    return blocks


# =============================================================================
# Image Assembly
# =============================================================================

def create_fru(areas: Sequence[Optional[FruArea]]) -> bytes:
    """
    Assemble a FRU image from its areas.

    Args:
        areas: Five slots in the order internal use, chassis, board,
            product, multirecord; each None or a FruArea

    Returns:
        The complete image, a multiple of 8 bytes long

    Raises:
        AreaTypeError: If an area is placed in another area's slot
        FruArgumentError: If an area does not fit its declared size, or the
            image is too large for the header offsets

    Example:
        >>> board = FruArea(AreaType.BOARD, build_board_area(BoardInfo()))
        >>> image = create_fru([None, None, board, None, None])
        >>> image[3]
        1
    """
    slots = AreaType.slots()
    if len(areas) != len(slots):
        raise FruArgumentError(
            f"Expected {len(slots)} area slots, got {len(areas)}"
        )

    offsets = [0] * len(slots)
    placed: list[tuple[int, bytes]] = []
    next_block = FRU_HEADER_SIZE // BLOCK_SIZE

    # First pass: validate slots and lay out offsets
    for slot, area in zip(slots, areas):
        if area is None:
            continue
        if area.area_type not in (AreaType.NOT_PRESENT, slot):
            raise AreaTypeError(
                f"{area.area_type.get_description()} cannot be placed in the "
                f"{slot.get_description()} slot"
            )
        if area.area_type == AreaType.NOT_PRESENT or not area.data:
            continue

        blocks = _area_blocks(slot, area)
        if not blocks:
            continue

        if next_block > MAX_OFFSET_BLOCKS:
            raise FruArgumentError(
                f"{slot.get_description()} would start at block {next_block}, "
                f"beyond the maximum offset of {MAX_OFFSET_BLOCKS}"
            )

        offsets[slot] = next_block
        size = bytes_for(blocks)
        placed.append((bytes_for(next_block), area.data.ljust(size, b"\x00")))
        next_block += blocks

    header = FruHeader(offsets=tuple(offsets))

    # Second pass: copy the areas into the image
    image = bytearray(bytes_for(next_block))
    image[:FRU_HEADER_SIZE] = header.to_bytes()
    for offset, data in placed:
        logger.debug(f"Copying {len(data)} bytes to offset 0x{offset:03X}")
        image[offset:offset + len(data)] = data

    logger.debug(f"Created FRU image of {len(image)} bytes, offsets {offsets}")
    return bytes(image)


# =============================================================================
# FRU Builder
# =============================================================================

@dataclass
class FruBuilder:
    """
    Builds FRU images from area contents.

    Every setter returns self, so calls can be chained. Areas that are
    never set are left out of the image.

    Attributes:
        policy: Encoding policy for fields without an explicit type

    Example:
        >>> image = (FruBuilder()
        ...          .set_chassis(ChassisInfo(part_number="CH-1"))
        ...          .set_product(ProductInfo(manufacturer="ACME"))
        ...          .build())
    """
    # Encoding policy (AUTO picks the most compact encoding)
    policy: EncodingPolicy = EncodingPolicy.AUTO

    _internal_use: Optional[bytes] = field(default=None, repr=False)
    _chassis: Optional[ChassisInfo] = field(default=None, repr=False)
    _board: Optional[BoardInfo] = field(default=None, repr=False)
    _product: Optional[ProductInfo] = field(default=None, repr=False)
    _multirecord: MultiRecordArea = field(default_factory=MultiRecordArea, repr=False)

    # =========================================================================
    # Setting Areas
    # =========================================================================

    def set_internal_use(self, data: bytes) -> "FruBuilder":
        """
        Set the internal use area.

        The payload is opaque; it is stored after the version byte and
        zero padded to a block boundary.
        """
        self._internal_use = bytes(data)
        return self

    def set_chassis(self, info: ChassisInfo) -> "FruBuilder":
        """Set the chassis info area contents."""
        self._chassis = info
        return self

    def set_board(self, info: BoardInfo) -> "FruBuilder":
        """Set the board info area contents."""
        self._board = info
        return self

    def set_product(self, info: ProductInfo) -> "FruBuilder":
        """Set the product info area contents."""
        self._product = info
        return self

    def add_multirecord(self, record: MultiRecord) -> "FruBuilder":
        """
        Append a record to the MultiRecord area.

        Raises:
            RecordSlotError: If a Management Access record of the same
                subtype was already added
        """
        self._multirecord.add_record(record)
        return self

    def add_uuid(self, uuid_string: str) -> "FruBuilder":
        """
        Add a System UUID record.

        Raises:
            UuidFormatError: If the string is malformed
            RecordSlotError: If a System UUID was already added
        """
        self._multirecord.add_uuid(uuid_string)
        return self

    def clear(self) -> "FruBuilder":
        """Forget every area set so far."""
        self._internal_use = None
        self._chassis = None
        self._board = None
        self._product = None
        self._multirecord = MultiRecordArea()
        return self

    # =========================================================================
    # Building
    # =========================================================================

    def get_areas(self) -> list[Optional[FruArea]]:
        """Build every area that was set, in header slot order."""
        areas: list[Optional[FruArea]] = [None] * len(AreaType.slots())

        if self._internal_use is not None:
            # Byte 0 of the internal use area is its format version
            areas[AreaType.INTERNAL_USE] = FruArea(
                AreaType.INTERNAL_USE, bytes([1]) + self._internal_use
            )
        for info in (self._chassis, self._board, self._product):
            if info is not None:
                areas[info.area_type] = FruArea(
                    info.area_type, build_area(info, self.policy)
                )
        if len(self._multirecord):
            areas[AreaType.MULTIRECORD] = FruArea(
                AreaType.MULTIRECORD, self._multirecord.build()
            )
        return areas

    def build(self) -> bytes:
        """
        Build the FRU image.

        Raises:
            FruArgumentError: If any area cannot be built
        """
        image = create_fru(self.get_areas())
        logger.info(f"Built FRU image: {len(image)} bytes")
        return image

    def build_to_file(self, filepath: Union[str, Path]) -> int:
        """
        Build the FRU image and write it to a file.

        Returns:
            Number of bytes written
        """
        image = self.build()
        Path(filepath).write_bytes(image)
        logger.debug(f"Wrote {len(image)} bytes to {filepath}")
        return len(image)
