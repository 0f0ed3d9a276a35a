"""
FRU Stream Reader
=================

Helpers for reading FRU structures from a binary stream (an open file,
a pipe, an EEPROM device node) one piece at a time, instead of loading
the whole image first.

Reads are exact: a stream that ends early raises FruReadError rather than
returning a short buffer.

    >>> with open("fru.bin", "rb") as f:
    ...     header = read_fru_header(f)
    ...     f.seek(bytes_for(header.offset_of(AreaType.BOARD)))
    ...     board = decode_board_area(read_info_area(f, AreaType.BOARD))
"""

from typing import BinaryIO
import logging

from frugen.errors import AreaBoundsError, AreaTypeError, FruReadError
from frugen.fru.parser import parse_header
from frugen.fru.records import (
    FRU_HEADER_SIZE,
    AreaType,
    FruHeader,
    InfoAreaHeader,
    bytes_for,
)

# Logger for this module
logger = logging.getLogger(__name__)


def read_exact(stream: BinaryIO, length: int) -> bytes:
    """
    Read exactly length bytes.

    Short reads from pipes and devices are retried until the stream
    reports end of file.

    Raises:
        FruReadError: If the stream ends before length bytes were read
    """
    chunks = []
    remaining = length
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            got = length - remaining
            raise FruReadError(
                f"Unexpected end of stream: needed {length} bytes, got {got}",
                needed=length,
                available=got,
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_fru_header(stream: BinaryIO) -> FruHeader:
    """
    Read and validate the 8-byte common header.

    Raises:
        FruReadError: If the stream ends early
        FruFormatError: If the header is invalid
    """
    return parse_header(read_exact(stream, FRU_HEADER_SIZE))


def read_info_area(stream: BinaryIO, area_type: AreaType) -> bytes:
    """
    Read a complete chassis, board or product area.

    The area header is read first to learn the area size, then the rest
    of the area.

    Returns:
        The area bytes (not validated beyond its size)

    Raises:
        AreaTypeError: If area_type has no info-area layout
        FruReadError: If the stream ends early
        AreaBoundsError: If the declared size is smaller than the header
    """
    if not area_type.is_info_area:
        raise AreaTypeError(
            f"{area_type.get_description()} is not an info area"
        )

    prefix = read_exact(stream, InfoAreaHeader(area_type).size)
    header = InfoAreaHeader.from_bytes(area_type, prefix)

    size = bytes_for(header.blocks)
    if size < len(prefix):
        raise AreaBoundsError(
            f"{area_type.get_description()} declares {size} bytes, "
            f"smaller than its header",
            needed=len(prefix),
            available=size,
        )

    logger.debug(f"Reading {size} bytes of {area_type.get_description()}")
    return prefix + read_exact(stream, size - len(prefix))
