"""
FRU Checksum Calculations
=========================

This module provides the checksum and small integer packing helpers used
by every FRU structure.

Zero Checksum
-------------
All FRU checksums (common header, info areas, multirecord headers and
payloads) are "zero checksums":
- Algorithm: two's complement of the 8-bit sum of the covered bytes
- Property: covered bytes + checksum byte sum to 0 (mod 256)

The checksum is always computed last, once every other byte of the
structure is final.

24-bit Little-Endian Values
---------------------------
The board manufacturing date is stored as a 24-bit little-endian count of
minutes since 1996-01-01 00:00 UTC.

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3
"""


def zero_checksum(data: bytes) -> int:
    """
    Calculate the zero checksum of a byte range.

    Args:
        data: The covered bytes (must not be empty)

    Returns:
        Checksum byte (0x00 - 0xFF) that makes the range sum to zero

    Raises:
        ValueError: If data is empty

    Example:
        >>> zero_checksum(bytes([0x01, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00]))
        254
    """
    if not data:
        raise ValueError("Cannot checksum an empty byte range")
    return -sum(data) & 0xFF


def verify_zero_checksum(data: bytes) -> bool:
    """
    Check that a byte range, including its checksum byte, sums to zero.

    Args:
        data: The covered bytes followed by the checksum byte

    Returns:
        True if the checksum holds, False otherwise (also for empty input)
    """
    if not data:
        return False
    return sum(data) & 0xFF == 0


def pack_24bit_le(value: int) -> bytes:
    """
    Pack a 24-bit value into 3 bytes (little-endian).

    Args:
        value: The value (0 to 16777215)

    Returns:
        3-byte little-endian representation

    Raises:
        ValueError: If value is negative or > 24 bits
    """
    if value < 0:
        raise ValueError(f"Value cannot be negative: {value}")
    if value > 0xFFFFFF:
        raise ValueError(f"Value exceeds 24 bits: {value}")

    return bytes([
        value & 0xFF,
        (value >> 8) & 0xFF,
        (value >> 16) & 0xFF,
    ])


def unpack_24bit_le(data: bytes) -> int:
    """
    Unpack a 24-bit value from 3 bytes (little-endian).

    Raises:
        ValueError: If data is not exactly 3 bytes
    """
    if len(data) != 3:
        raise ValueError(f"Expected 3 bytes, got {len(data)}")

    return data[0] | (data[1] << 8) | (data[2] << 16)
