"""
FRU MultiRecord Area
====================

This module builds and parses the MultiRecord area: a chain of records,
each with its own 5-byte header, terminated by the record flagged
"end of list".

Record Header
-------------
    Offset  Size    Description
    ------  ----    -----------
    0       1       Record type id
    1       1       Bit 7: end of list, bits 3-0: format version (2)
    2       1       Payload length
    3       1       Payload zero checksum
    4       1       Header zero checksum (over bytes 0-3)

The records are packed back to back; only the area as a whole is padded
to an 8-byte boundary when it is placed in a FRU image.

System UUID Record
------------------
A Management Access record (type 0x03) with subtype 0x07 followed by the
16 UUID bytes in SMBIOS order: time_low, time_mid and time_hi_and_version
little-endian, the remaining 8 bytes as written.

    >>> record = build_uuid_record("01234567-89AB-CDEF-0123-456789ABCDEF")
    >>> record.payload[:5].hex()
    '0767452301'

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3,
  sections 16 and 18.4
- DMTF SMBIOS Reference Specification 3.x, section 7.2.1 (UUID byte order)
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence
import logging
import string
import uuid

from frugen.errors import (
    AreaBoundsError,
    ChecksumError,
    FormatVersionError,
    FruArgumentError,
    FruFormatError,
    RecordSlotError,
    UuidFormatError,
)
from frugen.fru.checksum import zero_checksum
from frugen.fru.records import ManagementSubtype, MultiRecordType

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MR_HEADER_SIZE = 5
MR_VERSION = 2
MR_VERSION_MASK = 0x0F
MR_END_OF_LIST = 0x80
MR_MAX_PAYLOAD = 0xFF

UUID_SIZE = 16
UUID_HEX_DIGITS = 32
UUID_STRING_LENGTHS = (32, 36)


def _payload_checksum(payload: bytes) -> int:
    # An empty payload sums to zero already
    return zero_checksum(payload) if payload else 0


# =============================================================================
# Record
# =============================================================================

@dataclass(frozen=True)
class MultiRecord:
    """
    A single MultiRecord area record.

    Attributes:
        type_id: Record type (see MultiRecordType)
        payload: Record data, at most 255 bytes
        end_of_list: True for the last record of the chain
        version: Record format version
    """
    type_id: int
    payload: bytes = b""
    end_of_list: bool = False
    version: int = MR_VERSION

    def __post_init__(self) -> None:
        if not 0 <= self.type_id <= 0xFF:
            raise FruArgumentError(f"Invalid record type id: {self.type_id}")
        if len(self.payload) > MR_MAX_PAYLOAD:
            raise FruArgumentError(
                f"Record payload of {len(self.payload)} bytes exceeds "
                f"{MR_MAX_PAYLOAD} bytes"
            )

    @property
    def flags(self) -> int:
        """Byte 1 of the header: end-of-list bit and version."""
        eol = MR_END_OF_LIST if self.end_of_list else 0
        return eol | (self.version & MR_VERSION_MASK)

    @property
    def size(self) -> int:
        """Wire size: header plus payload."""
        return MR_HEADER_SIZE + len(self.payload)

    @property
    def subtype(self) -> Optional[int]:
        """Management Access subtype, None for other record types."""
        if self.type_id == MultiRecordType.MGMT_ACCESS and self.payload:
            return self.payload[0]
        return None

    def header_bytes(self) -> bytes:
        """Serialize the 5-byte header, checksums included."""
        body = bytes([
            self.type_id,
            self.flags,
            len(self.payload),
            _payload_checksum(self.payload),
        ])
        return body + bytes([zero_checksum(body)])

    def to_bytes(self) -> bytes:
        """Serialize header and payload."""
        return self.header_bytes() + self.payload

    def get_type_name(self) -> str:
        return MultiRecordType.get_name(self.type_id)

    def is_system_uuid(self) -> bool:
        return (
            self.subtype == ManagementSubtype.SYSTEM_UUID
            and len(self.payload) == 1 + UUID_SIZE
        )

    def system_uuid(self) -> str:
        """
        Get the UUID of a System UUID record in canonical form.

        Raises:
            FruFormatError: If this is not a System UUID record
        """
        if not self.is_system_uuid():
            raise FruFormatError(
                f"Record type 0x{self.type_id:02X} is not a System UUID record"
            )
        return str(uuid.UUID(bytes_le=bytes(self.payload[1:])))

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> tuple["MultiRecord", int]:
        """
        Parse and validate one record.

        Returns:
            Tuple of (MultiRecord, bytes_consumed)

        Raises:
            AreaBoundsError: If the record runs past the end of data
            ChecksumError: If the header or payload checksum fails
            FormatVersionError: If the record version is not 2
        """
        header_end = offset + MR_HEADER_SIZE
        if header_end > len(data):
            raise AreaBoundsError(
                f"MultiRecord header at offset {offset} is truncated",
                needed=header_end,
                available=len(data),
            )

        header = data[offset:header_end]
        expected = zero_checksum(header[:4])
        if header[4] != expected:
            raise ChecksumError("MultiRecord header", expected, header[4])

        type_id, flags, length, payload_sum = header[:4]
        version = flags & MR_VERSION_MASK
        if version != MR_VERSION:
            raise FormatVersionError(
                f"MultiRecord at offset {offset} has version {version}, "
                f"expected {MR_VERSION}"
            )

        end = header_end + length
        if end > len(data):
            raise AreaBoundsError(
                f"MultiRecord payload at offset {header_end} declares {length} "
                f"bytes, only {len(data) - header_end} available",
                needed=end,
                available=len(data),
            )

        payload = bytes(data[header_end:end])
        expected = _payload_checksum(payload)
        if payload_sum != expected:
            raise ChecksumError("MultiRecord payload", expected, payload_sum)

        record = cls(
            type_id=type_id,
            payload=payload,
            end_of_list=bool(flags & MR_END_OF_LIST),
            version=version,
        )
        return record, end - offset


# =============================================================================
# System UUID
# =============================================================================

def build_uuid_record(uuid_string: str) -> MultiRecord:
    """
    Build a Management Access / System UUID record.

    Args:
        uuid_string: 32 hex digits, optionally with 4 dashes anywhere

    Raises:
        UuidFormatError: If the string is malformed
    """
    if len(uuid_string) not in UUID_STRING_LENGTHS:
        raise UuidFormatError(
            f"UUID must be 32 or 36 characters long, got {len(uuid_string)}"
        )

    for char in uuid_string:
        if char != "-" and char not in string.hexdigits:
            raise UuidFormatError(f"Invalid character {char!r} in UUID")

    digits = uuid_string.replace("-", "")
    if len(digits) != UUID_HEX_DIGITS:
        raise UuidFormatError(
            f"UUID must contain exactly {UUID_HEX_DIGITS} hex digits, "
            f"got {len(digits)}"
        )

    raw = uuid.UUID(hex=digits).bytes_le
    logger.debug(f"System UUID record for {digits.upper()}")
    return MultiRecord(
        MultiRecordType.MGMT_ACCESS,
        bytes([ManagementSubtype.SYSTEM_UUID]) + raw,
    )


# =============================================================================
# Area Assembly
# =============================================================================

def assemble_area(records: Sequence[MultiRecord]) -> bytes:
    """
    Chain records into a MultiRecord area.

    The end-of-list flag is set on the final record and cleared on all
    others. The result is not block padded.

    Returns:
        The area bytes, empty if there are no records
    """
    if not records:
        return b""

    last = len(records) - 1
    chain = [
        replace(record, end_of_list=(index == last))
        for index, record in enumerate(records)
    ]
    return b"".join(record.to_bytes() for record in chain)


@dataclass
class MultiRecordArea:
    """
    Builds a MultiRecord area record by record.

    Example:
        >>> area = MultiRecordArea().add_uuid("0123456789abcdef0123456789abcdef")
        >>> data = area.build()
    """
    _records: list[MultiRecord] = field(default_factory=list, repr=False)

    def add_record(self, record: MultiRecord) -> "MultiRecordArea":
        """
        Append a record to the chain.

        Returns:
            Self for method chaining

        Raises:
            RecordSlotError: If a Management Access record with the same
                subtype is already present
        """
        if record.subtype is not None:
            for existing in self._records:
                if existing.subtype == record.subtype:
                    raise RecordSlotError(
                        f"Management Access record subtype "
                        f"0x{record.subtype:02X} is already present"
                    )
        self._records.append(record)
        logger.debug(
            f"Added {record.get_type_name()} record ({len(record.payload)} bytes)"
        )
        return self

    def add_uuid(self, uuid_string: str) -> "MultiRecordArea":
        """Append a System UUID record."""
        return self.add_record(build_uuid_record(uuid_string))

    @property
    def records(self) -> list[MultiRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def build(self) -> bytes:
        """Serialize the chain (empty bytes if no records were added)."""
        return assemble_area(self._records)


# =============================================================================
# Parsing
# =============================================================================

def parse_multirecord_area(data: bytes, offset: int = 0) -> list[MultiRecord]:
    """
    Walk a record chain up to and including the end-of-list record.

    Args:
        data: Buffer holding the area
        offset: Offset of the first record header

    Raises:
        AreaBoundsError: If the chain runs past the end of data
        ChecksumError: If any record checksum fails
        FormatVersionError: If any record has the wrong version
    """
    records = []
    cursor = offset
    while True:
        record, consumed = MultiRecord.from_bytes(data, cursor)
        records.append(record)
        cursor += consumed
        if record.end_of_list:
            break

    logger.debug(f"Parsed {len(records)} MultiRecord records")
    return records
