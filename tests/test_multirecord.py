"""
MultiRecord Area Unit Tests
===========================

This module contains tests for MultiRecord records, the System UUID
record and record chains.

Test Categories
---------------
1. Record: header layout, flags and checksums
2. System UUID: byte order and string validation
3. Chain: end-of-list handling and duplicate records
4. Parsing: checksum, version and bounds violations
"""

import pytest

from frugen.fru import (
    ManagementSubtype,
    MultiRecord,
    MultiRecordArea,
    MultiRecordType,
    assemble_area,
    build_uuid_record,
    parse_multirecord_area,
)
from frugen.errors import (
    AreaBoundsError,
    ChecksumError,
    FormatVersionError,
    FruArgumentError,
    FruFormatError,
    RecordSlotError,
    UuidFormatError,
)


SAMPLE_UUID = "01234567-89AB-CDEF-0123-456789ABCDEF"

# Subtype byte followed by the SMBIOS byte order of SAMPLE_UUID
SAMPLE_PAYLOAD = bytes.fromhex("07" "67452301" "AB89" "EFCD" "0123456789ABCDEF")


# =============================================================================
# Record Tests
# =============================================================================

class TestMultiRecord:
    """Tests for single record serialization."""

    def test_header_layout(self):
        record = MultiRecord(MultiRecordType.MGMT_ACCESS, SAMPLE_PAYLOAD)
        header = record.header_bytes()
        assert header[0] == 0x03
        assert header[1] == 0x02
        assert header[2] == 17
        assert header[3] == 0x79
        assert sum(header) % 256 == 0

    def test_end_of_list_flag(self):
        record = MultiRecord(0xC0, b"\x01", end_of_list=True)
        assert record.flags == 0x82

    def test_payload_checksum(self):
        """Test that the payload plus its checksum byte sums to zero."""
        record = MultiRecord(0xC0, b"\x10\x20\x30")
        assert (sum(record.payload) + record.header_bytes()[3]) % 256 == 0

    def test_empty_payload(self):
        record = MultiRecord(0xC0)
        assert record.to_bytes()[2:4] == b"\x00\x00"
        assert record.size == 5

    def test_payload_too_long(self):
        with pytest.raises(FruArgumentError):
            MultiRecord(0xC0, bytes(256))

    def test_type_id_range(self):
        with pytest.raises(FruArgumentError):
            MultiRecord(0x100)

    def test_type_names(self):
        assert MultiRecord(0x03).get_type_name() == "MGMT_ACCESS"
        assert MultiRecord(0xC5).get_type_name() == "OEM (0xC5)"
        assert MultiRecord(0x20).get_type_name() == "Unknown (0x20)"

    def test_subtype(self):
        assert MultiRecord(MultiRecordType.MGMT_ACCESS, b"\x02abc").subtype == 0x02
        assert MultiRecord(0xC0, b"\x02abc").subtype is None


# =============================================================================
# System UUID Tests
# =============================================================================

class TestSystemUuid:
    """Tests for the System UUID record."""

    def test_byte_order(self):
        """Test the SMBIOS mixed-endian UUID layout."""
        record = build_uuid_record(SAMPLE_UUID)
        assert record.type_id == MultiRecordType.MGMT_ACCESS
        assert record.subtype == ManagementSubtype.SYSTEM_UUID
        assert record.payload == SAMPLE_PAYLOAD

    def test_without_dashes(self):
        assert build_uuid_record(SAMPLE_UUID.replace("-", "")).payload == SAMPLE_PAYLOAD

    def test_dashes_anywhere(self):
        """Test that dash positions are not significant."""
        odd = "0123-4567-89AB-CDEF-0123456789ABCDEF"
        assert build_uuid_record(odd).payload == SAMPLE_PAYLOAD

    def test_lowercase(self):
        assert build_uuid_record(SAMPLE_UUID.lower()).payload == SAMPLE_PAYLOAD

    def test_system_uuid_canonical_form(self):
        record = build_uuid_record(SAMPLE_UUID)
        assert record.is_system_uuid()
        assert record.system_uuid() == SAMPLE_UUID.lower()

    def test_not_a_uuid_record(self):
        with pytest.raises(FruFormatError):
            MultiRecord(0xC0, b"\x07" + bytes(16)).system_uuid()

    @pytest.mark.parametrize("bad", [
        "",
        "0123456789ABCDEF",
        "01234567-89AB-CDEF-0123-456789ABCDEF0",
        "0123456789ABCDEF0123456789ABCDEG",
        "01234567-89AB-CDEF-0123-456789ABCDE-",
        "01234567 89AB CDEF 0123 456789ABCDEF",
    ])
    def test_malformed(self, bad):
        with pytest.raises(UuidFormatError):
            build_uuid_record(bad)


# =============================================================================
# Chain Tests
# =============================================================================

class TestRecordChain:
    """Tests for MultiRecord area assembly."""

    def test_empty_chain(self):
        assert assemble_area([]) == b""
        assert MultiRecordArea().build() == b""

    def test_end_of_list_only_on_last(self):
        """Test that the EOL flag is set on the last record and cleared elsewhere."""
        records = [
            MultiRecord(0xC0, b"\x01", end_of_list=True),
            MultiRecord(0xC1, b"\x02\x03"),
        ]
        data = assemble_area(records)
        assert len(data) == 6 + 7
        assert data[1] == 0x02
        assert data[6 + 1] == 0x82
        assert sum(data[6:11]) % 256 == 0

    def test_uuid_area(self):
        data = MultiRecordArea().add_uuid(SAMPLE_UUID).build()
        assert data[:5] == bytes([0x03, 0x82, 0x11, 0x79, 0xF1])
        assert data[5:] == SAMPLE_PAYLOAD

    def test_duplicate_uuid(self):
        area = MultiRecordArea().add_uuid(SAMPLE_UUID)
        with pytest.raises(RecordSlotError):
            area.add_uuid("ffffffff-ffff-ffff-ffff-ffffffffffff")
        assert len(area) == 1

    def test_other_subtypes_coexist(self):
        area = MultiRecordArea()
        area.add_uuid(SAMPLE_UUID)
        area.add_record(MultiRecord(MultiRecordType.MGMT_ACCESS, b"\x02host"))
        area.add_record(MultiRecord(0xC0, b"oem"))
        area.add_record(MultiRecord(0xC0, b"oem"))
        assert len(area.records) == 4


# =============================================================================
# Parsing Tests
# =============================================================================

class TestParseChain:
    """Tests for walking a record chain."""

    @pytest.fixture
    def chain(self) -> bytes:
        return assemble_area([
            build_uuid_record(SAMPLE_UUID),
            MultiRecord(0xC0, b"vendor data"),
        ])

    def test_round_trip(self, chain: bytes):
        records = parse_multirecord_area(chain)
        assert len(records) == 2
        assert records[0].system_uuid() == SAMPLE_UUID.lower()
        assert not records[0].end_of_list
        assert records[1].payload == b"vendor data"
        assert records[1].end_of_list

    def test_offset(self, chain: bytes):
        records = parse_multirecord_area(bytes(8) + chain, offset=8)
        assert len(records) == 2

    def test_stops_at_end_of_list(self, chain: bytes):
        """Test that data after the last record is ignored."""
        assert len(parse_multirecord_area(chain + b"\xff" * 7)) == 2

    def test_header_checksum(self, chain: bytes):
        data = bytearray(chain)
        data[4] ^= 0x01
        with pytest.raises(ChecksumError) as exc_info:
            parse_multirecord_area(bytes(data))
        assert exc_info.value.what == "MultiRecord header"

    def test_payload_checksum(self, chain: bytes):
        data = bytearray(chain)
        data[6] ^= 0x01
        with pytest.raises(ChecksumError) as exc_info:
            parse_multirecord_area(bytes(data))
        assert exc_info.value.what == "MultiRecord payload"

    def test_bad_version(self):
        header = bytes([0xC0, 0x81, 0x00, 0x00])
        data = header + bytes([(-sum(header)) & 0xFF])
        with pytest.raises(FormatVersionError):
            parse_multirecord_area(data)

    def test_truncated_header(self, chain: bytes):
        with pytest.raises(AreaBoundsError):
            parse_multirecord_area(chain[:3])

    def test_truncated_payload(self, chain: bytes):
        with pytest.raises(AreaBoundsError):
            parse_multirecord_area(chain[:10])

    def test_missing_end_of_list(self):
        """Test that a chain without an EOL record runs into the end of data."""
        data = MultiRecord(0xC0, b"x").to_bytes()
        with pytest.raises(AreaBoundsError):
            parse_multirecord_area(data)
