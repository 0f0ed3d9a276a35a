"""
Info Area Unit Tests
====================

This module contains tests for building and decoding the chassis, board
and product info areas.

Test Categories
---------------
1. Layout: header, field order, end marker, padding and checksum
2. Board: manufacturing date handling and the reference scenario
3. Chassis/Product: type validation and custom fields
4. Decoding: round trips and format violations
"""

from datetime import datetime, timezone

import pytest

from frugen.fru import (
    AreaType,
    BoardField,
    BoardInfo,
    ChassisInfo,
    ChassisType,
    EncodingPolicy,
    FieldType,
    FieldValue,
    Language,
    ProductField,
    ProductInfo,
    build_area,
    build_board_area,
    build_chassis_area,
    build_info_area,
    build_product_area,
    decode_board_area,
    decode_chassis_area,
    decode_info_area,
    decode_product_area,
    encode,
)
from frugen.fru.areas import date_to_minutes, minutes_to_date
from frugen.errors import (
    AreaBoundsError,
    AreaTypeError,
    ChassisTypeError,
    FieldLengthError,
    FieldValueError,
    FormatVersionError,
    FruArgumentError,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def board_info() -> BoardInfo:
    """
    The reference board: ACME / Widget / 001 / PN1 / empty file id,
    English, manufactured 2021-01-01 00:00 UTC.
    """
    return BoardInfo(
        language=Language.ENGLISH,
        mfg_date=datetime(2021, 1, 1, tzinfo=timezone.utc),
        manufacturer="ACME",
        product_name="Widget",
        serial="001",
        part_number="PN1",
        file_id="",
    )


@pytest.fixture
def product_info() -> ProductInfo:
    return ProductInfo(
        manufacturer="ACME",
        product_name="Gadget Pro",
        part_number="G-1000",
        version="1.0",
        serial="PS123456",
        asset_tag="asset 42",
        file_id="",
        custom=["extra", FieldValue(b"\x01\x02\x03")],
    )


# =============================================================================
# Layout Tests
# =============================================================================

class TestAreaLayout:
    """Tests for the generic info-area layout."""

    def test_board_scenario_layout(self, board_info: BoardInfo):
        """
        Test the byte layout of the reference board.

        Fields: ACME (6-bit, 4 bytes), Widget (text, 7), 001 (BCD, 3),
        PN1 (6-bit, 4), empty (1) = 19 bytes. With the 6-byte header, end
        marker and checksum that is 27 bytes, rounded up to 32.
        """
        data = build_board_area(board_info)
        assert len(data) == 32
        assert data[0] == 0x01          # Version
        assert data[1] == 4             # Blocks
        assert data[2] == 25            # English
        assert data[25] == 0xC1         # End of fields
        assert data[26:31] == bytes(5)  # Padding
        assert sum(data) % 256 == 0

    def test_board_date_bytes(self, board_info: BoardInfo):
        """Test 2021-01-01 is stored as 13150080 minutes, little-endian."""
        data = build_board_area(board_info)
        assert data[3:6] == bytes([0x80, 0xA7, 0xC8])

    def test_mandatory_order(self, board_info: BoardInfo):
        """Test that mandatory fields follow the header in wire order."""
        data = build_board_area(board_info)
        expected = b"".join(
            encode(v).to_bytes() for v in ("ACME", "Widget", "001", "PN1", "")
        )
        assert data[6:6 + len(expected)] == expected

    def test_mandatory_indexed_by_field(self, board_info: BoardInfo, product_info: ProductInfo):
        assert board_info.mandatory()[BoardField.FILE_ID] is board_info.file_id
        assert product_info.mandatory()[ProductField.ASSET_TAG] is product_info.asset_tag

    def test_build_area_dispatch(self, board_info: BoardInfo, product_info: ProductInfo):
        """Test that build_area picks the builder matching the contents."""
        assert build_area(board_info) == build_board_area(board_info)
        assert build_area(product_info) == build_product_area(product_info)
        assert build_area(ChassisInfo())[2] == ChassisType.UNKNOWN

    @pytest.mark.parametrize("info", [
        ChassisInfo(),
        ChassisInfo(ChassisType.RACK_MOUNT, "CH-1000", "CS1", ["x" * 63]),
        BoardInfo(),
        ProductInfo(),
        ProductInfo(manufacturer="a" * 60, custom=["b" * 60, "c" * 60]),
    ])
    def test_sizes_and_checksums(self, info):
        """Test that every built area is block sized and sums to zero."""
        builders = {
            AreaType.CHASSIS: build_chassis_area,
            AreaType.BOARD: build_board_area,
            AreaType.PRODUCT: build_product_area,
        }
        data = builders[info.area_type](info)
        assert len(data) % 8 == 0
        assert data[1] * 8 == len(data)
        assert sum(data) % 256 == 0

    def test_empty_chassis(self):
        """Test an all-empty chassis: 3 + 2 + 2 = 7 bytes, one block."""
        data = build_chassis_area(ChassisInfo())
        assert data[:6] == bytes([0x01, 0x01, 0x02, 0xC0, 0xC0, 0xC1])
        assert len(data) == 8

    def test_not_an_info_area(self):
        with pytest.raises(AreaTypeError):
            build_info_area(AreaType.INTERNAL_USE, 0, [])
        with pytest.raises(AreaTypeError):
            build_info_area(AreaType.MULTIRECORD, 0, [])

    def test_wrong_mandatory_count(self):
        with pytest.raises(FruArgumentError):
            build_info_area(AreaType.CHASSIS, ChassisType.UNKNOWN, ["only one"])

    def test_field_too_long(self):
        """Test that a 64-byte payload aborts the whole area."""
        with pytest.raises(FieldLengthError):
            build_board_area(BoardInfo(manufacturer="a" * 64))

    def test_pre_encoded_fields(self):
        """Test that pre-encoded fields are copied as they are."""
        field = encode("1234", FieldType.TEXT)
        data = build_chassis_area(ChassisInfo(part_number=field))
        assert data[3:8] == b"\xc41234"

    def test_text_policy(self, board_info: BoardInfo):
        data = build_board_area(board_info, EncodingPolicy.TEXT)
        decoded = decode_board_area(data)
        assert decoded.manufacturer == FieldValue("ACME", FieldType.TEXT)
        assert decoded.serial == FieldValue("001", FieldType.TEXT)


# =============================================================================
# Manufacturing Date Tests
# =============================================================================

class TestManufacturingDate:
    """Tests for the board manufacturing date."""

    def test_unspecified(self):
        assert date_to_minutes(None) == 0
        assert minutes_to_date(0) is None

    def test_unix_epoch_means_unspecified(self):
        """Test that an all-zero timestamp stores the unspecified value."""
        assert date_to_minutes(datetime(1970, 1, 1)) == 0
        assert date_to_minutes(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_naive_is_utc(self):
        naive = datetime(2021, 1, 1)
        aware = datetime(2021, 1, 1, tzinfo=timezone.utc)
        assert date_to_minutes(naive) == date_to_minutes(aware) == 13150080

    def test_seconds_truncated(self):
        assert date_to_minutes(datetime(1996, 1, 1, 0, 1, 59)) == 1

    def test_before_1996(self):
        with pytest.raises(FruArgumentError):
            date_to_minutes(datetime(1995, 12, 31, 23, 59))

    def test_beyond_24_bits(self):
        with pytest.raises(FruArgumentError):
            date_to_minutes(datetime(2030, 1, 1))

    def test_decoded_date_is_aware_utc(self):
        date = minutes_to_date(13150080)
        assert date == datetime(2021, 1, 1, tzinfo=timezone.utc)
        assert date.tzinfo is not None

    def test_unspecified_board_date(self, board_info: BoardInfo):
        board_info.mfg_date = None
        data = build_board_area(board_info)
        assert data[3:6] == bytes(3)
        assert decode_board_area(data).mfg_date is None


# =============================================================================
# Chassis and Product Tests
# =============================================================================

class TestChassisArea:
    """Tests for the chassis info area."""

    def test_chassis_type_byte(self):
        data = build_chassis_area(ChassisInfo(chassis_type=ChassisType.RACK_MOUNT))
        assert data[2] == 0x17

    @pytest.mark.parametrize("code", [0x00, 0x25, 0xFF])
    def test_invalid_chassis_type(self, code):
        """Test that non-SMBIOS chassis types are rejected before building."""
        with pytest.raises(ChassisTypeError) as exc_info:
            build_chassis_area(ChassisInfo(chassis_type=code))
        assert exc_info.value.code == code

    def test_chassis_type_names(self):
        assert ChassisType.get_name(0x17) == "Rack Mount"
        assert ChassisType.get_name(0x00).startswith("Invalid")

    def test_round_trip(self):
        info = ChassisInfo(ChassisType.MAIN_SERVER, "CH-1000", "CS123", ["rev A"])
        decoded = decode_chassis_area(build_chassis_area(info))
        assert decoded.chassis_type == ChassisType.MAIN_SERVER
        assert decoded.part_number.value == "CH-1000"
        assert decoded.serial.value == "CS123"
        assert [c.value for c in decoded.custom] == ["rev A"]


class TestProductArea:
    """Tests for the product info area."""

    def test_round_trip(self, product_info: ProductInfo):
        decoded = decode_product_area(build_product_area(product_info))
        assert decoded.language == Language.ENGLISH
        assert decoded.manufacturer.value == "ACME"
        assert decoded.product_name.value == "Gadget Pro"
        assert decoded.part_number.value == "G-1000"
        assert decoded.version.value == "1.0"
        assert decoded.serial.value == "PS123456"
        assert decoded.asset_tag.value == "asset 42"
        assert decoded.file_id.value == ""

    def test_custom_fields_in_order(self, product_info: ProductInfo):
        """Test that custom fields follow the mandatory ones, in order."""
        decoded = decode_product_area(build_product_area(product_info))
        assert decoded.custom == [
            FieldValue("extra", FieldType.TEXT),
            FieldValue(b"\x01\x02\x03", FieldType.BINARY),
        ]

    def test_language_byte(self):
        data = build_product_area(ProductInfo(language=Language.DEFAULT))
        assert data[2] == 0


# =============================================================================
# Decoding Tests
# =============================================================================

class TestDecodeArea:
    """Tests for area decoding."""

    def test_board_scenario(self, board_info: BoardInfo):
        decoded = decode_board_area(build_board_area(board_info))
        assert decoded.language == Language.ENGLISH
        assert decoded.mfg_date == datetime(2021, 1, 1, tzinfo=timezone.utc)
        assert decoded.manufacturer == FieldValue("ACME", FieldType.SIXBIT_ASCII)
        assert decoded.product_name == FieldValue("Widget", FieldType.TEXT)
        assert decoded.serial == FieldValue("001", FieldType.BCDPLUS)
        assert decoded.part_number == FieldValue("PN1", FieldType.SIXBIT_ASCII)
        assert decoded.file_id == FieldValue("", FieldType.TEXT)
        assert decoded.custom == []

    def test_reencode_is_identical(self, board_info: BoardInfo, product_info: ProductInfo):
        """Test that building from decoded contents reproduces the bytes."""
        board = build_board_area(board_info)
        assert build_board_area(decode_board_area(board)) == board

        product = build_product_area(product_info)
        assert build_product_area(decode_product_area(product)) == product

    def test_trailing_data_ignored(self, board_info: BoardInfo):
        """Test that bytes after the declared area size are not read."""
        data = build_board_area(board_info) + b"\xff" * 16
        assert decode_board_area(data).manufacturer.value == "ACME"

    def test_generic_decoder(self, product_info: ProductInfo):
        decoded = decode_info_area(AreaType.PRODUCT, build_product_area(product_info))
        assert isinstance(decoded, ProductInfo)

    def test_generic_decoder_rejects_other_areas(self):
        with pytest.raises(AreaTypeError):
            decode_info_area(AreaType.MULTIRECORD, bytes(8))

    def test_bad_version(self, board_info: BoardInfo):
        data = bytearray(build_board_area(board_info))
        data[0] = 0x02
        with pytest.raises(FormatVersionError):
            decode_board_area(bytes(data))

    def test_truncated_area(self, board_info: BoardInfo):
        """Test that a declared size beyond the data is rejected."""
        data = build_board_area(board_info)
        with pytest.raises(AreaBoundsError):
            decode_board_area(data[:16])

    def test_header_too_short(self):
        with pytest.raises(AreaBoundsError):
            decode_board_area(b"\x01\x01\x19")

    def test_missing_end_marker(self):
        """Test that an area without the 0xC1 marker is rejected."""
        data = bytearray(build_chassis_area(ChassisInfo()))
        data[5] = 0x00  # End marker becomes an empty binary field
        with pytest.raises(AreaBoundsError):
            decode_chassis_area(bytes(data))

    def test_field_overruns_area(self):
        """Test that a field claiming more bytes than the area holds is rejected."""
        data = bytearray(build_chassis_area(ChassisInfo()))
        data[3] = 0xFF  # Text, 63 bytes
        with pytest.raises(AreaBoundsError):
            decode_chassis_area(bytes(data))

    def test_zero_size(self):
        with pytest.raises(AreaBoundsError):
            decode_chassis_area(b"\x01\x00\x02\xc0\xc0\xc1\x00\x00")

    @pytest.mark.parametrize("item", ["x", FieldValue("A", FieldType.TEXT)])
    def test_custom_field_like_end_marker(self, item):
        """Test that a custom field encoding as 0xC1 is rejected, not dropped."""
        info = BoardInfo(manufacturer="ACME", custom=[item, "REV2"])
        with pytest.raises(FieldValueError):
            build_board_area(info)

    def test_single_character_custom_fields(self):
        """Test one-character custom fields that do not collide with 0xC1."""
        info = BoardInfo(custom=["X", FieldValue(b"\x07", FieldType.BINARY), "REV2"])
        decoded = decode_board_area(build_board_area(info))
        assert [item.value for item in decoded.custom] == ["X", b"\x07", "REV2"]

    def test_single_character_mandatory_field(self):
        """Test that a 0xC1 mandatory field is still read as a field."""
        data = build_board_area(BoardInfo(manufacturer="x", product_name="Widget"))
        assert data[6] == 0xC1
        decoded = decode_board_area(data)
        assert decoded.manufacturer.value == "x"
        assert decoded.product_name.value == "Widget"
