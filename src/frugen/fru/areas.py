"""
FRU Info Areas
==============

This module builds and decodes the three "info" areas of a FRU image:
chassis, board and product. They share one layout:

    Header (3 bytes, 6 for the board area)
    Mandatory fields, in a fixed order
    Custom fields, in caller order
    0xC1 end-of-fields marker
    Zero padding up to the next 8-byte boundary
    Zero checksum (last byte of the area)

Mandatory Fields
----------------
    Chassis: part number, serial number
    Board:   manufacturer, product name, serial number, part number, FRU file id
    Product: manufacturer, product name, part number, version, serial number,
             asset tag, FRU file id

Usage
-----
    >>> from frugen.fru.areas import BoardInfo, build_board_area
    >>> board = BoardInfo(manufacturer="ACME", product_name="Widget",
    ...                   serial="001", part_number="PN1")
    >>> data = build_board_area(board)
    >>> len(data) % 8
    0

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3,
  sections 10 (Chassis Info), 11 (Board Info) and 12 (Product Info)
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, ClassVar, Optional, Sequence, Union
import logging

from frugen.errors import (
    AreaBoundsError,
    AreaTypeError,
    ChassisTypeError,
    FieldValueError,
    FormatVersionError,
    FruArgumentError,
)
from frugen.fru.checksum import zero_checksum
from frugen.fru.fields import (
    TYPELEN_END_OF_FIELDS,
    EncodingPolicy,
    Field,
    FieldValue,
    decode,
    to_field,
)
from frugen.fru.records import (
    DATE_UNSPECIFIED,
    FRU_VERSION,
    MANDATORY_FIELDS,
    AreaType,
    ChassisType,
    InfoAreaHeader,
    Language,
    blocks_for,
    bytes_for,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Manufacturing dates count minutes from this moment
FRU_EPOCH = datetime(1996, 1, 1, tzinfo=timezone.utc)

# An all-zero timestamp means "no date given"
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MAX_DATE_MINUTES = 0xFFFFFF
MAX_AREA_BLOCKS = 0xFF

FieldInput = Union[Field, FieldValue, str]


def _coerce(item: Union[FieldInput, bytes]) -> Union[Field, FieldValue]:
    """Turn plain str/bytes into an AUTO FieldValue."""
    if isinstance(item, (str, bytes)):
        return FieldValue(item)
    return item


def _field_attr(member: IntEnum) -> str:
    """Attribute holding a mandatory field, e.g. BoardField.FILE_ID -> file_id."""
    return member.name.lower()


def _mandatory_fields(info: Any) -> list[Union[Field, FieldValue]]:
    return [getattr(info, _field_attr(m)) for m in MANDATORY_FIELDS[info.area_type]]


def _mandatory_kwargs(area_type: AreaType, values: list[FieldValue]) -> dict:
    return {_field_attr(m): values[m] for m in MANDATORY_FIELDS[area_type]}


# =============================================================================
# Exploded Areas
# =============================================================================

@dataclass
class ChassisInfo:
    """
    Chassis info area contents.

    Attributes:
        chassis_type: SMBIOS chassis type code
        part_number: Chassis part number
        serial: Chassis serial number
        custom: Additional fields, written after the mandatory ones
    """
    area_type: ClassVar[AreaType] = AreaType.CHASSIS

    chassis_type: int = ChassisType.UNKNOWN
    part_number: FieldInput = ""
    serial: FieldInput = ""
    custom: list[FieldInput] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.part_number = _coerce(self.part_number)
        self.serial = _coerce(self.serial)
        self.custom = [_coerce(item) for item in self.custom]

    def mandatory(self) -> list[Union[Field, FieldValue]]:
        """Mandatory fields in wire order."""
        return _mandatory_fields(self)

    @classmethod
    def from_fields(
        cls,
        header: InfoAreaHeader,
        mandatory: list[FieldValue],
        custom: list[FieldValue],
    ) -> "ChassisInfo":
        return cls(
            header.langtype,
            **_mandatory_kwargs(cls.area_type, mandatory),
            custom=custom,
        )


@dataclass
class BoardInfo:
    """
    Board info area contents.

    Attributes:
        language: Language code byte
        mfg_date: Manufacturing date, None if unspecified (naive means UTC)
        manufacturer: Board manufacturer
        product_name: Board product name
        serial: Board serial number
        part_number: Board part number
        file_id: FRU file id
        custom: Additional fields, written after the mandatory ones
    """
    area_type: ClassVar[AreaType] = AreaType.BOARD

    language: int = Language.ENGLISH
    mfg_date: Optional[datetime] = None
    manufacturer: FieldInput = ""
    product_name: FieldInput = ""
    serial: FieldInput = ""
    part_number: FieldInput = ""
    file_id: FieldInput = ""
    custom: list[FieldInput] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.manufacturer = _coerce(self.manufacturer)
        self.product_name = _coerce(self.product_name)
        self.serial = _coerce(self.serial)
        self.part_number = _coerce(self.part_number)
        self.file_id = _coerce(self.file_id)
        self.custom = [_coerce(item) for item in self.custom]

    def mandatory(self) -> list[Union[Field, FieldValue]]:
        """Mandatory fields in wire order."""
        return _mandatory_fields(self)

    @classmethod
    def from_fields(
        cls,
        header: InfoAreaHeader,
        mandatory: list[FieldValue],
        custom: list[FieldValue],
    ) -> "BoardInfo":
        return cls(
            header.langtype,
            minutes_to_date(header.mfg_minutes),
            **_mandatory_kwargs(cls.area_type, mandatory),
            custom=custom,
        )


@dataclass
class ProductInfo:
    """
    Product info area contents.

    Attributes:
        language: Language code byte
        manufacturer: Product manufacturer
        product_name: Product name
        part_number: Product part/model number
        version: Product version
        serial: Product serial number
        asset_tag: Asset tag
        file_id: FRU file id
        custom: Additional fields, written after the mandatory ones
    """
    area_type: ClassVar[AreaType] = AreaType.PRODUCT

    language: int = Language.ENGLISH
    manufacturer: FieldInput = ""
    product_name: FieldInput = ""
    part_number: FieldInput = ""
    version: FieldInput = ""
    serial: FieldInput = ""
    asset_tag: FieldInput = ""
    file_id: FieldInput = ""
    custom: list[FieldInput] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.manufacturer = _coerce(self.manufacturer)
        self.product_name = _coerce(self.product_name)
        self.part_number = _coerce(self.part_number)
        self.version = _coerce(self.version)
        self.serial = _coerce(self.serial)
        self.asset_tag = _coerce(self.asset_tag)
        self.file_id = _coerce(self.file_id)
        self.custom = [_coerce(item) for item in self.custom]

    def mandatory(self) -> list[Union[Field, FieldValue]]:
        """Mandatory fields in wire order."""
        return _mandatory_fields(self)

    @classmethod
    def from_fields(
        cls,
        header: InfoAreaHeader,
        mandatory: list[FieldValue],
        custom: list[FieldValue],
    ) -> "ProductInfo":
        return cls(
            header.langtype,
            **_mandatory_kwargs(cls.area_type, mandatory),
            custom=custom,
        )


InfoArea = Union[ChassisInfo, BoardInfo, ProductInfo]

_INFO_CLASSES: dict[AreaType, type] = {
    AreaType.CHASSIS: ChassisInfo,
    AreaType.BOARD: BoardInfo,
    AreaType.PRODUCT: ProductInfo,
}


# =============================================================================
# Manufacturing Date
# =============================================================================

def date_to_minutes(date: Optional[datetime]) -> int:
    """
    Convert a manufacturing date to minutes since 1996-01-01 00:00 UTC.

    None and the Unix epoch both mean "unspecified" and give 0. Naive
    datetimes are taken to be UTC.

    Raises:
        FruArgumentError: If the date is before 1996 or past the 24-bit range
    """
    if date is None:
        return DATE_UNSPECIFIED
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    if date == UNIX_EPOCH:
        return DATE_UNSPECIFIED

    if date < FRU_EPOCH:
        raise FruArgumentError(
            f"Manufacturing date {date.isoformat()} is before 1996-01-01"
        )
    minutes = int((date - FRU_EPOCH).total_seconds()) // 60
    if minutes > MAX_DATE_MINUTES:
        raise FruArgumentError(
            f"Manufacturing date {date.isoformat()} does not fit in 24 bits"
        )
    return minutes


def minutes_to_date(minutes: int) -> Optional[datetime]:
    """Convert a stored date back to an aware UTC datetime (None if unspecified)."""
    if minutes == DATE_UNSPECIFIED:
        return None
    return FRU_EPOCH + timedelta(minutes=minutes)


# =============================================================================
# Building
# =============================================================================

def build_info_area(
    area_type: AreaType,
    langtype: int,
    fields: Sequence[FieldInput],
    custom: Sequence[FieldInput] = (),
    mfg_date: Optional[datetime] = None,
    policy: EncodingPolicy = EncodingPolicy.AUTO,
) -> bytes:
    """
    Build a chassis, board or product info area.

    Args:
        area_type: CHASSIS, BOARD or PRODUCT
        langtype: Language code, or chassis type for the chassis area
        fields: The mandatory fields, in wire order
        custom: Custom fields, written after the mandatory ones
        mfg_date: Manufacturing date (board area only)
        policy: Encoding policy for fields that are not pre-encoded

    Returns:
        The area bytes, a multiple of 8 long, summing to zero

    Raises:
        AreaTypeError: If area_type has no info-area layout
        FruArgumentError: If the inputs cannot be encoded
    """
    if not area_type.is_info_area:
        raise AreaTypeError(
            f"{area_type.get_description()} is not an info area"
        )

    expected = len(MANDATORY_FIELDS[area_type])
    if len(fields) != expected:
        raise FruArgumentError(
            f"{area_type.get_description()} needs {expected} mandatory fields, "
            f"got {len(fields)}"
        )

    if not 0 <= langtype <= 0xFF:
        raise FruArgumentError(f"Language/type byte out of range: {langtype}")

    minutes = DATE_UNSPECIFIED
    if area_type.has_date:
        minutes = date_to_minutes(mfg_date)

    # Encode everything up front so a bad field leaves nothing half built
    encoded = [to_field(_coerce(item), policy) for item in fields]
    extra = [to_field(_coerce(item), policy) for item in custom]

    # A custom field whose type/length byte is 0xC1 would end the field list
    for index, fru_field in enumerate(extra):
        if fru_field.typelen.to_byte() == TYPELEN_END_OF_FIELDS:
            raise FieldValueError(
                f"Custom field {index} of the {area_type.get_description()} "
                f"encodes as the end-of-fields marker 0x{TYPELEN_END_OF_FIELDS:02X}"
            )
    encoded += extra

    header = InfoAreaHeader(area_type, langtype=langtype, mfg_minutes=minutes)

    # Header, fields, end-of-fields marker, checksum
    used = header.size + sum(f.size for f in encoded) + 2
    blocks = blocks_for(used)
    if blocks > MAX_AREA_BLOCKS:
        raise FruArgumentError(
            f"{area_type.get_description()} needs {blocks} blocks, "
            f"maximum is {MAX_AREA_BLOCKS}"
        )
    header = replace(header, blocks=blocks)

    data = bytearray(bytes_for(blocks))
    cursor = header.size
    data[:cursor] = header.to_bytes()
    for fru_field in encoded:
        raw = fru_field.to_bytes()
        data[cursor:cursor + len(raw)] = raw
        cursor += len(raw)
    data[cursor] = TYPELEN_END_OF_FIELDS
    data[-1] = zero_checksum(data[:-1])

    logger.debug(
        f"Built {area_type.get_description()}: {len(encoded)} fields, "
        f"{blocks} blocks"
    )
    return bytes(data)


def build_chassis_area(
    info: ChassisInfo, policy: EncodingPolicy = EncodingPolicy.AUTO
) -> bytes:
    """
    Build a chassis info area.

    Raises:
        ChassisTypeError: If the chassis type is not an SMBIOS code
    """
    if not ChassisType.is_valid(info.chassis_type):
        raise ChassisTypeError(info.chassis_type)
    return build_info_area(
        AreaType.CHASSIS,
        info.chassis_type,
        info.mandatory(),
        info.custom,
        policy=policy,
    )


def build_board_area(
    info: BoardInfo, policy: EncodingPolicy = EncodingPolicy.AUTO
) -> bytes:
    """Build a board info area."""
    return build_info_area(
        AreaType.BOARD,
        info.language,
        info.mandatory(),
        info.custom,
        mfg_date=info.mfg_date,
        policy=policy,
    )


def build_product_area(
    info: ProductInfo, policy: EncodingPolicy = EncodingPolicy.AUTO
) -> bytes:
    """Build a product info area."""
    return build_info_area(
        AreaType.PRODUCT,
        info.language,
        info.mandatory(),
        info.custom,
        policy=policy,
    )


def build_area(
    info: InfoArea, policy: EncodingPolicy = EncodingPolicy.AUTO
) -> bytes:
    """Build whichever info area the given contents describe."""
    builders = {
        AreaType.CHASSIS: build_chassis_area,
        AreaType.BOARD: build_board_area,
        AreaType.PRODUCT: build_product_area,
    }
    return builders[info.area_type](info, policy)


# =============================================================================
# Decoding
# =============================================================================

def _read_field(area: bytes, cursor: int, limit: int) -> tuple[Field, int]:
    """Read one field, never looking past limit."""
    if cursor >= limit:
        raise AreaBoundsError(
            f"Field at offset {cursor} starts past the end of the area",
            needed=cursor + 1,
            available=limit,
        )
    return Field.from_bytes(area[:limit], cursor)


def decode_info_area(area_type: AreaType, data: bytes) -> InfoArea:
    """
    Decode a chassis, board or product info area.

    Args:
        area_type: CHASSIS, BOARD or PRODUCT
        data: Area bytes (may be followed by unrelated data)

    Returns:
        ChassisInfo, BoardInfo or ProductInfo holding decoded FieldValues

    Raises:
        AreaTypeError: If area_type has no info-area layout
        FormatVersionError: If the area version byte is not 1
        AreaBoundsError: If a field or the declared size runs past the data,
            or the end-of-fields marker is missing
    """
    if not area_type.is_info_area:
        raise AreaTypeError(
            f"{area_type.get_description()} is not an info area"
        )

    header = InfoAreaHeader.from_bytes(area_type, data)
    if header.version != FRU_VERSION:
        raise FormatVersionError(
            f"{area_type.get_description()} version {header.version}, "
            f"expected {FRU_VERSION}"
        )

    size = bytes_for(header.blocks)
    if size > len(data):
        raise AreaBoundsError(
            f"{area_type.get_description()} declares {size} bytes, "
            f"only {len(data)} available",
            needed=size,
            available=len(data),
        )
    if size < header.size + 2:
        raise AreaBoundsError(
            f"{area_type.get_description()} declares {size} bytes, "
            f"too small for its header",
            needed=header.size + 2,
            available=size,
        )

    # The last byte is the checksum, never a field
    limit = size - 1
    cursor = header.size

    mandatory = []
    for _ in MANDATORY_FIELDS[area_type]:
        fru_field, consumed = _read_field(data, cursor, limit)
        mandatory.append(decode(fru_field))
        cursor += consumed

    custom = []
    while True:
        if cursor >= limit:
            raise AreaBoundsError(
                f"{area_type.get_description()} has no end-of-fields marker",
                needed=cursor + 1,
                available=limit,
            )
        if data[cursor] == TYPELEN_END_OF_FIELDS:
            break
        fru_field, consumed = _read_field(data, cursor, limit)
        custom.append(decode(fru_field))
        cursor += consumed

    logger.debug(
        f"Decoded {area_type.get_description()}: {len(custom)} custom fields"
    )
    return _INFO_CLASSES[area_type].from_fields(header, mandatory, custom)


def decode_chassis_area(data: bytes) -> ChassisInfo:
    """Decode a chassis info area."""
    return decode_info_area(AreaType.CHASSIS, data)


def decode_board_area(data: bytes) -> BoardInfo:
    """Decode a board info area."""
    return decode_info_area(AreaType.BOARD, data)


def decode_product_area(data: bytes) -> ProductInfo:
    """Decode a product info area."""
    return decode_info_area(AreaType.PRODUCT, data)
