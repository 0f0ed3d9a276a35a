"""
FRU Field Codec
===============

This module encodes and decodes the individual fields that make up the
chassis, board and product info areas.

Field Format
------------
Every field is a type/length byte followed by the payload:

    Bits 7-6: Type
              00 = Binary (raw bytes)
              01 = BCD plus (2 characters per byte)
              10 = 6-bit ASCII (4 characters per 3 bytes)
              11 = Text (8-bit ASCII, one character per byte)
    Bits 5-0: Payload length in bytes (0-63)

The type/length byte 0xC1 (Text, length 1) never starts a real field in
an info area: it is the end-of-fields sentinel. 0xC0 (Text, length 0) is
an empty field.

Type Detection
--------------
With the AUTO hint the codec picks the most compact representation. It
starts from the narrowest character set and only ever widens:

    BCD plus    '0'-'9', space, '-', '.'
    6-bit ASCII 0x20-0x5F (space to underscore, uppercase only)
    Text        any printable character, plus TAB, CR and LF
    Binary      anything containing another control byte

EncodingPolicy.TEXT skips the packed encodings and starts from Text.

Packing
-------
BCD plus puts the first character of each pair in the high nibble:
    "12-3" -> 0x12 0xB3
6-bit ASCII stores (char - 0x20) as a little-endian bit stream, so the
first character occupies the low 6 bits of the first byte:
    "IPMI" -> 0x29 0xDC 0xA6

Reference
---------
- IPMI Platform Management FRU Information Storage Definition v1.0 rev 1.3,
  section 13 (Type/Length Byte Format)
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union
import logging

from frugen.errors import (
    AreaBoundsError,
    FieldCapacityError,
    FieldLengthError,
    FieldValueError,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

FIELD_MAX_LENGTH = 63
TYPE_SHIFT = 6
LENGTH_MASK = 0x3F

# Characters representable in BCD plus, mapped to their nibble values
BCDPLUS_NIBBLES = {
    **{ord(str(digit)): digit for digit in range(10)},
    ord(" "): 0xA,
    ord("-"): 0xB,
    ord("."): 0xC,
}
BCDPLUS_CHARS = "0123456789 -.???"

SIXBIT_MIN = 0x20
SIXBIT_MAX = 0x5F

# Control characters that do not turn text into binary data
TEXT_CONTROLS = frozenset(b"\t\r\n")


# =============================================================================
# Enumeration Types
# =============================================================================

class FieldType(IntEnum):
    """
    Field encodings.

    The non-negative values are the 2-bit wire type tags. AUTO is only a
    hint asking the codec to pick the best encoding.
    """
    AUTO = -1
    BINARY = 0
    BCDPLUS = 1
    SIXBIT_ASCII = 2
    TEXT = 3

    @classmethod
    def from_name(cls, name: str) -> "FieldType":
        """Look up a field type by its template/command-line name."""
        for ftype in cls:
            if ftype.get_name() == name.lower():
                return ftype
        raise ValueError(f"Unknown field type '{name}'")

    def get_name(self) -> str:
        """Get the template/command-line name of this type."""
        names = {
            FieldType.AUTO: "auto",
            FieldType.BINARY: "binary",
            FieldType.BCDPLUS: "bcdplus",
            FieldType.SIXBIT_ASCII: "6bitascii",
            FieldType.TEXT: "text",
        }
        return names[self]


class EncodingPolicy(Enum):
    """
    How AUTO fields are typed.

    AUTO picks the most compact encoding; TEXT forces plain ASCII for
    anything that is not binary data.
    """
    AUTO = "auto"
    TEXT = "text"


# =============================================================================
# Value Types
# =============================================================================

@dataclass(frozen=True)
class TypeLen:
    """
    A decoded type/length byte.

    Raises:
        FieldLengthError: If length is outside 0..63
    """
    type: FieldType
    length: int

    def __post_init__(self) -> None:
        if self.type == FieldType.AUTO:
            raise ValueError("AUTO is not a wire field type")
        if self.length < 0:
            raise ValueError(f"Negative field length: {self.length}")
        if self.length > FIELD_MAX_LENGTH:
            raise FieldLengthError(self.length)

    def to_byte(self) -> int:
        """Pack into a single type/length byte."""
        return (self.type << TYPE_SHIFT) | self.length

    @classmethod
    def from_byte(cls, value: int) -> "TypeLen":
        """Unpack a type/length byte."""
        return cls(FieldType(value >> TYPE_SHIFT), value & LENGTH_MASK)


TYPELEN_EMPTY = TypeLen(FieldType.TEXT, 0).to_byte()        # 0xC0
TYPELEN_END_OF_FIELDS = TypeLen(FieldType.TEXT, 1).to_byte()  # 0xC1


@dataclass(frozen=True)
class FieldValue:
    """
    A field value as seen by callers.

    Attributes:
        value: Text (str) or raw data (bytes)
        type: Encoding hint when building; the stored wire type when
            returned by a decoder
    """
    value: Union[str, bytes] = ""
    type: FieldType = FieldType.AUTO

    def display(self) -> str:
        """Printable form: hex for binary data, the text otherwise."""
        if isinstance(self.value, bytes):
            return self.value.hex().upper()
        return self.value


@dataclass(frozen=True)
class Field:
    """
    An encoded field: type tag plus wire payload.

    Attributes:
        type: Wire type (never AUTO)
        payload: Encoded payload bytes, at most 63
    """
    type: FieldType
    payload: bytes = b""

    def __post_init__(self) -> None:
        # Validates type and length
        TypeLen(self.type, len(self.payload))

    @property
    def typelen(self) -> TypeLen:
        """The field's type/length descriptor."""
        return TypeLen(self.type, len(self.payload))

    @property
    def size(self) -> int:
        """Wire size: type/length byte plus payload."""
        return 1 + len(self.payload)

    def to_bytes(self) -> bytes:
        """Serialize the field to wire format."""
        return bytes([self.typelen.to_byte()]) + self.payload

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> tuple["Field", int]:
        """
        Parse a field from wire data.

        Args:
            data: The raw data
            offset: Offset of the type/length byte

        Returns:
            Tuple of (Field, bytes_consumed)

        Raises:
            AreaBoundsError: If the field runs past the end of data
        """
        if offset >= len(data):
            raise AreaBoundsError(
                f"Field at offset {offset} is past the end of data",
                needed=offset + 1,
                available=len(data),
            )
        typelen = TypeLen.from_byte(data[offset])
        end = offset + 1 + typelen.length
        if end > len(data):
            raise AreaBoundsError(
                f"Field at offset {offset} declares {typelen.length} bytes, "
                f"only {len(data) - offset - 1} available",
                needed=end,
                available=len(data),
            )
        return cls(typelen.type, bytes(data[offset + 1:end])), end - offset


# =============================================================================
# Type Detection
# =============================================================================

def _as_bytes(data: Union[str, bytes]) -> bytes:
    """Get the raw bytes of a value, rejecting non-ASCII text."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    try:
        return data.encode("ascii")
    except UnicodeEncodeError as e:
        raise FieldValueError(f"Non-ASCII text cannot be encoded: {data!r}") from e


def _payload_length(ftype: FieldType, nchars: int) -> int:
    """Encoded payload length for nchars source characters."""
    if ftype == FieldType.BCDPLUS:
        return (nchars + 1) // 2
    if ftype == FieldType.SIXBIT_ASCII:
        return (nchars * 3 + 3) // 4
    return nchars


def classify(
    data: Union[str, bytes],
    hint: FieldType = FieldType.AUTO,
    policy: EncodingPolicy = EncodingPolicy.AUTO,
) -> TypeLen:
    """
    Pick the encoding for a value and compute its payload length.

    Args:
        data: Text to encode, or bytes for binary data
        hint: A forced encoding, or AUTO to detect one
        policy: Where AUTO detection starts (ignored for forced hints)

    Returns:
        TypeLen of the resulting field

    Raises:
        FieldLengthError: If the encoded payload would exceed 63 bytes
        FieldValueError: If text is not ASCII

    Example:
        >>> classify("1234-56")
        TypeLen(type=<FieldType.BCDPLUS: 1>, length=4)
        >>> classify("IPMI")
        TypeLen(type=<FieldType.SIXBIT_ASCII: 2>, length=3)
    """
    raw = _as_bytes(data)

    if hint != FieldType.AUTO:
        return TypeLen(hint, _payload_length(hint, len(raw)))

    if not raw:
        return TypeLen(FieldType.TEXT, 0)

    if isinstance(data, (bytes, bytearray)):
        # Caller supplied raw data; trust it and don't try to optimize
        return TypeLen(FieldType.BINARY, len(raw))

    if policy == EncodingPolicy.AUTO:
        ftype = FieldType.BCDPLUS
    else:
        ftype = FieldType.TEXT

    for byte in raw:
        if byte < SIXBIT_MIN and byte not in TEXT_CONTROLS:
            # Binary is the widest type, no use checking any further
            ftype = FieldType.BINARY
            break

        if policy != EncodingPolicy.AUTO:
            continue

        if ftype < FieldType.TEXT and not SIXBIT_MIN <= byte <= SIXBIT_MAX:
            ftype = FieldType.TEXT
            continue

        if ftype < FieldType.SIXBIT_ASCII and byte not in BCDPLUS_NIBBLES:
            ftype = FieldType.SIXBIT_ASCII

    logger.debug(f"Classified {data!r} as {ftype.get_name()}")
    return TypeLen(ftype, _payload_length(ftype, len(raw)))


# =============================================================================
# Encoding
# =============================================================================

def _pack_bcdplus(raw: bytes, length: int) -> bytes:
    """Pack characters two per byte, first one in the high nibble."""
    nibbles = []
    for byte in raw:
        if byte not in BCDPLUS_NIBBLES:
            raise FieldValueError(
                f"Character {chr(byte)!r} cannot be encoded as BCD plus"
            )
        nibbles.append(BCDPLUS_NIBBLES[byte])

    # An odd-length string is padded with a space
    if len(nibbles) % 2:
        nibbles.append(BCDPLUS_NIBBLES[ord(" ")])

    packed = bytes(
        (nibbles[i] << 4) | nibbles[i + 1] for i in range(0, len(nibbles), 2)
    )
    return packed[:length]


def _pack_6bit(raw: bytes, length: int) -> bytes:
    """Pack 6-bit codes into a little-endian bit stream."""
    value = 0
    for i, byte in enumerate(raw):
        if not SIXBIT_MIN <= byte <= SIXBIT_MAX:
            raise FieldValueError(
                f"Character {chr(byte)!r} cannot be encoded as 6-bit ASCII"
            )
        value |= (byte - SIXBIT_MIN) << (6 * i)
    return value.to_bytes(length, "little")


def encode(
    data: Union[str, bytes],
    hint: FieldType = FieldType.AUTO,
    policy: EncodingPolicy = EncodingPolicy.AUTO,
) -> Field:
    """
    Encode a value into a field.

    Args:
        data: Text to encode, or bytes for binary data
        hint: A forced encoding, or AUTO to detect one
        policy: Where AUTO detection starts

    Returns:
        The encoded Field

    Raises:
        FieldLengthError: If the encoded payload would exceed 63 bytes
        FieldValueError: If the value does not fit the forced encoding

    Example:
        >>> encode("IPMI").to_bytes().hex()
        '8329dca6'
    """
    typelen = classify(data, hint, policy)
    raw = _as_bytes(data)

    if typelen.type == FieldType.SIXBIT_ASCII:
        payload = _pack_6bit(raw, typelen.length)
    elif typelen.type == FieldType.BCDPLUS:
        payload = _pack_bcdplus(raw, typelen.length)
    else:
        payload = raw

    return Field(typelen.type, payload)


def to_field(
    item: Union[Field, FieldValue, str, bytes],
    policy: EncodingPolicy = EncodingPolicy.AUTO,
) -> Field:
    """
    Get an encoded field from any accepted field input.

    Pre-encoded fields are used as is; values are encoded according to
    their type hint.
    """
    if isinstance(item, Field):
        return item
    if isinstance(item, FieldValue):
        return encode(item.value, item.type, policy)
    return encode(item, FieldType.AUTO, policy)


# =============================================================================
# Decoding
# =============================================================================

def decoded_length(field: Field) -> int:
    """Number of characters (or bytes) a field decodes to, before stripping."""
    length = len(field.payload)
    if field.type == FieldType.BCDPLUS:
        return length * 2
    if field.type == FieldType.SIXBIT_ASCII:
        return length * 4 // 3
    return length


def _unpack_6bit(payload: bytes) -> str:
    value = int.from_bytes(payload, "little")
    count = len(payload) * 4 // 3
    chars = bytes(
        ((value >> (6 * i)) & 0x3F) + SIXBIT_MIN for i in range(count)
    )
    # Strip trailing spaces that emerge when the original string
    # was shorter than a multiple of 4
    return chars.decode("ascii").rstrip(" ")


def _unpack_bcdplus(payload: bytes) -> str:
    chars = []
    for byte in payload:
        chars.append(BCDPLUS_CHARS[byte >> 4])
        chars.append(BCDPLUS_CHARS[byte & 0x0F])
    # Strip the space that pads an odd-length string
    return "".join(chars).rstrip(" ")


def decode(field: Field, capacity: Optional[int] = None) -> FieldValue:
    """
    Decode a field back into a value.

    Args:
        field: The encoded field
        capacity: Size of the destination, including one byte for the
            terminator; None means unlimited

    Returns:
        FieldValue carrying the field's wire type; bytes for binary
        fields, str for all others

    Raises:
        FieldCapacityError: If capacity is too small (nothing is decoded)
    """
    needed = decoded_length(field) + 1
    if capacity is not None and capacity < needed:
        raise FieldCapacityError(needed, capacity)

    if field.type == FieldType.SIXBIT_ASCII:
        value: Union[str, bytes] = _unpack_6bit(field.payload)
    elif field.type == FieldType.BCDPLUS:
        value = _unpack_bcdplus(field.payload)
    elif field.type == FieldType.TEXT:
        value = field.payload.decode("ascii", errors="replace")
    else:
        value = bytes(field.payload)

    return FieldValue(value, field.type)
