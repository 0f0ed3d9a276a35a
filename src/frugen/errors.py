"""
frugen Error Hierarchy
======================

This module defines the exception hierarchy for the whole frugen package.
All exceptions inherit from FruError, allowing callers to catch every
codec-related error with a single except clause if desired.

Exception Hierarchy
-------------------
FruError (base)
├── FruArgumentError (rejected before anything is built)
│   ├── FieldLengthError - encoded payload longer than 63 bytes
│   ├── FieldValueError - value not representable in the forced encoding
│   ├── ChassisTypeError - invalid SMBIOS chassis type code
│   ├── AreaTypeError - area type does not match its slot
│   ├── UuidFormatError - malformed UUID string
│   └── RecordSlotError - record slot already populated
├── FruFormatError (format violation found while decoding)
│   ├── FormatVersionError - bad version nibble, reserved bits or pad byte
│   ├── ChecksumError - zero checksum does not hold
│   └── AreaBoundsError - declared size runs past the end of the buffer
│       └── FruReadError - input stream ended early
└── FieldCapacityError - destination too small for the decoded value

Memory exhaustion is not wrapped: Python's own MemoryError propagates
untouched so the underlying condition is preserved.

None of the codec modules print or exit. Turning an exception into a
message and an exit status is the job of frugen.cli.errors.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class FruError(Exception):
    """
    Base exception for all frugen errors.

    Callers can catch everything the codec raises with one clause:

        try:
            image = FruBuilder().set_board(board).build()
        except FruError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Invalid Arguments
# =============================================================================

class FruArgumentError(FruError):
    """
    Invalid input to a builder.

    Raised before any output buffer is produced, so a failing build never
    leaves a partially assembled area behind.
    """
    pass


class FieldLengthError(FruArgumentError):
    """
    Encoded field payload exceeds the 6-bit length limit.

    The type/length byte reserves 6 bits for the payload length, so no
    field can carry more than 63 bytes after encoding.
    """

    def __init__(self, length: int, limit: int = 63, message: str = ""):
        self.length = length
        self.limit = limit
        if not message:
            message = f"field payload of {length} bytes exceeds the {limit}-byte limit"
        super().__init__(message)


class FieldValueError(FruArgumentError):
    """
    Value cannot be represented in the requested encoding.

    Examples:
        - letters forced into BCD plus
        - lowercase characters forced into 6-bit ASCII
        - non-ASCII text
    """
    pass


class ChassisTypeError(FruArgumentError):
    """Chassis type code outside the SMBIOS chassis type table."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"invalid chassis type 0x{code:02X}")


class AreaTypeError(FruArgumentError):
    """
    Area type does not fit where it was used.

    Raised when an area is placed in a container slot belonging to another
    area type, or when an info-area builder is asked for an area type that
    has no info-area layout (internal use, multirecord).
    """
    pass


class UuidFormatError(FruArgumentError):
    """
    UUID string is malformed.

    A UUID must be 32 hex digits, optionally with 4 dashes (36 characters).
    """
    pass


class RecordSlotError(FruArgumentError):
    """Attempt to populate a record slot that already holds a record."""
    pass


# =============================================================================
# Decoding Exceptions
# =============================================================================

class FruFormatError(FruError):
    """
    Invalid FRU binary format.

    Raised when decoding data that:
    - has a wrong format version, reserved bits or pad byte
    - fails a checksum
    - declares sizes or offsets beyond the available data
    """
    pass


class FormatVersionError(FruFormatError):
    """Version nibble, reserved bits or pad byte hold an unexpected value."""
    pass


class ChecksumError(FruFormatError):
    """
    Zero checksum verification failed.

    Attributes:
        what: Which structure was being checked (e.g. "board area")
        expected: The checksum byte that would make the range sum to zero
        actual: The checksum byte found in the data
    """

    def __init__(self, what: str, expected: int, actual: int, message: str = ""):
        self.what = what
        self.expected = expected
        self.actual = actual
        if not message:
            message = (
                f"{what} checksum mismatch: expected 0x{expected:02X}, "
                f"got 0x{actual:02X}"
            )
        super().__init__(message)


class AreaBoundsError(FruFormatError):
    """
    Declared size or offset runs past the end of the data.

    Attributes:
        needed: Number of bytes the structure claims to occupy (if known)
        available: Number of bytes actually available (if known)
    """

    def __init__(
        self,
        message: str,
        needed: Optional[int] = None,
        available: Optional[int] = None,
    ):
        self.needed = needed
        self.available = available
        super().__init__(message)


class FruReadError(AreaBoundsError):
    """Input stream ended before the requested number of bytes was read."""
    pass


# =============================================================================
# Capacity Exceptions
# =============================================================================

class FieldCapacityError(FruError):
    """
    Destination too small for a decoded field.

    The check happens before decoding starts, so no partial value is
    ever produced.
    """

    def __init__(self, needed: int, capacity: int):
        self.needed = needed
        self.capacity = capacity
        super().__init__(
            f"decoded field needs {needed} bytes, capacity is {capacity}"
        )
