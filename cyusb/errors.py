"""
Everything that can go wrong while loading an FX3 RAM image.

Each failure has its own exception class and ErrorKind, so callers (and
tests) can tell them apart without parsing messages.
"""

from enum import Enum

class ErrorKind(Enum):
    IO                = "io"
    MISSING_MAGIC     = "missing-magic"
    NOT_EXECUTABLE    = "not-executable"
    ABNORMAL_FIRMWARE = "abnormal-firmware"
    TRUNCATED_DATA    = "truncated-data"
    INVALID_CHECKSUM  = "invalid-checksum"
    TRANSPORT         = "transport"

class Error(Exception):
    kind = None

class ImageReadError(Error):
    kind = ErrorKind.IO

    def __init__(self, path, cause):
        super().__init__(f"unable to read {path}: {cause}")
        self.path = path
        self.cause = cause

class MissingMagicError(Error):
    kind = ErrorKind.MISSING_MAGIC

    def __init__(self):
        super().__init__("image does not start with \"CY\"")

class NotExecutableError(Error):
    kind = ErrorKind.NOT_EXECUTABLE

    def __init__(self, flags):
        super().__init__(f"image is marked non-executable (flags 0x{flags:02x})")
        self.flags = flags

class AbnormalFirmwareError(Error):
    kind = ErrorKind.ABNORMAL_FIRMWARE

    def __init__(self, image_type):
        super().__init__(f"unsupported image type 0x{image_type:02x} (expected 0xb0)")
        self.image_type = image_type

class TruncatedDataError(Error):
    kind = ErrorKind.TRUNCATED_DATA

    def __init__(self, offset, expected):
        super().__init__(f"truncated data: needed {expected} bytes at offset 0x{offset:x}")
        self.offset = offset
        self.expected = expected

class InvalidChecksumError(Error):
    kind = ErrorKind.INVALID_CHECKSUM

    def __init__(self, expected, computed):
        super().__init__(f"checksum mismatch: image says 0x{expected:08x}, computed 0x{computed:08x}")
        self.expected = expected
        self.computed = computed

class TransportError(Error):
    kind = ErrorKind.TRANSPORT

    def __init__(self, address, cause):
        if address is None:
            super().__init__(f"USB error: {cause}")
        else:
            super().__init__(f"control transfer to 0x{address:08x} failed: {cause}")
        self.address = address
        self.cause = cause
