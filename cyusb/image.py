"""
Parser for Cypress FX3 boot images (the .img files produced by elf2img).

Layout, all integers little-endian:

    0-1   "CY"
    2     flags (bit 0 set: data only, not executable)
    3     image type (0xB0: normal firmware with trailing checksum)
    4..   records of {u32 length in words, u32 address, length * 4 data bytes}
          a record with length 0 ends the list; its address is the entry point
          u32 checksum follows the terminating record

The buffer is never modified.  Segment data are memoryview slices of it.
"""

import struct

from dataclasses import dataclass

from .checksum import Checksum
from .errors import MissingMagicError, NotExecutableError, AbnormalFirmwareError, \
                    TruncatedDataError, InvalidChecksumError

MAGIC = b"CY"
FLAG_NOT_EXECUTABLE = 0x01
IMAGE_TYPE_CHECKSUMMED = 0xb0
HEADER_SIZE = 4

@dataclass(frozen=True)
class Segment:
    address: int
    data: memoryview

    def __len__(self):
        return len(self.data)

@dataclass(frozen=True)
class ImageSummary:
    regions: tuple          # (address, byte count) per segment, in file order
    entry_address: int
    checksum: int

    @property
    def payload_bytes(self):
        return sum(size for _, size in self.regions)

class FirmwareImage:

    def __init__(self, buffer):
        self.buffer = memoryview(buffer).toreadonly()
        self.offset = 0
        self.entry_address = None
        self.stored_checksum = None

        self.validated = False
        self.consumed = False

    ##
    # Check the 4-byte header.  Order matters: magic, then executable flag,
    # then image type.  A buffer that doesn't start with "CY" is always
    # MissingMagic, even if it is too short to hold a header.
    def validate(self):
        if self.validated:
            return

        if bytes(self.buffer[:2]) != MAGIC:
            raise MissingMagicError()

        if len(self.buffer) < HEADER_SIZE:
            raise TruncatedDataError(offset=0, expected=HEADER_SIZE)

        flags = self.buffer[2]
        if flags & FLAG_NOT_EXECUTABLE:
            raise NotExecutableError(flags)

        image_type = self.buffer[3]
        if image_type != IMAGE_TYPE_CHECKSUMMED:
            raise AbnormalFirmwareError(image_type)

        self.offset = HEADER_SIZE
        self.validated = True

    ##
    # Generator of Segments in file order.  Once exhausted, entry_address and
    # stored_checksum are populated.  Can only be iterated once.
    def segments(self):
        if self.consumed:
            raise RuntimeError("segments of this image have already been read")
        self.consumed = True
        return self._walk()

    def _walk(self):
        self.validate()

        while True:
            length = self._read_u32()
            address = self._read_u32()
            if length == 0:
                self.entry_address = address
                break
            yield Segment(address, self._read(length * 4))

        self.stored_checksum = self._read_u32()

    def _read(self, size):
        end = self.offset + size
        if end > len(self.buffer):
            raise TruncatedDataError(offset=self.offset, expected=size)
        data = self.buffer[self.offset:end]
        self.offset = end
        return data

    def _read_u32(self):
        return struct.unpack("<I", self._read(4))[0]

##
# Walk a whole image without a device and verify its checksum.  Raises the
# same errors a download would, other than TransportError.
def summarize(buffer):
    image = FirmwareImage(buffer)
    checksum = Checksum()
    regions = []

    for segment in image.segments():
        checksum.update(segment.data)
        regions.append((segment.address, len(segment)))

    if checksum.value != image.stored_checksum:
        raise InvalidChecksumError(expected=image.stored_checksum, computed=checksum.value)

    return ImageSummary(regions=tuple(regions),
                        entry_address=image.entry_address,
                        checksum=checksum.value)
