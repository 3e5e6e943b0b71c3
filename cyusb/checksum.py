import struct

from .errors import TruncatedDataError

WORD_SIZE = 4

##
# Running 32-bit sum of little-endian words, wrapping at 2^32.  This is the
# checksum stored after the terminator record of a 0xB0 image.
class Checksum:

    def __init__(self):
        self.value = 0

    def update(self, data):
        """
        Add every word of data.  A trailing partial word raises
        TruncatedDataError; its offset counts from the start of data, not
        from the start of the image.
        """
        if len(data) % WORD_SIZE:
            whole = len(data) - len(data) % WORD_SIZE
            raise TruncatedDataError(offset=whole, expected=WORD_SIZE)

        for (word,) in struct.iter_unpack("<I", data):
            self.value = (self.value + word) & 0xffffffff
