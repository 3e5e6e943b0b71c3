"""
Load a checksummed FX3 image into device RAM and start it.

The device must be sitting in its USB boot loader.  Every segment of the image
is written with vendor request 0xA0, the image checksum is verified, and a
final zero-length 0xA0 request at the entry address makes the FX3 jump to the
new code.

A failure part way through leaves the device with a partial image in RAM.
There is no way to undo that; power-cycle the device and try again.
"""

import time

from enum import Enum

from .checksum import Checksum
from .errors import Error, ImageReadError, InvalidChecksumError, TransportError
from .image import FirmwareImage

MAX_CHUNK_SIZE = 4096    # largest payload the FX3 boot loader takes per request
TIMEOUT_MS = 1000
SETTLE_DELAY_SEC = 1.0   # between the last data write and the jump

def read_image(path):
    # images are at most a few hundred KB, so just load the whole thing
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as ex:
        raise ImageReadError(path, ex) from ex

class State(Enum):
    IDLE              = "idle"
    VALIDATED         = "validated"
    TRANSFERRING      = "transferring"
    CHECKSUM_VERIFIED = "checksum-verified"
    TRIGGERED         = "triggered"
    DONE              = "done"
    FAILED            = "failed"

class Loader:
    """
    Drives one download over a transport.  The transport needs a single
    method, write_control(address, data, timeout_ms), returning the number of
    bytes the device accepted and raising TransportError on failure.

    A Loader is good for one download; make a new one for the next.
    """

    def __init__(self, transport, chunk_size=MAX_CHUNK_SIZE, settle_delay_sec=SETTLE_DELAY_SEC,
                 timeout_ms=TIMEOUT_MS, sleep=time.sleep, progress=None):
        if not 0 < chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}, not {chunk_size}")

        self.transport = transport
        self.chunk_size = chunk_size
        self.settle_delay_sec = settle_delay_sec
        self.timeout_ms = timeout_ms
        self.sleep = sleep
        self.progress = progress

        self.state = State.IDLE
        self.error = None
        self.failed_in = None    # state the download was in when it failed

    ############################################################################
    # Public
    ############################################################################

    def program_ram(self, path):
        self._run(lambda: self._download(read_image(path)))

    def download(self, program):
        self._run(lambda: self._download(program))

    ############################################################################
    # Private
    ############################################################################

    def _run(self, func):
        if self.state is not State.IDLE:
            raise RuntimeError(f"loader already used (state {self.state.value})")
        try:
            func()
        except Error as ex:
            self.failed_in = self.state
            self.state = State.FAILED
            self.error = ex
            raise

    def _download(self, program):
        image = FirmwareImage(program)
        image.validate()
        self.state = State.VALIDATED

        checksum = Checksum()
        for number, segment in enumerate(image.segments()):
            self.state = State.TRANSFERRING
            checksum.update(segment.data)
            if self.progress is not None:
                self.progress(number, segment)
            self._write(segment.address, segment.data)

        if checksum.value != image.stored_checksum:
            raise InvalidChecksumError(expected=image.stored_checksum, computed=checksum.value)
        self.state = State.CHECKSUM_VERIFIED

        self.sleep(self.settle_delay_sec)

        self.state = State.TRIGGERED
        self.transport.write_control(image.entry_address, b"", self.timeout_ms)
        self.state = State.DONE

    ##
    # Write data starting at address, at most chunk_size bytes per request.
    # Bookkeeping follows what the transport says it wrote, not what was
    # offered, so short writes are resumed from the first unwritten byte.
    def _write(self, address, data):
        offset = 0
        remaining = len(data)

        while remaining > 0:
            size = min(remaining, self.chunk_size)
            chunk = bytes(data[offset:offset + size])

            written = self.transport.write_control(address, chunk, self.timeout_ms)
            if not 0 < written <= size:
                raise TransportError(address, f"device reported {written} of {size} bytes written")

            address += written
            offset += written
            remaining -= written

def program_fx3_ram(transport, path, **kwargs):
    """ Download the image at path to RAM on a Cypress FX3 and run it. """
    Loader(transport, **kwargs).program_ram(path)

def download(transport, program, **kwargs):
    """ Same as program_fx3_ram, for an image already in memory. """
    Loader(transport, **kwargs).download(program)
