"""
Load firmware into the RAM of a Cypress FX3 through its USB boot loader.
"""

from .errors import Error, ErrorKind, ImageReadError, MissingMagicError, NotExecutableError, \
                    AbnormalFirmwareError, TruncatedDataError, InvalidChecksumError, TransportError
from .checksum import Checksum
from .image import FirmwareImage, Segment, ImageSummary, summarize
from .loader import Loader, State, program_fx3_ram, download, read_image

__version__ = "0.1.0"
