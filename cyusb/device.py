"""
Finding FX3 boot loaders on the bus and sending them control transfers with
pyusb.
"""

import platform
import logging
import os

import usb.core
import usb.util

if platform.system() == "Windows":
    import usb.backend.libusb0 as backend
else:
    import usb.backend.libusb1 as backend

from .errors import TransportError
from .loader import TIMEOUT_MS

log = logging.getLogger(__name__)

HOST_TO_DEVICE = 0x40
FIRMWARE_LOAD = 0xa0     # FX3 boot loader "write RAM / jump" vendor request

CYPRESS_VID = 0x04b4
FX3_BOOTLOADER_PID = 0x00f3

def find_devices(vid=CYPRESS_VID, pid=FX3_BOOTLOADER_PID):
    """ Every attached device with the given VID/PID, in bus order. """
    return list(usb.core.find(find_all=True, idVendor=vid, idProduct=pid, backend=backend.get_backend()))

def describe(dev):
    return f"bus {dev.bus} address {dev.address} (0x{dev.idVendor:04x}:0x{dev.idProduct:04x})"

class UsbTransport:
    """
    write_control() for the loader, on top of a pyusb device.  Use as a
    context manager to release the device afterwards.
    """

    def __init__(self, dev):
        self.dev = dev

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def connect(self):
        if os.name != "posix":
            log.debug("on Windows, so NOT setting configuration")
        elif "macOS" in platform.platform():
            log.debug("on MacOS, so NOT setting configuration")
        else:
            log.debug("on Linux, so setting configuration")
            try:
                self.dev.set_configuration(1)
            except usb.core.USBError as ex:
                raise TransportError(None, ex) from ex

    def close(self):
        usb.util.dispose_resources(self.dev)

    ##
    # The 32-bit address is split across wValue (low half) and wIndex (high
    # half).  Returns the number of bytes the device accepted.
    def write_control(self, address, data, timeout_ms=TIMEOUT_MS):
        value = address & 0xffff
        index = (address >> 16) & 0xffff
        log.debug("ctrl_transfer(0x%02x, 0x%02x, 0x%04x, 0x%04x) >> %d bytes",
            HOST_TO_DEVICE, FIRMWARE_LOAD, value, index, len(data))
        try:
            return self.dev.ctrl_transfer(HOST_TO_DEVICE, FIRMWARE_LOAD, value, index, data, timeout_ms)
        except usb.core.USBError as ex:
            raise TransportError(address, ex) from ex
