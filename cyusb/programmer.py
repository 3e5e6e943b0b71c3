#!/usr/bin/env python
"""
cyusb-programmer - write firmware to a Cypress FX3 device.

Loads a checksummed .img file into the RAM of an FX3 sitting in its USB boot
loader, then starts it.

    $ cyusb-programmer firmware.img
    $ cyusb-programmer --index 1 firmware.img     (second of several FX3s)
    $ cyusb-programmer --list
    $ cyusb-programmer --info firmware.img        (check the image, no device)

Only the RAM target works; I2C and SPI EEPROM programming are not implemented.
"""

import argparse
import logging
import sys

import usb.core

from . import device
from .config import ConfigError, load_config
from .errors import Error
from .image import summarize
from .loader import Loader, read_image

log = logging.getLogger(__name__)

TARGETS = ["ram", "i2c", "spi"]

CONSOLE_FORMAT = "%(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

def parse_target(s):
    target = s.lower()
    if target not in TARGETS:
        raise argparse.ArgumentTypeError("invalid target")
    return target

def parse_hex(s):
    try:
        return int(s, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex number: {s}")

##
# Send everything under the "cyusb" logger to the console, and optionally to
# a file as well.  Safe to call more than once.
def setup_logging(debug=False, log_file=None):
    logger = logging.getLogger("cyusb")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

class Fixture:

    def __init__(self, argv=None):
        self.cfg = None
        self.devices = []
        self.args = self.parse_args(argv)

    def parse_args(self, argv):
        parser = argparse.ArgumentParser(
            prog="cyusb-programmer",
            description="Write firmware to a Cypress FX3 device.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter)

        parser.add_argument("image",            nargs="?",                          help="input file")
        parser.add_argument("-i", "--index",    type=int,          default=0,       help="select between multiple devices")
        parser.add_argument("-t", "--target",   type=parse_target, default="ram",   help="RAM, I2C, or SPI")
        parser.add_argument("--vid",            type=parse_hex,                     help="USB VID in hex (overrides config, normally 04b4)")
        parser.add_argument("--pid",            type=parse_hex,                     help="USB PID in hex (overrides config, normally 00f3)")
        parser.add_argument("--list",           action="store_true",                help="list attached boot loaders and exit")
        parser.add_argument("--info",           action="store_true",                help="check the image and describe its segments, no device needed")
        parser.add_argument("--config",         type=str,                           help="YAML settings file (default ./cyusb.yaml if present)")
        parser.add_argument("--log-file",       type=str,                           help="also log to this file")
        parser.add_argument("--debug",          action="store_true",                help="debug output")

        args = parser.parse_args(argv)
        if args.image is None and (args.info or not args.list):
            parser.error("the following arguments are required: image")
        return args

    def run(self):
        if self.args.target != "ram":
            log.error("only the RAM target works currently")
            return 1

        try:
            self.cfg = load_config(self.args.config)
        except ConfigError as ex:
            log.error(ex)
            return 1

        log_file = self.args.log_file or self.cfg["log"]["file"]
        if log_file:
            try:
                setup_logging(self.args.debug, log_file)
            except OSError as ex:
                log.error(f"unable to open log file {log_file}: {ex}")
                return 1

        if self.args.info:
            return self.do_info()

        vid = self.args.vid if self.args.vid is not None else self.cfg["usb"]["vid"]
        pid = self.args.pid if self.args.pid is not None else self.cfg["usb"]["pid"]
        try:
            self.devices = device.find_devices(vid, pid)
        except usb.core.NoBackendError:
            log.error("no USB backend available (is libusb installed?)")
            return 1

        if self.args.list:
            return self.do_list()

        if len(self.devices) == 1:
            log.info("1 device detected")
        else:
            log.info(f"{len(self.devices)} devices detected")

        if not 0 <= self.args.index < len(self.devices):
            log.error(f"invalid index, detected {len(self.devices)} device(s)")
            return 1

        return self.do_program(self.devices[self.args.index])

    ############################################################################
    # Commands
    ############################################################################

    def do_list(self):
        if not self.devices:
            log.info("No FX3 boot loaders found")
        for index, dev in enumerate(self.devices):
            log.info(f"[{index}] {device.describe(dev)}")
        return 0

    def do_info(self):
        try:
            summary = summarize(read_image(self.args.image))
        except Error as ex:
            log.error(f"invalid image {self.args.image}: {ex}")
            return 1

        for address, size in summary.regions:
            log.info(f"  0x{address:08x}  {size:8d} bytes")
        log.info(f"{len(summary.regions)} segments, {summary.payload_bytes} bytes, "
                 f"entry point 0x{summary.entry_address:08x}, checksum 0x{summary.checksum:08x}")
        return 0

    def do_program(self, dev):
        log.info(f"Loading {self.args.image} into {device.describe(dev)}")
        try:
            with device.UsbTransport(dev) as transport:
                loader = Loader(transport,
                                chunk_size=self.cfg["loader"]["chunk_size"],
                                settle_delay_sec=self.cfg["loader"]["settle_delay_sec"],
                                progress=self.report_segment)
                loader.program_ram(self.args.image)
        except Error as ex:
            log.error(f"program_fx3_ram failed: {ex}")
            return 1

        log.info("Firmware started")
        return 0

    def report_segment(self, number, segment):
        log.debug(f"segment {number}: {len(segment)} bytes at 0x{segment.address:08x}")

def main(argv=None):
    fixture = Fixture(argv)
    setup_logging(fixture.args.debug)
    return fixture.run()

if __name__ == "__main__":
    sys.exit(main())
