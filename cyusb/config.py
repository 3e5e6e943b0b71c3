"""
Optional YAML settings, read from cyusb.yaml in the working directory (or the
file given with --config).  Every key is optional:

    usb:
      vid: 0x04b4
      pid: 0x00f3
    loader:
      chunk_size: 4096
      settle_delay_sec: 1.0
    log:
      file: cyusb.log
"""

import logging
import copy
import os

import yaml

from .device import CYPRESS_VID, FX3_BOOTLOADER_PID
from .loader import MAX_CHUNK_SIZE, SETTLE_DELAY_SEC

log = logging.getLogger(__name__)

CONFIG_FILE = "cyusb.yaml"

DEFAULTS = {
    "usb":    { "vid": CYPRESS_VID, "pid": FX3_BOOTLOADER_PID },
    "loader": { "chunk_size": MAX_CHUNK_SIZE, "settle_delay_sec": SETTLE_DELAY_SEC },
    "log":    { "file": None },
}

# allowed types for each key (None allowed only where listed)
TYPES = {
    ("usb", "vid"):                 (int,),
    ("usb", "pid"):                 (int,),
    ("loader", "chunk_size"):       (int,),
    ("loader", "settle_delay_sec"): (int, float),
    ("log", "file"):                (str, type(None)),
}

class ConfigError(Exception):
    pass

def load_config(path=None):
    """ DEFAULTS overlaid with the contents of path (or CONFIG_FILE if present). """
    cfg = copy.deepcopy(DEFAULTS)

    if path is None:
        if not os.path.isfile(CONFIG_FILE):
            return cfg
        path = CONFIG_FILE

    try:
        with open(path) as f:
            doc = yaml.load(f, Loader=yaml.loader.SafeLoader)
    except (OSError, yaml.YAMLError) as ex:
        raise ConfigError(f"Error loading {path}: {ex}") from ex

    if doc is None:
        return cfg
    if not isinstance(doc, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    for section, values in doc.items():
        if section not in cfg or not isinstance(values, dict):
            raise ConfigError(f"{path}: unknown or malformed section '{section}'")
        for key, value in values.items():
            if key not in cfg[section]:
                raise ConfigError(f"{path}: unknown key '{section}.{key}'")
            allowed = TYPES[(section, key)]
            if isinstance(value, bool) or not isinstance(value, allowed):
                raise ConfigError(f"{path}: bad value for '{section}.{key}': {value!r}")
            cfg[section][key] = value

    if not 0 < cfg["loader"]["chunk_size"] <= MAX_CHUNK_SIZE:
        raise ConfigError(f"{path}: loader.chunk_size must be between 1 and {MAX_CHUNK_SIZE}")
    if cfg["loader"]["settle_delay_sec"] < 0:
        raise ConfigError(f"{path}: loader.settle_delay_sec can't be negative")

    log.debug(f"Loaded {path}.")
    return cfg
