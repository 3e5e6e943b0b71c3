from unittest import mock

import pytest
import usb.core

from cyusb import device
from cyusb.errors import ErrorKind, TransportError

def fake_dev(bus=1, address=7):
    dev = mock.Mock()
    dev.bus = bus
    dev.address = address
    dev.idVendor = device.CYPRESS_VID
    dev.idProduct = device.FX3_BOOTLOADER_PID
    return dev

################################################################################
# write_control
################################################################################

def test_address_split_across_value_and_index():
    dev = fake_dev()
    dev.ctrl_transfer.return_value = 8

    written = device.UsbTransport(dev).write_control(0x40001234, b"\x01" * 8, 1000)

    assert written == 8
    dev.ctrl_transfer.assert_called_once_with(0x40, 0xa0, 0x1234, 0x4000, b"\x01" * 8, 1000)

def test_trigger_is_zero_length():
    dev = fake_dev()
    dev.ctrl_transfer.return_value = 0

    device.UsbTransport(dev).write_control(0xfffe0000, b"")

    dev.ctrl_transfer.assert_called_once_with(0x40, 0xa0, 0x0000, 0xfffe, b"", device.TIMEOUT_MS)

@pytest.mark.parametrize("error", [
    usb.core.USBError("Pipe error", error_code=-9),
    usb.core.USBTimeoutError("Operation timed out", error_code=-7),
])
def test_usb_errors_become_transport_errors(error):
    dev = fake_dev()
    dev.ctrl_transfer.side_effect = error

    with pytest.raises(TransportError) as info:
        device.UsbTransport(dev).write_control(0x40000000, b"\x00" * 4)

    assert info.value.kind is ErrorKind.TRANSPORT
    assert info.value.address == 0x40000000
    assert info.value.cause is error

################################################################################
# connect / close
################################################################################

def test_linux_sets_configuration():
    dev = fake_dev()
    with mock.patch.object(device.os, "name", "posix"), \
         mock.patch.object(device.platform, "platform", return_value="Linux-6.1-x86_64"):
        device.UsbTransport(dev).connect()
    dev.set_configuration.assert_called_once_with(1)

def test_windows_leaves_configuration_alone():
    dev = fake_dev()
    with mock.patch.object(device.os, "name", "nt"):
        device.UsbTransport(dev).connect()
    dev.set_configuration.assert_not_called()

def test_configuration_failure():
    dev = fake_dev()
    dev.set_configuration.side_effect = usb.core.USBError("Access denied", error_code=-3)
    with mock.patch.object(device.os, "name", "posix"), \
         mock.patch.object(device.platform, "platform", return_value="Linux-6.1-x86_64"):
        with pytest.raises(TransportError) as info:
            device.UsbTransport(dev).connect()
    assert info.value.address is None

def test_context_manager_releases_device():
    dev = fake_dev()
    with mock.patch.object(device.os, "name", "nt"), \
         mock.patch.object(device.usb.util, "dispose_resources") as dispose:
        with device.UsbTransport(dev) as transport:
            assert transport.dev is dev
        dispose.assert_called_once_with(dev)

################################################################################
# discovery
################################################################################

def test_find_devices_defaults_to_fx3_boot_loader():
    devs = [fake_dev(address=3), fake_dev(address=4)]
    with mock.patch.object(device.backend, "get_backend", return_value=None), \
         mock.patch.object(device.usb.core, "find", return_value=iter(devs)) as find:
        assert device.find_devices() == devs
    find.assert_called_once_with(find_all=True, idVendor=0x04b4, idProduct=0x00f3, backend=None)

def test_find_devices_other_ids():
    with mock.patch.object(device.backend, "get_backend", return_value=None), \
         mock.patch.object(device.usb.core, "find", return_value=iter([])) as find:
        assert device.find_devices(0x1234, 0x5678) == []
    assert find.call_args.kwargs["idVendor"] == 0x1234
    assert find.call_args.kwargs["idProduct"] == 0x5678

def test_describe():
    assert device.describe(fake_dev(bus=2, address=9)) == "bus 2 address 9 (0x04b4:0x00f3)"
