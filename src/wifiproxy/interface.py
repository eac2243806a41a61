"""WiFi adapter discovery and selection.

Lists WiFi adapters via ``nmcli device``, classifies each as USB-attached or
built-in from sysfs, and resolves a user's adapter choice (explicit name or
auto-detected USB dongle) to a concrete :class:`WifiInterface`.

All external I/O is injectable for testability:
- every function accepts a ``CommandRunner`` via ``runner``
- sysfs lookups accept a ``sysfs_net`` directory override
"""

from __future__ import annotations

import logging
import os

from wifiproxy.errors import InterfaceNotFound, NmcliExecutionError, NoUsbInterfaceFound
from wifiproxy.terse import parse_records
from wifiproxy.wifi_common import CommandRunner, WifiInterface, invoke

logger = logging.getLogger(__name__)

SYSFS_NET = "/sys/class/net"

_WIFI_TYPE = "wifi"


# ---------------------------------------------------------------------------
# sysfs USB classification
# ---------------------------------------------------------------------------

def _read_uevent(device_path: str) -> str | None:
    """Return the device's uevent text, or ``None`` if unreadable."""
    try:
        with open(os.path.join(device_path, "uevent")) as f:
            return f.read()
    except OSError:
        return None


def is_usb_interface(
    iface: str,
    *,
    sysfs_net: str = SYSFS_NET,
) -> bool:
    """Return True if *iface* sits on a USB bus.

    ``/sys/class/net/<iface>/device`` resolves into the device tree; for
    USB adapters the resolved path runs through a ``usbN`` node, e.g.
    ``/sys/devices/pci0000:00/0000:00:14.0/usb1/1-2/1-2:1.0``, even though
    the link text itself is only ``../../../1-2:1.0``.  When the resolved
    path does not say so (or cannot be resolved), the device's ``uevent``
    file is checked for the same token.

    Args:
        iface: Interface name (e.g. ``"wlan1"``).
        sysfs_net: Override for the sysfs net directory (for testing).
    """
    device_path = os.path.join(sysfs_net, iface, "device")

    # Virtual interfaces have no backing device
    if not os.path.lexists(device_path):
        return False

    # Matched relative to the sysfs root so only the device tree is searched
    sysfs_root = os.path.dirname(os.path.realpath(sysfs_net))
    resolved = os.path.relpath(os.path.realpath(device_path), sysfs_root)
    if "usb" in resolved:
        return True
    logger.debug("%s: no usb node in %s, checking uevent", iface, resolved)

    uevent = _read_uevent(device_path)
    return uevent is not None and "usb" in uevent


# ---------------------------------------------------------------------------
# Interface enumeration
# ---------------------------------------------------------------------------

def list_wifi_interfaces(
    *,
    runner: CommandRunner | None = None,
    sysfs_net: str = SYSFS_NET,
) -> list[WifiInterface]:
    """Enumerate WiFi adapters known to NetworkManager.

    Runs ``nmcli -t -f DEVICE,TYPE,STATE device`` and keeps rows of type
    ``wifi`` in the order nmcli prints them.  Results are built fresh on
    every call.

    Raises:
        NmcliExecutionError: nmcli exited non-zero.
        ExecutionError: nmcli could not be started.
    """
    result = invoke(
        "nmcli",
        ["-t", "-f", "DEVICE,TYPE,STATE", "device"],
        runner=runner,
    )
    if not result.ok:
        raise NmcliExecutionError(result.stderr)

    interfaces: list[WifiInterface] = []
    for name, dev_type, state in parse_records(result.stdout, 3):
        if dev_type != _WIFI_TYPE:
            continue
        interfaces.append(WifiInterface(
            name=name,
            state=state,
            is_usb=is_usb_interface(name, sysfs_net=sysfs_net),
        ))

    logger.debug("wifi interfaces: %s", [(i.name, i.is_usb) for i in interfaces])
    return interfaces


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def find_usb_wifi_interface(
    *,
    runner: CommandRunner | None = None,
    sysfs_net: str = SYSFS_NET,
) -> WifiInterface:
    """Return the first USB WiFi adapter in listing order.

    Raises:
        NoUsbInterfaceFound: no listed adapter is USB-attached.
    """
    for iface in list_wifi_interfaces(runner=runner, sysfs_net=sysfs_net):
        if iface.is_usb:
            return iface
    raise NoUsbInterfaceFound()


def get_interface(
    name: str,
    *,
    runner: CommandRunner | None = None,
    sysfs_net: str = SYSFS_NET,
) -> WifiInterface:
    """Return the WiFi adapter called *name*.

    Raises:
        InterfaceNotFound: no WiFi adapter has that name (including when the
            name belongs to a non-WiFi device).
    """
    for iface in list_wifi_interfaces(runner=runner, sysfs_net=sysfs_net):
        if iface.name == name:
            return iface
    raise InterfaceNotFound(name)


def resolve_interface(
    name: str | None,
    *,
    runner: CommandRunner | None = None,
    sysfs_net: str = SYSFS_NET,
) -> WifiInterface:
    """Turn an optional adapter name into a concrete adapter.

    A given name must exist; without one the first USB adapter is used.
    """
    if name is not None:
        return get_interface(name, runner=runner, sysfs_net=sysfs_net)
    return find_usb_wifi_interface(runner=runner, sysfs_net=sysfs_net)
