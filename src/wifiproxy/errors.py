"""Exception types raised by wifiproxy.

Every failure in the interface, connection and scan modules surfaces as a
subclass of :class:`WifiProxyError` so callers can catch one type and still
tell the cases apart.
"""

from __future__ import annotations


class WifiProxyError(Exception):
    """Base class for all wifiproxy errors."""


class NoUsbInterfaceFound(WifiProxyError):
    """Auto-detection found no USB-attached WiFi adapter."""

    def __init__(self) -> None:
        super().__init__("No USB WiFi interface found")


class InterfaceNotFound(WifiProxyError):
    """A named interface is not among the system's WiFi adapters."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Interface '{name}' not found")


class NotWifiInterface(WifiProxyError):
    """A named interface exists but is not a WiFi device."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Interface '{name}' is not a WiFi device")


class ExecutionError(WifiProxyError):
    """An external command could not be started at all."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to execute {command}: {reason}")


class NmcliExecutionError(WifiProxyError):
    """nmcli ran but exited non-zero."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to execute nmcli: {detail}")


class OutputParseError(WifiProxyError):
    """nmcli output was structurally unusable."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse nmcli output: {detail}")


class ConnectionFailed(WifiProxyError):
    """The connect command was rejected (bad password, out of range, ...)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Connection failed: {detail}")


class NetworkNotFound(WifiProxyError):
    """An SSID was not present in scan results."""

    def __init__(self, ssid: str) -> None:
        self.ssid = ssid
        super().__init__(f"Network '{ssid}' not found")


class MissingCredentials(WifiProxyError):
    """No password was given and none is saved for the SSID."""

    def __init__(self, ssid: str) -> None:
        self.ssid = ssid
        super().__init__(
            f"No password provided and no saved credentials for '{ssid}'"
        )


class NoGateway(WifiProxyError):
    """The interface has no IPv4 gateway (not connected)."""

    def __init__(self, interface: str) -> None:
        self.interface = interface
        super().__init__(f"No gateway found for interface {interface}")


class FetchFailed(WifiProxyError):
    """An HTTP request to the gateway failed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to fetch URL: {detail}")
