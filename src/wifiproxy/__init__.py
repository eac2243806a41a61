"""wifi-proxy: drive a secondary WiFi adapter through NetworkManager.

Finds a USB WiFi adapter (or the one you name), connects it to a device
access point such as a robot's onboard AP, reports its status and gateway,
scans for networks, and proxies the device's web control interface to
localhost while the primary connection stays on the built-in adapter.
"""

__version__ = "0.1.0"
