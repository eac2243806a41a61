"""WiFi connection management via nmcli.

Connect, disconnect and query the status of a single adapter, plus two
helpers used once a connection is up: deleting a saved NetworkManager
profile and fetching a page from the gateway.

Can be used standalone to check an adapter::

    python -m wifiproxy.connection wlan1
"""

from __future__ import annotations

import argparse
import logging
import os

import requests

from wifiproxy.errors import ConnectionFailed, FetchFailed, NmcliExecutionError
from wifiproxy.terse import normalize_value, parse_key_values
from wifiproxy.wifi_common import CommandRunner, ConnectionStatus, invoke

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0

# nmcli device show keys -> ConnectionStatus attribute
_STATUS_KEYS = {
    "GENERAL.STATE": "state",
    "GENERAL.CONNECTION": "connection",
    "IP4.ADDRESS[1]": "ip_address",
    "IP4.GATEWAY": "gateway",
}


# ---------------------------------------------------------------------------
# nmcli device operations
# ---------------------------------------------------------------------------

def connect(
    interface: str,
    ssid: str,
    password: str,
    *,
    runner: CommandRunner | None = None,
) -> None:
    """Connect *interface* to *ssid*.

    nmcli creates or updates the connection profile for the SSID.  An empty
    *password* connects to an open network.

    Raises:
        ConnectionFailed: nmcli rejected the attempt.  The message is nmcli's
            stderr, or its stdout when stderr is empty.
    """
    args = ["device", "wifi", "connect", ssid]
    if password:
        args += ["password", password]
    args += ["ifname", interface]

    result = invoke("nmcli", args, runner=runner)
    if not result.ok:
        raise ConnectionFailed(result.stderr or result.stdout)


def disconnect(
    interface: str,
    *,
    runner: CommandRunner | None = None,
) -> None:
    """Disconnect *interface*.  The connection profile is kept."""
    result = invoke("nmcli", ["device", "disconnect", interface], runner=runner)
    if not result.ok:
        raise NmcliExecutionError(result.stderr)


def parse_status_output(interface: str, output: str) -> ConnectionStatus:
    """Build a :class:`ConnectionStatus` from ``nmcli -t device show`` output.

    Only the state, connection name, first IPv4 address and gateway are
    read; every other key is ignored.
    """
    status = ConnectionStatus(interface=interface)
    for key, value in parse_key_values(output):
        attr = _STATUS_KEYS.get(key)
        if attr is None:
            continue
        if attr == "state":
            status.state = value or status.state
        else:
            setattr(status, attr, normalize_value(value))
    return status


def status(
    interface: str,
    *,
    runner: CommandRunner | None = None,
) -> ConnectionStatus:
    """Query the connection status of *interface*.

    Raises:
        NmcliExecutionError: nmcli exited non-zero (e.g. unknown device).
    """
    result = invoke("nmcli", ["-t", "device", "show", interface], runner=runner)
    if not result.ok:
        raise NmcliExecutionError(result.stderr)
    return parse_status_output(interface, result.stdout)


def delete_connection(
    name: str,
    *,
    runner: CommandRunner | None = None,
) -> None:
    """Delete the saved NetworkManager profile *name*.

    An active connection using the profile is not disconnected first.
    """
    result = invoke("nmcli", ["connection", "delete", name], runner=runner)
    if not result.ok:
        raise NmcliExecutionError(result.stderr)


# ---------------------------------------------------------------------------
# Gateway access
# ---------------------------------------------------------------------------

def gateway_url(gateway: str, path: str = "/", *, port: int | None = None) -> str:
    """Build ``http://<gateway>[:port]<path>``."""
    host = f"{gateway}:{port}" if port else gateway
    if not path.startswith("/"):
        path = "/" + path
    return f"http://{host}{path}"


def fetch_gateway(
    url: str,
    output_path: str | os.PathLike[str],
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> None:
    """GET *url* and write the response body to *output_path*.

    Raises:
        FetchFailed: the request failed or returned an error status.
        OSError: the output file could not be written.
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise FetchFailed(str(exc)) from exc

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(response.text)
    logger.debug("saved %d bytes from %s", len(response.text), url)


# ---------------------------------------------------------------------------
# Standalone CLI
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for standalone invocation."""
    parser = argparse.ArgumentParser(
        description="Show the nmcli connection status of a WiFi interface.",
    )
    parser.add_argument("interface", help="interface to query (e.g. wlan1)")
    return parser.parse_args(argv)


def format_status(conn: ConnectionStatus) -> str:
    """Render *conn* as aligned ``Label: value`` lines."""
    lines = [
        f"Interface: {conn.interface}",
        f"State:     {conn.state}",
        f"Connected: {conn.connection or '(none)'}",
    ]
    if conn.ip_address:
        lines.append(f"IP:        {conn.ip_address}")
    if conn.gateway:
        lines.append(f"Gateway:   {conn.gateway}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    """Print the status of one interface to stdout."""
    args = _parse_args(argv)
    print(format_status(status(args.interface)))


if __name__ == "__main__":
    main()
