"""WiFi network scanning via nmcli (NetworkManager CLI).

Triggers a rescan on one adapter, lists what it sees, drops hidden and
duplicate SSIDs and ranks the rest by signal.  It can also be invoked as a
standalone tool::

    python -m wifiproxy.scan wlan1            # scan, print table
    python -m wifiproxy.scan wlan1 --json     # JSON output
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from typing import Callable

from wifiproxy.errors import ExecutionError, NetworkNotFound, NmcliExecutionError
from wifiproxy.terse import EMPTY_SENTINEL, normalize_value, parse_records
from wifiproxy.wifi_common import CommandRunner, Network, invoke

logger = logging.getLogger(__name__)

# Fixed wait between the rescan request and the list query.  This is not a
# completion signal: a slow adapter may still report the previous results.
RESCAN_SETTLE_DELAY = 0.5

_SCAN_FIELDS = "SSID,SIGNAL,SECURITY"


# ---------------------------------------------------------------------------
# nmcli output parsing
# ---------------------------------------------------------------------------

def _parse_signal(value: str) -> int:
    """Parse an nmcli SIGNAL field as a 0-100 percentage, 0 if invalid."""
    try:
        signal = int(value.strip())
    except ValueError:
        return 0
    if signal < 0 or signal > 100:
        return 0
    return signal


def parse_scan_output(output: str) -> list[Network]:
    """Parse ``nmcli -t -f SSID,SIGNAL,SECURITY device wifi list`` output.

    Hidden networks (empty or ``--`` SSID) are dropped and only the first record per
    SSID is kept.  The security column absorbs any extra fields, so a
    descriptor containing ``:`` survives intact.  Results are sorted by
    signal, strongest first; equal signals keep nmcli's order.
    """
    networks: list[Network] = []
    seen: set[str] = set()

    for raw_ssid, signal, security in parse_records(output, 3):
        ssid = "" if raw_ssid == EMPTY_SENTINEL else raw_ssid
        if not ssid or ssid in seen:
            continue
        seen.add(ssid)
        networks.append(Network(
            ssid=ssid,
            signal=_parse_signal(signal),
            security=normalize_value(security) or "",
        ))

    networks.sort(key=lambda n: n.signal, reverse=True)
    return networks


# ---------------------------------------------------------------------------
# Live scanning (requires nmcli on the system)
# ---------------------------------------------------------------------------

def scan_networks(
    interface: str,
    *,
    runner: CommandRunner | None = None,
    settle_delay: float = RESCAN_SETTLE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Network]:
    """Scan for WiFi networks visible to *interface*.

    The rescan request may be refused (adapter busy or already scanning);
    that is ignored and the list query returns the most recent results.

    Args:
        interface: Wireless interface name.
        runner: Optional CommandRunner for subprocess calls (testing seam).
        settle_delay: Seconds to wait after the rescan request.
        sleep: Sleep function (testing seam).

    Raises:
        NmcliExecutionError: the list query exited non-zero.
        ExecutionError: nmcli could not be started for the list query.
    """
    try:
        rescan = invoke(
            "nmcli", ["device", "wifi", "rescan", "ifname", interface], runner=runner,
        )
        if not rescan.ok:
            logger.debug("rescan on %s refused: %s", interface, rescan.stderr.strip())
    except ExecutionError as exc:
        logger.debug("rescan on %s not started: %s", interface, exc)

    sleep(settle_delay)

    result = invoke(
        "nmcli",
        ["-t", "-f", _SCAN_FIELDS, "device", "wifi", "list", "ifname", interface],
        runner=runner,
    )
    if not result.ok:
        raise NmcliExecutionError(result.stderr)

    return parse_scan_output(result.stdout)


def find_network(networks: list[Network], ssid: str) -> Network:
    """Return the network named *ssid* from scan results.

    Raises:
        NetworkNotFound: *ssid* is not among *networks*.
    """
    for net in networks:
        if net.ssid == ssid:
            return net
    raise NetworkNotFound(ssid)


# ---------------------------------------------------------------------------
# Standalone CLI
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for standalone invocation."""
    parser = argparse.ArgumentParser(
        description="Scan WiFi networks via nmcli and print results.",
    )
    parser.add_argument("interface", help="wireless interface to scan")
    parser.add_argument(
        "--json", action="store_true", dest="json_output",
        help="Output as JSON instead of a table",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Scan WiFi networks and print results to stdout."""
    args = _parse_args(argv)
    networks = scan_networks(args.interface)

    if args.json_output:
        data = [
            {"ssid": n.ssid, "signal": n.signal, "security": n.security}
            for n in networks
        ]
        print(json.dumps(data, indent=2))
        return

    if not networks:
        print("No networks found.")
        return
    print(f"{'SSID':<32} {'SIGNAL':>6} SECURITY")
    print("-" * 60)
    for n in networks:
        print(f"{n.ssid:<32} {n.signal:>5}% {n.security}")
    print(f"\n{len(networks)} network(s) found.")


if __name__ == "__main__":
    main()
