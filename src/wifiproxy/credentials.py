"""Saved WiFi credentials.

Networks are stored in a CSV file, one per line::

    # ssid,password[,interface]
    RoboDog-AP,secret123,wlan1
    "Lab, 2nd floor",hunter2

Lines starting with ``#`` are comments.  Blank lines are ignored.  Fields
may be quoted to include commas.  The third column is the preferred
interface and may be omitted.
"""

from __future__ import annotations

import csv
import logging
import os
import stat

from wifiproxy.wifi_common import SavedNetwork

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Credentials file I/O
# ---------------------------------------------------------------------------

def load_credentials(filepath: str | os.PathLike[str]) -> list[SavedNetwork]:
    """Load saved networks from *filepath*.

    A missing file yields an empty list.  When an SSID appears more than
    once the last entry wins.
    """
    networks: list[SavedNetwork] = []

    if not os.path.isfile(filepath):
        return networks

    # Warn if the file is world-readable
    try:
        if os.stat(filepath).st_mode & stat.S_IROTH:
            logger.warning(
                "credentials file '%s' is world-readable; "
                "consider restricting permissions to 600",
                filepath,
            )
    except OSError:
        pass

    with open(filepath, newline="") as f:
        for row in csv.reader(f):
            # Skip blank or comment lines
            if not row or row[0].strip().startswith("#"):
                continue
            if len(row) < 2:
                logger.debug("skipping credentials row with %d field(s)", len(row))
                continue
            ssid = row[0].strip()
            if not ssid:
                continue
            interface = row[2].strip() if len(row) >= 3 else ""
            networks = add_network(networks, SavedNetwork(
                ssid=ssid,
                password=row[1].strip(),
                interface=interface or None,
            ))

    return networks


def save_credentials(
    filepath: str | os.PathLike[str],
    networks: list[SavedNetwork],
) -> None:
    """Write *networks* to *filepath* (mode 600), creating parent dirs."""
    parent = os.path.dirname(os.fspath(filepath))
    if parent:
        os.makedirs(parent, exist_ok=True)

    fd = os.open(filepath, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", newline="") as f:
        writer = csv.writer(f)
        f.write("# ssid,password,interface\n")
        for net in networks:
            writer.writerow([net.ssid, net.password, net.interface or ""])


# ---------------------------------------------------------------------------
# Lookup / update
# ---------------------------------------------------------------------------

def find_by_ssid(networks: list[SavedNetwork], ssid: str) -> SavedNetwork | None:
    """Return the saved entry for *ssid*, or ``None``."""
    for net in networks:
        if net.ssid == ssid:
            return net
    return None


def add_network(
    networks: list[SavedNetwork],
    network: SavedNetwork,
) -> list[SavedNetwork]:
    """Return a new list with *network* replacing any entry for its SSID."""
    kept = [n for n in networks if n.ssid != network.ssid]
    kept.append(network)
    return kept


def mask_password(password: str) -> str:
    """Mask *password* for display (at most 12 asterisks)."""
    return "*" * min(len(password), 12)
