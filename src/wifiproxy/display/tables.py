"""Rich table builders for wifi-proxy.

Builds Rich :class:`Table` objects for adapter listings, scan results,
connection status and saved credentials.
"""

from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from wifiproxy.credentials import mask_password
from wifiproxy.wifi_common import (
    COLOR_TO_RICH,
    ConnectionStatus,
    DeviceState,
    Network,
    SavedNetwork,
    WifiInterface,
    security_color,
    signal_color,
    signal_to_bars,
)

_STATE_STYLE = {
    DeviceState.CONNECTED: "green",
    DeviceState.CONNECTING: "yellow",
    DeviceState.DEACTIVATING: "yellow",
    DeviceState.FAILED: "red",
    DeviceState.UNAVAILABLE: "red",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rich_color(rgb: tuple) -> str:  # type: ignore[type-arg]
    """Convert an RGB tuple to a Rich color name."""
    return COLOR_TO_RICH.get(rgb, "white")


def _bar_string(bars: int) -> str:
    """Build a signal-bar string like '▂▄▆█'."""
    chars = ["▂", "▄", "▆", "█"]
    return "".join(chars[i] if i < bars else " " for i in range(4))


def _state_markup(raw: str, state: DeviceState) -> str:
    style = _STATE_STYLE.get(state)
    text = escape(raw)
    return f"[{style}]{text}[/{style}]" if style else text


def _new_table(title: str, caption: str | None = None) -> Table:
    return Table(
        title=title,
        title_style="bold cyan",
        caption=caption,
        caption_style="grey50",
        show_lines=False,
        padding=(0, 1),
    )


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

def build_interface_table(interfaces: list[WifiInterface]) -> Table:
    """Build a table of WiFi adapters: name, raw state and USB/Built-in."""
    table = _new_table("WiFi Interfaces", f"{len(interfaces)} interface(s)")
    table.add_column("Interface", style="white", min_width=12)
    table.add_column("State", min_width=12)
    table.add_column("Type", width=8)

    for iface in interfaces:
        kind = "[cyan]USB[/cyan]" if iface.is_usb else "Built-in"
        table.add_row(
            escape(iface.name),
            _state_markup(iface.state, iface.device_state),
            kind,
        )
    return table


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------

def build_network_table(
    networks: list[Network],
    saved_ssids: set[str] | None = None,
) -> Table:
    """Build a table of scanned networks.

    Args:
        networks: Scan results, already sorted by signal.
        saved_ssids: Optional SSIDs with stored credentials.  When given, a
            "Key" column marks them.
    """
    show_key = bool(saved_ssids)
    table = _new_table("WiFi Networks", f"{len(networks)} network(s) found")
    table.add_column("#", style="grey50", width=3, justify="right")
    table.add_column("SSID", style="white", min_width=15, max_width=32)
    if show_key:
        table.add_column("Key", justify="center", width=3)
    table.add_column("Signal", justify="right", width=6)
    table.add_column("Sig", width=5)
    table.add_column("Security", min_width=8)

    for i, net in enumerate(networks, 1):
        sig_c = _rich_color(signal_color(net.signal))
        sec_c = _rich_color(security_color(net.security))
        security = "Open" if net.is_open else escape(net.security)

        row = [str(i), escape(net.ssid)]
        if show_key:
            row.append("[green]*[/green]" if net.ssid in saved_ssids else "")
        row.extend([
            f"[{sig_c}]{net.signal}%[/{sig_c}]",
            f"[{sig_c}]{_bar_string(signal_to_bars(net.signal))}[/{sig_c}]",
            f"[{sec_c}]{security}[/{sec_c}]",
        ])
        table.add_row(*row)

    return table


# ---------------------------------------------------------------------------
# Connection status
# ---------------------------------------------------------------------------

def build_status_table(status: ConnectionStatus) -> Table:
    """Build a two-column table describing one interface's connection."""
    table = _new_table(f"Status: {escape(status.interface)}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Interface", escape(status.interface))
    table.add_row("State", _state_markup(status.state, status.device_state))
    table.add_row(
        "Connected",
        escape(status.connection) if status.connection else "[dim](none)[/dim]",
    )
    if status.ip_address:
        table.add_row("IP", escape(status.ip_address))
    if status.gateway:
        table.add_row("Gateway", escape(status.gateway))
    return table


# ---------------------------------------------------------------------------
# Saved credentials
# ---------------------------------------------------------------------------

def build_saved_networks_table(networks: list[SavedNetwork]) -> Table:
    """Build a table of saved networks with masked passwords."""
    table = _new_table("Saved Networks", f"{len(networks)} saved")
    table.add_column("SSID", style="white", min_width=15)
    table.add_column("Interface", min_width=10)
    table.add_column("Password")

    for net in networks:
        table.add_row(
            escape(net.ssid),
            escape(net.interface) if net.interface else "-",
            mask_password(net.password),
        )
    return table
