"""Command-line front end for wifi-proxy.

Connects a secondary (usually USB) WiFi adapter to a device access point
while the built-in adapter keeps the primary connection::

    wifi-proxy list-interfaces
    wifi-proxy scan
    wifi-proxy connect RoboDog-AP -p secret123 --save
    wifi-proxy status
    wifi-proxy serve --port 8080
    wifi-proxy disconnect

Without ``-i/--interface`` every command uses the configured default
interface, or else the first USB WiFi adapter found.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from wifiproxy import __version__
from wifiproxy.connection import connect, disconnect, fetch_gateway, gateway_url, status
from wifiproxy.credentials import add_network, find_by_ssid, load_credentials, save_credentials
from wifiproxy.display.tables import (
    build_interface_table,
    build_network_table,
    build_saved_networks_table,
    build_status_table,
)
from wifiproxy.errors import MissingCredentials, NoGateway, WifiProxyError
from wifiproxy.interface import list_wifi_interfaces, resolve_interface
from wifiproxy.scan import find_network, scan_networks
from wifiproxy.server import ServerConfig, run_server
from wifiproxy.settings import Settings, load_settings
from wifiproxy.wifi_common import ConnectionStatus, SavedNetwork, WifiInterface

_LOGGER = logging.getLogger("wifiproxy")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _add_interface_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i", "--interface",
        help="wireless interface (default: configured or first USB adapter)",
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="wifi-proxy",
        description="Connect a secondary USB WiFi adapter to a different access point",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging (nmcli commands, exit codes)",
    )
    parser.add_argument(
        "-c", "--credentials",
        metavar="FILE",
        help="CSV file with saved ssid,password[,interface] entries",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list-interfaces", help="list WiFi interfaces and whether they are USB")

    p = sub.add_parser("scan", help="scan for networks")
    _add_interface_arg(p)

    p = sub.add_parser("connect", help="connect to a network")
    p.add_argument("ssid", help="network name")
    p.add_argument("-p", "--password", help="password (default: saved credentials)")
    _add_interface_arg(p)
    p.add_argument(
        "-s", "--save",
        action="store_true",
        help="save the credentials after a successful connection",
    )
    p.add_argument(
        "--check",
        action="store_true",
        help="scan first and stop if the network is not in range",
    )

    p = sub.add_parser("status", help="show connection status")
    _add_interface_arg(p)

    p = sub.add_parser("disconnect", help="disconnect the interface")
    _add_interface_arg(p)

    p = sub.add_parser("fetch-gateway", help="save the gateway's web page to a file")
    p.add_argument("-o", "--output", type=Path, default=Path("gateway.html"))
    _add_interface_arg(p)
    p.add_argument("-u", "--url", help="URL to fetch instead of the gateway root")

    p = sub.add_parser("serve", help="proxy the gateway's control interface locally")
    p.add_argument("-p", "--port", type=int, help="local port (default: 8080)")
    _add_interface_arg(p)

    p = sub.add_parser("save-network", help="save credentials without connecting")
    p.add_argument("ssid", help="network name")
    p.add_argument("-p", "--password", required=True)
    p.add_argument("-i", "--interface", help="preferred interface for this network")

    sub.add_parser("show-config", help="show settings and saved networks")

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _credentials_path(args: argparse.Namespace, settings: Settings) -> Path:
    if args.credentials:
        return Path(args.credentials).expanduser()
    return settings.credentials_file


def _resolve(
    args: argparse.Namespace,
    settings: Settings,
    preferred: str | None = None,
) -> WifiInterface:
    """Interface from the flag, else *preferred*, else settings, else USB."""
    name = args.interface or preferred or settings.default_interface
    return resolve_interface(name)


def _require_gateway(conn: ConnectionStatus) -> str:
    if not conn.gateway:
        raise NoGateway(conn.interface)
    return conn.gateway


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_list_interfaces(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    interfaces = list_wifi_interfaces()
    if not interfaces:
        console.print("No WiFi interfaces found.")
        return
    console.print(build_interface_table(interfaces))


def _cmd_scan(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    iface = _resolve(args, settings)
    console.print(f"Scanning on interface: [bold]{iface.name}[/bold]\n")
    networks = scan_networks(iface.name)
    if not networks:
        console.print("No networks found.")
        return
    saved = load_credentials(_credentials_path(args, settings))
    console.print(build_network_table(networks, {n.ssid for n in saved}))


def _cmd_connect(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    creds_path = _credentials_path(args, settings)
    saved = load_credentials(creds_path)
    entry = find_by_ssid(saved, args.ssid)

    password = args.password
    if password is None:
        if entry is None:
            raise MissingCredentials(args.ssid)
        console.print(f"Using saved password for '{escape(args.ssid)}'")
        password = entry.password

    iface = _resolve(args, settings, preferred=entry.interface if entry else None)
    if args.check:
        console.print(f"Scanning for '{escape(args.ssid)}' on interface {iface.name}...")
        net = find_network(scan_networks(iface.name), args.ssid)
        console.print(f"Found '{escape(net.ssid)}' at {net.signal}%")
    console.print(f"Connecting to '{escape(args.ssid)}' on interface {iface.name}...")
    connect(iface.name, args.ssid, password)
    console.print("[green]Connected successfully![/green]")

    if args.save:
        saved = add_network(saved, SavedNetwork(
            ssid=args.ssid, password=password, interface=iface.name,
        ))
        save_credentials(creds_path, saved)
        console.print(f"Credentials saved to {creds_path}")

    console.print()
    console.print(build_status_table(status(iface.name)))


def _cmd_status(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    iface = _resolve(args, settings)
    console.print(build_status_table(status(iface.name)))


def _cmd_disconnect(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    iface = _resolve(args, settings)
    console.print(f"Disconnecting interface {iface.name}...")
    disconnect(iface.name)
    console.print("Disconnected.")


def _cmd_fetch_gateway(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    iface = _resolve(args, settings)
    gateway = _require_gateway(status(iface.name))
    url = args.url or gateway_url(gateway)
    console.print(f"Fetching {url} ...")
    fetch_gateway(url, args.output, timeout=settings.request_timeout)
    console.print(f"Saved to {args.output}")


def _cmd_serve(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    iface = _resolve(args, settings)
    gateway = _require_gateway(status(iface.name))
    port = args.port or settings.port
    console.print(f"Starting server at [bold]http://localhost:{port}[/bold]")
    console.print(f"Proxying to gateway: {gateway}")
    run_server(ServerConfig(gateway=gateway, port=port, request_timeout=settings.request_timeout))


def _cmd_save_network(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    creds_path = _credentials_path(args, settings)
    saved = add_network(load_credentials(creds_path), SavedNetwork(
        ssid=args.ssid, password=args.password, interface=args.interface or None,
    ))
    save_credentials(creds_path, saved)
    console.print(f"Saved network '{escape(args.ssid)}' to {creds_path}")


def _cmd_show_config(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    creds_path = _credentials_path(args, settings)
    console.print(f"[bold cyan]Credentials file:[/bold cyan] {creds_path}")
    console.print(
        f"[bold cyan]Default interface:[/bold cyan] {settings.default_interface or '(auto-detect USB)'}"
    )
    console.print(f"[bold cyan]Port:[/bold cyan] {settings.port}")
    if settings.config_sources:
        console.print(f"[bold cyan]Sources:[/bold cyan] {', '.join(settings.config_sources)}")
    console.print()

    saved = load_credentials(creds_path)
    if not saved:
        console.print("No saved networks.")
        return
    console.print(build_saved_networks_table(saved))


_COMMANDS = {
    "list-interfaces": _cmd_list_interfaces,
    "scan": _cmd_scan,
    "connect": _cmd_connect,
    "status": _cmd_status,
    "disconnect": _cmd_disconnect,
    "fetch-gateway": _cmd_fetch_gateway,
    "serve": _cmd_serve,
    "save-network": _cmd_save_network,
    "show-config": _cmd_show_config,
}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    """Run one wifi-proxy command.

    Errors from the adapter, nmcli or the gateway are printed to stderr and
    exit with status 1.
    """
    args = _parse_args(argv)
    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(levelname)s: %(message)s",
            stream=sys.stderr,
        )
    console = Console()
    err_console = Console(stderr=True)

    settings = load_settings()
    _LOGGER.debug(
        "settings: interface=%s port=%s credentials=%s sources=%s",
        settings.default_interface,
        settings.port,
        settings.credentials_file,
        settings.config_sources,
    )

    try:
        _COMMANDS[args.command](args, settings, console)
    except (WifiProxyError, OSError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
