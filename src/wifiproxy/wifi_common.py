"""Shared data structures and the subprocess seam for wifiproxy."""

from __future__ import annotations

import enum
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Protocol

from wifiproxy.errors import ExecutionError

logger = logging.getLogger(__name__)

# -- Colors (RGB tuples; mapped to Rich names by the table builders) --
GREEN = (0, 255, 0)
YELLOW = (255, 255, 0)
RED = (255, 0, 0)
CYAN = (0, 255, 255)
GRAY = (128, 128, 128)

COLOR_TO_RICH: dict[tuple, str] = {
    GREEN: "green",
    YELLOW: "yellow",
    RED: "red",
    CYAN: "cyan",
    GRAY: "grey50",
}


# ---------------------------------------------------------------------------
# Device state classification
# ---------------------------------------------------------------------------

class DeviceState(enum.Enum):
    """Best-effort classification of a NetworkManager device state token."""

    UNMANAGED = "unmanaged"
    UNAVAILABLE = "unavailable"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DEACTIVATING = "deactivating"
    FAILED = "failed"
    UNKNOWN = "unknown"


# NMDeviceState numeric codes as printed by ``nmcli device show``.
# 40-90 are the activation stages (prepare, config, need-auth, ip-config,
# ip-check, secondaries).
_STATE_CODES: dict[int, DeviceState] = {
    10: DeviceState.UNMANAGED,
    20: DeviceState.UNAVAILABLE,
    30: DeviceState.DISCONNECTED,
    40: DeviceState.CONNECTING,
    50: DeviceState.CONNECTING,
    60: DeviceState.CONNECTING,
    70: DeviceState.CONNECTING,
    80: DeviceState.CONNECTING,
    90: DeviceState.CONNECTING,
    100: DeviceState.CONNECTED,
    110: DeviceState.DEACTIVATING,
    120: DeviceState.FAILED,
}

_STATE_CODE_RE = re.compile(r"^\s*(\d+)")


def classify_state(raw: str | None) -> DeviceState:
    """Classify a raw state token such as ``"100 (connected)"`` or
    ``"connecting (configuring)"``.

    Tokens that match neither the numeric nor the word form map to
    :attr:`DeviceState.UNKNOWN`.  The raw token itself is kept by the
    caller; this only adds a typed view of it.
    """
    if not raw or not raw.strip():
        return DeviceState.UNKNOWN

    match = _STATE_CODE_RE.match(raw)
    if match:
        return _STATE_CODES.get(int(match.group(1)), DeviceState.UNKNOWN)

    word = raw.strip().split(None, 1)[0].lower()
    try:
        return DeviceState(word)
    except ValueError:
        return DeviceState.UNKNOWN


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class WifiInterface:
    """A WiFi adapter as listed by NetworkManager."""

    name: str                   # e.g., "wlan1", "wlxdceae760e328"
    state: str = "unknown"      # raw nmcli token, e.g. "connected"
    is_usb: bool = False

    @property
    def device_state(self) -> DeviceState:
        return classify_state(self.state)


@dataclass
class ConnectionStatus:
    """Connection details for one interface.

    Fields the daemon reports as empty are ``None``.
    """

    interface: str
    state: str = "unknown"              # raw, e.g. "100 (connected)"
    connection: str | None = None       # active profile name
    ip_address: str | None = None       # CIDR, e.g. "192.168.4.2/24"
    gateway: str | None = None          # e.g. "192.168.4.1"

    @property
    def device_state(self) -> DeviceState:
        return classify_state(self.state)

    @property
    def is_connected(self) -> bool:
        return self.device_state is DeviceState.CONNECTED


@dataclass
class Network:
    """A WiFi network seen in a scan."""

    ssid: str
    signal: int = 0             # percent, 0-100
    security: str = ""          # empty means open

    @property
    def is_open(self) -> bool:
        return not self.security


@dataclass
class SavedNetwork:
    """Stored credentials for a network."""

    ssid: str
    password: str
    interface: str | None = None    # preferred adapter, if any


# ---------------------------------------------------------------------------
# Command runner protocol (subprocess injection seam)
# ---------------------------------------------------------------------------

class CommandRunner(Protocol):
    """Protocol for running external commands.

    Provides an injection seam so callers can substitute a fake runner in
    tests instead of patching ``subprocess`` globally.
    """

    def run(
        self,
        cmd: list[str],
        *,
        capture_output: bool = True,
        text: bool = True,
        timeout: int | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[Any]:
        """Run *cmd* and return a CompletedProcess."""
        ...  # pragma: no cover


class SubprocessRunner:
    """Default CommandRunner that delegates to the real ``subprocess`` module."""

    def run(
        self,
        cmd: list[str],
        *,
        capture_output: bool = True,
        text: bool = True,
        timeout: int | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[Any]:
        """Run *cmd* via ``subprocess.run``."""
        return subprocess.run(
            cmd,
            capture_output=capture_output,
            text=text,
            timeout=timeout,
            env=env,
        )


_DEFAULT_RUNNER = SubprocessRunner()


def _minimal_env() -> dict[str, str]:
    """Build a minimal environment for subprocess calls.

    Only passes PATH, LC_ALL, and HOME.  ``LC_ALL=C`` keeps nmcli's terse
    output untranslated.
    """
    return {
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
        "LC_ALL": "C",
        "HOME": os.environ.get("HOME", ""),
    }


@dataclass
class CommandResult:
    """Outcome of one external command.  A non-zero exit is ``ok=False``."""

    ok: bool
    stdout: str = ""
    stderr: str = ""


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _redact(args: list[str]) -> list[str]:
    """Mask the value following a ``password`` keyword for logging."""
    redacted = list(args)
    for i, arg in enumerate(redacted[:-1]):
        if arg == "password":
            redacted[i + 1] = "***"
    return redacted


def invoke(
    command: str,
    args: list[str],
    *,
    runner: CommandRunner | None = None,
) -> CommandResult:
    """Run *command* with *args* and capture its output.

    The call blocks until the process exits; no timeout is applied.

    Raises:
        ExecutionError: the command could not be spawned (missing binary,
            permission denied).
    """
    runner = runner or _DEFAULT_RUNNER
    cmd = [command, *args]
    logger.debug("exec: %s", " ".join(_redact(cmd)))

    try:
        result = runner.run(cmd, capture_output=True, text=False, env=_minimal_env())
    except OSError as exc:
        raise ExecutionError(command, str(exc)) from exc

    logger.debug("exit %d: %s", result.returncode, command)
    return CommandResult(
        ok=result.returncode == 0,
        stdout=_decode(result.stdout),
        stderr=_decode(result.stderr),
    )


# ---------------------------------------------------------------------------
# Signal / security helpers
# ---------------------------------------------------------------------------

def signal_to_bars(signal_pct: int) -> int:
    """Convert signal strength in percent to a bar count (0-4)."""
    if signal_pct >= 80:
        return 4
    if signal_pct >= 60:
        return 3
    if signal_pct >= 40:
        return 2
    if signal_pct >= 20:
        return 1
    return 0


def signal_color(signal_pct: int) -> tuple:
    """Return an RGB color tuple based on signal strength."""
    if signal_pct >= 70:
        return GREEN
    if signal_pct >= 40:
        return YELLOW
    return RED


def security_color(security: str) -> tuple:
    """Return an RGB color tuple based on the security descriptor."""
    if not security:
        return RED
    if "WEP" in security.upper():
        return YELLOW
    return GREEN
