"""Tests for wifiproxy.credentials: CSV credential store."""

from __future__ import annotations

import logging
import os
import stat

import pytest

from wifiproxy.credentials import (
    add_network,
    find_by_ssid,
    load_credentials,
    mask_password,
    save_credentials,
)
from wifiproxy.wifi_common import SavedNetwork


def _write(path, text, mode=0o600):
    path.write_text(text)
    os.chmod(path, mode)
    return path


# ---------------------------------------------------------------------------
# load_credentials
# ---------------------------------------------------------------------------

class TestLoadCredentials:
    def test_loads_valid_csv(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "RoboDog-AP,secret123,wlan1\nCafe,latte\n")
        assert load_credentials(creds) == [
            SavedNetwork(ssid="RoboDog-AP", password="secret123", interface="wlan1"),
            SavedNetwork(ssid="Cafe", password="latte", interface=None),
        ]

    def test_skips_comment_lines(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "# ssid,password\nHome,pw\n  # note\n")
        assert [n.ssid for n in load_credentials(creds)] == ["Home"]

    def test_skips_blank_lines(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "\nHome,pw\n\n")
        assert len(load_credentials(creds)) == 1

    def test_skips_single_field_lines(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "lonely\nHome,pw\n")
        assert [n.ssid for n in load_credentials(creds)] == ["Home"]

    def test_skips_empty_ssid(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", ",pw\nHome,pw\n")
        assert [n.ssid for n in load_credentials(creds)] == ["Home"]

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_credentials(tmp_path / "nope.csv") == []

    def test_directory_path_returns_empty(self, tmp_path):
        assert load_credentials(tmp_path) == []

    def test_quoted_fields(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", '"Lab, 2nd floor","pa,ss"\n')
        assert load_credentials(creds) == [SavedNetwork("Lab, 2nd floor", "pa,ss")]

    def test_strips_whitespace(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "  Home , pw , wlan1 \n")
        assert load_credentials(creds) == [SavedNetwork("Home", "pw", "wlan1")]

    def test_empty_interface_column_is_none(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "Home,pw,\n")
        assert load_credentials(creds)[0].interface is None

    def test_open_network_empty_password(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "OpenCafe,\n")
        assert load_credentials(creds) == [SavedNetwork("OpenCafe", "")]

    def test_duplicate_ssid_last_wins(self, tmp_path):
        creds = _write(tmp_path / "networks.csv", "Home,old\nHome,new,wlan2\n")
        assert load_credentials(creds) == [SavedNetwork("Home", "new", "wlan2")]

    def test_warns_world_readable(self, tmp_path, caplog):
        creds = _write(tmp_path / "networks.csv", "Home,pw\n", mode=0o644)
        with caplog.at_level(logging.WARNING, logger="wifiproxy.credentials"):
            load_credentials(creds)
        assert "world-readable" in caplog.text

    def test_no_warning_when_private(self, tmp_path, caplog):
        creds = _write(tmp_path / "networks.csv", "Home,pw\n")
        with caplog.at_level(logging.WARNING, logger="wifiproxy.credentials"):
            load_credentials(creds)
        assert "world-readable" not in caplog.text


# ---------------------------------------------------------------------------
# save_credentials
# ---------------------------------------------------------------------------

class TestSaveCredentials:
    def test_round_trip(self, tmp_path):
        nets = [
            SavedNetwork("RoboDog-AP", "secret123", "wlan1"),
            SavedNetwork("Lab, 2nd floor", "p\"w", None),
        ]
        path = tmp_path / "networks.csv"
        save_credentials(path, nets)
        assert load_credentials(path) == nets

    def test_file_mode_is_600(self, tmp_path):
        path = tmp_path / "networks.csv"
        save_credentials(path, [SavedNetwork("Home", "pw")])
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "networks.csv"
        save_credentials(path, [SavedNetwork("Home", "pw")])
        assert path.is_file()

    def test_writes_header_comment(self, tmp_path):
        path = tmp_path / "networks.csv"
        save_credentials(path, [])
        assert path.read_text().startswith("# ssid,password,interface")

    def test_overwrites_existing(self, tmp_path):
        path = tmp_path / "networks.csv"
        save_credentials(path, [SavedNetwork("Old", "pw")])
        save_credentials(path, [SavedNetwork("New", "pw")])
        assert [n.ssid for n in load_credentials(path)] == ["New"]


# ---------------------------------------------------------------------------
# find_by_ssid / add_network / mask_password
# ---------------------------------------------------------------------------

class TestFindBySsid:
    def test_found(self):
        nets = [SavedNetwork("A", "1"), SavedNetwork("B", "2")]
        assert find_by_ssid(nets, "B") == SavedNetwork("B", "2")

    def test_missing_returns_none(self):
        assert find_by_ssid([SavedNetwork("A", "1")], "Z") is None


class TestAddNetwork:
    def test_appends_new(self):
        nets = add_network([SavedNetwork("A", "1")], SavedNetwork("B", "2"))
        assert [n.ssid for n in nets] == ["A", "B"]

    def test_replaces_same_ssid(self):
        nets = add_network(
            [SavedNetwork("A", "1"), SavedNetwork("B", "2")],
            SavedNetwork("A", "new", "wlan1"),
        )
        assert nets == [SavedNetwork("B", "2"), SavedNetwork("A", "new", "wlan1")]

    def test_input_list_unchanged(self):
        original = [SavedNetwork("A", "1")]
        add_network(original, SavedNetwork("A", "2"))
        assert original == [SavedNetwork("A", "1")]


class TestMaskPassword:
    @pytest.mark.parametrize("password, masked", [
        ("", ""), ("abc", "***"), ("x" * 12, "*" * 12), ("x" * 40, "*" * 12),
    ])
    def test_mask(self, password, masked):
        assert mask_password(password) == masked
