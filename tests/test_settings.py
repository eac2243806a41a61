"""Tests for wifiproxy.settings: TOML config files and environment overrides."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from wifiproxy.settings import (
    APP_NAME,
    Settings,
    get_config_dir,
    get_config_paths,
    load_settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ("WIFI_PROXY_INTERFACE", "WIFI_PROXY_PORT", "WIFI_PROXY_CREDENTIALS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


class TestConfigPaths:
    def test_xdg_config_home_respected(self, tmp_path):
        assert get_config_dir() == tmp_path / "xdg" / APP_NAME

    def test_falls_back_to_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("XDG_CONFIG_HOME")
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        assert get_config_dir() == tmp_path / "home" / ".config" / APP_NAME

    def test_user_file_before_local_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        paths = get_config_paths()
        assert paths == [
            tmp_path / "xdg" / APP_NAME / "config.toml",
            tmp_path / ".wifi-proxy.toml",
        ]


class TestDefaults:
    def test_no_files_gives_defaults(self, tmp_path):
        settings = load_settings([tmp_path / "missing.toml"])
        assert settings.default_interface is None
        assert settings.port == 8080
        assert settings.request_timeout == 10.0
        assert settings.credentials_file == tmp_path / "xdg" / APP_NAME / "networks.csv"
        assert settings.config_sources == []

    def test_settings_dataclass_defaults(self):
        assert Settings().port == 8080


class TestLoadSettings:
    def test_reads_all_keys(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text(
            'default_interface = "wlan1"\n'
            "port = 9000\n"
            f'credentials_file = "{tmp_path / "creds.csv"}"\n'
            "request_timeout = 3.5\n"
        )
        settings = load_settings([cfg])
        assert settings.default_interface == "wlan1"
        assert settings.port == 9000
        assert settings.credentials_file == tmp_path / "creds.csv"
        assert settings.request_timeout == 3.5
        assert settings.config_sources == [str(cfg)]

    def test_later_file_overrides_earlier(self, tmp_path):
        first = tmp_path / "a.toml"
        first.write_text('default_interface = "wlan1"\nport = 9000\n')
        second = tmp_path / "b.toml"
        second.write_text("port = 9100\n")
        settings = load_settings([first, second])
        assert settings.default_interface == "wlan1"
        assert settings.port == 9100
        assert settings.config_sources == [str(first), str(second)]

    def test_credentials_path_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        cfg = tmp_path / "config.toml"
        cfg.write_text('credentials_file = "~/creds.csv"\n')
        assert load_settings([cfg]).credentials_file == tmp_path / "home" / "creds.csv"

    def test_invalid_toml_logs_warning_and_continues(self, tmp_path, caplog):
        cfg = tmp_path / "config.toml"
        cfg.write_text("port = = 1\n")
        with caplog.at_level(logging.WARNING, logger="wifiproxy.settings"):
            settings = load_settings([cfg])
        assert settings.port == 8080
        assert "Failed to load" in caplog.text

    def test_invalid_port_type_logs_warning(self, tmp_path, caplog):
        cfg = tmp_path / "config.toml"
        cfg.write_text('port = "high"\n')
        with caplog.at_level(logging.WARNING, logger="wifiproxy.settings"):
            settings = load_settings([cfg])
        assert settings.port == 8080
        assert "Failed to load" in caplog.text

    def test_bad_value_skips_whole_file(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text('default_interface = "wlan1"\nport = "high"\n')
        settings = load_settings([cfg])
        assert settings.default_interface is None
        assert settings.config_sources == []

    def test_bad_file_does_not_undo_earlier_file(self, tmp_path):
        good = tmp_path / "a.toml"
        good.write_text('default_interface = "wlan1"\n')
        bad = tmp_path / "b.toml"
        bad.write_text('default_interface = "wlan2"\nrequest_timeout = "soon"\n')
        settings = load_settings([good, bad])
        assert settings.default_interface == "wlan1"
        assert settings.config_sources == [str(good)]

    def test_unknown_keys_ignored(self, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text('colour = "blue"\n')
        assert load_settings([cfg]).port == 8080

    def test_default_paths_used(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".wifi-proxy.toml").write_text('default_interface = "wlan7"\n')
        assert load_settings().default_interface == "wlan7"


class TestEnvOverrides:
    def test_env_overrides_files(self, monkeypatch, tmp_path):
        cfg = tmp_path / "config.toml"
        cfg.write_text('default_interface = "wlan1"\nport = 9000\n')
        monkeypatch.setenv("WIFI_PROXY_INTERFACE", "wlan2")
        monkeypatch.setenv("WIFI_PROXY_PORT", "9200")
        monkeypatch.setenv("WIFI_PROXY_CREDENTIALS", str(tmp_path / "env.csv"))
        settings = load_settings([cfg])
        assert settings.default_interface == "wlan2"
        assert settings.port == 9200
        assert settings.credentials_file == tmp_path / "env.csv"
        assert "env:WIFI_PROXY_PORT" in settings.config_sources

    def test_invalid_env_port_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("WIFI_PROXY_PORT", "eighty")
        with caplog.at_level(logging.WARNING, logger="wifiproxy.settings"):
            settings = load_settings([])
        assert settings.port == 8080
        assert "Ignoring invalid" in caplog.text

    def test_empty_env_values_ignored(self, monkeypatch):
        monkeypatch.setenv("WIFI_PROXY_INTERFACE", "")
        assert load_settings([]).default_interface is None

    def test_paths_are_pathlib(self, monkeypatch):
        monkeypatch.setenv("WIFI_PROXY_CREDENTIALS", "/tmp/x.csv")
        assert isinstance(load_settings([]).credentials_file, Path)
