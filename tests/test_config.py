# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for config.py module."""

import logging
from pathlib import Path

import pytest
import yaml

from shout.config import get_scripts_dir, load_config, run_config_from
from shout.env import BOOT_PATH


class TestLoadConfig:
    """Test configuration loading."""

    def test_load_config_from_file(self, config_file, sample_config):
        """Test loading config from a valid file."""
        config = load_config(str(config_file))
        # Home gets expanded by load_config
        expected = sample_config.copy()
        expected["home"] = str(Path(expected["home"]).expanduser())
        assert config == expected

    def test_load_config_file_not_found(self, temp_dir):
        """Test error handling for missing config file."""
        with pytest.raises(FileNotFoundError):
            load_config(str(temp_dir / "nonexistent.yml"))

    def test_load_config_invalid_yaml(self, temp_dir):
        """Test error handling for invalid YAML."""
        invalid_yaml = temp_dir / "invalid.yml"
        invalid_yaml.write_text("{ invalid yaml content: [")

        with pytest.raises(yaml.YAMLError, match="Error parsing config file"):
            load_config(str(invalid_yaml))

    def test_load_config_empty_file(self, temp_dir):
        """Test loading empty config file returns empty dict."""
        empty_config = temp_dir / "empty.yml"
        empty_config.touch()

        assert load_config(str(empty_config)) == {}

    def test_default_locations(self, tmp_path, monkeypatch):
        """Test ./shout.yml is used when ~/shout.yml is absent."""
        home = tmp_path / "home"
        work = tmp_path / "work"
        home.mkdir()
        work.mkdir()
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.chdir(work)

        with pytest.raises(FileNotFoundError, match="No config file found"):
            load_config()

        (work / "shout.yml").write_text("simulate: true\n")
        assert load_config() == {"simulate": True}

        (home / "shout.yml").write_text("simulate: false\n")
        assert load_config() == {"simulate": False}

    def test_paths_expanded(self, temp_dir):
        """Test ~ is expanded in path-valued keys."""
        config_path = temp_dir / "paths.yml"
        config_path.write_text("scripts_dir: ~/scripts\nboot_log: ~/boot.log\n")

        config = load_config(str(config_path))

        assert config["scripts_dir"] == str(Path.home() / "scripts")
        assert config["boot_log"] == str(Path.home() / "boot.log")

    def test_validation_warnings_logged(self, temp_dir, caplog):
        """Test invalid settings are reported but still loaded."""
        config_path = temp_dir / "typo.yml"
        config_path.write_text("packagr: deb\n")

        with caplog.at_level(logging.WARNING):
            config = load_config(str(config_path))

        assert config == {"packagr": "deb"}
        assert "Did you mean 'packager'?" in caplog.text


class TestRunConfigFrom:
    """Test pipeline environment construction."""

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin:/bin")
        run_config = run_config_from({})

        assert run_config.boot is False
        assert run_config.path == "/usr/bin:/bin"

    def test_home_and_path(self):
        run_config = run_config_from({"home": "/srv/home", "path": "/opt/bin:/bin"})

        assert run_config.home == "/srv/home"
        assert run_config.path == "/opt/bin:/bin"
        assert run_config.environ["PATH"] == "/opt/bin:/bin"

    def test_boot_from_config(self):
        run_config = run_config_from({"boot": True})

        assert run_config.boot is True
        assert run_config.environ == {"PATH": BOOT_PATH}

    def test_boot_override(self):
        assert run_config_from({"boot": True}, boot=False).boot is False
        assert run_config_from({}, boot=True).boot is True


class TestGetScriptsDir:
    """Test scripts directory resolution."""

    def test_from_config(self, tmp_path):
        assert get_scripts_dir({"scripts_dir": str(tmp_path)}) == tmp_path

    def test_default(self):
        assert get_scripts_dir({}) == Path.home() / ".shout" / "scripts"
