# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for shout.boot."""

import logging
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from shout import boot
from shout.env import BOOT_PATH
from shout.errors import BootError


@pytest.fixture
def no_plymouth(monkeypatch):
    monkeypatch.setattr(boot, "use_plymouth", lambda executable=boot.PLYMOUTH: False)


@pytest.fixture
def with_plymouth(monkeypatch):
    monkeypatch.setattr(boot, "use_plymouth", lambda executable=boot.PLYMOUTH: True)


class TestUsePlymouth:
    """Test plymouth detection."""

    def test_missing_executable(self, tmp_path):
        assert boot.use_plymouth(str(tmp_path / "plymouth")) is False

    def test_ping(self, bin_dir, make_executable):
        up = make_executable(bin_dir, "plymouth-up", "#!/bin/sh\nexit 0\n")
        down = make_executable(bin_dir, "plymouth-down", "#!/bin/sh\nexit 1\n")

        assert boot.use_plymouth(str(up)) is True
        assert boot.use_plymouth(str(down)) is False


class TestReadPassword:
    """Test password prompts."""

    def test_terminal(self, no_plymouth):
        with patch("shout.boot.getpass.getpass", return_value="secret") as mock:
            assert boot.read_password("Passphrase: ") == "secret"
        mock.assert_called_once_with("Passphrase: ")

    def test_terminal_eof(self, no_plymouth):
        with patch("shout.boot.getpass.getpass", side_effect=EOFError):
            with pytest.raises(BootError):
                boot.read_password("Passphrase: ")

    def test_plymouth(self, with_plymouth):
        completed = MagicMock(stdout="secret\n")
        with patch("shout.boot.subprocess.run", return_value=completed) as mock:
            assert boot.read_password("Disk: ") == "secret"

        argv = mock.call_args.args[0]
        assert argv == [boot.PLYMOUTH, "ask-for-password", "--prompt=Disk: "]

    def test_plymouth_failure(self, with_plymouth):
        error = subprocess.CalledProcessError(1, ["plymouth"])
        with patch("shout.boot.subprocess.run", side_effect=error):
            with pytest.raises(BootError):
                boot.read_password("Disk: ")


class TestWrite:
    """Test boot messages."""

    def test_stderr(self, no_plymouth, capsys):
        boot.write("Starting ")
        boot.writeln("network")

        assert capsys.readouterr().err == "Starting network\n"

    def test_plymouth(self, with_plymouth):
        with patch("shout.boot.subprocess.run") as mock:
            boot.writeln("Mounting disks")

        argv = mock.call_args.args[0]
        assert argv == [boot.PLYMOUTH, "message", "--text=Mounting disks\n"]


class TestSetupBoot:
    """Test boot script preparation."""

    def test_sets_path_and_log(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PATH", raising=False)
        log_file = tmp_path / "boot.log"
        root = logging.getLogger()
        handlers = list(root.handlers)

        try:
            config = boot.setup_boot(log_file)
            logging.getLogger("shout.test").warning("disk check done")
        finally:
            for handler in root.handlers[:]:
                if handler not in handlers:
                    root.removeHandler(handler)
                    handler.close()

        assert config.boot is True
        assert config.path == BOOT_PATH
        assert "disk check done" in log_file.read_text()

    def test_log_handler_added_once(self, tmp_path):
        log_file = tmp_path / "boot.log"
        root = logging.getLogger()
        handlers = list(root.handlers)

        try:
            boot.setup_boot(log_file)
            boot.setup_boot(str(log_file))
            added = [h for h in root.handlers if h not in handlers]
        finally:
            for handler in root.handlers[:]:
                if handler not in handlers:
                    root.removeHandler(handler)
                    handler.close()

        assert len(added) == 1

    def test_keeps_existing_path(self, monkeypatch):
        monkeypatch.setenv("PATH", "/opt/bin")

        config = boot.setup_boot(None)

        assert boot.os.environ["PATH"] == "/opt/bin"
        assert config.environ == {"PATH": BOOT_PATH}
