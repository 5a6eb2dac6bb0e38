# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Pytest configuration and shared fixtures."""

import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict

import pytest

from shout.env import RunConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def run_config(tmp_path) -> RunConfig:
    """Process environment with the home directory moved to tmp_path."""
    return RunConfig.from_environ(home=str(tmp_path))


@pytest.fixture
def source_dir(tmp_path, monkeypatch) -> Path:
    """Working directory holding a few files to glob."""
    src = tmp_path / "src"
    src.mkdir()
    for name in ("cmd.go", "cmd_test.go", "doc.go", "notes.txt"):
        (src / name).write_text(f"package shout\n// {name}\n")
    monkeypatch.chdir(src)
    return src


@pytest.fixture
def bin_dir(tmp_path) -> Path:
    """Directory for fake executables."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


def _make_executable(directory: Path, name: str, body: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Write an executable file."""
    path = directory / name
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def make_executable():
    """Factory writing executable files: make_executable(directory, name, body)."""
    return _make_executable


@pytest.fixture
def wrapper_config(tmp_path, bin_dir) -> RunConfig:
    """Environment whose PATH starts with bin_dir, holding a fake sudo."""
    _make_executable(bin_dir, "sudo", '#!/bin/sh\nexec "$@"\n')
    environ = dict(os.environ)
    environ["PATH"] = f"{bin_dir}:{environ.get('PATH', os.defpath)}"
    return RunConfig(environ=environ, home=str(tmp_path))


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "boot": False,
        "home": "~/test-home",
        "packager": "deb",
        "simulate": True,
        "comment_char": "#",
    }


@pytest.fixture
def config_file(temp_dir, sample_config):
    """Create a temporary config file."""
    config_path = temp_dir / "shout.yml"
    import yaml
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path
