# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Package management across Linux distributions.

Each Packager builds the command lines of one package manager and runs them
through the pipeline executor. Only the outcome matters: output is never
parsed.

Options other than the DEB ones have not been tested on every system.
"""

import enum
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Type

from shout.cmd import run
from shout.env import RunConfig
from shout.errors import PackagerError

logger = logging.getLogger(__name__)

BIN_DIR = "/usr/bin"


class PackageType(enum.Enum):
    """Package management systems."""

    DEB = "deb"
    RPM = "rpm"
    PACMAN = "pacman"
    EBUILD = "ebuild"
    ZYPP = "zypp"


class Packager(ABC):
    """Base class of the package managers."""

    executable: str = ""

    def __init__(self, config: Optional[RunConfig] = None, simulate: bool = False):
        """
        Args:
            config: Execution environment for the package manager commands
            simulate: Ask the manager to only simulate changes, where supported
        """
        self.config = config
        self.simulate = simulate
        self._refreshed = False

    @property
    def bin(self) -> str:
        return os.path.join(BIN_DIR, self.executable)

    def _run(self, args: str) -> None:
        command = f"{self.bin} {args}"
        logger.info(f"Executing: {command}")
        result = run(command, config=self.config)
        if not result.ok:
            raise PackagerError(f"`{command}` did not succeed")

    def _run_all(self, commands: List[str]) -> None:
        for args in commands:
            self._run(args)

    def install(self, name: str) -> None:
        """Install a package; package lists are refreshed before the first install."""
        if not self._refreshed:
            self._run_all(self.refresh_commands())
            self._refreshed = True
        self._run_all(self.install_commands(name))

    def update(self) -> None:
        """Retrieve new lists of packages."""
        self._run_all(self.refresh_commands())
        self._refreshed = True

    def remove(self, name: str, metapackage: bool = False) -> None:
        """Remove a package; with metapackage, also its unused dependencies."""
        self._run_all(self.remove_commands(name, metapackage))

    def purge(self, name: str, metapackage: bool = False) -> None:
        """Remove a package and its configuration files."""
        self._run_all(self.purge_commands(name, metapackage))

    def clean(self) -> None:
        """Erase downloaded archive files."""
        self._run_all(self.clean_commands())

    def upgrade(self) -> None:
        """Upgrade all the packages on the system."""
        self._run_all(self.upgrade_commands())

    @abstractmethod
    def refresh_commands(self) -> List[str]:
        ...

    @abstractmethod
    def install_commands(self, name: str) -> List[str]:
        ...

    @abstractmethod
    def remove_commands(self, name: str, metapackage: bool) -> List[str]:
        ...

    def purge_commands(self, name: str, metapackage: bool) -> List[str]:
        return []

    def clean_commands(self) -> List[str]:
        return []

    @abstractmethod
    def upgrade_commands(self) -> List[str]:
        ...


class Deb(Packager):
    """APT (Debian, Ubuntu)."""

    executable = "apt-get"

    @property
    def _yes(self) -> str:
        return "-y -s" if self.simulate else "-y"

    def refresh_commands(self) -> List[str]:
        return ["update"]

    def install_commands(self, name: str) -> List[str]:
        return [f"install {self._yes} {name}"]

    def remove_commands(self, name: str, metapackage: bool) -> List[str]:
        commands = [f"remove {self._yes} {name}"]
        if metapackage:
            commands.append(f"autoremove {self._yes}")
        return commands

    def purge_commands(self, name: str, metapackage: bool) -> List[str]:
        commands = [f"purge {self._yes} {name}"]
        if metapackage:
            commands.append(f"autoremove --purge {self._yes}")
        return commands

    def clean_commands(self) -> List[str]:
        return ["clean"]

    def upgrade_commands(self) -> List[str]:
        return ["update", f"upgrade {self._yes}"]


class Rpm(Packager):
    """YUM (Fedora, CentOS, RHEL)."""

    executable = "yum"

    def refresh_commands(self) -> List[str]:
        return ["makecache"]

    def install_commands(self, name: str) -> List[str]:
        return [f"install -y {name}"]

    def remove_commands(self, name: str, metapackage: bool) -> List[str]:
        return [f"remove -y {name}"]

    def clean_commands(self) -> List[str]:
        return ["clean packages"]

    def upgrade_commands(self) -> List[str]:
        return ["update -y"]


class Pacman(Packager):
    """Pacman (Arch Linux)."""

    executable = "pacman"

    def refresh_commands(self) -> List[str]:
        return ["-Sy --noconfirm"]

    def install_commands(self, name: str) -> List[str]:
        return [f"-S --needed --noconfirm --noprogressbar {name}"]

    def remove_commands(self, name: str, metapackage: bool) -> List[str]:
        flags = "-Rs" if metapackage else "-R"
        return [f"{flags} --noconfirm {name}"]

    def purge_commands(self, name: str, metapackage: bool) -> List[str]:
        flags = "-Rsn" if metapackage else "-Rn"
        return [f"{flags} --noconfirm {name}"]

    def clean_commands(self) -> List[str]:
        return ["-Sc --noconfirm"]

    def upgrade_commands(self) -> List[str]:
        return ["-Syu --noconfirm"]


class Ebuild(Packager):
    """Portage (Gentoo)."""

    executable = "emerge"

    def refresh_commands(self) -> List[str]:
        return ["--sync"]

    def install_commands(self, name: str) -> List[str]:
        return [name]

    def remove_commands(self, name: str, metapackage: bool) -> List[str]:
        commands = [f"--unmerge {name}"]
        if metapackage:
            commands.append("--depclean")
        return commands

    def upgrade_commands(self) -> List[str]:
        return ["--sync", "--update --deep --with-bdeps=y --newuse world"]


class Zypp(Packager):
    """ZYpp (openSUSE, SUSE)."""

    executable = "zypper"

    def refresh_commands(self) -> List[str]:
        return ["refresh"]

    def install_commands(self, name: str) -> List[str]:
        return [f"--non-interactive install --auto-agree-with-licenses {name}"]

    def remove_commands(self, name: str, metapackage: bool) -> List[str]:
        return [f"--non-interactive remove {name}"]

    def clean_commands(self) -> List[str]:
        return ["clean"]

    def upgrade_commands(self) -> List[str]:
        return ["refresh", "--non-interactive update --auto-agree-with-licenses"]


PACKAGERS: Dict[PackageType, Type[Packager]] = {
    PackageType.DEB: Deb,
    PackageType.RPM: Rpm,
    PackageType.PACMAN: Pacman,
    PackageType.EBUILD: Ebuild,
    PackageType.ZYPP: Zypp,
}


def new_packager(package_type: PackageType, config: Optional[RunConfig] = None,
                 simulate: bool = False) -> Packager:
    """Return the packager for a package management system."""
    return PACKAGERS[PackageType(package_type)](config=config, simulate=simulate)


def detect(bin_dir: str = BIN_DIR) -> Optional[Tuple[PackageType, str]]:
    """
    Find the package manager installed on this system.

    Args:
        bin_dir: Directory searched for package manager executables

    Returns:
        (package type, executable path), or None if none is found
    """
    for package_type, cls in PACKAGERS.items():
        candidate = os.path.join(bin_dir, cls.executable)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return package_type, candidate
    return None
