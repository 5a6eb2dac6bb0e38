"""
Helpers for scripts run at boot time.

During a graphical boot, messages and password prompts go through plymouth
when it answers; otherwise they use the terminal.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import getpass
import logging
import os
import subprocess
import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from shout.env import BOOT_PATH, RunConfig
from shout.errors import BootError

logger = logging.getLogger(__name__)

PLYMOUTH = "/bin/plymouth"
BOOT_LOG = "/var/log/boot_.log"


@lru_cache(maxsize=None)
def use_plymouth(executable: str = PLYMOUTH) -> bool:
    """Report whether a running plymouth daemon answers a ping."""
    if not os.path.exists(executable):
        return False
    try:
        result = subprocess.run([executable, "--ping"], capture_output=True)
    except OSError as e:
        logger.debug(f"Cannot run {executable}: {e}")
        return False
    return result.returncode == 0


def read_password(prompt: str) -> str:
    """
    Read a password without echoing it.

    Raises:
        BootError: If the password cannot be read
    """
    if use_plymouth():
        try:
            result = subprocess.run(
                [PLYMOUTH, "ask-for-password", f"--prompt={prompt}"],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise BootError(f"read_password: {e}") from e
        return result.stdout.rstrip("\n")

    try:
        return getpass.getpass(prompt)
    except (EOFError, OSError) as e:
        raise BootError(f"read_password: {e}") from e


def write(message: str) -> None:
    """Show a message on the boot splash, or on stderr."""
    if use_plymouth():
        subprocess.run([PLYMOUTH, "message", f"--text={message}"], capture_output=True)
    else:
        sys.stderr.write(message)
        sys.stderr.flush()


def writeln(message: str) -> None:
    write(message + "\n")


def _has_file_handler(log: logging.Logger, log_file: Union[str, Path]) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target
        for h in log.handlers
    )


def setup_boot(log_file: Optional[Union[str, Path]] = BOOT_LOG) -> RunConfig:
    """
    Prepare a boot script.

    Sets PATH when the boot environment has none, sends log records to
    log_file as well, and returns the configuration pipelines should use.
    """
    if not os.environ.get("PATH"):
        os.environ["PATH"] = BOOT_PATH

    root = logging.getLogger()
    if log_file and not _has_file_handler(root, log_file):
        handler = logging.FileHandler(log_file)
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        root.addHandler(handler)
        logger.debug(f"Boot log: {log_file}")

    return RunConfig.from_environ(boot=True)
