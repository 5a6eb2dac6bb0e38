"""
Configuration loader for shout.

Loads and validates the YAML configuration of the CLI.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shout.env import RunConfig

logger = logging.getLogger(__name__)

CONFIG_NAME = "shout.yml"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, tries ~/shout.yml then ./shout.yml

    Returns:
        Dictionary containing configuration

    Raises:
        FileNotFoundError: If config file not found
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path:
        path = Path(config_path).expanduser()
    else:
        home_config = Path.home() / CONFIG_NAME
        local_config = Path.cwd() / CONFIG_NAME

        if home_config.exists():
            path = home_config
        elif local_config.exists():
            path = local_config
        else:
            raise FileNotFoundError(
                "No config file found. Tried:\n"
                f"  - {home_config}\n"
                f"  - {local_config}\n"
                "Use --config to specify a custom location."
            )

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error parsing config file {path}: {e}")

    if config is None:
        config = {}

    for key in ("home", "scripts_dir", "boot_log"):
        if isinstance(config.get(key), str):
            config[key] = str(Path(config[key]).expanduser())

    from shout.validation import validate_config
    issues = validate_config(config)
    if issues:
        logger.warning("Configuration validation warnings:")
        for issue in issues:
            logger.warning(f"  - {issue}")

    return config


def run_config_from(config: Dict[str, Any], boot: Optional[bool] = None) -> RunConfig:
    """
    Build the pipeline environment described by a configuration.

    Args:
        config: Configuration dictionary
        boot: Overrides the "boot" key when given

    Returns:
        RunConfig for shout.cmd.run
    """
    if boot is None:
        boot = bool(config.get("boot", False))

    run_config = RunConfig.from_environ(boot=boot, home=config.get("home"))
    if config.get("path"):
        environ = dict(run_config.environ)
        environ["PATH"] = config["path"]
        run_config = RunConfig(environ=environ, home=run_config.home, boot=boot)
    return run_config


def get_scripts_dir(config: Dict[str, Any]) -> Path:
    """Get scripts directory from config or default."""
    return Path(config.get("scripts_dir", "~/.shout/scripts")).expanduser()
