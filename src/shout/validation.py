# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Configuration validation for shout.

Validates YAML configuration structure and provides helpful error messages.
"""

import logging
from typing import Any, Dict, List, Set

from shout.packager import PackageType

logger = logging.getLogger(__name__)

# Valid top-level keys and the type each one must have
CONFIG_TYPES = {
    "boot": bool,
    "path": str,
    "home": str,
    "packager": str,
    "simulate": bool,
    "boot_log": str,
    "comment_char": str,
    "scripts_dir": str,
}

VALID_TOP_LEVEL_KEYS = set(CONFIG_TYPES)

VALID_PACKAGERS = {p.value for p in PackageType}


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration structure and return list of warnings/errors.

    Args:
        config: Configuration dictionary loaded from YAML

    Returns:
        List of warning/error messages (empty if valid)
    """
    issues = []

    if not isinstance(config, dict):
        return [f"Configuration must be a dictionary, got {type(config).__name__}"]

    unknown_keys = set(config.keys()) - VALID_TOP_LEVEL_KEYS
    for key in sorted(unknown_keys):
        suggestion = suggest_fix(key, VALID_TOP_LEVEL_KEYS)
        hint = f" Did you mean '{suggestion}'?" if suggestion else ""
        issues.append(f"Unknown config key: '{key}'.{hint}")

    for key, expected in CONFIG_TYPES.items():
        if key in config and not isinstance(config[key], expected):
            issues.append(
                f"'{key}' must be {expected.__name__}, got {type(config[key]).__name__}"
            )

    packager = config.get("packager")
    if isinstance(packager, str) and packager not in VALID_PACKAGERS:
        suggestion = suggest_fix(packager, VALID_PACKAGERS)
        hint = f" Did you mean '{suggestion}'?" if suggestion else ""
        issues.append(
            f"Unknown packager '{packager}'. "
            f"Valid packagers are: {', '.join(sorted(VALID_PACKAGERS))}.{hint}"
        )

    comment_char = config.get("comment_char")
    if isinstance(comment_char, str) and not comment_char.strip():
        issues.append("'comment_char' must not be blank")

    path = config.get("path")
    if isinstance(path, str) and not path.strip(":"):
        issues.append("'path' must list at least one directory")

    return issues


def suggest_fix(typo: str, valid_options: Set[str]) -> str:
    """
    Suggest a correction for a typo based on Levenshtein distance.

    Args:
        typo: The incorrect string
        valid_options: Set of valid options

    Returns:
        Suggested correction or empty string if no close match
    """
    def distance(s1: str, s2: str) -> int:
        if len(s1) > len(s2):
            s1, s2 = s2, s1
        distances = range(len(s1) + 1)
        for i2, c2 in enumerate(s2):
            distances_ = [i2 + 1]
            for i1, c1 in enumerate(s1):
                if c1 == c2:
                    distances_.append(distances[i1])
                else:
                    distances_.append(1 + min((distances[i1], distances[i1 + 1], distances_[-1])))
            distances = distances_
        return distances[-1]

    best_match = None
    best_distance = float("inf")

    for option in sorted(valid_options):
        dist = distance(typo.lower(), option.lower())
        if dist < best_distance and dist <= 2:  # Max distance of 2 for suggestions
            best_distance = dist
            best_match = option

    return best_match or ""
