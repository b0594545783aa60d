#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Platform profiles: install, troubleshooting and startup texts per OS.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import ValidationError
from rich.console import Console

from .errors import ConfigError
from .models import PlatformName, PlatformProfile, PlatformsConfig

DEFAULT_PLATFORMS_PATH = Path(__file__).parent / "platforms.yaml"
FALLBACK_PLATFORM: PlatformName = "linux"

logger = logging.getLogger(__name__)


def current_platform() -> str:
    """OS identifier as used in platforms.yaml ('darwin', 'windows', 'linux', ...)"""
    return platform.system().lower()


def load_platforms_config(path: Optional[Path] = None) -> PlatformsConfig:
    """Load and validate the platform document"""
    path = path or DEFAULT_PLATFORMS_PATH
    logger.debug("Loading platform profiles from %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read platform profiles {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in platform profiles {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Platform profiles {path} must be a YAML mapping")

    try:
        return PlatformsConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid platform profiles {path}:\n{e}") from e


def get_platform_profile(config: PlatformsConfig, os_name: str) -> PlatformProfile:
    """Profile for os_name; unknown platforms get the linux profile"""
    profile = config.platforms.get(os_name)
    if profile is None:
        return config.platforms[FALLBACK_PLATFORM]
    return profile


def get_startup_instructions(
    config: PlatformsConfig,
    os_name: str,
    kind: Literal["manual", "auto"] = "manual",
) -> list[str]:
    startup = get_platform_profile(config, os_name).startup
    if kind == "auto":
        return startup.auto
    return startup.manual


def print_lines(console: Console, lines: list[str]) -> None:
    """Print instruction lines verbatim (no markup)"""
    for line in lines:
        console.print(line, markup=False, highlight=False)
