#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Docker Compose project manager package.
"""

from .commands import app, main
from .compose import ComposeManager, ComposeRunner
from .errors import (
    CommandFailedError,
    ComposeFileNotFoundError,
    ConfigError,
    DaemonUnreachableError,
    DockyardError,
    EngineError,
    NotInstalledError,
    ProjectNotFoundError,
    RecoveryCancelledError,
    RecoveryExhaustedError,
    RegistryAuthError,
)
from .health import HealthMonitor
from .models import (
    CommandResult,
    ContainerStatus,
    EngineStatus,
    PlatformProfile,
    PlatformsConfig,
    RegistryFailure,
    RetryState,
    Settings,
)
from .projects import ProjectStore
from .registry import classify

__all__ = [
    # Commands
    "app",
    "main",
    # Components
    "ComposeManager",
    "ComposeRunner",
    "HealthMonitor",
    "ProjectStore",
    "classify",
    # Models
    "CommandResult",
    "ContainerStatus",
    "EngineStatus",
    "PlatformProfile",
    "PlatformsConfig",
    "RegistryFailure",
    "RetryState",
    "Settings",
    # Errors
    "DockyardError",
    "ConfigError",
    "ProjectNotFoundError",
    "ComposeFileNotFoundError",
    "EngineError",
    "NotInstalledError",
    "DaemonUnreachableError",
    "RecoveryExhaustedError",
    "RecoveryCancelledError",
    "RegistryAuthError",
    "CommandFailedError",
]
