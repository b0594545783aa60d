#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Exception hierarchy for dockyard.

Components raise these; only the CLI layer turns them into exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import CommandResult, EngineStatus, RegistryFailure


class DockyardError(Exception):
    """Base class for all dockyard errors"""


class ConfigError(DockyardError):
    """Configuration (projects file, platform document) could not be loaded"""


class ProjectNotFoundError(DockyardError):
    """Unknown project name"""

    def __init__(self, name: str):
        super().__init__(f"Unknown project: {name}")
        self.name = name


class ComposeFileNotFoundError(DockyardError):
    """No compose file in a project directory"""


class EngineError(DockyardError):
    """Base class for container engine availability errors"""

    def __init__(self, message: str, status: Optional["EngineStatus"] = None):
        super().__init__(message)
        self.status = status


class NotInstalledError(EngineError):
    """Engine executable is not on the search path"""


class DaemonUnreachableError(EngineError):
    """Engine is installed but its daemon does not answer"""


class RecoveryExhaustedError(DaemonUnreachableError):
    """Wait-and-retry ran out of attempts"""


class RecoveryCancelledError(DaemonUnreachableError):
    """Wait-and-retry was aborted before the daemon came up"""


class RegistryAuthError(DockyardError):
    """A compose command failed because of registry authentication"""

    def __init__(self, message: str, failure: "RegistryFailure"):
        super().__init__(message)
        self.failure = failure


class CommandFailedError(DockyardError):
    """A compose command failed for a reason with no specific guidance"""

    def __init__(self, message: str, result: "CommandResult"):
        super().__init__(message)
        self.result = result
