#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Process launcher for GUI runtimes and helper binaries.
"""

import logging
import subprocess
from typing import Optional

from .models import CommandResult

logger = logging.getLogger(__name__)


class ProcessLauncher:
    """Runs external programs with captured output"""

    def __init__(self, timeout: Optional[float] = 120):
        self.timeout = timeout

    def run_command(
        self, name: str, args: list[str], input_text: Optional[str] = None
    ) -> CommandResult:
        argv = (name, *args)
        logger.debug("Running: %s", " ".join(argv))
        try:
            result = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                input=input_text,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(argv=argv, returncode=127, stderr=str(e))
        except subprocess.TimeoutExpired:
            return CommandResult(
                argv=argv,
                returncode=124,
                stderr=f"{name} did not finish within {self.timeout} seconds",
            )
        return CommandResult(
            argv=argv,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def launch_application(self, name: str) -> CommandResult:
        """Open a macOS application bundle by name"""
        return self.run_command("open", ["-a", name])
