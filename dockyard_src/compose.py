#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Docker Compose operations for registered projects.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console

from .errors import CommandFailedError, DaemonUnreachableError, RegistryAuthError
from .health import HealthMonitor
from .models import CommandResult, ContainerStatus, RegistryFailure
from .projects import find_compose_file
from .registry import classify

logger = logging.getLogger(__name__)

DAEMON_ERROR_PHRASES = (
    "Cannot connect to the Docker daemon",
    "Is the docker daemon running",
    "connection refused",
    "error during connect",
)

# Called with the failure and raw output; returns the message for the error
RegistryHandler = Callable[[RegistryFailure, str], str]


class ComposeRunner:
    """Runs `docker compose` synchronously in a project directory"""

    def __init__(self, engine_command: str = "docker", console: Optional[Console] = None):
        self.engine_command = engine_command
        self.console = console or Console()

    def build_argv(self, args: list[str]) -> list[str]:
        return [self.engine_command, "compose", *args]

    def run_compose_command(self, working_dir: Path, argv: list[str]) -> CommandResult:
        """Run with captured output; never retried"""
        cmd = self.build_argv(argv)
        self.console.print(f"\n[dim]Running: {' '.join(cmd)}[/dim]\n", highlight=False)

        try:
            with self.console.status("[cyan]Waiting for docker compose..."):
                result = subprocess.run(
                    cmd, cwd=working_dir, capture_output=True, text=True
                )
        except FileNotFoundError as e:
            return CommandResult(argv=tuple(cmd), returncode=127, stderr=str(e))
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted by user[/yellow]")
            return CommandResult(argv=tuple(cmd), returncode=130)

        return CommandResult(
            argv=tuple(cmd),
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def stream_compose_command(self, working_dir: Path, argv: list[str]) -> int:
        """Run attached to the terminal (for following logs)"""
        cmd = self.build_argv(argv)
        self.console.print(f"\n[dim]Running: {' '.join(cmd)}[/dim]\n", highlight=False)

        try:
            result = subprocess.run(cmd, cwd=working_dir)
            return result.returncode
        except FileNotFoundError:
            return 127
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted by user[/yellow]")
            return 130


class ComposeManager:
    """Project operations; each one checks the engine before running compose"""

    def __init__(
        self,
        runner: ComposeRunner,
        monitor: HealthMonitor,
        registry_handler: Optional[RegistryHandler] = None,
        console: Optional[Console] = None,
    ):
        self.runner = runner
        self.monitor = monitor
        self.registry_handler = registry_handler
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(
        self, project_dir: Path, detach: bool = True, remove_orphans: bool = True
    ) -> CommandResult:
        args = ["up"]
        if detach:
            args.append("-d")
        if remove_orphans:
            args.append("--remove-orphans")
        return self._run(project_dir, args)

    def stop(
        self, project_dir: Path, volumes: bool = False, remove_images: bool = False
    ) -> CommandResult:
        args = ["down"]
        if volumes:
            args.append("-v")
        if remove_images:
            args.extend(["--rmi", "local"])
        return self._run(project_dir, args)

    def restart(self, project_dir: Path) -> CommandResult:
        return self._run(project_dir, ["restart"])

    def pause(self, project_dir: Path) -> CommandResult:
        return self._run(project_dir, ["pause"])

    def unpause(self, project_dir: Path) -> CommandResult:
        return self._run(project_dir, ["unpause"])

    def pull(self, project_dir: Path) -> CommandResult:
        return self._run(project_dir, ["pull"])

    def build(self, project_dir: Path, no_cache: bool = False) -> CommandResult:
        args = ["build"]
        if no_cache:
            args.append("--no-cache")
        return self._run(project_dir, args)

    def logs(
        self,
        project_dir: Path,
        services: Optional[list[str]] = None,
        follow: bool = False,
        tail: Optional[int] = None,
    ) -> int:
        self.monitor.ensure_ready()
        compose_file = find_compose_file(project_dir)

        args = ["-f", str(compose_file), "logs"]
        if follow:
            args.append("-f")
        if tail is not None:
            args.extend(["--tail", str(tail)])
        if services:
            args.extend(services)

        returncode = self.runner.stream_compose_command(project_dir, args)
        if returncode not in (0, 130):
            result = CommandResult(
                argv=tuple(self.runner.build_argv(args)), returncode=returncode
            )
            raise CommandFailedError(
                f"docker compose logs failed with exit code {returncode}", result
            )
        return returncode

    def status(self, project_dir: Path) -> list[ContainerStatus]:
        """Containers of the project, including stopped ones"""
        result = self._run(project_dir, ["ps", "--all", "--format", "json"])
        return parse_ps_output(result.stdout)

    # ------------------------------------------------------------------
    # Execution and failure mapping
    # ------------------------------------------------------------------

    def _run(self, project_dir: Path, args: list[str]) -> CommandResult:
        self.monitor.ensure_ready()
        compose_file = find_compose_file(project_dir)

        result = self.runner.run_compose_command(
            project_dir, ["-f", str(compose_file), *args]
        )
        if not result.ok:
            self._raise_for_failure(result, args)
        return result

    def _raise_for_failure(self, result: CommandResult, args: list[str]) -> None:
        output = result.output
        command = " ".join(["compose", *args])

        failure = classify(output)
        if failure is not None:
            logger.debug("Registry failure: %s", failure)
            message = "Registry authentication required"
            if self.registry_handler is not None:
                message = self.registry_handler(failure, output)
            raise RegistryAuthError(message, failure)

        if any(phrase in output for phrase in DAEMON_ERROR_PHRASES):
            raise DaemonUnreachableError(
                "Docker daemon is not running. Please start it and try again"
            )

        if result.returncode == 130:
            raise CommandFailedError("Interrupted by user", result)

        if output.strip():
            self.console.print(output.rstrip(), markup=False, highlight=False)

        if "no such file or directory" in output.lower():
            raise CommandFailedError(
                "docker-compose file not found or invalid path", result
            )

        if "network" in output and "already exists" in output:
            self.console.print(
                "[yellow]⚠ Network conflict detected - "
                "this usually resolves itself[/yellow]"
            )

        raise CommandFailedError(
            f"docker {command} failed with exit code {result.returncode}", result
        )


def parse_ps_output(stdout: str) -> list[ContainerStatus]:
    """Parse `ps --format json`: one object per line, or a JSON array"""
    text = stdout.strip()
    if not text:
        return []

    if text.startswith("["):
        entries = json.loads(text)
    else:
        entries = [json.loads(line) for line in text.splitlines() if line.strip()]
    return [ContainerStatus.from_compose_json(entry) for entry in entries]
