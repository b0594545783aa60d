#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Container engine health check and guided recovery.

The monitor answers "can container operations run right now?" and, when the
daemon is unreachable, walks the user through a platform-specific recovery:

    INIT -> not installed        -> install instructions (error)
    INIT -> daemon unreachable   -> choose recovery (macOS only)
        auto   -> launch OrbStack | Colima | Docker Desktop
                  launched -> wait and retry
                  failed   -> manual instructions (error)
        wait   -> wait and retry
        manual -> manual instructions (error)
    wait and retry -> success within max_retries -> ready
                   -> exhausted                  -> manual instructions (error)

Windows and Linux only print troubleshooting tips before failing.
"""

from __future__ import annotations

import logging
import shutil
import threading
from typing import Any, Callable, Optional, Protocol

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException
from rich.console import Console

from .errors import (
    DaemonUnreachableError,
    NotInstalledError,
    RecoveryCancelledError,
    RecoveryExhaustedError,
)
from .interaction import Interaction
from .launcher import ProcessLauncher
from .models import EngineStatus, PlatformProfile, PlatformsConfig, RetryState, Settings
from .platforms import (
    current_platform,
    get_platform_profile,
    get_startup_instructions,
    print_lines,
)

logger = logging.getLogger(__name__)

PROBE_ERRORS = (DockerException, RequestException, OSError)

COMMAND_ORBCTL = "orbctl"
COMMAND_COLIMA = "colima"


class EngineClient(Protocol):
    """The part of docker.DockerClient the monitor uses"""

    def ping(self) -> bool: ...

    def version(self) -> dict[str, Any]: ...

    def info(self) -> dict[str, Any]: ...

    def close(self) -> None: ...


ClientFactory = Callable[[float], EngineClient]


def default_client_factory(timeout: float) -> EngineClient:
    """Docker SDK client configured from the environment (DOCKER_HOST, ...)"""
    return docker.from_env(timeout=timeout)


class HealthMonitor:
    """Checks engine availability and drives recovery when the daemon is down"""

    def __init__(
        self,
        platforms: PlatformsConfig,
        settings: Settings,
        interaction: Interaction,
        launcher: Optional[ProcessLauncher] = None,
        client_factory: ClientFactory = default_client_factory,
        which: Callable[[str], Optional[str]] = shutil.which,
        os_name: Optional[str] = None,
        wait: Optional[Callable[[float], bool]] = None,
        console: Optional[Console] = None,
    ):
        self.platforms = platforms
        self.settings = settings
        self.interaction = interaction
        self.launcher = launcher or ProcessLauncher()
        self.client_factory = client_factory
        self.which = which
        self.os_name = os_name or current_platform()
        self.console = console or Console()
        # Setting this event aborts a running wait_and_retry
        self.cancel_event = threading.Event()
        # wait(seconds) returns True when the wait was cancelled
        self._wait = wait or self.cancel_event.wait

    @property
    def profile(self) -> PlatformProfile:
        return get_platform_profile(self.platforms, self.os_name)

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def check_status(self) -> EngineStatus:
        """Probe the engine once: executable lookup, then a bounded daemon ping"""
        if self.which(self.settings.engine_command) is None:
            logger.debug("%s not found on PATH", self.settings.engine_command)
            return EngineStatus(
                installed=False,
                daemon_reachable=False,
                error_detail=f"{self.settings.engine_command} not found on PATH",
                install_options=tuple(self.profile.install_options),
            )

        error = self._probe_daemon()
        if error is not None:
            return EngineStatus(installed=True, daemon_reachable=False, error_detail=error)
        return EngineStatus(installed=True, daemon_reachable=True)

    def _probe_daemon(self) -> Optional[str]:
        """Ping with a fresh client; returns the error text or None on success"""
        try:
            client = self.client_factory(self.settings.ping_timeout)
        except PROBE_ERRORS as e:
            logger.debug("Cannot create engine client: %s", e)
            return str(e)

        try:
            if not client.ping():
                return "daemon did not answer ping"
        except PROBE_ERRORS as e:
            logger.debug("Ping failed: %s", e)
            return str(e)
        finally:
            client.close()
        return None

    def describe_engine(self) -> dict[str, Optional[dict[str, Any]]]:
        """Server version and system info; entries are None when unavailable"""
        details: dict[str, Optional[dict[str, Any]]] = {"version": None, "info": None}
        try:
            client = self.client_factory(self.settings.ping_timeout)
        except PROBE_ERRORS as e:
            raise DaemonUnreachableError(f"Failed to create engine client: {e}") from e

        try:
            for key, call in (("version", client.version), ("info", client.info)):
                try:
                    details[key] = call()
                except PROBE_ERRORS as e:
                    logger.debug("Engine %s unavailable: %s", key, e)
        finally:
            client.close()
        return details

    # ------------------------------------------------------------------
    # Entry point for project operations
    # ------------------------------------------------------------------

    def ensure_ready(self) -> None:
        """Return when the engine is usable, otherwise recover or raise"""
        status = self.check_status()
        if status.ok:
            return

        if not status.installed:
            self.console.print(f"[red]✗ {self.platforms.common.docker_not_found}[/red]")
            print_lines(self.console, list(status.install_options))
            self.console.print()
            raise NotInstalledError(self.platforms.error_messages.install_runtime, status)

        self.recover_from_unreachable(status)

    def recover_from_unreachable(self, status: EngineStatus) -> None:
        """Platform-specific recovery; returns only if the daemon came up"""
        self.console.print(
            f"[red]✗ Docker daemon is not accessible:[/red] {status.error_detail}\n",
            highlight=False,
        )
        errors = self.platforms.error_messages

        print_lines(self.console, self.profile.troubleshooting)
        self.console.print()

        if self.os_name == "darwin":
            self._recover_macos(status)
            return
        if self.os_name == "windows":
            raise DaemonUnreachableError(errors.docker_desktop_manual, status)
        raise DaemonUnreachableError(errors.docker_daemon_manual, status)

    def _recover_macos(self, status: EngineStatus) -> None:
        ui = self.platforms.ui_options
        if not self.settings.interactive:
            raise DaemonUnreachableError(
                self.platforms.error_messages.start_runtime_manually, status
            )

        choice = self.interaction.select_one(
            ui.runtime_options_message, ui.runtime_options
        )
        auto, wait, _manual = ui.runtime_options
        if choice == auto:
            self.attempt_runtime_start()
        elif choice == wait:
            self.wait_and_retry()
        else:
            raise DaemonUnreachableError(self.show_startup_options(), status)

    # ------------------------------------------------------------------
    # Automatic start (macOS)
    # ------------------------------------------------------------------

    def attempt_runtime_start(self) -> None:
        """Start the first available runtime: OrbStack, Colima, Docker Desktop"""
        self.console.print(f"[cyan]ℹ {self.platforms.common.runtime_start_attempt}[/cyan]")

        if self.which(COMMAND_ORBCTL) is not None:
            self.console.print("[cyan]   Found OrbStack, attempting to start...[/cyan]")
            self._start_orbstack()
        elif self.which(COMMAND_COLIMA) is not None:
            self.console.print("[cyan]   Found Colima, attempting to start...[/cyan]")
            self._start_colima()
        else:
            self._start_docker_desktop()

    def _start_orbstack(self) -> None:
        common = self.platforms.common
        result = self.launcher.launch_application("OrbStack")
        if not result.ok:
            self.console.print(
                f"[red]✗ Failed to start OrbStack automatically:[/red] "
                f"{result.output.strip()}"
            )
            self._print_runtime_instructions("orbstack")
            raise DaemonUnreachableError(self.platforms.error_messages.start_orbstack)

        self.console.print(f"[green]✓ {common.orbstack_start_sent}[/green]")
        self.console.print(f"[cyan]ℹ {common.orbstack_note}[/cyan]")
        self.wait_and_retry()

    def _start_colima(self) -> None:
        common = self.platforms.common
        result = self.launcher.run_command(COMMAND_COLIMA, ["start"])
        if not result.ok:
            self.console.print(
                f"[red]✗ Failed to start Colima:[/red] {result.output.strip()}"
            )
            self._print_runtime_instructions("colima", with_commands=True)
            raise DaemonUnreachableError(self.platforms.error_messages.start_colima)

        self.console.print(f"[green]✓ {common.colima_start_sent}[/green]")
        self.console.print(f"[cyan]ℹ {common.colima_note}[/cyan]")
        self.wait_and_retry()

    def _start_docker_desktop(self) -> None:
        result = self.launcher.launch_application("Docker")
        if not result.ok:
            self.console.print(
                "[red]✗ Failed to start container runtime automatically:[/red] "
                f"{result.output.strip()}"
            )
            raise DaemonUnreachableError(self.show_startup_options())

        self.console.print(f"[green]✓ {self.platforms.common.docker_desktop_sent}[/green]")
        self.wait_and_retry()

    def _print_runtime_instructions(self, runtime: str, with_commands: bool = False):
        instructions = self.profile.runtimes.get(runtime)
        if instructions is None:
            return
        print_lines(self.console, instructions.manual_start)
        self.console.print()
        print_lines(self.console, instructions.auto_start)
        self.console.print()
        if with_commands:
            print_lines(self.console, instructions.commands)
            self.console.print()

    # ------------------------------------------------------------------
    # Bounded polling
    # ------------------------------------------------------------------

    def wait_and_retry(self) -> None:
        """Re-probe the daemon every retry_interval, at most max_retries times"""
        state = RetryState(
            max_attempts=self.settings.max_retries,
            interval_seconds=self.settings.retry_interval,
        )
        self.console.print(f"[cyan]ℹ {self.platforms.common.runtime_waiting}[/cyan]")
        self.console.print("[dim]Press Ctrl+C to stop waiting[/dim]")

        try:
            while not state.exhausted:
                if self.cancel_event.is_set() or self._wait(state.interval_seconds):
                    raise RecoveryCancelledError(
                        self.platforms.error_messages.recovery_cancelled
                    )
                state.attempt += 1

                error = self._probe_daemon()
                if error is None:
                    self.console.print(
                        f"[green]✓ {self.platforms.common.runtime_now_running}[/green]"
                    )
                    return

                logger.debug("Probe %d/%d failed: %s", state.attempt, state.max_attempts, error)
                dots = "." * ((state.attempt - 1) % 3 + 1)
                self.console.print(
                    f"[dim]   Still waiting{dots} ({state.attempt}/{state.max_attempts})[/dim]"
                )
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted by user[/yellow]")
            raise RecoveryCancelledError(
                self.platforms.error_messages.recovery_cancelled
            ) from None
        finally:
            self.cancel_event.clear()

        self.console.print(
            "[red]✗ "
            + self.platforms.common.runtime_start_failed.format(
                self.settings.runtime_start_timeout
            )
            + "[/red]"
        )
        self.show_startup_options()
        raise RecoveryExhaustedError(self.platforms.error_messages.recovery_exhausted)

    def show_startup_options(self) -> str:
        """Print manual or auto-start instructions; returns the matching error text"""
        ui = self.platforms.ui_options
        errors = self.platforms.error_messages
        self.console.print()

        if not self.settings.interactive:
            print_lines(
                self.console,
                get_startup_instructions(self.platforms, self.os_name, "manual"),
            )
            self.console.print()
            return errors.manual_startup

        choice = self.interaction.select_one(
            ui.startup_options_message, ui.startup_options
        )
        if choice == ui.startup_options[0]:
            kind, message = "manual", errors.manual_startup
        elif choice == ui.startup_options[1]:
            kind, message = "auto", errors.auto_start_setup
        else:
            return errors.start_runtime_manually

        print_lines(
            self.console, get_startup_instructions(self.platforms, self.os_name, kind)
        )
        self.console.print()
        return message
