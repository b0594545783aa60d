#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Container health analysis for registered projects (`dockyard health`).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console

from .compose import ComposeManager
from .errors import DockyardError, EngineError
from .interaction import Interaction
from .models import ContainerStatus
from .projects import ProjectStore

logger = logging.getLogger(__name__)

# Exit codes reported as failures rather than a regular stop
ERROR_EXIT_MARKERS = ("Exited (1)", "Exited (125)", "Exited (127)")

RECHECK_DELAY = 3.0

FIX_VIEW_LOGS = "View logs to diagnose errors"
FIX_RESTART_ERRORS = "Restart containers with errors"
FIX_START_STOPPED = "Start stopped containers"
FIX_FULL_RESTART = "Full project restart"
FIX_NOTHING = "Do nothing for now"

FIX_ALL = "Yes, fix all issues"
FIX_CHOOSE = "Let me choose specific projects"
FIX_MANUAL = "No, I'll handle manually"


@dataclass
class HealthReport:
    total: int = 0
    running: int = 0
    stopped: int = 0
    errors: int = 0
    issues: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.total == 0

    @property
    def healthy(self) -> bool:
        return self.total > 0 and self.running == self.total


def analyze_statuses(statuses: list[ContainerStatus]) -> HealthReport:
    """Count running, stopped and failed containers and describe the rest"""
    report = HealthReport(total=len(statuses))
    for status in statuses:
        if status.state == "running":
            report.running += 1
        elif status.state == "exited":
            report.stopped += 1
            if any(marker in status.status for marker in ERROR_EXIT_MARKERS):
                report.errors += 1
                report.issues.append(f"❌ {status.service}: {status.status}")
            else:
                report.issues.append(f"⏹️  {status.service}: {status.status}")
        else:
            report.issues.append(
                f"⚪ {status.service}: {status.state} ({status.status})"
            )
    return report


def solution_options(report: HealthReport) -> list[str]:
    options: list[str] = []
    if report.errors:
        options.extend([FIX_VIEW_LOGS, FIX_RESTART_ERRORS])
    if report.stopped:
        options.append(FIX_START_STOPPED)
    options.extend([FIX_FULL_RESTART, FIX_NOTHING])
    return options


class ProjectHealthChecker:
    """Reports project health and restarts projects that need it"""

    def __init__(
        self,
        store: ProjectStore,
        manager: ComposeManager,
        interaction: Interaction,
        interactive: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        console: Optional[Console] = None,
    ):
        self.store = store
        self.manager = manager
        self.interaction = interaction
        self.interactive = interactive
        self.sleep = sleep
        self.console = console or Console()

    def report_for(self, name: str) -> HealthReport:
        return analyze_statuses(self.manager.status(self.store.resolve(name)))

    def is_healthy(self, name: str) -> bool:
        """Quiet check; any failure other than an engine error counts as unhealthy"""
        try:
            return self.report_for(name).healthy
        except EngineError:
            raise
        except DockyardError as e:
            logger.debug("Health check for %s failed: %s", name, e)
            return False

    # ------------------------------------------------------------------
    # Single project
    # ------------------------------------------------------------------

    def check_project(self, name: str) -> HealthReport:
        self.console.print(f"[bold]🏥 Health Check for Project: {name}[/bold]\n")
        report = self.report_for(name)

        if report.empty:
            self.console.print(f"📭 No containers found for project '{name}'")
            self.console.print(
                f"💡 Recommendation: Run 'dockyard start {name}' to create containers"
            )
            return report

        if report.healthy:
            self.console.print(
                "[green]✅ Project is healthy - all containers are running![/green]"
            )
            return report

        self.console.print(
            f"📊 Container Status: {report.running} running, "
            f"{report.stopped} stopped ({report.errors} with errors)\n"
        )
        if report.issues:
            self.console.print("🔍 Issues found:")
            for issue in report.issues:
                self.console.print(f"   {issue}", markup=False, highlight=False)
            self.console.print()

        if self.interactive:
            self.offer_solutions(name, report)
        return report

    def offer_solutions(self, name: str, report: HealthReport) -> None:
        solution = self.interaction.select_one(
            "How would you like to fix these issues?", solution_options(report)
        )
        if solution == FIX_NOTHING:
            self.console.print(
                "👍 No action taken. You can run this health check again anytime."
            )
            return

        project_dir = self.store.resolve(name)
        if solution == FIX_VIEW_LOGS:
            self.console.print(f"📋 Viewing logs for project {name}:")
            self.manager.logs(project_dir)
            return

        self.console.print(f"🔄 Restarting project {name}...")
        self.manager.restart(project_dir)
        self.console.print(f"[green]✅ Project {name} restarted successfully![/green]")
        self.console.print(f"⏳ Checking health in {RECHECK_DELAY:g} seconds...")
        self.sleep(RECHECK_DELAY)

        if self.is_healthy(name):
            self.console.print("[green]✅ Project is now healthy![/green]")
        else:
            self.console.print(
                "[yellow]⚠️  Some issues may remain - "
                "run health check again if needed[/yellow]"
            )

    # ------------------------------------------------------------------
    # All projects
    # ------------------------------------------------------------------

    def check_all(self) -> list[str]:
        """Summarise every project; returns the names that need attention"""
        self.console.print("[bold]🏥 Health Check for All Projects[/bold]\n")
        self.manager.monitor.ensure_ready()

        unhealthy: list[str] = []
        for name in self.store.sorted_names():
            if self.is_healthy(name):
                self.console.print(f"✅ {name}: Healthy")
            else:
                self.console.print(f"⚠️  {name}: Needs attention")
                unhealthy.append(name)

        healthy_count = len(self.store) - len(unhealthy)
        self.console.print(
            f"\n📊 Health Summary: {healthy_count} healthy, "
            f"{len(unhealthy)} need attention"
        )
        if not unhealthy:
            return unhealthy

        self.console.print(
            f"🔧 Projects needing attention: {', '.join(unhealthy)}", highlight=False
        )
        if not self.interactive:
            return unhealthy

        choice = self.interaction.select_one(
            "Would you like to fix issues automatically?",
            [FIX_ALL, FIX_CHOOSE, FIX_MANUAL],
        )
        if choice == FIX_ALL:
            self.fix_projects(unhealthy)
        elif choice == FIX_CHOOSE:
            selected = self.interaction.select_many("Select projects to fix:", unhealthy)
            if selected:
                self.fix_projects(selected)
        return unhealthy

    def fix_projects(self, names: list[str]) -> list[str]:
        """Restart each project; returns the ones that failed"""
        self.console.print(f"🔧 Fixing issues for {len(names)} projects...")
        failed: list[str] = []
        for name in names:
            self.console.print(f"🔄 Fixing {name}...")
            try:
                self.manager.restart(self.store.resolve(name))
            except EngineError:
                raise
            except DockyardError as e:
                self.console.print(f"[red]❌ Failed to fix {name}: {e}[/red]")
                failed.append(name)
                continue
            self.console.print(f"[green]✅ Fixed {name}[/green]")
        return failed
