#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Batch start of selected projects with a summary and retry offer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console

from .compose import ComposeManager
from .errors import DockyardError, EngineError
from .interaction import Interaction
from .models import ContainerStatus
from .projects import ProjectStore

logger = logging.getLogger(__name__)

RETRY_YES = "Yes, retry failed projects"
RETRY_NO = "No, I'll fix issues manually"


@dataclass
class RunSummary:
    requested: list[str]
    started: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    # Set when an engine error ended the batch early
    aborted: bool = False

    @property
    def success_count(self) -> int:
        return len(self.started)


def status_line(name: str, statuses: list[ContainerStatus]) -> str:
    """One-line project summary: running count or stopped"""
    if not statuses:
        return f"📭 {name}: No containers"
    running = sum(1 for status in statuses if status.state == "running")
    if running:
        return f"🟢 {name}: {running}/{len(statuses)} containers running"
    return f"🔴 {name}: {len(statuses)} containers stopped"


class ProjectRunner:
    """Starts projects one after another"""

    def __init__(
        self,
        store: ProjectStore,
        manager: ComposeManager,
        interaction: Interaction,
        interactive: bool = True,
        console: Optional[Console] = None,
    ):
        self.store = store
        self.manager = manager
        self.interaction = interaction
        self.interactive = interactive
        self.console = console or Console()

    def start_projects(self, names: list[str], retry: bool = False) -> RunSummary:
        """Start each project; an engine error stops the rest of the batch"""
        summary = RunSummary(requested=list(names))
        if not retry:
            self.console.print(
                f"[bold]🚀 Starting {len(names)} selected project(s)...[/bold]\n"
            )

        for name in names:
            verb = "Retrying" if retry else "Starting"
            self.console.print(f"[cyan]{'🔄' if retry else '📦'} {verb} project: {name}[/cyan]")
            try:
                self.manager.start(self.store.resolve(name))
            except DockyardError as e:
                self.console.print(
                    f"[red]❌ Failed to start project {name}:[/red] {e}", highlight=False
                )
                summary.failed[name] = str(e)
                if isinstance(e, EngineError):
                    self.console.print(
                        "\n[red]🛑 Docker daemon issue detected. "
                        "Stopping further operations.[/red]"
                    )
                    summary.aborted = True
                    break
                continue

            self.console.print(f"[green]✅ Successfully started project: {name}[/green]\n")
            summary.started.append(name)
        return summary

    def run(self, names: list[str]) -> RunSummary:
        """Start, report, offer a retry for failures, then show status"""
        summary = self.start_projects(names)
        self.console.print(
            f"📊 Summary: {summary.success_count}/{len(names)} "
            "projects started successfully"
        )

        if summary.failed:
            self.console.print(
                f"[red]❌ Failed projects: {', '.join(summary.failed)}[/red]"
            )
            if self.interactive and self.interaction.select_one(
                "Would you like to retry the failed projects?", [RETRY_YES, RETRY_NO]
            ) == RETRY_YES:
                self.retry_failed(summary)

        if summary.started:
            self.console.print("\n📈 Current project status:")
            self.show_status(names)
        elif summary.failed:
            self.console.print(
                "\n💡 Tip: Run 'dockyard status' to check the current state "
                "of your projects"
            )
        return summary

    def retry_failed(self, summary: RunSummary) -> RunSummary:
        """Retry the failures of a run and fold the outcome back into it"""
        self.console.print("\n🔄 Retrying failed projects...")
        failed = list(summary.failed)
        retried = self.start_projects(failed, retry=True)

        for name in retried.started:
            del summary.failed[name]
            summary.started.append(name)
        summary.failed.update(retried.failed)

        self.console.print(
            f"\n🎯 Retry Results: {retried.success_count}/{len(failed)} "
            "projects started successfully"
        )
        if retried.failed:
            self.console.print(
                f"[red]❌ Still failing: {', '.join(retried.failed)}[/red]"
            )
            self.console.print(
                "💡 Tip: Use 'dockyard auth' to set up authentication if needed"
            )
        return retried

    def show_status(self, names: list[str]) -> None:
        for name in names:
            try:
                statuses = self.manager.status(self.store.resolve(name))
            except DockyardError as e:
                self.console.print(
                    f"❌ {name}: Failed to get status: {e}", highlight=False
                )
                continue
            self.console.print(status_line(name, statuses))
