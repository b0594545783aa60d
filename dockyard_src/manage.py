#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Interactive project registration (`dockyard manage`).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from .errors import ConfigError
from .interaction import Interaction
from .projects import ProjectStore, docker_files_info, has_docker_files

logger = logging.getLogger(__name__)

GO_UP = ".. (Go up)"
SELECT_CURRENT = ". (Select current directory)"


class ProjectManagement:
    """Add and remove entries of the projects file through prompts"""

    def __init__(
        self,
        store: ProjectStore,
        interaction: Interaction,
        start_dir: Optional[Path] = None,
        console: Optional[Console] = None,
    ):
        self.store = store
        self.interaction = interaction
        self.start_dir = start_dir or Path.home()
        self.console = console or Console()

    def run(self) -> bool:
        action = self.interaction.select_one("What do you want to do?", ["Add", "Remove"])
        if action == "Add":
            return self.add_project()
        return self.remove_project()

    def ensure_projects_file(self) -> bool:
        """Offer to create the projects file on first run; False if declined"""
        if self.store.exists:
            self.store.load()
            return True

        if not self.interaction.confirm(
            f"The project configuration file '{self.store.path}' does not exist. "
            "Would you like to create one and add projects? 😎",
            default=True,
        ):
            self.console.print("[yellow]No projects file found.[/yellow]")
            return False

        self.add_project()
        if not self.store.exists:
            self.store.save()
        return True

    def add_project(self) -> bool:
        name = self.interaction.read_line("Enter the project name").strip()
        if not name:
            self.console.print("[yellow]Project name must not be empty[/yellow]")
            return False

        if name in self.store and not self.interaction.confirm(
            f"Project '{name}' already exists. Do you want to overwrite it?"
        ):
            self.console.print("Project addition cancelled.")
            return False

        self.console.print("Browse to select the project directory:")
        project_dir = self.browse_for_directory()

        if not has_docker_files(project_dir):
            self.console.print(
                f"[yellow]⚠️  Warning: No Docker files found in {project_dir}[/yellow]"
            )
            if not self.interaction.confirm("Do you want to continue anyway?"):
                self.console.print("Project addition cancelled.")
                return False
        else:
            self.console.print(
                f"[green]✅ Found Docker files:[/green] {docker_files_info(project_dir)}"
            )

        if not self.interaction.confirm(
            f"Do you want to add project '{name}' with path '{project_dir}'?",
            default=True,
        ):
            self.console.print("Project addition cancelled.")
            return False

        self.store.add(name, str(project_dir))
        self.store.save()
        self.console.print(f"[green]✅ Successfully added project '{name}'[/green]")
        return True

    def remove_project(self) -> bool:
        if not len(self.store):
            self.console.print("No projects found to remove.")
            return False

        name = self.interaction.select_one(
            "Select the project you'd like to remove:", self.store.sorted_names()
        )
        if not self.interaction.confirm(
            f"Are you sure you want to remove project '{name}'?"
        ):
            self.console.print("Project removal cancelled.")
            return False

        self.store.remove(name)
        self.store.save()
        self.console.print(f"[green]✅ Successfully removed project '{name}'[/green]")
        return True

    def browse_for_directory(self) -> Path:
        """Navigate non-hidden subdirectories starting at start_dir"""
        current = self.start_dir.resolve()
        while True:
            try:
                children = sorted(
                    entry
                    for entry in current.iterdir()
                    if entry.is_dir() and not entry.name.startswith(".")
                )
            except OSError as e:
                raise ConfigError(f"Failed to read directory {current}: {e}") from e

            options: list[str] = []
            targets: list[Path] = []
            if current.parent != current:
                options.append(GO_UP)
                targets.append(current.parent)
            options.append(SELECT_CURRENT)
            targets.append(current)
            for child in children:
                options.append(f"📁 {child.name}/")
                targets.append(child)

            choice = self.interaction.select_one(
                f"Navigate to select project directory (Current: {current})", options
            )
            if choice == SELECT_CURRENT:
                return current
            current = targets[options.index(choice)]
            logger.debug("Browsing %s", current)
