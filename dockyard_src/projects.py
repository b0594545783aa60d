#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Project registry (projects.json) and compose file discovery.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .errors import ComposeFileNotFoundError, ConfigError, ProjectNotFoundError

logger = logging.getLogger(__name__)

# In order of preference
COMPOSE_FILE_NAMES = (
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
)
COMPOSE_OVERRIDE_NAMES = (
    "docker-compose.override.yml",
    "docker-compose.override.yaml",
)


def resolve_home_dir(path: str) -> Path:
    """Expand a leading '~' to the user's home directory"""
    return Path(os.path.expanduser(path))


def find_compose_file(project_dir: Path) -> Path:
    for name in COMPOSE_FILE_NAMES:
        candidate = project_dir / name
        if candidate.is_file():
            return candidate
    raise ComposeFileNotFoundError(
        f"No docker-compose file found in {project_dir}. "
        f"Looking for: {', '.join(COMPOSE_FILE_NAMES)}"
    )


def find_all_compose_files(project_dir: Path) -> list[Path]:
    return [
        project_dir / name
        for name in COMPOSE_FILE_NAMES + COMPOSE_OVERRIDE_NAMES
        if (project_dir / name).is_file()
    ]


def has_docker_files(project_dir: Path) -> bool:
    """Compose files or a standalone Dockerfile"""
    return bool(find_all_compose_files(project_dir)) or (
        project_dir / "Dockerfile"
    ).is_file()


def docker_files_info(project_dir: Path) -> str:
    names = [path.name for path in find_all_compose_files(project_dir)]
    if (project_dir / "Dockerfile").is_file():
        names.append("Dockerfile")
    if not names:
        return "No Docker files found"
    return ", ".join(names)


class ProjectStore:
    """Named projects persisted as a JSON object of name -> path"""

    def __init__(self, path: Path):
        self.path = path
        self.projects: dict[str, str] = {}

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> "ProjectStore":
        """Load the file; a missing file is an empty store"""
        if not self.path.exists():
            logger.debug("Projects file %s does not exist", self.path)
            self.projects = {}
            return self

        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load projects from {self.path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise ConfigError(
                f"{self.path} must be a JSON object mapping project names to paths"
            )
        self.projects = data
        return self

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(self.projects, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )

    def sorted_names(self) -> list[str]:
        return sorted(self.projects)

    def get(self, name: str) -> Optional[str]:
        return self.projects.get(name)

    def add(self, name: str, path: str) -> None:
        if not name.strip():
            raise ValueError("Project name must not be empty")
        self.projects[name] = path

    def remove(self, name: str) -> None:
        if name not in self.projects:
            raise ProjectNotFoundError(name)
        del self.projects[name]

    def resolve(self, name: str) -> Path:
        """Project directory with '~' expanded"""
        path = self.get(name)
        if path is None:
            raise ProjectNotFoundError(name)
        return resolve_home_dir(path)

    def __contains__(self, name: object) -> bool:
        return name in self.projects

    def __len__(self) -> int:
        return len(self.projects)
